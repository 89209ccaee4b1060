# This project was developed with assistance from AI tools.
"""Request payloads and multi-step helpers shared by the flow tests."""

JPEG = b"\xff\xd8\xff\xe0fake-jpeg"
PDF = b"%PDF-1.7 fake"

IDENTITY_FILES = {
    "front": ("aadhaar-front.jpg", JPEG, "image/jpeg"),
    "back": ("aadhaar-back.jpg", JPEG, "image/jpeg"),
    "profile": ("selfie.jpg", JPEG, "image/jpeg"),
}

PROPERTY_FILES = {
    "ownership": {
        "ownership_proof": ("sale-deed.pdf", PDF, "application/pdf"),
        "owner_kyc": ("owner-kyc.pdf", PDF, "application/pdf"),
    },
    "tax": {
        "gst_certificate": ("gst.pdf", PDF, "application/pdf"),
        "pan_card": ("pan.jpg", JPEG, "image/jpeg"),
    },
    "banking": {
        "bank_proof": ("cancelled-cheque.jpg", JPEG, "image/jpeg"),
    },
}

PROPERTY_DETAILS = {
    "ownership": {},
    "tax": {"gst_number": "29ABCDE1234F1Z5", "pan_number": "ABCDE1234F"},
    "banking": {"account_holder_name": "Asha Rao", "account_number": "001234567890", "ifsc_code": "HDFC0001234"},
}


def register_partner(client, full_name="Asha Rao", email="asha@example.com") -> dict:
    resp = client.post("/api/partners", json={"full_name": full_name, "email": email})
    assert resp.status_code == 201, resp.text
    return resp.json()


def upload_identity(client, files=None, **details):
    return client.post(
        "/api/partners/me/identity",
        files=files if files is not None else IDENTITY_FILES,
        data=details or {"id_number": "XXXX-XXXX-1234"},
    )


def register_property(client, name="Lakeview Homestay", property_type="homestay") -> dict:
    resp = client.post(
        "/api/properties",
        json={
            "property_name": name,
            "property_type": property_type,
            "description": "Two rooms facing the lake",
            "address": {"city": "Udaipur", "state": "Rajasthan"},
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def upload_group(client, property_id, kind, *, confirm=False, files=None):
    data = dict(PROPERTY_DETAILS[kind])
    if confirm:
        data["confirm_reverification"] = "true"
    return client.post(
        f"/api/properties/{property_id}/documents/{kind}",
        files=files if files is not None else PROPERTY_FILES[kind],
        data=data,
    )


def decide_property_group(client, property_id, kind, status, reason=None):
    return client.patch(
        f"/api/admin/properties/{property_id}/document-status",
        json={"kind": kind, "status": status, "reason": reason},
    )


def group(payload: dict, kind: str) -> dict:
    """Pick one group out of a property response."""
    return next(g for g in payload["groups"] if g["kind"] == kind)
