# This project was developed with assistance from AI tools.
"""Functional tests: one partner can never see or touch another's records.

Out-of-scope properties answer 404 (not 403) so their existence is not
leaked.
"""

import pytest

from .data_factory import register_partner, register_property, upload_group, upload_identity
from .personas import guest, operator, partner_asha, partner_vikram

pytestmark = pytest.mark.functional


@pytest.fixture
def asha_property(as_user):
    asha = as_user(partner_asha())
    register_partner(asha)
    upload_identity(asha)
    as_user(operator()).patch("/api/admin/partners/1/verify", json={"status": "approved"})
    register_property(as_user(partner_asha()))


@pytest.fixture
def vikram(as_user, asha_property):
    client = as_user(partner_vikram())
    register_partner(client, full_name="Vikram Shah", email="vikram@example.com")
    return client


class TestPropertyIsolation:
    def test_other_partner_cannot_view(self, vikram):
        resp = vikram.get("/api/properties/1/verification")
        assert resp.status_code == 404
        assert resp.json()["type"] == "not_found"

    def test_other_partner_cannot_upload(self, vikram, storage):
        resp = upload_group(vikram, 1, "ownership")
        assert resp.status_code == 404
        storage.upload_file.assert_not_awaited()

    def test_other_partner_cannot_list_or_edit(self, vikram, db):
        assert vikram.patch("/api/properties/1/listing", json={"is_listed": True}).status_code == 404
        assert vikram.patch("/api/properties/1", json={"description": "mine now"}).status_code == 404
        assert db.properties[0].description == "Two rooms facing the lake"

    def test_owner_and_operator_can_view(self, as_user, asha_property):
        assert as_user(partner_asha()).get("/api/properties/1/verification").status_code == 200
        assert as_user(operator()).get("/api/properties/1/verification").status_code == 200

    def test_guest_denied(self, as_user, asha_property):
        assert as_user(guest()).get("/api/properties/1/verification").status_code == 403


class TestPartnerIsolation:
    def test_partner_sees_only_own_record(self, vikram):
        body = vikram.get("/api/partners/me/verification").json()
        assert body["id"] == 2
        assert body["overall_status"] == "not_submitted"

    def test_partner_cannot_decide(self, vikram):
        resp = vikram.patch("/api/admin/partners/1/verify", json={"status": "approved"})
        assert resp.status_code == 403

    def test_unverified_partner_cannot_register_property(self, vikram):
        resp = vikram.post(
            "/api/properties", json={"property_name": "Hilltop Villa", "property_type": "villa"},
        )
        assert resp.status_code == 403
        assert resp.json()["type"] == "submission_blocked"
