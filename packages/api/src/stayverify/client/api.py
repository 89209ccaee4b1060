# This project was developed with assistance from AI tools.
"""httpx client for the verification REST API.

Responses are parsed into the same closed enums and value types the server
uses; an unknown status string raises ``UnrecognizedStatus`` instead of
being carried along. Problem Details error bodies are rebuilt into the
matching ``VerificationError`` subclass.
"""

import logging

import httpx
from db.enums import (
    DocumentKind,
    GroupEvent,
    GroupStatus,
    PartnerStatus,
    PropertyStatus,
    SubjectType,
)

from ..services.verification import (
    DocumentGroup,
    InvalidTransition,
    ListingNotAllowed,
    MissingReason,
    StaleWrite,
    SubjectNotFound,
    SubmissionBlocked,
    UnrecognizedStatus,
    UploadRejected,
    VerificationError,
    VerificationSubject,
    parse_enum,
)
from ..services.verification.errors import ReverificationRequired
from .config import ClientSettings

logger = logging.getLogger(__name__)

# slot -> (filename, content, content_type)
FileParts = dict[str, tuple[str, bytes, str]]


def parse_group(data: dict) -> DocumentGroup:
    status = parse_enum(GroupStatus, data.get("status"), "status")
    return DocumentGroup(
        kind=parse_enum(DocumentKind, data.get("kind"), "kind"),
        status=status,
        rejection_reason=data.get("rejection_reason") if status == GroupStatus.REJECTED else None,
        artifacts=dict(data.get("artifacts") or {}),
        details=dict(data.get("details") or {}),
        version=data.get("version", 0),
    )


def parse_subject(subject_type: SubjectType, data: dict) -> VerificationSubject:
    """Build a VerificationSubject from a partner or property verification payload."""
    if subject_type == SubjectType.PARTNER:
        identity = parse_group(data["identity"])
        return VerificationSubject(
            subject_type=SubjectType.PARTNER,
            subject_id=data["id"],
            groups={identity.kind: identity},
            is_active=data.get("is_active", True),
            sequence=data.get("sequence", 0),
        )

    override = data.get("override_status")
    groups = [parse_group(g) for g in data.get("groups", [])]
    return VerificationSubject(
        subject_type=SubjectType.PROPERTY,
        subject_id=data["id"],
        groups={g.kind: g for g in groups},
        override_status=parse_enum(PropertyStatus, override, "override_status") if override else None,
        override_reason=data.get("override_reason"),
        onboarding_completed=data.get("onboarding_completed", False),
        is_listed=data.get("is_listed", False),
        sequence=data.get("sequence", 0),
    )


def error_from_response(response: httpx.Response) -> Exception:
    """Rebuild a workflow error from an RFC 7807 body; other failures stay HTTP errors."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    error_type = body.get("type", "")
    detail = body.get("detail") or response.reason_phrase

    if error_type in ("invalid_transition", "stale_write"):
        current = parse_enum(GroupStatus, body.get("current_status"), "current_status")
        event = parse_enum(GroupEvent, body.get("attempted_event"), "attempted_event")
        if error_type == "stale_write":
            return StaleWrite(event, current)
        return InvalidTransition(event, current, detail)
    if error_type == "upload_rejected":
        return UploadRejected(detail, http_status=response.status_code)
    if error_type == "reverification_required":
        return ReverificationRequired([], detail)

    simple: dict[str, type[VerificationError]] = {
        "submission_blocked": SubmissionBlocked,
        "listing_not_allowed": ListingNotAllowed,
        "not_found": SubjectNotFound,
    }
    if error_type in simple:
        return simple[error_type](detail)
    if error_type == "missing_reason":
        return MissingReason()
    if error_type == "unrecognized_status":
        return UnrecognizedStatus("response", detail)
    return httpx.HTTPStatusError(
        f"{response.status_code} {detail}", request=response.request, response=response,
    )


class VerificationClient:
    """Partner-side REST calls, authenticated with a bearer token."""

    def __init__(
        self,
        token: str,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or ClientSettings()
        self._http = httpx.AsyncClient(
            base_url=self.settings.API_BASE_URL,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "VerificationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        response = await self._http.request(method, url, **kwargs)
        if response.is_error:
            logger.debug("%s %s -> %s", method, url, response.status_code)
            raise error_from_response(response)
        return response.json()

    # -- reads --

    async def fetch_subject(self, subject_type: SubjectType, subject_id: int | None = None) -> VerificationSubject:
        """Full resync read. ``subject_id`` is ignored for partners (always the caller)."""
        if subject_type == SubjectType.PARTNER:
            payload = await self._request("GET", "/api/partners/me/verification")
        else:
            payload = await self._request("GET", f"/api/properties/{subject_id}/verification")
        return parse_subject(subject_type, payload)

    async def verification_status(self) -> dict:
        """Partner status plus the ``can_edit``/``can_add_property`` gates."""
        payload = await self._request("GET", "/api/partners/me/verification-status")
        payload["status"] = parse_enum(PartnerStatus, payload.get("status"), "status")
        return payload

    # -- writes --

    async def upload_identity(
        self, files: FileParts, details: dict[str, str] | None = None,
    ) -> VerificationSubject:
        payload = await self._request(
            "POST", "/api/partners/me/identity", files=files, data=details or {},
        )
        return parse_subject(SubjectType.PARTNER, payload)

    async def upload_property_group(
        self,
        property_id: int,
        kind: DocumentKind,
        files: FileParts,
        details: dict[str, str] | None = None,
        confirm_reverification: bool = False,
    ) -> tuple[VerificationSubject, str | None]:
        """Returns the updated property and any re-verification warning to show."""
        data = dict(details or {})
        if confirm_reverification:
            data["confirm_reverification"] = "true"
        payload = await self._request(
            "POST", f"/api/properties/{property_id}/documents/{kind.value}", files=files, data=data,
        )
        return parse_subject(SubjectType.PROPERTY, payload), payload.get("warning")

    async def set_listing(self, property_id: int, is_listed: bool) -> VerificationSubject:
        payload = await self._request(
            "PATCH", f"/api/properties/{property_id}/listing", json={"is_listed": is_listed},
        )
        return parse_subject(SubjectType.PROPERTY, payload)
