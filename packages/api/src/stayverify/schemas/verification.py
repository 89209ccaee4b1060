# This project was developed with assistance from AI tools.
"""Verification request/response schemas."""

from datetime import datetime

from db import Partner, Property
from db.enums import (
    DocumentKind,
    GroupStatus,
    PartnerStatus,
    PropertyStatus,
    PropertyType,
    SubjectType,
)
from pydantic import BaseModel, Field

from ..services.verification import DocumentGroup, VerificationSubject
from ..services.verification.gate import can_add_property, can_edit, can_toggle_listing
from . import Pagination

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PartnerCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)


class PropertyCreate(BaseModel):
    property_name: str = Field(min_length=1, max_length=255)
    property_type: PropertyType
    description: str | None = None
    address: dict | None = None


class PropertyUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    property_name: str | None = Field(default=None, min_length=1, max_length=255)
    property_type: PropertyType | None = None
    description: str | None = None
    address: dict | None = None
    confirm_reverification: bool = False


class ListingUpdate(BaseModel):
    is_listed: bool


class GroupDecisionRequest(BaseModel):
    """Operator decision on a single group. ``status`` is approved or rejected."""

    kind: DocumentKind | None = None
    status: str
    reason: str | None = None


class OverallStatusRequest(BaseModel):
    status: str
    reason: str | None = None


class PartnerActiveRequest(BaseModel):
    is_active: bool
    reason: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class DocumentGroupResponse(BaseModel):
    kind: DocumentKind
    status: GroupStatus
    rejection_reason: str | None = None
    artifacts: dict[str, str] = Field(default_factory=dict)
    details: dict[str, str] = Field(default_factory=dict)
    missing_slots: list[str] = Field(default_factory=list)
    version: int = 0
    can_edit: bool = False

    @classmethod
    def from_group(cls, group: DocumentGroup) -> "DocumentGroupResponse":
        return cls(
            kind=group.kind,
            status=group.status,
            rejection_reason=group.rejection_reason,
            artifacts=group.artifacts,
            details=group.details,
            missing_slots=group.missing_slots(),
            version=group.version,
            can_edit=can_edit(group),
        )


class PartnerVerificationResponse(BaseModel):
    """Full partner subject; the resync payload after every notification."""

    id: int
    full_name: str
    email: str
    is_active: bool
    deactivation_reason: str | None = None
    overall_status: PartnerStatus
    sequence: int
    can_add_property: bool
    identity: DocumentGroupResponse
    warning: str | None = None

    @classmethod
    def build(
        cls, partner: Partner, subject: VerificationSubject, warning: str | None = None,
    ) -> "PartnerVerificationResponse":
        return cls(
            id=partner.id,
            full_name=partner.full_name,
            email=partner.email,
            is_active=subject.is_active,
            deactivation_reason=partner.deactivation_reason,
            overall_status=subject.overall_status,
            sequence=subject.sequence,
            can_add_property=can_add_property(subject),
            identity=DocumentGroupResponse.from_group(subject.group(DocumentKind.IDENTITY)),
            warning=warning,
        )


class PartnerStatusResponse(BaseModel):
    """Lightweight status read used to gate partner-side screens."""

    status: PartnerStatus
    rejection_reason: str | None = None
    can_edit: bool
    can_add_property: bool
    is_active: bool
    sequence: int

    @classmethod
    def build(cls, subject: VerificationSubject) -> "PartnerStatusResponse":
        identity = subject.group(DocumentKind.IDENTITY)
        return cls(
            status=subject.overall_status,
            rejection_reason=identity.rejection_reason,
            can_edit=subject.is_active and can_edit(identity),
            can_add_property=can_add_property(subject),
            is_active=subject.is_active,
            sequence=subject.sequence,
        )


class PropertyVerificationResponse(BaseModel):
    id: int
    partner_id: int
    property_name: str
    property_type: PropertyType
    description: str | None = None
    address: dict | None = None
    overall_status: PropertyStatus
    override_status: PropertyStatus | None = None
    override_reason: str | None = None
    onboarding_completed: bool
    is_listed: bool
    can_toggle_listing: bool
    sequence: int
    groups: list[DocumentGroupResponse]
    warning: str | None = None

    @classmethod
    def build(
        cls, prop: Property, subject: VerificationSubject, warning: str | None = None,
    ) -> "PropertyVerificationResponse":
        return cls(
            id=prop.id,
            partner_id=prop.partner_id,
            property_name=prop.property_name,
            property_type=prop.property_type,
            description=prop.description,
            address=prop.address,
            overall_status=subject.overall_status,
            override_status=subject.override_status,
            override_reason=subject.override_reason,
            onboarding_completed=subject.onboarding_completed,
            is_listed=subject.is_listed,
            can_toggle_listing=can_toggle_listing(subject),
            sequence=subject.sequence,
            groups=[
                DocumentGroupResponse.from_group(subject.groups[kind])
                for kind in sorted(subject.groups, key=lambda k: k.value)
            ],
            warning=warning,
        )


class QueueItem(BaseModel):
    subject_type: SubjectType
    subject_id: int
    kind: DocumentKind
    status: GroupStatus
    version: int
    artifacts: dict[str, str] = Field(default_factory=dict)
    details: dict[str, str] = Field(default_factory=dict)
    submitted_by: str | None = None
    updated_at: datetime | None = None


class QueueResponse(BaseModel):
    """Paginated operator review queue."""

    data: list[QueueItem]
    pagination: Pagination


class ArtifactUrlResponse(BaseModel):
    slot: str
    url: str
    expires_in: int


class AuditEntryResponse(BaseModel):
    id: int
    timestamp: datetime | None = None
    event_type: str
    user_id: str | None = None
    user_role: str | None = None
    event_data: dict | None = None


class AuditHistoryResponse(BaseModel):
    data: list[AuditEntryResponse]
    count: int


class AuditChainResponse(BaseModel):
    status: str
    events_checked: int
    first_break_id: int | None = None
