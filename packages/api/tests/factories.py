# This project was developed with assistance from AI tools.
"""Shared test factory functions for ORM rows and domain snapshots.

ORM rows are real (unsaved) model instances rather than MagicMocks so the
``isinstance`` dispatch in the service layer sees the right type.
"""

from db import DocumentGroup as GroupRow
from db import Partner, Property
from db.enums import DocumentKind, GroupStatus, PropertyStatus, PropertyType, SubjectType, UserRole

from stayverify.schemas.auth import DataScope, UserContext
from stayverify.services.verification import ARTIFACT_SLOTS, DocumentGroup, VerificationSubject

PARTNER_USER_ID = "asha-rao-001"
OTHER_PARTNER_USER_ID = "vikram-shah-002"


def full_artifacts(kind: DocumentKind, prefix: str = "s3") -> dict[str, str]:
    """Every slot of ``kind`` filled with a fake object key."""
    return {slot: f"{prefix}/{kind.value}/{slot}.pdf" for slot in ARTIFACT_SLOTS[kind]}


def make_group(
    kind: DocumentKind,
    status: GroupStatus = GroupStatus.NOT_SUBMITTED,
    reason: str | None = None,
    artifacts: dict[str, str] | None = None,
    version: int = 0,
) -> DocumentGroup:
    if artifacts is None:
        artifacts = {} if status == GroupStatus.NOT_SUBMITTED else full_artifacts(kind)
    return DocumentGroup(
        kind=kind,
        status=status,
        rejection_reason=reason,
        artifacts=artifacts,
        version=version,
    )


def make_property_subject(
    ownership: GroupStatus = GroupStatus.NOT_SUBMITTED,
    tax: GroupStatus = GroupStatus.NOT_SUBMITTED,
    banking: GroupStatus = GroupStatus.NOT_SUBMITTED,
    *,
    subject_id: int = 10,
    reasons: dict[DocumentKind, str] | None = None,
    override: PropertyStatus | None = None,
    override_reason: str | None = None,
    onboarding_completed: bool | None = None,
    is_listed: bool = False,
    is_active: bool = True,
    sequence: int = 0,
) -> VerificationSubject:
    reasons = reasons or {}
    statuses = {DocumentKind.OWNERSHIP: ownership, DocumentKind.TAX: tax, DocumentKind.BANKING: banking}
    groups = {kind: make_group(kind, status, reasons.get(kind)) for kind, status in statuses.items()}
    if onboarding_completed is None:
        onboarding_completed = all(s != GroupStatus.NOT_SUBMITTED for s in statuses.values())
    return VerificationSubject(
        subject_type=SubjectType.PROPERTY,
        subject_id=subject_id,
        groups=groups,
        override_status=override,
        override_reason=override_reason,
        onboarding_completed=onboarding_completed,
        is_listed=is_listed,
        is_active=is_active,
        sequence=sequence,
    )


def make_partner_subject(
    status: GroupStatus = GroupStatus.NOT_SUBMITTED,
    reason: str | None = None,
    *,
    subject_id: int = 1,
    is_active: bool = True,
    sequence: int = 0,
) -> VerificationSubject:
    identity = make_group(DocumentKind.IDENTITY, status, reason)
    return VerificationSubject(
        subject_type=SubjectType.PARTNER,
        subject_id=subject_id,
        groups={DocumentKind.IDENTITY: identity},
        is_active=is_active,
        sequence=sequence,
    )


# ---------------------------------------------------------------------------
# ORM rows
# ---------------------------------------------------------------------------


def make_group_row(
    kind: DocumentKind,
    status: GroupStatus = GroupStatus.NOT_SUBMITTED,
    reason: str | None = None,
    artifacts: dict[str, str] | None = None,
    version: int = 0,
) -> GroupRow:
    if artifacts is None:
        artifacts = {} if status == GroupStatus.NOT_SUBMITTED else full_artifacts(kind)
    return GroupRow(
        kind=kind,
        status=status,
        rejection_reason=reason,
        artifacts=artifacts,
        details={},
        version=version,
    )


def make_partner_row(
    identity: GroupStatus = GroupStatus.NOT_SUBMITTED,
    reason: str | None = None,
    *,
    id: int = 1,
    user_id: str = PARTNER_USER_ID,
    is_active: bool = True,
    event_sequence: int = 0,
) -> Partner:
    partner = Partner(
        id=id,
        keycloak_user_id=user_id,
        full_name="Asha Rao",
        email="asha@example.com",
        is_active=is_active,
        deactivation_reason=None if is_active else "Fraud check",
        event_sequence=event_sequence,
    )
    partner.groups = [make_group_row(DocumentKind.IDENTITY, identity, reason)]
    return partner


def make_property_row(
    ownership: GroupStatus = GroupStatus.NOT_SUBMITTED,
    tax: GroupStatus = GroupStatus.NOT_SUBMITTED,
    banking: GroupStatus = GroupStatus.NOT_SUBMITTED,
    *,
    id: int = 10,
    partner: Partner | None = None,
    reasons: dict[DocumentKind, str] | None = None,
    override: PropertyStatus | None = None,
    override_reason: str | None = None,
    onboarding_completed: bool | None = None,
    is_listed: bool = False,
    event_sequence: int = 0,
) -> Property:
    reasons = reasons or {}
    partner = partner or make_partner_row(GroupStatus.APPROVED)
    statuses = {DocumentKind.OWNERSHIP: ownership, DocumentKind.TAX: tax, DocumentKind.BANKING: banking}
    if onboarding_completed is None:
        onboarding_completed = all(s != GroupStatus.NOT_SUBMITTED for s in statuses.values())
    prop = Property(
        id=id,
        partner_id=partner.id,
        property_name="Lakeview Homestay",
        property_type=PropertyType.HOMESTAY,
        description="Two rooms by the lake",
        address={"city": "Udaipur"},
        onboarding_completed=onboarding_completed,
        is_listed=is_listed,
        override_status=override,
        override_reason=override_reason,
        event_sequence=event_sequence,
    )
    prop.partner = partner
    prop.groups = [
        make_group_row(kind, status, reasons.get(kind)) for kind, status in statuses.items()
    ]
    return prop


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def make_partner_user(user_id: str = PARTNER_USER_ID) -> UserContext:
    return UserContext(
        user_id=user_id,
        role=UserRole.PARTNER,
        email=f"{user_id}@example.com",
        name="Partner",
        data_scope=DataScope(own_data_only=True, user_id=user_id),
    )


def make_operator_user(role: UserRole = UserRole.OPERATOR) -> UserContext:
    return UserContext(
        user_id="ops-meera",
        role=role,
        email="meera@stayverify.local",
        name="Meera Iyer",
        data_scope=DataScope(all_subjects=True),
    )
