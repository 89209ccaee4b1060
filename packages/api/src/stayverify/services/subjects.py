# This project was developed with assistance from AI tools.
"""Load and persist verification subjects.

Bridges the ORM rows (``Partner``/``Property`` plus their ``DocumentGroup``
rows) and the immutable ``VerificationSubject`` the pure core operates on.

Persistence is optimistic: each changed group is written with a
compare-and-swap on its ``version`` column. Losing that race means another
request already changed the group, which surfaces as ``StaleWrite``. The
subject row is locked before any write, so sequence numbers, subject-level
fields and the cached overall status are computed from committed state.
"""

import logging
from dataclasses import dataclass, replace

from db import DocumentGroup as GroupRow
from db import Partner, Property
from db.enums import (
    DocumentKind,
    GroupEvent,
    GroupStatus,
    PropertyStatus,
    PropertyType,
    SubjectType,
)
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from .audit import write_audit_event
from .verification import (
    REQUIRED_KINDS,
    DocumentGroup,
    DomainEvent,
    EngineResult,
    StaleWrite,
    SubjectNotFound,
    SubmissionBlocked,
    VerificationSubject,
    can_add_property,
    parse_enum,
)
from .verification.gate import ensure_can_submit

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row -> domain mapping
# ---------------------------------------------------------------------------


def group_to_domain(row: GroupRow) -> DocumentGroup:
    status = parse_enum(GroupStatus, row.status, "group_status")
    return DocumentGroup(
        kind=parse_enum(DocumentKind, row.kind, "document_kind"),
        status=status,
        rejection_reason=row.rejection_reason if status == GroupStatus.REJECTED else None,
        artifacts=dict(row.artifacts or {}),
        details=dict(row.details or {}),
        version=row.version or 0,
    )


def partner_subject(partner: Partner, groups: list[GroupRow] | None = None) -> VerificationSubject:
    rows = partner.groups if groups is None else groups
    return VerificationSubject(
        subject_type=SubjectType.PARTNER,
        subject_id=partner.id,
        groups={g.kind: g for g in map(group_to_domain, rows)},
        is_active=partner.is_active,
        sequence=partner.event_sequence or 0,
    )


def property_subject(prop: Property, groups: list[GroupRow] | None = None) -> VerificationSubject:
    rows = prop.groups if groups is None else groups
    override = prop.override_status
    return VerificationSubject(
        subject_type=SubjectType.PROPERTY,
        subject_id=prop.id,
        groups={g.kind: g for g in map(group_to_domain, rows)},
        override_status=parse_enum(PropertyStatus, override, "override_status") if override else None,
        override_reason=prop.override_reason,
        onboarding_completed=prop.onboarding_completed,
        is_listed=prop.is_listed,
        is_active=prop.partner.is_active if prop.partner is not None else True,
        sequence=prop.event_sequence or 0,
    )


def to_subject(row: Partner | Property, groups: list[GroupRow] | None = None) -> VerificationSubject:
    if isinstance(row, Partner):
        return partner_subject(row, groups)
    return property_subject(row, groups)


# ---------------------------------------------------------------------------
# Loading (scope-checked)
# ---------------------------------------------------------------------------


async def get_partner_for_user(session: AsyncSession, user: UserContext) -> Partner | None:
    stmt = (
        select(Partner)
        .options(selectinload(Partner.groups))
        .where(Partner.keycloak_user_id == user.user_id)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def load_partner(
    session: AsyncSession,
    user: UserContext,
    partner_id: int | None = None,
) -> tuple[Partner, VerificationSubject]:
    """Load a partner; ``partner_id=None`` means the caller's own record.

    Partners can never load someone else's record; the miss looks exactly
    like a missing record.
    """
    if partner_id is None:
        partner = await get_partner_for_user(session, user)
    else:
        stmt = select(Partner).options(selectinload(Partner.groups)).where(Partner.id == partner_id)
        result = await session.execute(stmt)
        partner = result.scalar_one_or_none()
        if partner is not None and user.data_scope.own_data_only and partner.keycloak_user_id != user.user_id:
            partner = None

    if partner is None:
        raise SubjectNotFound("Partner not found. Register as a partner first.")
    return partner, partner_subject(partner)


async def load_property(
    session: AsyncSession,
    user: UserContext,
    property_id: int,
) -> tuple[Property, VerificationSubject]:
    stmt = (
        select(Property)
        .options(selectinload(Property.groups), selectinload(Property.partner))
        .where(Property.id == property_id)
    )
    result = await session.execute(stmt)
    prop = result.scalar_one_or_none()
    if prop is not None and user.data_scope.own_data_only:
        if prop.partner is None or prop.partner.keycloak_user_id != user.user_id:
            prop = None

    if prop is None:
        raise SubjectNotFound(f"Property {property_id} not found")
    return prop, property_subject(prop)


async def load_subject(
    session: AsyncSession,
    user: UserContext,
    subject_type: SubjectType,
    subject_id: int,
) -> tuple[Partner | Property, VerificationSubject]:
    if subject_type == SubjectType.PARTNER:
        return await load_partner(session, user, subject_id)
    return await load_property(session, user, subject_id)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_partner(
    session: AsyncSession,
    user: UserContext,
    *,
    full_name: str,
    email: str,
) -> tuple[Partner, VerificationSubject]:
    """Create the caller's partner record with an empty identity group.

    Registering twice returns the existing record.
    """
    existing = await get_partner_for_user(session, user)
    if existing is not None:
        return existing, partner_subject(existing)

    partner = Partner(
        keycloak_user_id=user.user_id,
        full_name=full_name,
        email=email,
        is_active=True,
        event_sequence=0,
    )
    partner.groups = [
        GroupRow(kind=kind, status=GroupStatus.NOT_SUBMITTED, artifacts={}, details={}, version=0)
        for kind in REQUIRED_KINDS[SubjectType.PARTNER]
    ]
    subject = VerificationSubject.new(SubjectType.PARTNER, 0)
    partner.overall_status = subject.overall_status
    session.add(partner)
    await session.flush()
    await write_audit_event(
        session,
        event_type="partner_registered",
        user_id=user.user_id,
        user_role=user.role.value,
        subject_type=SubjectType.PARTNER,
        subject_id=partner.id,
    )
    await session.commit()
    logger.info("Partner %s registered for user %s", partner.id, user.user_id)
    return partner, replace(subject, subject_id=partner.id)


async def register_property(
    session: AsyncSession,
    user: UserContext,
    *,
    property_name: str,
    property_type: PropertyType,
    description: str | None = None,
    address: dict | None = None,
) -> tuple[Property, VerificationSubject]:
    """Create a property with its three empty document groups.

    Only an active, verified partner may add properties.
    """
    partner, partner_state = await load_partner(session, user)
    if not can_add_property(partner_state):
        raise SubmissionBlocked(
            "Your identity must be verified (and your account active) before you can add a property."
        )

    prop = Property(
        partner_id=partner.id,
        property_name=property_name,
        property_type=property_type,
        description=description,
        address=address,
        onboarding_completed=False,
        is_listed=False,
        event_sequence=0,
    )
    prop.groups = [
        GroupRow(kind=kind, status=GroupStatus.NOT_SUBMITTED, artifacts={}, details={}, version=0)
        for kind in REQUIRED_KINDS[SubjectType.PROPERTY]
    ]
    subject = VerificationSubject.new(SubjectType.PROPERTY, 0)
    prop.overall_status = subject.overall_status
    session.add(prop)
    await session.flush()
    await write_audit_event(
        session,
        event_type="property_registered",
        user_id=user.user_id,
        user_role=user.role.value,
        subject_type=SubjectType.PROPERTY,
        subject_id=prop.id,
        event_data={"property_name": property_name},
    )
    await session.commit()
    logger.info("Property %s registered by partner %s", prop.id, partner.id)
    return prop, replace(subject, subject_id=prop.id)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def _group_fk(row: Partner | Property):
    if isinstance(row, Partner):
        return GroupRow.partner_id == row.id
    return GroupRow.property_id == row.id


async def _cas_group(
    session: AsyncSession,
    row: Partner | Property,
    group: DocumentGroup,
    event: GroupEvent,
    actor_field: str,
    actor_id: str,
) -> None:
    """Write one group iff nobody changed it since it was read."""
    stmt = (
        update(GroupRow)
        .where(_group_fk(row), GroupRow.kind == group.kind, GroupRow.version == group.version)
        .values(
            status=group.status,
            rejection_reason=group.rejection_reason,
            artifacts=group.artifacts,
            details=group.details,
            version=group.version + 1,
            **{actor_field: actor_id},
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 1:
        return

    current = await session.execute(
        select(GroupRow.status).where(_group_fk(row), GroupRow.kind == group.kind)
    )
    now = parse_enum(GroupStatus, current.scalar_one(), "group_status")
    logger.warning(
        "Stale write on %s %s (%s): now %s",
        type(row).__name__, row.id, group.kind.value, now.value,
    )
    raise StaleWrite(event, now)


async def _lock_subject(session: AsyncSession, row: Partner | Property) -> None:
    """Lock the subject row and refresh its columns from committed state."""
    await session.flush()
    model = type(row)
    await session.execute(
        select(model).where(model.id == row.id).with_for_update().execution_options(populate_existing=True)
    )


async def _reload_groups(session: AsyncSession, row: Partner | Property) -> list[GroupRow]:
    result = await session.execute(
        select(GroupRow).where(_group_fk(row)).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def _committed_fields(row: Partner | Property) -> dict:
    """Subject-level fields as committed, read from a locked row."""
    if isinstance(row, Partner):
        return {"is_active": row.is_active}
    override = row.override_status
    return {
        "override_status": parse_enum(PropertyStatus, override, "override_status") if override else None,
        "override_reason": row.override_reason,
        "onboarding_completed": row.onboarding_completed,
        "is_listed": row.is_listed,
    }


async def persist_result(
    session: AsyncSession,
    row: Partner | Property,
    before: VerificationSubject,
    result: EngineResult,
    *,
    event: GroupEvent,
    user: UserContext,
) -> tuple[VerificationSubject, list[DomainEvent]]:
    """Write an engine result, audit it, and commit.

    The subject row is locked first. Subject-level fields the result did not
    change keep whatever another request committed in the meantime, and a
    submission is re-checked against that committed state (a property may
    have been suspended while its files were uploading).

    Returns the persisted subject (versions bumped, overall status recomputed
    from every committed group) and the events renumbered onto the subject's
    real sequence. Publishing is left to the caller so nothing is pushed for
    a transaction that did not commit.
    """
    actor_field = "reviewed_by" if user.is_operator else "submitted_by"
    after = result.subject

    await _lock_subject(session, row)
    committed = _committed_fields(row)
    if not user.is_operator:
        ensure_can_submit(replace(after, **committed))
    changed = {
        name: getattr(after, name)
        for name in committed
        if getattr(after, name) != getattr(before, name)
    }

    for kind, group in after.groups.items():
        if group != before.groups.get(kind):
            await _cas_group(session, row, group, event, actor_field, user.user_id)

    fresh_groups = await _reload_groups(session, row)
    base = row.event_sequence or 0
    events = [replace(e, sequence=base + i) for i, e in enumerate(result.events, start=1)]
    fresh = replace(
        after,
        groups={g.kind: g for g in map(group_to_domain, fresh_groups)},
        sequence=base + len(events),
        **{**committed, **changed},
    )
    if fresh.is_property:
        fresh = replace(
            fresh,
            onboarding_completed=fresh.onboarding_completed or fresh.all_submitted(),
        )
        row.override_status = fresh.override_status
        row.override_reason = fresh.override_reason
        row.onboarding_completed = fresh.onboarding_completed
    row.overall_status = fresh.overall_status
    row.event_sequence = fresh.sequence

    for ev in events:
        await write_audit_event(
            session,
            event_type=_audit_type(ev),
            user_id=user.user_id,
            user_role=user.role.value,
            subject_type=ev.subject_type,
            subject_id=ev.subject_id,
            event_data={
                "kind": ev.kind.value if ev.kind else None,
                "status": ev.status,
                "reason": ev.reason,
                "sequence": ev.sequence,
            },
        )
    await session.commit()
    return fresh, events


def _audit_type(event: DomainEvent) -> str:
    name = type(event).__name__
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


@dataclass
class VerificationOutcome:
    """What a mutating service call hands back to its route."""

    row: Partner | Property
    subject: VerificationSubject
    changed: bool = True
    warning: str | None = None


def owner_user_id(row: Partner | Property) -> str | None:
    """Keycloak id of the submitting party that should hear about ``row``."""
    if isinstance(row, Partner):
        return row.keycloak_user_id
    return row.partner.keycloak_user_id if row.partner is not None else None
