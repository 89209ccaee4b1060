# This project was developed with assistance from AI tools.
"""Operator decisions: per-group approve/reject/flag, property overrides,
partner activation, and the review queue.
"""

import logging
from dataclasses import replace

from db import DocumentGroup as GroupRow
from db.enums import DocumentKind, GroupEvent, GroupStatus, PropertyStatus, SubjectType
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .audit import write_audit_event
from .notifications import NotificationHub
from .subjects import (
    VerificationOutcome,
    load_partner,
    load_property,
    load_subject,
    owner_user_id,
    persist_result,
)
from .verification import (
    MissingReason,
    UnrecognizedStatus,
    approve_group,
    flag_for_manual_review,
    parse_enum,
    reject_group,
    set_overall_status,
)

logger = logging.getLogger(__name__)

_DECISIONS = {GroupStatus.APPROVED: GroupEvent.APPROVE, GroupStatus.REJECTED: GroupEvent.REJECT}


async def decide_group(
    session: AsyncSession,
    user: UserContext,
    *,
    subject_type: SubjectType,
    subject_id: int,
    kind: DocumentKind,
    status: GroupStatus | str,
    reason: str | None,
    hub: NotificationHub,
) -> VerificationOutcome:
    """Approve or reject one document group.

    Re-sending a decision that already holds is a no-op. A decision that
    loses a race against another operator raises ``StaleWrite``.
    """
    status = parse_enum(GroupStatus, status, "status")
    event = _DECISIONS.get(status)
    if event is None:
        raise UnrecognizedStatus("status", status.value)
    if event == GroupEvent.REJECT and not (reason and reason.strip()):
        raise MissingReason("reject")

    row, before = await load_subject(session, user, subject_type, subject_id)
    if event == GroupEvent.APPROVE:
        result = approve_group(before, kind)
    else:
        result = reject_group(before, kind, reason)

    if not result.changed:
        logger.info(
            "Repeated %s on %s %s (%s) ignored",
            event.value, subject_type.value, subject_id, kind.value,
        )
        return VerificationOutcome(row=row, subject=before, changed=False)

    owner = owner_user_id(row)
    subject, events = await persist_result(session, row, before, result, event=event, user=user)
    hub.publish(events, owner_user_id=owner)
    logger.info(
        "Operator %s %s %s %s (%s)",
        user.user_id, event.value, subject_type.value, subject_id, kind.value,
    )
    return VerificationOutcome(row=row, subject=subject)


async def flag_group(
    session: AsyncSession,
    user: UserContext,
    *,
    subject_type: SubjectType,
    subject_id: int,
    kind: DocumentKind,
    hub: NotificationHub,
) -> VerificationOutcome:
    row, before = await load_subject(session, user, subject_type, subject_id)
    result = flag_for_manual_review(before, kind)
    if not result.changed:
        return VerificationOutcome(row=row, subject=before, changed=False)

    owner = owner_user_id(row)
    subject, events = await persist_result(
        session, row, before, result, event=GroupEvent.FLAG_FOR_MANUAL_REVIEW, user=user,
    )
    hub.publish(events, owner_user_id=owner)
    logger.info(
        "Operator %s flagged %s %s (%s) for manual review",
        user.user_id, subject_type.value, subject_id, kind.value,
    )
    return VerificationOutcome(row=row, subject=subject)


async def set_property_status(
    session: AsyncSession,
    user: UserContext,
    *,
    property_id: int,
    status: PropertyStatus | str,
    reason: str | None,
    hub: NotificationHub,
) -> VerificationOutcome:
    """Holistic override of a property's overall status."""
    row, before = await load_property(session, user, property_id)
    result = set_overall_status(before, status, reason)
    if not result.changed:
        return VerificationOutcome(row=row, subject=before, changed=False)

    owner = owner_user_id(row)
    subject, events = await persist_result(
        session, row, before, result, event=GroupEvent.APPROVE, user=user,
    )
    hub.publish(events, owner_user_id=owner)
    logger.info(
        "Operator %s set property %s overall status to %s",
        user.user_id, property_id, subject.override_status.value,
    )
    return VerificationOutcome(row=row, subject=subject)


async def set_partner_active(
    session: AsyncSession,
    user: UserContext,
    *,
    partner_id: int,
    is_active: bool,
    reason: str | None,
) -> VerificationOutcome:
    """Deactivate (reason required) or reactivate a partner account.

    A deactivated partner can neither submit documents nor register
    properties; their properties stop accepting submissions too.
    """
    if not is_active and not (reason and reason.strip()):
        raise MissingReason("deactivate")

    row, subject = await load_partner(session, user, partner_id)
    if row.is_active == is_active:
        return VerificationOutcome(row=row, subject=subject, changed=False)

    row.is_active = is_active
    row.deactivation_reason = None if is_active else reason
    await write_audit_event(
        session,
        event_type="partner_reactivated" if is_active else "partner_deactivated",
        user_id=user.user_id,
        user_role=user.role.value,
        subject_type=SubjectType.PARTNER,
        subject_id=row.id,
        event_data={"reason": reason},
    )
    await session.commit()
    logger.info(
        "Operator %s %s partner %s",
        user.user_id, "reactivated" if is_active else "deactivated", partner_id,
    )
    return VerificationOutcome(row=row, subject=replace(subject, is_active=is_active))


async def list_verification_queue(
    session: AsyncSession,
    *,
    kind: DocumentKind | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[dict], int]:
    """Groups awaiting an operator decision, oldest first, plus the total waiting."""
    filters = [GroupRow.status.in_(sorted(GroupStatus.under_review()))]
    if kind is not None:
        filters.append(GroupRow.kind == kind)

    total = (await session.execute(select(func.count(GroupRow.id)).where(*filters))).scalar() or 0
    stmt = (
        select(GroupRow)
        .where(*filters)
        .order_by(GroupRow.updated_at.asc(), GroupRow.id.asc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)

    items = []
    for group in result.scalars().all():
        is_partner = group.partner_id is not None
        items.append({
            "subject_type": SubjectType.PARTNER if is_partner else SubjectType.PROPERTY,
            "subject_id": group.partner_id if is_partner else group.property_id,
            "kind": group.kind,
            "status": group.status,
            "version": group.version,
            "artifacts": group.artifacts or {},
            "details": group.details or {},
            "submitted_by": group.submitted_by,
            "updated_at": group.updated_at,
        })
    return items, total

