# This project was developed with assistance from AI tools.
"""Partner-side property edits: the listed toggle and core field changes."""

import logging
from dataclasses import replace

from db.enums import GroupEvent, SubjectType
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .audit import write_audit_event
from .notifications import NotificationHub
from .subjects import VerificationOutcome, load_property, owner_user_id, persist_result
from .verification import edit_property_fields
from .verification.gate import ensure_can_toggle_listing

logger = logging.getLogger(__name__)

# Columns on ``properties`` a partner may edit directly.
EDITABLE_COLUMNS = ("property_name", "property_type", "description", "address")


async def set_listing(
    session: AsyncSession,
    user: UserContext,
    *,
    property_id: int,
    is_listed: bool,
) -> VerificationOutcome:
    """List or delist a property.

    Only onboarding gates this; delisting a verified property is always a
    host choice.
    """
    row, subject = await load_property(session, user, property_id)
    ensure_can_toggle_listing(subject)
    if row.is_listed == is_listed:
        return VerificationOutcome(row=row, subject=subject, changed=False)

    row.is_listed = is_listed
    await write_audit_event(
        session,
        event_type="property_listed" if is_listed else "property_delisted",
        user_id=user.user_id,
        user_role=user.role.value,
        subject_type=SubjectType.PROPERTY,
        subject_id=row.id,
    )
    await session.commit()
    logger.info("Property %s is_listed=%s", property_id, is_listed)
    return VerificationOutcome(row=row, subject=replace(subject, is_listed=is_listed))


async def edit_property(
    session: AsyncSession,
    user: UserContext,
    *,
    property_id: int,
    changes: dict,
    confirm_reverification: bool = False,
    hub: NotificationHub,
) -> VerificationOutcome:
    """Edit core property fields, reopening review where the edit requires it.

    ``changes`` only carries the fields the caller actually sent.
    """
    row, before = await load_property(session, user, property_id)
    changed_fields = [f for f, v in changes.items() if getattr(row, f) != v]
    if not changed_fields:
        return VerificationOutcome(row=row, subject=before, changed=False)

    # Raises ReverificationRequired before any column is touched.
    result = edit_property_fields(before, changed_fields, confirm_reverification)
    for field in changed_fields:
        setattr(row, field, changes[field])

    owner = owner_user_id(row)
    if result.changed:
        subject, events = await persist_result(
            session, row, before, result, event=GroupEvent.REOPEN, user=user,
        )
        hub.publish(events, owner_user_id=owner)
    else:
        await write_audit_event(
            session,
            event_type="property_edited",
            user_id=user.user_id,
            user_role=user.role.value,
            subject_type=SubjectType.PROPERTY,
            subject_id=row.id,
            event_data={"fields": changed_fields},
        )
        await session.commit()
        subject = before

    logger.info("Property %s edited: %s", property_id, ", ".join(changed_fields))
    return VerificationOutcome(row=row, subject=subject, changed=True, warning=result.warning)
