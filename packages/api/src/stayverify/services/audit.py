# This project was developed with assistance from AI tools.
"""Audit event service.

Every submission and operator decision leaves an append-only audit entry.
Entries form a SHA-256 hash chain for tamper evidence; a PostgreSQL
advisory lock serializes the chain computation across concurrent writers.
"""

import hashlib
import json
import logging

from db import AuditEvent
from db.enums import SubjectType
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Fixed advisory lock key for audit trail serialization.
AUDIT_LOCK_KEY = 910_001


def _compute_hash(event_id: int, timestamp: str, event_data: dict | None) -> str:
    """Compute SHA-256 hash of an audit event's key fields."""
    payload = f"{event_id}|{timestamp}|{json.dumps(event_data, sort_keys=True, default=str)}"
    return hashlib.sha256(payload.encode()).hexdigest()


async def write_audit_event(
    session: AsyncSession,
    *,
    event_type: str,
    user_id: str | None = None,
    user_role: str | None = None,
    subject_type: SubjectType | None = None,
    subject_id: int | None = None,
    session_id: str | None = None,
    event_data: dict | None = None,
) -> AuditEvent:
    """Write a single audit event linked to the previous one.

    Args:
        session: Database session; the caller owns the transaction.
        event_type: e.g. 'group_submitted', 'group_approved', 'overall_status_set'.
        user_id: Actor (partner or operator).
        user_role: Actor role at the time of the event.
        subject_type: Partner or property the event concerns.
        subject_id: Primary key of that subject.
        session_id: Notification session, when the event came over the channel.
        event_data: JSON-serializable payload (kind, status, reason, sequence).
    """
    # Released automatically when the transaction commits or rolls back.
    await session.execute(text(f"SELECT pg_advisory_xact_lock({AUDIT_LOCK_KEY})"))

    latest_stmt = select(AuditEvent).order_by(AuditEvent.id.desc()).limit(1)
    result = await session.execute(latest_stmt)
    prev_event = result.scalar_one_or_none()

    if prev_event is not None:
        prev_hash = _compute_hash(prev_event.id, str(prev_event.timestamp), prev_event.event_data)
    else:
        prev_hash = "genesis"

    audit = AuditEvent(
        event_type=event_type,
        user_id=user_id,
        user_role=user_role,
        subject_type=subject_type.value if subject_type is not None else None,
        subject_id=subject_id,
        session_id=session_id,
        event_data=event_data,
        prev_hash=prev_hash,
    )
    session.add(audit)
    await session.flush()
    return audit


async def verify_audit_chain(session: AsyncSession) -> dict:
    """Walk all events in ID order and recompute each expected prev_hash.

    Returns:
        {"status": "OK", "events_checked": N} on success, or
        {"status": "TAMPERED", "first_break_id": id, "events_checked": N}.
    """
    result = await session.execute(select(AuditEvent).order_by(AuditEvent.id.asc()))
    events = list(result.scalars().all())

    for i, event in enumerate(events):
        if i == 0:
            expected = "genesis"
        else:
            prev = events[i - 1]
            expected = _compute_hash(prev.id, str(prev.timestamp), prev.event_data)

        if event.prev_hash != expected:
            logger.warning("Audit chain broken at event %s", event.id)
            return {
                "status": "TAMPERED",
                "first_break_id": event.id,
                "events_checked": i + 1,
            }

    return {"status": "OK", "events_checked": len(events)}


async def get_subject_history(
    session: AsyncSession,
    subject_type: SubjectType,
    subject_id: int,
) -> list[AuditEvent]:
    """Chronological decision history for one partner or property."""
    stmt = (
        select(AuditEvent)
        .where(
            AuditEvent.subject_type == subject_type.value,
            AuditEvent.subject_id == subject_id,
        )
        .order_by(AuditEvent.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
