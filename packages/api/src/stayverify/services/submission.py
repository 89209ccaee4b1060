# This project was developed with assistance from AI tools.
"""Submitter uploads: identity documents and property document groups.

The upload is checked against the current state before anything is
stored, then stored, then applied. A failed or rejected upload therefore
leaves the group exactly as it was.
"""

import logging
from dataclasses import dataclass

from db.enums import DocumentKind, GroupEvent, SubjectType
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .notifications import NotificationHub
from .storage import StorageService, validate_upload
from .subjects import (
    VerificationOutcome,
    load_partner,
    load_property,
    owner_user_id,
    persist_result,
)
from .verification import UploadRejected, resubmit

logger = logging.getLogger(__name__)

# Placeholder reference used while checking a submission before storage.
_PENDING_REF = "pending-upload"


@dataclass
class UploadedFile:
    slot: str
    filename: str
    content_type: str | None
    data: bytes


async def submit_documents(
    session: AsyncSession,
    user: UserContext,
    *,
    subject_type: SubjectType,
    subject_id: int | None,
    kind: DocumentKind,
    files: list[UploadedFile],
    details: dict[str, str] | None = None,
    confirm_reverification: bool = False,
    storage: StorageService,
    hub: NotificationHub,
) -> VerificationOutcome:
    """Upload into one group and move it to pending.

    ``subject_id=None`` with ``SubjectType.PARTNER`` targets the caller's
    own partner record.
    """
    if subject_type == SubjectType.PARTNER:
        row, before = await load_partner(session, user, subject_id)
    else:
        row, before = await load_property(session, user, subject_id)

    slots = [f.slot for f in files]
    if len(slots) != len(set(slots)):
        raise UploadRejected("Each document slot can only be uploaded once per submission.")
    for f in files:
        validate_upload(f.content_type, len(f.data))

    # Raises on any gate/transition problem before storage is touched.
    resubmit(
        before,
        kind,
        {slot: _PENDING_REF for slot in slots},
        details,
        confirm_reverification=confirm_reverification,
    )

    artifacts = {}
    for f in files:
        key = StorageService.build_object_key(subject_type, row.id, kind, f.slot, f.filename)
        artifacts[f.slot] = await storage.upload_file(f.data, key, f.content_type)

    result = resubmit(
        before, kind, artifacts, details, confirm_reverification=confirm_reverification,
    )
    owner = owner_user_id(row)
    subject, events = await persist_result(
        session, row, before, result, event=GroupEvent.SUBMIT, user=user,
    )
    hub.publish(events, owner_user_id=owner)
    logger.info(
        "%s %s submitted %s (%d file(s)) -> %s",
        subject_type.value, row.id, kind.value, len(files), subject.overall_status.value,
    )
    return VerificationOutcome(row=row, subject=subject, changed=True, warning=result.warning)
