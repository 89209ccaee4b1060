# This project was developed with assistance from AI tools.
"""Submitter uploads and core-field edits.

A rejected (or never submitted) group goes back to pending on new upload;
approved siblings are left alone. An approved group of a verified property
can only be reopened with explicit confirmation, because it hides the
verified badge until an operator approves again.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from db.enums import DocumentKind, GroupEvent, GroupStatus, PropertyStatus

from .engine import EngineResult, EventRecorder, GroupSubmitted, ReverificationRequested
from .errors import InvalidTransition, ReverificationRequired, UploadRejected
from .gate import (
    can_edit,
    ensure_can_submit,
    requires_reverification,
    reverification_warning,
    reviewed_group_for,
)
from .state_machine import apply_event
from .subject import VerificationSubject

logger = logging.getLogger(__name__)

# Overrides a fresh submission resets. Suspension is lifted by an operator only.
_RESET_BY_SUBMISSION = frozenset({PropertyStatus.VERIFIED, PropertyStatus.REJECTED})


def _finish(
    before: VerificationSubject,
    after: VerificationSubject,
    recorder: EventRecorder,
) -> EngineResult:
    if after.is_property and not after.onboarding_completed and after.all_submitted():
        after = replace(after, onboarding_completed=True)
    return recorder.result(after, warning=reverification_warning(before, after))


def resubmit(
    subject: VerificationSubject,
    kind: DocumentKind,
    artifacts: dict[str, str],
    details: dict[str, str] | None = None,
    confirm_reverification: bool = False,
) -> EngineResult:
    """Upload into one group and send it (back) to review.

    Raises:
        SubmissionBlocked: deactivated partner or suspended property.
        UploadRejected: nothing uploaded, unknown slot, or an incomplete
            first submission.
        ReverificationRequired: reopening a verified property unconfirmed.
        InvalidTransition: the group is under review, or approved outside
            of the reverification policy.
    """
    ensure_can_submit(subject)
    if not artifacts and not details:
        raise UploadRejected("Upload at least one document before submitting.")

    group = subject.group(kind)
    recorder = EventRecorder(subject)

    if can_edit(group):
        candidate = group.with_artifacts(artifacts, details)
        if group.status == GroupStatus.NOT_SUBMITTED and candidate.missing_slots():
            raise UploadRejected(
                f"All {kind.value} documents are required for the first submission. "
                f"Missing: {', '.join(candidate.missing_slots())}"
            )
        submitted = apply_event(candidate, GroupEvent.SUBMIT)
        changes = {}
        if subject.override_status in _RESET_BY_SUBMISSION:
            changes = {"override_status": None, "override_reason": None}
        after = subject.with_group(submitted, **changes)
        recorder.emit(after, GroupSubmitted, kind=kind, status=submitted.status.value)
        return _finish(subject, after, recorder)

    if group.status == GroupStatus.APPROVED and requires_reverification(subject, kind.value):
        if not confirm_reverification:
            raise ReverificationRequired([kind.value])
        reopened = apply_event(group.with_artifacts(artifacts, details), GroupEvent.REOPEN)
        after = _reopen_override(subject.with_group(reopened))
        recorder.emit(after, ReverificationRequested, kind=kind, status=reopened.status.value)
        logger.info(
            "Reverification requested: %s %s (%s)",
            subject.subject_type.value, subject.subject_id, kind.value,
        )
        return _finish(subject, after, recorder)

    raise InvalidTransition(GroupEvent.SUBMIT, group.status)


def edit_property_fields(
    subject: VerificationSubject,
    fields: Iterable[str],
    confirm_reverification: bool = False,
) -> EngineResult:
    """Apply the reverification policy for edits to core property fields.

    Only the groups the edited fields map onto are reopened, and only if
    they were approved. Edits that touch no reviewed field never change
    verification state.
    """
    ensure_can_submit(subject)
    fields = list(fields)
    mapped = {f: reviewed_group_for(f) for f in fields}
    reviewed = sorted(f for f, k in mapped.items() if k is not None)
    kinds = sorted({k for k in mapped.values() if k is not None and k in subject.groups})
    to_reopen = [k for k in kinds if subject.groups[k].status == GroupStatus.APPROVED]
    if not to_reopen:
        return EngineResult.unchanged(subject)

    if any(requires_reverification(subject, f) for f in reviewed) and not confirm_reverification:
        raise ReverificationRequired(reviewed)

    recorder = EventRecorder(subject)
    after = subject
    for kind in to_reopen:
        reopened = apply_event(after.groups[kind], GroupEvent.REOPEN)
        after = after.with_group(reopened)
        recorder.emit(after, ReverificationRequested, kind=kind, status=reopened.status.value)
    after = _reopen_override(after)
    logger.info(
        "Property %s fields edited (%s); reopened %s",
        subject.subject_id, ", ".join(fields), ", ".join(k.value for k in to_reopen),
    )
    return _finish(subject, after, recorder)


def _reopen_override(subject: VerificationSubject) -> VerificationSubject:
    if subject.override_status == PropertyStatus.VERIFIED:
        return replace(subject, override_status=None, override_reason=None)
    return subject
