# This project was developed with assistance from AI tools.
"""Operator decisions over a VerificationSubject snapshot.

Every operation is pure: it takes a subject, returns an ``EngineResult``
with the new subject and the domain events the change produced. Each
event consumes the subject's next sequence number. Re-applying a decision
that already holds is a no-op (``changed=False``, no events) so transport
retries never emit duplicate notifications.
"""

from dataclasses import dataclass, field, replace

from db.enums import DocumentKind, GroupEvent, GroupStatus, PropertyStatus, SubjectType

from .errors import MissingReason, UnrecognizedStatus
from .groups import parse_enum
from .state_machine import apply_event
from .subject import VerificationSubject


@dataclass(frozen=True)
class DomainEvent:
    subject_type: SubjectType
    subject_id: int
    sequence: int
    kind: DocumentKind | None = None
    status: str | None = None
    reason: str | None = None


class GroupSubmitted(DomainEvent):
    pass


class GroupApproved(DomainEvent):
    pass


class GroupRejected(DomainEvent):
    pass


class GroupFlagged(DomainEvent):
    pass


class OverallStatusSet(DomainEvent):
    pass


class ReverificationRequested(DomainEvent):
    pass


@dataclass(frozen=True)
class EngineResult:
    subject: VerificationSubject
    events: list[DomainEvent] = field(default_factory=list)
    changed: bool = True
    warning: str | None = None

    @classmethod
    def unchanged(cls, subject: VerificationSubject) -> "EngineResult":
        return cls(subject=subject, events=[], changed=False)


class EventRecorder:
    """Assign consecutive sequence numbers to events raised against one subject."""

    def __init__(self, subject: VerificationSubject):
        self.sequence = subject.sequence
        self.events: list[DomainEvent] = []

    def emit(self, subject: VerificationSubject, event_cls: type[DomainEvent], **fields) -> None:
        self.sequence += 1
        self.events.append(
            event_cls(
                subject_type=subject.subject_type,
                subject_id=subject.subject_id,
                sequence=self.sequence,
                **fields,
            )
        )

    def result(self, subject: VerificationSubject, warning: str | None = None) -> EngineResult:
        return EngineResult(
            subject=replace(subject, sequence=self.sequence),
            events=self.events,
            changed=True,
            warning=warning,
        )


def approve_group(subject: VerificationSubject, kind: DocumentKind) -> EngineResult:
    group = subject.group(kind)
    if group.status == GroupStatus.APPROVED:
        return EngineResult.unchanged(subject)

    updated = subject.with_group(apply_event(group, GroupEvent.APPROVE))
    recorder = EventRecorder(subject)
    recorder.emit(updated, GroupApproved, kind=kind, status=GroupStatus.APPROVED.value)
    return recorder.result(updated)


def reject_group(subject: VerificationSubject, kind: DocumentKind, reason: str | None) -> EngineResult:
    """Reject one group. The reason is stored verbatim and shown to the submitter."""
    if not (reason and reason.strip()):
        raise MissingReason("reject")

    group = subject.group(kind)
    if group.status == GroupStatus.REJECTED and group.rejection_reason == reason:
        return EngineResult.unchanged(subject)

    updated = subject.with_group(apply_event(group, GroupEvent.REJECT, reason))
    recorder = EventRecorder(subject)
    recorder.emit(
        updated, GroupRejected, kind=kind, status=GroupStatus.REJECTED.value, reason=reason,
    )
    return recorder.result(updated)


def flag_for_manual_review(subject: VerificationSubject, kind: DocumentKind) -> EngineResult:
    group = subject.group(kind)
    if group.status == GroupStatus.MANUAL_REVIEW:
        return EngineResult.unchanged(subject)

    updated = subject.with_group(apply_event(group, GroupEvent.FLAG_FOR_MANUAL_REVIEW))
    recorder = EventRecorder(subject)
    recorder.emit(updated, GroupFlagged, kind=kind, status=GroupStatus.MANUAL_REVIEW.value)
    return recorder.result(updated)


def set_overall_status(
    subject: VerificationSubject,
    status: PropertyStatus | str,
    reason: str | None = None,
) -> EngineResult:
    """Holistic operator call on a property.

    The override wins over per-group computation until the next fresh
    submission clears it. Suspending or rejecting needs a reason.
    """
    status = parse_enum(PropertyStatus, status, "overall_status")
    if status not in PropertyStatus.override_statuses():
        raise UnrecognizedStatus("overall_status", status.value)
    if not subject.is_property:
        raise ValueError(
            f"Overall status can only be set on a property, not {subject.subject_type.value} {subject.subject_id}"
        )

    reason = reason if reason and reason.strip() else None
    if status == PropertyStatus.SUSPENDED and reason is None:
        raise MissingReason("suspend")
    if status == PropertyStatus.REJECTED and reason is None:
        raise MissingReason("reject")

    if subject.override_status == status and subject.override_reason == reason:
        return EngineResult.unchanged(subject)

    updated = replace(subject, override_status=status, override_reason=reason)
    recorder = EventRecorder(subject)
    recorder.emit(updated, OverallStatusSet, status=status.value, reason=reason)
    return recorder.result(updated)
