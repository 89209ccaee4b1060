# This project was developed with assistance from AI tools.
"""Pure transition function for DocumentGroup status."""

from dataclasses import replace

from db.enums import GroupEvent, GroupStatus

from .errors import InvalidTransition, MissingReason
from .groups import DocumentGroup

_TRANSITIONS = GroupEvent.valid_transitions()


def transition(
    current: GroupStatus,
    event: GroupEvent,
    reason: str | None = None,
) -> GroupStatus:
    """Return the status ``event`` leads to from ``current``.

    Raises:
        MissingReason: ``reject`` without a non-blank reason.
        InvalidTransition: the event is not legal from ``current``.
    """
    if event == GroupEvent.REJECT and not (reason and reason.strip()):
        raise MissingReason("reject")
    try:
        return _TRANSITIONS[event][current]
    except KeyError:
        raise InvalidTransition(event, current) from None


def apply_event(
    group: DocumentGroup,
    event: GroupEvent,
    reason: str | None = None,
    artifacts: dict[str, str] | None = None,
) -> DocumentGroup:
    """Apply ``event`` to ``group`` and return the new value.

    The rejection reason is stored verbatim on reject and cleared by every
    other transition. ``artifacts`` replaces only the named slots and may only
    accompany ``submit``; decisions never touch artifacts.
    """
    next_status = transition(group.status, event, reason)
    if artifacts:
        if event != GroupEvent.SUBMIT:
            raise ValueError(f"artifacts can only accompany submit, not {event.value}")
        group = group.with_artifacts(artifacts)
    return replace(
        group,
        status=next_status,
        rejection_reason=reason if next_status == GroupStatus.REJECTED else None,
    )
