# This project was developed with assistance from AI tools.
"""Single owned state per verification subject on the submitter side.

``SubjectStore.run`` is the only consumer of the channel queue. Local
mutations (uploads, listing toggles) and reconnect resyncs are queued onto
the same queue via ``perform``, so a pushed event is never applied while a
local mutation of the same subject is in flight. Snapshots older than the
last applied sequence are ignored. Screens read through ``get``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from db.enums import GroupEvent, GroupStatus, SubjectType

from ..services.verification import (
    InvalidTransition,
    MissingReason,
    VerificationSubject,
    apply_event,
    parse_enum,
)
from .api import VerificationClient
from .channel import ChannelEvent

logger = logging.getLogger(__name__)

SubjectKey = tuple[SubjectType, int]

_STATUS_EVENTS = {
    GroupStatus.APPROVED: GroupEvent.APPROVE,
    GroupStatus.REJECTED: GroupEvent.REJECT,
    GroupStatus.MANUAL_REVIEW: GroupEvent.FLAG_FOR_MANUAL_REVIEW,
}

_NOTICES = {
    "PARTNER_VERIFICATION_APPROVED": "Your identity has been verified. You can now add properties.",
    "PARTNER_VERIFICATION_REJECTED": "Your identity documents were rejected: {reason}",
    "PARTNER_VERIFICATION_MANUAL_REVIEW": "Your identity documents are under manual review.",
    "PROPERTY_DOCUMENT_APPROVED": "{kind} documents approved.",
    "PROPERTY_DOCUMENT_REJECTED": "{kind} documents rejected: {reason}",
    "PROPERTY_DOCUMENT_MANUAL_REVIEW": "{kind} documents are under manual review.",
    "PROPERTY_VERIFICATION_UPDATED": "Property verification status changed to {status}.",
}


def notice_text(event: ChannelEvent) -> str:
    template = _NOTICES.get(event.type, "Verification status updated.")
    return template.format(
        kind=event.kind.value.capitalize() if event.kind else "Property",
        reason=event.reason or "",
        status=event.status or "",
    )


@dataclass
class _LocalAction:
    action: Callable[[], Awaitable[Any]]
    done: asyncio.Future = field(default_factory=lambda: asyncio.get_running_loop().create_future())


class SubjectStore:
    def __init__(
        self,
        client: VerificationClient,
        queue: asyncio.Queue,
        *,
        on_notice: Callable[[str], None] | None = None,
    ):
        self._client = client
        self._queue = queue
        self._on_notice = on_notice
        self._subjects: dict[SubjectKey, VerificationSubject] = {}
        self._last_applied: dict[SubjectKey, int] = {}

    # -- reads --

    def get(self, subject_type: SubjectType, subject_id: int) -> VerificationSubject | None:
        return self._subjects.get((subject_type, subject_id))

    def last_applied(self, subject_type: SubjectType, subject_id: int) -> int:
        return self._last_applied.get((subject_type, subject_id), 0)

    @property
    def tracked(self) -> list[SubjectKey]:
        return list(self._subjects)

    # -- state replacement --

    def replace(self, subject: VerificationSubject) -> bool:
        """Adopt a server snapshot unless it is older than what was already applied.

        Returns False when the snapshot was ignored as stale (a slow refetch
        overtaken by a pushed event or a local mutation).
        """
        key = (subject.subject_type, subject.subject_id)
        last = self._last_applied.get(key, 0)
        if subject.sequence < last:
            logger.debug(
                "Ignoring stale snapshot of %s %d seq=%d (last applied %d)",
                subject.subject_type.value, subject.subject_id, subject.sequence, last,
            )
            return False
        self._subjects[key] = subject
        self._last_applied[key] = subject.sequence
        return True

    async def track(self, subject_type: SubjectType, subject_id: int | None = None) -> VerificationSubject:
        """Fetch a subject and start keeping it current."""
        subject = await self._client.fetch_subject(subject_type, subject_id)
        self.replace(subject)
        return self._subjects[(subject.subject_type, subject.subject_id)]

    async def resync(self) -> None:
        """Point-in-time refetch of everything tracked."""
        for subject_type, subject_id in self.tracked:
            await self.track(subject_type, subject_id)

    async def queue_resync(self) -> None:
        """Channel reconnect hook: resync on the consumer task, in queue order.

        Refetch failures propagate to the channel, which backs off and
        reconnects.
        """
        await self.perform(self.resync)

    # -- event application --

    async def apply(self, event: ChannelEvent) -> bool:
        """Apply one pushed event. Returns False for replays, which are dropped."""
        key = (event.subject_type, event.subject_id)
        if event.sequence <= self._last_applied.get(key, 0):
            logger.debug(
                "Ignoring replayed event %s seq=%d (last applied %d)",
                event.type, event.sequence, self._last_applied.get(key, 0),
            )
            return False

        current = self._subjects.get(key)
        if current is not None:
            self._subjects[key] = self._apply_locally(current, event)
        self._last_applied[key] = event.sequence

        try:
            fresh = await self._client.fetch_subject(event.subject_type, event.subject_id)
        except httpx.HTTPError as exc:
            logger.warning("Refetch after %s failed, keeping local state: %s", event.type, exc)
        else:
            self.replace(fresh)

        if self._on_notice is not None:
            self._on_notice(notice_text(event))
        return True

    def _apply_locally(self, subject: VerificationSubject, event: ChannelEvent) -> VerificationSubject:
        if event.kind is None or event.kind not in subject.groups:
            return subject
        status = parse_enum(GroupStatus, event.status, "status")
        group_event = _STATUS_EVENTS.get(status)
        if group_event is None:
            return subject
        try:
            group = apply_event(subject.groups[event.kind], group_event, event.reason)
        except (InvalidTransition, MissingReason) as exc:
            # Local view is stale; the refetch that follows reconciles it.
            logger.info("Local apply of %s skipped: %s", event.type, exc)
            return subject
        return subject.with_group(group)

    # -- single consumer --

    async def perform(self, action: Callable[[], Awaitable[Any]]) -> Any:
        """Run a local mutation on the consumer task and adopt its result.

        ``action`` returns a VerificationSubject, or a tuple whose first
        item is one.
        """
        item = _LocalAction(action)
        await self._queue.put(item)
        return await item.done

    async def _run_local(self, item: _LocalAction) -> None:
        try:
            result = await item.action()
        except Exception as exc:
            item.done.set_exception(exc)
            return
        subject = result[0] if isinstance(result, tuple) else result
        if isinstance(subject, VerificationSubject):
            self.replace(subject)
        item.done.set_result(result)

    async def run(self) -> None:
        """Drain the queue forever, strictly in arrival order."""
        while True:
            item = await self._queue.get()
            try:
                if isinstance(item, _LocalAction):
                    await self._run_local(item)
                else:
                    await self.apply(item)
            finally:
                self._queue.task_done()
