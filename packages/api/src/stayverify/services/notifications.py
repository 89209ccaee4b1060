# This project was developed with assistance from AI tools.
"""Real-time delivery of verification events to connected sessions.

Each WebSocket session owns a bounded outbound queue drained by its own
sender task. Publishing only enqueues, so an operator's request never
waits on a slow or dead client. A session whose queue is full, or whose
socket fails, is dropped; the client reconnects and resyncs with a full
fetch, since the channel never replays missed events.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable

from db.enums import SubjectType

from ..core.config import settings
from ..schemas.auth import UserContext
from .verification import (
    DomainEvent,
    GroupApproved,
    GroupFlagged,
    GroupRejected,
    GroupSubmitted,
    OverallStatusSet,
    ReverificationRequested,
)

logger = logging.getLogger(__name__)

# (event class, subject type) -> wire type for the submitting party.
SUBMITTER_EVENT_TYPES: dict[tuple[type[DomainEvent], SubjectType], str] = {
    (GroupApproved, SubjectType.PARTNER): "PARTNER_VERIFICATION_APPROVED",
    (GroupRejected, SubjectType.PARTNER): "PARTNER_VERIFICATION_REJECTED",
    (GroupFlagged, SubjectType.PARTNER): "PARTNER_VERIFICATION_MANUAL_REVIEW",
    (GroupApproved, SubjectType.PROPERTY): "PROPERTY_DOCUMENT_APPROVED",
    (GroupRejected, SubjectType.PROPERTY): "PROPERTY_DOCUMENT_REJECTED",
    (GroupFlagged, SubjectType.PROPERTY): "PROPERTY_DOCUMENT_MANUAL_REVIEW",
    (OverallStatusSet, SubjectType.PROPERTY): "PROPERTY_VERIFICATION_UPDATED",
}

# Events for the operator review queue.
OPERATOR_EVENT_TYPES: dict[type[DomainEvent], str] = {
    GroupSubmitted: "VERIFICATION_SUBMITTED",
    ReverificationRequested: "REVERIFICATION_REQUESTED",
}

SendFn = Callable[[dict], Awaitable[None]]


def event_payload(event: DomainEvent, event_type: str) -> dict:
    return {
        "type": event_type,
        "subject_type": event.subject_type.value,
        "subject_id": event.subject_id,
        "kind": event.kind.value if event.kind else None,
        "sequence": event.sequence,
        "status": event.status,
        "reason": event.reason,
    }


class NotificationSession:
    """One connected client: a bounded queue and the task that drains it."""

    def __init__(
        self,
        user: UserContext,
        send: SendFn,
        *,
        queue_size: int,
        send_timeout: float,
    ):
        self.session_id = str(uuid.uuid4())
        self.user = user
        self._send = send
        self._send_timeout = send_timeout
        self._queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=queue_size)
        self.closed = False
        self.task: asyncio.Task | None = None

    def start(self) -> asyncio.Task:
        self.task = asyncio.create_task(self.run(), name=f"notify-send-{self.session_id}")
        return self.task

    def close(self) -> None:
        self.closed = True
        if self.task is not None and not self.task.done():
            self.task.cancel()

    def offer(self, payload: dict) -> bool:
        """Enqueue without waiting. False means the session must be dropped."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            return False
        return True

    async def run(self) -> None:
        """Send queued payloads in order until the socket fails or the task is cancelled."""
        try:
            while True:
                payload = await self._queue.get()
                await asyncio.wait_for(self._send(payload), timeout=self._send_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Notification session %s send failed: %s", self.session_id, exc)
        finally:
            self.closed = True


class NotificationHub:
    """Registry of live sessions keyed by user."""

    def __init__(
        self,
        queue_size: int | None = None,
        send_timeout: float | None = None,
    ):
        self._queue_size = queue_size or settings.NOTIFY_QUEUE_SIZE
        self._send_timeout = send_timeout or settings.NOTIFY_SEND_TIMEOUT
        self._sessions: dict[str, NotificationSession] = {}

    def register(self, user: UserContext, send: SendFn) -> NotificationSession:
        session = NotificationSession(
            user, send, queue_size=self._queue_size, send_timeout=self._send_timeout,
        )
        self._sessions[session.session_id] = session
        logger.info(
            "Notification session %s opened (user=%s role=%s)",
            session.session_id, user.user_id, user.role.value,
        )
        return session

    def unregister(self, session: NotificationSession) -> None:
        session.close()
        if self._sessions.pop(session.session_id, None) is not None:
            logger.info("Notification session %s closed", session.session_id)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def publish(self, events: Iterable[DomainEvent], *, owner_user_id: str | None) -> int:
        """Fan events out to the owner's sessions and to operator sessions.

        Never blocks and never raises on delivery problems. Returns the
        number of payloads enqueued.
        """
        delivered = 0
        for event in events:
            submitter_type = SUBMITTER_EVENT_TYPES.get((type(event), event.subject_type))
            operator_type = OPERATOR_EVENT_TYPES.get(type(event))
            for session in list(self._sessions.values()):
                if session.user.is_operator:
                    event_type = operator_type
                elif owner_user_id is not None and session.user.user_id == owner_user_id:
                    event_type = submitter_type
                else:
                    event_type = None
                if event_type is None:
                    continue
                if session.offer(event_payload(event, event_type)):
                    delivered += 1
                else:
                    logger.warning(
                        "Dropping notification session %s (user=%s): queue full or closed",
                        session.session_id, session.user.user_id,
                    )
                    self.unregister(session)
        return delivered


_hub = NotificationHub()


def get_notification_hub() -> NotificationHub:
    """FastAPI dependency returning the process-wide hub."""
    return _hub
