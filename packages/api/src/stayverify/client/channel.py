# This project was developed with assistance from AI tools.
"""Real-time channel with an explicit connection state machine.

The channel only produces: parsed events go onto an ``asyncio.Queue`` that
exactly one consumer (the ``SubjectStore``) drains. Every successful
(re)connect triggers the resync hook, because missed events are never
replayed. A hook that fails counts as a failed attempt and backs off.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

import websockets
from db.enums import DocumentKind, SubjectType
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from ..services.verification import ChannelUnavailable, UnrecognizedStatus, parse_enum
from .config import ClientSettings

logger = logging.getLogger(__name__)

# Server close codes that retrying cannot fix.
AUTH_CLOSE_CODES = frozenset({4001, 4003})


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKING_OFF = "backing_off"


_ALLOWED: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.DISCONNECTED: frozenset({ConnectionState.CONNECTING}),
    ConnectionState.CONNECTING: frozenset(
        {ConnectionState.CONNECTED, ConnectionState.BACKING_OFF, ConnectionState.DISCONNECTED}
    ),
    ConnectionState.CONNECTED: frozenset({ConnectionState.BACKING_OFF, ConnectionState.DISCONNECTED}),
    ConnectionState.BACKING_OFF: frozenset({ConnectionState.CONNECTING, ConnectionState.DISCONNECTED}),
}


class ChannelStateMachine:
    """Tracks the connection state; illegal moves raise ``ValueError``."""

    def __init__(self, on_change: Callable[[ConnectionState], None] | None = None):
        self.state = ConnectionState.DISCONNECTED
        self.history: list[ConnectionState] = [self.state]
        self._on_change = on_change

    def can_transition(self, target: ConnectionState) -> bool:
        return target in _ALLOWED[self.state]

    def transition(self, target: ConnectionState) -> None:
        if target == self.state:
            return
        if not self.can_transition(target):
            raise ValueError(f"Illegal channel transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)
        if self._on_change is not None:
            self._on_change(target)


@dataclass(frozen=True)
class Backoff:
    """Exponential retry delays: 1s, 2s, 4s, then capped."""

    base: float = 1.0
    cap: float = 5.0
    max_attempts: int = 5

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "Backoff":
        return cls(
            base=settings.RECONNECT_BASE_DELAY,
            cap=settings.RECONNECT_MAX_DELAY,
            max_attempts=settings.RECONNECT_MAX_ATTEMPTS,
        )

    def delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        return min(self.cap, self.base * 2 ** (attempt - 1))

    def exhausted(self, attempt: int) -> bool:
        return attempt > self.max_attempts


@dataclass(frozen=True)
class ChannelEvent:
    type: str
    subject_type: SubjectType
    subject_id: int
    sequence: int
    kind: DocumentKind | None = None
    status: str | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "ChannelEvent":
        kind = payload.get("kind")
        sequence = payload.get("sequence")
        if not isinstance(sequence, int):
            raise UnrecognizedStatus("sequence", sequence)
        return cls(
            type=payload["type"],
            subject_type=parse_enum(SubjectType, payload.get("subject_type"), "subject_type"),
            subject_id=int(payload["subject_id"]),
            sequence=sequence,
            kind=parse_enum(DocumentKind, kind, "kind") if kind else None,
            status=payload.get("status"),
            reason=payload.get("reason"),
        )


class NotificationChannel:
    """Connects, pumps events into ``queue``, and reconnects with backoff.

    ``connect`` and ``sleep`` are injectable so the reconnect loop can be
    driven without a network or a real clock.
    """

    def __init__(
        self,
        token: str,
        queue: asyncio.Queue,
        *,
        on_resync: Callable[[], Awaitable[None]],
        settings: ClientSettings | None = None,
        backoff: Backoff | None = None,
        connect: Callable = websockets.connect,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_state_change: Callable[[ConnectionState], None] | None = None,
    ):
        self.settings = settings or ClientSettings()
        self.backoff = backoff or Backoff.from_settings(self.settings)
        self.machine = ChannelStateMachine(on_state_change)
        self._token = token
        self._queue = queue
        self._on_resync = on_resync
        self._connect = connect
        self._sleep = sleep
        self._stopping = False

    @property
    def state(self) -> ConnectionState:
        return self.machine.state

    @property
    def url(self) -> str:
        return f"{self.settings.WS_BASE_URL}/api/notifications/ws?token={quote(self._token)}"

    def stop(self) -> None:
        """Ask the loop to finish after the current connection closes."""
        self._stopping = True

    async def run(self) -> None:
        """Run until stopped; raise ``ChannelUnavailable`` once retries are exhausted."""
        attempt = 0
        while not self._stopping:
            self.machine.transition(ConnectionState.CONNECTING)
            close_code = None
            try:
                async with self._connect(self.url) as ws:
                    self.machine.transition(ConnectionState.CONNECTED)
                    if await self._resync():
                        attempt = 0
                        close_code = await self._pump(ws)
            except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as exc:
                logger.warning("Notification channel connect failed: %s", exc)

            if self._stopping:
                break
            if close_code in AUTH_CLOSE_CODES:
                self.machine.transition(ConnectionState.DISCONNECTED)
                raise ChannelUnavailable(
                    "Real-time updates were refused (sign in again). Refresh to see the latest status."
                )

            attempt += 1
            if self.backoff.exhausted(attempt):
                self.machine.transition(ConnectionState.DISCONNECTED)
                raise ChannelUnavailable(
                    "Real-time updates are unavailable. Refresh to see the latest status."
                )
            self.machine.transition(ConnectionState.BACKING_OFF)
            delay = self.backoff.delay(attempt)
            logger.info("Notification channel retry %d in %.1fs", attempt, delay)
            await self._sleep(delay)

        self.machine.transition(ConnectionState.DISCONNECTED)

    async def _resync(self) -> bool:
        """Run the resync hook; a failure counts as a failed connect attempt."""
        try:
            await self._on_resync()
        except Exception as exc:
            logger.warning("Resync after connect failed, backing off: %s", exc)
            return False
        return True

    async def _pump(self, ws) -> int | None:
        """Forward messages until the socket closes; return the close code."""
        try:
            async for raw in ws:
                self._handle(raw)
        except ConnectionClosed as exc:
            logger.info("Notification channel closed: %s", exc)
            return exc.rcvd.code if exc.rcvd is not None else None
        return getattr(ws, "close_code", None)

    def _handle(self, raw: str | bytes) -> None:
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON notification frame")
            return
        if payload.get("type") == "PONG":
            return
        self._queue.put_nowait(ChannelEvent.from_payload(payload))
