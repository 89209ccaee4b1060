# This project was developed with assistance from AI tools.
"""WebSocket endpoint for real-time verification events.

Connect with ``/api/notifications/ws?token=<jwt>``. Partners receive
approval/rejection events for their own partner record and properties;
operators receive submission events for the review queue. The client may
send ``ping`` at any time and gets a ``PONG`` through the same ordered
outbound queue as every other event.
"""

import asyncio
import logging

import jwt as pyjwt
from db.enums import UserRole
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from ..core.auth import build_data_scope
from ..core.config import settings
from ..middleware.auth import user_from_token
from ..schemas.auth import UserContext
from ..services.notifications import NotificationHub, NotificationSession, get_notification_hub

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSE_INVALID_TOKEN = 4001
CLOSE_FORBIDDEN = 4003
CLOSE_AUTH_UNAVAILABLE = 1011


async def authenticate_websocket(ws: WebSocket) -> UserContext | None:
    """Validate the JWT from ``?token=`` on an already-accepted WebSocket.

    Returns ``None`` (and closes the socket) when authentication fails.
    """
    if settings.AUTH_DISABLED:
        return UserContext(
            user_id="dev-user",
            role=UserRole.ADMIN,
            email="dev@stayverify.local",
            name="Dev User",
            data_scope=build_data_scope(UserRole.ADMIN, "dev-user"),
        )

    token = ws.query_params.get("token")
    if not token:
        await ws.close(code=CLOSE_INVALID_TOKEN, reason="Missing authentication token")
        return None

    try:
        user = user_from_token(token)
    except pyjwt.InvalidTokenError as exc:
        logger.warning("WebSocket auth failed: %s", exc)
        await ws.close(code=CLOSE_INVALID_TOKEN, reason="Invalid or expired token")
        return None
    except HTTPException as exc:
        if exc.status_code == 503:
            await ws.close(code=CLOSE_AUTH_UNAVAILABLE, reason="Authentication service unavailable")
        else:
            await ws.close(code=CLOSE_INVALID_TOKEN, reason="No recognized role")
        return None

    if user.role == UserRole.GUEST:
        logger.warning("WebSocket RBAC denied: user=%s role=%s", user.user_id, user.role.value)
        await ws.close(code=CLOSE_FORBIDDEN, reason="Insufficient permissions")
        return None
    return user


async def _receive_loop(ws: WebSocket, session: NotificationSession) -> None:
    while True:
        message = await ws.receive_text()
        if message.strip().lower() == "ping":
            session.offer({"type": "PONG"})


@router.websocket("/notifications/ws")
async def notifications_ws(ws: WebSocket) -> None:
    hub: NotificationHub = get_notification_hub()
    await ws.accept()
    user = await authenticate_websocket(ws)
    if user is None:
        return

    session = hub.register(user, ws.send_json)
    sender = session.start()
    receiver = asyncio.create_task(_receive_loop(ws, session), name=f"notify-recv-{session.session_id}")
    try:
        done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        if receiver in done and not receiver.cancelled():
            exc = receiver.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Notification session %s receive failed: %s", session.session_id, exc)
    finally:
        receiver.cancel()
        hub.unregister(session)

    if sender in done:
        # Slow client, send failure, or dropped by the hub; the client reconnects and resyncs.
        try:
            await ws.close()
        except RuntimeError:
            logger.debug("Notification session %s already closed", session.session_id)
