"""
Real-time gateway.

Hosts the Socket.IO server that pushes balance, transaction, withdrawal and
booking changes to connected clients. A socket authenticates with the same JWT
as the REST API, either in the connect ``auth`` payload or later through an
``authenticate`` event, and is then placed in its ``user:<id>`` room (admins
also join ``admins``). Emitting never raises: a failed push is logged and the
caller carries on.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Optional

import socketio
from sqlalchemy.ext.asyncio import async_sessionmaker

from advancia_pay.core.database.repositories import NotificationRepository, UserRepository
from advancia_pay.core.errors import AuthenticationError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import ADMIN_ROLES
from advancia_pay.server.core.security import decode_access_token, token_subject

from . import events

logger = get_logger(__name__)

PENDING_NOTIFICATIONS_LIMIT = 10


class RealtimeGateway:
    """Socket.IO server plus bookkeeping of which user owns which sockets."""

    def __init__(
        self,
        *,
        session_factory: Optional[async_sessionmaker] = None,
        cors_allowed_origins: Any = "*",
        server: Optional[socketio.AsyncServer] = None,
    ) -> None:
        self.sio = server or socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=cors_allowed_origins)
        self.session_factory = session_factory
        self._user_sockets: dict[str, set[str]] = defaultdict(set)
        self._socket_users: dict[str, str] = {}

        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on("authenticate", self.on_authenticate)
        self.sio.on("join_payment_room", self.on_join_payment_room)

    # ------------------------------------------------------------------
    # Socket.IO handlers
    # ------------------------------------------------------------------

    async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> bool:
        logger.debug(f"Socket connected: {sid}")
        token = auth.get("token") if isinstance(auth, dict) else None
        if token:
            await self.authenticate(sid, token)
        return True

    async def on_authenticate(self, sid: str, data: Any) -> None:
        token = data.get("token") if isinstance(data, dict) else data
        if not token:
            await self._safe_emit(events.AUTH_ERROR, {"message": "No token provided"}, to=sid)
            return
        await self.authenticate(sid, str(token))

    async def on_join_payment_room(self, sid: str, data: Any) -> None:
        if isinstance(data, dict):
            payment_id = data.get("transactionId") or data.get("paymentId")
        else:
            payment_id = data
        if not payment_id:
            return
        await self.sio.enter_room(sid, events.payment_room(str(payment_id)))
        logger.debug(f"Socket {sid} joined payment room {payment_id}")

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        user_id = self._socket_users.pop(sid, None)
        if user_id is None:
            return
        sockets = self._user_sockets.get(user_id)
        if sockets is not None:
            sockets.discard(sid)
            if not sockets:
                del self._user_sockets[user_id]
        logger.debug(f"Socket {sid} of user {user_id} disconnected")

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self, sid: str, token: str) -> Optional[str]:
        """Bind a socket to the user in ``token``; returns the user id or None."""
        try:
            payload = decode_access_token(token)
        except AuthenticationError as e:
            logger.info(f"Socket {sid} failed authentication: {e.message}")
            await self._safe_emit(events.AUTH_ERROR, {"message": e.message}, to=sid)
            return None

        user_id = token_subject(payload)
        await self.sio.enter_room(sid, events.user_room(user_id))
        if payload.get("role") in {role.value for role in ADMIN_ROLES}:
            await self.sio.enter_room(sid, events.ADMINS_ROOM)

        self._socket_users[sid] = user_id
        self._user_sockets[user_id].add(sid)
        logger.info(f"Socket {sid} authenticated as user {user_id}")

        await self._safe_emit(events.AUTHENTICATED, {"userId": user_id}, to=sid)
        await self._send_pending_notifications(sid, user_id)
        return user_id

    async def _send_pending_notifications(self, sid: str, user_id: str) -> None:
        if self.session_factory is None:
            return
        try:
            async with self.session_factory() as session:
                if await UserRepository(session).get_by_id(user_id) is None:
                    return
                unread = await NotificationRepository(session).list_for_user(
                    user_id, unread_only=True, limit=PENDING_NOTIFICATIONS_LIMIT
                )
        except Exception as e:
            logger.warning(f"Could not load pending notifications for user {user_id}: {e}")
            return
        if unread:
            payload = {"notifications": [events.serialize(n) for n in unread]}
            await self._safe_emit(events.PENDING_NOTIFICATIONS, payload, to=sid)

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def is_user_online(self, user_id: str) -> bool:
        return bool(self._user_sockets.get(user_id))

    def user_socket_count(self, user_id: str) -> int:
        return len(self._user_sockets.get(user_id, ()))

    def connected_users(self) -> list[str]:
        return [user_id for user_id, sockets in self._user_sockets.items() if sockets]

    # ------------------------------------------------------------------
    # Emitting
    # ------------------------------------------------------------------

    async def emit_to_user(self, user_id: str, event: str, data: dict[str, Any]) -> bool:
        return await self._safe_emit(event, data, room=events.user_room(user_id))

    async def emit_to_payment_room(self, payment_id: str, event: str, data: dict[str, Any]) -> bool:
        return await self._safe_emit(event, data, room=events.payment_room(payment_id))

    async def emit_to_admins(self, event: str, data: dict[str, Any]) -> bool:
        return await self._safe_emit(event, data, room=events.ADMINS_ROOM)

    async def broadcast(self, event: str, data: dict[str, Any]) -> bool:
        return await self._safe_emit(event, data)

    async def _safe_emit(self, event: str, data: dict[str, Any], **target: Any) -> bool:
        payload = {**data, "timestamp": events.timestamp()}
        try:
            await self.sio.emit(event, payload, **target)
            return True
        except Exception as e:
            logger.warning(f"Failed to emit {event} to {target or 'all'}: {e}")
            return False

    def asgi_app(self, other_asgi_app: Any, socketio_path: str = "socket.io") -> socketio.ASGIApp:
        """Wrap the HTTP application so Socket.IO traffic is served beside it."""
        return socketio.ASGIApp(self.sio, other_asgi_app=other_asgi_app, socketio_path=socketio_path)
