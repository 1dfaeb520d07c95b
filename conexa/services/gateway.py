"""Real-time gateway: connection lifecycle, identity binding and inbound relay.

Each connection walks CONNECTING -> IDENTIFIED -> ACTIVE -> CLOSED. The
gateway owns every Connection, binds identified ones into the directory,
and exposes the router to the HTTP handlers. `drop` is the single teardown
path and unbinds exactly once whatever closed the socket.
"""
import json
import logging
import re
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from conexa.auth.jwt import token_subject
from conexa.schemas.realtime import MessageEditedNotice, MessagesSeenNotice
from conexa.services import events
from conexa.services.connection import Connection
from conexa.services.connection_state import ConnectionState, transition
from conexa.services.directory import ConnectionDirectory
from conexa.services.event_router import EventRouter
from conexa.services.presence import PresenceBroadcaster

logger = logging.getLogger(__name__)

IDENTITY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

# Application close codes
CLOSE_NO_IDENTITY = 4000
CLOSE_BAD_TOKEN = 4001
CLOSE_STALE = 4008
CLOSE_SEND_FAILED = 1011

InboundHandler = Callable[[Connection, Any], Awaitable[None]]


class RealtimeGateway:
    def __init__(self, directory: ConnectionDirectory | None = None, heartbeat_timeout: float = 0) -> None:
        self.directory = directory or ConnectionDirectory()
        self.router = EventRouter(self.directory, on_dead=self._drop_dead)
        self.presence = PresenceBroadcaster(self.directory, self.router)
        self.heartbeat_timeout = heartbeat_timeout
        self._connections: dict[int, Connection] = {}
        self._handlers: dict[str, InboundHandler] = {
            events.PING: self._on_ping,
            events.JOIN: self._on_join,
            events.MESSAGES_SEEN: self._on_messages_seen,
            events.MESSAGE_EDITED: self._on_message_edited,
        }

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def on(self, event: str) -> Callable[[InboundHandler], InboundHandler]:
        """Register a handler for an inbound client event."""
        def decorator(handler: InboundHandler) -> InboundHandler:
            self._handlers[event] = handler
            return handler
        return decorator

    async def admit(self, websocket: WebSocket, user_id: str | None, token: str | None = None) -> Connection | None:
        """Identify an accepted socket and bind it. Returns None (socket closed) on admission error."""
        conn = Connection(websocket)
        identity = user_id or ""
        if not IDENTITY_PATTERN.match(identity):
            logger.info("Refusing connection %s: missing or malformed userId", conn.id)
            await self._refuse(conn, CLOSE_NO_IDENTITY)
            return None
        if token and token_subject(token) != identity:
            logger.info("Refusing connection %s: token does not match userId %s", conn.id, identity)
            await self._refuse(conn, CLOSE_BAD_TOKEN)
            return None

        conn.identity = identity
        transition(conn, ConnectionState.IDENTIFIED)
        self._connections[conn.id] = conn
        if await self.directory.bind(identity, conn):
            await self.presence.announce()
        else:
            # identity already online: only the new device needs the snapshot
            await self.router.emit_to_connection(
                conn, events.PRESENCE_UPDATE, self.directory.online_identities()
            )
        # the presence push itself may have failed and dropped this connection
        if conn.state != ConnectionState.IDENTIFIED:
            return None
        transition(conn, ConnectionState.ACTIVE)
        logger.info("User %s connected (connection %s, %d open)", identity, conn.id, self.connection_count)
        return conn

    async def _refuse(self, conn: Connection, code: int) -> None:
        transition(conn, ConnectionState.CLOSED)
        await conn.close(code)

    async def drop(self, conn: Connection, code: int | None = None) -> None:
        """Tear a connection down. Only the first call has any effect."""
        if conn.state == ConnectionState.CLOSED:
            return
        transition(conn, ConnectionState.CLOSED)
        self._connections.pop(conn.id, None)
        if conn.identity is not None and await self.directory.unbind(conn.identity, conn):
            await self.presence.announce()
        if code is not None:
            await conn.close(code)
        logger.info("User %s disconnected (connection %s)", conn.identity, conn.id)

    async def _drop_dead(self, conn: Connection) -> None:
        await self.drop(conn, CLOSE_SEND_FAILED)

    async def dispatch(self, conn: Connection, frame: Any) -> None:
        """Route one inbound frame {"event": name, "data": payload} to its handler."""
        if conn.state != ConnectionState.ACTIVE:
            logger.debug("Ignoring frame on closed %r", conn)
            return
        conn.touch()
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            logger.debug("Ignoring malformed frame on %r", conn)
            return
        handler = self._handlers.get(frame["event"])
        if handler is None:
            logger.debug("Ignoring unknown event %r on %r", frame["event"], conn)
            return
        await handler(conn, frame.get("data"))

    async def serve(self, websocket: WebSocket, user_id: str | None, token: str | None = None) -> None:
        """Run one accepted socket through its whole lifecycle."""
        conn = await self.admit(websocket, user_id, token)
        if conn is None:
            return
        try:
            while conn.state == ConnectionState.ACTIVE:
                text = await websocket.receive_text()
                try:
                    frame = json.loads(text)
                except ValueError:
                    conn.touch()
                    logger.debug("Ignoring non-JSON frame on %r", conn)
                    continue
                await self.dispatch(conn, frame)
        except WebSocketDisconnect:
            pass
        finally:
            await self.drop(conn)

    def stale_connections(self, now: float | None = None) -> list[Connection]:
        if self.heartbeat_timeout <= 0:
            return []
        now = time.monotonic() if now is None else now
        return [
            conn
            for conn in self._connections.values()
            if conn.state == ConnectionState.ACTIVE and now - conn.last_seen > self.heartbeat_timeout
        ]

    async def _on_ping(self, conn: Connection, data: Any) -> None:
        await conn.send(events.PONG, {"timestamp": datetime.now(timezone.utc)})

    async def _on_join(self, conn: Connection, data: Any) -> None:
        if not isinstance(data, str) or not data:
            logger.debug("Ignoring join without room name on %r", conn)
            return
        await self.directory.join_room(data, conn)

    async def _on_messages_seen(self, conn: Connection, data: Any) -> None:
        try:
            notice = MessagesSeenNotice.model_validate(data)
        except ValidationError:
            logger.debug("Ignoring malformed messages-seen on %r", conn)
            return
        if notice.user_id != conn.identity:
            logger.warning("Connection %s sent messages-seen for another user %s", conn.id, notice.user_id)
            return
        await self.router.emit_to_identity(
            notice.selected_user_id, events.MESSAGES_SEEN, notice.model_dump(by_alias=True)
        )

    async def _on_message_edited(self, conn: Connection, data: Any) -> None:
        try:
            notice = MessageEditedNotice.model_validate(data)
        except ValidationError:
            logger.debug("Ignoring malformed message-edited on %r", conn)
            return
        if notice.sender_id != conn.identity:
            logger.warning("Connection %s relayed an edit for another sender %s", conn.id, notice.sender_id)
            return
        await self.router.emit_to_identities(
            [notice.receiver_id, notice.sender_id], events.MESSAGE_EDITED, notice.model_dump(by_alias=True)
        )
