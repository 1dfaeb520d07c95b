"""Event router: push (event, payload) to the live connections of an identity."""
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from conexa.services.connection import Connection
from conexa.services.directory import ConnectionDirectory

logger = logging.getLogger(__name__)

DropCallback = Callable[[Connection], Awaitable[None]]


class EventRouter:
    """Best-effort fan-out. Offline recipients are a silent no-op; nothing is queued or retried."""

    def __init__(self, directory: ConnectionDirectory, on_dead: DropCallback | None = None) -> None:
        self.directory = directory
        self._on_dead = on_dead

    async def emit_to_identity(self, identity: str, event: str, payload: Any) -> int:
        return await self._push(self.directory.connections_for(identity), event, payload)

    async def emit_to_identities(self, identities: Iterable[str], event: str, payload: Any) -> int:
        """Emit once per distinct identity, in the order given."""
        delivered = 0
        seen: set[str] = set()
        for identity in identities:
            if not identity or identity in seen:
                continue
            seen.add(identity)
            delivered += await self.emit_to_identity(identity, event, payload)
        return delivered

    async def emit_to_room(self, room: str, event: str, payload: Any) -> int:
        return await self._push(self.directory.room_connections(room), event, payload)

    async def broadcast_all(self, event: str, payload: Any) -> int:
        return await self._push(self.directory.all_connections(), event, payload)

    async def emit_to_connection(self, conn: Connection, event: str, payload: Any) -> int:
        """Push to one connection with the same failure handling as a fan-out."""
        return await self._push({conn}, event, payload)

    async def _push(self, connections: set[Connection], event: str, payload: Any) -> int:
        if not connections:
            return 0
        delivered = 0
        dead: list[Connection] = []
        for conn in sorted(connections, key=lambda c: c.id):
            try:
                await conn.send(event, payload)
                delivered += 1
            except Exception as exc:
                logger.warning("Push of %s to %r failed: %s", event, conn, exc)
                dead.append(conn)
        if self._on_dead is not None:
            for conn in dead:
                await self._on_dead(conn)
        return delivered
