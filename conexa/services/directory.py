"""Connection directory: identity -> set of live connections.

The only shared mutable state of the real-time layer. Mutations go through
bind/unbind/join_room under a lock; reads return copies so callers can
iterate while the directory changes underneath them.
"""
import asyncio

from conexa.services.connection import Connection


class ConnectionDirectory:
    """Maps identity -> set of Connections, plus explicit room joins."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._bindings: dict[str, set[Connection]] = {}
        self._rooms: dict[str, set[Connection]] = {}

    def __len__(self) -> int:
        return sum(len(conns) for conns in self._bindings.values())

    async def bind(self, identity: str, connection: Connection) -> bool:
        """Register `connection` under `identity`. Returns True if the identity just came online."""
        async with self._lock:
            conns = self._bindings.get(identity)
            if conns is None:
                self._bindings[identity] = {connection}
                return True
            conns.add(connection)
            return False

    async def unbind(self, identity: str, connection: Connection) -> bool:
        """Remove `connection`. Returns True if the identity just went offline."""
        async with self._lock:
            for room in list(self._rooms):
                members = self._rooms[room]
                members.discard(connection)
                if not members:
                    del self._rooms[room]
            conns = self._bindings.get(identity)
            if conns is None or connection not in conns:
                return False
            conns.discard(connection)
            if not conns:
                del self._bindings[identity]
                return True
            return False

    async def join_room(self, room: str, connection: Connection) -> None:
        async with self._lock:
            self._rooms.setdefault(room, set()).add(connection)

    def connections_for(self, identity: str) -> set[Connection]:
        return set(self._bindings.get(identity, ()))

    def room_connections(self, room: str) -> set[Connection]:
        """A room resolves to the identity of the same name plus explicit joins."""
        return self.connections_for(room) | set(self._rooms.get(room, ()))

    def is_online(self, identity: str) -> bool:
        return bool(self._bindings.get(identity))

    def online_identities(self) -> list[str]:
        return [identity for identity, conns in self._bindings.items() if conns]

    def all_connections(self) -> set[Connection]:
        result: set[Connection] = set()
        for conns in self._bindings.values():
            result |= conns
        return result
