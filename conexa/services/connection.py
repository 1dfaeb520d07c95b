"""Connection handle: one accepted WebSocket plus its lifecycle bookkeeping."""
import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from conexa.services.connection_state import ConnectionState

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class Connection:
    """Owned by the gateway; the directory only stores references to it."""

    def __init__(self, websocket: WebSocket) -> None:
        self.id: int = next(_ids)
        self.websocket = websocket
        self.identity: str | None = None
        self.state = ConnectionState.CONNECTING
        self.established_at = datetime.now(timezone.utc)
        self.last_seen = time.monotonic()
        self._send_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"<Connection id={self.id} identity={self.identity!r} state={self.state.value}>"

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    async def send(self, event: str, data: Any) -> None:
        """Write one {"event", "data"} frame. Frames on one connection go out in call order."""
        frame = jsonable_encoder({"event": event, "data": data})
        async with self._send_lock:
            await self.websocket.send_json(frame)

    async def close(self, code: int) -> None:
        try:
            await self.websocket.close(code=code)
        except (RuntimeError, WebSocketDisconnect) as exc:
            # already closed by the peer or by the transport
            logger.debug("Close on %r ignored: %s", self, exc)
