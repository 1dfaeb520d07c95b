"""Drop real-time connections that stopped sending frames (half-open sockets)."""
import asyncio
import logging

from conexa.config import settings
from conexa.services.gateway import CLOSE_STALE, RealtimeGateway

logger = logging.getLogger(__name__)


async def run_heartbeat_once(gateway: RealtimeGateway, now: float | None = None) -> int:
    stale = gateway.stale_connections(now)
    for conn in stale:
        logger.info("Dropping stale connection %s for %s", conn.id, conn.identity)
        await gateway.drop(conn, code=CLOSE_STALE)
    return len(stale)


async def run_heartbeat_loop(gateway: RealtimeGateway) -> None:
    while True:
        try:
            await run_heartbeat_once(gateway)
        except Exception:
            logger.exception("Heartbeat sweep failed")
        await asyncio.sleep(settings.WS_HEARTBEAT_INTERVAL_SECONDS)
