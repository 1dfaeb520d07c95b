from __future__ import annotations

import asyncio

from conexa.services.gateway import CLOSE_STALE, RealtimeGateway
from conexa.tasks.heartbeat import run_heartbeat_once

from conftest import FakeWebSocket


def test_heartbeat_drops_silent_connections_only() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway(heartbeat_timeout=30)
        quiet_ws, chatty_ws = FakeWebSocket(), FakeWebSocket()
        quiet = await gateway.admit(quiet_ws, "quiet")
        chatty = await gateway.admit(chatty_ws, "chatty")
        quiet.last_seen -= 100

        await gateway.dispatch(chatty, {"event": "ping"})
        dropped = await run_heartbeat_once(gateway)

        assert dropped == 1
        assert quiet_ws.closed_with == CLOSE_STALE
        assert gateway.directory.online_identities() == ["chatty"]
        assert chatty_ws.events("presence-update")[-1]["data"] == ["chatty"]

    asyncio.run(scenario())


def test_heartbeat_disabled_with_zero_timeout() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway(heartbeat_timeout=0)
        conn = await gateway.admit(FakeWebSocket(), "u1")
        conn.last_seen -= 10_000
        assert await run_heartbeat_once(gateway) == 0
        assert gateway.directory.is_online("u1")

    asyncio.run(scenario())
