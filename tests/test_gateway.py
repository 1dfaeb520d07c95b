from __future__ import annotations

import asyncio

import pytest

from conexa.auth.jwt import create_access_token
from conexa.services.connection_state import ConnectionState, transition
from conexa.services.gateway import CLOSE_BAD_TOKEN, CLOSE_NO_IDENTITY, CLOSE_SEND_FAILED, RealtimeGateway

from conftest import FakeWebSocket


def test_single_session_presence() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        ws = FakeWebSocket()
        conn = await gateway.admit(ws, "u1")
        assert conn is not None and conn.state == ConnectionState.ACTIVE
        assert gateway.directory.online_identities() == ["u1"]
        assert ws.events("presence-update")[-1]["data"] == ["u1"]

        await gateway.drop(conn)
        assert conn.state == ConnectionState.CLOSED
        assert gateway.directory.online_identities() == []
        assert gateway.connection_count == 0

    asyncio.run(scenario())


def test_multi_device_broadcasts_only_on_identity_transition() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        observer = FakeWebSocket()
        await gateway.admit(observer, "watcher")

        first_ws, second_ws = FakeWebSocket(), FakeWebSocket()
        c1 = await gateway.admit(first_ws, "u1")
        c2 = await gateway.admit(second_ws, "u1")
        updates = [frame["data"] for frame in observer.events("presence-update")]
        assert updates == [["watcher"], ["watcher", "u1"]]
        assert len(first_ws.events("presence-update")) == 1
        # the extra device still gets one snapshot of who is online
        assert [frame["data"] for frame in second_ws.events("presence-update")] == [["watcher", "u1"]]
        assert gateway.directory.online_identities() == ["watcher", "u1"]

        await gateway.drop(c1)
        assert gateway.directory.is_online("u1")
        assert len(observer.events("presence-update")) == 2

        await gateway.drop(c2)
        assert not gateway.directory.is_online("u1")
        assert observer.events("presence-update")[-1]["data"] == ["watcher"]

    asyncio.run(scenario())


@pytest.mark.parametrize("user_id", [None, "", "   ", "bad id!", "x" * 65])
def test_admission_refused_without_valid_identity(user_id) -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        ws = FakeWebSocket()
        assert await gateway.admit(ws, user_id) is None
        assert ws.closed_with == CLOSE_NO_IDENTITY
        assert ws.sent == []
        assert gateway.directory.online_identities() == []

    asyncio.run(scenario())


def test_token_must_match_identity() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        ws = FakeWebSocket()
        token = create_access_token({"sub": "someone-else"})
        assert await gateway.admit(ws, "u1", token) is None
        assert ws.closed_with == CLOSE_BAD_TOKEN

        ok = await gateway.admit(FakeWebSocket(), "u1", create_access_token({"sub": "u1"}))
        assert ok is not None

    asyncio.run(scenario())


def test_drop_unbinds_exactly_once() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        observer = FakeWebSocket()
        await gateway.admit(observer, "watcher")
        conn = await gateway.admit(FakeWebSocket(), "u1")
        before = len(observer.events("presence-update"))

        await gateway.drop(conn, code=4008)
        await gateway.drop(conn)
        await gateway.drop(conn, code=1000)

        assert len(observer.events("presence-update")) == before + 1
        assert conn.websocket.closed_with == 4008

    asyncio.run(scenario())


def test_dead_connection_is_dropped_on_failed_push() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        ws = FakeWebSocket()
        conn = await gateway.admit(ws, "u1")
        ws.fail = True
        delivered = await gateway.router.emit_to_identity("u1", "newMessage", {})
        assert delivered == 0
        assert conn.state == ConnectionState.CLOSED
        assert not gateway.directory.is_online("u1")
        assert ws.closed_with == CLOSE_SEND_FAILED

        # frames still buffered on the dropped socket are not dispatched
        ws.fail = False
        await gateway.dispatch(conn, {"event": "ping"})
        assert ws.events("pong") == []

    asyncio.run(scenario())


def test_messages_seen_goes_to_other_party_only() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        viewer_ws, other_ws, bystander_ws = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
        viewer = await gateway.admit(viewer_ws, "u1")
        await gateway.admit(other_ws, "u2")
        await gateway.admit(bystander_ws, "u3")

        await gateway.dispatch(
            viewer, {"event": "messages-seen", "data": {"userId": "u1", "selectedUserId": "u2"}}
        )

        assert other_ws.events("messages-seen")[0]["data"] == {"userId": "u1", "selectedUserId": "u2"}
        assert viewer_ws.events("messages-seen") == []
        assert bystander_ws.events("messages-seen") == []

        # spoofed viewer is ignored
        await gateway.dispatch(
            viewer, {"event": "messages-seen", "data": {"userId": "u3", "selectedUserId": "u2"}}
        )
        assert len(other_ws.events("messages-seen")) == 1

    asyncio.run(scenario())


def test_message_edited_relay_reaches_both_parties() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        sender_ws, receiver_ws = FakeWebSocket(), FakeWebSocket()
        sender = await gateway.admit(sender_ws, "u1")
        await gateway.admit(receiver_ws, "u2")
        notice = {
            "messageId": "m1",
            "newMessage": "edited",
            "editedAt": "2025-01-01T00:00:00Z",
            "isEdited": True,
            "senderId": "u1",
            "receiverId": "u2",
        }
        await gateway.dispatch(sender, {"event": "message-edited", "data": notice})
        for ws in (sender_ws, receiver_ws):
            data = ws.events("message-edited")[0]["data"]
            assert data["messageId"] == "m1"
            assert data["newMessage"] == "edited"
            assert data["receiverId"] == "u2"

    asyncio.run(scenario())


def test_join_ping_and_unknown_events() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        ws = FakeWebSocket()
        conn = await gateway.admit(ws, "u2")
        await gateway.dispatch(conn, {"event": "join", "data": "u1"})
        assert conn in gateway.directory.room_connections("u1")

        await gateway.dispatch(conn, {"event": "ping"})
        assert ws.events("pong")

        before = len(ws.sent)
        await gateway.dispatch(conn, {"event": "no-such-event", "data": {}})
        await gateway.dispatch(conn, ["not", "a", "frame"])
        await gateway.dispatch(conn, {"event": "join", "data": {"room": 1}})
        assert len(ws.sent) == before

    asyncio.run(scenario())


def test_custom_inbound_handler() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        seen: list[tuple[str | None, object]] = []

        @gateway.on("typing")
        async def on_typing(conn, data) -> None:
            seen.append((conn.identity, data))

        conn = await gateway.admit(FakeWebSocket(), "u1")
        await gateway.dispatch(conn, {"event": "typing", "data": {"to": "u2"}})
        assert seen == [("u1", {"to": "u2"})]

    asyncio.run(scenario())


def test_stale_connections_respect_timeout() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway(heartbeat_timeout=30)
        conn = await gateway.admit(FakeWebSocket(), "u1")
        assert gateway.stale_connections(now=conn.last_seen + 10) == []
        assert gateway.stale_connections(now=conn.last_seen + 31) == [conn]
        assert RealtimeGateway(heartbeat_timeout=0).stale_connections() == []

    asyncio.run(scenario())


def test_invalid_transitions_raise() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        conn = await gateway.admit(FakeWebSocket(), "u1")
        with pytest.raises(ValueError):
            transition(conn, ConnectionState.IDENTIFIED)
        await gateway.drop(conn)
        with pytest.raises(ValueError):
            transition(conn, ConnectionState.ACTIVE)

    asyncio.run(scenario())


def test_failed_snapshot_to_extra_device_drops_only_that_device() -> None:
    async def scenario() -> None:
        gateway = RealtimeGateway()
        first_ws = FakeWebSocket()
        first = await gateway.admit(first_ws, "u1")
        dead_ws = FakeWebSocket(fail=True)
        assert await gateway.admit(dead_ws, "u1") is None
        assert dead_ws.closed_with == CLOSE_SEND_FAILED
        assert gateway.directory.connections_for("u1") == {first}
        assert len(first_ws.events("presence-update")) == 1

    asyncio.run(scenario())
