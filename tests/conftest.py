from __future__ import annotations

import os
import tempfile
from typing import Any

import pytest

# Unit-test-safe configuration, applied before conexa.config is imported.
_DB_DIR = tempfile.mkdtemp(prefix="conexa-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/conexa.db"
os.environ["DATABASE_NULL_POOL"] = "true"
os.environ["RESET_DB"] = "true"
os.environ["WS_HEARTBEAT_TIMEOUT_SECONDS"] = "0"

from fastapi.testclient import TestClient  # noqa: E402


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the last-active store."""

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key: str, ttl: int, value: Any) -> None:
        self.store[key] = value.encode("utf-8") if isinstance(value, str) else value
        self.ttls[key] = ttl

    async def get(self, key: str) -> Any:
        return self.store.get(key)


class FakeWebSocket:
    """Records frames pushed by a Connection; can be told to fail like a dead socket."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed_with: int | None = None
        self.fail = fail

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket is dead")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def events(self, name: str | None = None) -> list[dict[str, Any]]:
        return [frame for frame in self.sent if name is None or frame["event"] == name]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def app(fake_redis: FakeRedis):
    from conexa.main import create_app
    from conexa.redis_client import get_redis

    application = create_app()
    application.dependency_overrides[get_redis] = lambda: fake_redis
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    """Register + login; returns (user_id, auth headers)."""

    def _make(username: str) -> tuple[str, dict[str, str]]:
        email = f"{username}@conexa.io"
        resp = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": "secret123"},
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["_id"]
        resp = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
        assert resp.status_code == 200, resp.text
        return user_id, {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _make


def receive_event(ws, name: str) -> dict[str, Any]:
    """Read frames from a TestClient websocket until one named `name` arrives."""
    while True:
        frame = ws.receive_json()
        if frame["event"] == name:
            return frame["data"]


def assert_no_pending_events(ws) -> None:
    """Frames are FIFO per connection: if the pong comes first, nothing else was queued."""
    ws.send_json({"event": "ping"})
    assert ws.receive_json()["event"] == "pong"
