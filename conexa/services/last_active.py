"""Ephemeral last-active timestamps in Redis (TTL, no history)."""
from datetime import datetime
from typing import Any

from conexa.config import settings


def _key(user_id: str) -> str:
    return f"user:{user_id}:last_active"


async def set_last_active(redis: Any, user_id: str, at: datetime) -> None:
    await redis.setex(_key(user_id), settings.LAST_ACTIVE_TTL_SECONDS, at.isoformat())


async def get_last_active(redis: Any, user_id: str) -> datetime | None:
    """Return the stored timestamp, or None once the key has expired."""
    raw = await redis.get(_key(user_id))
    if not raw:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return datetime.fromisoformat(raw)
