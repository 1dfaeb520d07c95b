"""Redis async client; set in lifespan, used by the last-active store."""
import redis.asyncio as aioredis

_redis: aioredis.Redis | None = None


def set_redis(client: aioredis.Redis | None) -> None:
    global _redis
    _redis = client


async def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialized")
    return _redis
