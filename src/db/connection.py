"""
Redis connection module.
Provides the singleton async Redis client used by the preference store.
"""

import redis.asyncio as aioredis

from src.utils.config import get_settings

_redis_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    """Return the singleton async Redis client."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


async def ping_redis() -> bool:
    """Check Redis connectivity. Returns False instead of raising."""
    try:
        return bool(await get_redis().ping())
    except aioredis.RedisError:
        return False


async def close_redis() -> None:
    """Close Redis on shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
