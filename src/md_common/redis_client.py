"""Redis client factory — transport for the order push channel.

The Order Store service publishes insert/update events through this pool;
dealer and client queues subscribe to their per-party topics.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


def dealer_topic(dealer_id: str) -> str:
    return f"{settings.PUSH_CHANNEL_PREFIX}:dealer:{dealer_id}"


def client_topic(client_id: str) -> str:
    return f"{settings.PUSH_CHANNEL_PREFIX}:client:{client_id}"
