"""Redis connection — used for rate limiting only.

Learn: One process-wide client, opened in the app lifespan and closed
on shutdown. When Redis is down the client stays None and callers
(the rate limiter) fall through.
"""

from typing import Optional

import redis.asyncio as aioredis

from taskboard.config import settings

# Global Redis client (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Connect and ping. Raises if Redis is unreachable."""
    global _redis
    client = aioredis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> Optional[aioredis.Redis]:
    """The shared client, or None when Redis was not available at startup."""
    return _redis
