"""
Redis Connection

Shared async client used by the rate limiter. Redis is optional outside
production: when it is down the limiter keeps counters in process memory.
"""

import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Connect to Redis and verify the connection with a PING."""
    global redis_client
    client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    await client.ping()
    redis_client = client
    return client


def get_redis() -> Redis | None:
    """Return the connected client, or None when Redis was not reachable at startup."""
    return redis_client


async def redis_status() -> str:
    """Report Redis health for the /health endpoint."""
    if redis_client is None:
        return "unavailable"
    try:
        await redis_client.ping()
        return "ok"
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return "error"


async def close_redis() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
