"""
Rate Limiting

Sliding-window limiter backed by Redis sorted sets, with an in-process
fallback when Redis is unavailable. Exposed to routes as a dependency:

    @router.post("/login", dependencies=[Depends(ip_rate_limit("login", 5, 900))])
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from app.core.redis import get_redis

logger = logging.getLogger(__name__)

# Fallback storage: {key: [timestamps]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Maximum {limit} per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _hit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {f"{now:.6f}": now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _hit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Single-process fallback; counters are not shared between workers."""
    now = time.time()
    hits = [ts for ts in _memory_store.get(key, []) if ts > now - window_seconds]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Record a hit for `key` and report whether it is within the limit.

    Args:
        key: Unique key for this limit (e.g. "login:203.0.113.7")
        limit: Maximum requests allowed in the window
        window_seconds: Window length in seconds

    Returns:
        True if the request is allowed
    """
    client = get_redis()

    if client is not None:
        try:
            return await _hit_redis(client, f"rate_limit:{key}", limit, window_seconds)
        except RedisError as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _hit_memory(key, limit, window_seconds)


def client_ip(request: Request) -> str:
    """Client address, honouring X-Forwarded-For behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def ip_rate_limit(
    scope: str,
    limit: int,
    window_seconds: int,
) -> Callable[[Request], Awaitable[None]]:
    """Build a dependency that limits requests per client IP for one scope."""

    async def dependency(request: Request) -> None:
        key = f"{scope}:{client_ip(request)}"
        if not await check_rate_limit(key, limit, window_seconds):
            logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
            raise RateLimitExceeded(limit, window_seconds)

    return dependency


def reset_memory_store() -> None:
    """Clear the in-process counters."""
    _memory_store.clear()


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "client_ip",
    "ip_rate_limit",
    "reset_memory_store",
]
