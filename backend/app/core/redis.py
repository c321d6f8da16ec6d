"""Redis client for response caching and the activity feed."""

import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

async_redis_pool = aioredis.ConnectionPool.from_url(
    str(settings.redis_url),
    decode_responses=True,
)


async def close_redis_pool() -> None:
    """Close the Redis connection pool on shutdown."""
    await async_redis_pool.disconnect()


async def check_redis() -> bool:
    """Ping Redis to verify it is reachable."""
    async with aioredis.Redis(connection_pool=async_redis_pool) as client:
        return bool(await client.ping())


# =============================================================================
# JSON response cache
# =============================================================================

CACHE_PREFIX = "cache:"
CACHE_SERVICES_KEY = f"{CACHE_PREFIX}payments:services"
CACHE_HOME_KEY = f"{CACHE_PREFIX}home"
CACHE_COMMUNITY_PREFIX = f"{CACHE_PREFIX}community:"
CACHE_HEXAGRAM_PREFIX = f"{CACHE_PREFIX}iching:hexagram:"


async def cache_get_json(key: str) -> Any | None:
    """Return the cached JSON value for key, or None on miss.

    Cache failures are logged and treated as a miss so that a Redis outage
    degrades to uncached responses.
    """
    try:
        async with aioredis.Redis(connection_pool=async_redis_pool) as client:
            raw = await client.get(key)
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None
    if raw is None:
        return None
    return json.loads(str(raw))


async def cache_set_json(key: str, value: Any, ttl_seconds: int) -> None:
    """Store a JSON-serializable value with a TTL."""
    try:
        async with aioredis.Redis(connection_pool=async_redis_pool) as client:
            await client.setex(key, ttl_seconds, json.dumps(value, default=str))
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")


async def cache_invalidate(prefix: str) -> int:
    """Delete every cached key starting with prefix. Returns the count."""
    deleted = 0
    try:
        async with aioredis.Redis(connection_pool=async_redis_pool) as client:
            async for key in client.scan_iter(match=f"{prefix}*"):
                deleted += await client.delete(key)
    except RedisError as e:
        logger.warning(f"Cache invalidation failed for {prefix}: {e}")
    return deleted


# =============================================================================
# Activity feed
# =============================================================================

ACTIVITY_LOG_KEY = "analytics:activity"


async def record_activity(entry: dict[str, Any]) -> None:
    """Push an activity entry and trim the list to the configured size."""
    try:
        async with aioredis.Redis(connection_pool=async_redis_pool) as client:
            pipe = client.pipeline()
            pipe.lpush(ACTIVITY_LOG_KEY, json.dumps(entry, default=str))
            pipe.ltrim(ACTIVITY_LOG_KEY, 0, settings.activity_log_max_entries - 1)
            await pipe.execute()
    except RedisError as e:
        logger.warning(f"Failed to record activity: {e}")


async def get_recent_activity(limit: int = 50) -> list[dict[str, Any]]:
    """Return the newest activity entries, newest first."""
    async with aioredis.Redis(connection_pool=async_redis_pool) as client:
        rows = await client.lrange(ACTIVITY_LOG_KEY, 0, limit - 1)
    return [json.loads(str(row)) for row in rows]
