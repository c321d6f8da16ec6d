"""Tests for the Redis JSON cache, the activity feed and request metrics."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.middleware import RequestMetrics
from app.core.redis import (
    ACTIVITY_LOG_KEY,
    cache_get_json,
    cache_invalidate,
    cache_set_json,
    record_activity,
)


def redis_client(client: AsyncMock) -> MagicMock:
    """Stand-in for ``aioredis.Redis`` used as an async context manager."""
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = client
    factory.return_value.__aexit__.return_value = False
    return factory


class TestJsonCache:
    """Cache reads and writes."""

    @pytest.mark.asyncio
    async def test_hit(self):
        client = AsyncMock()
        client.get.return_value = json.dumps({"a": 1})

        with patch("app.core.redis.aioredis.Redis", redis_client(client)):
            assert await cache_get_json("cache:x") == {"a": 1}

    @pytest.mark.asyncio
    async def test_miss(self):
        client = AsyncMock()
        client.get.return_value = None

        with patch("app.core.redis.aioredis.Redis", redis_client(client)):
            assert await cache_get_json("cache:x") is None

    @pytest.mark.asyncio
    async def test_redis_outage_is_a_miss(self):
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("down")

        with patch("app.core.redis.aioredis.Redis", redis_client(client)):
            assert await cache_get_json("cache:x") is None

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self):
        client = AsyncMock()

        with patch("app.core.redis.aioredis.Redis", redis_client(client)):
            await cache_set_json("cache:x", {"a": 1}, 60)

        client.setex.assert_awaited_once_with("cache:x", 60, json.dumps({"a": 1}))

    @pytest.mark.asyncio
    async def test_invalidate_counts_deleted_keys(self):
        async def keys(match):
            for key in ("cache:community:1", "cache:community:2"):
                yield key

        client = MagicMock()
        client.scan_iter = keys
        client.delete = AsyncMock(return_value=1)

        with patch("app.core.redis.aioredis.Redis", redis_client(client)):
            assert await cache_invalidate("cache:community:") == 2


class TestActivityFeed:
    @pytest.mark.asyncio
    async def test_record_activity_trims_list(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock()
        client = MagicMock()
        client.pipeline.return_value = pipe

        with patch("app.core.redis.aioredis.Redis", redis_client(client)):
            await record_activity({"path": "/v1/readings"})

        pipe.lpush.assert_called_once()
        assert pipe.lpush.call_args.args[0] == ACTIVITY_LOG_KEY
        pipe.ltrim.assert_called_once()
        pipe.execute.assert_awaited_once()


class TestRequestMetrics:
    """Per-route counters."""

    def test_snapshot(self):
        metrics = RequestMetrics()
        metrics.observe("GET /v1/home", 10.0, 200)
        metrics.observe("GET /v1/home", 30.0, 500)

        snapshot = metrics.snapshot()
        route = snapshot["routes"]["GET /v1/home"]

        assert snapshot["total_requests"] == 2
        assert snapshot["total_errors"] == 1
        assert route == {"count": 2, "errors": 1, "avg_ms": 20.0, "max_ms": 30.0}

    def test_reset(self):
        metrics = RequestMetrics()
        metrics.observe("GET /v1/home", 10.0, 200)
        metrics.reset()
        assert metrics.snapshot()["total_requests"] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
