"""
Unit tests for the response cache.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from query_gateway.core.config import GatewayOptions
from query_gateway.services.cache import ResponseCache


class TestResponseCache:
    """Test cases for ResponseCache."""

    def test_key_independent_of_param_order(self):
        assert ResponseCache.make_key("marketmakers", {"a": 1, "b": 2}) == \
            ResponseCache.make_key("marketmakers", {"b": 2, "a": 1})

    def test_key_includes_route(self):
        assert ResponseCache.make_key("a", {}) != ResponseCache.make_key("b", {})

    @pytest.mark.asyncio
    async def test_start_flushes_store(self, enabled_cache, mock_redis):
        await enabled_cache.start()
        mock_redis.flushdb.assert_awaited_once()
        assert enabled_cache.enabled

    @pytest.mark.asyncio
    async def test_lookup_after_start_is_a_miss(self, mock_redis):
        store = {"gateway:marketmakers:{}": json.dumps([1])}

        async def flushdb():
            store.clear()

        async def get(key):
            return store.get(key)

        mock_redis.flushdb = AsyncMock(side_effect=flushdb)
        mock_redis.get = AsyncMock(side_effect=get)
        cache = ResponseCache(GatewayOptions(cache_enabled=True, redis_url="redis://x:1/0"), client=mock_redis)

        await cache.start()

        assert await cache.get("gateway:marketmakers:{}") is None

    @pytest.mark.asyncio
    async def test_round_trip(self, enabled_cache, mock_redis):
        await enabled_cache.set("k", {"results": [1, 2]})
        payload = mock_redis.set.await_args.args[1]

        mock_redis.get = AsyncMock(return_value=payload)
        assert await enabled_cache.get("k") == {"results": [1, 2]}

    @pytest.mark.asyncio
    async def test_ttl_uses_setex(self, mock_redis):
        cache = ResponseCache(
            GatewayOptions(cache_enabled=True, redis_url="redis://x:1/0", cache_ttl=60),
            client=mock_redis,
        )
        await cache.set("k", "v")
        mock_redis.setex.assert_awaited_once_with("k", 60, json.dumps("v"))
        mock_redis.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_error_disables_cache(self, enabled_cache, mock_redis):
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("connection refused"))

        assert await enabled_cache.get("k") is None
        assert not enabled_cache.enabled

        await enabled_cache.set("k", "v")
        mock_redis.set.assert_not_awaited()
        assert mock_redis.get.await_count == 1

    @pytest.mark.asyncio
    async def test_flush_error_disables_cache(self, enabled_cache, mock_redis):
        mock_redis.flushdb = AsyncMock(side_effect=RedisConnectionError("down"))
        await enabled_cache.start()
        assert not enabled_cache.enabled

    @pytest.mark.asyncio
    async def test_disabled_cache_never_touches_store(self, mock_redis):
        cache = ResponseCache(GatewayOptions(cache_enabled=False), client=mock_redis)
        await cache.start()
        assert await cache.get("k") is None
        await cache.set("k", "v")
        mock_redis.flushdb.assert_not_awaited()
        mock_redis.get.assert_not_awaited()
        mock_redis.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalidate(self, enabled_cache, mock_redis):
        await enabled_cache.invalidate("k")
        mock_redis.delete.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, enabled_cache, mock_redis):
        mock_redis.get = AsyncMock(return_value=b"not json")
        assert await enabled_cache.get("k") is None
        assert enabled_cache.enabled

    @pytest.mark.asyncio
    async def test_unstarted_cache_passes_through(self):
        cache = ResponseCache(GatewayOptions(cache_enabled=True, redis_url="redis://localhost:6379/0"))
        assert await cache.get("k") is None
        await cache.set("k", "v")
        await cache.invalidate("k")
        assert cache.enabled

    @pytest.mark.asyncio
    async def test_health_check_pings_store(self, enabled_cache, mock_redis):
        assert await enabled_cache.health_check() is True
        mock_redis.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health_check_reports_store_errors(self, enabled_cache, mock_redis):
        mock_redis.ping = AsyncMock(side_effect=RedisConnectionError("down"))
        assert await enabled_cache.health_check() is False

    @pytest.mark.asyncio
    async def test_disabled_cache_is_not_healthy(self, disabled_cache):
        assert await disabled_cache.health_check() is False
