"""Tests for the Redis check-in status cache."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from daily_checkin.services.cache import StatusCache

DAY = date(2024, 3, 10)


@pytest.fixture
def redis():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    return client


class TestStatusCache:

    def test_key_format(self):
        assert StatusCache.key("user-1", DAY) == "checkin:status:user-1:2024-03-10"

    @pytest.mark.asyncio
    async def test_disabled_without_client(self):
        cache = StatusCache(None)

        assert await cache.get("user-1", DAY) is None
        await cache.set("user-1", DAY, {"checked_in": True})
        await cache.invalidate("user-1", DAY)

    @pytest.mark.asyncio
    async def test_set_then_get(self, redis):
        cache = StatusCache(redis, ttl=120)

        await cache.set("user-1", DAY, {"checked_in": True, "amount": "1.10"})
        key, ttl, payload = redis.setex.await_args.args
        redis.get.return_value = payload.encode()

        assert key == "checkin:status:user-1:2024-03-10"
        assert ttl == 120
        assert await cache.get("user-1", DAY) == {"checked_in": True, "amount": "1.10"}

    @pytest.mark.asyncio
    async def test_miss(self, redis):
        assert await StatusCache(redis).get("user-1", DAY) is None

    @pytest.mark.asyncio
    async def test_redis_errors_are_misses(self, redis):
        """Should treat an unreachable Redis as an empty cache."""
        redis.get.side_effect = RedisConnectionError("down")
        redis.setex.side_effect = RedisConnectionError("down")
        redis.delete.side_effect = RedisConnectionError("down")
        cache = StatusCache(redis)

        assert await cache.get("user-1", DAY) is None
        await cache.set("user-1", DAY, {"checked_in": False})
        await cache.invalidate("user-1", DAY)

    @pytest.mark.asyncio
    async def test_invalidate(self, redis):
        await StatusCache(redis).invalidate("user-1", DAY)

        redis.delete.assert_awaited_once_with("checkin:status:user-1:2024-03-10")

    @pytest.mark.asyncio
    async def test_explicit_ttl(self, redis):
        cache = StatusCache(redis, ttl=120, unchecked_ttl=300)

        await cache.set("user-1", DAY, {"checked_in": False}, ttl=cache.unchecked_ttl)

        _key, ttl, _payload = redis.setex.await_args.args
        assert ttl == 120
