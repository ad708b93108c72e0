"""
Unit tests for the Redis-backed customer cache.
"""
from unittest.mock import AsyncMock, MagicMock

import msgpack
import pytest

from internal.infrastructure.redis import CustomerCacheService, RedisCache


@pytest.fixture
def redis_client():
    """In-memory stand-in for redis.asyncio.Redis."""
    store: dict[str, bytes] = {}
    client = MagicMock()

    async def get(key):
        return store.get(key)

    async def setex(key, seconds, data):
        store[key] = data
        return True

    async def delete(key):
        return 1 if store.pop(key, None) is not None else 0

    client.get = AsyncMock(side_effect=get)
    client.setex = AsyncMock(side_effect=setex)
    client.delete = AsyncMock(side_effect=delete)
    client.ping = AsyncMock(return_value=True)
    client.store = store
    return client


@pytest.fixture
def cache(redis_client) -> RedisCache:
    return RedisCache("redis://test", default_ttl=60, client=redis_client)


@pytest.fixture
def customer_cache(cache) -> CustomerCacheService:
    return CustomerCacheService(cache, ttl=120)


class TestRedisCache:
    """Tests for the generic cache."""

    @pytest.mark.asyncio
    async def test_values_are_msgpack_encoded(self, cache, redis_client):
        assert await cache.set("k", {"a": 1}) is True
        assert msgpack.unpackb(redis_client.store["k"], raw=False) == {"a": 1}
        assert redis_client.setex.await_args.args[1] == 60

    @pytest.mark.asyncio
    async def test_get_miss(self, cache):
        assert await cache.get("absent") is None

    @pytest.mark.asyncio
    async def test_errors_degrade_to_miss(self, cache, redis_client):
        redis_client.get.side_effect = ConnectionError("down")
        redis_client.setex.side_effect = ConnectionError("down")

        assert await cache.get("k") is None
        assert await cache.set("k", {"a": 1}) is False

    @pytest.mark.asyncio
    async def test_disconnected_cache_is_a_noop(self):
        cache = RedisCache("redis://test")
        assert await cache.get("k") is None
        assert await cache.set("k", {}) is False
        assert await cache.delete("k") is False
        assert await cache.ping() is False

    @pytest.mark.asyncio
    async def test_jitter_extends_ttl(self, redis_client):
        cache = RedisCache("redis://test", default_ttl=60, max_jitter=5, client=redis_client)
        await cache.set("k", {})
        assert 60 <= redis_client.setex.await_args.args[1] <= 65


class TestCustomerCacheService:
    """Tests for customer snapshots."""

    @pytest.mark.asyncio
    async def test_roundtrip(self, customer_cache, personal_customer, redis_client):
        assert await customer_cache.set_customer(personal_customer) is True
        assert "customer:c-1" in redis_client.store
        assert redis_client.setex.await_args.args[1] == 120

        cached = await customer_cache.get_customer("c-1")
        assert cached == personal_customer

    @pytest.mark.asyncio
    async def test_customer_without_id_is_not_cached(self, customer_cache, personal_customer, redis_client):
        personal_customer.id = None
        assert await customer_cache.set_customer(personal_customer) is False
        assert redis_client.store == {}

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_a_miss(self, customer_cache, redis_client):
        redis_client.store["customer:c-9"] = msgpack.packb({"customerType": "ALIEN"}, use_bin_type=True)
        assert await customer_cache.get_customer("c-9") is None

    @pytest.mark.asyncio
    async def test_evict(self, customer_cache, personal_customer):
        await customer_cache.set_customer(personal_customer)
        assert await customer_cache.evict_customer("c-1") is True
        assert await customer_cache.get_customer("c-1") is None
        assert await customer_cache.evict_customer("c-1") is False
