"""Tests for the Redis cache service."""

from unittest.mock import AsyncMock

import pytest
from fakeredis import FakeAsyncRedis

from esperto.services.cache import CacheService

pytestmark = pytest.mark.unit


@pytest.fixture
async def redis():
    fake_redis = FakeAsyncRedis(decode_responses=True)
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest.fixture
def cache(redis):
    return CacheService(client=redis)


async def test_set_and_get_round_trip(cache):
    await cache.set_stores([{"id": 1, "name": "Mercado A"}])

    assert await cache.get_stores() == [{"id": 1, "name": "Mercado A"}]


async def test_values_expire(cache, redis):
    await cache.set_products([{"id": 1}])

    ttl = await redis.ttl("products:all")
    assert 0 < ttl <= 600


async def test_offer_keys_depend_on_params(cache):
    await cache.set_daily_offers({"city": "Campinas", "state": "SP"}, [{"id": 1}])

    assert await cache.get_daily_offers({"state": "SP", "city": "Campinas"}) == [{"id": 1}]
    assert await cache.get_daily_offers({"city": "Recife", "state": "PE"}) is None


async def test_invalidate_catalogue_clears_stores_and_products(cache):
    await cache.set_stores([{"id": 1}])
    await cache.set_products([{"id": 2}])
    await cache.set_daily_offers({"city": None, "state": None}, [{"id": 3}])

    await cache.invalidate_catalogue()

    assert await cache.get_stores() is None
    assert await cache.get_products() is None
    assert await cache.get_daily_offers({"city": None, "state": None}) == [{"id": 3}]


async def test_disconnected_cache_is_a_no_op():
    cache = CacheService()

    await cache.set_stores([{"id": 1}])
    assert await cache.get_stores() is None
    assert cache.is_connected is False


async def test_redis_errors_are_swallowed():
    client = AsyncMock()
    client.get.side_effect = ConnectionError("redis went away")
    cache = CacheService(client=client)

    assert await cache.get_stores() is None
