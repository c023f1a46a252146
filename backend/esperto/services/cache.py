"""
Redis Caching Service

Caches catalogue listings and today's offers to reduce database load.
Routes receive the service through the `get_cache` dependency.
Cache invalidation happens on:
- Catalogue writes (stores, products, prices)
- New daily offers and the offer cleanup job
- TTL expiration
"""
import json
import hashlib
from typing import Optional, Any
from datetime import timedelta
import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError

from esperto.config import get_settings

logger = logging.getLogger(__name__)

# Cache key prefixes
PREFIX_STORES = "stores:"
PREFIX_PRODUCTS = "products:"
PREFIX_OFFERS = "offers:"

# Default TTLs
TTL_CATALOGUE = timedelta(minutes=10)  # Stores/products change only on writes
TTL_OFFERS = timedelta(minutes=2)  # Offers arrive all day


class CacheService:
    """Redis-based caching service with fallback to no-cache."""

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client
        self._connected = client is not None

    async def connect(self):
        """Initialize Redis connection."""
        if self._connected:
            return

        try:
            settings = get_settings()
            self._client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            # Test connection
            await self._client.ping()
            self._connected = True
            logger.info("Redis cache connected")
        except (RedisConnectionError, OSError) as e:
            logger.warning(f"Redis not available, caching disabled: {e}")
            self._client = None
            self._connected = False

    async def disconnect(self):
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._connected = False

    def _make_key(self, prefix: str, params: dict) -> str:
        """Generate cache key from prefix and parameters."""
        # Sort params for consistent key generation
        param_str = json.dumps(params, sort_keys=True)
        hash_val = hashlib.md5(param_str.encode()).hexdigest()[:12]
        return f"{prefix}{hash_val}"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self._client:
            return None

        try:
            value = await self._client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Cache get error: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: timedelta = TTL_CATALOGUE):
        """Set value in cache with TTL."""
        if not self._client:
            return

        try:
            await self._client.setex(
                key,
                int(ttl.total_seconds()),
                json.dumps(value, default=str)
            )
        except Exception as e:
            logger.error(f"Cache set error: {e}")

    async def delete_pattern(self, pattern: str):
        """Delete all keys matching pattern."""
        if not self._client:
            return

        try:
            cursor = 0
            while True:
                cursor, keys = await self._client.scan(cursor, match=pattern, count=100)
                if keys:
                    await self._client.delete(*keys)
                if cursor == 0:
                    break
            logger.info(f"Cleared cache keys matching: {pattern}")
        except Exception as e:
            logger.error(f"Cache delete pattern error: {e}")

    # Convenience methods for specific cache operations

    async def get_stores(self) -> Optional[list]:
        return await self.get(f"{PREFIX_STORES}all")

    async def set_stores(self, data: list):
        await self.set(f"{PREFIX_STORES}all", data, TTL_CATALOGUE)

    async def get_products(self) -> Optional[list]:
        return await self.get(f"{PREFIX_PRODUCTS}all")

    async def set_products(self, data: list):
        await self.set(f"{PREFIX_PRODUCTS}all", data, TTL_CATALOGUE)

    async def invalidate_catalogue(self):
        """Invalidate store and product listings (prices are embedded in both)."""
        await self.delete_pattern(f"{PREFIX_STORES}*")
        await self.delete_pattern(f"{PREFIX_PRODUCTS}*")

    async def get_daily_offers(self, params: dict) -> Optional[list]:
        return await self.get(self._make_key(PREFIX_OFFERS, params))

    async def set_daily_offers(self, params: dict, data: list):
        await self.set(self._make_key(PREFIX_OFFERS, params), data, TTL_OFFERS)

    async def invalidate_offers(self):
        await self.delete_pattern(f"{PREFIX_OFFERS}*")

    @property
    def is_connected(self) -> bool:
        """Check if cache is available."""
        return self._connected


# Shared instance, connected in the application lifespan
cache = CacheService()


def get_cache() -> CacheService:
    """Dependency providing the cache service."""
    return cache
