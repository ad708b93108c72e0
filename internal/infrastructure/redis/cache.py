"""
Redis Cache implementation.

Backing store for the customer Cache-Aside read path.
"""
import random
from typing import Optional

import msgpack
import redis.asyncio as aioredis
from redis.asyncio import Redis

from internal.domain.customer import Customer
from internal.domain.errors import DomainValidationError
from internal.infrastructure.metrics import CACHE_LOOKUPS
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


# Default TTL in seconds (1 hour)
DEFAULT_TTL = 3600
# Jitter is off unless configured
MAX_JITTER = 0


class RedisCache:
    """
    Redis key-value cache with TTL.

    Values are msgpack-encoded dicts. Every operation degrades to a miss or
    a no-op when Redis is unreachable; cache trouble is logged, never raised.
    """

    def __init__(
        self,
        redis_url: str,
        default_ttl: int = DEFAULT_TTL,
        max_jitter: int = MAX_JITTER,
        client: Optional[Redis] = None,
    ) -> None:
        """
        Initialize the Redis cache.

        Args:
            redis_url: Redis connection URL.
            default_ttl: Default TTL in seconds.
            max_jitter: Maximum random seconds added to each TTL.
            client: Pre-built client, mostly for tests.
        """
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._max_jitter = max_jitter
        self._redis: Optional[Redis] = client

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = aioredis.from_url(
            self._redis_url,
            encoding=None,  # We use binary for msgpack
            decode_responses=False,
        )
        await self._redis.ping()
        logger.info("Connected to Redis", url=self._redis_url)

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    async def ping(self) -> bool:
        """Whether Redis answers."""
        if not self._redis:
            return False
        try:
            return bool(await self._redis.ping())
        except Exception as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    def _ttl(self, ttl: Optional[int] = None) -> int:
        base_ttl = ttl or self._default_ttl
        if self._max_jitter <= 0:
            return base_ttl
        return base_ttl + random.randint(0, self._max_jitter)

    async def get(self, key: str) -> Optional[dict]:
        """
        Get a value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value as dict, or None if not found.
        """
        if not self._redis:
            logger.warning("Redis not connected, cache miss")
            return None

        try:
            data = await self._redis.get(key)
            if data is None:
                logger.debug("Cache miss", key=key)
                return None

            value = msgpack.unpackb(data, raw=False)
            logger.debug("Cache hit", key=key)
            return value
        except Exception as e:
            logger.error("Cache get error", key=key, error=str(e))
            return None

    async def set(
        self,
        key: str,
        value: dict,
        ttl: Optional[int] = None,
    ) -> bool:
        """
        Set a value in cache with TTL.

        Args:
            key: Cache key.
            value: Value to cache (must be dict).
            ttl: TTL in seconds. Uses the default if not provided.

        Returns:
            True if successful, False otherwise.
        """
        if not self._redis:
            logger.warning("Redis not connected, skipping cache set")
            return False

        try:
            data = msgpack.packb(value, use_bin_type=True, default=str)
            seconds = self._ttl(ttl)
            await self._redis.setex(key, seconds, data)
            logger.debug("Cache set", key=key, ttl=seconds)
            return True
        except Exception as e:
            logger.error("Cache set error", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Args:
            key: Cache key to remove.

        Returns:
            True if the key existed, False otherwise.
        """
        if not self._redis:
            return False

        try:
            deleted = await self._redis.delete(key)
            logger.debug("Cache invalidated", key=key, deleted=deleted)
            return deleted > 0
        except Exception as e:
            logger.error("Cache invalidate error", key=key, error=str(e))
            return False


class CustomerCacheService:
    """
    Customer-specific cache operations.

    Entries are full customer snapshots keyed by customer id.
    """

    def __init__(self, cache: RedisCache, ttl: Optional[int] = None) -> None:
        """
        Initialize the customer cache service.

        Args:
            cache: RedisCache instance.
            ttl: Entry TTL in seconds; the cache default when omitted.
        """
        self._cache = cache
        self._ttl = ttl

    @staticmethod
    def _customer_key(customer_id: str) -> str:
        return f"customer:{customer_id}"

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        """
        Get a customer snapshot.

        Args:
            customer_id: Customer identifier.

        Returns:
            The cached customer, or None on miss or unreadable entry.
        """
        data = await self._cache.get(self._customer_key(customer_id))
        if data is None:
            CACHE_LOOKUPS.labels(result="miss").inc()
            return None

        try:
            customer = Customer.from_dict(data)
        except (DomainValidationError, AttributeError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry", customer_id=customer_id, error=str(e))
            CACHE_LOOKUPS.labels(result="miss").inc()
            return None

        CACHE_LOOKUPS.labels(result="hit").inc()
        return customer

    async def set_customer(self, customer: Customer) -> bool:
        """
        Cache a customer snapshot.

        Args:
            customer: Persisted customer (must have an id).

        Returns:
            True if successful.
        """
        if customer.id is None:
            return False
        return await self._cache.set(
            self._customer_key(customer.id),
            customer.to_dict(),
            ttl=self._ttl,
        )

    async def evict_customer(self, customer_id: str) -> bool:
        """
        Drop a customer snapshot.

        Args:
            customer_id: Customer identifier.

        Returns:
            True if an entry was removed.
        """
        return await self._cache.delete(self._customer_key(customer_id))
