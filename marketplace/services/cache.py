"""Read-through cache for derived reads.

A learner's course progress snapshot is cached.  The progress endpoint
drops the key once the write has committed; the TTL is the backstop.

  read:  cache -> hit  -> return
         cache -> miss -> loader() -> populate -> return
  write: aggregate -> commit -> delete key

A Redis failure degrades to an uncached read; it never fails a request.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable
from uuid import UUID

from redis.exceptions import RedisError

from marketplace.core.config import SETTINGS
from marketplace.core.metrics import CACHE_OPERATIONS
from marketplace.db.redis import redis_pool

logger = logging.getLogger(__name__)


def progress_key(user_id: UUID, course_id: UUID) -> str:
    return f"progress:{user_id}:{course_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryCacheService:
    """In-memory cache for dev and tests; TTL is not enforced."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisCacheService:
    """Redis-backed cache shared across all API instances."""

    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{key}")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")


async def read_through(
    cache: CacheService,
    key: str,
    loader: Callable[[], Awaitable[str]],
    ttl_seconds: int | None = None,
) -> str:
    """Return the cached string for `key`, or load, store and return it."""
    try:
        cached = await cache.get(key)
    except RedisError:
        logger.warning("Cache get failed for key=%s; reading through", key)
        cached = None

    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return cached

    CACHE_OPERATIONS.labels(operation="miss").inc()
    value = await loader()
    try:
        await cache.set(key, value, ttl_seconds or SETTINGS.cache_ttl_seconds)
    except RedisError:
        logger.warning("Cache set failed for key=%s", key)
    return value


async def invalidate(cache: CacheService, key: str) -> None:
    try:
        await cache.delete(key)
    except RedisError:
        # The TTL bounds how long the stale entry can live.
        logger.warning("Cache delete failed for key=%s", key)


if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
