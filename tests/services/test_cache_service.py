"""read_through(): hit/miss accounting and Redis failure fallback."""

from __future__ import annotations

import asyncio

from prometheus_client import REGISTRY
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace.services.cache import InMemoryCacheService, invalidate, read_through


def _cache_ops(operation: str) -> float:
    value = REGISTRY.get_sample_value(
        "cache_operations_total", {"operation": operation}
    )
    return value or 0.0


class _BrokenCache:
    """Behaves like RedisCacheService with the server down."""

    async def get(self, key: str) -> str | None:
        raise RedisConnectionError("connection refused")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise RedisConnectionError("connection refused")

    async def delete(self, key: str) -> None:
        raise RedisConnectionError("connection refused")


def test_miss_loads_then_hit_skips_loader() -> None:
    cache = InMemoryCacheService()
    calls: list[int] = []

    async def loader() -> str:
        calls.append(1)
        return '{"v": 1}'

    hits_before = _cache_ops("hit")
    misses_before = _cache_ops("miss")

    first = asyncio.run(read_through(cache, "k", loader))
    second = asyncio.run(read_through(cache, "k", loader))

    assert first == second == '{"v": 1}'
    assert len(calls) == 1
    assert _cache_ops("miss") == misses_before + 1
    assert _cache_ops("hit") == hits_before + 1


def test_invalidate_forces_reload() -> None:
    cache = InMemoryCacheService()
    values = iter(["a", "b"])

    async def loader() -> str:
        return next(values)

    assert asyncio.run(read_through(cache, "k", loader)) == "a"
    asyncio.run(invalidate(cache, "k"))
    assert asyncio.run(read_through(cache, "k", loader)) == "b"


def test_redis_outage_falls_back_to_loader() -> None:
    async def loader() -> str:
        return "fresh"

    assert asyncio.run(read_through(_BrokenCache(), "k", loader)) == "fresh"
    # Invalidation failures are logged, not raised.
    asyncio.run(invalidate(_BrokenCache(), "k"))
