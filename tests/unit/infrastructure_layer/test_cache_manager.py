"""
Unit Tests for CacheService

Tests the two-tier strategy (external + fallback): tier selection, degradation
when the external tier is unavailable, and serialization.
"""

from unittest.mock import MagicMock

import orjson
import pytest

from bookshare.core.config.constants import ExternalCacheState
from bookshare.infrastructure.cache.cache_manager import CacheService
from bookshare.infrastructure.cache.memory_store import BoundedCacheStore
from bookshare.infrastructure.cache.redis_client import ExternalCacheClient
from bookshare.infrastructure.monitoring.metrics_collector import MetricsCollector
from tests.test_fixtures import CacheTestFactory, FakeExternalCache, FakeRedis

PAYLOAD = {"items": [{"id": "b1", "title": "Dune"}], "pagination": {"page": 1}}


@pytest.mark.unit
class TestConnectedExternalTier:
    @pytest.mark.asyncio
    async def test_miss_in_both_tiers(self, cache_service):
        assert await cache_service.get("books:1:12::::::") is None

    @pytest.mark.asyncio
    async def test_set_writes_both_tiers_as_json(self, cache_service, fake_external, fallback_store):
        await cache_service.set("k", PAYLOAD, 60)

        assert orjson.loads(fake_external.data["k"]) == PAYLOAD
        assert orjson.loads(fallback_store.read("k")) == PAYLOAD

    @pytest.mark.asyncio
    async def test_external_hit_is_served_first(self, cache_service, fake_external, fallback_store):
        fake_external.data["k"] = orjson.dumps({"from": "external"}).decode()
        fallback_store.write("k", orjson.dumps({"from": "fallback"}).decode(), 60)

        assert await cache_service.get("k") == {"from": "external"}

    @pytest.mark.asyncio
    async def test_external_miss_falls_back(self, cache_service, fallback_store):
        fallback_store.write("k", orjson.dumps(PAYLOAD).decode(), 60)

        assert await cache_service.get("k") == PAYLOAD

    @pytest.mark.asyncio
    async def test_hits_return_independent_copies(self, cache_service):
        await cache_service.set("k", PAYLOAD, 60)

        first = await cache_service.get("k")
        first["items"].clear()

        assert await cache_service.get("k") == PAYLOAD

    @pytest.mark.asyncio
    async def test_undecodable_external_value_falls_back(self, cache_service, fake_external):
        fake_external.data["k"] = "not json"

        assert await cache_service.get("k") is None
        assert cache_service.stats()["external_failures"] == 1

    @pytest.mark.asyncio
    async def test_default_ttl_used_when_omitted(self, fake_clock):
        fallback = BoundedCacheStore(10, clock=fake_clock)
        service = CacheService(FakeExternalCache(), fallback, default_ttl=5)

        await service.set("k", 1)
        fake_clock.advance(5)

        assert fallback.read("k") is None

    @pytest.mark.parametrize("ttl", [0, -1])
    @pytest.mark.asyncio
    async def test_non_positive_ttl_stores_nothing(
        self, cache_service, fake_external, fallback_store, ttl
    ):
        await cache_service.set("k", {"old": True}, 60)

        await cache_service.set("k", PAYLOAD, ttl)

        assert "k" not in fake_external.data
        assert fallback_store.read("k") is None
        assert await cache_service.get("k") is None

    @pytest.mark.asyncio
    async def test_zero_ttl_skips_redis_write(self, fake_clock):
        handle = FakeRedis()
        external = ExternalCacheClient(
            "redis://localhost:6379/0",
            connect_timeout=0.5,
            factory=CacheTestFactory.redis_factory(handle),
        )
        await external.connect()
        service = CacheService(external, BoundedCacheStore(10, clock=fake_clock))

        await service.set("k", {"a": 1}, ttl_seconds=0)

        assert [call for call in handle.calls if call[0] == "set"] == []
        assert "k" not in handle.data
        assert await service.get("k") is None

    @pytest.mark.asyncio
    async def test_non_serializable_value_raises(self, cache_service):
        with pytest.raises(TypeError):
            await cache_service.set("k", object(), 60)


@pytest.mark.unit
class TestFallbackTransparency:
    """A failed or disabled external tier is invisible to callers."""

    @pytest.mark.parametrize(
        "state", [ExternalCacheState.FAILED, ExternalCacheState.DISABLED]
    )
    @pytest.mark.asyncio
    async def test_round_trip_through_fallback(self, fake_clock, state):
        external = FakeExternalCache(state=state)
        service = CacheService(external, BoundedCacheStore(100, clock=fake_clock))

        await service.set("books:1:12::::::", PAYLOAD, 60)

        assert external.data == {}
        assert await service.get("books:1:12::::::") == PAYLOAD

    @pytest.mark.asyncio
    async def test_broken_connection_degrades(self, fake_clock):
        external = FakeExternalCache()
        external.broken = True
        metrics = MagicMock(spec=MetricsCollector)
        service = CacheService(external, BoundedCacheStore(100, clock=fake_clock), metrics=metrics)

        await service.set("k", PAYLOAD, 60)
        value = await service.get("k")

        assert value == PAYLOAD
        assert service.stats()["external_failures"] == 2
        metrics.record_external_cache_failure.assert_any_call("set")
        metrics.record_external_cache_failure.assert_any_call("get")

    @pytest.mark.asyncio
    async def test_unavailable_is_not_counted_as_failure(self, fake_clock):
        service = CacheService(
            CacheTestFactory.failed_external_cache(), BoundedCacheStore(100, clock=fake_clock)
        )

        await service.set("k", 1, 60)
        await service.get("k")

        assert service.stats()["external_failures"] == 0

    @pytest.mark.asyncio
    async def test_fallback_entries_expire(self, fake_clock):
        service = CacheService(
            CacheTestFactory.failed_external_cache(), BoundedCacheStore(100, clock=fake_clock)
        )
        await service.set("k", PAYLOAD, 60)

        fake_clock.advance(59)
        assert await service.get("k") == PAYLOAD

        fake_clock.advance(1)
        assert await service.get("k") is None


@pytest.mark.unit
class TestInvalidation:
    @pytest.mark.asyncio
    async def test_delete_both_tiers(self, cache_service, fake_external, fallback_store):
        await cache_service.set("k", 1, 60)

        await cache_service.delete("k")

        assert "k" not in fake_external.data
        assert fallback_store.read("k") is None

    @pytest.mark.asyncio
    async def test_delete_prefix(self, cache_service, fake_external, fallback_store):
        await cache_service.set("books:1:12::::::", 1, 60)
        await cache_service.set("books:2:12::::::", 2, 60)
        await cache_service.set("user:abc", 3, 60)

        removed = await cache_service.delete_prefix("books:")

        assert removed == 2
        assert list(fake_external.data) == ["user:abc"]
        assert fallback_store.get_keys() == ["user:abc"]


@pytest.mark.unit
class TestMonitoring:
    @pytest.mark.asyncio
    async def test_stats_count_hits_per_tier(self, cache_service, fake_external, fallback_store):
        await cache_service.set("k", 1, 60)
        await cache_service.get("k")
        fallback_store.write("only-local", "2", 60)
        await cache_service.get("only-local")
        await cache_service.get("missing")

        stats = cache_service.stats()

        assert stats["external_hits"] == 1
        assert stats["fallback_hits"] == 1
        assert stats["misses"] == 1
        assert stats["external_state"] == "connected"
        assert stats["fallback_max_size"] == 100

    @pytest.mark.asyncio
    async def test_health_healthy_when_connected(self, cache_service):
        health = await cache_service.health_check()

        assert health["status"] == "healthy"
        assert health["fallback"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_degraded_without_external(self, fake_clock):
        service = CacheService(
            CacheTestFactory.failed_external_cache(), BoundedCacheStore(100, clock=fake_clock)
        )

        assert (await service.health_check())["status"] == "degraded"
