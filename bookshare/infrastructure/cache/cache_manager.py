#!/usr/bin/env python3
"""
Two-Tier Cache Service

Architecture:
    CacheService (Public API)
        ├── ExternalCacheBackend (Redis, may be disabled or failed)
        ├── BoundedCacheStore (process-local fallback tier)
        └── CacheObserver (metrics & logging)

Policy:
    GET: external (when connected) -> fallback -> miss
    SET: fallback always, external additionally when connected
    DELETE: external best-effort, fallback always

Values are serialized with orjson once and stored as the same string in both
tiers, so every hit returns a fresh copy of the cached payload.

Cache failures never propagate: the external backend reports them as
CacheResult values and the service falls through to the fallback tier.
"""

from datetime import datetime, timezone
from typing import Any

import orjson

from bookshare.core.config.constants import CacheTier
from bookshare.core.interfaces.cache import CacheResult, ExternalCacheBackend
from bookshare.core.logging.logger import get_logger, log_stage
from bookshare.infrastructure.cache.memory_store import BoundedCacheStore
from bookshare.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 60


def _namespace(key: str) -> str:
    return key.split(":", 1)[0]


# =============================================================================
# OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Tracks cache performance counters and logs operations.

    Responsibility: All side effects (logging, metrics).

    Logging Strategy:
    - External hit: STAGE-2.1
    - Fallback hit: STAGE-2.2
    - Miss: STAGE-2.2
    - Set: STAGE-2.3
    - Delete: STAGE-2.4
    """

    def __init__(self, metrics: MetricsCollector | None = None, logger_instance=None):
        self._metrics = metrics
        self._logger = logger_instance or logger

        self._hits: dict[str, int] = {CacheTier.EXTERNAL.value: 0, CacheTier.FALLBACK.value: 0}
        self._misses = 0
        self._external_failures = 0

    def record_get(self, source: str | None, key: str) -> None:
        if source == CacheTier.EXTERNAL.value:
            self._hits[source] += 1
            log_stage(self._logger, "2.1", "External cache hit", level="debug", cache_key=key)
        elif source == CacheTier.FALLBACK.value:
            self._hits[source] += 1
            log_stage(self._logger, "2.2", "Fallback cache hit", level="debug", cache_key=key)
        else:
            self._misses += 1
            log_stage(self._logger, "2.2", "Cache miss", level="debug", cache_key=key)

        if self._metrics:
            if source:
                self._metrics.record_cache_hit(source)
            else:
                self._metrics.record_cache_miss(_namespace(key))

    def record_set(self, key: str, ttl: int) -> None:
        log_stage(self._logger, "2.3", "Cache set", level="debug", cache_key=key, ttl=ttl)

    def record_delete(self, key: str) -> None:
        log_stage(self._logger, "2.4", "Cache invalidated", level="debug", cache_key=key)

    def record_degraded(self, operation: str, key: str, result: CacheResult) -> None:
        """An external operation errored; the fallback tier served instead."""
        self._external_failures += 1
        log_stage(
            self._logger,
            "2.E",
            "External cache degraded to fallback",
            level="warning",
            operation=operation,
            cache_key=key,
            error=result.error,
        )
        if self._metrics:
            self._metrics.record_external_cache_failure(operation)

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache performance statistics.

        Returns:
            Dict with per-tier hits, misses and hit rate
        """
        hits = sum(self._hits.values())
        total = hits + self._misses
        return {
            "external_hits": self._hits[CacheTier.EXTERNAL.value],
            "fallback_hits": self._hits[CacheTier.FALLBACK.value],
            "misses": self._misses,
            "external_failures": self._external_failures,
            "total_requests": total,
            "hit_rate": round(hits / total, 3) if total > 0 else 0.0,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class CacheService:
    """
    Cache abstraction used by request handlers.

    Constructed once per application and injected; there is no module-level
    instance.

    Usage:
        cache = CacheService(ExternalCacheClient(url), BoundedCacheStore(100))

        payload = await cache.get(key)
        if payload is None:
            payload = await compute()
            await cache.set(key, payload, ttl_seconds=60)
    """

    def __init__(
        self,
        external: ExternalCacheBackend,
        fallback: BoundedCacheStore,
        metrics: MetricsCollector | None = None,
        default_ttl: int = DEFAULT_TTL_SECONDS,
    ):
        """
        STAGE-2.0: Cache service initialization
        """
        self._external = external
        self._fallback = fallback
        self._observer = CacheObserver(metrics)
        self._default_ttl = default_ttl

        logger.info(
            "Cache service initialized",
            stage="2.0",
            fallback_max_size=fallback.get_max_size(),
            external_state=external.state.value,
        )

    @property
    def external(self) -> ExternalCacheBackend:
        return self._external

    @property
    def fallback(self) -> BoundedCacheStore:
        return self._fallback

    async def get(self, key: str) -> Any | None:
        """
        Read ``key`` from the external tier, then the fallback tier.

        STAGE-2.1: External lookup
        STAGE-2.2: Fallback lookup

        Returns:
            The deserialized payload, or None when both tiers miss
        """
        result = await self._external.get(key)

        if result.is_hit:
            try:
                value = orjson.loads(result.value)
            except orjson.JSONDecodeError as e:
                self._observer.record_degraded("get", key, CacheResult.failed(e))
            else:
                self._observer.record_get(CacheTier.EXTERNAL.value, key)
                return value
        elif result.is_degraded and result.error:
            self._observer.record_degraded("get", key, result)

        serialized = self._fallback.read(key)
        if serialized is not None:
            self._observer.record_get(CacheTier.FALLBACK.value, key)
            return orjson.loads(serialized)

        self._observer.record_get(None, key)
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """
        Store ``value`` in every available tier.

        STAGE-2.3: Cache population

        The fallback tier is always written, whatever the external tier's
        health. A ``ttl_seconds`` of zero or less expires immediately: any
        previous value is dropped from both tiers and nothing is stored.

        Raises:
            TypeError: If ``value`` is not JSON serializable
        """
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        serialized = orjson.dumps(value).decode("utf-8")

        if ttl <= 0:
            await self.delete(key)
            return

        result = await self._external.set(key, serialized, ttl)
        if result.is_degraded and result.error:
            self._observer.record_degraded("set", key, result)

        self._fallback.write(key, serialized, ttl)
        self._observer.record_set(key, ttl)

    async def delete(self, key: str) -> None:
        """
        STAGE-2.4: Cache invalidation
        """
        result = await self._external.delete(key)
        if result.is_degraded and result.error:
            self._observer.record_degraded("delete", key, result)

        self._fallback.delete(key)
        self._observer.record_delete(key)

    async def delete_prefix(self, prefix: str) -> int:
        """
        Drop every key under ``prefix`` in both tiers.

        Returns:
            Number of fallback entries removed
        """
        result = await self._external.delete_prefix(prefix)
        if result.is_degraded and result.error:
            self._observer.record_degraded("delete_prefix", prefix, result)

        removed = self._fallback.delete_prefix(prefix)
        self._observer.record_delete(f"{prefix}*")
        return removed

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """
        Get cache performance statistics.

        Returns:
            Dict with hit rates, fallback size and external state
        """
        size = self._fallback.get_size()
        max_size = self._fallback.get_max_size()

        return {
            **self._observer.get_stats(),
            "fallback_size": size,
            "fallback_max_size": max_size,
            "fallback_capacity_utilization": round(size / max_size * 100, 2) if max_size > 0 else 0.0,
            "external_state": self._external.state.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on both tiers.

        The service is "healthy" with a connected external tier, "degraded"
        when serving from the fallback tier only. It is never unhealthy: the
        fallback tier is always available.
        """
        external = await self._external.health_check()
        return {
            "status": "healthy" if external.get("status") == "healthy" else "degraded",
            "fallback": {
                "status": "healthy",
                "size": self._fallback.get_size(),
                "max_size": self._fallback.get_max_size(),
            },
            "external": external,
        }
