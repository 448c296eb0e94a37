"""
Listing Service
===============

Serves paginated, filtered book listings with a cache-aside strategy.

READ PATH:
----------
1. Build the canonical cache key from the normalized query
2. Look the key up in the cache service (external -> fallback tier), then in
   this service's own bounded tier
3. Hit on a normal request: return the cached payload unchanged
4. Miss, or any preload request: count + page in one transaction, then
   populate every tier and answer

Preload requests exist so a client can warm the next page without paying for
the payload transfer; they always re-query and answer ``{"success": true,
"cached": true}``.

Concurrent identical misses both query the store and both populate the
cache; the last write wins.
"""

import math
from typing import Any

import orjson

from bookshare.application.api.models.books import BookListItem, Pagination, PreloadResponse
from bookshare.core.config.constants import CacheTier
from bookshare.core.logging.logger import get_logger, log_stage
from bookshare.infrastructure.cache.cache_manager import CacheService
from bookshare.infrastructure.cache.keys import (
    ListingQuery,
    build_listing_cache_key,
    listing_namespace_prefix,
)
from bookshare.infrastructure.cache.memory_store import BoundedCacheStore
from bookshare.infrastructure.database.repositories import BookRepository
from bookshare.infrastructure.database.session import Database, store_errors
from bookshare.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)


class ListingService:
    """
    Cache-aside listing reads.

    Args:
        database: Relational store
        cache: Shared two-tier cache service
        local_cache: This service's own bounded tier
        ttl_seconds: Lifetime of a cached page
        metrics: Optional Prometheus collector
    """

    def __init__(
        self,
        database: Database,
        cache: CacheService,
        local_cache: BoundedCacheStore,
        ttl_seconds: int = 60,
        metrics: MetricsCollector | None = None,
    ):
        self._db = database
        self._cache = cache
        self._local = local_cache
        self._ttl = ttl_seconds
        self._metrics = metrics

    @property
    def local_cache(self) -> BoundedCacheStore:
        return self._local

    async def list_books(self, query: ListingQuery, preload: bool = False) -> dict[str, Any]:
        """
        One page of listings, from cache when possible.

        STAGE-2: Cache lookup
        STAGE-3: Store query on miss

        Raises:
            PersistenceError: The store failed ("Failed to fetch books")
        """
        cache_key = build_listing_cache_key(query)

        cached = await self._cached_payload(cache_key)
        if cached is not None and not preload:
            self._record("hit")
            return cached

        try:
            payload = await self._load_page(query)
        except Exception:
            self._record("error")
            raise

        await self._populate(cache_key, payload)

        if preload:
            self._record("preload")
            log_stage(logger, "2.6", "Listing page preloaded", cache_key=cache_key)
            return PreloadResponse().model_dump()

        self._record("miss")
        return payload

    async def invalidate(self) -> int:
        """
        Drop every cached listing page from all tiers.

        Returns:
            Number of process-local entries removed
        """
        prefix = listing_namespace_prefix()
        removed = await self._cache.delete_prefix(prefix)
        removed += self._local.delete_prefix(prefix)
        log_stage(logger, "2.4", "Listing cache invalidated", removed_local=removed)
        return removed

    async def _cached_payload(self, cache_key: str) -> dict[str, Any] | None:
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        serialized = self._local.read(cache_key)
        if serialized is not None:
            log_stage(logger, "2.2", "Listing tier hit", level="debug", cache_key=cache_key)
            if self._metrics:
                self._metrics.record_cache_hit(CacheTier.LOCAL.value)
            return orjson.loads(serialized)

        return None

    async def _populate(self, cache_key: str, payload: dict[str, Any]) -> None:
        await self._cache.set(cache_key, payload, self._ttl)
        self._local.write(cache_key, orjson.dumps(payload).decode("utf-8"), self._ttl)

    async def _load_page(self, query: ListingQuery) -> dict[str, Any]:
        """
        STAGE-3: Count + page inside one transaction
        """
        async with self._db.session() as session:
            with store_errors("Failed to fetch books", stage="3"):
                total, books = await BookRepository(session).count_and_page(query)

            items = [
                BookListItem.model_validate(book).model_dump(mode="json", by_alias=True)
                for book in books
            ]

        pagination = Pagination(
            page=query.page,
            limit=query.limit,
            total_items=total,
            total_pages=math.ceil(total / query.limit),
        )

        log_stage(
            logger,
            "3",
            "Listing page loaded from store",
            page=query.page,
            limit=query.limit,
            total_items=total,
        )

        return {"items": items, "pagination": pagination.model_dump(by_alias=True)}

    def _record(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.record_listing_request(outcome)
