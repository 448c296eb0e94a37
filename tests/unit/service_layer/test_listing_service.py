"""
Unit Tests for ListingService

Read-through behaviour of the listing path against an in-memory store, with
a spy on the page loader to count store round trips.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from bookshare.application.services.listing_service import ListingService
from bookshare.core.exceptions import PersistenceError
from bookshare.infrastructure.cache.cache_manager import CacheService
from bookshare.infrastructure.cache.keys import ListingQuery, build_listing_cache_key
from bookshare.infrastructure.cache.memory_store import BoundedCacheStore
from bookshare.infrastructure.database.repositories import BookRepository
from bookshare.infrastructure.monitoring.metrics_collector import MetricsCollector
from tests.test_fixtures import CacheTestFactory, create_book, create_user


@pytest.fixture
def local_store(fake_clock):
    return BoundedCacheStore(50, clock=fake_clock)


@pytest.fixture
def metrics():
    return MagicMock(spec=MetricsCollector)


@pytest.fixture
def listing_service(database, cache_service, local_store, metrics):
    return ListingService(database, cache_service, local_store, ttl_seconds=60, metrics=metrics)


@pytest.fixture
def load_spy():
    original = ListingService._load_page
    with patch.object(ListingService, "_load_page", autospec=True, side_effect=original) as spy:
        yield spy


async def seed_books(database, count: int):
    owner = await create_user(database)
    for minute in range(count):
        await create_book(database, owner, minutes=minute, title=f"Book {minute:02d}")
    return owner


@pytest.mark.unit
class TestReadThrough:
    @pytest.mark.asyncio
    async def test_empty_store_payload(self, listing_service):
        payload = await listing_service.list_books(ListingQuery())

        assert payload == {
            "items": [],
            "pagination": {"page": 1, "limit": 12, "totalItems": 0, "totalPages": 0},
        }

    @pytest.mark.asyncio
    async def test_total_pages_rounds_up(self, listing_service, database):
        await seed_books(database, 25)

        payload = await listing_service.list_books(ListingQuery(page=1, limit=12))

        assert payload["pagination"] == {
            "page": 1,
            "limit": 12,
            "totalItems": 25,
            "totalPages": 3,
        }
        assert len(payload["items"]) == 12
        assert payload["items"][0]["title"] == "Book 24"

    @pytest.mark.asyncio
    async def test_items_are_camel_case_with_owner_summary(self, listing_service, database):
        owner = await seed_books(database, 1)

        item = (await listing_service.list_books(ListingQuery()))["items"][0]

        assert item["ownerId"] == owner.id
        assert item["contactInfo"] == "owner@example.com"
        assert item["owner"] == {"id": owner.id, "name": "Olive Owner"}
        assert "createdAt" in item

    @pytest.mark.asyncio
    async def test_second_identical_request_is_served_from_cache(
        self, listing_service, database, load_spy
    ):
        await seed_books(database, 3)
        query = ListingQuery(title="book")

        first = await listing_service.list_books(query)
        second = await listing_service.list_books(query)

        assert first == second
        assert load_spy.await_count == 1

    @pytest.mark.asyncio
    async def test_cached_page_is_stale_until_ttl(
        self, listing_service, database, fake_clock, load_spy
    ):
        owner = await seed_books(database, 1)
        await listing_service.list_books(ListingQuery())

        await create_book(database, owner, minutes=10, title="Newcomer")
        fake_clock.advance(59)
        stale = await listing_service.list_books(ListingQuery())

        assert stale["pagination"]["totalItems"] == 1

    @pytest.mark.asyncio
    async def test_expired_page_is_reloaded(self, database, fake_clock, load_spy):
        owner = await seed_books(database, 1)
        # Only process-local tiers, so expiry follows the fake clock
        cache = CacheService(
            CacheTestFactory.failed_external_cache(), BoundedCacheStore(100, clock=fake_clock)
        )
        service = ListingService(database, cache, BoundedCacheStore(50, clock=fake_clock))
        await service.list_books(ListingQuery())

        await create_book(database, owner, minutes=10, title="Newcomer")
        fake_clock.advance(60)
        fresh = await service.list_books(ListingQuery())

        assert fresh["pagination"]["totalItems"] == 2
        assert load_spy.await_count == 2

    @pytest.mark.asyncio
    async def test_different_filters_use_different_entries(
        self, listing_service, database, load_spy
    ):
        await seed_books(database, 2)

        await listing_service.list_books(ListingQuery(title="Book 00"))
        await listing_service.list_books(ListingQuery(title="Book 01"))

        assert load_spy.await_count == 2

    @pytest.mark.asyncio
    async def test_populates_both_tiers(self, listing_service, cache_service, local_store):
        query = ListingQuery()
        key = build_listing_cache_key(query)

        await listing_service.list_books(query)

        assert await cache_service.get(key) is not None
        assert local_store.read(key) is not None

    @pytest.mark.asyncio
    async def test_local_tier_serves_when_cache_service_misses(self, database, local_store):
        cache = CacheTestFactory.mock_cache_service()
        service = ListingService(database, cache, local_store)
        query = ListingQuery()
        local_store.write(build_listing_cache_key(query), '{"items":[],"pagination":{}}', 60)

        payload = await service.list_books(query)

        assert payload == {"items": [], "pagination": {}}
        cache.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_works_with_failed_external_tier(self, database, fake_clock, load_spy):
        await seed_books(database, 2)
        cache = CacheService(
            CacheTestFactory.failed_external_cache(), BoundedCacheStore(100, clock=fake_clock)
        )
        service = ListingService(database, cache, BoundedCacheStore(50, clock=fake_clock))

        first = await service.list_books(ListingQuery())
        second = await service.list_books(ListingQuery())

        assert first == second
        assert first["pagination"]["totalItems"] == 2
        assert load_spy.await_count == 1


@pytest.mark.unit
class TestPreload:
    @pytest.mark.asyncio
    async def test_preload_returns_acknowledgement(self, listing_service):
        result = await listing_service.list_books(ListingQuery(), preload=True)

        assert result == {"success": True, "cached": True}

    @pytest.mark.asyncio
    async def test_preload_always_requeries(self, listing_service, database, load_spy):
        await seed_books(database, 1)

        await listing_service.list_books(ListingQuery())
        await listing_service.list_books(ListingQuery(), preload=True)
        await listing_service.list_books(ListingQuery(), preload=True)

        assert load_spy.await_count == 3

    @pytest.mark.asyncio
    async def test_preload_warms_the_cache(self, listing_service, database, load_spy):
        await seed_books(database, 1)

        await listing_service.list_books(ListingQuery(page=2), preload=True)
        payload = await listing_service.list_books(ListingQuery(page=2))

        assert payload["pagination"]["page"] == 2
        assert load_spy.await_count == 1


@pytest.mark.unit
class TestFailuresAndInvalidation:
    @pytest.mark.asyncio
    async def test_store_failure_raises_persistence_error(self, listing_service, metrics):
        error = OperationalError("SELECT", {}, Exception("no such table: books"))

        with patch.object(BookRepository, "count_and_page", side_effect=error):
            with pytest.raises(PersistenceError) as exc_info:
                await listing_service.list_books(ListingQuery())

        assert exc_info.value.message == "Failed to fetch books"
        metrics.record_listing_request.assert_called_with("error")

    @pytest.mark.asyncio
    async def test_store_failure_caches_nothing(self, listing_service, local_store):
        error = OperationalError("SELECT", {}, Exception("boom"))

        with patch.object(BookRepository, "count_and_page", side_effect=error):
            with pytest.raises(PersistenceError):
                await listing_service.list_books(ListingQuery())

        assert len(local_store) == 0

    @pytest.mark.asyncio
    async def test_outcomes_are_recorded(self, listing_service, metrics):
        await listing_service.list_books(ListingQuery())
        await listing_service.list_books(ListingQuery())
        await listing_service.list_books(ListingQuery(), preload=True)

        outcomes = [c.args[0] for c in metrics.record_listing_request.call_args_list]
        assert outcomes == ["miss", "hit", "preload"]

    @pytest.mark.asyncio
    async def test_invalidate_drops_all_pages(
        self, listing_service, cache_service, local_store, load_spy
    ):
        await listing_service.list_books(ListingQuery(page=1))
        await listing_service.list_books(ListingQuery(page=2))

        await listing_service.invalidate()
        await listing_service.list_books(ListingQuery(page=1))

        assert load_spy.await_count == 3
        assert await cache_service.get(build_listing_cache_key(ListingQuery(page=2))) is None
