"""
Unit Tests for Configuration Constants
"""

import pytest

from bookshare.core.config.constants import (
    LISTING_FILTER_FIELDS,
    MAX_PAGE_SIZE,
    BookCondition,
    BookStatus,
    ExternalCacheState,
)


@pytest.mark.unit
class TestConstants:
    def test_filter_order_is_fixed(self):
        assert LISTING_FILTER_FIELDS == (
            "owner_id",
            "title",
            "author",
            "location",
            "genre",
            "status",
        )

    def test_page_size_cap(self):
        assert MAX_PAGE_SIZE == 100

    def test_book_enums_use_wire_values(self):
        assert BookStatus.AVAILABLE.value == "available"
        assert BookCondition.LIKE_NEW.value == "like-new"
        assert BookStatus("exchanged") is BookStatus.EXCHANGED

    def test_external_cache_states(self):
        assert {state.value for state in ExternalCacheState} == {
            "disabled",
            "disconnected",
            "connecting",
            "connected",
            "failed",
        }
