"""
Cache Key Construction

Listing keys are built positionally, so the order in which query parameters
arrived never matters:

    books:{page}:{limit}:{owner_id}:{title}:{author}:{location}:{genre}:{status}

Absent filters contribute an empty segment and are never omitted. As a
consequence an explicitly empty filter and an absent one share a key.

Filter values are joined unescaped, so a value containing the delimiter can
shift into the next segment: ``title="a:b", author="c"`` and
``title="a", author="b:c"`` build the same key and share a cached page.

STAGE-2.1.1: Cache key generation
"""

from dataclasses import dataclass

from bookshare.core.config.constants import (
    CACHE_KEY_DELIMITER,
    CACHE_NAMESPACE_BOOKS,
    CACHE_NAMESPACE_USER,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    LISTING_FILTER_FIELDS,
)


@dataclass(frozen=True)
class ListingQuery:
    """Normalized pagination and filter parameters of a listing read."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE
    owner_id: str | None = None
    title: str | None = None
    author: str | None = None
    location: str | None = None
    genre: str | None = None
    status: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def filters(self) -> dict[str, str]:
        """Non-empty filters only, keyed by field name."""
        return {
            field: value
            for field in LISTING_FILTER_FIELDS
            if (value := getattr(self, field))
        }


def build_listing_cache_key(query: ListingQuery) -> str:
    """Canonical cache key for a listing page."""
    segments = [CACHE_NAMESPACE_BOOKS, str(query.page), str(query.limit)]
    segments.extend(getattr(query, field) or "" for field in LISTING_FILTER_FIELDS)
    return CACHE_KEY_DELIMITER.join(segments)


def listing_namespace_prefix() -> str:
    """Prefix shared by every listing key."""
    return f"{CACHE_NAMESPACE_BOOKS}{CACHE_KEY_DELIMITER}"


def build_user_cache_key(clerk_id: str) -> str:
    return f"{CACHE_NAMESPACE_USER}{CACHE_KEY_DELIMITER}{clerk_id}"
