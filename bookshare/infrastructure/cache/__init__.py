"""
Cache Module

Two-tier caching: external (Redis) plus a bounded in-memory fallback.
"""

from .cache_manager import CacheObserver, CacheService
from .keys import ListingQuery, build_listing_cache_key, build_user_cache_key
from .memory_store import BoundedCacheStore
from .redis_client import ExternalCacheClient

__all__ = [
    "BoundedCacheStore",
    "CacheObserver",
    "CacheService",
    "ExternalCacheClient",
    "ListingQuery",
    "build_listing_cache_key",
    "build_user_cache_key",
]
