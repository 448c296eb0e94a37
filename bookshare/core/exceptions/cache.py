"""
Cache-Related Exceptions

Raised inside the external cache client. They never cross the cache service
boundary: the client converts them into CacheResult values.
"""

from bookshare.core.exceptions.base import BookShareError


class CacheError(BookShareError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the external cache (Redis).

    Common causes:
    - Redis server is down
    - Connect timeout elapsed
    - Incorrect URL
    """
    pass


class CacheOperationError(CacheError):
    """Raised when a get/set/delete against a connected cache fails."""
    pass
