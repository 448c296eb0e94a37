"""
Bounded In-Memory Cache Store

Process-local key/value store with a fixed capacity and per-entry TTL. Two
instances exist per application: the fallback tier behind CacheService and
the listing route's own tier.

Eviction Policy: FIFO by insertion
- Reads never reorder entries
- Overwriting an existing key keeps its original position
- Expired entries still occupy a slot until read or evicted

STAGE-2.F: Fallback tier
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class BoundedCacheStore:
    """
    FIFO-evicting store with TTL expiry.

    All operations are synchronous and never suspend, so concurrent request
    tasks on one event loop cannot interleave inside an operation.

    Args:
        max_size: Capacity; a value <= 0 means the store never retains anything
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(self, max_size: int, clock: Clock = time.monotonic):
        self._max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def read(self, key: str) -> Any | None:
        """
        Return the live value for ``key`` or None.

        An entry is expired once ``now >= expires_at``; expired entries are
        purged on read. Expiry is not extended by reads.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None

        return entry.value

    def write(self, key: str, value: Any, ttl_seconds: float) -> None:
        """
        Store ``value`` under ``key`` for ``ttl_seconds``.

        When the store is full and ``key`` is new, exactly one entry is
        evicted first: the oldest inserted.
        """
        if self._max_size <= 0:
            return

        if key not in self._entries and len(self._entries) >= self._max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns False when it was not present."""
        return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``; returns the count removed."""
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_size(self) -> int:
        """Number of slots in use (expired-but-unread entries included)."""
        return len(self._entries)

    def get_max_size(self) -> int:
        return self._max_size

    def get_keys(self) -> list[str]:
        """Keys in insertion order (oldest first)."""
        return list(self._entries)
