"""
External Cache Protocol and Operation Results

This module defines the protocol for the external (shared) cache backend and
the explicit result type every backend operation returns.

Architectural Decision: results instead of swallowed exceptions
- The backend never raises to its caller; it reports ``unavailable`` or
  ``error`` and the cache service decides to degrade to the fallback tier
- Callers can tell a genuine miss from an outage (metrics, health checks)
- Facilitates testing with fake backends
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from bookshare.core.config.constants import ExternalCacheState


class CacheResultStatus(str, Enum):
    """Outcome of a single external cache operation."""

    HIT = "hit"
    MISS = "miss"
    OK = "ok"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class CacheResult:
    """
    Explicit result of an external cache operation.

    Attributes:
        status: What happened
        value: Stored value on HIT, otherwise None
        error: Error message on ERROR, otherwise None
    """

    status: CacheResultStatus
    value: str | None = None
    error: str | None = None

    @classmethod
    def hit(cls, value: str) -> "CacheResult":
        return cls(CacheResultStatus.HIT, value=value)

    @classmethod
    def miss(cls) -> "CacheResult":
        return cls(CacheResultStatus.MISS)

    @classmethod
    def ok(cls) -> "CacheResult":
        return cls(CacheResultStatus.OK)

    @classmethod
    def unavailable(cls) -> "CacheResult":
        return cls(CacheResultStatus.UNAVAILABLE)

    @classmethod
    def failed(cls, error: Exception | str) -> "CacheResult":
        return cls(CacheResultStatus.ERROR, error=str(error))

    @property
    def is_hit(self) -> bool:
        return self.status is CacheResultStatus.HIT

    @property
    def is_degraded(self) -> bool:
        """True when the backend could not serve the operation."""
        return self.status in (CacheResultStatus.UNAVAILABLE, CacheResultStatus.ERROR)


@runtime_checkable
class ExternalCacheBackend(Protocol):
    """
    Protocol for the external cache backend.

    Implementations:
    - ExternalCacheClient: Redis-backed, one connection attempt per process
    - test fakes in tests/test_fixtures

    None of the operations raise. Every operation returns ``unavailable``
    unless ``state`` is CONNECTED.
    """

    @property
    def state(self) -> ExternalCacheState:
        """Current lifecycle state of the connection."""
        ...

    async def connect(self) -> bool:
        """
        Attempt the (single) connection.

        Returns:
            bool: True when the backend ended up CONNECTED
        """
        ...

    async def disconnect(self) -> None:
        ...

    async def get(self, key: str) -> CacheResult:
        """Read a key; HIT carries the stored string."""
        ...

    async def set(self, key: str, value: str, ttl: int) -> CacheResult:
        """Write a key with a TTL in seconds."""
        ...

    async def delete(self, key: str) -> CacheResult:
        ...

    async def delete_prefix(self, prefix: str) -> CacheResult:
        """Delete every key starting with ``prefix``."""
        ...

    async def health_check(self) -> dict[str, Any]:
        ...
