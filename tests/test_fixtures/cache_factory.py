"""
Cache Test Factory

Fakes for the cache tiers: a controllable clock, a stand-in for the
redis.asyncio handle used by ExternalCacheClient, and an in-memory
ExternalCacheBackend for tests above the client layer.
"""

import fnmatch
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from bookshare.core.config.constants import ExternalCacheState
from bookshare.core.interfaces.cache import CacheResult


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """
    Minimal async Redis handle.

    ``ping_error`` makes the connection attempt fail; ``command_error`` makes
    every later command raise.
    """

    def __init__(self, ping_error: Exception | None = None):
        self.data: dict[str, str] = {}
        self.expiries: dict[str, int] = {}
        self.ping_error = ping_error
        self.command_error: Exception | None = None
        self.closed = False
        self.calls: list[tuple] = []

    def _check(self, *call) -> None:
        self.calls.append(call)
        if self.command_error is not None:
            raise self.command_error

    async def ping(self) -> bool:
        if self.ping_error is not None:
            raise self.ping_error
        return True

    async def get(self, key: str) -> str | None:
        self._check("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self._check("set", key, ex)
        self.data[key] = value
        if ex is not None:
            self.expiries[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete", *keys)
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiries.pop(key, None)
        return removed

    async def scan_iter(self, match: str = "*"):
        self._check("scan_iter", match)
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        self.closed = True


class FakeExternalCache:
    """
    In-memory ExternalCacheBackend honouring the "unavailable unless
    CONNECTED" contract.

    ``broken`` makes connected operations report errors instead of results.
    """

    def __init__(self, state: ExternalCacheState = ExternalCacheState.CONNECTED):
        self._state = state
        self.data: dict[str, str] = {}
        self.broken = False
        self.get_calls = 0
        self.set_calls = 0

    @property
    def state(self) -> ExternalCacheState:
        return self._state

    async def connect(self) -> bool:
        if self._state is ExternalCacheState.DISCONNECTED:
            self._state = ExternalCacheState.CONNECTED
        return self._state is ExternalCacheState.CONNECTED

    async def disconnect(self) -> None:
        if self._state is ExternalCacheState.CONNECTED:
            self._state = ExternalCacheState.DISCONNECTED

    def _unusable(self) -> CacheResult | None:
        if self._state is not ExternalCacheState.CONNECTED:
            return CacheResult.unavailable()
        if self.broken:
            return CacheResult.failed("connection reset by peer")
        return None

    async def get(self, key: str) -> CacheResult:
        self.get_calls += 1
        if (result := self._unusable()) is not None:
            return result
        value = self.data.get(key)
        return CacheResult.miss() if value is None else CacheResult.hit(value)

    async def set(self, key: str, value: str, ttl: int) -> CacheResult:
        self.set_calls += 1
        if (result := self._unusable()) is not None:
            return result
        self.data[key] = value
        return CacheResult.ok()

    async def delete(self, key: str) -> CacheResult:
        if (result := self._unusable()) is not None:
            return result
        self.data.pop(key, None)
        return CacheResult.ok()

    async def delete_prefix(self, prefix: str) -> CacheResult:
        if (result := self._unusable()) is not None:
            return result
        for key in [k for k in self.data if k.startswith(prefix)]:
            del self.data[key]
        return CacheResult.ok()

    async def health_check(self) -> dict[str, Any]:
        healthy = self._state is ExternalCacheState.CONNECTED and not self.broken
        return {"status": "healthy" if healthy else "unavailable", "state": self._state.value}


class CacheTestFactory:
    """Factory for creating cache test objects."""

    @staticmethod
    def redis_factory(handle: FakeRedis):
        """A RedisFactory that always hands out ``handle``."""

        def factory(url: str, connect_timeout: float) -> FakeRedis:
            return handle

        return factory

    @staticmethod
    def unreachable_redis() -> FakeRedis:
        return FakeRedis(ping_error=RedisConnectionError("Connection refused"))

    @staticmethod
    def failed_external_cache() -> FakeExternalCache:
        return FakeExternalCache(state=ExternalCacheState.FAILED)

    @staticmethod
    def mock_cache_service() -> MagicMock:
        """A CacheService double that always misses."""
        from bookshare.infrastructure.cache.cache_manager import CacheService

        cache = MagicMock(spec=CacheService)
        cache.get = AsyncMock(return_value=None)
        cache.set = AsyncMock(return_value=None)
        cache.delete = AsyncMock(return_value=None)
        cache.delete_prefix = AsyncMock(return_value=0)
        cache.health_check = AsyncMock(return_value={"status": "degraded"})
        return cache
