"""
External Cache Client (Redis)

Architecture:
    ExternalCacheClient (Public API, returns CacheResult)
        ├── ConnectionManager (single connection attempt, terminal failure)
        └── _execute (command execution with error translation)

Connection Policy:
    - One attempt per process, bounded by REDIS_CONNECT_TIMEOUT (3s)
    - No auto-reconnect and no command retries
    - A failed attempt, or a dropped connection, is terminal (FAILED)
    - No REDIS_URL configured means DISABLED (local-cache-only mode)

None of the public operations raise; callers receive a CacheResult and decide
how to degrade.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import urlsplit

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from bookshare.core.config.constants import ExternalCacheState
from bookshare.core.exceptions import CacheConnectionError, CacheOperationError
from bookshare.core.interfaces.cache import CacheResult
from bookshare.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RedisFactory = Callable[[str, float], redis.Redis]

DELETE_BATCH_SIZE = 500


def create_redis(url: str, connect_timeout: float) -> redis.Redis:
    """Build a Redis handle with a bounded connect timeout and retries disabled."""
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=connect_timeout,
        decode_responses=True,
        retry=Retry(NoBackoff(), 0),
    )


def _safe_location(url: str) -> str:
    """host:port of a Redis URL without credentials."""
    parts = urlsplit(url)
    if parts.hostname is None:
        return parts.path or "unknown"
    try:
        port = parts.port or 6379
    except ValueError:
        return "unknown"
    return f"{parts.hostname}:{port}"


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Owns the Redis handle and its lifecycle state.

    State machine:
        DISABLED (no URL)
        DISCONNECTED -> CONNECTING -> CONNECTED
                        CONNECTING -> FAILED
        CONNECTED -> FAILED (connection dropped)
    FAILED is never left.
    """

    def __init__(
        self, url: str | None, connect_timeout: float, factory: RedisFactory = create_redis
    ):
        self._url = url
        self._connect_timeout = connect_timeout
        self._factory = factory
        self._client: redis.Redis | None = None
        self._state = (
            ExternalCacheState.DISCONNECTED if url else ExternalCacheState.DISABLED
        )

    @property
    def state(self) -> ExternalCacheState:
        return self._state

    @property
    def location(self) -> str | None:
        return _safe_location(self._url) if self._url else None

    def get_client(self) -> redis.Redis | None:
        return self._client if self._state is ExternalCacheState.CONNECTED else None

    async def connect(self) -> redis.Redis:
        """
        Make the single connection attempt.

        STAGE-REDIS.2: Connection establishment

        Raises:
            CacheConnectionError: If the attempt fails or was already made
        """
        if self._state is ExternalCacheState.CONNECTED and self._client:
            return self._client

        if self._state is not ExternalCacheState.DISCONNECTED:
            raise CacheConnectionError(
                "External cache connection not attempted",
                details={"state": self._state.value},
            )

        self._state = ExternalCacheState.CONNECTING
        client = None

        try:
            client = self._factory(self._url, self._connect_timeout)
            await asyncio.wait_for(client.ping(), timeout=self._connect_timeout)
        except (RedisError, OSError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: malformed URL rejected by the client factory
            self._state = ExternalCacheState.FAILED
            if client is not None:
                await self._close_quietly(client)
            raise CacheConnectionError.from_exception(
                e,
                f"Failed to connect to Redis: {str(e) or type(e).__name__}",
                location=self.location,
            )

        self._client = client
        self._state = ExternalCacheState.CONNECTED
        logger.info("Redis connected", stage="REDIS.2", location=self.location)
        return client

    async def mark_failed(self, reason: str) -> None:
        """Drop the handle permanently after the connection was lost."""
        if self._state is ExternalCacheState.FAILED:
            return
        self._state = ExternalCacheState.FAILED
        client, self._client = self._client, None
        if client is not None:
            await self._close_quietly(client)
        logger.warning(
            "Redis connection lost, using memory cache only", stage="REDIS.2", error=reason
        )

    async def disconnect(self) -> None:
        """
        Close the handle.

        STAGE-REDIS.3: Connection cleanup
        """
        client, self._client = self._client, None
        if client is not None:
            await self._close_quietly(client)
        if self._state is ExternalCacheState.CONNECTED:
            self._state = ExternalCacheState.DISCONNECTED
        logger.info("Redis disconnected", stage="REDIS.3")

    @staticmethod
    async def _close_quietly(client: redis.Redis) -> None:
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            logger.debug("Ignoring error while closing Redis handle", error=str(e))


# =============================================================================
# LAYER 2: PUBLIC API
# =============================================================================


class ExternalCacheClient:
    """
    Redis-backed external cache tier.

    Usage:
        client = ExternalCacheClient(settings.redis.REDIS_URL)
        await client.connect()              # at most one real attempt

        result = await client.get("books:1:12::::::")
        if result.is_hit:
            ...

    Every operation returns ``CacheResult.unavailable()`` unless the client
    is CONNECTED.
    """

    def __init__(
        self,
        url: str | None,
        connect_timeout: float = 3.0,
        factory: RedisFactory = create_redis,
    ):
        """
        STAGE-REDIS.1: Client initialization
        """
        self._conn_mgr = ConnectionManager(url, connect_timeout, factory)

        if url:
            logger.info(
                "Redis URL found, external cache enabled",
                stage="REDIS.1",
                location=self._conn_mgr.location,
            )
        else:
            logger.info("No Redis URL found, using memory cache only", stage="REDIS.1")

    @property
    def state(self) -> ExternalCacheState:
        return self._conn_mgr.state

    def is_connected(self) -> bool:
        return self._conn_mgr.state is ExternalCacheState.CONNECTED

    async def connect(self) -> bool:
        """
        Attempt the connection; failures are logged, never raised.

        Returns:
            bool: True when CONNECTED afterwards
        """
        if self.state is ExternalCacheState.CONNECTED:
            return True
        if self.state is not ExternalCacheState.DISCONNECTED:
            return False

        try:
            await self._conn_mgr.connect()
        except CacheConnectionError as e:
            logger.warning(
                "Redis connection failed, using memory cache only",
                stage="REDIS.2",
                error=e.message,
                details=e.details,
            )
            return False
        return True

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()

    async def _execute(
        self, operation: str, key: str, command: Callable[[redis.Redis], Awaitable[T]]
    ) -> T:
        """
        Run one command against the connected handle.

        A lost connection moves the client to FAILED.

        Raises:
            CacheOperationError: On any Redis failure
        """
        client = self._conn_mgr.get_client()
        if client is None:
            raise CacheOperationError("External cache not connected", details={"key": key})

        try:
            return await command(client)
        except (ConnectionError, TimeoutError) as e:
            await self._conn_mgr.mark_failed(str(e))
            raise CacheOperationError.from_exception(e, operation=operation, key=key)
        except RedisError as e:
            raise CacheOperationError.from_exception(e, operation=operation, key=key)

    async def _run(
        self,
        operation: str,
        key: str,
        command: Callable[[redis.Redis], Awaitable[Any]],
        to_result: Callable[[Any], CacheResult],
    ) -> CacheResult:
        if not self.is_connected():
            return CacheResult.unavailable()

        try:
            raw = await self._execute(operation, key, command)
        except CacheOperationError as e:
            logger.warning(
                f"Redis {operation.upper()} failed",
                stage=f"REDIS.{operation.upper()}",
                cache_key=key,
                error=e.message,
            )
            return CacheResult.failed(e.message)
        return to_result(raw)

    async def get(self, key: str) -> CacheResult:
        """
        STAGE-REDIS.GET: Redis GET operation
        """
        return await self._run(
            "get",
            key,
            lambda client: client.get(key),
            lambda raw: CacheResult.miss() if raw is None else CacheResult.hit(raw),
        )

    async def set(self, key: str, value: str, ttl: int) -> CacheResult:
        """
        STAGE-REDIS.SET: Redis SET with expiry (seconds)
        """
        return await self._run(
            "set", key, lambda client: client.set(key, value, ex=ttl), lambda _: CacheResult.ok()
        )

    async def delete(self, key: str) -> CacheResult:
        return await self._run(
            "delete", key, lambda client: client.delete(key), lambda _: CacheResult.ok()
        )

    async def delete_prefix(self, prefix: str) -> CacheResult:
        """Delete every key matching ``{prefix}*`` using SCAN (never KEYS)."""

        async def scan_and_delete(client: redis.Redis) -> int:
            deleted = 0
            batch: list[str] = []
            async for key in client.scan_iter(match=f"{prefix}*"):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await client.delete(*batch)
                    batch.clear()
            if batch:
                deleted += await client.delete(*batch)
            return deleted

        return await self._run("delete_prefix", prefix, scan_and_delete, lambda _: CacheResult.ok())

    async def health_check(self) -> dict[str, Any]:
        """
        STAGE-REDIS.HEALTH: Redis health check
        """
        health: dict[str, Any] = {
            "status": "healthy" if self.is_connected() else "unavailable",
            "state": self.state.value,
            "location": self._conn_mgr.location,
            "ping_latency_ms": None,
        }

        client = self._conn_mgr.get_client()
        if client is None:
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except (ConnectionError, TimeoutError) as e:
            await self._conn_mgr.mark_failed(str(e))
            health.update(status="unavailable", state=self.state.value, error=str(e))
        except RedisError as e:
            health.update(status="unhealthy", error=str(e))

        return health
