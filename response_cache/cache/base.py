"""
Store client abstraction.

A CacheStore is the single, process-wide handle on the key-value store
that every cache interceptor shares. Concrete stores implement the
primitive operations; the base class owns the open/closing state and the
bookkeeping for fire-and-forget writes so that shutdown can drain them.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from response_cache.cache.errors import StoreUnavailableError
from response_cache.logging import get_logger

logger = get_logger("cache.store")


class CacheStore(ABC):
    """
    Base class for response cache stores.

    Subclasses implement `_connect`, `_get`, `_setex`, `_close` and `_ping`.
    Callers use the public methods, which enforce the open state:

        store = RedisStore.from_settings(settings)
        await store.connect()
        text = await store.get("response:/product/")
        store.setex_nowait("response:/product/", 900, text)
        await store.close()
    """

    backend: str = "abstract"

    def __init__(self):
        self._open = False
        self._closing = False
        self._pending: set[asyncio.Task] = set()
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        """True when connected, reachable and shutdown has not begun."""
        return self._open and not self._closing

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    # =========================================================================
    # Primitive operations
    # =========================================================================

    @abstractmethod
    async def _connect(self) -> None:
        """Open the underlying connection. Raise on failure."""

    @abstractmethod
    async def _get(self, key: str) -> Optional[str]:
        """Read raw text for a key. Raise StoreReadError on failure."""

    @abstractmethod
    async def _setex(self, key: str, ttl: int, value: str) -> None:
        """Write text under a key with a TTL. Raise StoreWriteError on failure."""

    @abstractmethod
    async def _close(self) -> None:
        """Release the underlying connection."""

    @abstractmethod
    async def _ping(self) -> bool:
        """Round-trip to the store."""

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """
        Establish the store connection.

        Never raises: a failed connect leaves the store not open and every
        interceptor falls back to the inner handler.

        Returns:
            True if the store is open after the call
        """
        if self.is_open:
            return True

        self._closing = False
        try:
            await self._connect()
        except Exception as e:
            logger.error("store_connection_failed", backend=self.backend, error=str(e))
            self._open = False
            return False

        self._open = True
        logger.info("store_connected", backend=self.backend)
        return True

    async def close(self) -> None:
        """
        Shut the store down gracefully.

        From the first call on the store reports not open, so no new cache
        operation is issued. Writes already in flight are drained before the
        connection is released.
        """
        if self._closing:
            return

        self._closing = True
        await self.drain()
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            await asyncio.gather(self._reconnect_task, return_exceptions=True)
            self._reconnect_task = None
        try:
            await self._close()
        finally:
            was_open, self._open = self._open, False
            if was_open:
                logger.info("store_closed", backend=self.backend)

    def _connection_lost(self, error: Exception) -> None:
        """
        Mark an open store not open after a transport failure.

        Requests stop touching the store at once; a background task pings it
        with backoff and reopens it when the store answers again.
        """
        if not self._open or self._closing:
            return

        self._open = False
        logger.warning("store_connection_lost", backend=self.backend, error=str(error))
        if self._reconnect_task is None or self._reconnect_task.done():
            self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect())

    def _reconnect_delay(self, failures: int) -> float:
        """Seconds to wait before reconnect attempt number `failures`."""
        return 1.0

    async def _reconnect(self) -> None:
        failures = 0
        while not self._open and not self._closing:
            failures += 1
            await asyncio.sleep(self._reconnect_delay(failures))
            if self._open or self._closing:
                return
            try:
                answered = await self._ping()
            except Exception as e:
                logger.debug("store_reconnect_failed", backend=self.backend, attempt=failures, error=str(e))
                continue
            if answered:
                self._open = True
                logger.info("store_reconnected", backend=self.backend, attempts=failures)

    # =========================================================================
    # Reads and writes
    # =========================================================================

    def _ensure_open(self, key: str) -> None:
        if not self.is_open:
            raise StoreUnavailableError("store connection is not open", key=key)

    async def get(self, key: str) -> Optional[str]:
        """
        Get the text stored under a key.

        Raises:
            StoreUnavailableError: connection not open
            StoreReadError: transport or protocol error
        """
        self._ensure_open(key)
        return await self._get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        """
        Store text under a key for `ttl` seconds.

        Raises:
            StoreUnavailableError: connection not open
            StoreWriteError: transport or protocol error
        """
        self._ensure_open(key)
        await self._setex(key, ttl, value)

    def setex_nowait(self, key: str, ttl: int, value: str) -> asyncio.Task:
        """
        Schedule a fire-and-forget write.

        The returned task never raises: write errors are logged and dropped.
        Must be called from within a running event loop.

        Raises:
            StoreUnavailableError: connection not open (raised immediately)
        """
        self._ensure_open(key)
        task = asyncio.get_running_loop().create_task(self._write_quietly(key, ttl, value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write_quietly(self, key: str, ttl: int, value: str) -> None:
        # Writes queued before a connection loss are dropped, not retried
        if not self._open:
            logger.debug("cache_write_skipped", key=key, backend=self.backend)
            return
        try:
            await self._setex(key, ttl, value)
            logger.debug("cache_write_complete", key=key, ttl=ttl)
        except Exception as e:
            logger.error("cache_write_error", key=key, error=str(e), error_type=type(e).__name__)

    async def drain(self) -> None:
        """Wait for every pending fire-and-forget write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # =========================================================================
    # Health Check
    # =========================================================================

    async def ping(self) -> bool:
        if not self.is_open:
            return False
        try:
            return await self._ping()
        except Exception as e:
            logger.warning("store_ping_failed", backend=self.backend, error=str(e))
            return False

    async def health_check(self) -> dict[str, Any]:
        """
        Get store health status.

        Returns:
            Dictionary with health information
        """
        status: dict[str, Any] = {
            "backend": self.backend,
            "open": self.is_open,
            "pending_writes": self.pending_writes,
        }
        if not self.is_open:
            status["status"] = "unavailable"
        elif await self.ping():
            status["status"] = "healthy"
        else:
            status["status"] = "degraded"
        return status
