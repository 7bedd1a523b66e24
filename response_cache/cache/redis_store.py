"""
Redis store client with connection pooling.

Provides the process-wide Redis connection used by every cache interceptor:
- Connection pooling (max connections configurable)
- Connect timeout and TCP keep-alive on every pooled socket
- Transport failures mark the store not open; it is re-pinged in the
  background with a capped linear backoff until it answers
- Redis errors mapped onto the cache error taxonomy
"""

from typing import TYPE_CHECKING, Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import AbstractBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from response_cache.cache.base import CacheStore
from response_cache.cache.errors import StoreReadError, StoreWriteError
from response_cache.logging import get_logger

if TYPE_CHECKING:
    from response_cache.config import Settings

logger = get_logger("cache.redis")


class LinearBackoff(AbstractBackoff):
    """Backoff that grows by `step` seconds per failure, capped at `cap`."""

    def __init__(self, step: float = 0.05, cap: float = 1.0):
        self._step = step
        self._cap = cap

    def reset(self) -> None:
        pass

    def compute(self, failures: int) -> float:
        return min(failures * self._step, self._cap)


class RedisStore(CacheStore):
    """
    Redis-backed response store.

    Usage:
        store = RedisStore.from_settings(get_settings())
        await store.connect()

        await store.get("response:/product/")
        store.setex_nowait("response:/product/", 900, '{"items": []}')

        await store.close()

    A pre-built client may be injected (tests substitute a mock); otherwise
    the pool is created lazily on `connect()`.
    """

    backend = "redis"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        *,
        connect_timeout: float = 10.0,
        socket_timeout: float = 5.0,
        keepalive: bool = True,
        max_connections: int = 50,
        retry_step_ms: int = 50,
        retry_cap_ms: int = 1000,
        retry_attempts: int = 1,
        client: Optional[redis.Redis] = None,
    ):
        super().__init__()
        self.host = host
        self.port = port
        self.db = db
        self._password = password
        self.connect_timeout = connect_timeout
        self.socket_timeout = socket_timeout
        self.keepalive = keepalive
        self.max_connections = max_connections
        self.backoff = LinearBackoff(step=retry_step_ms / 1000, cap=retry_cap_ms / 1000)
        self.retry_attempts = retry_attempts
        self._client = client

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RedisStore":
        return cls(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            connect_timeout=settings.redis_connect_timeout,
            socket_timeout=settings.redis_socket_timeout,
            keepalive=settings.redis_keepalive,
            max_connections=settings.redis_max_connections,
            retry_step_ms=settings.redis_retry_step_ms,
            retry_cap_ms=settings.redis_retry_cap_ms,
            retry_attempts=settings.redis_retry_attempts,
        )

    def _build_client(self) -> redis.Redis:
        pool = redis.ConnectionPool(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self._password,
            max_connections=self.max_connections,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.connect_timeout,
            socket_keepalive=self.keepalive,
            retry=Retry(self.backoff, self.retry_attempts),
            retry_on_timeout=True,
            decode_responses=True,
        )
        return redis.Redis(connection_pool=pool)

    @property
    def client(self) -> Optional[redis.Redis]:
        return self._client

    async def _connect(self) -> None:
        if self._client is None:
            self._client = self._build_client()
        try:
            await self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            logger.warning("redis_connection_failed", host=self.host, port=self.port, error=str(e))
            raise
        logger.info("redis_connected", host=self.host, port=self.port, db=self.db)

    async def _get(self, key: str) -> Optional[str]:
        try:
            data = await self._client.get(key)
        except (ConnectionError, TimeoutError) as e:
            self._connection_lost(e)
            raise StoreReadError(f"redis GET failed: {e}", key=key) from e
        except RedisError as e:
            raise StoreReadError(f"redis GET failed: {e}", key=key) from e
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return data

    async def _setex(self, key: str, ttl: int, value: str) -> None:
        try:
            await self._client.setex(key, ttl, value)
        except (ConnectionError, TimeoutError) as e:
            self._connection_lost(e)
            raise StoreWriteError(f"redis SETEX failed: {e}", key=key) from e
        except RedisError as e:
            raise StoreWriteError(f"redis SETEX failed: {e}", key=key) from e

    def _reconnect_delay(self, failures: int) -> float:
        return self.backoff.compute(failures)

    async def _ping(self) -> bool:
        return bool(await self._client.ping())

    async def _close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose(close_connection_pool=True)
        except RedisError as e:
            logger.warning("redis_close_error", error=str(e))
        finally:
            logger.info("redis_closed", host=self.host, port=self.port)
