"""
Response Cache Interceptor.

ASGI middleware that serves GET responses from the shared store and
memoizes the inner application's JSON output under a TTL.

Every failure inside the interceptor degrades to "caching absent": the
request reaches the inner application and its live response is returned.
Errors raised by the inner application pass through untouched.
"""

import json
from collections.abc import Callable
from functools import partial
from typing import Optional

from starlette.datastructures import Headers
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from response_cache.cache.base import CacheStore
from response_cache.cache.cache_keys import CacheKeys
from response_cache.cache.errors import CacheError, SerializationError, StoreUnavailableError
from response_cache.logging import get_logger, record_cache_outcome

logger = get_logger("cache.interceptor")

CACHEABLE_METHODS = frozenset({"GET"})
CACHEABLE_MEDIA_TYPE = "application/json"


class CaptureSend:
    """
    Response sink adapter that hands the final body to a callback.

    Every ASGI message is forwarded unchanged to the wrapped `send`. Body
    chunks of a cacheable response are accumulated until the message with
    `more_body` false arrives; the callback then runs once, before that
    message is forwarded. Later messages pass straight through.
    """

    def __init__(self, send: Send, on_body: Callable[[bytes], None]):
        self._send = send
        self._on_body = on_body
        self._chunks: list[bytes] = []
        self._cacheable = False
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    @staticmethod
    def is_cacheable(message: Message) -> bool:
        """Only complete 200 JSON responses are memoized."""
        if message.get("status") != 200:
            return False
        content_type = Headers(raw=message.get("headers", [])).get("content-type", "")
        return content_type.split(";")[0].strip().lower() == CACHEABLE_MEDIA_TYPE

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self._cacheable = not self._fired and self.is_cacheable(message)
        elif message["type"] == "http.response.body" and self._cacheable and not self._fired:
            self._chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                self._fired = True
                body = b"".join(self._chunks)
                self._chunks.clear()
                self._on_body(body)
        await self._send(message)


class CacheInterceptor:
    """
    ASGI middleware caching one route group's GET responses.

    Usage:
        store = RedisStore.from_settings(settings)
        app.mount("/product", CacheInterceptor(product_router, store, ttl=900))

    Per request:
    - Non-GET methods bypass caching entirely (no store read or write)
    - Key is `<namespace>:<path>[?<query>]`
    - Store not open: bypass
    - Hit: the stored JSON is written as the response; the inner app never runs
    - Miss, read error or corrupt entry: the inner app runs behind a
      CaptureSend and its body is written back with a fire-and-forget SETEX

    Only 200 `application/json` responses are stored, and a hit is always
    replayed as a JSON response. Text, HTML and other GET routes behind an
    interceptor are never cached: their handler runs on every request.

    The outcome (`hit`, `miss`, `bypass`) is recorded in `scope["state"]`
    for the request log line.
    """

    def __init__(
        self,
        app: ASGIApp,
        store: CacheStore,
        ttl: int = CacheKeys.TTL_DEFAULT,
        namespace: str = CacheKeys.DEFAULT_NAMESPACE,
    ):
        if ttl <= 0:
            raise ValueError(f"ttl must be a positive number of seconds, got {ttl}")
        self.app = app
        self.store = store
        self.ttl = ttl
        self.namespace = namespace

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method") not in CACHEABLE_METHODS:
            await self.app(scope, receive, send)
            return

        try:
            key = CacheKeys.from_scope(self.namespace, scope)
            bypass = not self.store.is_open
            if bypass:
                logger.warning("cache_store_unavailable", key=key)
                cached = None
            else:
                cached = await self._lookup(key)
        except Exception as e:
            logger.exception("cache_interceptor_error", path=scope.get("path"), error=str(e))
            record_cache_outcome(scope, "bypass")
            await self.app(scope, receive, send)
            return

        if bypass:
            record_cache_outcome(scope, "bypass")
            await self.app(scope, receive, send)
            return

        if cached is not None:
            record_cache_outcome(scope, "hit")
            await cached(scope, receive, send)
            return

        record_cache_outcome(scope, "miss")
        await self.app(scope, receive, CaptureSend(send, partial(self._memoize, key)))

    async def _lookup(self, key: str) -> Optional[Response]:
        """Return the cached response for a key, or None to fall through to the app."""
        try:
            text = await self.store.get(key)
        except StoreUnavailableError:
            logger.warning("cache_store_unavailable", key=key)
            return None
        except CacheError as e:
            logger.error("cache_read_error", key=key, error=str(e))
            return None

        if not text:
            logger.debug("cache_miss", key=key)
            return None

        try:
            response = self.render(text)
        except SerializationError as e:
            logger.warning("cache_entry_corrupt", key=key, error=str(e))
            return None

        logger.debug("cache_hit", key=key)
        return response

    def _memoize(self, key: str, body: bytes) -> None:
        try:
            text = self.serialize(body)
            self.store.setex_nowait(key, self.ttl, text)
        except StoreUnavailableError:
            logger.warning("cache_store_unavailable", key=key)
        except SerializationError as e:
            logger.warning("cache_body_not_serializable", key=key, error=str(e))
        except Exception as e:
            logger.exception("cache_interceptor_error", key=key, error=str(e))
        else:
            logger.debug("cache_write_scheduled", key=key, ttl=self.ttl)

    @staticmethod
    def serialize(body: bytes) -> str:
        """Parse a JSON response body and return its canonical text form."""
        try:
            value = json.loads(body)
            return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"response body is not valid JSON: {e}") from e

    @staticmethod
    def render(text: str) -> Response:
        """Turn stored text back into a JSON response."""
        try:
            return JSONResponse(json.loads(text))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cached entry is not valid JSON: {e}") from e


def cache(
    store: CacheStore,
    ttl: int = CacheKeys.TTL_DEFAULT,
    namespace: str = CacheKeys.DEFAULT_NAMESPACE,
) -> Callable[[ASGIApp], CacheInterceptor]:
    """
    Build a wrapper that puts a route group behind its own interceptor.

    Usage:
        cached = cache(store, ttl=900)
        app.mount("/category", cached(category_router))
    """

    def wrap(app: ASGIApp) -> CacheInterceptor:
        return CacheInterceptor(app, store, ttl=ttl, namespace=namespace)

    return wrap


__all__ = [
    "CACHEABLE_METHODS",
    "CaptureSend",
    "CacheInterceptor",
    "cache",
]
