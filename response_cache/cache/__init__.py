"""
Response Cache Store Layer.

Provides the shared key-value store used by the cache interceptor:
- RedisStore: pooled redis-py asyncio client (production)
- InMemoryStore: in-process TTL store (development, tests)
- Fire-and-forget writes drained on shutdown

Usage:
    from response_cache.cache import create_store, CacheKeys

    store = create_store(settings)
    await store.connect()
    text = await store.get(CacheKeys.response("response", "/product/"))
"""

from typing import Optional

from response_cache.cache.base import CacheStore
from response_cache.cache.cache_keys import CacheKeys
from response_cache.cache.errors import (
    CacheError,
    SerializationError,
    StoreReadError,
    StoreUnavailableError,
    StoreWriteError,
)
from response_cache.cache.memory_store import InMemoryStore
from response_cache.cache.redis_store import LinearBackoff, RedisStore
from response_cache.config import Settings, get_settings


def create_store(settings: Optional[Settings] = None) -> CacheStore:
    """Build the store selected by CACHE_BACKEND (not yet connected)."""
    settings = settings or get_settings()
    if settings.cache_backend == "memory":
        return InMemoryStore()
    return RedisStore.from_settings(settings)


__all__ = [
    "CacheStore",
    "RedisStore",
    "InMemoryStore",
    "LinearBackoff",
    "CacheKeys",
    "create_store",
    "CacheError",
    "StoreUnavailableError",
    "StoreReadError",
    "StoreWriteError",
    "SerializationError",
]
