"""
In-process TTL store.

Suitable for development, testing, and single-process deployments where
running Redis is not worth it. Entries live in a dict; an expired entry is
dropped when it is read, and every write sweeps out all expired entries.
"""

import time
from collections.abc import Callable
from typing import Optional

from response_cache.cache.base import CacheStore


class InMemoryStore(CacheStore):
    """
    Dict-backed store with per-entry expiry.

    The clock is injectable so expiry can be driven deterministically:

        now = [0.0]
        store = InMemoryStore(clock=lambda: now[0])
        await store.connect()
        await store.setex("k", 10, "v")
        now[0] = 11.0
        await store.get("k")  # None
    """

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        entry = self._data.get(key)
        return entry is not None and entry[1] > self._clock()

    async def _connect(self) -> None:
        pass

    async def _get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    async def _setex(self, key: str, ttl: int, value: str) -> None:
        now = self._clock()
        self._sweep(now)
        self._data[key] = (value, now + ttl)

    def _sweep(self, now: float) -> None:
        """Drop every expired entry so keys that are never read again do not pile up."""
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]

    async def _ping(self) -> bool:
        return True

    async def _close(self) -> None:
        self._data.clear()
