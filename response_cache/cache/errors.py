"""
Cache error taxonomy.

Every error raised by a store client derives from CacheError. The cache
interceptor degrades each of them to a bypass: the request is served as
though caching were disabled.
"""

from typing import Optional


class CacheError(Exception):
    """Base class for response cache failures."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        if self.key:
            return f"{self.message} (key={self.key})"
        return self.message


class StoreUnavailableError(CacheError):
    """The store connection is not open."""


class StoreReadError(CacheError):
    """Transport or protocol error while reading an entry."""


class StoreWriteError(CacheError):
    """Transport or protocol error while writing an entry."""


class SerializationError(CacheError):
    """A cached entry or response body could not be (de)serialized."""


__all__ = [
    "CacheError",
    "StoreUnavailableError",
    "StoreReadError",
    "StoreWriteError",
    "SerializationError",
]
