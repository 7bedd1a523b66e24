"""
Response Cache Middleware.

Provides the cache interceptor that sits in front of route groups:
- GET-only response caching keyed by path and query
- Fail-open behaviour on any store failure
- Fire-and-forget write-back of handler output
"""

from .cache_interceptor import CacheInterceptor, CaptureSend, cache

__all__ = [
    "CacheInterceptor",
    "CaptureSend",
    "cache",
]
