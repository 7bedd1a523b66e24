"""
FastAPI dependency injection module.

Provides centralized dependencies for:
- The shared response cache store
"""

from fastapi import Request

from response_cache.cache import CacheStore


def get_store(request: Request) -> CacheStore:
    """Get the process-wide cache store attached at app construction."""
    return request.app.state.store


__all__ = ["get_store"]
