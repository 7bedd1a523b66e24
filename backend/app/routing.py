"""
Route group wiring.

A route group is an ASGI application (usually a FastAPI sub-application)
mounted under a path prefix. Groups with a TTL are placed behind their own
cache interceptor; groups without one are mounted as-is.

Usage:
    groups = [
        RouteGroup("/product", product_app, ttl=900),
        RouteGroup("/admin/product", admin_product_app, ttl=None),
    ]
    app = create_app(route_groups=groups)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI
from starlette.types import ASGIApp

from response_cache.cache import CacheKeys, CacheStore
from response_cache.logging import get_logger
from response_cache.middleware import cache

logger = get_logger("api.routing")


@dataclass(frozen=True)
class RouteGroup:
    """A mountable group of routes and the TTL its GET responses are cached for."""

    prefix: str
    app: ASGIApp
    ttl: Optional[int] = CacheKeys.TTL_DEFAULT
    name: Optional[str] = None

    @property
    def cached(self) -> bool:
        return self.ttl is not None


def mount_route_groups(
    app: FastAPI,
    groups: Iterable[RouteGroup],
    store: CacheStore,
    namespace: str = CacheKeys.DEFAULT_NAMESPACE,
) -> None:
    """Mount each group, wrapping cached groups in a CacheInterceptor sharing `store`."""
    for group in groups:
        target = group.app
        if group.cached:
            target = cache(store, ttl=group.ttl, namespace=namespace)(target)

        app.mount(group.prefix, target, name=group.name)
        logger.info(
            "route_group_mounted",
            prefix=group.prefix,
            cached=group.cached,
            ttl=group.ttl,
        )


__all__ = ["RouteGroup", "mount_route_groups"]
