"""
FastAPI application entry point.

Owns the process-wide cache store: it is built once here, injected into
every route group's cache interceptor, connected at startup and closed
gracefully at shutdown.
"""

from collections.abc import Sequence
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from response_cache.cache import CacheStore, create_store
from response_cache.config import Settings, get_settings
from response_cache.logging import RequestLoggingMiddleware, configure_logging, get_logger

from .dependencies import get_store
from .error_handlers import register_exception_handlers
from .middleware.request_id import RequestIDMiddleware
from .routing import RouteGroup, mount_route_groups

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the store on startup, close it on shutdown."""
    store: CacheStore = app.state.store
    logger.info("app_startup", app_name=app.title, cache_backend=store.backend)

    if await store.connect():
        logger.info("cache_initialized", backend=store.backend)
    else:
        # Interceptors fail open; the app still serves every request.
        logger.warning("cache_unavailable", backend=store.backend)

    try:
        yield
    finally:
        logger.info("app_shutdown", pending_writes=store.pending_writes)
        await store.close()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CacheStore] = None,
    route_groups: Sequence[RouteGroup] = (),
) -> FastAPI:
    """
    Build the API around one shared cache store.

    Route groups are handed in by the deployment; each cached group gets its
    own interceptor and TTL, uncached groups are mounted as they are:

        from backend.app.routing import RouteGroup
        from response_cache.cache import CacheKeys

        app = create_app(route_groups=[
            RouteGroup("/admin/product", admin_product_router, ttl=None),
            RouteGroup("/admin/order", admin_order_router, ttl=None),
            RouteGroup("/product", product_router, ttl=CacheKeys.TTL_DEFAULT),
            RouteGroup("/category", category_router, ttl=CacheKeys.TTL_DEFAULT),
            RouteGroup("/reviews", reviews_router, ttl=CacheKeys.TTL_DEFAULT),
        ])

    Keys ignore headers and cookies, so per-user groups (cart, address,
    order) must be mounted with `ttl=None`.

    Mounts match by prefix in registration order, so a catch-all group at
    `/` goes last. The module-level `app` below mounts no groups and serves
    only the health endpoints.
    """
    settings = settings or get_settings()
    configure_logging(level="DEBUG" if settings.debug else settings.log_level, json_logs=settings.log_json)

    store = store if store is not None else create_store(settings)

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Structured request logging, then request ID binding (outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/health/ready", tags=["health"])
    async def readiness_check(cache_store: CacheStore = Depends(get_store)):
        """
        Readiness probe.

        The cache is optional: with the store down every request still
        reaches its handler, so the service reports ready but degraded.
        """
        cache_health = await cache_store.health_check()
        ready_status = "ready" if cache_health["status"] == "healthy" else "degraded"
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": ready_status, "cache": cache_health},
        )

    mount_route_groups(app, route_groups, store, namespace=settings.cache_namespace)

    return app


app = create_app()
