import os
import sys
from collections import Counter
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from backend.app.main import create_app  # noqa: E402
from backend.app.routing import RouteGroup  # noqa: E402
from response_cache.config import Settings  # noqa: E402


@pytest.fixture
def app_settings() -> Settings:
    return Settings(CACHE_BACKEND="memory", CACHE_NAMESPACE="storefront", CACHE_DEFAULT_TTL=900)


@pytest.fixture
def group_calls() -> dict[str, Counter]:
    return {"product": Counter(), "category": Counter(), "admin": Counter()}


@pytest.fixture
def storefront_app(app_settings, unconnected_store, group_calls, catalog_factory):
    """
    App with two cached groups and one uncached admin group.

    The store is injected unconnected; the lifespan (TestClient) or the test
    itself connects it.
    """
    groups = [
        RouteGroup("/product", catalog_factory(group_calls["product"]), ttl=900),
        RouteGroup("/category", catalog_factory(group_calls["category"]), ttl=300),
        RouteGroup("/admin/product", catalog_factory(group_calls["admin"]), ttl=None),
    ]
    return create_app(settings=app_settings, store=unconnected_store, route_groups=groups)


@pytest.fixture
def test_app_client(storefront_app) -> Iterator[TestClient]:
    with TestClient(storefront_app) as client:
        yield client
