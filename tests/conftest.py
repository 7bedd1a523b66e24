"""
Pytest fixtures for response cache tests.

Stores run in-process: RecordingStore is an InMemoryStore that records
every read and write and whose clock is driven by the test.
"""

from collections import Counter

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse, StreamingResponse

from response_cache.cache import InMemoryStore


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(InMemoryStore):
    """InMemoryStore that records reads and writes; failures can be injected."""

    def __init__(self, clock=None):
        super().__init__(clock=clock or FakeClock())
        self.reads: list[str] = []
        self.writes: list[tuple[str, int, str]] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None

    async def _get(self, key):
        self.reads.append(key)
        if self.read_error is not None:
            raise self.read_error
        return await super()._get(key)

    async def _setex(self, key, ttl, value):
        self.writes.append((key, ttl, value))
        if self.write_error is not None:
            raise self.write_error
        await super()._setex(key, ttl, value)


def build_catalog_app(calls: Counter) -> FastAPI:
    """A small route group whose handlers count their invocations."""
    app = FastAPI()

    @app.get("/")
    async def list_items(page: int = 1):
        calls["list"] += 1
        return {"items": [{"id": 1, "name": "Chair"}, {"id": 2, "name": "Tábua"}], "page": page}

    @app.post("/")
    async def create_item():
        calls["create"] += 1
        return {"created": True}

    @app.get("/stream")
    async def stream_items():
        calls["stream"] += 1

        async def chunks():
            yield b'{"items":'
            yield b"[1,2,3]"
            yield b"}"

        return StreamingResponse(chunks(), media_type="application/json")

    @app.get("/text")
    async def text_item():
        calls["text"] += 1
        return PlainTextResponse("plain")

    @app.get("/empty")
    async def empty_item():
        calls["empty"] += 1
        return None

    @app.get("/missing")
    async def missing_item():
        calls["missing"] += 1
        raise HTTPException(status_code=404, detail="Item not found")

    @app.get("/boom")
    async def boom():
        calls["boom"] += 1
        raise RuntimeError("handler exploded")

    @app.get("/{item_id}")
    async def get_item(item_id: int):
        calls["detail"] += 1
        return {"id": item_id, "tags": ["a", "b"], "price": 12.5, "stock": None}

    return app


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def calls():
    return Counter()


@pytest.fixture
def catalog_app(calls):
    return build_catalog_app(calls)


@pytest_asyncio.fixture
async def store(clock):
    """A connected RecordingStore, closed after the test."""
    store = RecordingStore(clock=clock)
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def catalog_factory():
    """Build extra counted route groups (one Counter per group)."""
    return build_catalog_app


@pytest.fixture
def make_client():
    """Build an httpx client that drives an ASGI app in the test's event loop."""

    def _make(app) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")

    return _make


@pytest.fixture
def unconnected_store(clock):
    """A RecordingStore that was never connected (reports not open)."""
    return RecordingStore(clock=clock)
