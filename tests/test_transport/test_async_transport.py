"""Tests for AsyncCacheTransport installed in an httpx.AsyncClient."""

from __future__ import annotations

import asyncio
import pickle
import threading

import httpx
import pytest

from manualcache import CACHE_STATUS_HEADER, AsyncCacheTransport
from manualcache.store import MemoryStore

BASE_URL = "https://api.example.com"


def _async_origin(origin):
    """Wrap the sync fake origin as an async MockTransport handler."""

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0)
        return origin(request)

    return handler


@pytest.fixture()
def transport(origin, store) -> AsyncCacheTransport:
    return AsyncCacheTransport(httpx.MockTransport(_async_origin(origin)), store=store)


class TestAsyncCacheTransport:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, transport, origin) -> None:
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            first = await client.get("/widgets")
            second = await client.get("/widgets")

        assert first.headers[CACHE_STATUS_HEADER] == "MISS"
        assert second.headers[CACHE_STATUS_HEADER] == "HIT"
        assert second.json() == {"id": 1}
        assert origin.calls == 1

    @pytest.mark.asyncio
    async def test_batch_completes_each_member(self, transport, origin, store) -> None:
        """Every member of a concurrent batch is written under its own key."""
        for i in range(5):
            origin.route("GET", f"/items/{i}", json={"id": i})
        paths = [f"/items/{i}" for i in range(5)]

        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            misses = await asyncio.gather(*(client.get(p) for p in paths))
            hits = await asyncio.gather(*(client.get(p) for p in paths))

        assert [r.json()["id"] for r in misses] == list(range(5))
        assert [r.json()["id"] for r in hits] == list(range(5))
        assert {r.headers[CACHE_STATUS_HEADER] for r in hits} == {"HIT"}
        assert sorted(key for key, _, _ in store.writes) == sorted(f"{BASE_URL}{p}" for p in paths)
        assert origin.calls == 5

    @pytest.mark.asyncio
    async def test_mixed_batch(self, transport, origin) -> None:
        """A hit and a miss in one batch are both answered correctly."""
        origin.route("GET", "/fresh", json={"fresh": True})
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            await client.get("/widgets")
            cached, fresh = await asyncio.gather(client.get("/widgets"), client.get("/fresh"))

        assert cached.headers[CACHE_STATUS_HEADER] == "HIT"
        assert fresh.headers[CACHE_STATUS_HEADER] == "MISS"
        assert fresh.json() == {"fresh": True}
        assert origin.calls == 2

    @pytest.mark.asyncio
    async def test_pooled_connection_state_not_stored(self, transport, origin, store) -> None:
        """Entries written from an async batch carry no live transport objects."""
        origin.route(
            "GET",
            "/pooled",
            json={"id": 7},
            extensions={"network_stream": object(), "http_version": b"HTTP/2"},
        )
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            await asyncio.gather(client.get("/pooled"), client.get("/widgets"))
            hit = await client.get("/pooled")

        entry = store.fetch(f"{BASE_URL}/pooled")
        assert entry.extensions == {"http_version": b"HTTP/2"}
        assert pickle.loads(pickle.dumps(entry)) == entry
        assert hit.http_version == "HTTP/2"
        assert "network_stream" not in hit.extensions

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, store) -> None:
        async def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = AsyncCacheTransport(httpx.MockTransport(refuse), store=store)
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get(f"{BASE_URL}/widgets")
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_error_response_not_written(self, transport, origin, store) -> None:
        origin.route("GET", "/flaky", status=502, json={"error": "bad gateway"})
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            first = await client.get("/flaky")
            second = await client.get("/flaky")

        assert first.status_code == second.status_code == 502
        assert store.writes == []
        assert origin.calls == 2

    @pytest.mark.asyncio
    async def test_invalid_ttl_still_returns_response(self, origin, store) -> None:
        transport = AsyncCacheTransport(
            httpx.MockTransport(_async_origin(origin)),
            store=store,
            expires_in=lambda request: -1,
        )
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            response = await client.get("/widgets")

        assert response.status_code == 200
        assert response.headers[CACHE_STATUS_HEADER] == "MISS"
        assert response.json() == {"id": 1}
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_store_io_runs_off_the_event_loop(self, origin, clock) -> None:
        """Blocking stores are called from executor threads, not the loop thread."""

        class ThreadTrackingStore(MemoryStore):
            def __init__(self) -> None:
                super().__init__(clock=clock)
                self.threads: set[int] = set()

            def fetch(self, key):
                self.threads.add(threading.get_ident())
                return super().fetch(key)

            def write(self, key, value, ttl):
                self.threads.add(threading.get_ident())
                super().write(key, value, ttl)

        tracking = ThreadTrackingStore()
        transport = AsyncCacheTransport(
            httpx.MockTransport(_async_origin(origin)), store=tracking
        )
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as client:
            await client.get("/widgets")
            hit = await client.get("/widgets")

        assert hit.headers[CACHE_STATUS_HEADER] == "HIT"
        assert tracking.threads
        assert threading.get_ident() not in tracking.threads
