"""Shared test fixtures for manualcache.

Provides a fake upstream server for :class:`httpx.MockTransport`, a fake
monotonic clock, stores that record every call, and isolation of the
process-wide store, the output manager and the XDG directories.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Hashable, Optional

import httpx
import pytest

from manualcache.models import CacheEntry
from manualcache.output import reset_output
from manualcache.store import MemoryStore, reset_store

BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals() -> None:
    """Forget the process-wide store and output manager after every test."""
    yield
    reset_output()
    reset_store()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Origin:
    """Fake upstream server used as the handler of an ``httpx.MockTransport``.

    Unknown routes answer ``404``. Every request that reaches the origin is
    recorded, so ``origin.calls`` counts transport round-trips.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], dict[str, Any]] = {}

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[list[tuple[str, str]]] = None,
        extensions: Optional[dict[str, Any]] = None,
    ) -> None:
        self._routes[(method.upper(), path)] = {
            "status": status,
            "json": json,
            "content": content,
            "headers": headers or [],
            "extensions": extensions or {},
        }

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        kwargs: dict[str, Any] = {"headers": route["headers"], "extensions": route["extensions"]}
        if route["content"] is not None:
            kwargs["content"] = route["content"]
        elif route["json"] is not None:
            kwargs["json"] = route["json"]
        return httpx.Response(route["status"], **kwargs)


class RecordingStore(MemoryStore):
    """MemoryStore that records every fetch and write."""

    def __init__(self, clock: FakeClock) -> None:
        super().__init__(clock=clock)
        self.fetches: list[Hashable] = []
        self.writes: list[tuple[Hashable, CacheEntry, float]] = []

    def fetch(self, key: Hashable) -> Optional[CacheEntry]:
        self.fetches.append(key)
        return super().fetch(key)

    def write(self, key: Hashable, value: CacheEntry, ttl: float) -> None:
        self.writes.append((key, value, ttl))
        super().write(key, value, ttl)


class ListLogger:
    """Minimal ``info(str)`` sink collecting messages."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def info(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def origin() -> Origin:
    """Origin with ``GET /widgets`` answering ``200 {"id": 1}``."""
    o = Origin()
    o.route("GET", "/widgets", json={"id": 1})
    return o


@pytest.fixture
def store(clock: FakeClock) -> RecordingStore:
    return RecordingStore(clock)


@pytest.fixture
def list_logger() -> ListLogger:
    return ListLogger()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at ``tmp_path`` and clear ``MANUALCACHE_*`` variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("manualcache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for var in ["MANUALCACHE_STORE", "MANUALCACHE_CACHE_DIR", "MANUALCACHE_EXPIRES_IN"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
