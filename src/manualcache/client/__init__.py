"""HTTP client module for manualcache.

Provides synchronous and asynchronous clients that wrap :mod:`httpx` with a
cache transport installed.

Classes:
    :class:`CachedClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncCachedClient` -- non-blocking client backed by
    :class:`httpx.AsyncClient`, with concurrent batch dispatch.

Example::

    from manualcache.client import CachedClient

    with CachedClient("https://api.example.com") as client:
        resp = client.get("/widgets")
"""

from manualcache.client.async_client import AsyncCachedClient
from manualcache.client.response import cache_status, is_cache_hit
from manualcache.client.sync_client import CachedClient

__all__ = ["CachedClient", "AsyncCachedClient", "cache_status", "is_cache_hit"]
