"""httpx transports that put a :class:`~manualcache.engine.CacheEngine` in front of another transport.

:class:`CacheTransport` wraps any :class:`httpx.BaseTransport` and is used
with :class:`httpx.Client`; :class:`AsyncCacheTransport` wraps any
:class:`httpx.AsyncBaseTransport` and is used with
:class:`httpx.AsyncClient`, including batches dispatched with
:func:`asyncio.gather`.

Example::

    transport = CacheTransport(httpx.HTTPTransport(retries=2), expires_in=60)
    with httpx.Client(transport=transport) as client:
        client.get("https://api.example.com/widgets")   # x-cache-status: MISS
        client.get("https://api.example.com/widgets")   # x-cache-status: HIT
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from manualcache.engine import CacheEngine


class CacheTransport(httpx.BaseTransport):
    """Synchronous caching transport.

    Args:
        transport: The inner transport that actually sends requests.
            Defaults to a new :class:`httpx.HTTPTransport`.
        engine: A preconfigured engine. When omitted, one is built from
            ``**options`` (see :class:`~manualcache.engine.CacheEngine`).
        **options: ``store``, ``conditions``, ``expires_in``, ``logger``
            and ``cache_key`` for the engine.
    """

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        engine: Optional[CacheEngine] = None,
        **options: Any,
    ) -> None:
        self._transport = transport if transport is not None else httpx.HTTPTransport()
        self._engine = engine if engine is not None else CacheEngine(**options)

    @property
    def engine(self) -> CacheEngine:
        return self._engine

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._engine.handle(request, self._transport.handle_request)

    def close(self) -> None:
        self._transport.close()


class AsyncCacheTransport(httpx.AsyncBaseTransport):
    """Asynchronous caching transport.

    Accepts the same arguments as :class:`CacheTransport`; the inner
    transport defaults to :class:`httpx.AsyncHTTPTransport`.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        engine: Optional[CacheEngine] = None,
        **options: Any,
    ) -> None:
        self._transport = transport if transport is not None else httpx.AsyncHTTPTransport()
        self._engine = engine if engine is not None else CacheEngine(**options)

    @property
    def engine(self) -> CacheEngine:
        return self._engine

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._engine.handle_async(request, self._transport.handle_async_request)

    async def aclose(self) -> None:
        await self._transport.aclose()
