"""Asynchronous HTTP client -- mirrors :class:`~manualcache.client.sync_client.CachedClient`.

:class:`AsyncCachedClient` wraps :class:`httpx.AsyncClient` with an
:class:`~manualcache.transport.AsyncCacheTransport` and adds
:meth:`AsyncCachedClient.gather`, which dispatches a batch of GET requests
concurrently. Cached members of the batch are answered straight from the
store while the others are in flight.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional

import httpx

from manualcache.client.sync_client import _request_kwargs
from manualcache.exceptions import InvalidUsageError
from manualcache.transport import AsyncCacheTransport


class AsyncCachedClient:
    """Asynchronous HTTP client whose GET/HEAD responses are cached.

    Accepts the same arguments as
    :class:`~manualcache.client.sync_client.CachedClient`; the inner
    transport defaults to :class:`httpx.AsyncHTTPTransport`. Must be used as
    an async context manager.

    Example::

        async with AsyncCachedClient("https://api.example.com") as client:
            first, second = await client.gather(["/widgets/1", "/widgets/2"])
    """

    def __init__(
        self,
        base_url: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        **cache_options: Any,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._transport = AsyncCacheTransport(transport, **cache_options)
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def transport(self) -> AsyncCacheTransport:
        return self._transport

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncCachedClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            transport=self._transport,
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str | bytes] = None,
        bypass: bool = False,
    ) -> httpx.Response:
        """Send a request through the cache.

        Behaves identically to
        :meth:`~manualcache.client.sync_client.CachedClient.request` but is
        non-blocking.
        """
        if self._client is None:
            raise InvalidUsageError("Client not initialised -- use as async context manager")
        return await self._client.request(
            method.upper(),
            path,
            **_request_kwargs(params, headers, json_body, body, bypass),
        )

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def head(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("HEAD", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def gather(self, paths: Iterable[str], **kwargs: Any) -> list[httpx.Response]:
        """GET every path in *paths* concurrently.

        Args:
            paths: URLs or paths relative to ``base_url``.
            **kwargs: Forwarded to :meth:`request` for every member.

        Returns:
            Responses in the same order as *paths*. The first transport
            error raised by any member propagates.
        """
        return list(await asyncio.gather(*(self.get(path, **kwargs) for path in paths)))
