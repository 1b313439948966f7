"""Synchronous HTTP client with a cache transport installed.

:class:`CachedClient` is a thin context manager around
:class:`httpx.Client` whose transport is a
:class:`~manualcache.transport.CacheTransport`. It adds a per-request
``bypass`` switch that sets the marker header so that the exchange neither
reads from nor writes to the store.

Transport errors (:class:`httpx.ConnectError`, timeouts, ...) propagate
unchanged; the cache layer never wraps them.

See Also:
    :class:`~manualcache.client.async_client.AsyncCachedClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from manualcache.exceptions import InvalidUsageError
from manualcache.policies import CACHE_STATUS_HEADER
from manualcache.transport import CacheTransport


class CachedClient:
    """Synchronous HTTP client whose GET/HEAD responses are cached.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        base_url: Prefix for relative request paths.
        transport: Inner transport. Defaults to :class:`httpx.HTTPTransport`.
        timeout: Request timeout in seconds.
        headers: Headers sent with every request.
        **cache_options: ``store``, ``conditions``, ``expires_in``,
            ``logger`` and ``cache_key`` for the engine.

    Example::

        with CachedClient("https://api.example.com", expires_in=60) as client:
            response = client.get("/widgets")
            response.headers["x-cache-status"]   # "MISS", then "HIT"
    """

    def __init__(
        self,
        base_url: str = "",
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        **cache_options: Any,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._transport = CacheTransport(transport, **cache_options)
        self._client: Optional[httpx.Client] = None

    @property
    def transport(self) -> CacheTransport:
        return self._transport

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> CachedClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            transport=self._transport,
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
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

        Args:
            method: HTTP method.
            path: URL or path relative to ``base_url``.
            params: Query parameters.
            headers: Extra request headers.
            json_body: JSON-serialisable body.
            body: Raw body.
            bypass: Skip both the store lookup and the write-back.

        Returns:
            The :class:`httpx.Response`, carrying ``x-cache-status``.

        Raises:
            InvalidUsageError: If called outside the ``with`` block.
        """
        if self._client is None:
            raise InvalidUsageError("Client not initialised -- use as context manager")
        return self._client.request(
            method.upper(),
            path,
            **_request_kwargs(params, headers, json_body, body, bypass),
        )

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request. See :meth:`request`."""
        return self.request("GET", path, **kwargs)

    def head(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a HEAD request. See :meth:`request`."""
        return self.request("HEAD", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a POST request. See :meth:`request`."""
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)


def _request_kwargs(
    params: Optional[dict[str, Any]],
    headers: Optional[dict[str, str]],
    json_body: Optional[Any],
    body: Optional[str | bytes],
    bypass: bool,
) -> dict[str, Any]:
    """Build the keyword arguments for :meth:`httpx.Client.request`."""
    merged_headers: dict[str, str] = dict(headers or {})
    if bypass:
        merged_headers[CACHE_STATUS_HEADER] = "BYPASS"

    kwargs: dict[str, Any] = {"headers": merged_headers}
    if params:
        kwargs["params"] = params
    if json_body is not None:
        kwargs["json"] = json_body
    elif body is not None:
        kwargs["content"] = body
    return kwargs
