"""Cache engine: lookup, hit/miss decoration, and write-back.

:class:`CacheEngine` is the single orchestration point for every request
that passes through a cache transport. For each request it:

1. Creates a request-scoped :class:`CacheExchange` holding the key and the
   read-path eligibility. The engine itself only holds immutable
   :class:`~manualcache.models.CacheOptions` and a store reference, so one
   engine can serve many concurrent requests.
2. On an eligible request without the bypass marker, fetches the key from
   the store. A hit is returned as a fully buffered response marked
   ``HIT`` and the inner transport is never called.
3. Otherwise forwards the request and, once the inner transport returns,
   completes the exchange exactly once: marks the response ``MISS``,
   re-evaluates eligibility with the response, and writes a snapshot to the
   store.

Caching never fails a request. A failing ``fetch`` counts as a miss. A
write that cannot happen is dropped, whether the per-request
``expires_in`` is invalid or the snapshot or ``write`` raises. Each case is
logged at WARNING.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable, Optional

import httpx
from pydantic import ValidationError

from manualcache.exceptions import ConfigError
from manualcache.models import CacheEntry, CacheOptions
from manualcache.policies import (
    CACHE_STATUS_HEADER,
    DEFAULT_EXPIRES_IN,
    HIT,
    MISS,
    default_cache_key,
    default_conditions,
    resolve_expires_in,
)
from manualcache.store import Store, get_store

logger = logging.getLogger(__name__)

SERIALIZABLE_EXTENSIONS = ("http_version", "reason_phrase")
"""Response extensions copied into a snapshot. Everything else stays behind."""

SendFn = Callable[[httpx.Request], httpx.Response]
AsyncSendFn = Callable[[httpx.Request], Awaitable[httpx.Response]]


@dataclass
class CacheExchange:
    """Mutable state of one request travelling through the engine.

    Attributes:
        request: The outgoing request.
        key: Cache key computed once from *request*. Any hashable value
            the store accepts: a string by default, or a tuple or other
            structured value from a custom key function.
        eligible: Result of the eligibility predicate; recomputed with the
            response at completion.
        bypassed: ``True`` when the request carries the marker header.
        parallel: ``True`` when the exchange is one of possibly many
            requests in flight on an async transport. Informational only:
            snapshots are stripped of transport state in both modes.
        response: The forwarded response, set at completion.
        completed: Set once the completion step has run.
    """

    request: httpx.Request
    key: Hashable
    eligible: bool
    bypassed: bool
    parallel: bool = False
    response: Optional[httpx.Response] = None
    completed: bool = False

    @property
    def cacheable(self) -> bool:
        """Whether the store may be read from or written to for this exchange."""
        return self.eligible and not self.bypassed


class CacheEngine:
    """Caching decision-and-storage engine shared by the sync and async transports.

    Args:
        store: Backend to read and write. Defaults to the process-wide store
            from :func:`~manualcache.store.get_store`, resolved once here.
        conditions: ``(request, response_or_None) -> bool`` eligibility
            predicate. Defaults to GET/HEAD with a non-error status.
        expires_in: TTL in seconds, a ``timedelta``, or ``request -> TTL``.
        logger: Object with an ``info(str)`` method receiving
            ``Cache HIT/MISS/WRITE: <key>`` messages.
        cache_key: ``request -> key`` function returning any hashable value.
            Defaults to the URL string.

    Raises:
        ConfigError: If a static ``expires_in`` is not a positive duration.

    Example::

        engine = CacheEngine(expires_in=60, logger=logging.getLogger("http"))
        response = engine.handle(request, transport.handle_request)
    """

    def __init__(
        self,
        store: Optional[Store] = None,
        *,
        conditions: Callable[..., bool] = default_conditions,
        expires_in: Any = DEFAULT_EXPIRES_IN,
        logger: Optional[Any] = None,
        cache_key: Callable[..., Hashable] = default_cache_key,
    ) -> None:
        try:
            self._options = CacheOptions(
                conditions=conditions,
                expires_in=expires_in,
                logger=logger,
                cache_key=cache_key,
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid cache options: {exc}") from exc
        self._store = store if store is not None else get_store()

    @property
    def options(self) -> CacheOptions:
        """The immutable policy bundle."""
        return self._options

    @property
    def store(self) -> Store:
        """The store this engine reads from and writes to."""
        return self._store

    # ------------------------------------------------------------------ #
    # Request handling
    # ------------------------------------------------------------------ #

    def handle(self, request: httpx.Request, send: SendFn) -> httpx.Response:
        """Serve *request* from the store or forward it with *send*."""
        exchange = self.begin(request)
        cached = self.lookup(exchange)
        if cached is not None:
            return cached
        return self.complete(exchange, send(request))

    async def handle_async(self, request: httpx.Request, send: AsyncSendFn) -> httpx.Response:
        """Async counterpart of :meth:`handle`.

        Store reads and writes run in the loop's default executor, so a
        blocking backend such as :class:`~manualcache.store.DiskStore` never
        stalls sibling requests in the same batch.
        """
        exchange = self.begin(request, parallel=True)
        cached = await self.lookup_async(exchange)
        if cached is not None:
            return cached
        response = await send(request)
        return await self.complete_async(exchange, response)

    def begin(self, request: httpx.Request, parallel: bool = False) -> CacheExchange:
        """Create the request-scoped exchange for *request*."""
        return CacheExchange(
            request=request,
            key=self._key(request),
            eligible=self._options.conditions(request, None),
            bypassed=CACHE_STATUS_HEADER in request.headers,
            parallel=parallel,
        )

    def lookup(self, exchange: CacheExchange) -> Optional[httpx.Response]:
        """Return a ``HIT`` response for *exchange*, or ``None`` to forward it.

        The store is not consulted at all for ineligible or bypassed
        exchanges.
        """
        if not exchange.cacheable:
            return None
        return self._answer(exchange, self._fetch(exchange.key))

    async def lookup_async(self, exchange: CacheExchange) -> Optional[httpx.Response]:
        """Async counterpart of :meth:`lookup`."""
        if not exchange.cacheable:
            return None
        loop = asyncio.get_running_loop()
        entry = await loop.run_in_executor(None, self._fetch, exchange.key)
        return self._answer(exchange, entry)

    def complete(self, exchange: CacheExchange, response: httpx.Response) -> httpx.Response:
        """Finish a forwarded exchange and write it back when eligible.

        Runs once per exchange; later calls return *response* untouched.
        When the exchange is written, the body is buffered and the caller
        gets an equivalent response reading from memory.
        """
        ttl = self._settle(exchange, response)
        if ttl is None:
            return response
        try:
            content = b"".join(response.stream)
        finally:
            response.close()
        entry = self._prepare_write(exchange, response, content, ttl)
        if entry is not None:
            self._write(exchange.key, entry, ttl)
        return self._buffered(exchange, response, content)

    async def complete_async(
        self, exchange: CacheExchange, response: httpx.Response
    ) -> httpx.Response:
        """Async counterpart of :meth:`complete`."""
        ttl = self._settle(exchange, response)
        if ttl is None:
            return response
        try:
            content = b"".join([chunk async for chunk in response.stream])
        finally:
            await response.aclose()
        entry = self._prepare_write(exchange, response, content, ttl)
        if entry is not None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._write, exchange.key, entry, ttl)
        return self._buffered(exchange, response, content)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _settle(self, exchange: CacheExchange, response: httpx.Response) -> Optional[float]:
        """Mark *response* as a miss and return its TTL if it is to be written.

        ``None`` means the response goes back to the caller unbuffered and
        unwritten.
        """
        if exchange.completed:
            return None
        exchange.completed = True
        exchange.response = response
        response.headers[CACHE_STATUS_HEADER] = MISS
        exchange.eligible = self._options.conditions(exchange.request, response)
        if not exchange.cacheable:
            return None
        try:
            return resolve_expires_in(self._options.expires_in, exchange.request)
        except ConfigError:
            logger.warning("Not caching %s: invalid expires_in", exchange.key, exc_info=True)
            return None

    def _fetch(self, key: Hashable) -> Optional[CacheEntry]:
        try:
            return self._store.fetch(key)
        except Exception:
            logger.warning("Cache store fetch failed for %s", key, exc_info=True)
            return None

    def _answer(
        self, exchange: CacheExchange, entry: Optional[CacheEntry]
    ) -> Optional[httpx.Response]:
        if entry is None:
            self._info(f"Cache MISS: {exchange.key}")
            return None
        self._info(f"Cache HIT: {exchange.key}")
        return self._to_response(entry, exchange.request)

    def _prepare_write(
        self,
        exchange: CacheExchange,
        response: httpx.Response,
        content: bytes,
        ttl: float,
    ) -> Optional[CacheEntry]:
        try:
            entry = _snapshot(exchange, response, content, ttl)
        except Exception:
            logger.warning("Cache snapshot failed for %s", exchange.key, exc_info=True)
            return None
        self._info(f"Cache WRITE: {exchange.key}")
        return entry

    def _write(self, key: Hashable, entry: CacheEntry, ttl: float) -> None:
        try:
            self._store.write(key, entry, ttl)
        except Exception:
            logger.warning("Cache store write failed for %s", key, exc_info=True)

    def _buffered(
        self,
        exchange: CacheExchange,
        response: httpx.Response,
        content: bytes,
    ) -> httpx.Response:
        buffered = httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=httpx.ByteStream(content),
            request=exchange.request,
            extensions=response.extensions,
        )
        exchange.response = buffered
        return buffered

    def _to_response(self, entry: CacheEntry, request: httpx.Request) -> httpx.Response:
        response = httpx.Response(
            status_code=entry.status_code,
            headers=entry.response_headers,
            stream=httpx.ByteStream(entry.content),
            request=request,
            extensions=dict(entry.extensions),
        )
        response.headers[CACHE_STATUS_HEADER] = HIT
        return response

    def _key(self, request: httpx.Request) -> Hashable:
        return self._options.cache_key(request)

    def _info(self, message: str) -> None:
        sink = self._options.logger
        if sink is None:
            return
        try:
            sink.info(message)
        except Exception:
            logger.debug("Cache logger failed on %r", message, exc_info=True)


def _snapshot(
    exchange: CacheExchange,
    response: httpx.Response,
    content: bytes,
    ttl: float,
) -> CacheEntry:
    """Build the immutable entry stored for a completed exchange.

    Only plain data is copied. The response stream, ``network_stream`` and
    any other transport-owned extension are left out, so the entry pickles
    cleanly even when it came off a pooled async connection.
    """
    request = exchange.request
    now = time.time()
    extensions = {
        name: response.extensions[name]
        for name in SERIALIZABLE_EXTENSIONS
        if isinstance(response.extensions.get(name), bytes)
    }
    return CacheEntry(
        key=exchange.key,
        method=request.method,
        url=str(request.url),
        request_headers=request.headers.multi_items(),
        request_body=_request_body(request),
        status_code=response.status_code,
        response_headers=[
            (name, value)
            for name, value in response.headers.multi_items()
            if name.lower() != CACHE_STATUS_HEADER
        ],
        content=content,
        extensions=extensions,
        stored_at=now,
        expires_at=now + ttl,
    )


def _request_body(request: httpx.Request) -> bytes:
    # Streaming uploads are not replayable and are left out of the snapshot.
    try:
        return request.content
    except httpx.RequestNotRead:
        return b""
