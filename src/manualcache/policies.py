"""Default caching policies: eligibility, cache key, and expiry.

Every policy is a pure function of the request (and, for eligibility, the
response when one exists). Callers override them by passing their own
callables to :class:`~manualcache.engine.CacheEngine`.
"""

from __future__ import annotations

import hashlib
from datetime import timedelta
from typing import Any, Optional

import httpx

from manualcache.exceptions import ConfigError

CACHE_STATUS_HEADER = "x-cache-status"
"""Marker set to ``HIT`` or ``MISS`` on responses; on a request it means bypass."""

HIT = "HIT"
MISS = "MISS"

DEFAULT_EXPIRES_IN = 30.0
"""Default time-to-live of a stored entry, in seconds."""

CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


def is_error_response(response: Optional[httpx.Response]) -> bool:
    """Return ``True`` when *response* exists and carries a 4xx/5xx status."""
    return response is not None and response.status_code >= 400


def default_conditions(
    request: httpx.Request,
    response: Optional[httpx.Response] = None,
) -> bool:
    """Eligible iff the method is GET or HEAD and the response is not an error.

    On the read path there is no response yet, which counts as passing the
    status check.
    """
    return request.method.upper() in CACHEABLE_METHODS and not is_error_response(response)


def default_cache_key(request: httpx.Request) -> str:
    """Key on the full URL, query string included.

    GET and HEAD to the same URL share a key. Use :func:`method_url_key`
    when they must be kept apart.
    """
    return str(request.url)


def method_url_key(request: httpx.Request) -> str:
    """Key on ``METHOD|URL``, hashed with SHA-256."""
    raw = f"{request.method.upper()}|{request.url}"
    return hashlib.sha256(raw.encode()).hexdigest()


def resolve_expires_in(expires_in: Any, request: httpx.Request) -> float:
    """Resolve an ``expires_in`` option to a TTL in seconds for *request*.

    Args:
        expires_in: Seconds, a :class:`~datetime.timedelta`, or a callable
            taking the request and returning either of those.
        request: The request whose response is about to be stored.

    Returns:
        A positive number of seconds.

    Raises:
        ConfigError: If the resolved value is not a positive duration.
    """
    value = expires_in(request) if callable(expires_in) else expires_in
    if isinstance(value, timedelta):
        value = value.total_seconds()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"expires_in must resolve to a number of seconds, got {value!r}")
    if value <= 0:
        raise ConfigError(f"expires_in must be positive, got {value}")
    return float(value)
