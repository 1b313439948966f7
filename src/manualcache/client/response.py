"""Response helpers -- cache status inspection and bridging to the output system.

After a request completes, :func:`cache_status` reports whether it was
served from the store, and :func:`format_api_response` routes the body
through :meth:`~manualcache.output.OutputManager.format_response` while
emitting the status line to stderr. The CLI uses both.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from manualcache.output import get_output
from manualcache.policies import CACHE_STATUS_HEADER, HIT


def cache_status(response: httpx.Response) -> Optional[str]:
    """Return ``"HIT"``, ``"MISS"``, or ``None`` if the response bypassed the cache layer."""
    return response.headers.get(CACHE_STATUS_HEADER)


def is_cache_hit(response: httpx.Response) -> bool:
    return cache_status(response) == HIT


def format_api_response(response: httpx.Response) -> None:
    """Print the status line to stderr and the body to stdout.

    The status line reads e.g. ``HTTP 200 OK (HIT)``.
    """
    output = get_output()

    status = cache_status(response)
    suffix = f" ({status})" if status else ""
    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip() + suffix)

    content_type = response.headers.get("content-type", "application/json")
    data = extract_response_data(response)
    if data is not None:
        output.format_response(data, content_type)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Parses JSON when possible, falls back to text, and returns ``None`` for
    an empty body.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text
