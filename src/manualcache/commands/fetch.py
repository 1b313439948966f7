"""Fetch command -- send one request through the cache.

``manualcache fetch URL`` resolves the effective configuration, opens the
configured store, and performs the request with a
:class:`~manualcache.client.CachedClient`. The status line, including the
``HIT``/``MISS`` marker, goes to stderr and the body to stdout.
"""

from __future__ import annotations

from typing import Optional

import httpx
import typer

from manualcache.client import CachedClient
from manualcache.client.response import format_api_response
from manualcache.config import resolve_config
from manualcache.exceptions import ConnectionError_, InvalidUsageError
from manualcache.output import get_output
from manualcache.store import create_store


def _build_transport(retries: int) -> httpx.BaseTransport:
    """Inner transport used by ``fetch``; connection retries are httpx's own."""
    return httpx.HTTPTransport(retries=retries)


def _parse_headers(raw_headers: list[str]) -> dict[str, str]:
    """Parse ``Name: value`` strings into a dict.

    Raises:
        InvalidUsageError: If an entry has no colon or an empty name.
    """
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {raw!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL to request."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Extra request header, 'Name: value'. Repeatable."
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Raw request body."),
    expires_in: Optional[float] = typer.Option(
        None, "--expires-in", help="TTL in seconds for a stored response."
    ),
    bypass: bool = typer.Option(
        False, "--bypass", help="Neither read from nor write to the cache."
    ),
    retries: int = typer.Option(0, "--retries", help="Connection retries."),
) -> None:
    """Request URL, serving it from the cache when a live entry exists.

    Example::

        manualcache fetch https://api.example.com/widgets
        manualcache -v fetch https://api.example.com/widgets --expires-in 300
        manualcache fetch https://api.example.com/widgets --bypass
    """
    obj = ctx.obj or {}
    headers = _parse_headers(header)
    config = resolve_config(
        cli_store=obj.get("store"),
        cli_cache_dir=obj.get("cache_dir"),
        cli_expires_in=expires_in,
        default_backend="disk",
    )

    output = get_output()
    store = create_store(config.store)
    try:
        with CachedClient(
            transport=_build_transport(retries),
            store=store,
            expires_in=config.expires_in,
            logger=output if output.is_verbose else None,
        ) as client:
            response = client.request(method, url, headers=headers, body=data, bypass=bypass)
    except httpx.HTTPError as exc:
        raise ConnectionError_(f"Request to {url} failed: {exc}") from exc
    finally:
        store.close()

    format_api_response(response)
