"""Canonical Pydantic models shared across manualcache modules.

The models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`StoreConfig` and :class:`GlobalConfig`.

**Engine options** -- :class:`CacheOptions`, the immutable bundle of policies
a :class:`~manualcache.engine.CacheEngine` is built from. Policies are plain
callables, so this model is never serialised.

**Stored data** -- :class:`CacheEntry`, the snapshot written to a
:class:`~manualcache.store.Store`. Entries are frozen; a store replaces them
wholesale and never merges.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable, Hashable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from manualcache.policies import (
    DEFAULT_EXPIRES_IN,
    default_cache_key,
    default_conditions,
)

ExpiresIn = Union[float, timedelta, Callable[..., Any]]
"""A TTL in seconds, a :class:`~datetime.timedelta`, or a per-request callable."""


# --- Configuration ---


class StoreConfig(BaseModel):
    """Selects and parameterises the process-wide default store.

    Example::

        StoreConfig(backend="disk", directory="/var/cache/myapp")
    """

    backend: Literal["memory", "disk"] = Field(
        default="memory", description="Store implementation: memory or disk"
    )
    directory: Optional[str] = Field(
        default=None,
        description="Root directory of the disk store (defaults to the XDG cache dir)",
    )
    size_limit: int = Field(
        default=2**30, description="Maximum disk store size in bytes"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/manualcache/config.json``.

    Loaded and saved by :func:`~manualcache.config.load_global_config` and
    :func:`~manualcache.config.save_global_config`. Environment variables
    and CLI flags take precedence; see
    :func:`~manualcache.config.resolve_config`.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    expires_in: float = Field(
        default=DEFAULT_EXPIRES_IN, gt=0, description="Default TTL in seconds"
    )


# --- Engine options ---


class CacheOptions(BaseModel):
    """Immutable policy bundle for a :class:`~manualcache.engine.CacheEngine`.

    Attributes:
        conditions: ``(request, response_or_None) -> bool`` eligibility
            predicate, evaluated once before lookup and once after the
            response arrives.
        expires_in: TTL in seconds, a ``timedelta``, or ``request -> TTL``.
        logger: Any object with an ``info(str)`` method, or ``None``.
        cache_key: ``request -> key`` function; the key is any hashable value.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conditions: Callable[..., bool] = default_conditions
    expires_in: ExpiresIn = DEFAULT_EXPIRES_IN
    logger: Optional[Any] = None
    cache_key: Callable[..., Hashable] = default_cache_key

    @field_validator("expires_in")
    @classmethod
    def _positive_static_ttl(cls, value: ExpiresIn) -> ExpiresIn:
        if isinstance(value, timedelta):
            if value.total_seconds() <= 0:
                raise ValueError("expires_in must be positive")
        elif not callable(value) and value <= 0:
            raise ValueError("expires_in must be positive")
        return value


# --- Stored data ---


class CacheEntry(BaseModel):
    """Serializable snapshot of one completed request/response exchange.

    Holds only plain data: the raw (still content-encoded) response body,
    headers as ordered ``(name, value)`` pairs so that repeated headers
    survive, and the allow-listed response extensions. Nothing tied to a
    live connection is ever stored.
    """

    model_config = ConfigDict(frozen=True)

    key: Hashable
    method: str
    url: str
    request_headers: list[tuple[str, str]] = Field(default_factory=list)
    request_body: bytes = b""
    status_code: int
    response_headers: list[tuple[str, str]] = Field(default_factory=list)
    content: bytes = b""
    extensions: dict[str, bytes] = Field(default_factory=dict)
    stored_at: float
    expires_at: float
