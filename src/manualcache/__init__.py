"""manualcache -- a TTL response cache for httpx.

The cache sits between an httpx client and its transport. Eligible
requests (GET and HEAD by default) are looked up in a key-value store and,
on a hit, answered without touching the network; everything else is
forwarded and, when the response is eligible, stored for the configured
time-to-live. Every response carries ``x-cache-status: HIT`` or ``MISS``.

Typical use::

    import httpx
    from manualcache import CacheTransport

    client = httpx.Client(transport=CacheTransport(expires_in=60))

Modules:
    engine: The caching decision-and-storage engine.
    transport: httpx transports driving the engine.
    policies: Default eligibility, key and expiry policies.
    store: Store contract, memory and disk stores, process-wide default.
    client: Convenience sync/async clients with the transport installed.
    models: Pydantic models for configuration and cache entries.
    config: XDG-aware configuration and precedence resolution.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from manualcache.engine import CacheEngine, CacheExchange  # noqa: E402
from manualcache.models import CacheEntry  # noqa: E402
from manualcache.policies import (  # noqa: E402
    CACHE_STATUS_HEADER,
    default_cache_key,
    default_conditions,
    method_url_key,
)
from manualcache.store import (  # noqa: E402
    DiskStore,
    MemoryStore,
    Store,
    configure_store,
    get_store,
)
from manualcache.transport import AsyncCacheTransport, CacheTransport  # noqa: E402

__all__ = [
    "__version__",
    "CacheEngine",
    "CacheExchange",
    "CacheEntry",
    "CacheTransport",
    "AsyncCacheTransport",
    "CACHE_STATUS_HEADER",
    "default_cache_key",
    "default_conditions",
    "method_url_key",
    "Store",
    "MemoryStore",
    "DiskStore",
    "configure_store",
    "get_store",
]
