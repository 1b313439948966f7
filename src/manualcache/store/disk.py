"""Disk-based store backed by :mod:`diskcache`.

Entries are pickled into a :class:`diskcache.Cache` directory and expire
through diskcache's own ``expire`` support, so they survive between
processes. This is the backend the ``manualcache`` CLI uses by default.

See Also:
    :class:`~manualcache.models.StoreConfig` -- ``backend="disk"`` selects
    this store, ``directory`` and ``size_limit`` parameterise it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Hashable, Optional

import diskcache

from manualcache.models import CacheEntry
from manualcache.store.base import Store


class DiskStore(Store):
    """Disk-backed store for cache entries.

    Args:
        cache_dir: Root directory for the store. A ``responses/``
            subdirectory is created inside it.
        size_limit: Maximum total size in bytes before diskcache starts
            culling the least recently stored entries.

    Example::

        from manualcache.store import DiskStore

        store = DiskStore("/tmp/api-cache")
        store.write(key, entry, ttl=300)
        hit = store.fetch(key)
    """

    def __init__(self, cache_dir: str | Path, size_limit: int = 2**30) -> None:
        self._cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(
            str(self._cache_dir / "responses"),
            size_limit=size_limit,
        )

    @property
    def directory(self) -> Path:
        """Directory holding the diskcache database."""
        return self._cache_dir / "responses"

    def write(self, key: Hashable, value: CacheEntry, ttl: float) -> None:
        """Store *value* under *key* with a TTL of *ttl* seconds."""
        self._cache.set(key, value, expire=ttl)

    def fetch(self, key: Hashable) -> Optional[CacheEntry]:
        """Return the entry under *key*, or ``None`` on a miss or after expiry."""
        return self._cache.get(key)

    def clear(self) -> None:
        """Remove all entries from the store."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return store statistics.

        Returns:
            A ``dict`` with ``backend``, ``size`` (number of entries,
            expired ones included until diskcache culls them),
            ``volume`` (bytes on disk) and ``directory``.
        """
        return {
            "backend": "disk",
            "size": len(self._cache),
            "volume": self._cache.volume(),
            "directory": str(self.directory),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
