"""Abstract store contract consumed by the cache engine.

A store is a key-value backend with time-based expiry. The engine only ever
calls :meth:`Store.write` and :meth:`Store.fetch`; it never deletes entries
and relies on the store to stop returning an entry once its TTL has passed.

The administrative methods (:meth:`Store.clear`, :meth:`Store.stats`,
:meth:`Store.close`) exist for the CLI and for tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Hashable, Optional

from manualcache.models import CacheEntry


class Store(ABC):
    """Key-value backend with per-entry TTL.

    Implementations must tolerate concurrent independent reads and writes
    from several threads or tasks. No cross-key locking is expected.
    """

    @abstractmethod
    def write(self, key: Hashable, value: CacheEntry, ttl: float) -> None:
        """Store *value* under *key*, replacing any existing entry.

        Args:
            key: The cache key.
            value: The snapshot to store.
            ttl: Seconds until the entry expires.
        """

    @abstractmethod
    def fetch(self, key: Hashable) -> Optional[CacheEntry]:
        """Return the live entry stored under *key*, or ``None``.

        Expired entries are reported as absent.
        """

    def clear(self) -> None:
        """Remove all entries."""

    def stats(self) -> dict[str, Any]:
        """Return a ``dict`` describing the store."""
        return {"backend": type(self).__name__}

    def close(self) -> None:
        """Release any resources held by the store."""
