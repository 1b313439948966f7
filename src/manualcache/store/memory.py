"""Process-local in-memory store.

The default backend when no other store has been configured. Entries live
in a plain ``dict`` guarded by a lock and are dropped lazily: an expired
entry is removed the next time its key is fetched.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable, Optional

from manualcache.models import CacheEntry
from manualcache.store.base import Store


class MemoryStore(Store):
    """Thread-safe ``dict``-backed store with per-entry TTL.

    Args:
        clock: Monotonic time source in seconds. Tests inject a fake clock
            to move past an entry's TTL without sleeping.

    Example::

        store = MemoryStore()
        store.write("https://api.example.com/widgets", entry, ttl=30)
        store.fetch("https://api.example.com/widgets")
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[Hashable, tuple[float, CacheEntry]] = {}

    def write(self, key: Hashable, value: CacheEntry, ttl: float) -> None:
        deadline = self._clock() + ttl
        with self._lock:
            self._entries[key] = (deadline, value)

    def fetch(self, key: Hashable) -> Optional[CacheEntry]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            deadline, value = item
            if self._clock() >= deadline:
                del self._entries[key]
                return None
            return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        with self._lock:
            size = len(self._entries)
        return {"backend": "memory", "size": size}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
