"""Key-value stores for cache entries.

:class:`Store` is the contract the engine depends on. Two implementations
ship with the package:

* :class:`MemoryStore` -- process-local, the default.
* :class:`DiskStore` -- persistent, backed by :mod:`diskcache`.

The process-wide default store is managed by :func:`configure_store`,
:func:`get_store`, :func:`set_store` and :func:`reset_store`.
"""

from manualcache.store.base import Store
from manualcache.store.default import (
    configure_store,
    create_store,
    get_store,
    reset_store,
    set_store,
)
from manualcache.store.disk import DiskStore
from manualcache.store.memory import MemoryStore

__all__ = [
    "Store",
    "MemoryStore",
    "DiskStore",
    "configure_store",
    "create_store",
    "get_store",
    "set_store",
    "reset_store",
]
