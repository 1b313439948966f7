"""Process-wide default store.

Engines built without an explicit store share one instance for the life of
the process. It is created lazily as a :class:`MemoryStore` on first use
unless :func:`configure_store` or :func:`set_store` installed another one
earlier.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from manualcache.config import get_cache_dir, resolve_config
from manualcache.exceptions import StoreError
from manualcache.models import StoreConfig
from manualcache.store.base import Store
from manualcache.store.disk import DiskStore
from manualcache.store.memory import MemoryStore

_store: Optional[Store] = None
_lock = threading.Lock()


def create_store(config: StoreConfig) -> Store:
    """Build a new store from *config* without installing it.

    Raises:
        StoreError: If the disk store directory cannot be opened.
    """
    if config.backend == "memory":
        return MemoryStore()

    directory = Path(config.directory).expanduser() if config.directory else None
    try:
        if directory is None:
            directory = get_cache_dir()
        return DiskStore(directory, size_limit=config.size_limit)
    except OSError as exc:
        raise StoreError(f"Cannot open disk store at {directory}: {exc}") from exc


def configure_store(config: Optional[StoreConfig] = None) -> Store:
    """Build a store from *config* and install it as the process default.

    Without *config* the effective configuration from
    :func:`~manualcache.config.resolve_config` is used, so the user config
    file and ``MANUALCACHE_*`` environment variables apply. Any previously
    installed store is closed first.

    Returns:
        The newly installed store.
    """
    store = create_store(config or resolve_config().store)
    set_store(store)
    return store


def get_store() -> Store:
    """Return the process-wide store, creating a :class:`MemoryStore` if none is set."""
    global _store
    with _lock:
        if _store is None:
            _store = MemoryStore()
        return _store


def set_store(store: Store) -> None:
    """Install *store* as the process-wide default, closing the previous one."""
    global _store
    with _lock:
        previous, _store = _store, store
    if previous is not None and previous is not store:
        previous.close()


def reset_store() -> None:
    """Close and forget the process-wide store.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _store
    with _lock:
        previous, _store = _store, None
    if previous is not None:
        previous.close()
