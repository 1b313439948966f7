"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.manualcache/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Global config** -- a single :class:`~manualcache.models.GlobalConfig`
  JSON file selecting the default store backend and TTL.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config file into the effective
  configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from manualcache.exceptions import ConfigError
from manualcache.models import GlobalConfig

_APP_NAME = "manualcache"
_CONFIG_FILENAME = "config.json"

ENV_STORE = "MANUALCACHE_STORE"
ENV_CACHE_DIR = "MANUALCACHE_CACHE_DIR"
ENV_EXPIRES_IN = "MANUALCACHE_EXPIRES_IN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/manualcache/`` (default
    ``~/.config/manualcache/``). On macOS/Windows: ``~/.manualcache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the disk store. Its contents can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/manualcache/`` (default
    ``~/.cache/manualcache/``). On macOS/Windows: ``~/.manualcache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems. On any failure the temp file is
    removed and the error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~manualcache.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    cli_store: Optional[str] = None,
    cli_cache_dir: Optional[str] = None,
    cli_expires_in: Optional[float] = None,
    default_backend: Optional[str] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``MANUALCACHE_STORE``,
           ``MANUALCACHE_CACHE_DIR``, ``MANUALCACHE_EXPIRES_IN``)
        3. User config (``~/.config/manualcache/config.json``)
        4. *default_backend* for the store, when given
        5. Defaults

    Raises:
        ConfigError: If the config file is invalid or an override fails
            validation.
    """
    loaded = load_global_config()
    data = loaded.model_dump()
    if default_backend and "backend" not in loaded.store.model_fields_set:
        data["store"]["backend"] = default_backend

    store_override = cli_store or os.environ.get(ENV_STORE)
    if store_override:
        data["store"]["backend"] = store_override

    dir_override = cli_cache_dir or os.environ.get(ENV_CACHE_DIR)
    if dir_override:
        data["store"]["directory"] = dir_override

    env_expires = os.environ.get(ENV_EXPIRES_IN)
    if cli_expires_in is not None:
        data["expires_in"] = cli_expires_in
    elif env_expires:
        data["expires_in"] = env_expires

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
