"""Exception hierarchy for manualcache.

All exceptions inherit from :class:`ManualCacheError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`manualcache.exit_codes`. The CLI entry point catches
``ManualCacheError`` and exits with the matching code.

None of these are raised from the request path because of a cache
operation: store read and write failures degrade to a miss and a dropped
write (see :mod:`manualcache.engine`).

Subclass hierarchy::

    ManualCacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConnectionError_    (exit 6)
    +-- StoreError          (exit 8)
    +-- ConfigError         (exit 1)
"""

from manualcache.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_STORE_ERROR,
)


class ManualCacheError(Exception):
    """Base exception for all manualcache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ManualCacheError):
    """Raised for invalid CLI arguments such as a malformed ``-H`` header."""

    exit_code = EXIT_INVALID_USAGE


class ConnectionError_(ManualCacheError):
    """Raised by the CLI on network-level failures of the inner transport.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class StoreError(ManualCacheError):
    """Raised when a store cannot be constructed or administered."""

    exit_code = EXIT_STORE_ERROR


class ConfigError(ManualCacheError):
    """Raised for configuration problems (invalid JSON, bad ``expires_in``, unknown backend)."""

    exit_code = EXIT_GENERIC_FAILURE
