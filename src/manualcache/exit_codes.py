"""Numeric process exit codes for the ``manualcache`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~manualcache.exceptions.ManualCacheError` subclass.
Shell wrappers can inspect the exit code to tell a network failure from a
broken cache directory without parsing stderr.

Example::

    $ manualcache fetch https://unreachable.invalid/
    $ echo $?
    6   # EXIT_CONNECTION_ERROR
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STORE_ERROR = 8
"""The cache store could not be opened or administered."""
