"""Typer application and CLI entry point for manualcache.

The CLI is a small front end over the library: ``fetch`` sends one request
through a :class:`~manualcache.client.CachedClient` backed by the disk
store, so repeated invocations within the TTL are served from the cache.
``store`` and ``config`` administer the store and the persisted settings.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from manualcache import __version__
from manualcache.commands.config import config_app
from manualcache.commands.fetch import fetch_command
from manualcache.commands.store import store_app
from manualcache.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="manualcache",
    help="Fetch URLs through a TTL response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("fetch")(fetch_command)
app.add_typer(store_app, name="store", help="Inspect and clear the cache store.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"manualcache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    store: Optional[str] = typer.Option(
        None, "--store", help="Store backend: disk (default) or memory."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory of the disk store."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show cache HIT/MISS/WRITE decisions."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~manualcache.output.OutputManager` and
    stores the shared options in ``ctx.obj``.
    """
    from manualcache.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["store"] = store
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``manualcache`` console script.

    :class:`~manualcache.exceptions.ManualCacheError` instances cause a
    clean exit with the error's ``exit_code``; anything else is reported
    as an unexpected error with :data:`EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from manualcache.exceptions import ManualCacheError
        from manualcache.output import error

        if isinstance(exc, ManualCacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
