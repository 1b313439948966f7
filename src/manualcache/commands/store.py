"""Store commands -- inspect and clear the configured store.

``manualcache store stats`` prints the backend's statistics and
``manualcache store clear`` empties it. Neither is used by the engine,
which never deletes entries itself.
"""

from __future__ import annotations

import typer

from manualcache.config import resolve_config
from manualcache.output import format_response, info, success
from manualcache.store import Store, create_store

store_app = typer.Typer(no_args_is_help=True)


def _open_store(ctx: typer.Context) -> Store:
    obj = ctx.obj or {}
    config = resolve_config(
        cli_store=obj.get("store"),
        cli_cache_dir=obj.get("cache_dir"),
        default_backend="disk",
    )
    return create_store(config.store)


@store_app.command("stats")
def store_stats(ctx: typer.Context) -> None:
    """Show entry count and location of the store.

    Example::

        manualcache store stats
        manualcache --json store stats
    """
    store = _open_store(ctx)
    try:
        format_response(store.stats())
    finally:
        store.close()


@store_app.command("clear")
def store_clear(ctx: typer.Context) -> None:
    """Remove every entry from the store.

    Asks for confirmation unless ``--force`` is active.
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Remove all cached responses?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    store = _open_store(ctx)
    try:
        store.clear()
    finally:
        store.close()
    success("Cache store cleared.")
