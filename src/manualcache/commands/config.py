"""Config commands -- view and modify the persisted configuration.

Provides ``manualcache config show|set|reset`` over
:class:`~manualcache.models.GlobalConfig`, stored as JSON in the
manualcache config directory.
"""

from __future__ import annotations

import typer

from manualcache.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the persisted configuration.

    Example::

        manualcache config show
        manualcache --json config show
    """
    from manualcache.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'store.backend')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The new configuration is validated against
    :class:`~manualcache.models.GlobalConfig` before it is saved, so the
    value is coerced by Pydantic (``"300"`` becomes ``300.0`` for
    ``expires_in``).

    Raises:
        typer.Exit: With code 2 if the key is unknown or validation fails.

    Example::

        manualcache config set expires_in 300
        manualcache config set store.backend disk
        manualcache config set store.directory ~/.cache/my-api
    """
    from pydantic import ValidationError

    from manualcache.config import load_global_config, save_global_config
    from manualcache.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)
    target[final_key] = value

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.
    """
    from manualcache.config import save_global_config
    from manualcache.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
