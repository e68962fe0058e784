"""Config commands -- view and modify global configuration.

Provides the ``punchclock config`` sub-command group for reading, updating
and resetting the user's global configuration file
(:class:`~punchclock.models.GlobalConfig`).  ``config show`` prints the
*effective* configuration, after environment variables and project config
have been applied; ``set`` and ``reset`` only touch the global file.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from punchclock.exit_codes import EXIT_INVALID_USAGE
from punchclock.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Example::

        punchclock config show
        punchclock --json config show
    """
    from punchclock.config import get_config_dir, resolve_config

    base_url = ctx.obj.get("base_url") if ctx.obj else None
    config = resolve_config(base_url)
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'request.timeout_ms')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field (bool, int or
    str) and the result is validated before it is saved.

    Example::

        punchclock config set base_url https://api.example.com
        punchclock config set request.timeout_ms 30000
        punchclock config set request.verify_ssl false
    """
    from punchclock.config import load_global_config, save_global_config
    from punchclock.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    *parents, final_key = key.split(".")
    target = data
    for part in parents:
        if not isinstance(target.get(part), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[part]

    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    else:
        coerced = value
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the global configuration to defaults."""
    from punchclock.config import save_global_config
    from punchclock.models import GlobalConfig

    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
