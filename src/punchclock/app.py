"""Typer application and CLI entry point for punchclock.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``request``, ``routes``, ``auth``, ``config``).
Every API call made from the command line goes through a
:class:`~punchclock.client.RequestExecutor` opened by
:func:`~punchclock.commands.run_with_executor`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~punchclock.exceptions.PunchclockError` instances exit with their
``exit_code``; anything else is written to a crash log under the data
directory.

See Also:
    :mod:`punchclock.config`: Configuration resolution.
    :mod:`punchclock.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import json
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from punchclock import __version__
from punchclock.commands import fail, run_with_executor
from punchclock.exceptions import InvalidUsageError, PunchclockError
from punchclock.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="punchclock",
    help="Talk to the punchclock time-tracking API from the command line.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"punchclock {__version__}")
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
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="API base URL (overrides env and config)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show cache hits, transfers and retries."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~punchclock.output.OutputManager` from the
    CLI flags and stores ``base_url`` in ``ctx.obj`` for sub-commands.
    """
    from punchclock.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["verbose"] = verbose


def _parse_query(pairs: list[str]) -> dict[str, str]:
    query: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Query parameters must look like key=value, got: {pair!r}")
        query[key] = value
    return query


def _parse_data(data: Optional[str]) -> Any:
    """Parse the ``--data`` option as JSON."""
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--data is not valid JSON: {exc}") from None


@app.command("request")
def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method (GET, POST, PUT, PATCH, DELETE)."),
    path: str = typer.Argument(help="API path, e.g. /api/projects."),
    query: list[str] = typer.Option(
        [], "--query", "-q", help="Query parameter as key=value; repeatable."
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    no_auth: bool = typer.Option(False, "--no-auth", help="Do not send the stored token."),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache and de-duplication."
    ),
    timeout_ms: Optional[int] = typer.Option(
        None, "--timeout", help="Per-attempt timeout in milliseconds."
    ),
    ttl_ms: Optional[int] = typer.Option(
        None, "--ttl", help="Cache lifetime override in milliseconds (GET only)."
    ),
) -> None:
    """Send one request through the executor and print the decoded payload.

    Example::

        punchclock request GET /api/projects
        punchclock request GET /api/time-entries -q from=2024-01-01 -q to=2024-01-31
        punchclock request POST /api/projects --data '{"name": "Depot"}'
    """
    from punchclock.client.response import format_api_payload

    try:
        params = _parse_query(query)
        body = _parse_data(data)
    except PunchclockError as exc:
        fail(exc)

    async def _call(executor: Any) -> Any:
        return await executor.execute(
            path,
            method=method,
            body=body,
            query=params or None,
            requires_auth=not no_auth,
            timeout_ms=timeout_ms,
            cache_ttl_ms=ttl_ms,
            use_cache=not no_cache,
        )

    format_api_payload(run_with_executor(ctx, _call))


@app.command("routes")
def routes_command(
    path: Optional[str] = typer.Argument(None, help="Classify a single path."),
) -> None:
    """Show the route table, or how one path is classified.

    Example::

        punchclock routes
        punchclock routes /api/projects/12
    """
    from punchclock.client import routes
    from punchclock.output import format_response, print_table

    if path is not None:
        pathname = routes.route_path(path)
        rule = routes.match_route(pathname)
        format_response({
            "path": pathname,
            "rule": rule.prefix if rule else None,
            "ttl_ms": routes.cache_lifetime_for(pathname),
            "read_tags": list(routes.read_tags_for(pathname)),
            "invalidation_tags": list(routes.invalidation_tags_for(pathname)),
        })
        return

    rows = [
        [
            rule.prefix + (" (exact)" if rule.exact else ""),
            str(rule.ttl_ms),
            ",".join(rule.read_tags),
            ",".join(rule.invalidation_tags),
        ]
        for rule in routes.ROUTE_RULES
    ]
    print_table(["prefix", "ttl_ms", "read_tags", "invalidation_tags"], rows, title="Routes")


# ------------------------------------------------------------------ #
# Sub-command groups
# ------------------------------------------------------------------ #

from punchclock.commands.auth import auth_app  # noqa: E402
from punchclock.commands.config import config_app  # noqa: E402

app.add_typer(auth_app, name="auth", help="Log in, log out and inspect the session.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from punchclock.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``punchclock`` console script.

    Unhandled :class:`~punchclock.exceptions.PunchclockError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

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
        from punchclock.output import error

        if isinstance(exc, PunchclockError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
