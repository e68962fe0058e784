"""Built-in CLI sub-commands for punchclock.

* :mod:`~punchclock.commands.auth` -- log in, log out, inspect the session.
* :mod:`~punchclock.commands.config` -- view and modify global settings.

The single commands ``request`` and ``routes`` live on the root app in
:mod:`punchclock.app`.  Every command that talks to the API goes through
:func:`run_with_executor`, which opens one
:class:`~punchclock.client.RequestExecutor` per invocation via
:func:`open_executor` and maps :class:`~punchclock.exceptions.PunchclockError`
to a clean exit with the error's ``exit_code``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

import typer

from punchclock.exceptions import ApiError, PunchclockError
from punchclock.output import OutputFormat, error, get_output


def open_executor(base_url: Optional[str] = None) -> Any:
    """Build a :class:`~punchclock.client.RequestExecutor` from the resolved config.

    Tests monkeypatch this to inject an :class:`httpx.MockTransport`.
    """
    from punchclock.client import RequestExecutor, create_context
    from punchclock.config import resolve_config

    return RequestExecutor(create_context(resolve_config(base_url)))


def run_with_executor(
    ctx: typer.Context,
    func: Callable[[Any], Awaitable[Any]],
) -> Any:
    """Run ``await func(executor)`` on a fresh executor and return its result.

    Raises:
        typer.Exit: With the error's exit code when a
            :class:`~punchclock.exceptions.PunchclockError` escapes.
    """
    base_url = ctx.obj.get("base_url") if ctx.obj else None

    async def _runner() -> Any:
        async with open_executor(base_url) as executor:
            return await func(executor)

    try:
        return asyncio.run(_runner())
    except PunchclockError as exc:
        fail(exc)


def fail(exc: PunchclockError) -> None:
    """Report *exc* on stderr and exit with its code.

    In ``--json`` mode an :class:`~punchclock.exceptions.ApiError` is also
    printed to stdout as a structured object.
    """
    if isinstance(exc, ApiError) and get_output().format == OutputFormat.JSON:
        get_output().format_response({"error": exc.to_dict()})
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)
