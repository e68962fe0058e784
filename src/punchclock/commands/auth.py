"""Auth commands -- manage the stored session.

Provides the ``punchclock auth`` sub-command group.  The token obtained at
login is persisted by :class:`~punchclock.auth.TokenStore`; every change to
it (login, logout, ``set-token``, or a 401 from the API) empties the
response cache.

Typical workflow::

    punchclock auth login 123456   # exchange a passcode for a token
    punchclock auth whoami         # validate it against /api/auth/me
    punchclock auth logout
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from punchclock.auth import Session
from punchclock.commands import open_executor, run_with_executor
from punchclock.exit_codes import EXIT_AUTH_FAILURE
from punchclock.output import error, format_response, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    passcode: Optional[str] = typer.Argument(
        None, help="Six-digit passcode. Prompted for when omitted."
    ),
) -> None:
    """Log in with a six-digit passcode.

    Example::

        punchclock auth login 123456
        punchclock auth login          # prompts, input hidden
    """
    if passcode is None:
        passcode = typer.prompt("PassCode", hide_input=True)

    async def _login(executor: Any) -> Any:
        return await Session(executor).login(passcode)

    user = run_with_executor(ctx, _login)
    name = user.get("name") if isinstance(user, dict) else None
    success(f"Logged in as {name}." if name else "Logged in.")
    if user is not None:
        format_response(user)


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Forget the stored token and empty the response cache."""
    base_url = ctx.obj.get("base_url") if ctx.obj else None
    executor = open_executor(base_url)
    if not executor.get_token():
        info("Not logged in.")
        return
    Session(executor).logout()
    success("Logged out.")


@auth_app.command("whoami")
def auth_whoami(ctx: typer.Context) -> None:
    """Show the user the stored token belongs to.

    The token is validated against ``/api/auth/me``; a rejected token is
    forgotten.
    """

    async def _bootstrap(executor: Any) -> Any:
        return await Session(executor).bootstrap()

    user = run_with_executor(ctx, _bootstrap)
    if user is None:
        error("Not logged in.")
        suggest("Run 'punchclock auth login' first.")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    format_response(user)


@auth_app.command("token")
def auth_token(
    ctx: typer.Context,
    reveal: bool = typer.Option(False, "--reveal", help="Print the full token."),
) -> None:
    """Show the stored token, masked unless ``--reveal`` is given."""
    base_url = ctx.obj.get("base_url") if ctx.obj else None
    executor = open_executor(base_url)
    token = executor.get_token()
    if not token:
        error("No token stored.")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    info(f"Token file: {executor.context.tokens.path}")
    get_output().print_data(token if reveal else _mask(token))


@auth_app.command("set-token")
def auth_set_token(
    ctx: typer.Context,
    token: str = typer.Argument(help="Bearer token to store."),
) -> None:
    """Store a token obtained elsewhere, replacing the current one."""
    base_url = ctx.obj.get("base_url") if ctx.obj else None
    open_executor(base_url).set_token(token.strip())
    success("Token stored.")


def _mask(token: str) -> str:
    """Show the first and last four characters of long tokens only."""
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"
