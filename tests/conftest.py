"""Shared test fixtures for punchclock.

Provides isolated config environments, a token store under ``tmp_path``,
client contexts wired to a fake clock, executors backed by
:class:`httpx.MockTransport`, and output state management.  These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from punchclock.auth import TokenStore
from punchclock.cache import ResponseCache
from punchclock.client import ClientContext, RequestExecutor
from punchclock.config import BASE_URL_ENV_VARS
from punchclock.models import GlobalConfig, RequestConfig
from punchclock.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config or the real token, clears the
    base-URL environment variables and changes the working directory to
    tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("punchclock.config._is_xdg_platform", lambda: True)
    for var in BASE_URL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Request-layer fixtures
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_path(tmp_path: Path) -> Path:
    return tmp_path / "credentials" / "auth_token.json"


@pytest.fixture
def context(token_path: Path, clock: FakeClock, quiet_output: OutputManager) -> ClientContext:
    """A client context with a stored token, pointed at :data:`BASE_URL`."""
    tokens = TokenStore(token_path)
    tokens.set("tok-1")
    return ClientContext(
        config=GlobalConfig(base_url=BASE_URL, request=RequestConfig(timeout_ms=2000)),
        tokens=tokens,
        cache=ResponseCache(clock=clock),
    )


class Recorder:
    """Wraps a request handler and records every request it receives."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []

    @property
    def count(self) -> int:
        return len(self.requests)

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self._handler(request)
        if hasattr(result, "__await__"):
            result = await result
        return result


@pytest.fixture
def make_executor(context: ClientContext) -> Callable[..., tuple[RequestExecutor, Recorder]]:
    """Factory returning ``(executor, recorder)`` for a request handler.

    The handler may be sync or async; it receives the
    :class:`httpx.Request` and returns an :class:`httpx.Response` (or
    raises an httpx transport error).
    """
    def _make(handler: Callable[[httpx.Request], Any]) -> tuple[RequestExecutor, Recorder]:
        recorder = Recorder(handler)
        executor = RequestExecutor(context, transport=httpx.MockTransport(recorder))
        return executor, recorder

    return _make


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
