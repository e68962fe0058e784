"""punchclock -- request orchestration client for the time-tracking API.

Every network call made against the workforce time-tracking and finance
API passes through a single :class:`~punchclock.client.RequestExecutor`.
The executor owns the concerns no caller should re-implement: response
caching with expiry, tag-based invalidation after mutations,
de-duplication of concurrent identical reads, per-attempt timeouts, a
single retry on transport failure, and coupling of all of that to the
persisted bearer token.

Typical usage::

    from punchclock.client import RequestExecutor, create_context

    async with RequestExecutor(create_context()) as api:
        projects = await api.get("/api/projects", query={"page": 1})

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Structured error hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
