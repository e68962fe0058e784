"""Canonical Pydantic models shared across punchclock modules.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`RequestConfig`, :class:`OutputConfig` and
:class:`GlobalConfig`.

**Request-layer models** -- authored or emitted by the request
orchestration layer: :class:`RouteRule` (one row of the route table) and
:class:`ActivitySignal` (the busy/idle broadcast).

All models use Pydantic v2.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_TIMEOUT_MS = 18000


# --- Configuration ---


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS, description="Per-attempt timeout in milliseconds"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/punchclock/config.json``.

    Loaded and saved by :func:`~punchclock.config.load_global_config` and
    :func:`~punchclock.config.save_global_config`.  ``base_url`` has the
    lowest precedence and can be overridden by project config, environment
    variables or the ``--base-url`` flag; see
    :func:`~punchclock.config.resolve_config`.
    """

    base_url: str = Field(default="", description="API base URL, e.g. https://api.example.com")
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Request layer ---


class RouteRule(BaseModel):
    """One row of the authored route table.

    A rule matches a request path when the path starts with ``prefix`` (or
    equals it, for ``exact`` rules).  The first matching rule in
    :data:`~punchclock.client.routes.ROUTE_RULES` decides the default cache
    lifetime, the tags a cached read is filed under, and the tags a mutation
    against the path purges.

    Example::

        RouteRule(
            prefix="/api/projects",
            ttl_ms=45000,
            read_tags=("projects", "reports", "dashboard"),
            invalidation_tags=("projects", "reports", "dashboard", "finance"),
        )
    """

    model_config = ConfigDict(frozen=True)

    prefix: str
    ttl_ms: int = Field(default=0, description="Default cache lifetime; 0 disables caching")
    read_tags: tuple[str, ...] = ()
    invalidation_tags: tuple[str, ...] = ()
    exact: bool = Field(default=False, description="Match the path exactly instead of by prefix")

    def matches(self, path: str) -> bool:
        if self.exact:
            return path == self.prefix
        return path.startswith(self.prefix)


class ActivitySignal(BaseModel):
    """Network activity broadcast emitted whenever the in-flight count changes."""

    model_config = ConfigDict(frozen=True)

    pending_count: int = Field(ge=0)
    busy: bool

    @classmethod
    def for_count(cls, count: int) -> ActivitySignal:
        return cls(pending_count=count, busy=count > 0)
