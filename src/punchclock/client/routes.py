"""Route classification: cache lifetime, read tags and invalidation tags per path.

:data:`ROUTE_RULES` is authored data and the single source of truth for
which reads are cacheable and which writes bust which caches.  Rules are
matched against the path component only (no query string); the first
matching rule wins, so more specific prefixes are listed before broader
ones.

The table encodes cross-entity dependencies.  Reports are computed from
time entries, so a time-entry mutation purges ``hours``, ``dashboard``,
``reports`` and ``time-entries`` together; any ``/api/auth/`` mutation
(login, logout) purges every identity-dependent tag.

Example::

    >>> cache_lifetime_for("/api/projects/active")
    45000
    >>> invalidation_tags_for("/api/expenses/id")
    ('expenses', 'finance', 'reports')
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from punchclock.models import RouteRule

SHORT_TTL_MS = 15000
DEFAULT_TTL_MS = 45000

_AUTH_INVALIDATES = ("auth", "reports", "dashboard", "hours", "projects", "finance", "users")
_TIME_ENTRY_TAGS = ("hours", "dashboard", "reports", "time-entries")
_REPORT_TAGS = ("reports", "dashboard", "finance", "hours")

ROUTE_RULES: tuple[RouteRule, ...] = (
    RouteRule(
        prefix="/api/auth/me",
        exact=True,
        ttl_ms=SHORT_TTL_MS,
        read_tags=("auth", "reports"),
        invalidation_tags=_AUTH_INVALIDATES,
    ),
    RouteRule(prefix="/api/auth/", invalidation_tags=_AUTH_INVALIDATES),
    RouteRule(prefix="/api/dashboard/", ttl_ms=DEFAULT_TTL_MS, read_tags=("dashboard",)),
    RouteRule(
        prefix="/api/tasks",
        ttl_ms=DEFAULT_TTL_MS,
        invalidation_tags=("tasks", "dashboard"),
    ),
    RouteRule(
        prefix="/api/time-entries/hours-report",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=_TIME_ENTRY_TAGS,
        invalidation_tags=_TIME_ENTRY_TAGS,
    ),
    # Raw entries are never cached; only the hours report above is.
    RouteRule(
        prefix="/api/time-entries",
        read_tags=_TIME_ENTRY_TAGS,
        invalidation_tags=_TIME_ENTRY_TAGS,
    ),
    RouteRule(
        prefix="/api/projects",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=("projects", "reports", "dashboard"),
        invalidation_tags=("projects", "reports", "dashboard", "finance"),
    ),
    RouteRule(prefix="/api/reports/me", ttl_ms=SHORT_TTL_MS, read_tags=_REPORT_TAGS),
    RouteRule(prefix="/api/reports/", ttl_ms=DEFAULT_TTL_MS, read_tags=_REPORT_TAGS),
    RouteRule(
        prefix="/api/payments",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=("payments", "finance", "reports"),
        invalidation_tags=("payments", "finance", "reports"),
    ),
    RouteRule(
        prefix="/api/customer-payments",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=("customer-payments", "finance", "reports"),
        invalidation_tags=("customer-payments", "finance", "reports"),
    ),
    RouteRule(
        prefix="/api/bonus-and-penalties",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=("bonuses", "finance", "reports"),
        invalidation_tags=("bonuses", "finance", "reports"),
    ),
    RouteRule(
        prefix="/api/expenses",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=("expenses", "finance", "reports"),
        invalidation_tags=("expenses", "finance", "reports"),
    ),
    RouteRule(
        prefix="/api/users",
        ttl_ms=DEFAULT_TTL_MS,
        read_tags=("users", "reports", "finance"),
        invalidation_tags=("users", "reports", "finance", "dashboard"),
    ),
)

# Invalidated by a manual pull-to-refresh.
REFRESH_TAGS: tuple[str, ...] = (
    "auth",
    "dashboard",
    "hours",
    "projects",
    "finance",
    "reports",
    "payments",
    "users",
    "expenses",
    "bonuses",
    "tasks",
    "time-entries",
)


def route_path(path: str) -> str:
    """Return the path component of *path* or of a full URL.

    A relative path gains a leading ``/``, matching how it is joined to
    the base URL when sent.
    """
    if not path:
        return ""
    pathname = urlsplit(path).path
    if pathname and not pathname.startswith("/"):
        pathname = f"/{pathname}"
    return pathname


def match_route(path: str) -> Optional[RouteRule]:
    """Return the first rule matching *path*, or ``None``."""
    pathname = route_path(path)
    if not pathname:
        return None
    for rule in ROUTE_RULES:
        if rule.matches(pathname):
            return rule
    return None


def cache_lifetime_for(path: str) -> int:
    """Default cache lifetime in milliseconds; ``0`` means "do not cache"."""
    rule = match_route(path)
    return rule.ttl_ms if rule else 0


def read_tags_for(path: str) -> tuple[str, ...]:
    """Tags a cached read of *path* is filed under."""
    rule = match_route(path)
    return rule.read_tags if rule else ()


def invalidation_tags_for(path: str) -> tuple[str, ...]:
    """Tags a successful mutation of *path* purges (possibly none)."""
    rule = match_route(path)
    return rule.invalidation_tags if rule else ()
