"""The request executor -- the single chokepoint for every API call.

:class:`RequestExecutor` wraps :class:`httpx.AsyncClient` and layers on:

- **Auth injection** -- the stored bearer token becomes the
  ``Authorization`` header; a call that requires auth fails fast with
  :class:`~punchclock.exceptions.UnauthenticatedError` when no token is
  stored.
- **Response caching** -- successful idempotent reads are cached under the
  tags :mod:`~punchclock.client.routes` assigns to their path.
- **De-duplication** -- concurrent identical reads share one transfer via
  the :class:`~punchclock.cache.InFlightRegistry`.
- **Timeouts** -- every attempt is bounded by :func:`asyncio.wait_for`.
- **Retry** -- one immediate retry, for reads that failed at the transport
  level only.
- **Invalidation** -- successful mutations purge the tags of their path.
- **Activity** -- every attempt is counted on the
  :class:`~punchclock.client.activity.ActivityBroadcaster`.

Only the transfer and its timeout suspend; all cache, registry and counter
bookkeeping happens synchronously between suspension points.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional
from urllib.parse import urlencode, urlsplit

import httpx

from punchclock.cache import CacheKey
from punchclock.client import routes
from punchclock.client.context import ClientContext
from punchclock.client.response import is_failure, parse_body, unwrap
from punchclock.exceptions import (
    ApplicationError,
    ConfigError,
    NetworkError,
    RequestTimeoutError,
    UnauthenticatedError,
)
from punchclock.output import get_output

_MAX_ATTEMPTS = 2
_MISSING = object()


@dataclass
class PreparedRequest:
    """Everything resolved about a call before the first suspension point."""

    method: str
    url: str
    path: str
    headers: dict[str, str]
    body: Any
    timeout_s: float
    key: CacheKey
    ttl_ms: float
    use_cache: bool

    @property
    def is_read(self) -> bool:
        return self.method == "GET"


class RequestExecutor:
    """Executes API calls against the configured base URL.

    Args:
        context: Shared state -- config, token store, cache, in-flight
            registry and activity broadcaster.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with RequestExecutor(create_context()) as api:
            projects = await api.get("/api/projects")
            await api.post("/api/projects", body={"name": "Depot"})
    """

    def __init__(
        self,
        context: ClientContext,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._context = context
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def context(self) -> ClientContext:
        return self._context

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestExecutor:
        self._get_http_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                verify=self._context.config.request.verify_ssl,
                follow_redirects=True,
                timeout=None,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        query: Optional[dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[dict[str, str]] = None,
        timeout_ms: Optional[float] = None,
        cache_ttl_ms: Optional[float] = None,
        use_cache: bool = True,
    ) -> Any:
        """Run one API call and return the decoded ``data`` payload.

        Args:
            path: API path such as ``/api/projects``.
            method: HTTP method; only ``GET`` is treated as an idempotent read.
            body: JSON-serialisable request body.
            query: Query parameters; ``None`` and ``""`` values are dropped.
            requires_auth: Attach the stored token; fail fast without one.
            headers: Extra request headers.
            timeout_ms: Per-attempt timeout; defaults to the configured one.
            cache_ttl_ms: Cache lifetime override for reads.
            use_cache: ``False`` bypasses both the cache and de-duplication.

        Returns:
            The ``data`` field of the response envelope.

        Raises:
            UnauthenticatedError: Auth required but no token stored.
            NetworkError: The transfer failed (after one retry for reads).
            RequestTimeoutError: The attempt exceeded its timeout.
            ApplicationError: The API signalled failure.
            ConfigError: No base URL configured for a relative path.
        """
        prepared = self._prepare(
            path, method, body, query, requires_auth, headers, timeout_ms, cache_ttl_ms, use_cache,
        )
        cache = self._context.cache

        if prepared.is_read and prepared.use_cache and prepared.ttl_ms > 0:
            cached = cache.get(prepared.key, _MISSING)
            if cached is not _MISSING:
                get_output().debug(f"Cache hit: {prepared.method} {prepared.url}")
                return cached

        if prepared.is_read and prepared.use_cache:
            inflight = self._context.inflight
            pending = inflight.get(prepared.key)
            if pending is None:
                pending = inflight.register(prepared.key, asyncio.ensure_future(self._send(prepared)))
            else:
                get_output().debug(f"Joined in-flight request: {prepared.method} {prepared.url}")
            return await asyncio.shield(pending)

        return await self._send(prepared)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.execute(path, method="GET", **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.execute(path, method="POST", **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.execute(path, method="PUT", **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        return await self.execute(path, method="PATCH", **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.execute(path, method="DELETE", **kwargs)

    # ------------------------------------------------------------------ #
    # Token and cache controls
    # ------------------------------------------------------------------ #

    def get_token(self) -> str:
        return self._context.tokens.get()

    def set_token(self, token: str) -> None:
        """Store a new token; empties the response cache."""
        self._context.tokens.set(token)

    def clear_token(self) -> None:
        """Forget the token; empties the response cache."""
        self._context.tokens.clear()

    def invalidate(self, tags: Iterable[str]) -> int:
        """Evict every cached response filed under any of *tags*."""
        return self._context.cache.invalidate_by_tags(tags)

    def refresh(self) -> int:
        """Evict everything a manual pull-to-refresh should reload."""
        return self.invalidate(routes.REFRESH_TAGS)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _prepare(
        self,
        path: str,
        method: str,
        body: Any,
        query: Optional[dict[str, Any]],
        requires_auth: bool,
        headers: Optional[dict[str, str]],
        timeout_ms: Optional[float],
        cache_ttl_ms: Optional[float],
        use_cache: bool,
    ) -> PreparedRequest:
        normalized = str(method or "GET").upper()

        # Checked before URL resolution so a missing token wins over a missing base URL.
        token = ""
        if requires_auth:
            token = self._context.tokens.get()
            if not token:
                raise UnauthenticatedError(url=str(path or ""), method=normalized)

        url = self._resolve_url(path, query)

        merged_headers: dict[str, str] = {"Accept": "application/json"}
        merged_headers.update(headers or {})

        auth_value = ""
        if token:
            auth_value = f"Bearer {token}"
            merged_headers["Authorization"] = auth_value

        pathname = routes.route_path(path)
        ttl_ms: float = 0
        if normalized == "GET":
            if cache_ttl_ms is not None and math.isfinite(cache_ttl_ms):
                ttl_ms = cache_ttl_ms
            else:
                ttl_ms = routes.cache_lifetime_for(pathname)

        configured = self._context.config.request.timeout_ms
        effective_ms = timeout_ms if timeout_ms and timeout_ms > 0 else configured
        return PreparedRequest(
            method=normalized,
            url=url,
            path=pathname,
            headers=merged_headers,
            body=body,
            timeout_s=max(1.0, float(effective_ms)) / 1000.0,
            key=CacheKey(normalized, url, auth_value),
            ttl_ms=ttl_ms,
            use_cache=use_cache,
        )

    def _resolve_url(self, path: str, query: Optional[dict[str, Any]]) -> str:
        raw = str(path or "")
        base = self._context.config.base_url.strip()
        if base:
            url = base.rstrip("/") + (raw if raw.startswith("/") else f"/{raw}")
        else:
            url = raw
        if not urlsplit(url).scheme:
            raise ConfigError(
                f"Cannot resolve '{raw}': no API base URL configured "
                "(set PUNCHCLOCK_API_BASE_URL or run 'punchclock config set base_url ...')"
            )
        return url + build_query(query)

    async def _send(self, prepared: PreparedRequest) -> Any:
        """Run the transfer with the retry policy, then cache or invalidate."""
        attempt = 1
        while True:
            try:
                data = await self._attempt(prepared)
            except NetworkError as exc:
                if not prepared.is_read or attempt >= _MAX_ATTEMPTS:
                    raise
                attempt += 1
                get_output().debug(
                    f"Network error: {exc}, retrying {prepared.method} {prepared.url} "
                    f"(attempt {attempt}/{_MAX_ATTEMPTS})"
                )
                continue
            break

        self._record_success(prepared, data)
        return data

    async def _attempt(self, prepared: PreparedRequest) -> Any:
        """One transfer: count it, bound it, classify the outcome."""
        client = self._get_http_client()
        activity = self._context.activity
        activity.increment()
        try:
            get_output().debug(f"fired {prepared.method} {prepared.url}")
            try:
                response = await asyncio.wait_for(
                    client.request(
                        prepared.method,
                        prepared.url,
                        headers=prepared.headers,
                        json=prepared.body,
                    ),
                    timeout=prepared.timeout_s,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                raise RequestTimeoutError(url=prepared.url, method=prepared.method) from exc
            except httpx.TransportError as exc:
                raise NetworkError(
                    str(exc) or "Network error", url=prepared.url, method=prepared.method,
                ) from exc
        finally:
            activity.decrement()

        payload = parse_body(response)
        if is_failure(response, payload):
            if response.status_code == 401:
                # The session is no longer valid locally; this also empties the cache.
                self._context.tokens.clear()
            raise ApplicationError.from_envelope(
                response.status_code, payload, url=prepared.url, method=prepared.method,
            )
        return unwrap(payload)

    def _record_success(self, prepared: PreparedRequest, data: Any) -> None:
        cache = self._context.cache
        if prepared.is_read:
            if prepared.use_cache and prepared.ttl_ms > 0:
                cache.set(prepared.key, data, prepared.ttl_ms, routes.read_tags_for(prepared.path))
            return
        removed = cache.invalidate_by_tags(routes.invalidation_tags_for(prepared.path))
        if removed:
            get_output().debug(f"Invalidated {removed} cached responses after {prepared.method} {prepared.path}")


def build_query(query: Optional[dict[str, Any]]) -> str:
    """Serialise *query* as ``?k=v&...`` sorted by key, dropping ``None``/``""`` values.

    Booleans are rendered ``true``/``false``.  Returns ``""`` when nothing
    remains.
    """
    pairs = []
    for key, value in sorted((query or {}).items()):
        if value is None or value == "":
            continue
        pairs.append((str(key), _stringify(value)))
    return f"?{urlencode(pairs)}" if pairs else ""


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
