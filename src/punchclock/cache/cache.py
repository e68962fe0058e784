"""In-memory response cache with TTL expiry and tag-based eviction.

Entries are keyed by a :class:`CacheKey` fingerprint -- the HTTP method,
the fully-qualified URL including its query string, and the resolved
``Authorization`` value -- and carry the decoded payload, an absolute
expiry and a set of domain tags (``"projects"``, ``"finance"``, ...).

Expired entries are inert: :meth:`ResponseCache.get` treats them as absent
and evicts them lazily.  Mutations bust whole groups of entries through
:meth:`ResponseCache.invalidate_by_tags`; credential changes empty the
store through :meth:`ResponseCache.clear`.

All operations are synchronous and run on the event-loop thread, so no
locking is needed.

See Also:
    :mod:`punchclock.client.routes` -- decides the TTL and tags of each
    request path.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, NamedTuple

logger = logging.getLogger(__name__)


class CacheKey(NamedTuple):
    """Request fingerprint used for both cache hits and de-duplication."""

    method: str
    url: str
    auth: str = ""


@dataclass
class CacheEntry:
    """A single cached payload."""

    value: Any
    expires_at: float
    tags: frozenset[str]

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class ResponseCache:
    """Process-wide store of decoded response payloads.

    Args:
        clock: Monotonic clock in seconds.  Injectable so tests can move
            time forward without sleeping.

    Example::

        cache = ResponseCache()
        key = CacheKey("GET", "https://api.example.com/api/projects", "Bearer t")
        cache.set(key, [{"id": 1}], ttl_ms=45000, tags=["projects"])
        cache.get(key)                        # [{"id": 1}]
        cache.invalidate_by_tags(["projects"])
        cache.get(key)                        # None
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._clock = clock

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Return the cached value for *key*, or *default* on a miss.

        An expired entry is evicted and reported as a miss.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("Evicted expired entry %s %s", key.method, key.url)
            return default
        return entry.value

    def set(
        self,
        key: CacheKey,
        value: Any,
        ttl_ms: float,
        tags: Iterable[str] = (),
    ) -> None:
        """Store *value* under *key* for *ttl_ms* milliseconds.

        Does nothing when *ttl_ms* is not a positive finite number.
        Overwrites any existing entry for the key.
        """
        if not math.isfinite(ttl_ms) or ttl_ms <= 0:
            return
        self._entries[key] = CacheEntry(
            value=value,
            expires_at=self._clock() + ttl_ms / 1000.0,
            tags=frozenset(tag for tag in tags if tag),
        )

    def invalidate_by_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry filed under any of *tags*.

        Returns:
            The number of entries removed.  An empty tag list removes
            nothing.
        """
        wanted = {tag for tag in tags if tag}
        if not wanted:
            return 0
        doomed = [key for key, entry in self._entries.items() if entry.tags & wanted]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d entries for tags %s", len(doomed), sorted(wanted))
        return len(doomed)

    def clear(self) -> int:
        """Remove all entries and return how many there were."""
        count = len(self._entries)
        self._entries.clear()
        if count:
            logger.debug("Cleared %d cache entries", count)
        return count

    def stats(self) -> dict[str, Any]:
        """Return entry counts for diagnostics (expired entries included)."""
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        tags = sorted({tag for entry in self._entries.values() for tag in entry.tags})
        return {"size": len(self._entries), "expired": expired, "tags": tags}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
