"""Registry of in-progress reads, used to collapse concurrent duplicates.

When several callers issue the same idempotent read before the first one
settles, only one transfer is made: the first caller registers its task
under the request fingerprint and later callers await that same task.

Entries remove themselves when the task settles, whether it succeeded,
failed or was cancelled, so the registry can never hold a stuck entry.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from punchclock.cache.cache import CacheKey


class InFlightRegistry:
    """Maps a :class:`~punchclock.cache.CacheKey` to its pending result.

    Usage::

        pending = registry.get(key)
        if pending is None:
            pending = registry.register(key, asyncio.ensure_future(fetch()))
        return await asyncio.shield(pending)
    """

    def __init__(self) -> None:
        self._pending: dict[CacheKey, asyncio.Future[Any]] = {}

    def get(self, key: CacheKey) -> Optional[asyncio.Future[Any]]:
        """Return the pending result registered for *key*, if any."""
        return self._pending.get(key)

    def register(self, key: CacheKey, pending: asyncio.Future[Any]) -> asyncio.Future[Any]:
        """Register *pending* under *key* until it settles.

        Returns:
            *pending*, for chaining.
        """
        self._pending[key] = pending
        pending.add_done_callback(lambda done: self._discard(key, done))
        return pending

    def keys(self) -> list[CacheKey]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def _discard(self, key: CacheKey, done: asyncio.Future[Any]) -> None:
        # A newer registration under the same key must survive.
        if self._pending.get(key) is done:
            del self._pending[key]
