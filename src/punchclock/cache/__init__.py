"""Response caching for punchclock.

This package provides the two process-wide stores of the request layer:

- :class:`ResponseCache` -- decoded payloads keyed by :class:`CacheKey`,
  with TTL expiry and tag-based bulk eviction.
- :class:`InFlightRegistry` -- pending reads keyed by the same fingerprint,
  used to collapse concurrent identical requests into one transfer.

Both are owned by :class:`~punchclock.client.context.ClientContext` and
consumed by :class:`~punchclock.client.executor.RequestExecutor`.
"""

from punchclock.cache.cache import CacheEntry, CacheKey, ResponseCache
from punchclock.cache.inflight import InFlightRegistry

__all__ = ["CacheEntry", "CacheKey", "InFlightRegistry", "ResponseCache"]
