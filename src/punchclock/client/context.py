"""The explicit, process-wide state of the request layer.

:class:`ClientContext` bundles the configuration, the token store, the
response cache, the in-flight registry and the activity broadcaster.  It is
built once per process (see :func:`create_context`) and injected into
:class:`~punchclock.client.executor.RequestExecutor`, which keeps the layer
testable in isolation: each test builds its own context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from punchclock.auth.credential_store import TokenStore
from punchclock.cache import InFlightRegistry, ResponseCache
from punchclock.client.activity import ActivityBroadcaster
from punchclock.models import GlobalConfig


@dataclass
class ClientContext:
    """Shared state injected into every executor.

    Attributes:
        config: Effective configuration (base URL, request defaults).
        tokens: The persisted bearer token.
        cache: Decoded response payloads.
        inflight: Pending reads, for de-duplication.
        activity: Busy/idle broadcaster.
    """

    config: GlobalConfig
    tokens: TokenStore
    cache: ResponseCache = field(default_factory=ResponseCache)
    inflight: InFlightRegistry = field(default_factory=InFlightRegistry)
    activity: ActivityBroadcaster = field(default_factory=ActivityBroadcaster)

    def __post_init__(self) -> None:
        self.tokens.add_listener(self.cache.clear)


def create_context(
    config: Optional[GlobalConfig] = None,
    token_path: Optional[Path] = None,
) -> ClientContext:
    """Build a :class:`ClientContext`.

    Args:
        config: Effective configuration.  Resolved through
            :func:`~punchclock.config.resolve_config` when omitted.
        token_path: Token file location.  Defaults to the credentials
            directory under the data directory.
    """
    if config is None:
        from punchclock.config import resolve_config

        config = resolve_config()
    return ClientContext(config=config, tokens=TokenStore(token_path))
