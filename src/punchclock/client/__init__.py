"""Request orchestration for punchclock.

Classes:
    :class:`RequestExecutor` -- the chokepoint every API call passes through.
    :class:`ClientContext` -- the injected, process-wide state it works on.
    :class:`ActivityBroadcaster` -- busy/idle signal for loading indicators.

Functions:
    :func:`create_context` -- build a context from the resolved configuration.

Example::

    from punchclock.client import RequestExecutor, create_context

    async with RequestExecutor(create_context()) as api:
        today = await api.get("/api/dashboard/today")
"""

from punchclock.client.activity import ActivityBroadcaster
from punchclock.client.context import ClientContext, create_context
from punchclock.client.executor import RequestExecutor, build_query

__all__ = [
    "ActivityBroadcaster",
    "ClientContext",
    "RequestExecutor",
    "build_query",
    "create_context",
]
