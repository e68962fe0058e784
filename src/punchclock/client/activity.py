"""Network busy/idle broadcasting for loading indicators.

:class:`ActivityBroadcaster` counts transfers between "started" and
"settled" and pushes an :class:`~punchclock.models.ActivitySignal` to every
subscriber on each change.  It is purely observational: a subscriber that
raises is logged and skipped, and the counter never drops below zero.
"""

from __future__ import annotations

import logging
from typing import Callable

from punchclock.models import ActivitySignal

logger = logging.getLogger(__name__)

ActivityListener = Callable[[ActivitySignal], object]


class ActivityBroadcaster:
    """Counts in-flight transfers and broadcasts the count.

    Usage::

        activity = ActivityBroadcaster()
        unsubscribe = activity.subscribe(lambda s: spinner.show(s.busy))
        ...
        unsubscribe()
    """

    def __init__(self) -> None:
        self._count = 0
        self._listeners: list[ActivityListener] = []

    @property
    def pending_count(self) -> int:
        return self._count

    @property
    def busy(self) -> bool:
        return self._count > 0

    def subscribe(self, listener: ActivityListener) -> Callable[[], None]:
        """Register *listener* and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def increment(self) -> None:
        self._count += 1
        self._emit()

    def decrement(self) -> None:
        self._count = max(0, self._count - 1)
        self._emit()

    def _emit(self) -> None:
        signal = ActivitySignal.for_count(self._count)
        for listener in list(self._listeners):
            try:
                listener(signal)
            except Exception as exc:
                logger.warning("Activity listener %r failed: %s", listener, exc)
