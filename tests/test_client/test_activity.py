"""Tests for the ActivityBroadcaster."""

from __future__ import annotations

import logging

import pytest

from punchclock.client import ActivityBroadcaster
from punchclock.models import ActivitySignal


def test_starts_idle() -> None:
    activity = ActivityBroadcaster()
    assert activity.pending_count == 0
    assert activity.busy is False


def test_subscribers_see_every_change() -> None:
    activity = ActivityBroadcaster()
    seen: list[ActivitySignal] = []
    activity.subscribe(seen.append)

    activity.increment()
    activity.increment()
    activity.decrement()
    activity.decrement()

    assert [s.pending_count for s in seen] == [1, 2, 1, 0]
    assert [s.busy for s in seen] == [True, True, True, False]


def test_unsubscribe_stops_delivery() -> None:
    activity = ActivityBroadcaster()
    seen: list[ActivitySignal] = []
    unsubscribe = activity.subscribe(seen.append)

    activity.increment()
    unsubscribe()
    activity.decrement()
    unsubscribe()

    assert len(seen) == 1


def test_count_never_negative() -> None:
    activity = ActivityBroadcaster()
    seen: list[ActivitySignal] = []
    activity.subscribe(seen.append)

    activity.decrement()

    assert activity.pending_count == 0
    assert seen == [ActivitySignal(pending_count=0, busy=False)]


def test_failing_listener_does_not_break_others(caplog: pytest.LogCaptureFixture) -> None:
    activity = ActivityBroadcaster()
    seen: list[ActivitySignal] = []

    def broken(signal: ActivitySignal) -> None:
        raise RuntimeError("listener exploded")

    activity.subscribe(broken)
    activity.subscribe(seen.append)

    with caplog.at_level(logging.WARNING, logger="punchclock.client.activity"):
        activity.increment()

    assert activity.pending_count == 1
    assert len(seen) == 1
    assert "listener exploded" in caplog.text
