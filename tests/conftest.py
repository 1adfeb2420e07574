# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from clockwise.logging.operations import get_performance_logger
from clockwise.time import VirtualClock, reset_current_clock

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clean_ambient_clock():
    """No test inherits a registered clock from another."""
    reset_current_clock()
    get_performance_logger().reset()
    yield
    reset_current_clock()


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def virtual_clock():
    """Virtual clock started at T0 and registered as current."""
    clock = VirtualClock.start(T0, created_by="virtual_clock fixture")
    try:
        yield clock
    finally:
        clock.close()


class Recorder:
    """Action that appends (label, fire time) when called."""

    def __init__(self):
        self.calls = []

    def __call__(self, label: str):
        def action(clock):
            self.calls.append((label, clock.now()))
        action.__name__ = f"record_{label}"
        return action

    @property
    def labels(self):
        return [label for label, _ in self.calls]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
