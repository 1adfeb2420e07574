"""
Tests for clockwise.time: clock capability and ambient registration.
"""

import asyncio
import contextvars
from datetime import datetime, timedelta, timezone

import pytest

from clockwise.config import ClockConfig
from clockwise.time import (
    Clock,
    DuplicateActiveClockError,
    RealTimeClock,
    VirtualClock,
    current_clock,
    ensure_utc,
    now,
    registered_clock,
    reset_current_clock,
    set_current_clock,
    utc_now,
)


class TestRealTimeClock:

    def test_returns_utc_datetime(self):
        dt = RealTimeClock().now()
        assert dt.tzinfo == timezone.utc

    def test_time_advances(self):
        clock = RealTimeClock()
        assert clock.now() <= clock.now()

    def test_now_local_converts_timezone(self, t0):
        clock = VirtualClock(t0)
        local = clock.now_local("America/New_York")
        assert local == t0
        assert local.hour == 7  # EST in January


class TestEnsureUtc:

    def test_naive_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            ensure_utc(datetime(2025, 1, 1))

    def test_aware_converted(self):
        plus_one = timezone(timedelta(hours=1))
        dt = ensure_utc(datetime(2025, 1, 1, 13, 0, tzinfo=plus_one))
        assert dt == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert dt.tzinfo == timezone.utc

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == timezone.utc


class TestAmbientRegistration:

    def test_default_is_real_time(self):
        assert registered_clock() is None
        assert isinstance(current_clock(), RealTimeClock)

    def test_start_registers_clock(self, t0):
        clock = VirtualClock.start(t0)
        try:
            assert current_clock() is clock
            assert now() == t0
        finally:
            clock.close()

    def test_close_revokes_registration(self, t0):
        clock = VirtualClock.start(t0)
        clock.close()
        assert registered_clock() is None
        assert isinstance(current_clock(), RealTimeClock)

    def test_close_is_idempotent(self, t0):
        clock = VirtualClock.start(t0)
        clock.close()
        clock.close()
        assert registered_clock() is None

    def test_context_manager_closes_on_error(self, t0):
        with pytest.raises(KeyError):
            with VirtualClock.start(t0) as clock:
                assert current_clock() is clock
                raise KeyError("boom")
        assert registered_clock() is None

    def test_second_start_fails(self, virtual_clock, t0):
        with pytest.raises(DuplicateActiveClockError, match="another is still active"):
            VirtualClock.start(t0)
        assert current_clock() is virtual_clock

    def test_start_allowed_after_close(self, t0):
        with VirtualClock.start(t0):
            pass
        with VirtualClock.start(t0 + timedelta(days=1)) as clock:
            assert current_clock() is clock

    def test_plain_construction_does_not_register(self, t0):
        clock = VirtualClock(t0)
        assert registered_clock() is None
        clock.close()

    def test_start_over_non_virtual_registration(self, t0):
        class FixedClock(Clock):
            def now(self):
                return t0

        fixed = FixedClock()
        token = set_current_clock(fixed)
        try:
            with VirtualClock.start(t0) as clock:
                assert current_clock() is clock
            assert current_clock() is fixed
        finally:
            reset_current_clock(token)

    def test_close_leaves_foreign_registration_alone(self, t0):
        clock = VirtualClock.start(t0)
        reset_current_clock()
        other = VirtualClock.start(t0)
        clock.close()
        assert current_clock() is other
        other.close()

    def test_registration_does_not_leak_into_earlier_context(self, t0):
        ctx = contextvars.copy_context()
        with VirtualClock.start(t0) as clock:
            assert ctx.run(current_clock) is not clock
            assert ctx.run(registered_clock) is None

    def test_registration_in_task_stays_in_task(self, t0):
        async def child():
            clock = VirtualClock.start(t0)
            return current_clock() is clock

        async def scenario():
            registered_in_child = await asyncio.create_task(child())
            return registered_in_child, registered_clock()

        in_child, in_parent = asyncio.run(scenario())
        assert in_child is True
        assert in_parent is None

    def test_default_start_time_is_real_now(self):
        before = utc_now()
        with VirtualClock.start() as clock:
            assert before <= clock.now() <= utc_now()

    def test_naive_start_time_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            VirtualClock.start(datetime(2025, 1, 1))
        assert registered_clock() is None


class TestDescription:

    def test_str_includes_creator(self, t0):
        with VirtualClock.start(t0, created_by="billing_test") as clock:
            assert str(clock) == f"{t0.isoformat()} [created by billing_test]"

    def test_creator_defaults_to_calling_function(self, t0):
        with VirtualClock.start(t0) as clock:
            assert clock.created_by == "test_creator_defaults_to_calling_function"

    def test_constructor_creator_defaults_to_calling_function(self, t0):
        assert VirtualClock(t0).created_by == "test_constructor_creator_defaults_to_calling_function"

    def test_config_creator_defaults_to_calling_function(self, t0):
        with VirtualClock.from_config(ClockConfig(start_time=t0)) as clock:
            assert clock.created_by == "test_config_creator_defaults_to_calling_function"

    def test_repr_shows_pending_count(self, t0):
        clock = VirtualClock(t0, created_by="x")
        clock.schedule(lambda c: None)
        assert "pending=1" in repr(clock)
