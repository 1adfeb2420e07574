"""Time abstraction layer"""

from .clock import Clock, RealTimeClock, TICK, ensure_utc, utc_now
from .context import (
    current_clock,
    now,
    registered_clock,
    reset_current_clock,
    set_current_clock,
)
from .errors import (
    ClockError,
    DuplicateActiveClockError,
    InvalidTimeTravelError,
    NestedAdvanceError,
)
from .virtual import ScheduledItem, VirtualClock

__all__ = [
    'Clock',
    'RealTimeClock',
    'TICK',
    'ensure_utc',
    'utc_now',
    'current_clock',
    'now',
    'registered_clock',
    'reset_current_clock',
    'set_current_clock',
    'ClockError',
    'DuplicateActiveClockError',
    'InvalidTimeTravelError',
    'NestedAdvanceError',
    'ScheduledItem',
    'VirtualClock',
]
