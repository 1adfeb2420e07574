"""
Time source abstraction for clockwise.

Code that needs "now" reads it from an injectable Clock instead of the
system clock:
- RealTimeClock for production
- VirtualClock (clockwise.time.virtual) for deterministic tests

Every instant handled by a clock is a timezone-aware UTC datetime.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, timedelta
import pytz


# Smallest representable step between two instants
TICK = timedelta(microseconds=1)


class Clock(ABC):
    """Abstract clock interface"""

    @abstractmethod
    def now(self) -> datetime:
        """Get current time (always UTC)"""
        pass

    def now_local(self, tz: str = "UTC") -> datetime:
        """Get current time in specified timezone"""
        return self.now().astimezone(pytz.timezone(tz))


class RealTimeClock(Clock):
    """Wall-clock time source."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return "RealTimeClock()"


def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime, name: str = "time") -> datetime:
    """
    Validate that *dt* is timezone-aware and return it converted to UTC.

    Raises:
        ValueError: if *dt* is naive
    """
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    return dt.astimezone(timezone.utc)
