"""
Ambient "current clock" registry.

Production code calls now() (or current_clock()) instead of reading the
system clock; a test swaps in a VirtualClock for the scope of the test.

The registration is held in a ContextVar, so a clock registered inside one
asyncio task or copied context does not leak into its siblings.
"""

from contextvars import ContextVar, Token
from datetime import datetime
from typing import Optional

from clockwise.logging import get_logger, LogStream
from clockwise.time.clock import Clock, RealTimeClock

logger = get_logger(LogStream.SYSTEM)

_default_clock: Clock = RealTimeClock()
_current_clock: ContextVar[Optional[Clock]] = ContextVar("current_clock", default=None)


def current_clock() -> Clock:
    """Return the registered clock, falling back to the real-time clock."""
    return _current_clock.get() or _default_clock


def registered_clock() -> Optional[Clock]:
    """Return the explicitly registered clock, or None."""
    return _current_clock.get()


def now() -> datetime:
    """Convenience: current time from the ambient clock."""
    return current_clock().now()


def set_current_clock(clock: Clock) -> Token:
    """
    Register *clock* as current for this context.

    Returns:
        Token accepted by reset_current_clock() to restore the previous value
    """
    logger.debug("Registering current clock", extra={"clock": repr(clock)})
    return _current_clock.set(clock)


def reset_current_clock(token: Optional[Token] = None) -> None:
    """
    Revoke the current registration.

    With a token, the value before the matching set_current_clock() call is
    restored; without one the context falls back to the real-time clock.
    """
    if token is not None:
        try:
            _current_clock.reset(token)
            return
        except ValueError:
            # Token created in another context; fall through to a plain clear.
            logger.debug("Clock token belongs to another context, clearing registration")
    _current_clock.set(None)
