"""Clock exceptions."""


class ClockError(Exception):
    """Base exception for clock errors."""
    pass


class DuplicateActiveClockError(ClockError, RuntimeError):
    """A virtual clock is already active in the current context."""
    pass


class InvalidTimeTravelError(ClockError, ValueError):
    """Requested target time is not strictly after the current time."""
    pass


class NestedAdvanceError(ClockError, RuntimeError):
    """advance_to called while the same clock is already advancing."""
    pass
