"""
Clock advancement event definitions.

All events are self-contained frozen dataclasses carrying virtual times.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class AdvancementStarted:
    """Emitted before any due action fires."""
    from_time: datetime
    to_time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "advancement_started",
            "from_time": self.from_time.isoformat(),
            "to_time": self.to_time.isoformat(),
        }


@dataclass(frozen=True)
class AdvancementCompleted:
    """Emitted once the clock has landed on the target time."""
    from_time: datetime
    to_time: datetime
    now: datetime
    fired_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "advancement_completed",
            "from_time": self.from_time.isoformat(),
            "to_time": self.to_time.isoformat(),
            "now": self.now.isoformat(),
            "fired_count": self.fired_count,
        }


@dataclass(frozen=True)
class AdvancementFailed:
    """Emitted when a fired action raised; now is the failing action's due time."""
    from_time: datetime
    to_time: datetime
    now: datetime
    error: str
    error_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "advancement_failed",
            "from_time": self.from_time.isoformat(),
            "to_time": self.to_time.isoformat(),
            "now": self.now.isoformat(),
            "error": self.error,
            "error_type": self.error_type,
        }
