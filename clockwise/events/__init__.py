"""
Observability events emitted around clock advancement.
"""

from .types import (
    AdvancementStarted,
    AdvancementCompleted,
    AdvancementFailed,
)
from .sink import EventSink

__all__ = [
    "AdvancementStarted",
    "AdvancementCompleted",
    "AdvancementFailed",
    "EventSink",
]
