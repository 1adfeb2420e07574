"""
Synchronous event sink for clock observability.

CRITICAL PROPERTIES:
1. Handlers registered by event type
2. Handlers run inline, in subscription order
3. Handler failures are isolated (logged, never raised into the clock)
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Type

from clockwise.logging import get_logger, LogStream

logger = get_logger(LogStream.SYSTEM)

Handler = Callable[[Any], None]


class EventSink:
    """
    Fan-out of clock events to subscribers.

    USAGE:
        sink = EventSink()
        sink.subscribe(AdvancementCompleted, lambda e: print(e.now))
        clock = VirtualClock.start(event_sink=sink)
    """

    def __init__(self):
        self._handlers: Dict[Type, List[Handler]] = defaultdict(list)
        self._events_emitted = 0
        self._handler_errors = 0

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug(
            "Handler subscribed",
            extra={"event_type": event_type.__name__, "handler": getattr(handler, "__name__", repr(handler))}
        )

    def unsubscribe(self, event_type: Type, handler: Handler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: Any) -> None:
        """Deliver *event* to every handler subscribed to its type."""
        self._events_emitted += 1
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception as e:
                self._handler_errors += 1
                logger.error(
                    f"Event handler failed: {e}",
                    extra={
                        "event_type": type(event).__name__,
                        "handler": getattr(handler, "__name__", repr(handler)),
                        "error_type": type(e).__name__,
                    },
                    exc_info=True
                )

    def get_stats(self) -> Dict[str, int]:
        return {
            "events_emitted": self._events_emitted,
            "handler_errors": self._handler_errors,
            "handler_count": sum(len(h) for h in self._handlers.values()),
        }
