"""
Virtual clock for deterministic tests of time-dependent code.

Code under test reads now() and schedules work against the clock; the test
then moves virtual time forward with advance_to()/advance_by(), and every
action that has come due fires synchronously, in due-time order, with zero
real-world delay.

ORDERING RULES:
1. Pending actions fire strictly in ascending due time
2. No two pending actions share a due time: a colliding request is pushed
   forward one TICK at a time until free, so same-instant requests fire FIFO
3. Requests at or before now are clamped to now + TICK
4. now never moves backward
5. Actions may schedule more work; anything due by the advance target
   fires within the same advance
"""

import asyncio
import contextvars
import heapq
import inspect
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple, Union

from clockwise.events import (
    AdvancementCompleted,
    AdvancementFailed,
    AdvancementStarted,
    EventSink,
)
from clockwise.logging import confirm_operation, get_logger, LogStream
from clockwise.time.clock import TICK, Clock, ensure_utc, utc_now
from clockwise.time.context import registered_clock, reset_current_clock, set_current_clock
from clockwise.time.errors import (
    DuplicateActiveClockError,
    InvalidTimeTravelError,
    NestedAdvanceError,
)

logger = get_logger(LogStream.CLOCK)

Action = Callable[["VirtualClock"], Any]
AsyncAction = Callable[["VirtualClock"], Awaitable[Any]]


@dataclass(frozen=True, order=True)
class ScheduledItem:
    """A pending action; items order by due time only."""
    due: datetime
    action: Action = field(compare=False)


def _caller_name() -> str:
    """Name of the function that called the function asking."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
        return caller.f_code.co_name if caller is not None else "unknown"
    finally:
        del frame


def _run_to_completion(awaitable: Awaitable[Any]) -> Any:
    """
    Block until *awaitable* finishes.

    The calling thread is usually inside a running event loop (advance_to),
    so the work runs on its own loop in a worker thread. The caller's context
    is copied so the ambient clock stays visible to the action.
    """
    async def _await():
        return await awaitable

    ctx = contextvars.copy_context()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="clockwise-action") as pool:
        return pool.submit(ctx.run, asyncio.run, _await()).result()


class VirtualClock(Clock):
    """
    Simulated clock with a queue of scheduled actions.

    Not safe for concurrent mutation: callers confine a clock to one test.

    Usage:
        with VirtualClock.start(datetime(2025, 1, 1, tzinfo=timezone.utc)) as clock:
            clock.schedule(lambda c: fired.append(c.now()), at=clock.now() + timedelta(seconds=5))
            asyncio.run(clock.advance_by(timedelta(seconds=10)))
    """

    def __init__(
        self,
        now: Optional[datetime] = None,
        *,
        event_sink: Optional[EventSink] = None,
        created_by: Optional[str] = None,
    ):
        """
        Create an unregistered clock. Use start() to also make it the
        ambient current clock.

        Args:
            now: Starting instant (timezone-aware). Defaults to real UTC now.
            event_sink: Optional receiver of advancement events
            created_by: Label shown in str(); defaults to the caller's name
        """
        self._now = ensure_utc(now, "now") if now is not None else utc_now()
        self._pending: List[ScheduledItem] = []
        self._occupied: Set[datetime] = set()
        self._advancing = False
        self._token: Optional[contextvars.Token] = None
        self.event_sink = event_sink
        self.created_by = created_by or _caller_name()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def start(
        cls,
        now: Optional[datetime] = None,
        *,
        event_sink: Optional[EventSink] = None,
        created_by: Optional[str] = None,
    ) -> "VirtualClock":
        """
        Create a clock and register it as the current clock.

        Raises:
            DuplicateActiveClockError: another virtual clock is active in
                this context
        """
        active = registered_clock()
        if isinstance(active, VirtualClock):
            raise DuplicateActiveClockError(
                "A virtual clock cannot be started while another is still "
                f"active in the current context ({active})"
            )

        clock = cls(
            now,
            event_sink=event_sink,
            created_by=created_by or _caller_name(),
        )
        clock._token = set_current_clock(clock)

        logger.debug(
            "Starting virtual clock",
            extra={"now": clock._now.isoformat(), "created_by": clock.created_by}
        )
        return clock

    @classmethod
    def from_config(cls, config, event_sink: Optional[EventSink] = None) -> "VirtualClock":
        """Start a clock from a validated ClockConfig."""
        return cls.start(
            config.start_time,
            event_sink=event_sink if config.emit_events else None,
            created_by=config.created_by or _caller_name(),
        )

    def close(self) -> None:
        """Revoke the ambient registration made by start(). Idempotent."""
        if self._token is None:
            return
        if registered_clock() is self:
            reset_current_clock(self._token)
        self._token = None
        logger.debug("Virtual clock closed", extra={"now": self._now.isoformat()})

    def __enter__(self) -> "VirtualClock":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return self._now

    @property
    def pending(self) -> Tuple[ScheduledItem, ...]:
        """Pending items, most imminent first."""
        return tuple(sorted(self._pending))

    def time_until_next_due(self) -> Optional[timedelta]:
        """
        Delay from now to the most imminent pending action, or None when
        nothing is pending. Items already at or behind now are skipped.
        """
        if self._pending and self._pending[0].due > self._now:
            return self._pending[0].due - self._now

        upcoming = [item.due for item in self._pending if item.due > self._now]
        if not upcoming:
            return None
        return min(upcoming) - self._now

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, action: Action, at: Optional[datetime] = None) -> datetime:
        """
        Queue *action* to fire at *at*.

        Args:
            action: Called with this clock when it fires
            at: Requested due time. Omitted or not after now means now + TICK.

        Returns:
            The effective due time after clamping and collision nudging
        """
        if at is not None:
            at = ensure_utc(at, "at")

        if at is None or at <= self._now:
            due = self._now + TICK
        else:
            due = at

        while due in self._occupied:
            due += TICK

        heapq.heappush(self._pending, ScheduledItem(due, action))
        self._occupied.add(due)

        logger.debug(
            "Action scheduled",
            extra={
                "requested": at.isoformat() if at is not None else None,
                "due": due.isoformat(),
                "pending": len(self._pending),
            }
        )
        return due

    def schedule_async(self, action: AsyncAction, at: Optional[datetime] = None) -> datetime:
        """
        Queue an async action. When it fires, the advance blocks until the
        awaitable it returns has finished.
        """
        def run_blocking(clock: "VirtualClock") -> Any:
            return _run_to_completion(action(clock))

        run_blocking.__name__ = getattr(action, "__name__", "async_action")
        return self.schedule(run_blocking, at)

    # ------------------------------------------------------------------
    # Advancement
    # ------------------------------------------------------------------

    async def advance_to(self, target: datetime) -> None:
        """
        Move virtual time forward to *target*, firing every action due on
        the way, then land exactly on *target*.

        Raises:
            InvalidTimeTravelError: target is not after now
            NestedAdvanceError: this clock is already advancing
        """
        await asyncio.sleep(0)

        target = ensure_utc(target, "target")
        if target <= self._now:
            raise InvalidTimeTravelError(
                "The clock cannot be moved backward in time "
                f"(now={self._now.isoformat()}, target={target.isoformat()})"
            )
        if self._advancing:
            raise NestedAdvanceError(f"advance_to({target.isoformat()}) called while {self} is already advancing")

        start = self._now
        fired = 0
        try:
            self._advancing = True
            self._emit(AdvancementStarted(from_time=start, to_time=target))

            with confirm_operation(
                "advance_to",
                logger,
                f"Advancing from {start.isoformat()} to {target.isoformat()}",
                args={"start": start.isoformat(), "end": target.isoformat()},
                exit_args=lambda: [("now_at", self._now.isoformat()), ("fired", fired)],
            ) as operation:
                while self._pending and self._pending[0].due <= target:
                    item = heapq.heappop(self._pending)
                    self._occupied.discard(item.due)
                    self._now = item.due
                    fired += 1
                    item.action(self)

                operation.succeed()
                self._now = target
        except Exception as e:
            self._emit(AdvancementFailed(
                from_time=start,
                to_time=target,
                now=self._now,
                error=str(e),
                error_type=type(e).__name__,
            ))
            raise
        finally:
            self._advancing = False

        self._emit(AdvancementCompleted(from_time=start, to_time=target, now=self._now, fired_count=fired))

    async def advance_by(self, duration: Union[timedelta, float]) -> None:
        """
        advance_to(now + duration). A bare number is taken as seconds.
        """
        if not isinstance(duration, timedelta):
            duration = timedelta(seconds=duration)
        await self.advance_to(self._now + duration)

    def _emit(self, event) -> None:
        """Hand *event* to the sink. Sink failures are logged, never raised."""
        if self.event_sink is None:
            return
        try:
            self.event_sink.emit(event)
        except Exception as e:
            logger.error(
                f"Event sink failed on {type(event).__name__}: {e}",
                extra={"event_type": type(event).__name__, "error_type": type(e).__name__},
                exc_info=True
            )

    def __str__(self) -> str:
        return f"{self._now.isoformat()} [created by {self.created_by}]"

    def __repr__(self) -> str:
        return f"VirtualClock(now={self._now.isoformat()!r}, pending={len(self._pending)}, created_by={self.created_by!r})"
