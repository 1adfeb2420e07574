"""
Operation confirmation logging.

Provides:
- PerformanceLogger: Timing statistics per operation name
- ConfirmedOperation / confirm_operation: Start + outcome records around a
  block of work, with the outcome explicitly confirmed by the caller
"""

import time
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from collections import defaultdict

from .logger import LogContext, LogStream, get_correlation_id, get_logger


class PerformanceLogger:
    """
    Dedicated logger for performance metrics.

    Collects timing statistics and logs to the performance stream.
    """

    def __init__(self):
        self.logger = get_logger(LogStream.PERFORMANCE)
        self._stats: Dict[str, List[float]] = defaultdict(list)

    def log_metric(
        self,
        operation: str,
        duration_ms: float,
        success: bool = True,
        **metadata
    ):
        if success:
            self._stats[operation].append(duration_ms)

        self.logger.debug(
            f"{operation} performance",
            extra={
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                "success": success,
                **metadata
            }
        )

    def get_stats(self, operation: str) -> Optional[Dict[str, float]]:
        """
        Get statistics for an operation.

        Returns:
            Dict with count, min, max, mean and p50 or None
        """
        durations = self._stats.get(operation)
        if not durations:
            return None

        sorted_durations = sorted(durations)
        n = len(sorted_durations)

        return {
            "count": n,
            "min_ms": round(sorted_durations[0], 2),
            "max_ms": round(sorted_durations[-1], 2),
            "mean_ms": round(sum(sorted_durations) / n, 2),
            "p50_ms": round(sorted_durations[n // 2], 2),
        }

    def reset(self) -> None:
        self._stats.clear()


_perf_logger = None


def get_performance_logger() -> PerformanceLogger:
    """Get or create global performance logger instance."""
    global _perf_logger
    if _perf_logger is None:
        _perf_logger = PerformanceLogger()
    return _perf_logger


class ConfirmedOperation:
    """
    Handle for a running operation.

    The block must call succeed() before it exits; an operation that exits
    without an exception but also without confirmation is logged as
    unconfirmed.
    """

    def __init__(self, name: str, operation_id: str):
        self.name = name
        self.operation_id = operation_id
        self.succeeded = False

    def succeed(self) -> None:
        self.succeeded = True


@contextmanager
def confirm_operation(
    name: str,
    logger: logging.Logger,
    message: str = "",
    args: Optional[Dict[str, Any]] = None,
    exit_args: Optional[Callable[[], List[Tuple[str, Any]]]] = None,
    log_on_start: bool = True,
) -> Iterator[ConfirmedOperation]:
    """
    Context manager that logs the start and the outcome of an operation.

    Usage:
        with confirm_operation("advance_to", logger, "Advancing", args={...},
                               exit_args=lambda: [("now_at", clock.now())]) as op:
            ...
            op.succeed()

    Args:
        name: Operation name
        logger: Logger receiving the start and outcome records
        message: Start message
        args: Fields attached to every record of the operation
        exit_args: Called at exit; its pairs are attached to the outcome record
        log_on_start: Emit a record when the operation starts
    """
    args = dict(args or {})
    operation_id = get_correlation_id() or str(uuid.uuid4())
    operation = ConfirmedOperation(name, operation_id)
    perf_logger = get_performance_logger()

    with LogContext(operation_id):
        if log_on_start:
            logger.info(
                f"[{name}] {message}".rstrip(),
                extra={"operation": name, "operation_id": operation_id, **args}
            )

        start = time.perf_counter()
        try:
            yield operation
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            perf_logger.log_metric(name, elapsed, success=False, error_type=type(e).__name__)
            logger.error(
                f"[{name}] failed after {elapsed:.2f}ms: {e}",
                extra={
                    "operation": name,
                    "operation_id": operation_id,
                    "duration_ms": round(elapsed, 2),
                    "error": str(e),
                    "error_type": type(e).__name__,
                    **args,
                    **dict(exit_args() if exit_args else []),
                },
                exc_info=True
            )
            raise

        elapsed = (time.perf_counter() - start) * 1000
        perf_logger.log_metric(name, elapsed, success=operation.succeeded)
        extra = {
            "operation": name,
            "operation_id": operation_id,
            "duration_ms": round(elapsed, 2),
            "success": operation.succeeded,
            **args,
            **dict(exit_args() if exit_args else []),
        }
        if operation.succeeded:
            logger.info(f"[{name}] succeeded in {elapsed:.2f}ms", extra=extra)
        else:
            logger.warning(f"[{name}] exited without confirmation", extra=extra)
