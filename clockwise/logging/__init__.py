"""
Logging Infrastructure for clockwise

Provides structured, machine-readable logging for:
- Clock scheduling and advancement tracing
- Debugging time-dependent tests

Features:
- JSON structured logging
- Correlation ID tracking (one id per clock operation)
- Multiple log streams (system, clock, performance)
- Start/outcome confirmation records with timing
"""

from .logger import (
    get_logger,
    setup_logging,
    LogContext,
    get_correlation_id,
    LogStream,
)

from .formatters import (
    JSONFormatter,
    ConsoleFormatter,
)

from .operations import (
    ConfirmedOperation,
    PerformanceLogger,
    confirm_operation,
    get_performance_logger,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "get_correlation_id",
    "LogStream",
    "JSONFormatter",
    "ConsoleFormatter",
    "ConfirmedOperation",
    "PerformanceLogger",
    "confirm_operation",
    "get_performance_logger",
]
