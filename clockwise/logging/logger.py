"""
Core logging module with structured logging and correlation ID tracking.

Architecture:
- Named log streams (system, clock, performance)
- JSON formatting for machine consumption
- Human-readable console formatting for development
- Correlation ID propagation so every record of one clock operation
  can be grouped together
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional
from contextvars import ContextVar
import uuid

# Context variable for correlation ID (safe across threads and asyncio tasks)
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

LOGGER_PREFIX = "clockwise"


# ============================================================================
# LOG STREAM DEFINITIONS
# ============================================================================

class LogStream:
    """Log stream identifiers."""
    SYSTEM = "system"           # Startup, config, ambient registration
    CLOCK = "clock"             # Scheduling and advancement
    PERFORMANCE = "performance" # Operation timing

    ALL = (SYSTEM, CLOCK, PERFORMANCE)


# ============================================================================
# CORRELATION ID MANAGEMENT
# ============================================================================

def get_correlation_id() -> Optional[str]:
    """Get correlation ID for current context."""
    return _correlation_id.get()


class LogContext:
    """
    Context manager for scoped correlation ID.

    Usage:
        with LogContext("advance-42"):
            logger.info("Firing")  # Includes correlation_id
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id
        self._token = None

    def __enter__(self):
        self._token = _correlation_id.set(self.correlation_id or str(uuid.uuid4()))
        return _correlation_id.get()

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id.reset(self._token)


# ============================================================================
# CUSTOM LOG RECORD FACTORY
# ============================================================================

_original_factory = logging.getLogRecordFactory()


def _correlation_id_factory(*args, **kwargs):
    """
    Custom log record factory that injects correlation ID.
    """
    record = _original_factory(*args, **kwargs)
    record.correlation_id = get_correlation_id()
    return record


# Install custom factory
logging.setLogRecordFactory(_correlation_id_factory)


# ============================================================================
# LOGGER SETUP
# ============================================================================

_loggers_initialized = False


def setup_logging(
    log_dir: Optional[Path] = Path("logs"),
    log_level: str = "INFO",
    console_level: str = "INFO",
    json_logs: bool = True,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5,
    force: bool = False,
) -> None:
    """
    Initialize logging infrastructure.

    Creates one rotating log file per stream:
    - logs/system/system.log
    - logs/clock/clock.log
    - logs/performance/performance.log

    Args:
        log_dir: Base directory for logs. None disables file logging.
        log_level: File logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_level: Console logging level
        json_logs: If True, use JSON formatting for files
        max_bytes: Max bytes per log file before rotation
        backup_count: Number of backup files to keep
        force: Re-initialize even if already set up
    """
    global _loggers_initialized

    if _loggers_initialized and not force:
        return

    from .formatters import JSONFormatter, ConsoleFormatter

    package_logger = logging.getLogger(LOGGER_PREFIX)
    package_logger.setLevel(logging.DEBUG)  # Capture everything, filter at handler level

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(ConsoleFormatter())
    package_logger.addHandler(console_handler)

    file_level = getattr(logging, log_level.upper())

    for stream in LogStream.ALL:
        logger = get_logger(stream)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True  # Also send to package logger (console)

        if log_dir is None:
            continue

        stream_dir = Path(log_dir) / stream
        stream_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            stream_dir / f"{stream}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        handler.setLevel(file_level)

        if json_logs:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(correlation_id)s - %(message)s'
            ))
        logger.addHandler(handler)

    _loggers_initialized = True

    get_logger(LogStream.SYSTEM).info(
        "Logging system initialized",
        extra={
            "log_dir": str(log_dir) if log_dir is not None else None,
            "log_level": log_level,
            "json_logs": json_logs
        }
    )


def get_logger(stream: str) -> logging.Logger:
    """
    Get logger for specific stream.

    Example:
        logger = get_logger(LogStream.CLOCK)
        logger.debug("Scheduled", extra={"due": "2025-01-01T00:00:00+00:00"})
    """
    return logging.getLogger(f"{LOGGER_PREFIX}.{stream}")
