"""
Log formatters for clock records.

A clock record talks about two kinds of time: the wall-clock moment it was
written and the simulated instants the clock was handling. Both formatters
keep them apart, and stamp each record with the ambient virtual time when a
clock is registered.

JSON layout:
{
    "timestamp": "2025-01-19T10:30:45.123456+00:00",
    "level": "INFO",
    "logger": "clockwise.clock",
    "correlation_id": "uuid-here",
    "message": "[advance_to] succeeded in 0.12ms",
    "virtual_now": "2025-01-01T12:00:05+00:00",
    "operation": {"name": "advance_to", "id": "...", "duration_ms": 0.12, "success": true},
    "clock": {"start": "...", "end": "...", "now_at": "...", "fired": 1},
    "extra": {...}
}
"""

import json
import logging
import traceback
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional


# Simulated-time and queue fields, in display order
CLOCK_FIELDS = ("now", "now_at", "start", "end", "requested", "due", "pending", "fired", "created_by")

# confirm_operation fields -> key inside the "operation" object
OPERATION_FIELDS = {
    "operation": "name",
    "operation_id": "id",
    "duration_ms": "duration_ms",
    "success": "success",
    "error": "error",
    "error_type": "error_type",
}

_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "taskName", "correlation_id",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    return str(value)


def _virtual_now() -> Optional[datetime]:
    """Current time of the registered clock, if any."""
    # clockwise.time logs through this package, so import at call time
    from clockwise.time.context import registered_clock

    clock = registered_clock()
    return clock.now() if clock is not None else None


def split_fields(record: logging.LogRecord) -> Dict[str, Dict[str, Any]]:
    """
    Sort a record's custom attributes into operation, clock and other fields.
    """
    groups: Dict[str, Dict[str, Any]] = {"operation": {}, "clock": {}, "extra": {}}
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRS or key.startswith("_"):
            continue
        if key in OPERATION_FIELDS:
            groups["operation"][OPERATION_FIELDS[key]] = value
        elif key in CLOCK_FIELDS:
            groups["clock"][key] = value
        else:
            groups["extra"][key] = value
    return groups


class JSONFormatter(logging.Formatter):
    """JSON formatter for machine-readable clock logs. See module docstring."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", None),
            "message": record.getMessage(),
        }

        virtual_now = _virtual_now()
        if virtual_now is not None:
            log_data["virtual_now"] = virtual_now

        for group, fields in split_fields(record).items():
            if fields:
                log_data[group] = fields

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName
            }

        return json.dumps(log_data, default=_json_default)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter.

    Format:
    [10:30:45] [INFO    ] [CLOCK       ] [corr:1a2b3c4d] [vt:2025-01-01T12:00:05+00:00] [advance_to] succeeded in 0.12ms | now_at=... fired=1
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, self.COLORS['RESET'])}{level}{self.COLORS['RESET']}"

        parts = [
            f"[{datetime.fromtimestamp(record.created).strftime('%H:%M:%S')}]",
            f"[{level}]",
            f"[{record.name.split('.')[-1].upper():12}]",
        ]

        corr_id = getattr(record, "correlation_id", None)
        if corr_id:
            parts.append(f"[corr:{corr_id[:8]}]")

        virtual_now = _virtual_now()
        if virtual_now is not None:
            parts.append(f"[vt:{virtual_now.isoformat()}]")

        parts.append(record.getMessage())
        formatted = " ".join(parts)

        clock_fields = split_fields(record)["clock"]
        if clock_fields:
            formatted += " | " + " ".join(
                f"{key}={_json_default(clock_fields[key])}"
                for key in CLOCK_FIELDS if key in clock_fields
            )

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted
