"""
Configuration schema using Pydantic for validation.

Validates on load, fails fast on invalid config.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# ENUMS
# ============================================================================

class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ============================================================================
# CLOCK CONFIGURATION
# ============================================================================

class ClockConfig(BaseModel):
    """
    Virtual clock parameters.

    RULES:
    - start_time must be timezone-aware; it is stored in UTC
    - start_time None means "real UTC now at start"
    """

    start_time: Optional[datetime] = Field(
        default=None,
        description="Initial virtual time (timezone-aware)"
    )

    emit_events: bool = Field(
        default=True,
        description="Deliver advancement events to the event sink"
    )

    created_by: Optional[str] = Field(
        default=None,
        description="Label shown when the clock is printed"
    )

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Require an aware datetime and normalise to UTC."""
        if v is None:
            return v
        if v.tzinfo is None or v.tzinfo.utcoffset(v) is None:
            raise ValueError("start_time must be timezone-aware (UTC)")
        return v.astimezone(timezone.utc)


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_dir: Optional[Path] = Field(
        default=None,
        description="Base log directory; None logs to console only"
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="File logging level"
    )

    console_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Console logging level"
    )

    json_logs: bool = Field(
        default=True,
        description="Use JSON formatting for log files"
    )

    max_bytes: int = Field(
        ge=1_000_000,
        le=100_000_000,
        default=10_000_000,
        description="Max bytes per log file"
    )

    backup_count: int = Field(
        ge=1,
        le=20,
        default=5,
        description="Number of backup files"
    )


# ============================================================================
# MASTER SCHEMA
# ============================================================================

class ConfigSchema(BaseModel):
    """
    Master configuration schema.
    """

    clock: ClockConfig = Field(default_factory=ClockConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigSchema":
        """Load config from dictionary."""
        return cls(**data)
