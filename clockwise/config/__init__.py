"""
Configuration system with Pydantic validation.
"""

from .schema import (
    ConfigSchema,
    ClockConfig,
    LoggingConfig,
    LogLevel,
)

from .loader import (
    ConfigLoader,
    configure_logging,
    load_config,
)

__all__ = [
    "ConfigSchema",
    "ClockConfig",
    "LoggingConfig",
    "LogLevel",
    "ConfigLoader",
    "configure_logging",
    "load_config",
]
