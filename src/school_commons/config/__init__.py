"""Configuration helpers for school-commons."""

from .logging_config import (
    LogFormat,
    LogLevel,
    LogVerbosity,
    LoggingConfig,
    get_log_level_from_verbosity,
    setup_logging,
)

__all__ = [
    "LogFormat",
    "LogLevel",
    "LogVerbosity",
    "LoggingConfig",
    "get_log_level_from_verbosity",
    "setup_logging",
]
