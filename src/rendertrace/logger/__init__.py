"""Console output — formatting and level gating of render events."""

from rendertrace.logger.formatter import RenderFormatter, create_console_logger
from rendertrace.logger.levels import (
    LOG_LEVELS,
    EventSeverity,
    LogLevel,
    event_severity,
    format_log_level,
    should_log,
)

__all__ = [
    "LOG_LEVELS",
    "EventSeverity",
    "LogLevel",
    "RenderFormatter",
    "create_console_logger",
    "event_severity",
    "format_log_level",
    "should_log",
]
