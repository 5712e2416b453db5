"""Log levels — decide which render events reach the console.

Three configured levels, from most to least chatty:

- ``verbose``: every render
- ``warn``: renders with no-op triggers and multi-trigger renders
- ``error``: only multi-trigger renders
"""

from typing import Literal

type LogLevel = Literal["verbose", "warn", "error"]

# How noteworthy a single render event is
type EventSeverity = Literal["always", "noop", "info"]

LOG_LEVELS: tuple[str, ...] = ("verbose", "warn", "error")

_LEVEL_LABELS: dict[str, str] = {
    "verbose": "Verbose",
    "warn": "Warning",
    "error": "Error",
}


def should_log(severity: EventSeverity, level: LogLevel) -> bool:
    """Return True if an event of ``severity`` is shown at ``level``."""
    if level == "verbose":
        return True
    if level == "warn":
        return severity in ("noop", "always")
    if level == "error":
        return severity == "always"
    return False


def event_severity(has_noops: bool, trigger_count: int) -> EventSeverity:
    """Classify a render event by how much attention it deserves."""
    # Wasted renders matter most
    if has_noops:
        return "noop"
    if trigger_count > 1:
        return "always"
    return "info"


def format_log_level(level: LogLevel) -> str:
    return _LEVEL_LABELS.get(level, level)
