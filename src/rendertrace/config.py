"""rendertrace configuration.

TrackerConfig is the central configuration object, frozen after creation.
Use ``dataclasses.replace`` (or ``RenderTracker.configure``) to derive a
changed copy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields

from rendertrace._errors import ConfigError
from rendertrace._types import RenderCallback
from rendertrace.logger.levels import LOG_LEVELS, LogLevel

type ComponentPattern = str | re.Pattern[str]


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Configuration for a render tracker.

    Only ``pause_on_init``, ``throttle_ms``, ``enable_store_tracking``,
    ``on_render_event`` and ``history_limit`` change how renders are
    aggregated.  The rest shape host wiring and console output.

    Attributes:
        include: Track only components whose name matches one of these
            (substring for strings, ``search`` for compiled patterns).
        exclude: Never track components whose name matches one of these.
        log_level: Console verbosity, ``verbose``, ``warn`` or ``error``.
        log_on_console: Print formatted render events to stderr.
        max_inspection_depth: Nesting depth rendered by the formatter.
        max_string_length: Strings longer than this are truncated in output.
        pause_on_init: Start in the paused state.
        throttle_ms: Coalesce renders of one component emitted closer than
            this many milliseconds (0 disables throttling).
        on_render_event: Called with every emitted render event.
        enable_store_tracking: Attribute triggers to registered stores.
        debug_logging: Trace store lookups to stderr.
        history_limit: Number of render events kept in history.

    """

    include: tuple[ComponentPattern, ...] = ()
    exclude: tuple[ComponentPattern, ...] = ()
    log_level: LogLevel = "warn"
    log_on_console: bool = True
    max_inspection_depth: int = 3
    max_string_length: int = 100
    pause_on_init: bool = False
    throttle_ms: int = 0
    on_render_event: RenderCallback | None = None
    enable_store_tracking: bool = False
    debug_logging: bool = False
    history_limit: int = 1000

    def __post_init__(self) -> None:
        # Accept any iterable of patterns (lists from YAML/TOML included)
        for name in ("include", "exclude"):
            value = getattr(self, name)
            if isinstance(value, (str, re.Pattern)):
                value = (value,)
            object.__setattr__(self, name, tuple(value))
            for pattern in getattr(self, name):
                if not isinstance(pattern, (str, re.Pattern)):
                    msg = f"{name} entries must be str or compiled patterns, got {pattern!r}"
                    raise ConfigError(msg)

        if self.log_level not in LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            raise ConfigError(msg)
        if self.on_render_event is not None and not callable(self.on_render_event):
            msg = "on_render_event must be callable"
            raise ConfigError(msg)

        for name in ("max_inspection_depth", "throttle_ms"):
            _require_int(name, getattr(self, name), minimum=0)
        for name in ("max_string_length", "history_limit"):
            _require_int(name, getattr(self, name), minimum=1)

    @classmethod
    def option_names(cls) -> frozenset[str]:
        """Names of every configuration option."""
        return frozenset(f.name for f in fields(cls))


def _require_int(name: str, value: object, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise ConfigError(msg)
    if value < minimum:
        msg = f"{name} must be >= {minimum}, got {value}"
        raise ConfigError(msg)
