"""Render formatter — human-readable lines for a render event.

Example output::

    ⚠ [Counter] (render #3) Re-rendered
      Triggers:
        ✗ [store:cart] (derived)"total" (12 → 12) (UNCHANGED!)
        ✓ [direct_value:set] "value" (1 → 2)
      ⚠ Found 1 unnecessary trigger (values unchanged)
      Source breakdown: store(1), direct_value(1)

"""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping, Set
from typing import IO, TYPE_CHECKING, Any

from rendertrace.core.events import UNSET
from rendertrace.core.handles import is_computed, is_value_cell
from rendertrace.logger.levels import LogLevel, event_severity, should_log

if TYPE_CHECKING:
    from rendertrace.core.events import ComponentRenderEvent, Trigger

_MUTATION_LABELS: dict[str, str] = {
    "add": "added",
    "delete": "deleted",
    "set": "updated",
}

# Collections longer than this are summarised by their size
_MAX_INLINE_ITEMS = 3


class RenderFormatter:
    """Formats ``ComponentRenderEvent`` objects for console output.

    Args:
        max_depth: Nesting depth rendered before values collapse to ``[...]``.
        max_string_length: Strings longer than this are truncated.

    """

    __slots__ = ("_max_depth", "_max_string_length")

    def __init__(self, max_depth: int = 3, max_string_length: int = 100) -> None:
        self._max_depth = max_depth
        self._max_string_length = max_string_length

    def format(self, event: ComponentRenderEvent) -> list[str]:
        """Format a render event as a list of lines."""
        badge = "⚠" if event.has_noops else "✓"
        lines: list[str] = []

        if event.is_initial_render:
            lines.append(f"{badge} [{event.component_name}] Mounted")
        else:
            count = f" (render #{event.render_count})" if event.render_count > 1 else ""
            lines.append(f"{badge} [{event.component_name}]{count} Re-rendered")

        if event.triggers:
            lines.append("  Triggers:")
            lines.extend(self.format_trigger(t) for t in event.triggers)
        elif not event.is_initial_render:
            lines.append("  (No triggers captured - possibly batched or parent re-render)")

        lines.extend(self._analysis(event.triggers))
        return lines

    def format_trigger(self, trigger: Trigger) -> str:
        """Format one trigger as an indented line."""
        icon = "✗" if trigger.is_noop else "✓"
        note = " (UNCHANGED!)" if trigger.is_noop else ""

        if trigger.source == "store" and trigger.store_id and trigger.store_prop_name:
            kind = f"({trigger.store_prop_kind}) " if trigger.store_prop_kind else ""
            label = f'[store:{trigger.store_id}] {kind}"{trigger.store_prop_name}'
            if trigger.collection_index is not None:
                return (
                    f'    {icon} {label}[{trigger.collection_index}]" '
                    f"{self._mutation_label(trigger.kind)}: {self._mutation_value(trigger)}{note}"
                )
            change = self.format_change(trigger.old_value, trigger.new_value)
            return f'    {icon} {label}" {change}{note}'

        type_label = f"[{trigger.source}:{trigger.kind}]"
        if trigger.collection_index is not None:
            return (
                f"    {icon} {type_label} [{trigger.collection_index}] "
                f"{self._mutation_label(trigger.kind)}: {self._mutation_value(trigger)}{note}"
            )

        change = self.format_change(trigger.old_value, trigger.new_value)
        key = "unknown" if trigger.key is None else str(trigger.key)
        return f'    {icon} {type_label} "{key}" {change}{note}'

    def format_change(self, old_value: Any, new_value: Any) -> str:
        return f"({self.stringify(old_value)} → {self.stringify(new_value)})"

    def stringify(self, value: Any, depth: int = 0) -> str:
        """Render a value compactly, bounded by depth and string length."""
        if depth > self._max_depth:
            return "[...]"
        if value is UNSET:
            return "undefined"
        if value is None:
            return "None"
        if isinstance(value, (bool, int, float, complex)):
            return repr(value)
        if isinstance(value, str):
            if len(value) > self._max_string_length:
                value = value[: self._max_string_length] + "..."
            return f'"{value}"'
        if isinstance(value, bytes):
            return f"bytes({len(value)})"
        if is_computed(value):
            return "Computed<...>"
        if is_value_cell(value):
            inner = getattr(value, "_value", None)
            return f"Ref<{self.stringify(inner, depth + 1)}>"
        if isinstance(value, (list, tuple)):
            if not value:
                return "[]"
            if len(value) > _MAX_INLINE_ITEMS:
                return f"{type(value).__name__}({len(value)})"
            return "[" + ", ".join(self.stringify(v, depth + 1) for v in value) + "]"
        if isinstance(value, Mapping):
            if not value:
                return "{}"
            keys = list(value.keys())
            if len(keys) > _MAX_INLINE_ITEMS:
                return "{" + ", ".join(str(k) for k in keys[:_MAX_INLINE_ITEMS]) + ", ...}"
            items = (f"{k}: {self.stringify(value[k], depth + 1)}" for k in keys)
            return "{" + ", ".join(items) + "}"
        if isinstance(value, Set):
            return f"{type(value).__name__}({len(value)})"
        if callable(value):
            return f"[Function: {getattr(value, '__name__', 'anonymous')}]"
        return f"{type(value).__name__}<...>"

    def _mutation_label(self, kind: str | None) -> str:
        if kind is None:
            return "changed"
        return _MUTATION_LABELS.get(kind, kind)

    def _mutation_value(self, trigger: Trigger) -> str:
        if trigger.kind == "add":
            return self.stringify(trigger.new_value)
        if trigger.kind == "delete":
            return self.stringify(trigger.old_value)
        return self.format_change(trigger.old_value, trigger.new_value)

    def _analysis(self, triggers: tuple[Trigger, ...]) -> list[str]:
        if not triggers:
            return []

        lines: list[str] = []
        noops = sum(1 for t in triggers if t.is_noop)
        if noops:
            plural = "s" if noops != 1 else ""
            lines.append(f"  ⚠ Found {noops} unnecessary trigger{plural} (values unchanged)")

        by_source: dict[str, int] = {}
        for trigger in triggers:
            by_source[trigger.source] = by_source.get(trigger.source, 0) + 1
        if len(by_source) > 1:
            breakdown = ", ".join(f"{source}({count})" for source, count in by_source.items())
            lines.append(f"  Source breakdown: {breakdown}")

        return lines


def create_console_logger(
    formatter: RenderFormatter,
    level: LogLevel,
    stream: IO[str] | None = None,
) -> Callable[[ComponentRenderEvent], None]:
    """Return a callable that prints events allowed by ``level``.

    Output goes to ``stream`` (stderr by default).
    """

    def log_event(event: ComponentRenderEvent) -> None:
        severity = event_severity(event.has_noops, len(event.triggers))
        if not should_log(severity, level):
            return
        out = stream if stream is not None else sys.stderr
        print("\n".join(formatter.format(event)), file=out)

    return log_event
