"""Render history — bounded, queryable store of emitted render events.

Events are keyed ``"<component_id>-<timestamp_ns>"``.  When the store is
full the oldest events are discarded automatically.

Not locked: the registry owns its history and drives it from the host's
single render thread.

"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any

from rendertrace.core.events import ComponentRenderEvent


def history_key(event: ComponentRenderEvent) -> str:
    return f"{event.component_id}-{event.timestamp_ns}"


class RenderHistory:
    """Bounded render-event store with query support.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_max_events", "_collisions")

    def __init__(self, max_events: int = 1000) -> None:
        self._max_events = max_events
        self._collisions = 0
        self._events: OrderedDict[str, ComponentRenderEvent] = OrderedDict()

    @property
    def max_events(self) -> int:
        return self._max_events

    def append(self, event: ComponentRenderEvent) -> str:
        """Record an event and return its history key.

        Two events of one component with the same timestamp both stay
        retained: the later one gets a numbered suffix on its key.
        """
        key = history_key(event)
        while key in self._events:
            self._collisions += 1
            key = f"{history_key(event)}-{self._collisions}"
        self._events[key] = event
        while len(self._events) > self._max_events:
            self._events.popitem(last=False)
        return key

    def get(self, key: str) -> ComponentRenderEvent | None:
        return self._events.get(key)

    def query(
        self,
        *,
        component_id: str | None = None,
        component_name: str | None = None,
        since_ns: int = 0,
        noop_only: bool = False,
        limit: int = 100,
    ) -> list[ComponentRenderEvent]:
        """Query events with optional filters.

        Args:
            component_id: Only return events of this component instance.
            component_name: Only return events of components with this name.
            since_ns: Only return events at or after this timestamp (nanoseconds).
            noop_only: Only return renders with at least one no-op trigger.
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        results: list[ComponentRenderEvent] = []
        for event in reversed(self._events.values()):
            if len(results) >= limit:
                break
            if component_id is not None and event.component_id != component_id:
                continue
            if component_name is not None and event.component_name != component_name:
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            if noop_only and not event.has_noops:
                continue
            results.append(event)
        return results

    def recent(self, n: int = 20) -> list[ComponentRenderEvent]:
        """Return the N most recent events, oldest first."""
        if n <= 0:
            return []
        return list(self._events.values())[-n:]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        count = len(self._events)
        self._events.clear()
        self._collisions = 0
        return count

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, key: object) -> bool:
        return key in self._events

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        reason_counts: dict[str, int] = {}
        for event in self._events.values():
            reason_counts[event.rerender_reason] = reason_counts.get(event.rerender_reason, 0) + 1

        return {
            "total": len(self._events),
            "max_events": self._max_events,
            "by_reason": reason_counts,
        }
