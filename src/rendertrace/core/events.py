"""Render event model — input notifications, triggers, and render records.

Defines the record types flowing through the engine:

- ``ReactiveChangeEvent``: one raw notification from the host framework
- ``Trigger``: a classified change (provisional until commit, then final)
- ``ComponentRenderEvent``: one completed render cycle of one component
- ``RenderStats``: snapshot of the aggregate counters

All records are frozen dataclasses.  A ``ComponentRenderEvent`` is created
exactly once per emitted render and never mutated afterwards.

"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rendertrace._types import (
    ComponentId,
    ComponentName,
    EventKind,
    ReactiveKey,
    RerenderReason,
    StorePropKind,
    TriggerSource,
)


class _Unset:
    """Marker for an absent value, distinct from ``None``."""

    __slots__ = ()
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

# Placeholder values reported instead of a real value
VALUE_READ_ERROR = "[error reading value]"
DEPENDENCY_CHANGED = "[dependency changed]"
PENDING_VALUE = "[pending]"

# Tracked key recorded when the host omits the key
UNKNOWN_KEY = "unknown"


# ---------------------------------------------------------------------------
# Host input
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReactiveChangeEvent:
    """A dependency read or change notification from the host framework.

    Every field may be missing: computations triggered through a dependency
    graph often arrive with only an ``effect``.

    Attributes:
        effect: Opaque handle of the effect (render job) being notified.
        target: Reactive handle that was read or written.
        kind: Operation kind (``get``, ``set``, ``add``...).
        key: Property name or index accessed on ``target``.
        old_value: Value before the mutation, ``UNSET`` when not supplied.
        new_value: Value after the mutation, ``UNSET`` when not supplied.

    """

    effect: Any = None
    target: Any = None
    kind: EventKind | None = None
    key: ReactiveKey | None = None
    old_value: Any = UNSET
    new_value: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ReactiveChangeEvent:
        """Build an event from a host dict.

        Accepts both snake_case names and the host's camelCase names
        (``type``, ``oldValue``, ``newValue``).
        """
        return cls(
            effect=data.get("effect"),
            target=data.get("target"),
            kind=data.get("kind", data.get("type")),
            key=data.get("key"),
            old_value=data.get("old_value", data.get("oldValue", UNSET)),
            new_value=data.get("new_value", data.get("newValue", UNSET)),
        )


# ---------------------------------------------------------------------------
# Classified triggers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Trigger:
    """A classified render trigger.

    Attributes:
        key: Property name (store property name once attributed).
        kind: Operation kind of the underlying notification.
        old_value: Value before the change (or a placeholder string).
        new_value: Value after the change (or a placeholder string).
        is_noop: True when old and new values are equivalent.
        source: Provenance category.
        path: Dotted locator, ``"<owner>.<key>"``.
        store_id: Owning store, when attributed.
        store_prop_name: Store property name, when attributed.
        store_prop_kind: ``state`` / ``derived`` / ``action``, when attributed.
        collection_index: Index of an indexed collection mutation.
        pending: Computation handle whose value is read at commit time.
            ``None`` on a final trigger.

    """

    key: ReactiveKey | None
    kind: EventKind | None
    old_value: Any
    new_value: Any
    is_noop: bool
    source: TriggerSource
    path: str
    store_id: str | None = None
    store_prop_name: str | None = None
    store_prop_kind: StorePropKind | None = None
    collection_index: str | int | None = None
    pending: Any = field(default=None, repr=False, compare=False)

    @property
    def is_provisional(self) -> bool:
        """True while the new value still awaits commit-time resolution."""
        return self.pending is not None


# ---------------------------------------------------------------------------
# Render records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ComponentRenderEvent:
    """One completed render of one component.

    Attributes:
        component_name: Display name of the component.
        component_id: Host instance identifier.
        timestamp_ns: Monotonic nanosecond timestamp of finalization.
        triggers: Classified triggers, in notification order.
        tracked_keys: Keys read during the render.
        is_initial_render: True for the first render of this instance.
        rerender_reason: Summary of why the render happened.
        render_count: Renders already counted for this component name.

    """

    component_name: ComponentName
    component_id: ComponentId
    timestamp_ns: int
    triggers: tuple[Trigger, ...]
    tracked_keys: frozenset[Any]
    is_initial_render: bool
    rerender_reason: RerenderReason
    render_count: int

    @property
    def has_noops(self) -> bool:
        """True if any trigger of this render was a no-op."""
        return any(t.is_noop for t in self.triggers)


@dataclass(frozen=True, slots=True)
class ComponentRenderCount:
    """Render count of one component name."""

    component: ComponentName
    count: int


@dataclass(frozen=True, slots=True)
class RenderStats:
    """Snapshot of the aggregate render statistics.

    Attributes:
        total_renders: Renders emitted since the last reset.
        by_component: Render count per component name.
        most_expensive: Top components by render count (at most 10).
        no_op_renders: Emitted renders with at least one no-op trigger.

    """

    total_renders: int
    by_component: dict[ComponentName, int]
    most_expensive: tuple[ComponentRenderCount, ...]
    no_op_renders: int

    def as_dict(self) -> dict[str, Any]:
        """Plain-dict form for JSON dumps and dashboards."""
        return {
            "total_renders": self.total_renders,
            "by_component": dict(self.by_component),
            "most_expensive": [
                {"component": entry.component, "count": entry.count}
                for entry in self.most_expensive
            ],
            "no_op_renders": self.no_op_renders,
        }


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
