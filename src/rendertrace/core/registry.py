"""Render registry — per-component aggregation of render triggers.

The host reports, for the component currently rendering, every dependency
read (``record_tracked_dependency``) and every dependency change that
scheduled the render (``record_render_trigger``).  When the host commits the
render, ``finalize_render`` moves the buffered triggers into one immutable
``ComponentRenderEvent``, updates the running statistics, and hands the
event to the configured callback.

Per component id the registry holds: tracked keys, pending triggers, the
last emission time, triggers held back by throttling, and whether the
component has rendered before.  Global state is the pause flag, the
bounded history, the statistics, and the optional store resolver.

Single-threaded: every call is made synchronously from the host's render
loop, so nothing here is locked.  Public operations never raise.

"""

from __future__ import annotations

import dataclasses
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rendertrace.core.classifier import EventClassifier, build_path
from rendertrace.core.equivalence import detect_noop
from rendertrace.core.events import (
    UNKNOWN_KEY,
    ComponentRenderCount,
    ComponentRenderEvent,
    ReactiveChangeEvent,
    RenderStats,
    Trigger,
    now_ns,
)
from rendertrace.core.handles import candidate_handles
from rendertrace.core.history import RenderHistory
from rendertrace.core.store_resolver import (
    STATE_CONTAINER_NAME,
    StorePropertyInfo,
    StoreResolver,
)

if TYPE_CHECKING:
    from rendertrace._types import ComponentId, ComponentName, RerenderReason
    from rendertrace.config import TrackerConfig

# Number of components reported in ``RenderStats.most_expensive``
MOST_EXPENSIVE_LIMIT = 10

_NS_PER_MS = 1_000_000


def infer_reason(triggers: tuple[Trigger, ...] | list[Trigger]) -> RerenderReason:
    """Summarise why a render happened from its triggers."""
    if not triggers:
        return "initial"
    sources = {t.source for t in triggers}
    if "store" in sources:
        return "store_change"
    if "external_input" in sources:
        return "external_input"
    return "internal_state"


class RenderRegistry:
    """Aggregates classified triggers into render events.

    Args:
        config: Tracker configuration.  ``None`` uses the defaults.
        clock: Nanosecond clock used for timestamps and throttling.

    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        clock: Callable[[], int] = now_ns,
    ) -> None:
        if config is None:
            from rendertrace.config import TrackerConfig

            config = TrackerConfig()
        self._config = config
        self._clock = clock
        self._classifier = EventClassifier()
        self._paused = config.pause_on_init

        # Per-component state
        self._tracked_keys: dict[ComponentId, set[Any]] = {}
        self._pending: dict[ComponentId, list[Trigger]] = {}
        self._last_emit_ns: dict[ComponentId, int] = {}
        self._held: dict[ComponentId, list[Trigger]] = {}
        self._rendered: set[ComponentId] = set()

        # Global state
        self._history = RenderHistory(max_events=config.history_limit)
        self._total_renders = 0
        self._renders_by_component: dict[ComponentName, int] = {}
        self._noop_render_count = 0

        self._store_resolver: StoreResolver | None = None
        if config.enable_store_tracking:
            self._store_resolver = StoreResolver(debug=config.debug_logging)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def history(self) -> RenderHistory:
        """Emitted render events, bounded by ``history_limit``."""
        return self._history

    @property
    def store_resolver(self) -> StoreResolver | None:
        """The store resolver, or ``None`` when store tracking is off."""
        return self._store_resolver

    def configure(self, config: TrackerConfig) -> None:
        """Apply a new configuration.

        Buffers, history and statistics are kept.  Enabling store tracking
        creates a resolver; disabling it drops the resolver and its index.
        """
        self._config = config
        if config.enable_store_tracking and self._store_resolver is None:
            self._store_resolver = StoreResolver(debug=config.debug_logging)
        elif not config.enable_store_tracking:
            self._store_resolver = None
        if self._store_resolver is not None:
            self._store_resolver.set_debug(config.debug_logging)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_tracked_dependency(
        self,
        component_id: ComponentId,
        component_name: ComponentName,
        event: ReactiveChangeEvent,
    ) -> None:
        """Note that the rendering component read ``event.key``."""
        if self._paused:
            return
        key = event.key if event.key is not None else UNKNOWN_KEY
        self._tracked_keys.setdefault(component_id, set()).add(key)

    def record_render_trigger(
        self,
        component_id: ComponentId,
        component_name: ComponentName,
        event: ReactiveChangeEvent,
    ) -> None:
        """Classify a change that scheduled a render and buffer the trigger."""
        if self._paused:
            return
        trigger = self._classifier.classify(event)
        if self._store_resolver is not None:
            trigger = self._attribute_to_store(trigger, event)
        self._pending.setdefault(component_id, []).append(trigger)

    def _attribute_to_store(self, trigger: Trigger, event: ReactiveChangeEvent) -> Trigger:
        resolver = self._store_resolver
        assert resolver is not None
        try:
            info = self._lookup_event(resolver, event)
            # Provisional values are matched at commit, once resolved
            if info is None and trigger.kind == "get" and not trigger.is_provisional:
                info = resolver.lookup_by_current_value(trigger.new_value, trigger.kind)
            if info is None:
                return trigger
            return self._with_store_info(resolver, trigger, info, event.key)
        except Exception as exc:
            self._attribution_failed(exc)
            return trigger

    def _match_by_value(self, trigger: Trigger) -> Trigger:
        """Attribute a resolved computation trigger by its committed value."""
        resolver = self._store_resolver
        if resolver is None or trigger.source == "store" or trigger.kind != "get":
            return trigger
        try:
            info = resolver.lookup_by_current_value(trigger.new_value, trigger.kind)
            if info is None:
                return trigger
            return self._with_store_info(resolver, trigger, info, None)
        except Exception as exc:
            self._attribution_failed(exc)
            return trigger

    @staticmethod
    def _with_store_info(
        resolver: StoreResolver,
        trigger: Trigger,
        info: StorePropertyInfo,
        event_key: Any,
    ) -> Trigger:
        prop_name = info.prop_name
        if prop_name == STATE_CONTAINER_NAME and isinstance(event_key, str):
            prop_name = event_key
        changes: dict[str, Any] = {
            "source": "store",
            "key": prop_name,
            "store_id": info.store_id,
            "store_prop_name": prop_name,
            "store_prop_kind": info.prop_kind,
            "path": build_path(info.store_id, prop_name),
        }
        if info.prop_kind == "derived":
            old_value, new_value = resolver.get_derived_value_with_previous(
                info.store_id, info.prop_name
            )
            changes.update(
                old_value=old_value,
                new_value=new_value,
                is_noop=detect_noop(old_value, new_value),
                pending=None,
            )
        return dataclasses.replace(trigger, **changes)

    def _attribution_failed(self, exc: Exception) -> None:
        if self._config.debug_logging:
            print(f"  [render-registry] store attribution failed: {exc}", file=sys.stderr)

    @staticmethod
    def _lookup_event(
        resolver: StoreResolver, event: ReactiveChangeEvent
    ) -> StorePropertyInfo | None:
        for handle in candidate_handles(event.target, event.effect):
            info = resolver.lookup(handle)
            if info is not None:
                return info
        return None

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize_render(
        self,
        component_id: ComponentId,
        component_name: ComponentName,
    ) -> ComponentRenderEvent | None:
        """Close the render cycle of one component.

        Returns the emitted event, or ``None`` while paused or while the
        render is held back by throttling.
        """
        if self._paused:
            return None

        pending = self._pending.pop(component_id, [])
        tracked = self._tracked_keys.pop(component_id, set())
        triggers = [self._commit_trigger(t) for t in pending]
        now = self._clock()

        is_initial = component_id not in self._rendered
        self._rendered.add(component_id)
        render_count = self._renders_by_component.get(component_name, 0)

        throttle_ns = self._config.throttle_ms * _NS_PER_MS
        if throttle_ns > 0:
            last = self._last_emit_ns.get(component_id)
            if last is not None and now - last < throttle_ns:
                self._held.setdefault(component_id, []).extend(triggers)
                return None
            held = self._held.pop(component_id, None)
            if held:
                triggers = held + triggers

        event = ComponentRenderEvent(
            component_name=component_name,
            component_id=component_id,
            timestamp_ns=now,
            triggers=tuple(triggers),
            tracked_keys=frozenset(tracked),
            is_initial_render=is_initial,
            rerender_reason=infer_reason(triggers),
            render_count=render_count,
        )
        self._emit(event)
        return event

    def _commit_trigger(self, trigger: Trigger) -> Trigger:
        resolved = self._classifier.resolve(trigger)
        if trigger.is_provisional:
            resolved = self._match_by_value(resolved)
        return resolved

    def _emit(self, event: ComponentRenderEvent) -> None:
        self._last_emit_ns[event.component_id] = event.timestamp_ns

        self._total_renders += 1
        name = event.component_name
        self._renders_by_component[name] = self._renders_by_component.get(name, 0) + 1
        if event.has_noops:
            self._noop_render_count += 1

        self._history.append(event)

        callback = self._config.on_render_event
        if callback is not None:
            try:
                callback(event)
            except Exception as exc:
                print(f"  Render callback error: {name}: {exc}", file=sys.stderr)

        # Derived values seen by the next render compare against this commit
        if self._store_resolver is not None:
            self._store_resolver.snapshot_all_derived_values()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def reset(self) -> None:
        """Clear history, buffers, statistics and first-render tracking."""
        self._history.clear()
        self._tracked_keys.clear()
        self._pending.clear()
        self._last_emit_ns.clear()
        self._held.clear()
        self._rendered.clear()
        self._total_renders = 0
        self._renders_by_component.clear()
        self._noop_render_count = 0

    def cleanup_component(self, component_id: ComponentId) -> None:
        """Release the per-component state of a destroyed component.

        Statistics and other components are untouched.
        """
        self._tracked_keys.pop(component_id, None)
        self._pending.pop(component_id, None)
        self._last_emit_ns.pop(component_id, None)
        self._held.pop(component_id, None)
        self._rendered.discard(component_id)

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def register_store(self, store: Any) -> None:
        """Register a store for attribution.  Ignored when store tracking is off."""
        if self._store_resolver is None:
            return
        try:
            self._store_resolver.register(store)
        except Exception as exc:
            print(f"  Store registration error: {exc}", file=sys.stderr)

    def lookup_property(self, handle: Any) -> StorePropertyInfo | None:
        """Resolve a reactive handle to its store property, if any."""
        if self._store_resolver is None:
            return None
        try:
            return self._store_resolver.lookup(handle)
        except Exception:
            return None

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_stats(self) -> RenderStats:
        """Snapshot of the aggregate statistics."""
        ranked = sorted(self._renders_by_component.items(), key=lambda item: -item[1])
        return RenderStats(
            total_renders=self._total_renders,
            by_component=dict(self._renders_by_component),
            most_expensive=tuple(
                ComponentRenderCount(component=name, count=count)
                for name, count in ranked[:MOST_EXPENSIVE_LIMIT]
            ),
            no_op_renders=self._noop_render_count,
        )

    def pending_count(self, component_id: ComponentId) -> int:
        """Number of triggers buffered (not yet finalized) for a component."""
        return len(self._pending.get(component_id, ())) + len(self._held.get(component_id, ()))
