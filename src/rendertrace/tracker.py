"""Tracker facade — wires component lifecycle hooks to a render registry.

The host calls ``RenderTracker.attach`` once per component instance and
forwards that instance's render-tracked, render-triggered, mounted and
updated notifications to the returned ``ComponentHooks``.  Commit hooks
finalize the render and print it through the console logger.

Usage::

    import rendertrace

    tracker = rendertrace.enable(throttle_ms=16, include=["Cart"])
    hooks = tracker.attach("7", "CartSummary")
    hooks.on_render_triggered(event)
    hooks.on_updated()

When ``RENDERTRACE_ENV`` (or ``PYTHON_ENV``) is ``production`` the tracker
returned by ``enable`` is disabled and never attaches hooks.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from rendertrace.config import ComponentPattern, TrackerConfig
from rendertrace.config_loader import normalize_options
from rendertrace.core.events import ComponentRenderEvent, ReactiveChangeEvent, RenderStats
from rendertrace.core.registry import RenderRegistry
from rendertrace.logger.formatter import RenderFormatter, create_console_logger

if TYPE_CHECKING:
    from rendertrace._types import ComponentId, ComponentName
    from rendertrace.core.store_resolver import StorePropertyInfo

_ENV_VARS = ("RENDERTRACE_ENV", "PYTHON_ENV")


def is_production() -> bool:
    """Return True if the environment declares a production deployment."""
    return any(os.environ.get(var, "").strip().lower() == "production" for var in _ENV_VARS)


def match_pattern(name: str, pattern: ComponentPattern) -> bool:
    if isinstance(pattern, str):
        return pattern in name
    return pattern.search(name) is not None


def should_track(
    name: str,
    include: Iterable[ComponentPattern] = (),
    exclude: Iterable[ComponentPattern] = (),
) -> bool:
    """Apply include/exclude filtering to a component name.

    A non-empty ``include`` must match; any ``exclude`` match rejects.
    """
    include = tuple(include)
    if include and not any(match_pattern(name, p) for p in include):
        return False
    return not any(match_pattern(name, p) for p in exclude)


def _coerce_event(event: ReactiveChangeEvent | dict[str, Any]) -> ReactiveChangeEvent:
    if isinstance(event, ReactiveChangeEvent):
        return event
    return ReactiveChangeEvent.from_mapping(event)


# ---------------------------------------------------------------------------
# Per-component hooks
# ---------------------------------------------------------------------------


class ComponentHooks:
    """Lifecycle callbacks bound to one component instance."""

    __slots__ = ("_tracker", "component_id", "component_name")

    def __init__(
        self,
        tracker: RenderTracker,
        component_id: ComponentId,
        component_name: ComponentName,
    ) -> None:
        self._tracker = tracker
        self.component_id = component_id
        self.component_name = component_name

    def on_render_tracked(self, event: ReactiveChangeEvent | dict[str, Any]) -> None:
        self._tracker.registry.record_tracked_dependency(
            self.component_id, self.component_name, _coerce_event(event)
        )

    def on_render_triggered(self, event: ReactiveChangeEvent | dict[str, Any]) -> None:
        self._tracker.registry.record_render_trigger(
            self.component_id, self.component_name, _coerce_event(event)
        )

    def on_mounted(self) -> ComponentRenderEvent | None:
        return self._commit()

    def on_updated(self) -> ComponentRenderEvent | None:
        return self._commit()

    def _commit(self) -> ComponentRenderEvent | None:
        event = self._tracker.registry.finalize_render(self.component_id, self.component_name)
        if event is not None:
            self._tracker._log(event)
        return event

    def __repr__(self) -> str:
        return f"ComponentHooks({self.component_name!r}, id={self.component_id!r})"


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------


class RenderTracker:
    """Owns a registry, its console logger, and the attached components.

    Args:
        config: Tracker configuration.  ``None`` uses the defaults.
        enabled: When False every operation is inert and ``attach`` returns
            ``None``.

    """

    def __init__(self, config: TrackerConfig | None = None, *, enabled: bool = True) -> None:
        self._config = config if config is not None else TrackerConfig()
        self._enabled = enabled
        self._registry = RenderRegistry(self._config)
        self._attached: dict[ComponentId, ComponentHooks] = {}
        self._logger: Callable[[ComponentRenderEvent], None] | None = None
        self._build_logger()

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> RenderRegistry:
        return self._registry

    # -- Control ---------------------------------------------------------------

    def pause(self) -> None:
        self._registry.pause()

    def resume(self) -> None:
        self._registry.resume()

    def reset(self) -> None:
        self._registry.reset()

    def get_stats(self) -> RenderStats:
        return self._registry.get_stats()

    def configure(self, **changes: Any) -> TrackerConfig:
        """Apply option changes (snake_case or camelCase) and return the new config.

        Raises:
            ConfigError: An option is unknown or invalid.

        """
        self._config = dataclasses.replace(self._config, **normalize_options(changes))
        self._registry.configure(self._config)
        self._build_logger()
        return self._config

    # -- Stores ----------------------------------------------------------------

    def register_store(self, store: Any) -> None:
        if self._enabled:
            self._registry.register_store(store)

    def lookup_property(self, handle: Any) -> StorePropertyInfo | None:
        return self._registry.lookup_property(handle)

    def store_plugin(self) -> Callable[[Any], None]:
        """Return a store-framework plugin that registers each created store.

        The plugin is called with a context exposing the new store as
        ``context.store``.
        """

        def plugin(context: Any) -> None:
            store = getattr(context, "store", None)
            if store is not None:
                self.register_store(store)

        return plugin

    # -- Components ------------------------------------------------------------

    def attach(
        self, component_id: ComponentId, component_name: ComponentName
    ) -> ComponentHooks | None:
        """Return hooks for a component, or ``None`` if it is not tracked.

        Attaching the same id twice returns the existing hooks.
        """
        if not self._enabled:
            return None
        existing = self._attached.get(component_id)
        if existing is not None:
            return existing
        if not should_track(component_name, self._config.include, self._config.exclude):
            return None
        hooks = ComponentHooks(self, component_id, component_name)
        self._attached[component_id] = hooks
        return hooks

    def detach(self, component_id: ComponentId) -> None:
        """Forget a destroyed component and release its registry state."""
        self._attached.pop(component_id, None)
        self._registry.cleanup_component(component_id)

    def is_attached(self, component_id: ComponentId) -> bool:
        return component_id in self._attached

    # -- Output ----------------------------------------------------------------

    def _build_logger(self) -> None:
        if not self._config.log_on_console:
            self._logger = None
            return
        formatter = RenderFormatter(
            max_depth=self._config.max_inspection_depth,
            max_string_length=self._config.max_string_length,
        )
        self._logger = create_console_logger(formatter, self._config.log_level)

    def _log(self, event: ComponentRenderEvent) -> None:
        if self._logger is not None:
            self._logger(event)


def enable(config: TrackerConfig | None = None, **options: Any) -> RenderTracker:
    """Create a render tracker.

    Keyword options (snake_case or camelCase) override ``config``.  In
    production the tracker is returned disabled.

    Raises:
        ConfigError: An option is unknown or invalid.

    """
    base = config if config is not None else TrackerConfig()
    if options:
        base = dataclasses.replace(base, **normalize_options(options))
    return RenderTracker(base, enabled=not is_production())
