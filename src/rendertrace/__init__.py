"""rendertrace — explains why UI components re-rendered.

Observes the reactive reads and writes a host UI framework reports for each
component, classifies every change that scheduled a render, flags changes
that did not actually change anything, attributes changes to the named
properties of registered stores, and emits one render event per commit.

Quick start::

    import rendertrace

    tracker = rendertrace.enable(log_level="verbose")
    hooks = tracker.attach(component_id, "TodoList")

    # forwarded by the host framework
    hooks.on_render_tracked(event)
    hooks.on_render_triggered(event)
    hooks.on_updated()

    tracker.get_stats()

Core building blocks::

    RenderRegistry      per-component aggregation and statistics
    EventClassifier     raw change event -> Trigger
    StoreResolver       reactive handle -> (store, property)
    detect_noop         "did this change change anything?"

"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rendertrace.config import TrackerConfig
    from rendertrace.tracker import RenderTracker

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "UNSET",
    "ComponentRenderEvent",
    "ConfigError",
    "EventClassifier",
    "ReactiveChangeEvent",
    "RenderFormatter",
    "RenderRegistry",
    "RenderStats",
    "RenderTraceError",
    "RenderTracker",
    "StorePropertyInfo",
    "StoreResolver",
    "TrackerConfig",
    "Trigger",
    "__version__",
    "detect_noop",
    "enable",
    "load_config",
]

# name -> defining module
_LAZY: dict[str, str] = {
    "UNSET": "rendertrace.core.events",
    "ComponentRenderEvent": "rendertrace.core.events",
    "ReactiveChangeEvent": "rendertrace.core.events",
    "RenderStats": "rendertrace.core.events",
    "Trigger": "rendertrace.core.events",
    "EventClassifier": "rendertrace.core.classifier",
    "detect_noop": "rendertrace.core.equivalence",
    "RenderRegistry": "rendertrace.core.registry",
    "StorePropertyInfo": "rendertrace.core.store_resolver",
    "StoreResolver": "rendertrace.core.store_resolver",
    "TrackerConfig": "rendertrace.config",
    "load_config": "rendertrace.config_loader",
    "ConfigError": "rendertrace._errors",
    "RenderTraceError": "rendertrace._errors",
    "RenderFormatter": "rendertrace.logger.formatter",
    "RenderTracker": "rendertrace.tracker",
}


def enable(config: TrackerConfig | None = None, **options: object) -> RenderTracker:
    """Create a render tracker.  See ``rendertrace.tracker.enable``."""
    from rendertrace.tracker import enable as _enable

    return _enable(config, **options)


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import rendertrace`` fast while providing a flat top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
