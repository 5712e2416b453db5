"""Core: change classification, no-op detection, store attribution, aggregation."""

from rendertrace.core.classifier import EventClassifier
from rendertrace.core.equivalence import detect_noop
from rendertrace.core.events import (
    UNSET,
    ComponentRenderCount,
    ComponentRenderEvent,
    ReactiveChangeEvent,
    RenderStats,
    Trigger,
)
from rendertrace.core.history import RenderHistory
from rendertrace.core.registry import RenderRegistry
from rendertrace.core.store_resolver import StorePropertyInfo, StoreResolver

__all__ = [
    "UNSET",
    "ComponentRenderCount",
    "ComponentRenderEvent",
    "EventClassifier",
    "ReactiveChangeEvent",
    "RenderHistory",
    "RenderRegistry",
    "RenderStats",
    "StorePropertyInfo",
    "StoreResolver",
    "Trigger",
    "detect_noop",
]
