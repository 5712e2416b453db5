"""Shared type definitions for rendertrace."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from rendertrace.core.events import ComponentRenderEvent

# Host component instance identifier
type ComponentId = str

# Display name of a component
type ComponentName = str

# Operation reported by the host for one reactive access or mutation
type EventKind = Literal["get", "has", "iterate", "set", "add", "delete", "clear", "change"]

# Provenance of a trigger
type TriggerSource = Literal[
    "direct_value",
    "derived_computation",
    "tracked_object",
    "store",
    "external_input",
    "unknown",
]

# Kind of a named store property
type StorePropKind = Literal["state", "derived", "action"]

# Why a component rendered
type RerenderReason = Literal["initial", "external_input", "internal_state", "store_change"]

# Key of a reactive access (attribute name, index, or an opaque marker)
type ReactiveKey = str | int | object

# Callback receiving each emitted render event
type RenderCallback = Callable[[ComponentRenderEvent], Any]
