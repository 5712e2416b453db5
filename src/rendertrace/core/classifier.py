"""Event classifier — turns raw change notifications into triggers.

The host framework's notifications are frequently incomplete: a computation
invalidated through a dependency graph may arrive with no ``target``, no
``key`` and no values.  All absent-field handling lives in one inference
routine (``EventClassifier._infer``) which either identifies the changed
handle or falls through to an explicit ``unknown`` / "dependency changed"
result.

Derived computations are classified in two phases.  At notification time the
host may not have re-run the computation yet, so reading it would force a
recomputation out of lifecycle order.  The classifier records the cached
value as the old value, attaches the computation to the trigger as
``pending``, and ``resolve()`` reads the new value at commit time.

The classifier is stateless and never raises out of ``classify``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from rendertrace._types import EventKind, ReactiveKey, TriggerSource
from rendertrace.core.equivalence import detect_noop
from rendertrace.core.events import (
    DEPENDENCY_CHANGED,
    PENDING_VALUE,
    UNSET,
    ReactiveChangeEvent,
    Trigger,
)
from rendertrace.core.handles import (
    backing_value,
    cached_value,
    current_value,
    dep_handle,
    is_computed,
    is_external_input,
    is_value_cell,
    iter_effect_deps,
    safe_read,
)

_INDEXED_KINDS = frozenset({"add", "delete"})


@dataclass(slots=True)
class _Inference:
    """Working state of one classification."""

    source: TriggerSource
    key: ReactiveKey | None
    kind: EventKind | None
    old_value: Any
    new_value: Any
    owner: str | None = None
    pending: Any = None


def key_label(key: ReactiveKey | None) -> str:
    """Human-readable form of a reactive key."""
    if key is None:
        return "unknown"
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    description = getattr(key, "description", None) or getattr(key, "name", None)
    if isinstance(description, str) and description:
        return description
    return "symbol"


def build_path(owner: str | None, key: ReactiveKey | None) -> str:
    """Dotted locator for a trigger, ``"<owner>.<key>"``."""
    if key is None:
        return "unknown"
    label = key_label(key)
    if owner:
        return f"{owner}.{label}"
    return label


def collection_index(kind: EventKind | None, key: ReactiveKey | None) -> str | int | None:
    """Return the index of an indexed collection mutation, else ``None``.

    ``add`` / ``delete`` always report their key; ``set`` only when the key
    is a non-negative integer (or a digit string).
    """
    if key is None or isinstance(key, bool) or not isinstance(key, (str, int)):
        return None
    if kind in _INDEXED_KINDS:
        return key
    if kind == "set":
        if isinstance(key, int) and key >= 0:
            return key
        if isinstance(key, str) and key.isascii() and key.isdigit():
            return key
    return None


class EventClassifier:
    """Classifies ``ReactiveChangeEvent`` records into ``Trigger`` objects.

    Usage::

        classifier = EventClassifier()
        trigger = classifier.classify(event)      # provisional for computations
        ...
        trigger = classifier.resolve(trigger)     # at commit time

    """

    __slots__ = ()

    def classify(self, event: ReactiveChangeEvent) -> Trigger:
        """Classify one notification.  Never raises."""
        try:
            return self._classify(event)
        except Exception:
            return Trigger(
                key=event.key,
                kind=event.kind,
                old_value=event.old_value,
                new_value=event.new_value,
                is_noop=False,
                source="unknown",
                path="unknown",
            )

    def resolve(self, trigger: Trigger) -> Trigger:
        """Read the deferred value of a provisional trigger and finalize it.

        Final triggers are returned unchanged.
        """
        if trigger.pending is None:
            return trigger
        computation = trigger.pending
        new_value = safe_read(lambda: current_value(computation))
        try:
            is_noop = detect_noop(trigger.old_value, new_value)
        except Exception:
            is_noop = False
        return dataclasses.replace(trigger, new_value=new_value, is_noop=is_noop, pending=None)

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def _classify(self, event: ReactiveChangeEvent) -> Trigger:
        inference = self._infer(event)
        new_value = PENDING_VALUE if inference.pending is not None else inference.new_value
        return Trigger(
            key=inference.key,
            kind=inference.kind,
            old_value=inference.old_value,
            new_value=new_value,
            is_noop=detect_noop(inference.old_value, new_value),
            source=inference.source,
            path=build_path(inference.owner, inference.key),
            collection_index=collection_index(event.kind, event.key),
            pending=inference.pending,
        )

    def _infer(self, event: ReactiveChangeEvent) -> _Inference:
        target = event.target
        if target is not None:
            return self._infer_from_handle(target, event)

        if event.effect is not None:
            for dep in iter_effect_deps(event.effect):
                handle = dep_handle(dep)
                if handle is None:
                    continue
                if is_computed(handle) or is_value_cell(handle):
                    # Dependency-graph notifications carry no key or values
                    return self._infer_from_handle(handle, ReactiveChangeEvent())
            return _Inference(
                source="derived_computation",
                key="dependency",
                kind="change",
                old_value=UNSET,
                new_value=DEPENDENCY_CHANGED,
            )

        return _Inference(
            source="unknown",
            key=event.key,
            kind=event.kind,
            old_value=event.old_value,
            new_value=event.new_value,
        )

    def _infer_from_handle(self, handle: Any, event: ReactiveChangeEvent) -> _Inference:
        old_value = event.old_value
        new_value = event.new_value

        if is_computed(handle):
            inference = _Inference(
                source="derived_computation",
                key=event.key if event.key is not None else "value",
                kind=event.kind or "get",
                old_value=old_value,
                new_value=new_value,
                owner="computed",
            )
            if old_value is UNSET and new_value is UNSET:
                inference.old_value = safe_read(lambda: cached_value(handle))
                inference.pending = handle
            return inference

        if is_value_cell(handle):
            if old_value is UNSET or new_value is UNSET:
                # A cell overwritten in place has settled by notification time
                current = safe_read(lambda: backing_value(handle))
                if old_value is UNSET:
                    old_value = current
                if new_value is UNSET:
                    new_value = current
            return _Inference(
                source="direct_value",
                key=event.key if event.key is not None else "value",
                kind=event.kind or "set",
                old_value=old_value,
                new_value=new_value,
                owner="ref",
            )

        source: TriggerSource = "external_input" if is_external_input(handle) else "tracked_object"
        owner = getattr(handle, "store_id", None)
        return _Inference(
            source=source,
            key=event.key,
            kind=event.kind,
            old_value=old_value,
            new_value=new_value,
            owner=owner if isinstance(owner, str) else None,
        )
