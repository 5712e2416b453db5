"""Store property resolver — maps anonymous reactive handles to store properties.

A store is a named container of state and derived (computed) properties.
When a component re-renders because a store value changed, the host only
reports the reactive handle that changed.  The resolver keeps an identity
index from handles to ``StorePropertyInfo`` so that the trigger can be
reported as ``"<store>.<property>"``.

The same logical property may surface under different identities depending
on the access path (the raw object, a proxy over it, a view reference that
points back at the store, the computation behind a derived property).
``lookup`` therefore runs a fallback chain of independent strategies, each a
pure function of ``(handle, context)``.

Derived properties have no "before" value in host notifications.  The
resolver snapshots every derived value at well-defined checkpoints (after
each committed render, and before each store action) and reports that
snapshot as the old value.

Snapshot staleness:
    A store action that runs without a subsequent render refreshes the
    snapshot before the next render reads it, but intermediate values of
    actions that never cause a render are not observed.

"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from rendertrace._types import StorePropKind
from rendertrace.core.equivalence import same_value
from rendertrace.core.events import UNSET
from rendertrace.core.handles import (
    entries,
    force_recompute,
    is_computed,
    is_value_cell,
    member,
    to_raw,
    view_source,
)

STATE_CONTAINER_NAME = "$state"


@dataclass(frozen=True, slots=True)
class StorePropertyInfo:
    """Identity of one named store property.

    Attributes:
        store_id: Identifier of the owning store.
        prop_name: Property name inside the store.
        prop_kind: ``state``, ``derived`` or ``action``.

    """

    store_id: str
    prop_name: str
    prop_kind: StorePropKind


@dataclass(slots=True)
class RegisteredStore:
    """Bookkeeping for one registered store.

    Attributes:
        store_id: Identifier of the store.
        handle: The store object as registered.
        raw: The store with proxy layers stripped.
        derived: Computation handle of each derived property.

    """

    store_id: str
    handle: Any
    raw: Any
    derived: dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> Any:
        state = getattr(self.handle, "state", None)
        if state is None:
            state = getattr(self.raw, "state", None)
        return state

    def state_names(self) -> set[str]:
        return {name for name, _ in entries(self.state)}


@dataclass(slots=True)
class LookupContext:
    """Read-only view of the resolver state handed to lookup strategies."""

    index: dict[int, tuple[Any, StorePropertyInfo]]
    stores: dict[str, RegisteredStore]

    def find(self, obj: Any) -> StorePropertyInfo | None:
        hit = self.index.get(id(obj))
        if hit is None or hit[0] is not obj:
            return None
        return hit[1]


type LookupStrategy = Callable[[Any, LookupContext], StorePropertyInfo | None]


# ---------------------------------------------------------------------------
# Lookup strategies, tried in order
# ---------------------------------------------------------------------------


def lookup_direct(handle: Any, ctx: LookupContext) -> StorePropertyInfo | None:
    """The handle itself was indexed at registration."""
    return ctx.find(handle)


def lookup_raw(handle: Any, ctx: LookupContext) -> StorePropertyInfo | None:
    """The handle is a proxy whose raw object was indexed."""
    raw = to_raw(handle)
    if raw is handle:
        return None
    return ctx.find(raw)


def lookup_sequence(handle: Any, ctx: LookupContext) -> StorePropertyInfo | None:
    """A list handle matching a store's current state value by identity."""
    raw = to_raw(handle)
    if not isinstance(raw, list):
        return None
    for store in ctx.stores.values():
        for prop_name, value in entries(store.state):
            if value is handle or value is raw:
                return StorePropertyInfo(store.store_id, prop_name, "state")
            raw_value = to_raw(value)
            if raw_value is handle or raw_value is raw:
                return StorePropertyInfo(store.store_id, prop_name, "state")
    return None


def lookup_view(handle: Any, ctx: LookupContext) -> StorePropertyInfo | None:
    """A view reference whose back-pointer is a registered store or its state."""
    view = view_source(handle)
    if view is None:
        return None
    source, key = view
    raw_source = to_raw(source)
    for store in ctx.stores.values():
        state = store.state
        owners = (store.handle, store.raw, state, to_raw(state))
        if any(source is owner or raw_source is owner for owner in owners if owner is not None):
            kind: StorePropKind = "derived" if key in store.derived else "state"
            if kind == "state" and is_computed(member(store.raw, key)):
                kind = "derived"
            return StorePropertyInfo(store.store_id, key, kind)
    return None


def lookup_owner(handle: Any, ctx: LookupContext) -> StorePropertyInfo | None:
    """A handle carrying a back-reference to an indexed computation."""
    for attr in ("effect", "dep"):
        holder = getattr(handle, attr, None)
        computed = getattr(holder, "computed", None) if holder is not None else None
        if computed is not None:
            info = ctx.find(computed)
            if info is not None:
                return info
    return None


LOOKUP_STRATEGIES: tuple[LookupStrategy, ...] = (
    lookup_direct,
    lookup_raw,
    lookup_sequence,
    lookup_view,
    lookup_owner,
)


class StoreResolver:
    """Identity index and derived-value snapshot cache for registered stores.

    Args:
        debug: Trace every lookup attempt to stderr.
        scheduler: Runs a callback after the current synchronous action.
            Defaults to ``call_soon`` on the running asyncio loop.

    """

    __slots__ = ("_debug", "_derived_cache", "_index", "_scheduler", "_stores")

    def __init__(
        self,
        *,
        debug: bool = False,
        scheduler: Callable[[Callable[[], None]], None] | None = None,
    ) -> None:
        self._debug = debug
        self._scheduler = scheduler if scheduler is not None else _call_soon
        self._index: dict[int, tuple[Any, StorePropertyInfo]] = {}
        self._stores: dict[str, RegisteredStore] = {}
        # "store_id.prop" -> last snapshot of a derived value
        self._derived_cache: dict[str, Any] = {}

    @property
    def debug(self) -> bool:
        return self._debug

    def set_debug(self, enabled: bool) -> None:
        """Enable or disable lookup tracing."""
        self._debug = enabled

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, store: Any) -> None:
        """Index the state and derived properties of ``store``.

        Idempotent per store id.  Objects without a string ``store_id`` are
        ignored.
        """
        store_id = getattr(store, "store_id", None)
        if not isinstance(store_id, str) or not store_id:
            return
        if store_id in self._stores:
            return

        entry = RegisteredStore(store_id=store_id, handle=store, raw=to_raw(store))
        self._stores[store_id] = entry

        state = entry.state
        if state is not None:
            self._index_handle(state, StorePropertyInfo(store_id, STATE_CONTAINER_NAME, "state"))
            for prop_name, value in entries(state):
                if _is_composite(value):
                    self._index_handle(value, StorePropertyInfo(store_id, prop_name, "state"))

        state_names = entry.state_names()
        for prop_name, value in self._store_members(entry):
            if callable(value) and not is_computed(value):
                continue
            if is_computed(value):
                entry.derived[prop_name] = value
                info = StorePropertyInfo(store_id, prop_name, "derived")
                self._index_handle(value, info)
                dep = getattr(value, "dep", None)
                if dep is not None:
                    self._index_handle(dep, info)
            elif is_value_cell(value) or (prop_name in state_names and _is_composite(value)):
                self._index_handle(value, StorePropertyInfo(store_id, prop_name, "state"))

        self._subscribe_actions(entry)
        self.snapshot_derived_values(store_id)
        self._trace(
            f"registered store {store_id!r}: "
            f"{len(entry.derived)} derived, {len(state_names)} state"
        )

    def _store_members(self, entry: RegisteredStore) -> Iterator[tuple[str, Any]]:
        """Members of the raw store, falling back to the registered handle."""
        seen: set[str] = set()
        for container in (entry.raw, entry.handle):
            for name, value in entries(container):
                if name in seen or name in _RESERVED_MEMBERS:
                    continue
                seen.add(name)
                yield name, value

    def _index_handle(self, handle: Any, info: StorePropertyInfo) -> None:
        self._index[id(handle)] = (handle, info)
        raw = to_raw(handle)
        if raw is not handle:
            self._index[id(raw)] = (raw, info)

    def _subscribe_actions(self, entry: RegisteredStore) -> None:
        on_action = getattr(entry.handle, "on_action", None)
        if not callable(on_action):
            return
        store_id = entry.store_id

        def before_action(context: Any) -> None:
            self.snapshot_derived_values(store_id)
            self._trace(f"snapshot before action {getattr(context, 'name', '?')!r}")
            after = getattr(context, "after", None)
            if callable(after):
                after(lambda *_: self._scheduler(lambda: self.snapshot_derived_values(store_id)))

        on_action(before_action)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, handle: Any) -> StorePropertyInfo | None:
        """Resolve a reactive handle to its store property, if any."""
        if handle is None:
            return None
        ctx = LookupContext(index=self._index, stores=self._stores)
        for strategy in LOOKUP_STRATEGIES:
            info = strategy(handle, ctx)
            if info is not None:
                self._trace(f"{strategy.__name__} found {info.store_id}.{info.prop_name}")
                return info
        self._trace(f"lookup failed for {type(handle).__name__} (index size {len(self._index)})")
        return None

    def lookup_by_current_value(self, value: Any, kind: str | None) -> StorePropertyInfo | None:
        """Last-resort match of a derived property by its current value.

        Only used for ``get`` events and only over derived properties, to
        bound false positives from unrelated values that happen to be equal.
        """
        if kind != "get" or value is None or value is UNSET:
            return None
        for entry in self._stores.values():
            for prop_name, computation in entry.derived.items():
                try:
                    current = computation.value
                except Exception:
                    continue
                if current is None:
                    continue
                if same_value(current, value):
                    self._trace(f"value match found: {entry.store_id}.{prop_name}")
                    return StorePropertyInfo(entry.store_id, prop_name, "derived")
        return None

    # ------------------------------------------------------------------
    # Derived-value snapshots
    # ------------------------------------------------------------------

    def get_derived_value_with_previous(self, store_id: str, prop_name: str) -> tuple[Any, Any]:
        """Return ``(old_value, new_value)`` for a derived property.

        ``old_value`` is the last snapshot (``UNSET`` if none was taken);
        ``new_value`` is a fresh recomputation.  The snapshot is not updated
        here, so every reader within one render cycle sees the same old value.
        """
        cache_key = f"{store_id}.{prop_name}"
        old_value = self._derived_cache.get(cache_key, UNSET)
        new_value = self._read_derived(store_id, prop_name)
        self._trace(
            f"derived {cache_key}: old={old_value!r} new={new_value!r} "
            f"cached={cache_key in self._derived_cache}"
        )
        return old_value, new_value

    def _read_derived(self, store_id: str, prop_name: str) -> Any:
        entry = self._stores.get(store_id)
        if entry is None:
            return UNSET
        computation = entry.derived.get(prop_name)
        if computation is not None:
            try:
                return force_recompute(computation)
            except Exception:
                pass
        # Fall back to the store accessor
        try:
            value = member(entry.handle, prop_name)
        except Exception:
            return UNSET
        if is_computed(value):
            try:
                return value.value
            except Exception:
                return UNSET
        return value

    def snapshot_derived_values(self, store_id: str) -> None:
        """Recompute and cache every derived value of one store."""
        entry = self._stores.get(store_id)
        if entry is None:
            return
        for prop_name in entry.derived:
            value = self._read_derived(store_id, prop_name)
            if value is not UNSET:
                self._derived_cache[f"{store_id}.{prop_name}"] = value

    def snapshot_all_derived_values(self) -> None:
        """Recompute and cache every derived value of every registered store."""
        for store_id in list(self._stores):
            self.snapshot_derived_values(store_id)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def has_store(self, store_id: str) -> bool:
        return store_id in self._stores

    def registered_store_ids(self) -> list[str]:
        return list(self._stores)

    def reset(self) -> None:
        """Forget every registered store and snapshot."""
        self._stores.clear()
        self._index.clear()
        self._derived_cache.clear()

    def _trace(self, message: str) -> None:
        if self._debug:
            print(f"  [store-resolver] {message}", file=sys.stderr)


# Store members that describe the store rather than hold data
_RESERVED_MEMBERS = frozenset({"store_id", "state", "on_action"})


def _is_composite(value: Any) -> bool:
    """True for values indexed by identity (containers and objects)."""
    if value is None or isinstance(value, (str, bytes, int, float, complex, bool)):
        return False
    return not callable(value) or is_computed(value) or is_value_cell(value)


def _call_soon(callback: Callable[[], None]) -> None:
    """Run ``callback`` on the running loop's next iteration.

    Outside a running loop the refresh is skipped; the commit-time snapshot
    taken after each render covers it.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.call_soon(callback)
