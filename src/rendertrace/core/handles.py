"""Host handle inspection — duck-typed views over reactive runtime objects.

rendertrace never imports the host framework.  Its reactive handles are
recognised by attribute convention instead:

    value cell            ``_is_ref is True`` or a ``_value`` backing slot
    derived computation   ``_is_computed is True`` or a callable ``fn``,
                          ``getter`` or ``effect.fn``
    wrapper / proxy       ``_raw`` back-pointer (or ``__wrapped__``)
    external input        ``_is_props is True``
    view reference        ``_object`` source plus ``_key`` name
    effect                ``deps`` as a list, or a linked list of links
                          carrying ``dep`` and ``next_dep``

Every helper here is side-effect free apart from the value reads, which
callers wrap with ``safe_read``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from rendertrace.core.events import VALUE_READ_ERROR

# Upper bound on wrapper layers followed by ``to_raw``
_MAX_UNWRAP = 16


def to_raw(obj: Any) -> Any:
    """Strip every proxy layer and return the underlying raw object."""
    for _ in range(_MAX_UNWRAP):
        inner = getattr(obj, "_raw", None)
        if inner is None:
            inner = getattr(obj, "__wrapped__", None)
        if inner is None or inner is obj:
            return obj
        obj = inner
    return obj


def computation_fn(obj: Any) -> Callable[[], Any] | None:
    """Return the function backing a derived computation, if any."""
    for name in ("fn", "getter"):
        fn = getattr(obj, name, None)
        if callable(fn):
            return fn
    effect = getattr(obj, "effect", None)
    if effect is not None:
        fn = getattr(effect, "fn", None)
        if callable(fn):
            return fn
    return None


def is_computed(obj: Any) -> bool:
    if obj is None:
        return False
    if getattr(obj, "_is_computed", False) is True:
        return True
    return computation_fn(obj) is not None


def is_value_cell(obj: Any) -> bool:
    """True for a plain value cell (a computation is not a value cell)."""
    if obj is None or is_computed(obj):
        return False
    if getattr(obj, "_is_ref", False) is True:
        return True
    return hasattr(obj, "_value")


def is_external_input(obj: Any) -> bool:
    return obj is not None and getattr(obj, "_is_props", False) is True


def is_store(obj: Any) -> bool:
    """True for an object shaped like a registrable store."""
    return isinstance(getattr(obj, "store_id", None), str) and hasattr(obj, "state")


def view_source(obj: Any) -> tuple[Any, str] | None:
    """Return ``(source, key)`` for a view reference, else ``None``."""
    source = getattr(obj, "_object", None)
    key = getattr(obj, "_key", None)
    if source is None or not isinstance(key, str) or not key:
        return None
    return source, key


def safe_read(read: Callable[[], Any]) -> Any:
    """Run ``read`` and return its value, or the read-error sentinel."""
    try:
        return read()
    except Exception:
        return VALUE_READ_ERROR


def backing_value(cell: Any) -> Any:
    """Current value held by a value cell, without touching its getter if possible."""
    if hasattr(cell, "_value"):
        value = cell._value
        if value is not None:
            return value
    return cell.value


def cached_value(computation: Any) -> Any:
    """Memoized value of a computation as it was before recomputation."""
    if hasattr(computation, "_value"):
        return computation._value
    return None


def current_value(computation: Any) -> Any:
    """Value of a computation through its public accessor (may recompute)."""
    return computation.value


def force_recompute(computation: Any) -> Any:
    """Evaluate a computation bypassing its memoization."""
    fn = computation_fn(computation)
    if fn is not None:
        return fn()
    if hasattr(computation, "_dirty"):
        computation._dirty = True
    return computation.value


def entries(container: Any) -> Iterator[tuple[str, Any]]:
    """Iterate the public ``(name, value)`` members of a mapping or object.

    Names starting with ``_`` or ``$`` are internal and skipped.
    """
    if container is None:
        return
    if not isinstance(container, Mapping):
        container = to_raw(container)
    if isinstance(container, Mapping):
        items = list(container.items())
    else:
        try:
            items = list(vars(container).items())
        except TypeError:
            return
    for name, value in items:
        if not isinstance(name, str) or name.startswith(("_", "$")):
            continue
        yield name, value


def member(container: Any, name: str) -> Any:
    """Read one member from a mapping or object, ``None`` when missing."""
    if isinstance(container, Mapping):
        return container.get(name)
    return getattr(container, name, None)


def iter_effect_deps(effect: Any) -> Iterator[Any]:
    """Yield the dependency records of an effect.

    Supports a plain sequence of deps and the linked-list layout where each
    link carries the dep in ``dep`` and the next link in ``next_dep``.
    """
    deps = getattr(effect, "deps", None)
    if deps is None:
        return
    if isinstance(deps, (list, tuple)):
        yield from deps
        return
    seen: set[int] = set()
    link = deps
    while link is not None and id(link) not in seen:
        seen.add(id(link))
        dep = getattr(link, "dep", None)
        yield dep if dep is not None else link
        link = getattr(link, "next_dep", None)


def dep_handle(dep: Any) -> Any:
    """Return the computation or target carried by a dependency record."""
    if dep is None:
        return None
    computed = getattr(dep, "computed", None)
    if computed is not None:
        return computed
    return getattr(dep, "target", None)


def candidate_handles(target: Any, effect: Any) -> Iterator[Any]:
    """Yield every handle that might identify the changed value, best first.

    Order: the target itself, the effect's own computation and function,
    then the computations and targets of each dependency in the chain.
    The effect is walked only when the target is missing or is itself a
    computation.
    """
    if target is not None:
        yield target
        if not is_computed(target):
            return
    if effect is None:
        return
    computed = getattr(effect, "computed", None)
    if computed is not None:
        yield computed
    fn = getattr(effect, "fn", None)
    if fn is not None:
        yield fn
    for dep in iter_effect_deps(effect):
        if dep is None:
            continue
        computed = getattr(dep, "computed", None)
        if computed is not None:
            yield computed
        dep_target = getattr(dep, "target", None)
        if dep_target is not None:
            yield dep_target
