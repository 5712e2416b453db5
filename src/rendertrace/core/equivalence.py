"""No-op detection — decides whether an old/new pair is a real change.

The comparison is shallow: containers are equivalent when their
members are identical by reference (or equal primitives), never by recursing
into nested structures.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping, Set
from typing import Any

from rendertrace.core.events import UNSET
from rendertrace.core.handles import to_raw

_PRIMITIVES = (str, bytes, int, float, complex, bool)


def _category(value: Any) -> str:
    """Coarse type category, the equivalent of a dynamic ``typeof``."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float, complex)):
        return "number"
    if isinstance(value, str):
        return "str"
    if isinstance(value, bytes):
        return "bytes"
    if inspect.isroutine(value) or inspect.isclass(value):
        return "function"
    return "object"


def same_value(a: Any, b: Any) -> bool:
    """Reference identity, or equality of two primitives of the same category."""
    if a is b:
        return True
    if isinstance(a, _PRIMITIVES) and isinstance(b, _PRIMITIVES):
        if _category(a) != _category(b):
            return False
        try:
            return bool(a == b)
        except Exception:
            return False
    return False


def _members(value: Any) -> dict[Any, Any] | None:
    """Keyed members of a plain keyed structure, ``None`` when not keyed."""
    if isinstance(value, Mapping):
        return dict(value.items())
    if isinstance(value, _PRIMITIVES) or callable(value):
        return None
    try:
        return dict(vars(value))
    except TypeError:
        return None


def detect_noop(old_value: Any, new_value: Any) -> bool:
    """Return True when ``old_value -> new_value`` is not a real change.

    Rules, in order:

    1. both unset: not a no-op (an initial assignment has no "before")
    2. both ``None``: no-op
    3. same reference or equal primitives: no-op
    4. exactly one side unset: not a no-op
    5. different type categories: not a no-op
    6. equal-length sequences: no-op iff elements are pairwise identical
    7. keyed structures with the same keys: no-op iff values are pairwise identical
    8. anything else, sets included: not a no-op

    Proxy layers are stripped before the structural rules apply.
    """
    if old_value is UNSET and new_value is UNSET:
        return False
    if old_value is None and new_value is None:
        return True
    if same_value(old_value, new_value):
        return True
    if old_value is UNSET or new_value is UNSET:
        return False
    if _category(old_value) != _category(new_value):
        return False
    if old_value is None or new_value is None:
        return False

    raw_old = to_raw(old_value)
    raw_new = to_raw(new_value)
    if raw_old is raw_new:
        return True

    if isinstance(raw_old, (list, tuple)) and isinstance(raw_new, (list, tuple)):
        if len(raw_old) != len(raw_new):
            return False
        return all(same_value(to_raw(a), to_raw(b)) for a, b in zip(raw_old, raw_new))

    if isinstance(raw_old, (list, tuple, Set)) or isinstance(raw_new, (list, tuple, Set)):
        return False

    if isinstance(raw_old, Mapping) != isinstance(raw_new, Mapping):
        return False

    old_members = _members(raw_old)
    new_members = _members(raw_new)
    if old_members is None or new_members is None:
        return False
    if old_members.keys() != new_members.keys():
        return False
    return all(
        same_value(to_raw(value), to_raw(new_members[key])) for key, value in old_members.items()
    )
