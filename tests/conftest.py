"""Shared test fixtures for rendertrace.

Small stand-ins for the reactive handles a host framework hands to the
tracker.  Plain classes are used instead of ``MagicMock`` because the
engine recognises handles by which attributes exist.
"""

from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from rendertrace.config import TrackerConfig
from rendertrace.core.events import UNSET, ReactiveChangeEvent
from rendertrace.core.registry import RenderRegistry


class Ref:
    """Value cell: a single mutable value."""

    _is_ref = True

    def __init__(self, value: Any = None) -> None:
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new: Any) -> None:
        self._value = new


class Computed:
    """Derived computation memoizing ``fn`` in ``_value``."""

    _is_computed = True

    def __init__(self, fn: Callable[[], Any]) -> None:
        self.fn = fn
        self._value = fn()
        self.evaluations = 1

    @property
    def value(self) -> Any:
        self._value = self.fn()
        self.evaluations += 1
        return self._value


class BrokenComputed(Computed):
    """Computation whose public accessor raises."""

    def __init__(self) -> None:
        self.fn = self._boom
        self._value = "stale"
        self.evaluations = 0

    @staticmethod
    def _boom() -> Any:
        raise RuntimeError("boom")

    @property
    def value(self) -> Any:
        raise RuntimeError("boom")


class Proxy:
    """Wrapper exposing its raw object through ``_raw``."""

    def __init__(self, raw: Any) -> None:
        self._raw = raw


class ViewRef:
    """View reference pointing at ``source[key]``."""

    def __init__(self, source: Any, key: str) -> None:
        self._object = source
        self._key = key


class Dep:
    def __init__(self, computed: Any = None, target: Any = None) -> None:
        self.computed = computed
        self.target = target


class Link:
    def __init__(self, dep: Dep, next_dep: Link | None = None) -> None:
        self.dep = dep
        self.next_dep = next_dep


class Effect:
    def __init__(self, deps: Any = None, computed: Any = None) -> None:
        self.deps = deps
        self.computed = computed


def make_props(**values: Any) -> SimpleNamespace:
    """External-input container (component props)."""
    return SimpleNamespace(_is_props=True, **values)


class FakeStore:
    """Store with a ``state`` mapping, derived members and action hooks.

    ``run_action`` notifies ``on_action`` listeners, runs ``fn``, then fires
    every ``after`` callback registered during notification.
    """

    def __init__(self, store_id: str, state: dict[str, Any], **members: Any) -> None:
        self.store_id = store_id
        self.state = state
        self._listeners: list[Callable[[Any], None]] = []
        for name, value in members.items():
            setattr(self, name, value)

    def on_action(self, listener: Callable[[Any], None]) -> None:
        self._listeners.append(listener)

    def run_action(self, name: str, fn: Callable[[], Any]) -> Any:
        after: list[Callable[..., None]] = []
        context = SimpleNamespace(name=name, after=after.append)
        for listener in self._listeners:
            listener(context)
        result = fn()
        for callback in after:
            callback(result)
        return result


def make_counter_store(store_id: str = "counter", count: int = 1) -> FakeStore:
    """Store with state ``count`` (a value cell) and derived ``double``."""
    count_ref = Ref(count)
    double = Computed(lambda: count_ref.value * 2)
    return FakeStore(store_id, {"count": count_ref}, count=count_ref, double=double)


def make_event(
    *,
    target: Any = None,
    effect: Any = None,
    kind: str | None = None,
    key: Any = None,
    old_value: Any = UNSET,
    new_value: Any = UNSET,
) -> ReactiveChangeEvent:
    return ReactiveChangeEvent(
        effect=effect,
        target=target,
        kind=kind,  # type: ignore[arg-type]
        key=key,
        old_value=old_value,
        new_value=new_value,
    )


def set_event(key: str, old_value: Any, new_value: Any) -> ReactiveChangeEvent:
    """A keyed ``set`` notification carrying both values."""
    return make_event(kind="set", key=key, old_value=old_value, new_value=new_value)


class FakeClock:
    """Manually advanced nanosecond clock."""

    def __init__(self, start_ns: int = 1_000_000_000) -> None:
        self.now = start_ns

    def __call__(self) -> int:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += int(ms * 1_000_000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> RenderRegistry:
    """Registry with default config and a manual clock."""
    return RenderRegistry(TrackerConfig(), clock=clock)


@pytest.fixture
def store_registry(clock: FakeClock) -> RenderRegistry:
    """Registry with store tracking enabled."""
    return RenderRegistry(TrackerConfig(enable_store_tracking=True), clock=clock)
