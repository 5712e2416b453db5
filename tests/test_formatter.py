"""Tests for rendertrace.logger.formatter — console rendering of events."""

import io

import pytest

from rendertrace.core.events import UNSET, ComponentRenderEvent, Trigger
from rendertrace.logger.formatter import RenderFormatter, create_console_logger
from tests.conftest import Computed, Ref


def _trigger(**overrides: object) -> Trigger:
    values: dict[str, object] = {
        "key": "count",
        "kind": "set",
        "old_value": 1,
        "new_value": 2,
        "is_noop": False,
        "source": "direct_value",
        "path": "ref.count",
    }
    values.update(overrides)
    return Trigger(**values)  # type: ignore[arg-type]


def _event(*triggers: Trigger, initial: bool = False, count: int = 2) -> ComponentRenderEvent:
    return ComponentRenderEvent(
        component_name="Counter",
        component_id="1",
        timestamp_ns=0,
        triggers=triggers,
        tracked_keys=frozenset(),
        is_initial_render=initial,
        rerender_reason="internal_state",
        render_count=count,
    )


@pytest.fixture
def formatter() -> RenderFormatter:
    return RenderFormatter(max_depth=3, max_string_length=10)


class TestFormat:
    def test_check_badge_without_noops(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(_event(_trigger()))
        assert lines[0] == "✓ [Counter] (render #2) Re-rendered"

    def test_warning_badge_with_noops(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(_event(_trigger(new_value=1, is_noop=True)))
        assert lines[0].startswith("⚠ [Counter]")

    def test_first_rerender_has_no_count(self, formatter: RenderFormatter) -> None:
        assert formatter.format(_event(count=1))[0] == "✓ [Counter] Re-rendered"

    def test_mounted(self, formatter: RenderFormatter) -> None:
        assert formatter.format(_event(initial=True, count=0)) == ["✓ [Counter] Mounted"]

    def test_no_triggers_captured(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(_event())
        assert "  (No triggers captured - possibly batched or parent re-render)" in lines

    def test_trigger_details(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(_event(_trigger()))
        assert "  Triggers:" in lines
        assert '    ✓ [direct_value:set] "count" (1 → 2)' in lines

    def test_noop_trigger_marked(self, formatter: RenderFormatter) -> None:
        line = formatter.format_trigger(_trigger(new_value=1, is_noop=True))
        assert line == '    ✗ [direct_value:set] "count" (1 → 1) (UNCHANGED!)'

    def test_noop_summary(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(
            _event(_trigger(is_noop=True), _trigger(key="b", is_noop=True))
        )
        assert "  ⚠ Found 2 unnecessary triggers (values unchanged)" in lines

    def test_source_breakdown(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(
            _event(_trigger(), _trigger(source="external_input"), _trigger())
        )
        assert "  Source breakdown: direct_value(2), external_input(1)" in lines

    def test_single_source_has_no_breakdown(self, formatter: RenderFormatter) -> None:
        lines = formatter.format(_event(_trigger(), _trigger()))
        assert not any("Source breakdown" in line for line in lines)


class TestTriggerVariants:
    def test_store_trigger(self, formatter: RenderFormatter) -> None:
        trigger = _trigger(
            source="store", store_id="cart", store_prop_name="total",
            store_prop_kind="derived", old_value=3, new_value=3, is_noop=True,
        )
        assert formatter.format_trigger(trigger) == (
            '    ✗ [store:cart] (derived) "total" (3 → 3) (UNCHANGED!)'
        )

    def test_store_indexed_trigger(self, formatter: RenderFormatter) -> None:
        trigger = _trigger(
            source="store", store_id="cart", store_prop_name="items",
            store_prop_kind="state", kind="add", collection_index=0,
            old_value=UNSET, new_value="x",
        )
        assert formatter.format_trigger(trigger) == (
            '    ✓ [store:cart] (state) "items[0]" added: "x"'
        )

    def test_indexed_delete(self, formatter: RenderFormatter) -> None:
        trigger = _trigger(
            source="tracked_object", kind="delete", collection_index=2,
            old_value=7, new_value=UNSET,
        )
        assert formatter.format_trigger(trigger) == "    ✓ [tracked_object:delete] [2] deleted: 7"

    def test_indexed_set(self, formatter: RenderFormatter) -> None:
        trigger = _trigger(source="tracked_object", collection_index=1)
        expected = "    ✓ [tracked_object:set] [1] updated: (1 → 2)"
        assert formatter.format_trigger(trigger) == expected


class TestStringify:
    def test_unset_and_none(self, formatter: RenderFormatter) -> None:
        assert formatter.stringify(UNSET) == "undefined"
        assert formatter.stringify(None) == "None"

    def test_scalars(self, formatter: RenderFormatter) -> None:
        assert formatter.stringify(True) == "True"
        assert formatter.stringify(42) == "42"
        assert formatter.stringify(1.5) == "1.5"

    def test_truncates_long_strings(self, formatter: RenderFormatter) -> None:
        assert formatter.stringify("abcdefghijklmnop") == '"abcdefghij..."'

    def test_lists(self, formatter: RenderFormatter) -> None:
        assert formatter.stringify([]) == "[]"
        assert formatter.stringify([1, "a"]) == '[1, "a"]'
        assert formatter.stringify([1, 2, 3, 4, 5]) == "list(5)"

    def test_mappings(self, formatter: RenderFormatter) -> None:
        assert formatter.stringify({}) == "{}"
        assert formatter.stringify({"a": 1}) == "{a: 1}"
        assert formatter.stringify({"a": 1, "b": 2, "c": 3, "d": 4}) == "{a, b, c, ...}"

    def test_functions(self, formatter: RenderFormatter) -> None:
        def handler() -> None: ...

        assert formatter.stringify(handler) == "[Function: handler]"

    def test_reactive_handles(self, formatter: RenderFormatter) -> None:
        assert formatter.stringify(Ref(3)) == "Ref<3>"
        assert formatter.stringify(Computed(lambda: 1)) == "Computed<...>"

    def test_depth_limit(self) -> None:
        shallow = RenderFormatter(max_depth=1)
        assert shallow.stringify([[["deep"]]]) == "[[[...]]]"


class TestConsoleLogger:
    def test_warn_level_shows_noops(self, formatter: RenderFormatter) -> None:
        out = io.StringIO()
        log = create_console_logger(formatter, "warn", stream=out)
        log(_event(_trigger(new_value=1, is_noop=True)))
        assert "UNCHANGED!" in out.getvalue()

    def test_warn_level_hides_single_trigger_renders(self, formatter: RenderFormatter) -> None:
        out = io.StringIO()
        log = create_console_logger(formatter, "warn", stream=out)
        log(_event(_trigger()))
        assert out.getvalue() == ""

    def test_error_level_shows_multi_trigger_renders(self, formatter: RenderFormatter) -> None:
        out = io.StringIO()
        log = create_console_logger(formatter, "error", stream=out)
        log(_event(_trigger(), _trigger(key="b")))
        assert "[Counter]" in out.getvalue()

    def test_verbose_shows_everything(self, formatter: RenderFormatter) -> None:
        out = io.StringIO()
        log = create_console_logger(formatter, "verbose", stream=out)
        log(_event(initial=True, count=0))
        assert out.getvalue() == "✓ [Counter] Mounted\n"

    def test_defaults_to_stderr(
        self, formatter: RenderFormatter, capsys: pytest.CaptureFixture[str]
    ) -> None:
        create_console_logger(formatter, "verbose")(_event(initial=True, count=0))
        assert "Mounted" in capsys.readouterr().err
