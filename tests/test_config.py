"""Tests for rendertrace.config."""

import dataclasses
import re

import pytest

from rendertrace._errors import ConfigError
from rendertrace.config import TrackerConfig


class TestTrackerConfig:
    """TrackerConfig — frozen dataclass with validated defaults."""

    def test_defaults(self) -> None:
        config = TrackerConfig()
        assert config.include == ()
        assert config.exclude == ()
        assert config.log_level == "warn"
        assert config.log_on_console is True
        assert config.max_inspection_depth == 3
        assert config.max_string_length == 100
        assert config.pause_on_init is False
        assert config.throttle_ms == 0
        assert config.on_render_event is None
        assert config.enable_store_tracking is False
        assert config.debug_logging is False
        assert config.history_limit == 1000

    def test_frozen(self) -> None:
        config = TrackerConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.throttle_ms = 10  # type: ignore[misc]

    def test_patterns_normalized_to_tuples(self) -> None:
        pattern = re.compile("^Cart")
        config = TrackerConfig(include=["Todo", pattern], exclude="Debug")  # type: ignore[arg-type]
        assert config.include == ("Todo", pattern)
        assert config.exclude == ("Debug",)

    def test_replace(self) -> None:
        config = dataclasses.replace(TrackerConfig(), throttle_ms=16)
        assert config.throttle_ms == 16

    def test_option_names(self) -> None:
        assert "enable_store_tracking" in TrackerConfig.option_names()
        assert "root" not in TrackerConfig.option_names()


class TestValidation:
    def test_bad_pattern(self) -> None:
        with pytest.raises(ConfigError, match="include entries"):
            TrackerConfig(include=[3])  # type: ignore[list-item]

    def test_bad_log_level(self) -> None:
        with pytest.raises(ConfigError, match="log_level"):
            TrackerConfig(log_level="loud")  # type: ignore[arg-type]

    def test_non_callable_callback(self) -> None:
        with pytest.raises(ConfigError, match="callable"):
            TrackerConfig(on_render_event="print")  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("throttle_ms", -1),
            ("max_inspection_depth", -2),
            ("max_string_length", 0),
            ("history_limit", 0),
            ("throttle_ms", 1.5),
            ("history_limit", True),
        ],
    )
    def test_bad_numbers(self, name: str, value: object) -> None:
        with pytest.raises(ConfigError, match=name):
            TrackerConfig(**{name: value})  # type: ignore[arg-type]

    def test_zero_throttle_allowed(self) -> None:
        assert TrackerConfig(throttle_ms=0, max_inspection_depth=0).throttle_ms == 0
