"""Tests for rendertrace.config_loader — file-based configuration."""

from pathlib import Path

import pytest

from rendertrace._errors import ConfigError
from rendertrace.config import TrackerConfig
from rendertrace.config_loader import load_config, normalize_options


class TestLoadConfig:
    def test_no_files_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == TrackerConfig()

    def test_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text(
            "throttle_ms: 50\ninclude:\n  - Cart\n  - Todo\nlog_level: verbose\n"
        )
        config = load_config(tmp_path)
        assert config.throttle_ms == 50
        assert config.include == ("Cart", "Todo")
        assert config.log_level == "verbose"

    def test_yaml_section_and_camel_case(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yml").write_text(
            "rendertrace:\n  enableStoreTracking: true\n  maxDepth: 5\n"
        )
        config = load_config(tmp_path)
        assert config.enable_store_tracking is True
        assert config.max_inspection_depth == 5

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.toml").write_text('pauseOnInit = true\nexclude = ["Debug"]\n')
        config = load_config(tmp_path)
        assert config.pause_on_init is True
        assert config.exclude == ("Debug",)

    def test_pyproject_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "app"\n\n[tool.rendertrace]\nhistory_limit = 20\n'
        )
        assert load_config(tmp_path).history_limit == 20

    def test_pyproject_without_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "app"\n')
        assert load_config(tmp_path) == TrackerConfig()

    def test_yaml_wins_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("throttle_ms: 1\n")
        (tmp_path / "rendertrace.toml").write_text("throttle_ms = 2\n")
        assert load_config(tmp_path).throttle_ms == 1

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("throttle_ms: 50\n")
        seen: list[object] = []
        config = load_config(tmp_path, throttleMs=5, on_render_event=seen.append)
        assert config.throttle_ms == 5
        assert config.on_render_event == seen.append

    def test_empty_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("")
        assert load_config(tmp_path) == TrackerConfig()


class TestLoadConfigErrors:
    def test_malformed_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("throttle_ms: [1\n")
        with pytest.raises(ConfigError, match=r"rendertrace\.yaml"):
            load_config(tmp_path)

    def test_yaml_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_malformed_toml(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.toml").write_text("throttle_ms = \n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_unknown_option(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("colour: red\n")
        with pytest.raises(ConfigError, match="colour"):
            load_config(tmp_path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("log_level: loud\n")
        with pytest.raises(ConfigError, match="log_level"):
            load_config(tmp_path)

    def test_callback_not_allowed_in_files(self, tmp_path: Path) -> None:
        (tmp_path / "rendertrace.yaml").write_text("on_render_event: print\n")
        with pytest.raises(ConfigError, match="from code"):
            load_config(tmp_path)


class TestNormalizeOptions:
    def test_aliases(self) -> None:
        assert normalize_options({"logLevel": "error", "debug": True}) == {
            "log_level": "error",
            "debug_logging": True,
        }

    def test_unknown(self) -> None:
        with pytest.raises(ConfigError, match="nope"):
            normalize_options({"nope": 1})
