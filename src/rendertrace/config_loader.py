"""Load TrackerConfig from rendertrace.yaml / rendertrace.toml / pyproject.toml.

Merges file config with keyword overrides. Overrides take precedence.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml

from rendertrace._errors import ConfigError
from rendertrace.config import TrackerConfig

# Host option names accepted as aliases of the snake_case fields
_ALIASES: dict[str, str] = {
    "logLevel": "log_level",
    "logOnConsole": "log_on_console",
    "maxDepth": "max_inspection_depth",
    "maxInspectionDepth": "max_inspection_depth",
    "maxStringLength": "max_string_length",
    "pauseOnInit": "pause_on_init",
    "throttleMs": "throttle_ms",
    "enableStoreTracking": "enable_store_tracking",
    "debugLogging": "debug_logging",
    "debug": "debug_logging",
    "historyLimit": "history_limit",
}

# Options that cannot come from a file (callables)
_CODE_ONLY = frozenset({"on_render_event"})

_SECTION = "rendertrace"


def load_config(root: Path, **overrides: Any) -> TrackerConfig:
    """Load TrackerConfig from ``root``, merging keyword overrides.

    Looks for rendertrace.yaml, rendertrace.yml, rendertrace.toml, then the
    ``[tool.rendertrace]`` table of pyproject.toml.  Missing files yield the
    defaults.

    Raises:
        ConfigError: A config file is malformed or holds an invalid value.

    """
    file_config = _read_config_file(Path(root))
    merged = {**file_config, **normalize_options(overrides)}
    try:
        return TrackerConfig(**merged)
    except TypeError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def normalize_options(options: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase aliases to field names and reject unknown options."""
    known = TrackerConfig.option_names()
    result: dict[str, Any] = {}
    for key, value in options.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            msg = f"unknown option {key!r}"
            raise ConfigError(msg)
        result[name] = value
    return result


def _read_config_file(root: Path) -> dict[str, Any]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("rendertrace.yaml", "rendertrace.yml"):
        path = root / name
        if path.is_file():
            return _from_file_data(_parse_yaml(path), path)
    toml_path = root / "rendertrace.toml"
    if toml_path.is_file():
        return _from_file_data(_parse_toml(toml_path), toml_path)
    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        tool = _parse_toml(pyproject).get("tool")
        if isinstance(tool, dict) and isinstance(tool.get(_SECTION), dict):
            return _from_file_data(tool[_SECTION], pyproject)
    return {}


def _parse_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: expected a mapping at top level")
    return data


def _parse_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path.name}: {exc}") from exc


def _from_file_data(data: dict[str, Any], path: Path) -> dict[str, Any]:
    """Extract options, accepting a top-level ``rendertrace:`` section."""
    section = data.get(_SECTION)
    options = dict(section) if isinstance(section, dict) else {}
    for key, value in data.items():
        if key != _SECTION:
            options.setdefault(key, value)

    normalized = normalize_options(options)
    blocked = _CODE_ONLY & normalized.keys()
    if blocked:
        msg = f"{path.name}: {', '.join(sorted(blocked))} can only be set from code"
        raise ConfigError(msg)
    return normalized
