"""
FarmHub configuration: `config.toml` merged over `DEFAULTS`.

Only the tables FarmHub reads are type-checked (`logging`, `events`, `ui`);
unknown tables are kept as-is so newer config files still load.
"""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any

from farmhub.config.defaults import DEFAULTS

LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


def _merge_tables(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_tables(merged[key], value)
        else:
            merged[key] = value
    return merged


def _check_settings(config: dict[str, Any], path: Path) -> None:
    """Reject values the bus, logging setup, or widget bindings cannot use."""
    level = config_value(config, "logging", "level")
    if not isinstance(level, str) or level.lower() not in LOG_LEVELS:
        raise ValueError(f"{path}: logging.level must be one of {sorted(LOG_LEVELS)}, got {level!r}")
    if not isinstance(config_value(config, "logging", "dir"), str):
        raise ValueError(f"{path}: logging.dir must be a string")
    preview = config_value(config, "events", "payload_preview_chars")
    if isinstance(preview, bool) or not isinstance(preview, int) or preview < 0:
        raise ValueError(f"{path}: events.payload_preview_chars must be a non-negative integer")
    if not isinstance(config_value(config, "ui", "refresh_on_show"), bool):
        raise ValueError(f"{path}: ui.refresh_on_show must be true or false")


def load_config(path: Path) -> dict[str, Any]:
    """
    Load FarmHub settings from `path`. A missing file yields the defaults;
    unreadable TOML or badly typed FarmHub keys raise ValueError.
    """
    if path.is_dir():
        raise IsADirectoryError(f"Config path points to a directory: {path}")

    overrides: dict[str, Any] = {}
    if path.exists():
        try:
            with path.open("rb") as fh:
                overrides = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"Invalid config file {path}: {exc}") from exc

    config = _merge_tables(DEFAULTS, overrides)
    _check_settings(config, path)
    return config


def config_value(config: dict[str, Any], section: str, key: str, default: Any = None) -> Any:
    """Read `config[section][key]`, tolerating missing or non-table sections."""
    table = config.get(section, {}) if isinstance(config, dict) else {}
    if not isinstance(table, dict):
        return default
    return table.get(key, default)
