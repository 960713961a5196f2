"""
Application bootstrap helpers.

Responsibilities:
- Locate/load configuration.
- Configure logging.
- Build the single data-event bus and the data service around an injected store.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from farmhub.config.loader import config_value, load_config
from farmhub.logging.setup import setup_logging
from farmhub.models.store import FarmStore
from farmhub.services.farm_data_service import FarmDataService
from farmhub.utils.event_bus import DataEventBus

ENV_CONFIG_DIR = "FARMHUB_CONFIG_DIR"


@dataclass
class AppContext:
    """Shared application context passed into views."""

    config: dict[str, Any]
    config_path: Path
    events: DataEventBus
    data_service: FarmDataService | None


def default_config_dir() -> Path:
    """Return the directory to hold config files, honoring env override."""
    override = os.getenv(ENV_CONFIG_DIR)
    if override:
        return Path(override)
    return Path.home() / ".farmhub"


def default_config_path() -> Path:
    """Return default config file path."""
    return default_config_dir() / "config.toml"


def resolve_log_dir(config: dict[str, Any], base_dir: Path) -> Path:
    """Relative `logging.dir` values resolve against `base_dir`."""
    log_dir = Path(str(config_value(config, "logging", "dir", "logs")))
    return log_dir if log_dir.is_absolute() else base_dir / log_dir


def initialize_app(
    config_path: Path | None = None,
    store: FarmStore | None = None,
    log_dir: Path | None = None,
) -> AppContext:
    """
    Load configuration, set up logging, and return an AppContext with one
    process-wide event bus.
    """
    config_path = config_path or default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config = load_config(config_path)

    setup_logging(
        log_dir=log_dir or resolve_log_dir(config, config_path.parent),
        level=str(config_value(config, "logging", "level", "INFO")),
    )

    events = DataEventBus(
        payload_preview_chars=int(config_value(config, "events", "payload_preview_chars", 100))
    )
    data_service = FarmDataService(store, events) if store is not None else None

    return AppContext(
        config=config,
        config_path=config_path,
        events=events,
        data_service=data_service,
    )
