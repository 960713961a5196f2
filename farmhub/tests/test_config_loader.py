from pathlib import Path

import pytest

from farmhub.config.defaults import DEFAULTS
from farmhub.config.loader import config_value, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    loaded = load_config(config_path)
    assert loaded == DEFAULTS
    assert loaded is not DEFAULTS  # caller can mutate safely


def test_load_config_merges_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
        [logging]
        level = "debug"

        [events]
        payload_preview_chars = 40
        """,
        encoding="utf-8",
    )

    loaded = load_config(config_path)

    assert loaded["logging"]["level"] == "debug"
    assert loaded["logging"]["dir"] == DEFAULTS["logging"]["dir"]
    assert loaded["events"]["payload_preview_chars"] == 40
    assert loaded["ui"]["refresh_on_show"] is True


def test_load_config_raises_value_error_on_bad_toml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("this is not valid toml", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(config_path)


def test_load_config_rejects_directory(tmp_path: Path) -> None:
    with pytest.raises(IsADirectoryError):
        load_config(tmp_path)


def test_config_value_tolerates_missing_sections() -> None:
    assert config_value({}, "ui", "refresh_on_show", False) is False
    assert config_value({"ui": "oops"}, "ui", "refresh_on_show", 1) == 1
    assert config_value({"ui": {"refresh_on_show": True}}, "ui", "refresh_on_show") is True


@pytest.mark.parametrize(
    "body",
    [
        '[logging]\nlevel = "verbose"\n',
        "[events]\npayload_preview_chars = -1\n",
        '[events]\npayload_preview_chars = "100"\n',
        '[ui]\nrefresh_on_show = "yes"\n',
    ],
)
def test_load_config_rejects_badly_typed_settings(tmp_path: Path, body: str) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(body, encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(config_path)


def test_load_config_keeps_unknown_tables(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[backend]\nurl = "http://localhost:3000"\n', encoding="utf-8")

    loaded = load_config(config_path)

    assert loaded["backend"]["url"] == "http://localhost:3000"
