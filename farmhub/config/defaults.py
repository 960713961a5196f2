"""
Default configuration values.
"""

from __future__ import annotations

DEFAULTS: dict[str, object] = {
    "logging": {"level": "info", "dir": "logs"},
    "events": {"payload_preview_chars": 100},
    "ui": {"refresh_on_show": True},
}
