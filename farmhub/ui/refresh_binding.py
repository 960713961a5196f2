"""
Tie data-refresh subscriptions to the lifetime of a Qt widget.

The subscription starts when the binding is created and ends when the widget
is destroyed. Optionally the widget also refreshes on every show, which covers
changes emitted while it was hidden.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Sequence

from PyQt6.QtCore import QEvent, QObject
from PyQt6.QtWidgets import QWidget

from farmhub.config.loader import config_value
from farmhub.services.data_refresh import DataRefreshBinding, FocusRefreshBinding
from farmhub.utils.event_bus import DataEventBus

logger = logging.getLogger(__name__)


class _ShowEventFilter(QObject):
    """Forward Show events of the watched widget to a focus binding."""

    def __init__(self, binding: FocusRefreshBinding, parent: QWidget) -> None:
        super().__init__(parent)
        self._binding = binding

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if event.type() == QEvent.Type.Show and self._binding.active:
            self._binding.notify_focus()
        return False


def bind_widget_refresh(
    widget: QWidget,
    bus: DataEventBus,
    event_types: str | Iterable[str],
    callback: Callable[..., Any],
    dependencies: Sequence[Any] = (),
    refresh_on_show: bool | None = None,
    config: dict[str, Any] | None = None,
) -> DataRefreshBinding:
    """
    Subscribe `callback` to `event_types` for as long as `widget` exists.
    `refresh_on_show=None` defers to `ui.refresh_on_show` in `config`.
    """
    if refresh_on_show is None:
        refresh_on_show = config is not None and bool(config_value(config, "ui", "refresh_on_show", True))

    binding: DataRefreshBinding
    if refresh_on_show:
        binding = FocusRefreshBinding(bus, event_types, callback, dependencies)
        widget.installEventFilter(_ShowEventFilter(binding, widget))
    else:
        binding = DataRefreshBinding(bus, event_types, callback, dependencies)

    widget.destroyed.connect(lambda *_: _release(binding))
    binding.activate()
    return binding


def _release(binding: DataRefreshBinding) -> None:
    logger.debug("Widget destroyed, releasing %s subscriptions", ", ".join(binding.event_types))
    binding.deactivate()
