"""
Bind a view's refresh callback to data-change events.

A binding subscribes once per event type with a trampoline that reads the
current callback at delivery time, so the owning view can hand in a new
callback at any point without touching the bus. Teardown always releases the
registrations for every event type.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Iterable, Sequence

from farmhub.utils.event_bus import Callback, DataEventBus, Unsubscribe, run_detached

logger = logging.getLogger(__name__)

INACTIVE = "inactive"
SUBSCRIBING = "subscribing"
ACTIVE = "active"
UNSUBSCRIBING = "unsubscribing"


def normalize_event_types(event_types: str | Iterable[str]) -> tuple[str, ...]:
    """Accept a single event type or an ordered iterable of them."""
    if isinstance(event_types, str):
        return (event_types,)
    return tuple(event_types)


def _invalid_callback(callback: Any) -> Callback:
    kind = type(callback).__name__

    def _noop(payload: Any = None) -> None:
        logger.warning("Refresh callback was not callable (%s); skipping refresh", kind)

    return _noop


class DataRefreshBinding:
    """Lifecycle-managed subscription of one refresh callback to event types."""

    def __init__(
        self,
        bus: DataEventBus,
        event_types: str | Iterable[str],
        callback: Callable[..., Any],
        dependencies: Sequence[Any] = (),
    ) -> None:
        self.bus = bus
        self._event_types = normalize_event_types(event_types)
        self._dependencies = tuple(dependencies)
        self._callback: Callback = _invalid_callback(None)
        self._unsubscribes: list[Unsubscribe] = []
        self._state = INACTIVE
        self.set_callback(callback)

    @property
    def state(self) -> str:
        return self._state

    @property
    def active(self) -> bool:
        return self._state == ACTIVE

    @property
    def event_types(self) -> tuple[str, ...]:
        return self._event_types

    @property
    def callback(self) -> Callback:
        return self._callback

    def set_callback(self, callback: Callable[..., Any]) -> None:
        """Swap the callback used by future deliveries; subscriptions are untouched."""
        if callable(callback):
            self._callback = callback
            return
        logger.warning("Refresh callback is not callable: %s", type(callback).__name__)
        self._callback = _invalid_callback(callback)

    def activate(self) -> None:
        if self._state != INACTIVE:
            return
        self._state = SUBSCRIBING
        try:
            for event_type in self._event_types:
                self._unsubscribes.append(self.bus.subscribe(event_type, self._trampoline(event_type)))
        except Exception:
            self._release()
            raise
        self._state = ACTIVE

    def deactivate(self) -> None:
        if self._state != ACTIVE:
            return
        self._release()

    def update(
        self,
        event_types: str | Iterable[str] | None = None,
        callback: Callable[..., Any] | None = None,
        dependencies: Sequence[Any] | None = None,
    ) -> None:
        """
        Apply new inputs from the owning view. A new callback is a reference swap;
        a different event-type list or dependency tuple re-subscribes when active.
        """
        if callback is not None:
            self.set_callback(callback)
        new_types = self._event_types if event_types is None else normalize_event_types(event_types)
        new_deps = self._dependencies if dependencies is None else tuple(dependencies)
        if new_types == self._event_types and new_deps == self._dependencies:
            return
        was_active = self._state == ACTIVE
        self.deactivate()
        self._event_types = new_types
        self._dependencies = new_deps
        if was_active:
            self.activate()

    def refresh(self, payload: Any = None) -> Any:
        """Invoke the current callback directly, outside of any emission."""
        return self._callback(payload)

    def _trampoline(self, event_type: str) -> Callback:
        def deliver(payload: Any = None) -> Any:
            logger.debug("%s event received, refreshing", event_type)
            return self._callback(payload)

        return deliver

    def _release(self) -> None:
        self._state = UNSUBSCRIBING
        unsubscribes, self._unsubscribes = self._unsubscribes, []
        for unsubscribe in unsubscribes:
            unsubscribe()
        self._state = INACTIVE

    def __enter__(self) -> "DataRefreshBinding":
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()


class FocusRefreshBinding(DataRefreshBinding):
    """Binding that also refreshes whenever the owning view becomes visible again."""

    def notify_focus(self) -> None:
        """Refresh because the view became visible; errors are logged, not raised."""
        logger.debug("View focused, refreshing %s", ", ".join(self._event_types))
        try:
            result = self._callback(None)
        except Exception:
            logger.exception("Error refreshing %s on focus", ", ".join(self._event_types))
            return
        if inspect.isawaitable(result):
            run_detached(result, "focus refresh")
