"""
In-process data-change event bus.

Mutators emit an event type after a successful write; every view subscribed to
that type (or to the wildcard `all` channel) is called synchronously so it can
reload its data. Subscriber errors are logged and never interrupt delivery.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping

logger = logging.getLogger(__name__)

PRODUCTS = "products"
ORDERS = "orders"
LOTS = "lots"
ELEVAGE = "elevage"
ANIMAL_TYPES = "animal_types"
HERD_TYPES = "herd_types"
ETABLE = "etable"
HERD_ANIMALS = "herd_animals"
RACES = "races"
EVENTS = "events"
CALENDAR = "calendar"
ACTIVITIES = "activities"
MESSAGES = "messages"
CHEESE = "cheese"
EGG_PRODUCTION = "egg_production"
DASHBOARD = "dashboard"
ALL = "all"

KNOWN_EVENT_TYPES = frozenset(
    {
        PRODUCTS,
        ORDERS,
        LOTS,
        ELEVAGE,
        ANIMAL_TYPES,
        HERD_TYPES,
        ETABLE,
        HERD_ANIMALS,
        RACES,
        EVENTS,
        CALENDAR,
        ACTIVITIES,
        MESSAGES,
        CHEESE,
        EGG_PRODUCTION,
        DASHBOARD,
        ALL,
    }
)

# Secondary event types invalidated by a change to the primary type.
DERIVED_EVENTS: Mapping[str, tuple[str, ...]] = {
    PRODUCTS: (),
    ORDERS: (CALENDAR,),
    LOTS: (ELEVAGE, CALENDAR, DASHBOARD),
    ANIMAL_TYPES: (ELEVAGE,),
    HERD_TYPES: (ETABLE,),
    HERD_ANIMALS: (ETABLE, CALENDAR, DASHBOARD),
    RACES: (ELEVAGE,),
    EVENTS: (CALENDAR,),
    ACTIVITIES: (),
    MESSAGES: (),
    CHEESE: (),
    EGG_PRODUCTION: (),
}

Callback = Callable[..., Any]
Unsubscribe = Callable[[], None]

# Strong references to in-flight async listeners until they finish.
_background: set[asyncio.Future] = set()


def run_detached(awaitable: Any, label: str) -> asyncio.Future | None:
    """
    Schedule `awaitable` on the running loop without waiting for it.
    Failures are logged when the task completes. Without a running loop the
    awaitable is discarded with a warning.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("No running event loop; dropping async %s", label)
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        return None
    future = asyncio.ensure_future(awaitable, loop=loop)
    _background.add(future)

    def _done(fut: asyncio.Future) -> None:
        _background.discard(fut)
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            logger.error("Error in async %s", label, exc_info=exc)

    future.add_done_callback(_done)
    return future


@dataclass(frozen=True)
class DataEvent:
    """Envelope delivered to `all` subscribers."""

    event_type: str
    payload: Any = None


class _Registration:
    """One callback bound to one event type; compared by identity."""

    __slots__ = ("event_type", "callback")

    def __init__(self, event_type: str, callback: Callback) -> None:
        self.event_type = event_type
        self.callback = callback


class DataEventBus:
    """Publish/subscribe registry keyed by event type."""

    def __init__(self, payload_preview_chars: int = 100) -> None:
        self._subscribers: Dict[str, List[_Registration]] = defaultdict(list)
        self.payload_preview_chars = payload_preview_chars

    def subscribe(self, event_type: str, callback: Callback) -> Unsubscribe:
        """
        Register `callback` for `event_type` and return a handle removing exactly
        this registration. Calling the handle again is a no-op.
        """
        if not event_type:
            raise ValueError("event_type must be a non-empty string")
        registration = _Registration(event_type, callback)
        self._subscribers[event_type].append(registration)
        logger.debug(
            "Subscribed to %s events. Total listeners: %d",
            event_type,
            len(self._subscribers[event_type]),
        )

        def unsubscribe() -> None:
            listeners = self._subscribers.get(event_type)
            if not listeners:
                return
            for index, existing in enumerate(listeners):
                if existing is registration:
                    del listeners[index]
                    break
            else:
                return
            logger.debug(
                "Unsubscribed from %s events. Remaining listeners: %d", event_type, len(listeners)
            )
            if not listeners:
                self._subscribers.pop(event_type, None)

        return unsubscribe

    def listener_count(self, event_type: str) -> int:
        return len(self._subscribers.get(event_type, ()))

    def emit(self, event_type: str, payload: Any = None) -> None:
        """
        Deliver `payload` to every subscriber of `event_type`, then deliver a
        `DataEvent` to every `all` subscriber. Lists are snapshotted first so
        callbacks may subscribe or unsubscribe while being called.
        """
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Emitting %s event%s", event_type, self._preview(payload))
        listeners = list(self._subscribers.get(event_type, ()))
        wildcard = list(self._subscribers.get(ALL, ()))
        for registration in listeners:
            self._invoke(registration, payload)
        envelope = DataEvent(event_type, payload)
        for registration in wildcard:
            self._invoke(registration, envelope)

    def emit_many(self, event_types: Iterable[str], payload: Any = None) -> None:
        """Emit each event type in order with the same payload."""
        for event_type in event_types:
            self.emit(event_type, payload)

    def emit_change(self, event_type: str, payload: Any = None) -> None:
        """Emit `event_type` followed by the types it invalidates in `DERIVED_EVENTS`."""
        self.emit(event_type, payload)
        for derived in DERIVED_EVENTS.get(event_type, ()):
            self.emit(derived, payload)

    # Convenience helpers -------------------------------------------------
    def emit_product_change(self, payload: Any = None) -> None:
        self.emit_change(PRODUCTS, payload)

    def emit_order_change(self, payload: Any = None) -> None:
        self.emit_change(ORDERS, payload)

    def emit_lot_change(self, payload: Any = None) -> None:
        self.emit_change(LOTS, payload)

    def emit_animal_type_change(self, payload: Any = None) -> None:
        self.emit_change(ANIMAL_TYPES, payload)

    def emit_herd_type_change(self, payload: Any = None) -> None:
        self.emit_change(HERD_TYPES, payload)

    def emit_herd_animal_change(self, payload: Any = None) -> None:
        self.emit_change(HERD_ANIMALS, payload)

    def emit_race_change(self, payload: Any = None) -> None:
        self.emit_change(RACES, payload)

    def emit_event_change(self, payload: Any = None) -> None:
        self.emit_change(EVENTS, payload)

    def emit_activity_change(self, payload: Any = None) -> None:
        self.emit_change(ACTIVITIES, payload)

    def emit_message_change(self, payload: Any = None) -> None:
        self.emit_change(MESSAGES, payload)

    def emit_cheese_change(self, payload: Any = None) -> None:
        self.emit_change(CHEESE, payload)

    def emit_egg_production_change(self, payload: Any = None) -> None:
        self.emit_change(EGG_PRODUCTION, payload)

    # Internals -----------------------------------------------------------
    def _invoke(self, registration: _Registration, argument: Any) -> None:
        try:
            result = registration.callback(argument)
        except Exception:
            logger.exception("Error in %s listener", registration.event_type)
            return
        if inspect.isawaitable(result):
            run_detached(result, f"{registration.event_type} listener")

    def _preview(self, payload: Any) -> str:
        if payload is None:
            return ""
        text = repr(payload)
        if len(text) > self.payload_preview_chars:
            text = text[: self.payload_preview_chars]
        return f" with data: {text}"
