"""
View-model holding one entity collection that reloads on data-change events.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable

from farmhub.services.data_refresh import DataRefreshBinding
from farmhub.utils.event_bus import DataEventBus

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[list[Any]]]


class LiveCollection:
    """
    Cached result of `loader` kept current by reloading whenever one of
    `event_types` is emitted. A failed load keeps the previous items and
    records the error.

    One emission can start several overlapping loads (a herd-animal change
    fires both `herd_animals` and `calendar`). Each load gets a generation
    number; a result older than the last applied one is dropped, and `loading`
    stays true until every started load has settled.
    """

    def __init__(
        self,
        name: str,
        loader: Loader,
        bus: DataEventBus,
        event_types: str | Iterable[str],
    ) -> None:
        self.name = name
        self.loader = loader
        self.items: list[Any] = []
        self.loading = False
        self.error: Exception | None = None
        self.load_count = 0
        self._started = 0
        self._applied = 0
        self._in_flight = 0
        self.binding = DataRefreshBinding(bus, event_types, self._on_change)
        self.binding.activate()

    async def load(self) -> list[Any]:
        self._started += 1
        generation = self._started
        self._in_flight += 1
        self.loading = True
        try:
            items = await self.loader()
        except Exception as exc:
            logger.error("Failed to load %s: %s", self.name, exc, exc_info=True)
            if generation > self._applied:
                self._applied = generation
                self.error = exc
        else:
            if generation > self._applied:
                self._applied = generation
                self.items = list(items)
                self.error = None
            else:
                logger.debug("Dropping stale %s load (generation %d)", self.name, generation)
        finally:
            self._in_flight -= 1
            self.loading = self._in_flight > 0
            self.load_count += 1
        return self.items

    def _on_change(self, payload: Any = None) -> Awaitable[list[Any]]:
        return self.load()

    def close(self) -> None:
        self.binding.deactivate()
