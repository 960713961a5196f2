"""
Mutation entry points for farm data.

Each write goes to the store first; the matching change event is emitted only
after the store call succeeds, so subscribers never reload for a write that
did not happen. Store errors are logged and re-raised for the caller to show.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from farmhub.models.store import Entity, FarmStore
from farmhub.utils.event_bus import DataEventBus

logger = logging.getLogger(__name__)


class FarmDataService:
    """Store-backed CRUD operations that notify subscribers on success."""

    def __init__(self, store: FarmStore, events: DataEventBus) -> None:
        self.store = store
        self.events = events

    async def _write(
        self,
        action: str,
        operation: Callable[[], Awaitable[Any]],
        notify: Callable[[Any], None],
        payload: Callable[[Any], Any],
    ) -> Any:
        try:
            result = await operation()
        except Exception:
            logger.exception("Failed to %s", action)
            raise
        notify(payload(result))
        return result

    # Products ------------------------------------------------------------
    async def get_products(self) -> list[Entity]:
        return await self.store.get_products()

    async def add_product(self, product: Entity) -> Entity:
        return await self._write(
            "add product",
            lambda: self.store.add_product(product),
            self.events.emit_product_change,
            lambda created: created,
        )

    async def update_product(self, product_id: int, changes: Entity) -> Entity:
        return await self._write(
            f"update product {product_id}",
            lambda: self.store.update_product(product_id, changes),
            self.events.emit_product_change,
            lambda updated: updated,
        )

    async def delete_product(self, product_id: int) -> None:
        await self._write(
            f"delete product {product_id}",
            lambda: self.store.delete_product(product_id),
            self.events.emit_product_change,
            lambda _: {"id": product_id},
        )

    # Egg production ------------------------------------------------------
    async def get_egg_production(self, animal_type: str, day: str) -> Entity | None:
        return await self.store.get_egg_production(animal_type, day)

    async def save_egg_production(self, entry: Entity) -> Entity:
        return await self._write(
            "save egg production",
            lambda: self.store.save_egg_production(entry),
            self.events.emit_egg_production_change,
            lambda saved: saved,
        )

    # Template messages ---------------------------------------------------
    async def get_messages(self) -> list[Entity]:
        return await self.store.get_messages()

    async def add_message(self, message: Entity) -> Entity:
        return await self._write(
            "add message",
            lambda: self.store.add_message(message),
            self.events.emit_message_change,
            lambda created: created,
        )

    async def update_message(self, message_id: int, changes: Entity) -> Entity:
        return await self._write(
            f"update message {message_id}",
            lambda: self.store.update_message(message_id, changes),
            self.events.emit_message_change,
            lambda updated: updated,
        )

    async def delete_message(self, message_id: int) -> None:
        await self._write(
            f"delete message {message_id}",
            lambda: self.store.delete_message(message_id),
            self.events.emit_message_change,
            lambda _: {"id": message_id},
        )

    # Orders --------------------------------------------------------------
    async def get_orders(self) -> list[Entity]:
        return await self.store.get_orders()

    # Animal types --------------------------------------------------------
    async def get_animal_types(self) -> list[Entity]:
        return await self.store.get_animal_types()

    async def add_animal_type(self, animal_type: Entity) -> Entity:
        return await self._write(
            "add animal type",
            lambda: self.store.add_animal_type(animal_type),
            self.events.emit_animal_type_change,
            lambda created: created,
        )

    async def delete_animal_type(self, animal_type_id: int) -> None:
        await self._write(
            f"delete animal type {animal_type_id}",
            lambda: self.store.delete_animal_type(animal_type_id),
            self.events.emit_animal_type_change,
            lambda _: {"id": animal_type_id},
        )
