"""
Contract of the persistence collaborator used by the data service.

Every operation is a coroutine resolving to the entity or collection, or
raising on failure. Entities are plain dicts carrying an `id` key.
"""

from __future__ import annotations

from typing import Any, Protocol

Entity = dict[str, Any]


class FarmStore(Protocol):
    async def get_products(self) -> list[Entity]: ...

    async def add_product(self, product: Entity) -> Entity: ...

    async def update_product(self, product_id: int, changes: Entity) -> Entity: ...

    async def delete_product(self, product_id: int) -> None: ...

    async def get_egg_production(self, animal_type: str, day: str) -> Entity | None: ...

    async def save_egg_production(self, entry: Entity) -> Entity: ...

    async def get_messages(self) -> list[Entity]: ...

    async def add_message(self, message: Entity) -> Entity: ...

    async def update_message(self, message_id: int, changes: Entity) -> Entity: ...

    async def delete_message(self, message_id: int) -> None: ...

    async def get_orders(self) -> list[Entity]: ...

    async def get_animal_types(self) -> list[Entity]: ...

    async def add_animal_type(self, animal_type: Entity) -> Entity: ...

    async def delete_animal_type(self, animal_type_id: int) -> None: ...
