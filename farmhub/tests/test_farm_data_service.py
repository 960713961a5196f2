from __future__ import annotations

import asyncio

import pytest

from farmhub.services.farm_data_service import FarmDataService
from farmhub.utils.event_bus import ALL, DataEventBus


class FakeStore:
    """In-memory stand-in for the persistence collaborator."""

    def __init__(self) -> None:
        self.products: dict[int, dict] = {}
        self.messages: dict[int, dict] = {}
        self.animal_types: dict[int, dict] = {}
        self.eggs: dict[tuple[str, str], dict] = {}
        self.orders = [{"id": 1, "customer": "Dupont"}]
        self.fail = False
        self._next_id = 1

    def _check(self) -> None:
        if self.fail:
            raise RuntimeError("storage unavailable")

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def get_products(self):
        return list(self.products.values())

    async def add_product(self, product):
        self._check()
        record = {**product, "id": self._new_id()}
        self.products[record["id"]] = record
        return record

    async def update_product(self, product_id, changes):
        self._check()
        self.products[product_id].update(changes)
        return self.products[product_id]

    async def delete_product(self, product_id):
        self._check()
        del self.products[product_id]

    async def get_egg_production(self, animal_type, day):
        return self.eggs.get((animal_type, day))

    async def save_egg_production(self, entry):
        self._check()
        self.eggs[(entry["animal_type"], entry["day"])] = entry
        return entry

    async def get_messages(self):
        return list(self.messages.values())

    async def add_message(self, message):
        self._check()
        record = {**message, "id": self._new_id()}
        self.messages[record["id"]] = record
        return record

    async def update_message(self, message_id, changes):
        self._check()
        self.messages[message_id].update(changes)
        return self.messages[message_id]

    async def delete_message(self, message_id):
        self._check()
        del self.messages[message_id]

    async def get_orders(self):
        return list(self.orders)

    async def get_animal_types(self):
        return list(self.animal_types.values())

    async def add_animal_type(self, animal_type):
        self._check()
        record = {**animal_type, "id": self._new_id()}
        self.animal_types[record["id"]] = record
        return record

    async def delete_animal_type(self, animal_type_id):
        self._check()
        del self.animal_types[animal_type_id]


@pytest.fixture
def bus() -> DataEventBus:
    return DataEventBus()


@pytest.fixture
def events(bus: DataEventBus) -> list:
    seen: list = []
    bus.subscribe(ALL, seen.append)
    return seen


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def service(store: FakeStore, bus: DataEventBus) -> FarmDataService:
    return FarmDataService(store, bus)


def test_product_crud_emits_product_changes(service: FarmDataService, events: list) -> None:
    created = asyncio.run(service.add_product({"name": "Tomme", "price": 12.5}))
    asyncio.run(service.update_product(created["id"], {"price": 13.0}))
    asyncio.run(service.delete_product(created["id"]))

    assert [e.event_type for e in events] == ["products", "products", "products"]
    assert events[0].payload == created
    assert events[2].payload == {"id": created["id"]}
    assert asyncio.run(service.get_products()) == []


def test_egg_production_save_emits(service: FarmDataService, events: list) -> None:
    entry = {"animal_type": "poules", "day": "2024-05-01", "count": 42}

    asyncio.run(service.save_egg_production(entry))

    assert [e.event_type for e in events] == ["egg_production"]
    assert asyncio.run(service.get_egg_production("poules", "2024-05-01"))["count"] == 42


def test_message_crud_emits_message_changes(service: FarmDataService, events: list) -> None:
    created = asyncio.run(service.add_message({"title": "Rappel", "body": "Commande prête"}))
    asyncio.run(service.update_message(created["id"], {"body": "Commande livrée"}))
    asyncio.run(service.delete_message(created["id"]))

    assert [e.event_type for e in events] == ["messages"] * 3


def test_animal_type_changes_also_refresh_elevage(service: FarmDataService, events: list) -> None:
    created = asyncio.run(service.add_animal_type({"name": "canards"}))
    asyncio.run(service.delete_animal_type(created["id"]))

    assert [e.event_type for e in events] == ["animal_types", "elevage", "animal_types", "elevage"]


def test_reads_do_not_emit(service: FarmDataService, events: list) -> None:
    assert asyncio.run(service.get_orders()) == [{"id": 1, "customer": "Dupont"}]
    asyncio.run(service.get_messages())
    asyncio.run(service.get_animal_types())

    assert events == []


def test_failed_write_raises_and_emits_nothing(service: FarmDataService, store: FakeStore, events: list, caplog) -> None:
    store.fail = True

    with pytest.raises(RuntimeError):
        asyncio.run(service.add_product({"name": "Brebis"}))
    with pytest.raises(RuntimeError):
        asyncio.run(service.save_egg_production({"animal_type": "poules", "day": "2024-05-01"}))

    assert events == []
    assert any("Failed to add product" in r.getMessage() for r in caplog.records)


def test_store_raising_before_awaiting_is_logged(bus: DataEventBus, events: list, caplog) -> None:
    class BrokenStore(FakeStore):
        def delete_message(self, message_id):  # not a coroutine: fails on call
            raise ConnectionError("no backend")

    service = FarmDataService(BrokenStore(), bus)

    with pytest.raises(ConnectionError):
        asyncio.run(service.delete_message(4))

    assert events == []
    assert any("Failed to delete message 4" in r.getMessage() for r in caplog.records)
