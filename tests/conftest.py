"""Shared fixtures: in-memory collaborators wired into an OrderService."""

import json

import pytest

from quickserve.services.broadcast import EventBroadcaster
from quickserve.services.inventory import InMemoryInventoryLedger, MenuItemSnapshot
from quickserve.services.ordering import OrderService
from quickserve.services.store import DisabledOrderStore, InMemoryOrderStore
from quickserve.services.tables import InMemoryTableDirectory, TableRecord


PIZZA = MenuItemSnapshot("pizza", "Margherita Pizza", 299, True, 10, 2)
COKE = MenuItemSnapshot("coke", "Coke", 49, True, 20, 5)


class FakeSubscriber:
    """Records every message it is sent."""

    def __init__(self):
        self.messages: list[dict] = []

    async def send_text(self, data: str) -> None:
        self.messages.append(json.loads(data))

    @property
    def event_names(self) -> list[str]:
        return [m["event"] for m in self.messages]


class FailingSubscriber:
    """A connection that has gone away."""

    async def send_text(self, data: str) -> None:
        raise ConnectionError("socket closed")


@pytest.fixture()
def ledger():
    return InMemoryInventoryLedger([PIZZA, COKE])


@pytest.fixture()
def tables():
    return InMemoryTableDirectory([
        TableRecord("T1", "Table 1"),
        TableRecord("T4", "Table 4"),
        TableRecord("T9", "Table 9", is_active=False),
    ])


@pytest.fixture()
def store():
    return InMemoryOrderStore()


@pytest.fixture()
def broadcaster():
    return EventBroadcaster()


@pytest.fixture()
def subscriber(broadcaster):
    sub = FakeSubscriber()
    broadcaster.connect(sub)
    return sub


@pytest.fixture()
def service(ledger, tables, store, broadcaster):
    return OrderService(ledger, tables, store, broadcaster)


@pytest.fixture()
def degraded_service(ledger, tables, broadcaster):
    return OrderService(ledger, tables, DisabledOrderStore(), broadcaster)


@pytest.fixture()
def failing_subscriber(broadcaster):
    sub = FailingSubscriber()
    broadcaster.connect(sub)
    return sub
