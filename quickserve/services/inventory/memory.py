"""
In-Memory Inventory Ledger

Process-local stock counters for development and tests. Check-and-decrement
happens under one asyncio lock, so interleaved requests in the same event
loop see the same guarantee the SQL ledger gets from its conditional UPDATE.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Iterable, Optional

from quickserve.core.exceptions import LineItemInvalid, MenuItemNotFound, OutOfStock
from quickserve.services.inventory.base import (
    BaseInventoryLedger,
    MenuItemSnapshot,
    Reservation,
)

logger = logging.getLogger(__name__)


# Demo menu used when running in development mode
DEMO_MENU = [
    MenuItemSnapshot("margherita-pizza", "Margherita Pizza", 299, True, 50, 10),
    MenuItemSnapshot("pepperoni-pizza", "Pepperoni Pizza", 349, True, 45, 10),
    MenuItemSnapshot("chicken-burger", "Chicken Burger", 179, True, 60, 15),
    MenuItemSnapshot("veg-burger", "Veg Burger", 149, True, 55, 15),
    MenuItemSnapshot("french-fries", "French Fries", 99, True, 100, 20),
    MenuItemSnapshot("coke", "Coke", 49, True, 120, 20),
]


class InMemoryInventoryLedger(BaseInventoryLedger):
    """
    Inventory ledger backed by a dict.

    Attributes:
        latency: Seconds to sleep before each operation, to exercise
            interleaving of concurrent requests
    """

    def __init__(self, items: Iterable[MenuItemSnapshot] = (), latency: float = 0.0):
        self._items: dict[str, MenuItemSnapshot] = {item.id: replace(item) for item in items}
        self._lock = asyncio.Lock()
        self.latency = latency
        logger.info(f"InMemoryInventoryLedger initialized ({len(self._items)} items)")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def _simulate_latency(self) -> None:
        await asyncio.sleep(self.latency)

    def add_item(self, item: MenuItemSnapshot) -> None:
        self._items[item.id] = replace(item)

    async def get_menu_item(self, menu_item_id: str) -> Optional[MenuItemSnapshot]:
        await self._simulate_latency()
        item = self._items.get(menu_item_id)
        return replace(item) if item else None

    async def reserve(self, menu_item_id: str, quantity: int) -> Reservation:
        await self._simulate_latency()
        async with self._lock:
            item = self._items.get(menu_item_id)
            if item is None:
                raise LineItemInvalid(menu_item_id)
            if not item.can_supply(quantity):
                logger.warning(
                    f"Reservation refused: {item.name} requested={quantity} "
                    f"stock={item.inventory_count} available={item.available}"
                )
                raise OutOfStock(item.id, item.name, quantity, item.inventory_count)
            item.inventory_count -= quantity

        return Reservation(
            menu_item_id=item.id,
            quantity=quantity,
            remaining=item.inventory_count,
            low_stock=item.is_low_stock,
        )

    async def release(self, menu_item_id: str, quantity: int) -> None:
        async with self._lock:
            item = self._items.get(menu_item_id)
            if item is not None:
                item.inventory_count += quantity

    async def restock(self, menu_item_id: str, inventory_count: int) -> MenuItemSnapshot:
        await self._simulate_latency()
        async with self._lock:
            item = self._items.get(menu_item_id)
            if item is None:
                raise MenuItemNotFound(menu_item_id)
            item.inventory_count = inventory_count
            return replace(item)

    async def health_check(self) -> bool:
        return True
