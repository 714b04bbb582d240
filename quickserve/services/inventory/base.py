"""
Inventory Ledger Abstract Base Class

Defines the stock contract shared by the in-memory and SQL ledgers.
Stock only ever goes down through `reserve`, which must check and decrement
in one atomic step: two concurrent reservations can never both succeed if
their combined quantity exceeds the stock on hand.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class MenuItemSnapshot:
    """Menu item fields the ordering core reads."""
    id: str
    name: str
    price: float
    available: bool = True
    inventory_count: int = 0
    low_stock_threshold: int = 5

    @property
    def is_low_stock(self) -> bool:
        return self.inventory_count <= self.low_stock_threshold

    def can_supply(self, quantity: int) -> bool:
        return self.available and self.inventory_count >= quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "available": self.available,
            "inventory_count": self.inventory_count,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
        }


@dataclass
class Reservation:
    """Result of a successful reservation."""
    menu_item_id: str
    quantity: int
    remaining: int
    low_stock: bool = False
    ok: bool = True


class BaseInventoryLedger(ABC):
    """Abstract base class for inventory ledgers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name (e.g. "memory", "sql")."""
        pass

    @abstractmethod
    async def get_menu_item(self, menu_item_id: str) -> Optional[MenuItemSnapshot]:
        """Return the current state of a menu item, or None if it does not exist."""
        pass

    @abstractmethod
    async def reserve(self, menu_item_id: str, quantity: int) -> Reservation:
        """
        Atomically decrement stock if the item is available and has enough units.

        Raises:
            LineItemInvalid: the menu item does not exist
            OutOfStock: the item is disabled or stock is below `quantity`
        """
        pass

    @abstractmethod
    async def release(self, menu_item_id: str, quantity: int) -> None:
        """Give back units taken by a reservation that could not be completed."""
        pass

    @abstractmethod
    async def restock(self, menu_item_id: str, inventory_count: int) -> MenuItemSnapshot:
        """
        Set the stock counter to an absolute value (manual admin restock).

        Raises:
            MenuItemNotFound: the menu item does not exist
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check backend connectivity."""
        pass
