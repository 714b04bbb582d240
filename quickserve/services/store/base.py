"""
Order Store Abstract Base Class

Persistence contract for orders. Besides plain CRUD the store owns the
order number sequence, because allocating the next number has to be a
single atomic step rather than "count the orders, then add one".
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from quickserve.domain.order import Order, OrderStatus, PaymentMethod, PaymentStatus


class BaseOrderStore(ABC):
    """
    Abstract base class for order stores.

    Every finder returns orders newest first by creation time. Orders
    created at the same instant keep their insertion order.
    """

    def __init__(self, prefix: str = "ORD", width: int = 5):
        self.prefix = prefix
        self.width = width

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @property
    def persistent(self) -> bool:
        """False when saves are skipped (degraded mode)."""
        return True

    def format_order_number(self, sequence: int) -> str:
        return f"{self.prefix}{sequence:0{self.width}d}"

    def parse_order_number(self, order_number: str) -> int:
        return int(order_number[len(self.prefix):])

    @abstractmethod
    async def allocate_order_number(self) -> str:
        """Atomically take the next order number (e.g. ORD00042)."""
        pass

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """Insert or update an order and return it."""
        pass

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_active(self) -> list[Order]:
        """Orders in pending, preparing or prepared."""
        pass

    @abstractmethod
    async def find_by_table(self, table_id: str) -> list[Order]:
        pass

    @abstractmethod
    async def find_all(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Order]:
        pass

    @abstractmethod
    async def compare_and_set_status(
        self,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        """
        Set the status only if it still equals `expected`.

        Returns:
            bool: True if the row was updated
        """
        pass

    @abstractmethod
    async def update_payment(
        self,
        order_id: str,
        payment_status: PaymentStatus,
        payment_method: Optional[PaymentMethod] = None,
        transaction_id: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Order]:
        """
        Write the payment fields of a stored order and nothing else.

        `status` is never touched here, so a payment arriving while a kitchen
        station moves the order cannot undo that move. `None` for the method
        or transaction id keeps the stored value.

        Returns:
            The stored order after the write, or None if there is no such order
        """
        pass

    async def health_check(self) -> bool:
        return True
