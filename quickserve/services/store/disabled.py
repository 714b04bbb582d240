"""
Disabled Order Store (degraded mode)

Used when SAVE_ORDERS=false, typically for transient demo deployments.
Orders still get a number and are still broadcast, but nothing is stored:
every lookup answers "not found" / empty instead of serving stale or made-up
data, and `persistent` is False so callers can tell the save was skipped.
"""

import logging
from datetime import datetime
from typing import Optional

from quickserve.domain.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from quickserve.services.store.base import BaseOrderStore

logger = logging.getLogger(__name__)


class DisabledOrderStore(BaseOrderStore):
    """Order store that persists nothing."""

    def __init__(self, prefix: str = "ORD", width: int = 5):
        super().__init__(prefix, width)
        self._sequence = 0
        logger.warning("Order persistence disabled: orders will be broadcast but not saved")

    @property
    def provider_name(self) -> str:
        return "disabled"

    @property
    def persistent(self) -> bool:
        return False

    async def allocate_order_number(self) -> str:
        # Process-local; numbering restarts with the process
        self._sequence += 1
        return self.format_order_number(self._sequence)

    async def save(self, order: Order) -> Order:
        logger.info(f"Order {order.order_number} kept transient (persistence disabled)")
        return order

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        return None

    async def find_active(self) -> list[Order]:
        return []

    async def find_by_table(self, table_id: str) -> list[Order]:
        return []

    async def find_all(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Order]:
        return []

    async def compare_and_set_status(
        self,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        return False

    async def update_payment(
        self,
        order_id: str,
        payment_status: PaymentStatus,
        payment_method: Optional[PaymentMethod] = None,
        transaction_id: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Order]:
        return None
