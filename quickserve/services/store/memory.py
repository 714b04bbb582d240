"""
In-Memory Order Store

Keeps orders in a list for development mode and tests. Returned orders are
copies, so callers mutating them never touch stored state.
"""

import copy
import logging
from datetime import datetime
from typing import Optional

from quickserve.domain.order import ACTIVE_STATUSES, Order, OrderStatus, PaymentMethod, PaymentStatus
from quickserve.services.store.base import BaseOrderStore

logger = logging.getLogger(__name__)


def _newest_first(orders: list[Order]) -> list[Order]:
    # sort(reverse=True) is stable: ties keep insertion order
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


class InMemoryOrderStore(BaseOrderStore):
    """Order store backed by process memory."""

    def __init__(self, prefix: str = "ORD", width: int = 5):
        super().__init__(prefix, width)
        self._orders: list[Order] = []
        self._index: dict[str, int] = {}
        self._sequence = 0

    @property
    def provider_name(self) -> str:
        return "memory"

    async def allocate_order_number(self) -> str:
        self._sequence += 1
        return self.format_order_number(self._sequence)

    async def save(self, order: Order) -> Order:
        stored = copy.deepcopy(order)
        if order.id in self._index:
            self._orders[self._index[order.id]] = stored
        else:
            self._index[order.id] = len(self._orders)
            self._orders.append(stored)
        return order

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        position = self._index.get(order_id)
        if position is None:
            return None
        return copy.deepcopy(self._orders[position])

    async def find_active(self) -> list[Order]:
        return copy.deepcopy(_newest_first([o for o in self._orders if o.status in ACTIVE_STATUSES]))

    async def find_by_table(self, table_id: str) -> list[Order]:
        return await self.find_all(table_id=table_id)

    async def find_all(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Order]:
        orders = [
            o for o in self._orders
            if (status is None or o.status == status)
            and (table_id is None or o.table_id == table_id)
            and (created_from is None or o.created_at >= created_from)
            and (created_to is None or o.created_at <= created_to)
        ]
        return copy.deepcopy(_newest_first(orders))

    async def compare_and_set_status(
        self,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        position = self._index.get(order_id)
        if position is None:
            return False
        stored = self._orders[position]
        if stored.status != expected:
            return False
        stored.status = target
        stored.updated_at = updated_at
        return True

    async def update_payment(
        self,
        order_id: str,
        payment_status: PaymentStatus,
        payment_method: Optional[PaymentMethod] = None,
        transaction_id: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Order]:
        position = self._index.get(order_id)
        if position is None:
            return None
        stored = self._orders[position]
        stored.payment_status = payment_status
        if payment_method is not None:
            stored.payment_method = payment_method
        if transaction_id:
            stored.transaction_id = transaction_id
        if updated_at is not None:
            stored.updated_at = updated_at
        return copy.deepcopy(stored)
