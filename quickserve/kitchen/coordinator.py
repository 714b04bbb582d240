"""
Kitchen board state.

Client-side reducer behind a kitchen display: it holds the orders a station
knows about, folds broadcast events into them and derives the three columns
by filtering on status every time they are read. Columns are never
maintained incrementally, so they cannot drift from the order list.
"""

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Iterable, Optional

from quickserve.domain.events import OrderCreated, OrderEvent, OrderUpdated, PaymentUpdated, parse_event
from quickserve.domain.order import Order, OrderStatus

logger = logging.getLogger(__name__)

# Sends a status change to the server and returns the server's copy of the order
StatusCommand = Callable[[str, OrderStatus], Awaitable[Optional[Order]]]


class KitchenBoard:
    """Orders visible to one kitchen station."""

    COLUMNS = (OrderStatus.PREPARING, OrderStatus.PREPARED, OrderStatus.DELIVERED)

    def __init__(self, orders: Iterable[Order] = ()):
        self.orders: list[Order] = list(orders)

    def _index_of(self, order_id: str) -> Optional[int]:
        for i, order in enumerate(self.orders):
            if order.id == order_id:
                return i
        return None

    def get(self, order_id: str) -> Optional[Order]:
        index = self._index_of(order_id)
        return self.orders[index] if index is not None else None

    def load(self, orders: Iterable[Order]) -> None:
        """Replace local state with a fresh fetch of active orders."""
        self.orders = list(orders)

    # =========================================================================
    # EVENTS
    # =========================================================================

    def apply(self, event: OrderEvent) -> bool:
        """
        Fold one event into local state.

        Updates for orders this board never saw are ignored: they may belong
        to orders placed before the board loaded its initial state.

        Returns:
            bool: True if local state changed
        """
        if isinstance(event, OrderCreated):
            index = self._index_of(event.order.id)
            if index is None:
                self.orders.append(event.order)
            else:
                self.orders[index] = event.order
            return True

        if isinstance(event, OrderUpdated):
            index = self._index_of(event.order.id)
            if index is None:
                logger.debug(f"Ignoring update for unknown order {event.order.id}")
                return False
            self.orders[index] = event.order
            return True

        if isinstance(event, PaymentUpdated):
            index = self._index_of(event.order_id)
            if index is None:
                return False
            self.orders[index] = replace(
                self.orders[index],
                payment_method=event.payment_method,
                payment_status=event.payment_status,
                transaction_id=event.transaction_id,
            )
            return True

        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def apply_message(self, message: dict[str, Any]) -> bool:
        """Fold a raw wire message (`{"event": ..., "data": ...}`) into local state."""
        return self.apply(parse_event(message))

    # =========================================================================
    # COLUMNS
    # =========================================================================

    def column(self, status: OrderStatus) -> list[Order]:
        return [order for order in self.orders if order.status == status]

    @property
    def preparing(self) -> list[Order]:
        return self.column(OrderStatus.PREPARING)

    @property
    def prepared(self) -> list[Order]:
        return self.column(OrderStatus.PREPARED)

    @property
    def delivered(self) -> list[Order]:
        return self.column(OrderStatus.DELIVERED)

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def move(self, order_id: str, status: OrderStatus, send: StatusCommand) -> bool:
        """
        Move an order to another column.

        The board updates immediately and reverts only if `send` fails, e.g.
        because the server rejected the transition.

        Returns:
            bool: True if the server accepted the change
        """
        index = self._index_of(order_id)
        if index is None:
            logger.warning(f"Cannot move unknown order {order_id}")
            return False

        previous = self.orders[index]
        optimistic = replace(previous, status=OrderStatus(status))
        self.orders[index] = optimistic

        try:
            confirmed = await send(order_id, OrderStatus(status))
        except Exception as e:
            logger.warning(f"Status change of {previous.order_number} to {status} failed: {e}")
            index = self._index_of(order_id)
            # Only undo our own change; a newer broadcast may have replaced it
            if index is not None and self.orders[index] is optimistic:
                self.orders[index] = previous
            return False

        if confirmed is not None:
            index = self._index_of(order_id)
            if index is not None and self.orders[index] is optimistic:
                self.orders[index] = confirmed
        return True
