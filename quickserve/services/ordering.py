"""
Order Service

The ordering core the HTTP and WebSocket layers call into. It validates a
cart against the menu and tables, reserves stock, numbers and stores the
order, drives status changes through the transition table and broadcasts
every change.

Order creation runs in two passes over the cart, in cart order:
    1. Validate: every line must name an existing menu item with enough
       stock for everything this cart asks of it. Nothing is reserved yet,
       so a bad line leaves inventory untouched.
    2. Reserve: take the stock line by line. If a concurrent order wins a
       race in between, the lines already reserved are released before the
       OutOfStock error propagates.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional, Sequence

from quickserve.core.config import get_settings
from quickserve.core.exceptions import (
    InvalidPaymentMethod,
    InvalidTable,
    InvalidTransition,
    LineItemInvalid,
    OrderingError,
    OrderNotFound,
    OutOfStock,
    PersistenceUnavailable,
)
from quickserve.domain.events import OrderCreated, OrderEvent, OrderUpdated, PaymentUpdated
from quickserve.domain.order import Order, OrderLine, OrderStatus, PaymentMethod, PaymentStatus, utcnow
from quickserve.domain.transitions import (
    DEFAULT_TRANSITIONS,
    TransitionTable,
    build_transition_table,
    transition_status,
)
from quickserve.services.broadcast import EventBroadcaster, get_broadcaster
from quickserve.services.inventory import BaseInventoryLedger, MenuItemSnapshot, Reservation, get_inventory_ledger
from quickserve.services.store import BaseOrderStore, get_order_store
from quickserve.services.tables import BaseTableDirectory, get_table_directory

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    """One line of a submitted cart."""
    menu_item_id: str
    quantity: int
    special_instructions: str = ""
    name: Optional[str] = None  # Client-side label, only used in error messages


def _parse_payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        valid = [m.value for m in PaymentMethod]
        raise InvalidPaymentMethod(f"Invalid payment method. Must be one of: {', '.join(valid)}")


def _parse_payment_status(value) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        valid = [s.value for s in PaymentStatus]
        raise InvalidPaymentMethod(f"Invalid payment status. Must be one of: {', '.join(valid)}")


def _table_number_from_id(table_id: str) -> Optional[int]:
    digits = re.sub(r"\D", "", table_id)
    return int(digits) if digits else None


class OrderService:
    """
    Order lifecycle operations.

    Attributes:
        ledger: Stock per menu item
        tables: Dining table lookup
        store: Order persistence (possibly disabled)
        broadcaster: Real-time fan-out to connected screens
        transitions: Allowed next statuses per status
    """

    # Bound on compare-and-set retries when another station changes the order first
    MAX_TRANSITION_ATTEMPTS = 3

    def __init__(
        self,
        ledger: BaseInventoryLedger,
        tables: BaseTableDirectory,
        store: BaseOrderStore,
        broadcaster: EventBroadcaster,
        transitions: TransitionTable = DEFAULT_TRANSITIONS,
    ):
        self.ledger = ledger
        self.tables = tables
        self.store = store
        self.broadcaster = broadcaster
        self.transitions = transitions

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _publish(self, event: OrderEvent) -> None:
        try:
            await self.broadcaster.publish(event)
        except Exception:
            logger.exception(f"Broadcast of {event.name} failed; order change is kept")

    async def _resolve_table(
        self,
        table_id: Optional[str],
        table_number: Optional[int],
    ) -> tuple[str, int]:
        """
        Return (table_id, table_number) for the order.

        A structured table id must name an active table. A bare table
        number (older QR codes, manual entry) is accepted as-is.
        """
        if not table_id:
            number = table_number or 1
            return f"T{number}", number

        table = await self.tables.find_table(table_id)
        if table is None:
            raise InvalidTable(table_id)
        if not table.is_active:
            raise InvalidTable(table_id, "not active")

        number = _table_number_from_id(table.table_id) or table_number or 1
        return table.table_id, number

    async def _validate_lines(self, lines: Sequence[CartLine]) -> list[MenuItemSnapshot]:
        """First pass: check every line without touching stock."""
        if not lines:
            raise OrderingError("Order must contain at least one item")

        requested: dict[str, int] = defaultdict(int)
        snapshots = []
        for line in lines:
            if line.quantity < 1:
                raise OrderingError(
                    "Quantity must be at least 1", menu_item_id=line.menu_item_id
                )
            item = await self.ledger.get_menu_item(line.menu_item_id)
            if item is None:
                raise LineItemInvalid(line.menu_item_id, line.name)

            requested[item.id] += line.quantity
            if not item.can_supply(requested[item.id]):
                raise OutOfStock(item.id, item.name, requested[item.id], item.inventory_count)
            snapshots.append(item)
        return snapshots

    async def _reserve_lines(self, lines: Sequence[CartLine]) -> list[Reservation]:
        """Second pass: take the stock, releasing everything on failure."""
        reservations: list[Reservation] = []
        try:
            for line in lines:
                reservations.append(await self.ledger.reserve(line.menu_item_id, line.quantity))
        except OrderingError:
            await self._release(reservations)
            raise
        return reservations

    async def _release(self, reservations: Sequence[Reservation]) -> None:
        for reservation in reservations:
            await self.ledger.release(reservation.menu_item_id, reservation.quantity)
        if reservations:
            logger.info(f"Released {len(reservations)} reservation(s)")

    def _require_persistence(self, order_id: str) -> None:
        if not self.store.persistent:
            raise PersistenceUnavailable(order_id)

    async def _load(self, order_id: str) -> Order:
        self._require_persistence(order_id)
        order = await self.store.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    # =========================================================================
    # ORDER CREATION
    # =========================================================================

    async def create_order(
        self,
        lines: Sequence[CartLine],
        table_id: Optional[str] = None,
        table_number: Optional[int] = None,
        payment_method: str = PaymentMethod.CASH.value,
        customer_phone: Optional[str] = None,
    ) -> Order:
        """
        Validate a cart, reserve its stock and place the order.

        Raises:
            InvalidPaymentMethod: unknown payment method
            InvalidTable: table id unknown or inactive
            LineItemInvalid: a line names a menu item that does not exist
            OutOfStock: an item is disabled or short of stock
        """
        method = _parse_payment_method(payment_method or PaymentMethod.CASH.value)
        final_table_id, final_table_number = await self._resolve_table(table_id, table_number)

        snapshots = await self._validate_lines(lines)
        reservations = await self._reserve_lines(lines)

        for reservation, item in zip(reservations, snapshots):
            if reservation.low_stock:
                logger.warning(f"Low stock: {item.name} has {reservation.remaining} left")

        order_lines = [
            OrderLine(
                menu_item_id=item.id,
                name=item.name,
                price=item.price,
                quantity=line.quantity,
                special_instructions=line.special_instructions or "",
            )
            for line, item in zip(lines, snapshots)
        ]

        try:
            order_number = await self.store.allocate_order_number()
            order = Order.create(
                order_number=order_number,
                table_id=final_table_id,
                table_number=final_table_number,
                items=order_lines,
                payment_method=method,
                customer_phone=customer_phone,
            )
            await self.store.save(order)
        except Exception:
            logger.exception("Order could not be stored, releasing reserved stock")
            await self._release(reservations)
            raise

        logger.info(
            f"Order {order.order_number} created: table={order.table_id} "
            f"items={len(order.items)} total={order.total_amount} status={order.status.value}"
        )
        await self._publish(OrderCreated(order))
        return order

    # =========================================================================
    # STATUS TRANSITIONS
    # =========================================================================

    async def transition_status(self, order_id: str, target_status: str) -> Order:
        """
        Move an order to `target_status` and broadcast the change.

        Re-applying the current status succeeds without saving or
        broadcasting anything.

        Raises:
            PersistenceUnavailable: store disabled, the current status is unknown
            OrderNotFound: no such order
            InvalidTransition: target not reachable from the current status
        """
        order = await self._load(order_id)
        try:
            target = OrderStatus(target_status)
        except ValueError:
            raise InvalidTransition(order_id, order.status.value, str(target_status))

        for _ in range(self.MAX_TRANSITION_ATTEMPTS):
            expected = order.status
            try:
                transition_status(order, target, self.transitions)
            except InvalidTransition:
                logger.info(
                    f"Rejected transition of {order.order_number}: "
                    f"{expected.value} -> {target.value}"
                )
                raise

            if order.status == expected:
                return order

            if await self.store.compare_and_set_status(order.id, expected, order.status, order.updated_at):
                logger.info(f"Order {order.order_number}: {expected.value} -> {order.status.value}")
                await self._publish(OrderUpdated(order))
                return order

            # Another station changed the order first; re-check against its new status
            order = await self._load(order_id)

        raise InvalidTransition(order_id, order.status.value, target.value)

    # =========================================================================
    # PAYMENT
    # =========================================================================

    async def update_payment_status(
        self,
        order_id: str,
        payment_status: str,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Order:
        """
        Record a payment outcome.

        A `paid` status on a `pending` order releases it to the kitchen
        (status `preparing`). Only the payment fields are written; the status
        moves solely through the compare-and-set, so a kitchen change made in
        the meantime is kept.

        Returns:
            The stored order after the payment was recorded
        """
        status = _parse_payment_status(payment_status)
        method = _parse_payment_method(payment_method) if payment_method else None
        order = await self._load(order_id)

        moved = False
        if status == PaymentStatus.PAID and order.status == OrderStatus.PENDING:
            expected = order.status
            transition_status(order, OrderStatus.PREPARING, self.transitions)
            # Loses to a concurrent kitchen move (e.g. cancelled); the payment is still recorded
            moved = await self.store.compare_and_set_status(
                order.id, expected, order.status, order.updated_at
            )

        updated = await self.store.update_payment(
            order_id,
            payment_status=status,
            payment_method=method,
            transaction_id=transaction_id,
            updated_at=utcnow(),
        )
        if updated is None:
            raise OrderNotFound(order_id)

        logger.info(
            f"Payment for {updated.order_number}: method={updated.payment_method.value} "
            f"status={updated.payment_status.value} txn={updated.transaction_id or 'N/A'} "
            f"order_status={updated.status.value}"
        )

        await self._publish(PaymentUpdated.for_order(updated))
        if moved:
            await self._publish(OrderUpdated(updated))
        return updated

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_order(self, order_id: str) -> Order:
        """
        Raises:
            PersistenceUnavailable: store disabled
            OrderNotFound: no such order
        """
        return await self._load(order_id)

    async def get_active_orders(self) -> list[Order]:
        """Pending, preparing and prepared orders, newest first. Empty when persistence is disabled."""
        return await self.store.find_active()

    async def get_orders_by_table(self, table_id: str) -> list[Order]:
        return await self.store.find_by_table(table_id)

    async def list_orders(
        self,
        status: Optional[str] = None,
        table_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Order]:
        status_enum = None
        if status:
            try:
                status_enum = OrderStatus(status.lower())
            except ValueError:
                valid = [s.value for s in OrderStatus]
                raise OrderingError(f"Invalid status. Options: {valid}")
        return await self.store.find_all(status_enum, table_id, created_from, created_to)

    # =========================================================================
    # INVENTORY
    # =========================================================================

    async def restock(self, menu_item_id: str, inventory_count: int) -> MenuItemSnapshot:
        """Set a menu item's stock to an absolute count."""
        if inventory_count < 0:
            raise OrderingError("Inventory count cannot be negative", menu_item_id=menu_item_id)
        item = await self.ledger.restock(menu_item_id, inventory_count)
        logger.info(f"Restocked {item.name}: {item.inventory_count} units")
        return item


@lru_cache()
def get_order_service() -> OrderService:
    """Get the order service wired from configuration."""
    settings = get_settings()
    return OrderService(
        ledger=get_inventory_ledger(),
        tables=get_table_directory(),
        store=get_order_store(),
        broadcaster=get_broadcaster(),
        transitions=build_transition_table(settings.allow_cancel_while_preparing),
    )


def reset_order_service() -> None:
    """Clear the cached service instance."""
    get_order_service.cache_clear()
