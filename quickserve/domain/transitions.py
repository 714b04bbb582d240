"""
Order status transition table.

The whole status graph lives here as data. `transition_status` is the only
place that decides whether an order may move; routes, the kitchen board and
the payment flow all go through it.
"""

import logging
from typing import Mapping

from quickserve.core.exceptions import InvalidTransition
from quickserve.domain.order import Order, OrderStatus, utcnow

logger = logging.getLogger(__name__)

TransitionTable = Mapping[OrderStatus, frozenset[OrderStatus]]


def build_transition_table(allow_cancel_while_preparing: bool = True) -> TransitionTable:
    """Return the allowed next statuses for every status."""
    preparing_next = {OrderStatus.PREPARED}
    if allow_cancel_while_preparing:
        preparing_next.add(OrderStatus.CANCELLED)

    return {
        OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
        OrderStatus.PREPARING: frozenset(preparing_next),
        OrderStatus.PREPARED: frozenset({OrderStatus.DELIVERED}),
        OrderStatus.DELIVERED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    }


DEFAULT_TRANSITIONS = build_transition_table()


def is_terminal(status: OrderStatus, table: TransitionTable = DEFAULT_TRANSITIONS) -> bool:
    return not table.get(status)


def can_transition(
    current: OrderStatus,
    target: OrderStatus,
    table: TransitionTable = DEFAULT_TRANSITIONS,
) -> bool:
    """Return True if `target` is the current status or directly reachable from it."""
    return current == target or target in table.get(current, frozenset())


def transition_status(
    order: Order,
    target: OrderStatus,
    table: TransitionTable = DEFAULT_TRANSITIONS,
) -> Order:
    """
    Move `order` to `target` in place.

    Re-applying the current status is a no-op success, so duplicate commands
    from several kitchen stations do not error.

    Raises:
        InvalidTransition: target is not reachable from the current status
    """
    target = OrderStatus(target)
    if order.status == target:
        logger.debug(f"Order {order.order_number} already {target.value}, nothing to do")
        return order

    if not can_transition(order.status, target, table):
        raise InvalidTransition(order.id, order.status.value, target.value)

    order.status = target
    order.updated_at = utcnow()
    return order
