"""
Domain module: order data, status transition table and broadcast events.
"""

from quickserve.domain.order import (
    ACTIVE_STATUSES,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from quickserve.domain.transitions import (
    DEFAULT_TRANSITIONS,
    build_transition_table,
    can_transition,
    is_terminal,
    transition_status,
)
from quickserve.domain.events import (
    OrderCreated,
    OrderEvent,
    OrderUpdated,
    PaymentUpdated,
    parse_event,
)

__all__ = [
    "ACTIVE_STATUSES",
    "Order",
    "OrderLine",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "DEFAULT_TRANSITIONS",
    "build_transition_table",
    "can_transition",
    "is_terminal",
    "transition_status",
    "OrderCreated",
    "OrderEvent",
    "OrderUpdated",
    "PaymentUpdated",
    "parse_event",
]
