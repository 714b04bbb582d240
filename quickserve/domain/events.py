"""
Order events broadcast to kitchen and customer screens.

A closed set of three event kinds. Each serializes to the wire message
`{"event": <name>, "data": {...}}` and `parse_event` turns such a message
back into the matching event, so subscribers switch on the type instead of
poking at loose payloads.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union

from quickserve.domain.order import Order, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class OrderCreated:
    name: ClassVar[str] = "order-created"
    order: Order

    def to_message(self) -> dict[str, Any]:
        return {"event": self.name, "data": self.order.to_dict()}


@dataclass(frozen=True)
class OrderUpdated:
    name: ClassVar[str] = "order-updated"
    order: Order

    def to_message(self) -> dict[str, Any]:
        return {"event": self.name, "data": self.order.to_dict()}


@dataclass(frozen=True)
class PaymentUpdated:
    name: ClassVar[str] = "payment-updated"
    order_id: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None

    @classmethod
    def for_order(cls, order: Order) -> "PaymentUpdated":
        return cls(
            order_id=order.id,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            transaction_id=order.transaction_id,
        )

    def to_message(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "data": {
                "order_id": self.order_id,
                "payment_method": self.payment_method.value,
                "payment_status": self.payment_status.value,
                "transaction_id": self.transaction_id,
            },
        }


OrderEvent = Union[OrderCreated, OrderUpdated, PaymentUpdated]

EVENT_NAMES = (OrderCreated.name, OrderUpdated.name, PaymentUpdated.name)


def parse_event(message: dict[str, Any]) -> OrderEvent:
    """
    Rebuild an event from its wire message.

    Raises:
        ValueError: unknown event name
    """
    name = message.get("event")
    data = message.get("data") or {}

    if name == OrderCreated.name:
        return OrderCreated(Order.from_dict(data))
    if name == OrderUpdated.name:
        return OrderUpdated(Order.from_dict(data))
    if name == PaymentUpdated.name:
        return PaymentUpdated(
            order_id=data["order_id"],
            payment_method=PaymentMethod(data["payment_method"]),
            payment_status=PaymentStatus(data["payment_status"]),
            transaction_id=data.get("transaction_id"),
        )
    raise ValueError(f"Unknown event: {name!r}. Options: {list(EVENT_NAMES)}")
