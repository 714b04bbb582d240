"""
Order Aggregate Data

The order as the rest of the system sees it: status and payment enums, the
line-item snapshot taken at order time and the order itself. Prices are
copied from the menu when the order is built, so later menu price edits
never change a placed order's total.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    PREPARED = "prepared"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.PREPARED)


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_order_id() -> str:
    return uuid.uuid4().hex


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class OrderLine:
    """One menu item, quantity and instructions, priced at order time."""
    menu_item_id: str
    name: str
    price: float
    quantity: int
    special_instructions: str = ""

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "special_instructions": self.special_instructions,
        }


@dataclass
class Order:
    """
    A placed order.

    `total_amount` is fixed by `Order.create` from the snapshotted line
    prices. Only `status`, the payment fields and `updated_at` change after
    creation.
    """
    id: str
    order_number: str
    table_id: str
    table_number: int
    items: list[OrderLine]
    total_amount: float
    status: OrderStatus
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: Optional[str] = None
    customer_phone: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        order_number: str,
        table_id: str,
        table_number: int,
        items: list[OrderLine],
        payment_method: PaymentMethod = PaymentMethod.CASH,
        customer_phone: Optional[str] = None,
    ) -> "Order":
        """
        Build a new order from already-reserved lines.

        Cash and card orders go straight to the kitchen. UPI orders wait
        in `pending` until the payment is confirmed.
        """
        if payment_method == PaymentMethod.UPI:
            status = OrderStatus.PENDING
        else:
            status = OrderStatus.PREPARING

        now = utcnow()
        return cls(
            id=new_order_id(),
            order_number=order_number,
            table_id=table_id,
            table_number=table_number,
            items=list(items),
            total_amount=round(sum(line.price * line.quantity for line in items), 2),
            status=status,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            customer_phone=customer_phone,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def payment_fields(self) -> dict[str, Any]:
        return {
            "payment_method": self.payment_method.value,
            "payment_status": self.payment_status.value,
            "transaction_id": self.transaction_id,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary (the broadcast payload)."""
        return {
            "id": self.id,
            "order_number": self.order_number,
            "table_id": self.table_id,
            "table_number": self.table_number,
            "customer_phone": self.customer_phone,
            "items": [line.to_dict() for line in self.items],
            "total_amount": self.total_amount,
            "status": self.status.value,
            **self.payment_fields(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=data["id"],
            order_number=data["order_number"],
            table_id=data["table_id"],
            table_number=data["table_number"],
            items=[OrderLine(**line) for line in data.get("items", [])],
            total_amount=data["total_amount"],
            status=OrderStatus(data["status"]),
            payment_method=PaymentMethod(data.get("payment_method", "cash")),
            payment_status=PaymentStatus(data.get("payment_status", "pending")),
            transaction_id=data.get("transaction_id"),
            customer_phone=data.get("customer_phone"),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
        )

    def __repr__(self):
        return f"<Order {self.order_number} - table {self.table_id} - {self.status.value}>"
