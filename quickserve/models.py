"""
SQLAlchemy Database Models

Rows backing the SQL collaborators:
- Menu items with stock counters (inventory ledger)
- Dining tables (table directory)
- Orders with their line-item snapshot (order store)
- Named counters for order numbers
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Integer, JSON, String
from sqlalchemy.sql import func

from quickserve.database import Base
from quickserve.domain.order import Order, OrderLine, OrderStatus, PaymentMethod, PaymentStatus


def _uuid_hex() -> str:
    return uuid.uuid4().hex


class MenuItem(Base):
    """Menu item and its stock counter."""
    __tablename__ = "menu_items"

    id = Column(String(32), primary_key=True, default=_uuid_hex)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    category = Column(String(50), nullable=False, default="")
    price = Column(Float, nullable=False)

    # =========================================================================
    # STOCK
    # =========================================================================
    available = Column(Boolean, nullable=False, default=True)
    inventory_count = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<MenuItem {self.name} - stock {self.inventory_count}>"


class RestaurantTable(Base):
    """Dining table a QR code points at."""
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(String(20), nullable=False, unique=True, index=True)
    table_name = Column(String(50), nullable=False)
    seats = Column(Integer, nullable=False, default=4)
    location = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<RestaurantTable {self.table_id} - active={self.is_active}>"


class OrderRecord(Base):
    """Stored order. `sequence` is the numeric part of the order number."""
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True)
    sequence = Column(Integer, nullable=False, unique=True)
    order_number = Column(String(20), nullable=False, unique=True)

    table_id = Column(String(20), nullable=False, index=True)
    table_number = Column(Integer, nullable=False)
    customer_phone = Column(String(20), nullable=True)

    items = Column(JSON, nullable=False)  # Line-item snapshot
    total_amount = Column(Float, nullable=False)

    status = Column(Enum(OrderStatus), nullable=False, index=True)

    # =========================================================================
    # PAYMENT INFO
    # =========================================================================
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    transaction_id = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, order: Order, sequence: int) -> "OrderRecord":
        record = cls(id=order.id, sequence=sequence)
        record.apply(order)
        return record

    def apply(self, order: Order) -> None:
        """Copy the mutable and snapshot fields of `order` onto this row."""
        self.order_number = order.order_number
        self.table_id = order.table_id
        self.table_number = order.table_number
        self.customer_phone = order.customer_phone
        self.items = [line.to_dict() for line in order.items]
        self.total_amount = order.total_amount
        self.status = order.status
        self.payment_method = order.payment_method
        self.payment_status = order.payment_status
        self.transaction_id = order.transaction_id
        self.created_at = order.created_at
        self.updated_at = order.updated_at

    def to_domain(self) -> Order:
        return Order(
            id=self.id,
            order_number=self.order_number,
            table_id=self.table_id,
            table_number=self.table_number,
            items=[OrderLine(**line) for line in self.items],
            total_amount=self.total_amount,
            status=self.status,
            payment_method=self.payment_method,
            payment_status=self.payment_status,
            transaction_id=self.transaction_id,
            customer_phone=self.customer_phone,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<OrderRecord {self.order_number} - {self.status.value}>"


class OrderSequence(Base):
    """Named monotonic counter, incremented with a single UPDATE."""
    __tablename__ = "order_sequences"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
