"""
Pydantic Schemas for Request/Response Validation
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from quickserve.domain.order import OrderStatus, PaymentMethod, PaymentStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderLineCreate(BaseModel):
    """Single cart line."""
    menu_item_id: str = Field(..., min_length=1, examples=["margherita-pizza"])
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    special_instructions: Optional[str] = Field(None, max_length=200)
    name: Optional[str] = Field(None, max_length=100, examples=["Margherita Pizza"])


class OrderCreate(BaseModel):
    """Request schema for placing an order from a table."""
    table_id: Optional[str] = Field(None, max_length=20, examples=["T4"])
    table_number: Optional[int] = Field(None, ge=1, examples=[4])
    items: List[OrderLineCreate] = Field(..., min_length=1)
    customer_phone: Optional[str] = Field(None, max_length=20)
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH, examples=["cash", "upi"])


class StatusUpdate(BaseModel):
    """Kitchen status change command."""
    status: OrderStatus


class PaymentStatusUpdate(BaseModel):
    """Payment outcome reported by the customer app or a gateway callback."""
    order_id: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = Field(None, max_length=100)


class InventoryUpdate(BaseModel):
    """Manual restock."""
    inventory_count: int = Field(..., ge=0)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    menu_item_id: str
    name: str
    price: float
    quantity: int
    special_instructions: str = ""


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_number: str
    table_id: str
    table_number: int
    customer_phone: Optional[str] = None
    items: List[OrderLineResponse]
    total_amount: float
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaymentResponse(BaseModel):
    """Payment fields of an order."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_number: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    status: OrderStatus
    total_amount: float


class PaymentUpdateResponse(BaseModel):
    success: bool = True
    message: str
    order: PaymentResponse


class MenuItemStockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price: float
    available: bool
    inventory_count: int
    low_stock_threshold: int
    is_low_stock: bool


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    inventory: str
    order_store: str
    subscribers: int
    timestamp: datetime
