"""
Ordering Error Taxonomy

Every failure the ordering core reports to its caller. Each error carries an
HTTP status code and a detail dict so the route layer can render a
user-facing message (e.g. which item ran out) without inspecting the type.
"""

from typing import Any, Optional


class OrderingError(Exception):
    """Base class for all client-visible ordering failures."""

    status_code: int = 400

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": False,
            "error": type(self).__name__,
            "detail": self.message,
            **self.detail,
        }


class LineItemInvalid(OrderingError):
    """A cart line references a menu item that does not exist."""
    status_code = 404

    def __init__(self, menu_item_id: str, name: Optional[str] = None):
        label = name or menu_item_id
        super().__init__(f"Menu item {label} not found", menu_item_id=menu_item_id)


class OutOfStock(OrderingError):
    """A menu item is disabled or has fewer units than requested."""
    status_code = 409

    def __init__(self, menu_item_id: str, name: str, requested: int, available: int):
        super().__init__(
            f"{name} is not available or insufficient stock",
            menu_item_id=menu_item_id,
            requested=requested,
            available=available,
        )


class InvalidTable(OrderingError):
    """A structured table id does not reference an active table."""
    status_code = 400

    def __init__(self, table_id: str, reason: str = "not found"):
        super().__init__(f"Table {table_id} is {reason}", table_id=table_id)


class InvalidTransition(OrderingError):
    """The requested status is not reachable from the order's current status."""
    status_code = 409

    def __init__(self, order_id: str, current: str, target: str):
        super().__init__(
            f"Cannot move order from {current} to {target}",
            order_id=order_id,
            current_status=current,
            target_status=target,
        )


class InvalidPaymentMethod(OrderingError):
    """Unknown payment method or payment status value."""
    status_code = 400


class OrderNotFound(OrderingError):
    """No order exists with the given id."""
    status_code = 404

    def __init__(self, order_id: str, message: Optional[str] = None):
        super().__init__(message or "Order not found", order_id=order_id)


class PersistenceUnavailable(OrderNotFound):
    """The store runs in degraded mode, so no stored order can be read."""

    def __init__(self, order_id: str):
        super().__init__(order_id, "Order not found (persistence disabled)")


class MenuItemNotFound(OrderingError):
    """Restock target does not exist."""
    status_code = 404

    def __init__(self, menu_item_id: str):
        super().__init__("Item not found", menu_item_id=menu_item_id)
