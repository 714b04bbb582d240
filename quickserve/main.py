"""
FastAPI Application Entry Point

QuickServe order lifecycle backend.

Endpoints:
    - POST /api/orders: Place an order from a table
    - GET /api/orders: List orders (status / table / date filters)
    - GET /api/orders/active: Orders the kitchen still has to handle
    - GET /api/orders/by-table/{table_id}: Orders of one table
    - GET /api/orders/{order_id}: Single order
    - PUT /api/orders/{order_id}/status: Kitchen status change
    - POST /api/payment/status: Record a payment outcome
    - GET /api/payment/verify/{order_id}: Payment fields of an order
    - PUT /api/menu/{menu_item_id}/inventory: Manual restock
    - WS /ws/orders: Real-time order events
    - GET /health: System health check
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quickserve.core.config import get_settings, setup_logging
from quickserve.core.exceptions import OrderingError
from quickserve.schemas import (
    ErrorResponse,
    HealthResponse,
    InventoryUpdate,
    MenuItemStockResponse,
    OrderCreate,
    OrderResponse,
    PaymentResponse,
    PaymentStatusUpdate,
    PaymentUpdateResponse,
    StatusUpdate,
)
from quickserve.services.broadcast import EventBroadcaster, get_broadcaster
from quickserve.services.ordering import CartLine, OrderService, get_order_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.uses_database:
        from quickserve.database import engine, init_db

        await init_db()
        logger.info("✅ Database initialized")

    service = get_order_service()
    logger.info(f"✅ Inventory Ledger: {service.ledger.provider_name}")
    logger.info(f"✅ Table Directory: {service.tables.provider_name}")
    logger.info(f"✅ Order Store: {service.store.provider_name}")
    if settings.is_development:
        logger.info("✅ Demo menu and tables loaded (development mode)")
    if not service.store.persistent:
        logger.warning("⚠️ Orders are NOT persisted (SAVE_ORDERS=false)")
    logger.info("✅ Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    if settings.uses_database:
        await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Order lifecycle backend: atomic stock reservation, order status "
        "state machine and real-time fan-out to kitchen and customer screens."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept"],
)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
        "events": "/ws/orders",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    service: OrderService = Depends(get_order_service),
) -> HealthResponse:
    """Verify all system components are operational."""
    inventory_status = "healthy" if await service.ledger.health_check() else "unhealthy"

    if not service.store.persistent:
        store_status = "disabled"
    elif await service.store.health_check():
        store_status = "healthy"
    else:
        store_status = "unhealthy"

    overall = "operational" if (
        inventory_status == "healthy" and store_status in ("healthy", "disabled")
    ) else "degraded"

    return HealthResponse(
        status=overall,
        inventory=inventory_status,
        order_store=store_status,
        subscribers=service.broadcaster.subscriber_count,
        timestamp=datetime.now(),
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Validate the cart, reserve stock and place the order."""
    logger.info(f"Creating order for table {order_data.table_id or order_data.table_number or 1}")

    order = await service.create_order(
        lines=[
            CartLine(
                menu_item_id=line.menu_item_id,
                quantity=line.quantity,
                special_instructions=line.special_instructions or "",
                name=line.name,
            )
            for line in order_data.items
        ],
        table_id=order_data.table_id,
        table_number=order_data.table_number,
        payment_method=order_data.payment_method.value,
        customer_phone=order_data.customer_phone,
    )
    return OrderResponse.model_validate(order)


@app.get(
    "/api/orders",
    response_model=List[OrderResponse],
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    status: Optional[str] = Query(None),
    table_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    """Orders newest first, optionally filtered."""
    orders = await service.list_orders(status, table_id, start_date, end_date)
    return [OrderResponse.model_validate(order) for order in orders]


@app.get(
    "/api/orders/active",
    response_model=List[OrderResponse],
    tags=["Orders"],
)
async def active_orders(
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    """Pending, preparing and prepared orders, newest first."""
    orders = await service.get_active_orders()
    return [OrderResponse.model_validate(order) for order in orders]


@app.get(
    "/api/orders/by-table/{table_id}",
    response_model=List[OrderResponse],
    tags=["Orders"],
)
async def orders_by_table(
    table_id: str,
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    orders = await service.get_orders_by_table(table_id)
    return [OrderResponse.model_validate(order) for order in orders]


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get a specific order by ID."""
    order = await service.get_order(order_id)
    return OrderResponse.model_validate(order)


@app.put(
    "/api/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Change Order Status",
)
async def update_order_status(
    order_id: str,
    update: StatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.transition_status(order_id, update.status.value)
    return OrderResponse.model_validate(order)


# =============================================================================
# PAYMENT ENDPOINTS
# =============================================================================

@app.post(
    "/api/payment/status",
    response_model=PaymentUpdateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Payment"],
)
async def update_payment_status(
    update: PaymentStatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> PaymentUpdateResponse:
    """Record a payment outcome; a paid UPI order goes to the kitchen."""
    order = await service.update_payment_status(
        order_id=update.order_id,
        payment_status=update.payment_status.value,
        payment_method=update.payment_method.value,
        transaction_id=update.transaction_id,
    )
    return PaymentUpdateResponse(
        message="Payment status updated successfully",
        order=PaymentResponse.model_validate(order),
    )


@app.get(
    "/api/payment/verify/{order_id}",
    response_model=PaymentResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Payment"],
)
async def verify_payment(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> PaymentResponse:
    order = await service.get_order(order_id)
    return PaymentResponse.model_validate(order)


# =============================================================================
# INVENTORY ENDPOINTS
# =============================================================================

@app.put(
    "/api/menu/{menu_item_id}/inventory",
    response_model=MenuItemStockResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Inventory"],
)
async def restock_menu_item(
    menu_item_id: str,
    update: InventoryUpdate,
    service: OrderService = Depends(get_order_service),
) -> MenuItemStockResponse:
    item = await service.restock(menu_item_id, update.inventory_count)
    return MenuItemStockResponse.model_validate(item)


# =============================================================================
# REAL-TIME EVENTS
# =============================================================================

@app.websocket("/ws/orders")
async def order_events(
    websocket: WebSocket,
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> None:
    """
    Push order-created, order-updated and payment-updated events.

    Nothing is replayed on connect; clients load current state from
    GET /api/orders/active first.
    """
    await websocket.accept()
    broadcaster.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.debug(f"Ignoring non-JSON message: {data[:50]}")
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        logger.debug("Order events socket closed by client")
    finally:
        broadcaster.disconnect(websocket)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderingError)
async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    """Render ordering failures with their status code and detail."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    content: dict[str, Any] = {
        "success": False,
        "error": "Internal Server Error",
        "detail": str(exc) if settings.debug else "An unexpected error occurred",
    }
    return JSONResponse(status_code=500, content=content)
