"""
Kitchen API Client

HTTP side of a kitchen station: loads active orders on connect and sends
status changes. Plug `transition` into `KitchenBoard.move` as its command.

Usage:
    async with KitchenApiClient("http://localhost:3000") as api:
        board = KitchenBoard(await api.fetch_active())
        await board.move(order_id, OrderStatus.PREPARED, api.transition)
"""

import logging
from typing import Optional

import httpx

from quickserve.core.exceptions import InvalidTransition, OrderingError, OrderNotFound
from quickserve.domain.order import Order, OrderStatus

logger = logging.getLogger(__name__)


class KitchenApiClient:
    """Thin async client for the order endpoints a kitchen station uses."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            base_url: API root, used to build the default client
            client: Preconfigured client (tests, shared pools). Its own base
                URL and timeout apply, so pass it instead of `base_url`
            timeout: Request timeout of the default client
        """
        if client is not None and base_url is not None:
            raise ValueError("Pass either base_url or client, not both")
        if client is None:
            if base_url is None:
                raise ValueError("base_url is required without a client")
            client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._client = client

    async def __aenter__(self) -> "KitchenApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _raise_for_error(response: httpx.Response, order_id: str) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}

        error = body.get("error")
        if error == "InvalidTransition":
            raise InvalidTransition(
                order_id,
                body.get("current_status", "unknown"),
                body.get("target_status", "unknown"),
            )
        if response.status_code == 404:
            raise OrderNotFound(order_id, body.get("detail"))

        exc = OrderingError(body.get("detail") or f"HTTP {response.status_code}")
        exc.status_code = response.status_code
        raise exc

    async def fetch_active(self) -> list[Order]:
        """Current pending, preparing and prepared orders."""
        response = await self._client.get("/api/orders/active")
        response.raise_for_status()
        orders = [Order.from_dict(data) for data in response.json()]
        logger.debug(f"Fetched {len(orders)} active order(s)")
        return orders

    async def transition(self, order_id: str, status: OrderStatus) -> Order:
        """
        Ask the server to move an order.

        Raises:
            InvalidTransition: the server rejected the move
            OrderNotFound: unknown order, or persistence is disabled
        """
        response = await self._client.put(
            f"/api/orders/{order_id}/status",
            json={"status": OrderStatus(status).value},
        )
        self._raise_for_error(response, order_id)
        return Order.from_dict(response.json())
