"""Order API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from booking_client.adapters.http import request_json
from booking_client.domain.errors import RemoteCallError
from booking_client.domain.orders import CreatedOrder, OrderStatus, VendorOrderRequest


class OrderClient(Protocol):
    """Interface for the remote order API."""

    async def create_order(self, request: VendorOrderRequest) -> CreatedOrder:
        """Create one order and return the server's record."""

    async def get_order(self, order_id: int | str) -> CreatedOrder:
        """Fetch an order by id."""

    async def list_orders_for_user(self, user_id: str) -> list[CreatedOrder]:
        """Return orders placed by a user."""

    async def list_orders_for_business(self, business_id: str) -> list[CreatedOrder]:
        """Return orders placed with a vendor."""

    async def update_status(
        self, order_id: int | str, status: OrderStatus
    ) -> CreatedOrder:
        """Move an order to a new status."""


@dataclass
class HttpxOrderClient(OrderClient):
    """Order client backed by httpx."""

    http_client: httpx.AsyncClient

    async def create_order(self, request: VendorOrderRequest) -> CreatedOrder:
        """Create an order via POST /orders."""
        data = await request_json(
            self.http_client,
            "POST",
            "/orders",
            action="create_order",
            json=request.to_payload(),
        )
        return _parse_order(data, "create_order")

    async def get_order(self, order_id: int | str) -> CreatedOrder:
        """Fetch a single order."""
        data = await request_json(
            self.http_client, "GET", f"/orders/{order_id}", action="get_order"
        )
        return _parse_order(data, "get_order")

    async def list_orders_for_user(self, user_id: str) -> list[CreatedOrder]:
        """List a user's orders."""
        data = await request_json(
            self.http_client,
            "GET",
            f"/orders/user/{user_id}",
            action="list_orders_for_user",
        )
        return _parse_order_list(data, "list_orders_for_user")

    async def list_orders_for_business(self, business_id: str) -> list[CreatedOrder]:
        """List a vendor's orders."""
        data = await request_json(
            self.http_client,
            "GET",
            f"/orders/business/{business_id}",
            action="list_orders_for_business",
        )
        return _parse_order_list(data, "list_orders_for_business")

    async def update_status(
        self, order_id: int | str, status: OrderStatus
    ) -> CreatedOrder:
        """Update an order's status via PUT /orders/{id}/status."""
        data = await request_json(
            self.http_client,
            "PUT",
            f"/orders/{order_id}/status",
            action="update_order_status",
            params={"status": status.value},
        )
        return _parse_order(data, "update_order_status")


def _parse_order(data: object, action: str) -> CreatedOrder:
    if not isinstance(data, dict) or data.get("orderId") is None:
        raise RemoteCallError(f"{action} returned an invalid response")
    return CreatedOrder.from_payload(data)


def _parse_order_list(data: object, action: str) -> list[CreatedOrder]:
    """Parse an order list, tolerating a single object where a list is expected."""
    if isinstance(data, list):
        return [_parse_order(item, action) for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        return [_parse_order(data, action)]
    return []
