"""Availability and restock-subscription API clients."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

import httpx

from booking_client.adapters.http import request_json, send
from booking_client.domain.availability import StockSubscription
from booking_client.domain.catalog import ItemKind


class AvailabilityClient(Protocol):
    """Interface for date-specific stock lookups."""

    async def get_available_quantity(
        self, item_id: str, kind: ItemKind, on_date: date
    ) -> int:
        """Return the remaining stock of an item on a date."""


class StockNotificationClient(Protocol):
    """Interface for restock subscriptions."""

    async def is_subscribed(
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind,
        requested_date: date | None = None,
    ) -> bool:
        """Return whether the user already asked to be notified."""

    async def subscribe(  # noqa: PLR0913
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind,
        item_name: str,
        business_id: str,
        requested_date: date | None = None,
    ) -> StockSubscription:
        """Register a restock subscription."""

    async def unsubscribe(self, user_id: str, item_id: str, kind: ItemKind) -> None:
        """Remove a restock subscription."""

    async def list_subscriptions(self, user_id: str) -> list[StockSubscription]:
        """Return the user's restock subscriptions."""


@dataclass
class HttpxAvailabilityClient(AvailabilityClient):
    """Availability client backed by httpx."""

    http_client: httpx.AsyncClient

    async def get_available_quantity(
        self, item_id: str, kind: ItemKind, on_date: date
    ) -> int:
        """Fetch the available quantity for one item on one date."""
        data = await request_json(
            self.http_client,
            "GET",
            f"/availability/item/{item_id}/type/{kind.value}"
            f"/date/{on_date.isoformat()}/quantity",
            action="get_available_quantity",
        )
        if not isinstance(data, dict):
            return 0
        return int(data.get("availableQuantity") or 0)


@dataclass
class HttpxStockNotificationClient(StockNotificationClient):
    """Restock subscription client backed by httpx."""

    http_client: httpx.AsyncClient

    async def is_subscribed(
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind,
        requested_date: date | None = None,
    ) -> bool:
        """Check for an existing subscription."""
        params: dict[str, str] = {
            "userId": user_id,
            "itemId": item_id,
            "itemType": kind.value.upper(),
        }
        if requested_date is not None:
            params["requestedDate"] = requested_date.isoformat()
        data = await request_json(
            self.http_client,
            "GET",
            "/stock-notifications/check",
            action="check_stock_subscription",
            params=params,
        )
        return isinstance(data, dict) and bool(data.get("subscribed"))

    async def subscribe(  # noqa: PLR0913
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind,
        item_name: str,
        business_id: str,
        requested_date: date | None = None,
    ) -> StockSubscription:
        """Create a subscription, optionally for a single date."""
        payload: dict[str, object] = {
            "userId": user_id,
            "itemId": item_id,
            "itemType": kind.value.upper(),
            "itemName": item_name,
            "businessId": business_id,
        }
        if requested_date is not None:
            payload["requestedDate"] = requested_date.isoformat()
        data = await request_json(
            self.http_client,
            "POST",
            "/stock-notifications/subscribe",
            action="subscribe_stock_notification",
            json=payload,
        )
        body = data if isinstance(data, dict) else {}
        return StockSubscription(
            notification_id=body.get("notificationId"),
            user_id=user_id,
            item_id=item_id,
            item_type=kind.value.upper(),
            item_name=item_name,
            business_id=business_id,
            requested_date=requested_date,
            notified=bool(body.get("notified", False)),
        )

    async def unsubscribe(self, user_id: str, item_id: str, kind: ItemKind) -> None:
        """Delete a subscription."""
        await send(
            self.http_client,
            "DELETE",
            "/stock-notifications/unsubscribe",
            action="unsubscribe_stock_notification",
            params={"userId": user_id, "itemId": item_id, "itemType": kind.value.upper()},
        )

    async def list_subscriptions(self, user_id: str) -> list[StockSubscription]:
        """Fetch every restock subscription the user holds."""
        data = await request_json(
            self.http_client,
            "GET",
            f"/stock-notifications/user/{user_id}",
            action="list_stock_subscriptions",
        )
        if not isinstance(data, list):
            return []
        return [_parse_subscription(entry) for entry in data if isinstance(entry, dict)]


def _parse_subscription(payload: dict[str, object]) -> StockSubscription:
    raw_date = payload.get("requestedDate")
    notification_id = payload.get("notificationId")
    return StockSubscription(
        notification_id=int(notification_id) if notification_id is not None else None,
        user_id=str(payload.get("userId") or ""),
        item_id=str(payload.get("itemId") or ""),
        item_type=str(payload.get("itemType") or ""),
        item_name=str(payload.get("itemName") or ""),
        business_id=str(payload.get("businessId") or ""),
        requested_date=date.fromisoformat(str(raw_date)[:10]) if raw_date else None,
        notified=bool(payload.get("notified", False)),
    )
