"""Client and vendor notification feed clients."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import httpx

from booking_client.adapters.http import request_json, send
from booking_client.domain.errors import RemoteCallError, SessionExpiredError
from booking_client.domain.notifications import NotificationFeed, NotificationRecord

_logger = logging.getLogger(__name__)


class NotificationFeedClient(Protocol):
    """Interface for a notification feed owned by one user."""

    async def fetch_feed(self, owner_id: str) -> NotificationFeed:
        """Return every notification for the owner plus the unread count."""

    async def mark_read(self, notification_id: int) -> None:
        """Mark a single notification as read."""

    async def mark_all_read(self, owner_id: str) -> None:
        """Mark every notification of the owner as read."""


@dataclass
class HttpxClientNotificationClient(NotificationFeedClient):
    """Feed of order and restock notifications addressed to a client."""

    http_client: httpx.AsyncClient

    async def fetch_feed(self, owner_id: str) -> NotificationFeed:
        """Use the combined endpoint, falling back to separate list and count calls."""
        try:
            data = await request_json(
                self.http_client,
                "GET",
                f"/client-notifications/client/{owner_id}/with-count",
                action="fetch_client_notifications",
                headers={"Cache-Control": "no-cache"},
            )
        except SessionExpiredError:
            raise
        except RemoteCallError:
            _logger.warning("Combined notification endpoint failed, using fallback")
            return await self._fetch_separately(owner_id)
        body = data if isinstance(data, dict) else {}
        return NotificationFeed(
            records=_parse_records(body.get("notifications")),
            unread_count=_parse_count(body.get("unreadCount", body.get("count"))),
        )

    async def mark_read(self, notification_id: int) -> None:
        await send(
            self.http_client,
            "PUT",
            f"/client-notifications/{notification_id}/mark-read",
            action="mark_client_notification_read",
        )

    async def mark_all_read(self, owner_id: str) -> None:
        await send(
            self.http_client,
            "PUT",
            f"/client-notifications/client/{owner_id}/mark-all-read",
            action="mark_all_client_notifications_read",
        )

    async def _fetch_separately(self, owner_id: str) -> NotificationFeed:
        records, count = await asyncio.gather(
            request_json(
                self.http_client,
                "GET",
                f"/client-notifications/client/{owner_id}",
                action="list_client_notifications",
            ),
            request_json(
                self.http_client,
                "GET",
                f"/client-notifications/client/{owner_id}/unread-count",
                action="count_client_notifications",
            ),
        )
        return NotificationFeed(
            records=_parse_records(records), unread_count=_parse_count(count)
        )


@dataclass
class HttpxVendorNotificationClient(NotificationFeedClient):
    """Feed of new-order notifications addressed to a vendor."""

    http_client: httpx.AsyncClient

    async def fetch_feed(self, owner_id: str) -> NotificationFeed:
        """Fetch list and count concurrently; records are sorted newest first."""
        records, count = await asyncio.gather(
            request_json(
                self.http_client,
                "GET",
                f"/notifications/vendor/{owner_id}",
                action="list_vendor_notifications",
            ),
            request_json(
                self.http_client,
                "GET",
                f"/notifications/vendor/{owner_id}/count",
                action="count_vendor_notifications",
            ),
        )
        parsed = _parse_records(records)
        parsed.sort(key=_created_at_key, reverse=True)
        return NotificationFeed(records=parsed, unread_count=_parse_count(count))

    async def mark_read(self, notification_id: int) -> None:
        await send(
            self.http_client,
            "PUT",
            f"/notifications/{notification_id}/read",
            action="mark_vendor_notification_read",
        )

    async def mark_all_read(self, owner_id: str) -> None:
        await send(
            self.http_client,
            "PUT",
            f"/notifications/vendor/{owner_id}/read-all",
            action="mark_all_vendor_notifications_read",
        )


def _parse_records(data: object) -> list[NotificationRecord]:
    if not isinstance(data, list):
        return []
    return [NotificationRecord.from_payload(item) for item in data if isinstance(item, dict)]


def _parse_count(data: object) -> int | None:
    if isinstance(data, bool):
        return None
    if isinstance(data, int):
        return data
    if isinstance(data, dict):
        value = data.get("count")
        return value if isinstance(value, int) else None
    return None


def _created_at_key(record: NotificationRecord) -> datetime:
    created = record.created_at
    if created is None:
        return datetime.min.replace(tzinfo=UTC)
    if created.tzinfo is None:
        return created.replace(tzinfo=UTC)
    return created
