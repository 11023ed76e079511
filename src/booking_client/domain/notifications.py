"""Domain models for order and restock notifications."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import StrEnum


class NotificationAudience(StrEnum):
    """Which feed a notification belongs to."""

    CLIENT = "client"
    VENDOR = "vendor"


@dataclass(frozen=True)
class NotificationRecord:
    """Notification as reported by the server."""

    notification_id: int
    is_read: bool
    message: str
    created_at: datetime | None
    notification_type: str | None = None
    order_id: int | None = None
    business_id: str | None = None
    business_name: str | None = None
    customer_name: str | None = None
    total_amount: float | None = None
    delivery_date: str | None = None
    availability_date: date | None = None

    def mark_read(self) -> "NotificationRecord":
        return replace(self, is_read=True)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "NotificationRecord":
        return cls(
            notification_id=int(payload["notificationId"]),
            is_read=_to_bool(payload.get("isRead", payload.get("read"))),
            message=str(payload.get("message") or ""),
            created_at=_parse_datetime(payload.get("createdAt")),
            notification_type=payload.get("notificationType"),
            order_id=payload.get("orderId"),
            business_id=payload.get("businessId"),
            business_name=payload.get("businessName"),
            customer_name=payload.get("customerName"),
            total_amount=payload.get("totalAmount"),
            delivery_date=payload.get("deliveryDate"),
            availability_date=_parse_date(payload.get("availabilityDate")),
        )


@dataclass(frozen=True)
class NotificationFeed:
    """Records from one poll plus the server's unread count, if reported."""

    records: list[NotificationRecord] = field(default_factory=list)
    unread_count: int | None = None


def _to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    if isinstance(value, int):
        return value != 0
    return False


def _parse_datetime(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None
