"""Domain models for booking-date availability."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum


class AvailabilityPhase(StrEnum):
    """States of an open booking-date dialog."""

    NO_DATE_SELECTED = "no_date_selected"
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    SUBSCRIPTION_CHECKING = "subscription_checking"
    NOT_SUBSCRIBED = "not_subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"
    CLOSED = "closed"


class ConfirmOutcome(StrEnum):
    """What happened when the user confirmed the dialog."""

    CONFIRMED = "confirmed"
    PROMPT_SUBSCRIBE = "prompt_subscribe"
    ALREADY_SUBSCRIBED = "already_subscribed"
    MISSING_DATE = "missing_date"
    PENDING = "pending"
    SUBSCRIBED = "subscribed"
    FAILED = "failed"


@dataclass(frozen=True)
class AvailabilityState:
    """Observable state of one booking-date dialog."""

    phase: AvailabilityPhase
    selected_date: date | None
    available_quantity: int | None
    checking: bool
    checking_subscription: bool
    subscribed: bool
    subscribing: bool
    prompt_visible: bool
    is_open: bool
    error: str | None

    @property
    def is_available(self) -> bool:
        return self.available_quantity is not None and self.available_quantity > 0


@dataclass(frozen=True)
class ConfirmResult:
    """Result of a confirm or subscribe action."""

    outcome: ConfirmOutcome
    selected_date: date | None = None
    message: str | None = None


@dataclass(frozen=True)
class StockSubscription:
    """Restock notification registration."""

    notification_id: int | None
    user_id: str
    item_id: str
    item_type: str
    item_name: str
    business_id: str
    requested_date: date | None
    notified: bool = False
