"""Error types raised by the booking client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from booking_client.domain.orders import VendorOrderOutcome


class BookingClientError(Exception):
    """Base class for all booking client errors."""


class ValidationError(BookingClientError):
    """Input rejected before any mutation or network call."""


class UnclassifiableItemError(ValidationError):
    """A catalogue item could not be classified as theme, inventory, plate or dish."""


class InvalidQuantityError(ValidationError):
    """Quantity is not a positive integer."""


class InvalidPriceError(ValidationError):
    """Price is negative or not a finite number."""


class OrderValidationError(ValidationError):
    """Order form or cart is not ready for submission."""


class NotAuthenticatedError(BookingClientError):
    """No authenticated user is available for the operation."""


class AllOrdersFailedError(BookingClientError):
    """Every per-vendor order request failed."""

    def __init__(self, outcomes: list[VendorOrderOutcome]) -> None:
        self.outcomes = outcomes
        details = "; ".join(
            f"{outcome.business_name}: {outcome.error}" for outcome in outcomes
        )
        super().__init__(f"Failed to create orders. {details}")


class RemoteCallError(BookingClientError):
    """A remote API call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(RemoteCallError):
    """The remote API rejected the bearer token."""


class InvalidOrderStatusError(ValidationError):
    """Order status is not one the order API accepts."""
