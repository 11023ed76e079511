"""Checkout flow: validate, submit per vendor, then settle the cart."""

import logging
from dataclasses import dataclass
from datetime import date

from booking_client.domain.cart import CartLineItem
from booking_client.domain.errors import OrderValidationError
from booking_client.domain.orders import (
    ClearPolicy,
    CreatedOrder,
    OrderForm,
    VendorOrderOutcome,
)
from booking_client.domain.session import SessionUser
from booking_client.services.cart import CartStore
from booking_client.services.orders import OrderSubmissionService, successful_orders

_logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    ("customer_name", "Customer name"),
    ("customer_email", "Customer email"),
    ("customer_phone", "Customer phone"),
    ("delivery_address", "Delivery address"),
    ("delivery_date", "Delivery date"),
)


@dataclass(frozen=True)
class CheckoutResult:
    """Orders created by a checkout and what was left behind."""

    orders: list[CreatedOrder]
    failed: list[VendorOrderOutcome]
    remaining_items: tuple[CartLineItem, ...]

    @property
    def partial(self) -> bool:
        return bool(self.failed)


def validate_order_form(form: OrderForm) -> None:
    """Raise OrderValidationError naming the first missing required field."""
    for attribute, label in _REQUIRED_FIELDS:
        value = getattr(form, attribute)
        if not value or not str(value).strip():
            raise OrderValidationError(f"{label} is required")


def default_delivery_date(cart: CartStore, today: date | None = None) -> date:
    """Earliest booking date in the cart, or today when nothing is booked."""
    return cart.earliest_booking_date() or today or date.today()


def prefill_order_form(
    cart: CartStore,
    user: SessionUser,
    delivery_address: str = "",
    special_notes: str = "",
    today: date | None = None,
) -> OrderForm:
    """Build an order form from the session user and the cart's booking dates."""
    return OrderForm(
        customer_name=user.full_name or "",
        customer_email=user.email or "",
        customer_phone=user.user_id,
        delivery_address=delivery_address,
        delivery_date=default_delivery_date(cart, today).isoformat(),
        special_notes=special_notes,
    )


@dataclass
class CheckoutService:
    """Runs a checkout against the session cart."""

    cart: CartStore
    submission_service: OrderSubmissionService
    clear_policy: ClearPolicy = ClearPolicy.ALL

    async def checkout(self, form: OrderForm, user: SessionUser | None) -> CheckoutResult:
        """Submit the cart and clear it according to the clear policy.

        Validation, authentication and total failures raise and leave the
        cart untouched.
        """
        validate_order_form(form)
        items = self.cart.items
        if not items:
            raise OrderValidationError("Cart is empty")
        outcomes = await self.submission_service.collect_outcomes(
            items, form, user.user_id if user else None
        )
        orders = successful_orders(outcomes)
        failed = [outcome for outcome in outcomes if not outcome.succeeded]
        self._settle_cart(outcomes)
        return CheckoutResult(
            orders=orders, failed=failed, remaining_items=self.cart.items
        )

    def _settle_cart(self, outcomes: list[VendorOrderOutcome]) -> None:
        if self.clear_policy is ClearPolicy.SUCCEEDED_VENDORS:
            succeeded = [outcome.business_id for outcome in outcomes if outcome.succeeded]
            self.cart.remove_vendors(succeeded)
            if self.cart.items:
                _logger.info(
                    "Kept %s cart items from vendors whose order failed",
                    len(self.cart.items),
                )
            return
        self.cart.clear()
