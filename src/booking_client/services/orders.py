"""Multi-vendor order splitting, submission and tracking."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from booking_client.adapters.order_client import OrderClient
from booking_client.domain.cart import CartLineItem
from booking_client.domain.errors import (
    AllOrdersFailedError,
    InvalidOrderStatusError,
    NotAuthenticatedError,
    RemoteCallError,
    SessionExpiredError,
)
from booking_client.domain.orders import (
    CreatedOrder,
    OrderForm,
    OrderItemRecord,
    OrderStatus,
    VendorOrderOutcome,
    VendorOrderRequest,
)

_logger = logging.getLogger(__name__)


def split_by_vendor(items: Iterable[CartLineItem]) -> dict[str, list[CartLineItem]]:
    """Group line items by vendor id.

    Groups appear in the order their vendor is first seen and keep the cart
    order of their items.
    """
    groups: dict[str, list[CartLineItem]] = {}
    for item in items:
        groups.setdefault(item.business_id, []).append(item)
    return groups


def build_vendor_requests(
    items: Iterable[CartLineItem], form: OrderForm, user_id: str
) -> list[VendorOrderRequest]:
    """Build one order request per vendor partition of the cart."""
    requests: list[VendorOrderRequest] = []
    for business_id, group in split_by_vendor(items).items():
        requests.append(
            VendorOrderRequest(
                user_id=user_id,
                business_id=business_id,
                business_name=group[0].business_name,
                form=form,
                items=tuple(OrderItemRecord.from_line_item(item) for item in group),
            )
        )
    return requests


def successful_orders(outcomes: Sequence[VendorOrderOutcome]) -> list[CreatedOrder]:
    """Return created orders, or raise when no vendor succeeded."""
    created = [outcome.order for outcome in outcomes if outcome.order is not None]
    if not created:
        if any(outcome.session_expired for outcome in outcomes):
            raise SessionExpiredError("Session expired, please sign in again")
        raise AllOrdersFailedError(list(outcomes))
    failed = [outcome for outcome in outcomes if not outcome.succeeded]
    if failed:
        _logger.warning(
            "Partial order submission: %s of %s vendors failed (%s)",
            len(failed),
            len(outcomes),
            ", ".join(f"{outcome.business_name}: {outcome.error}" for outcome in failed),
        )
    return created


@dataclass
class OrderSubmissionService:
    """Submits one order per vendor concurrently and aggregates the outcomes."""

    order_client: OrderClient
    debug: bool = False

    async def submit(
        self, items: Sequence[CartLineItem], form: OrderForm, user_id: str | None
    ) -> list[CreatedOrder]:
        """Create orders for every vendor in the cart.

        Returns the orders that were created. Raises AllOrdersFailedError
        only when every vendor's request failed.
        """
        outcomes = await self.collect_outcomes(items, form, user_id)
        return successful_orders(outcomes)

    async def collect_outcomes(
        self, items: Sequence[CartLineItem], form: OrderForm, user_id: str | None
    ) -> list[VendorOrderOutcome]:
        """Issue every vendor request and wait for all of them to settle."""
        if not user_id:
            raise NotAuthenticatedError("User not authenticated")
        requests = build_vendor_requests(items, form, user_id)
        if self.debug:
            _logger.info(
                "Submitting %s vendor orders for user %s", len(requests), user_id
            )
        return list(await asyncio.gather(*(self._submit_one(r) for r in requests)))

    async def _submit_one(self, request: VendorOrderRequest) -> VendorOrderOutcome:
        try:
            order = await self.order_client.create_order(request)
        except SessionExpiredError as exc:
            return _failed(request, exc.message, session_expired=True)
        except RemoteCallError as exc:
            return _failed(request, exc.message)
        except Exception as exc:
            _logger.exception(
                "Unexpected error creating order for vendor %s", request.business_id
            )
            return _failed(request, str(exc) or "Failed to create order")
        return VendorOrderOutcome(
            business_id=request.business_id,
            business_name=request.business_name,
            request=request,
            order=order,
        )


def _failed(
    request: VendorOrderRequest, reason: str, *, session_expired: bool = False
) -> VendorOrderOutcome:
    _logger.warning(
        "Order creation failed for vendor %s: %s", request.business_name, reason
    )
    return VendorOrderOutcome(
        business_id=request.business_id,
        business_name=request.business_name,
        request=request,
        error=reason,
        session_expired=session_expired,
    )


@dataclass
class OrderTrackingService:
    """Read and update orders after they have been placed."""

    order_client: OrderClient

    async def list_for_user(self, user_id: str | None) -> list[CreatedOrder]:
        if not user_id:
            raise NotAuthenticatedError("User not authenticated")
        return await self.order_client.list_orders_for_user(user_id)

    async def list_for_business(self, business_id: str) -> list[CreatedOrder]:
        return await self.order_client.list_orders_for_business(business_id)

    async def get(self, order_id: int | str) -> CreatedOrder:
        return await self.order_client.get_order(order_id)

    async def update_status(
        self, order_id: int | str, status: OrderStatus | str
    ) -> CreatedOrder:
        """Move an order to another status, rejecting unknown status names."""
        try:
            resolved = OrderStatus(str(status).upper())
        except ValueError as exc:
            raise InvalidOrderStatusError(f"Unknown order status: {status}") from exc
        return await self.order_client.update_status(order_id, resolved)

    async def cancel(self, order_id: int | str) -> CreatedOrder:
        return await self.order_client.update_status(order_id, OrderStatus.CANCELLED)
