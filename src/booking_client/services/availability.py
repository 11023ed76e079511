"""Booking-date availability checks and restock subscriptions."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from booking_client.adapters.availability_client import (
    AvailabilityClient,
    StockNotificationClient,
)
from booking_client.domain.availability import (
    AvailabilityPhase,
    AvailabilityState,
    ConfirmOutcome,
    ConfirmResult,
    StockSubscription,
)
from booking_client.domain.catalog import ItemKind
from booking_client.domain.errors import RemoteCallError

_logger = logging.getLogger(__name__)

CHECK_FAILED_MESSAGE = "Failed to check availability. Please try again."
MISSING_DATE_MESSAGE = "Please select a booking date."
ALREADY_SUBSCRIBED_MESSAGE = "You are already subscribed for notifications on this date."
SUBSCRIBE_FAILED_MESSAGE = "Failed to subscribe to notifications"


@dataclass
class AvailabilityChecker:
    """State of one open booking-date dialog.

    Date changes are debounced: each selection cancels the pending timer and
    any lookup it started, and a generation counter drops results that
    belong to an older selection.
    """

    availability_client: AvailabilityClient
    stock_client: StockNotificationClient
    item_id: str
    kind: ItemKind
    item_name: str | None = None
    business_id: str | None = None
    user_id: str | None = None
    debounce_seconds: float = 0.5
    close_delay_seconds: float = 0.1
    on_notify: Callable[[date], None] | None = None
    selected_date: date | None = None
    available_quantity: int | None = None
    checking: bool = False
    checking_subscription: bool = False
    subscription_known: bool = False
    subscribed: bool = False
    subscribing: bool = False
    prompt_visible: bool = False
    is_open: bool = True
    error: str | None = None
    _generation: int = field(default=0, repr=False)
    _check_task: asyncio.Task[None] | None = field(default=None, repr=False)
    _close_task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def phase(self) -> AvailabilityPhase:  # noqa: PLR0911
        if not self.is_open:
            return AvailabilityPhase.CLOSED
        if self.selected_date is None:
            return AvailabilityPhase.NO_DATE_SELECTED
        if self.checking or self.available_quantity is None:
            return AvailabilityPhase.CHECKING
        if self.available_quantity > 0:
            return AvailabilityPhase.AVAILABLE
        if self.checking_subscription:
            return AvailabilityPhase.SUBSCRIPTION_CHECKING
        if self.subscribed:
            return AvailabilityPhase.ALREADY_SUBSCRIBED
        if self.subscription_known:
            return AvailabilityPhase.NOT_SUBSCRIBED
        return AvailabilityPhase.UNAVAILABLE

    def state(self) -> AvailabilityState:
        return AvailabilityState(
            phase=self.phase,
            selected_date=self.selected_date,
            available_quantity=self.available_quantity,
            checking=self.checking,
            checking_subscription=self.checking_subscription,
            subscribed=self.subscribed,
            subscribing=self.subscribing,
            prompt_visible=self.prompt_visible,
            is_open=self.is_open,
            error=self.error,
        )

    def open(self, current_date: date | None = None) -> None:
        """Reset the dialog, optionally preselecting a date."""
        self._cancel_pending()
        self.is_open = True
        self.prompt_visible = False
        self.select_date(current_date)

    def select_date(self, selected: date | None) -> None:
        """Record a new date and restart the debounce timer.

        Must be called from a running event loop when ``selected`` is set.
        """
        if not self.is_open:
            return
        self._cancel_pending()
        self.selected_date = selected
        self.available_quantity = None
        self.error = None
        self.checking = False
        self.checking_subscription = False
        self.subscription_known = False
        self.subscribed = False
        if selected is None:
            return
        generation = self._generation
        self._check_task = asyncio.get_running_loop().create_task(
            self._debounced_check(generation, selected)
        )

    def confirm(self) -> ConfirmResult:
        """Accept the selected date, or explain why it cannot be booked."""
        if self.selected_date is None:
            self.error = MISSING_DATE_MESSAGE
            return ConfirmResult(ConfirmOutcome.MISSING_DATE, message=self.error)
        if (
            self.checking
            or self.checking_subscription
            or self.subscribing
            or self.available_quantity is None
        ):
            return ConfirmResult(ConfirmOutcome.PENDING, self.selected_date)
        if self.available_quantity > 0:
            selected = self.selected_date
            self.close()
            return ConfirmResult(ConfirmOutcome.CONFIRMED, selected)
        if self.subscribed:
            self.error = ALREADY_SUBSCRIBED_MESSAGE
            return ConfirmResult(
                ConfirmOutcome.ALREADY_SUBSCRIBED, self.selected_date, self.error
            )
        self.prompt_visible = True
        return ConfirmResult(ConfirmOutcome.PROMPT_SUBSCRIBE, self.selected_date)

    def decline_subscription(self) -> None:
        """Hide the subscribe prompt so another date can be tried."""
        self.prompt_visible = False

    async def accept_subscription(self) -> ConfirmResult:
        """Subscribe to a restock notification for the selected date.

        A second call while one is in flight returns PENDING without
        touching the server.
        """
        selected = self.selected_date
        if self.subscribing:
            return ConfirmResult(ConfirmOutcome.PENDING, selected)
        self.prompt_visible = False
        if selected is None or not self.user_id or not self.business_id:
            return ConfirmResult(
                ConfirmOutcome.FAILED, selected, "Cannot subscribe for this item"
            )
        generation = self._generation
        self.subscribing = True
        try:
            return await self._subscribe(
                generation, selected, self.user_id, self.business_id
            )
        finally:
            self.subscribing = False

    async def _subscribe(
        self, generation: int, selected: date, user_id: str, business_id: str
    ) -> ConfirmResult:
        try:
            already = await self.stock_client.is_subscribed(
                user_id, self.item_id, self.kind, selected
            )
        except Exception as exc:
            _logger.warning("Subscription re-check failed, continuing: %s", exc)
            already = False
        if generation != self._generation:
            return ConfirmResult(ConfirmOutcome.FAILED, selected, "Selection changed")
        if already:
            self.subscribed = True
            self.subscription_known = True
            self.error = ALREADY_SUBSCRIBED_MESSAGE
            return ConfirmResult(ConfirmOutcome.ALREADY_SUBSCRIBED, selected, self.error)

        try:
            await self.stock_client.subscribe(
                user_id,
                self.item_id,
                self.kind,
                self.item_name or "",
                business_id,
                selected,
            )
        except RemoteCallError as exc:
            self.error = exc.message or SUBSCRIBE_FAILED_MESSAGE
            return ConfirmResult(ConfirmOutcome.FAILED, selected, self.error)
        if generation != self._generation:
            return ConfirmResult(ConfirmOutcome.SUBSCRIBED, selected)
        self.subscribed = True
        self.subscription_known = True
        self.error = None
        if self.on_notify is not None:
            self.on_notify(selected)
        self._close_task = asyncio.get_running_loop().create_task(
            self._close_later(self.close_delay_seconds)
        )
        return ConfirmResult(ConfirmOutcome.SUBSCRIBED, selected)

    def close(self) -> None:
        """Close the dialog; results still in flight are discarded."""
        self._cancel_pending()
        self.is_open = False
        self.prompt_visible = False
        self.checking = False
        self.checking_subscription = False

    async def wait_idle(self) -> None:
        """Wait until no timer, lookup or delayed close is pending."""
        for task in (self._check_task, self._close_task):
            if task is None:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _debounced_check(self, generation: int, selected: date) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await self._check(generation, selected)

    async def _check(self, generation: int, selected: date) -> None:
        self.checking = True
        try:
            quantity = await self.availability_client.get_available_quantity(
                self.item_id, self.kind, selected
            )
        except Exception as exc:
            _logger.warning(
                "Availability check failed for %s %s on %s: %s",
                self.kind,
                self.item_id,
                selected,
                exc,
            )
            if generation == self._generation:
                self.checking = False
                self.available_quantity = 0
                self.error = CHECK_FAILED_MESSAGE
            return
        if generation != self._generation:
            return
        self.checking = False
        self.available_quantity = max(0, quantity)
        if self.available_quantity > 0 or not self.user_id:
            return

        self.checking_subscription = True
        try:
            subscribed = await self.stock_client.is_subscribed(
                self.user_id, self.item_id, self.kind, selected
            )
        except Exception as exc:
            _logger.warning("Subscription check failed: %s", exc)
            subscribed = False
        if generation != self._generation:
            return
        self.checking_subscription = False
        self.subscription_known = True
        self.subscribed = subscribed

    async def _close_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.close()

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._check_task is not None and not self._check_task.done():
            self._check_task.cancel()
        self._check_task = None


@dataclass
class RestockSubscriptionService:
    """Restock subscriptions held by one user."""

    stock_client: StockNotificationClient
    user_id: str

    async def list_active(self) -> list[StockSubscription]:
        """Return the user's subscriptions, earliest requested date first."""
        subscriptions = await self.stock_client.list_subscriptions(self.user_id)
        return sorted(
            subscriptions,
            key=lambda sub: (sub.requested_date is None, sub.requested_date or date.min),
        )

    async def cancel(self, item_id: str, kind: ItemKind) -> None:
        """Drop every subscription for an item."""
        await self.stock_client.unsubscribe(self.user_id, item_id, kind)
        _logger.info("Cancelled restock subscription for %s %s", kind, item_id)
