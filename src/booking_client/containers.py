"""Dependency wiring for an authenticated session."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from booking_client.adapters.availability_client import (
    AvailabilityClient,
    HttpxAvailabilityClient,
    HttpxStockNotificationClient,
    StockNotificationClient,
)
from booking_client.adapters.http import create_http_client
from booking_client.adapters.notification_client import (
    HttpxClientNotificationClient,
    HttpxVendorNotificationClient,
)
from booking_client.adapters.order_client import HttpxOrderClient
from booking_client.config import Settings, normalize_base_url
from booking_client.domain.catalog import CatalogItem
from booking_client.domain.notifications import NotificationAudience
from booking_client.domain.session import SessionUser, UserType
from booking_client.services.availability import (
    AvailabilityChecker,
    RestockSubscriptionService,
)
from booking_client.services.cart import CartStore
from booking_client.services.checkout import CheckoutService
from booking_client.services.notifications import NotificationReconciler
from booking_client.services.orders import OrderSubmissionService, OrderTrackingService

_logger = logging.getLogger(__name__)


@dataclass
class SessionContainer:
    """Services owned by one signed-in user, torn down on logout."""

    settings: Settings
    user: SessionUser
    cart: CartStore
    order_submission_service: OrderSubmissionService
    checkout_service: CheckoutService
    order_tracking_service: OrderTrackingService
    notification_reconciler: NotificationReconciler
    availability_client: AvailabilityClient
    stock_client: StockNotificationClient
    close_resources: Callable[[], Awaitable[None]]
    expired: bool = False

    def availability_checker(
        self, item: CatalogItem, business_id: str | None = None
    ) -> AvailabilityChecker:
        """Create the state for a freshly opened booking-date dialog."""
        return AvailabilityChecker(
            availability_client=self.availability_client,
            stock_client=self.stock_client,
            item_id=item.item_id,
            kind=item.kind,
            item_name=item.name,
            business_id=business_id,
            user_id=self.user.user_id,
            debounce_seconds=self.settings.availability_debounce_seconds,
            close_delay_seconds=self.settings.subscribe_close_delay_seconds,
        )

    def restock_subscriptions(self) -> RestockSubscriptionService:
        return RestockSubscriptionService(self.stock_client, self.user.user_id)

    def start(self) -> None:
        """Start background polling; needs a running event loop."""
        self.notification_reconciler.start()

    def mark_expired(self) -> None:
        self.expired = True


def build_session(settings: Settings, user: SessionUser, token: str) -> SessionContainer:
    """Create the session services around one authenticated HTTP client."""
    http_client = create_http_client(
        normalize_base_url(settings.api_base_url),
        token,
        timeout_seconds=settings.http_timeout_seconds,
    )
    order_client = HttpxOrderClient(http_client)
    cart = CartStore()
    submission_service = OrderSubmissionService(order_client, debug=settings.debug)
    checkout_service = CheckoutService(
        cart=cart,
        submission_service=submission_service,
        clear_policy=settings.cart_clear_policy,
    )
    if user.user_type is UserType.VENDOR:
        reconciler = NotificationReconciler(
            client=HttpxVendorNotificationClient(http_client),
            owner_id=user.user_id,
            audience=NotificationAudience.VENDOR,
            poll_interval=settings.vendor_notification_poll_seconds,
            mark_read_refresh_delay=settings.mark_read_refresh_delay_seconds,
            debug=settings.debug,
        )
    else:
        reconciler = NotificationReconciler(
            client=HttpxClientNotificationClient(http_client),
            owner_id=user.user_id if user.user_type is UserType.CLIENT else None,
            audience=NotificationAudience.CLIENT,
            poll_interval=settings.client_notification_poll_seconds,
            mark_read_refresh_delay=settings.mark_read_refresh_delay_seconds,
            debug=settings.debug,
        )

    async def close_resources() -> None:
        await reconciler.stop()
        await http_client.aclose()

    container = SessionContainer(
        settings=settings,
        user=user,
        cart=cart,
        order_submission_service=submission_service,
        checkout_service=checkout_service,
        order_tracking_service=OrderTrackingService(order_client),
        notification_reconciler=reconciler,
        availability_client=HttpxAvailabilityClient(http_client),
        stock_client=HttpxStockNotificationClient(http_client),
        close_resources=close_resources,
    )
    reconciler.on_session_expired = container.mark_expired
    return container


SessionFactory = Callable[[Settings, SessionUser, str], SessionContainer]


@dataclass
class SessionHolder:
    """Owns at most one active session at a time."""

    settings: Settings
    factory: SessionFactory = build_session
    current: SessionContainer | None = field(default=None)

    async def open(self, user: SessionUser, token: str) -> SessionContainer:
        """Replace any active session with a new one and start its pollers."""
        await self.close()
        session = self.factory(self.settings, user, token)
        session.start()
        self.current = session
        _logger.info("Session opened for %s user %s", user.user_type, user.user_id)
        return session

    async def close(self) -> None:
        """Tear down the active session, if any."""
        session = self.current
        if session is None:
            return
        self.current = None
        await session.close_resources()
        _logger.info("Session closed for user %s", session.user.user_id)
