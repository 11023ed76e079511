"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import date

import pytest

from booking_client.adapters.availability_client import (
    AvailabilityClient,
    StockNotificationClient,
)
from booking_client.adapters.notification_client import NotificationFeedClient
from booking_client.adapters.order_client import OrderClient
from booking_client.config import Settings
from booking_client.containers import SessionContainer
from booking_client.domain.availability import StockSubscription
from booking_client.domain.catalog import (
    DishItem,
    InventoryItem,
    ItemKind,
    PlateItem,
    ThemeItem,
    Vendor,
)
from booking_client.domain.errors import RemoteCallError
from booking_client.domain.notifications import NotificationFeed, NotificationRecord
from booking_client.domain.orders import CreatedOrder, OrderStatus, VendorOrderRequest
from booking_client.domain.session import SessionUser, UserType
from booking_client.services.cart import CartStore
from booking_client.services.checkout import CheckoutService
from booking_client.services.notifications import NotificationReconciler
from booking_client.services.orders import OrderSubmissionService, OrderTrackingService

BLOOM = Vendor(business_id="biz-1", business_name="Bloom Events")
FEAST = Vendor(business_id="biz-2", business_name="Feast Catering")


def make_theme(theme_id: str = "t-1", price_range: str = "$1,200 - $1,500") -> ThemeItem:
    return ThemeItem(
        theme_id=theme_id,
        name="Garden Party",
        description="Outdoor florals",
        price_range=price_range,
        category="Wedding",
    )


def make_inventory(inventory_id: str = "i-1", price: float = 25.0) -> InventoryItem:
    return InventoryItem(
        inventory_id=inventory_id,
        name="Folding chair",
        description="White chair",
        price=price,
        category="Furniture",
    )


def make_plate(plate_id: str = "p-1", price: float = 500.0) -> PlateItem:
    return PlateItem(plate_id=plate_id, name="Deluxe plate", description="", price=price)


def make_dish(dish_id: str = "d-1", price: float = 12.5) -> DishItem:
    return DishItem(dish_id=dish_id, name="Samosa", description="", price=price)


def make_order(order_id: int, request: VendorOrderRequest) -> CreatedOrder:
    return CreatedOrder.from_payload(
        {
            "orderId": order_id,
            "userId": request.user_id,
            "customerName": request.form.customer_name,
            "customerEmail": request.form.customer_email,
            "customerPhone": request.form.customer_phone,
            "deliveryAddress": request.form.delivery_address,
            "deliveryDate": request.form.delivery_date,
            "status": "PENDING",
            "totalAmount": sum(item.item_price * item.quantity for item in request.items),
            "orderItems": [
                {
                    "itemId": item.item_id,
                    "itemName": item.item_name,
                    "itemPrice": item.item_price,
                    "quantity": item.quantity,
                    "itemType": item.item_type,
                    "businessId": item.business_id,
                    "businessName": item.business_name,
                }
                for item in request.items
            ],
        }
    )


def make_record(notification_id: int, is_read: bool = False) -> NotificationRecord:
    return NotificationRecord(
        notification_id=notification_id,
        is_read=is_read,
        message=f"Notification {notification_id}",
        created_at=None,
    )


@dataclass
class FakeOrderClient(OrderClient):
    """Order client that records requests and fails for chosen vendors."""

    failures: dict[str, Exception] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    requests: list[VendorOrderRequest] = field(default_factory=list)
    orders: dict[int, CreatedOrder] = field(default_factory=dict)
    status_updates: list[tuple[int | str, OrderStatus]] = field(default_factory=list)

    async def create_order(self, request: VendorOrderRequest) -> CreatedOrder:
        self.requests.append(request)
        delay = self.delays.get(request.business_id)
        if delay:
            await asyncio.sleep(delay)
        failure = self.failures.get(request.business_id)
        if failure is not None:
            raise failure
        order = make_order(len(self.orders) + 1, request)
        self.orders[int(order.order_id)] = order
        return order

    async def get_order(self, order_id: int | str) -> CreatedOrder:
        return self.orders[int(order_id)]

    async def list_orders_for_user(self, user_id: str) -> list[CreatedOrder]:
        return [order for order in self.orders.values() if order.user_id == user_id]

    async def list_orders_for_business(self, business_id: str) -> list[CreatedOrder]:
        return [
            order
            for order in self.orders.values()
            if any(item.business_id == business_id for item in order.items)
        ]

    async def update_status(
        self, order_id: int | str, status: OrderStatus
    ) -> CreatedOrder:
        self.status_updates.append((order_id, status))
        order = self.orders[int(order_id)]
        updated = CreatedOrder(
            order_id=order.order_id,
            user_id=order.user_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            delivery_address=order.delivery_address,
            delivery_date=order.delivery_date,
            status=status.value,
            total_amount=order.total_amount,
            items=order.items,
        )
        self.orders[int(order_id)] = updated
        return updated


@dataclass
class FakeAvailabilityClient(AvailabilityClient):
    """Availability client with per-date stock and a call log."""

    quantities: dict[date, int] = field(default_factory=dict)
    failing_dates: set[date] = field(default_factory=set)
    delay: float = 0.0
    calls: list[date] = field(default_factory=list)

    async def get_available_quantity(
        self, item_id: str, kind: ItemKind, on_date: date
    ) -> int:
        self.calls.append(on_date)
        if self.delay:
            await asyncio.sleep(self.delay)
        if on_date in self.failing_dates:
            raise RemoteCallError("availability service down", status_code=503)
        return self.quantities.get(on_date, 0)


@dataclass
class FakeStockNotificationClient(StockNotificationClient):
    """Stock client keeping subscriptions in memory, unique per user, item and date."""

    subscriptions: dict[tuple[str, str, str, date | None], StockSubscription] = field(
        default_factory=dict
    )
    subscribe_calls: int = 0
    check_calls: int = 0
    fail_checks: bool = False
    fail_subscribe: bool = False
    delay: float = 0.0

    async def is_subscribed(
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind,
        requested_date: date | None = None,
    ) -> bool:
        self.check_calls += 1
        await asyncio.sleep(self.delay)
        if self.fail_checks:
            raise RemoteCallError("check failed", status_code=500)
        return (user_id, item_id, kind.value.upper(), requested_date) in self.subscriptions

    async def subscribe(  # noqa: PLR0913
        self,
        user_id: str,
        item_id: str,
        kind: ItemKind,
        item_name: str,
        business_id: str,
        requested_date: date | None = None,
    ) -> StockSubscription:
        self.subscribe_calls += 1
        await asyncio.sleep(self.delay)
        if self.fail_subscribe:
            raise RemoteCallError("Already subscribed", status_code=409)
        subscription = StockSubscription(
            notification_id=self.subscribe_calls,
            user_id=user_id,
            item_id=item_id,
            item_type=kind.value.upper(),
            item_name=item_name,
            business_id=business_id,
            requested_date=requested_date,
        )
        key = (user_id, item_id, kind.value.upper(), requested_date)
        self.subscriptions[key] = subscription
        return subscription

    async def unsubscribe(self, user_id: str, item_id: str, kind: ItemKind) -> None:
        self.subscriptions = {
            key: value
            for key, value in self.subscriptions.items()
            if key[:3] != (user_id, item_id, kind.value.upper())
        }

    async def list_subscriptions(self, user_id: str) -> list[StockSubscription]:
        return [sub for key, sub in self.subscriptions.items() if key[0] == user_id]


@dataclass
class FakeNotificationClient(NotificationFeedClient):
    """Feed client serving scripted server state."""

    records: dict[int, NotificationRecord] = field(default_factory=dict)
    fail_mark_read: bool = False
    fail_mark_all_read: bool = False
    fail_fetch: Exception | None = None
    apply_writes: bool = True
    fetches: int = 0
    read_calls: list[int] = field(default_factory=list)
    read_all_calls: list[str] = field(default_factory=list)

    def seed(self, *records: NotificationRecord) -> None:
        for record in records:
            self.records[record.notification_id] = record

    async def fetch_feed(self, owner_id: str) -> NotificationFeed:
        self.fetches += 1
        if self.fail_fetch is not None:
            raise self.fail_fetch
        records = sorted(self.records.values(), key=lambda r: r.notification_id)
        unread = sum(1 for record in records if not record.is_read)
        return NotificationFeed(records=records, unread_count=unread)

    async def mark_read(self, notification_id: int) -> None:
        self.read_calls.append(notification_id)
        if self.fail_mark_read:
            raise RemoteCallError("mark read failed", status_code=500)
        if self.apply_writes and notification_id in self.records:
            self.records[notification_id] = self.records[notification_id].mark_read()

    async def mark_all_read(self, owner_id: str) -> None:
        self.read_all_calls.append(owner_id)
        if self.fail_mark_all_read:
            raise RemoteCallError("mark all read failed", status_code=500)
        if self.apply_writes:
            self.records = {
                key: record.mark_read() for key, record in self.records.items()
            }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="http://backend.test/api/",
        availability_debounce_seconds=0.05,
        subscribe_close_delay_seconds=0.01,
        mark_read_refresh_delay_seconds=0.01,
        client_notification_poll_seconds=60.0,
        vendor_notification_poll_seconds=60.0,
    )


@pytest.fixture
def client_user() -> SessionUser:
    return SessionUser(
        user_id="0771234567",
        user_type=UserType.CLIENT,
        email="amal@example.com",
        full_name="Amal Perera",
    )


@pytest.fixture
def order_client() -> FakeOrderClient:
    return FakeOrderClient()


@pytest.fixture
def notification_client() -> FakeNotificationClient:
    return FakeNotificationClient()


@pytest.fixture
def availability_client() -> FakeAvailabilityClient:
    return FakeAvailabilityClient()


@pytest.fixture
def stock_client() -> FakeStockNotificationClient:
    return FakeStockNotificationClient()


@pytest.fixture
def cart() -> CartStore:
    return CartStore()


@pytest.fixture
def session_factory(
    order_client: FakeOrderClient,
    notification_client: FakeNotificationClient,
    availability_client: FakeAvailabilityClient,
    stock_client: FakeStockNotificationClient,
):
    """Factory building session containers around the in-memory fakes."""
    closed: list[str] = []

    def factory(settings: Settings, user: SessionUser, token: str) -> SessionContainer:
        cart = CartStore()
        submission = OrderSubmissionService(order_client)
        reconciler = NotificationReconciler(
            client=notification_client,
            owner_id=user.user_id,
            poll_interval=settings.client_notification_poll_seconds,
            mark_read_refresh_delay=settings.mark_read_refresh_delay_seconds,
        )

        async def close_resources() -> None:
            await reconciler.stop()
            closed.append(user.user_id)

        container = SessionContainer(
            settings=settings,
            user=user,
            cart=cart,
            order_submission_service=submission,
            checkout_service=CheckoutService(cart=cart, submission_service=submission),
            order_tracking_service=OrderTrackingService(order_client),
            notification_reconciler=reconciler,
            availability_client=availability_client,
            stock_client=stock_client,
            close_resources=close_resources,
        )
        reconciler.on_session_expired = container.mark_expired
        return container

    factory.closed = closed  # type: ignore[attr-defined]
    return factory
