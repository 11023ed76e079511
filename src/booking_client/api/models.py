"""Pydantic models for the local session API."""

from datetime import date

from pydantic import BaseModel, Field

from booking_client.domain.availability import StockSubscription
from booking_client.domain.cart import CartLineItem, CartSnapshot, SelectedDish
from booking_client.domain.catalog import (
    CatalogItem,
    DishItem,
    InventoryItem,
    ItemKind,
    PlateItem,
    ThemeItem,
    Vendor,
)
from booking_client.domain.errors import UnclassifiableItemError
from booking_client.domain.notifications import NotificationRecord
from booking_client.domain.orders import CreatedOrder, OrderForm, order_display_title
from booking_client.domain.session import UserType


class SessionRequest(BaseModel):
    """Identity and bearer token handed over by the sign-in flow."""

    user_id: str
    user_type: UserType
    token: str
    email: str | None = None
    full_name: str | None = None


class SelectedDishModel(BaseModel):
    """Dish picked for a plate."""

    dish_id: str
    dish_name: str
    dish_price: float
    quantity: int = 1

    def to_domain(self) -> SelectedDish:
        return SelectedDish(
            dish_id=self.dish_id,
            dish_name=self.dish_name,
            dish_price=self.dish_price,
            quantity=self.quantity,
        )


class CartItemRequest(BaseModel):
    """Catalogue item to add, tagged with its kind."""

    kind: ItemKind
    item_id: str
    name: str
    description: str = ""
    business_id: str
    business_name: str
    price: float | None = None
    price_range: str | None = None
    category: str | None = None
    image: str | None = None
    quantity: int = 1
    booking_date: date | None = None
    selected_dishes: list[SelectedDishModel] = Field(default_factory=list)

    def to_item(self) -> CatalogItem:
        """Build the tagged catalogue item this request describes."""
        if self.kind is ItemKind.THEME:
            return ThemeItem(
                theme_id=self.item_id,
                name=self.name,
                description=self.description,
                price_range=self.price_range or "",
                category=self.category or "",
            )
        if self.price is None:
            raise UnclassifiableItemError(f"A {self.kind} item needs a price")
        if self.kind is ItemKind.INVENTORY:
            return InventoryItem(
                inventory_id=self.item_id,
                name=self.name,
                description=self.description,
                price=self.price,
                category=self.category or "",
            )
        if self.kind is ItemKind.PLATE:
            return PlateItem(
                plate_id=self.item_id,
                name=self.name,
                description=self.description,
                price=self.price,
                image=self.image,
            )
        return DishItem(
            dish_id=self.item_id,
            name=self.name,
            description=self.description,
            price=self.price,
            image=self.image,
            category=self.category or "Food",
        )

    def to_vendor(self) -> Vendor:
        return Vendor(business_id=self.business_id, business_name=self.business_name)


class CartItemUpdate(BaseModel):
    """Partial update of one cart line item."""

    quantity: int | None = None
    booking_date: date | None = None
    clear_booking_date: bool = False


class CheckoutRequest(BaseModel):
    """Order form fields submitted at checkout."""

    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    delivery_address: str = ""
    delivery_date: str = ""
    special_notes: str | None = None

    def to_form(self) -> OrderForm:
        return OrderForm(
            customer_name=self.customer_name,
            customer_email=self.customer_email,
            customer_phone=self.customer_phone,
            delivery_address=self.delivery_address,
            delivery_date=self.delivery_date,
            special_notes=self.special_notes,
        )


class StatusUpdate(BaseModel):
    status: str


class CartLineModel(BaseModel):
    """Cart line item as returned by the API."""

    item_id: str
    kind: ItemKind
    name: str
    price: float
    quantity: int
    line_total: float
    business_id: str
    business_name: str
    booking_date: date | None = None
    selected_dishes: list[SelectedDishModel] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, item: CartLineItem) -> "CartLineModel":
        return cls(
            item_id=item.item_id,
            kind=item.kind,
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            line_total=item.line_total,
            business_id=item.business_id,
            business_name=item.business_name,
            booking_date=item.booking_date,
            selected_dishes=[
                SelectedDishModel(
                    dish_id=dish.dish_id,
                    dish_name=dish.dish_name,
                    dish_price=dish.dish_price,
                    quantity=dish.quantity,
                )
                for dish in item.selected_dishes
            ],
        )


class CartResponse(BaseModel):
    items: list[CartLineModel]
    total_items: int
    total_price: float
    business_id: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: CartSnapshot) -> "CartResponse":
        return cls(
            items=[CartLineModel.from_domain(item) for item in snapshot.items],
            total_items=snapshot.total_items,
            total_price=snapshot.total_price,
            business_id=snapshot.business_id,
        )


class OrderModel(BaseModel):
    """Created order summary."""

    order_id: int | str
    title: str
    business_names: list[str]
    status: str
    total_amount: float
    delivery_date: str

    @classmethod
    def from_domain(cls, order: CreatedOrder) -> "OrderModel":
        names = list(dict.fromkeys(item.business_name for item in order.items))
        return cls(
            order_id=order.order_id,
            title=order_display_title(order),
            business_names=names,
            status=order.status,
            total_amount=order.total_amount,
            delivery_date=order.delivery_date,
        )


class FailedVendorModel(BaseModel):
    business_id: str
    business_name: str
    error: str | None = None


class CheckoutResponse(BaseModel):
    """Orders created and vendors that failed."""

    orders: list[OrderModel]
    failed: list[FailedVendorModel]
    partial: bool
    cart: CartResponse


class NotificationModel(BaseModel):
    notification_id: int
    is_read: bool
    synced: bool
    message: str
    notification_type: str | None = None
    order_id: int | None = None

    @classmethod
    def from_domain(cls, record: NotificationRecord, synced: bool) -> "NotificationModel":
        return cls(
            notification_id=record.notification_id,
            is_read=record.is_read,
            synced=synced,
            message=record.message,
            notification_type=record.notification_type,
            order_id=record.order_id,
        )


class NotificationsResponse(BaseModel):
    notifications: list[NotificationModel]
    unread_count: int
    error: str | None = None


class StockSubscriptionModel(BaseModel):
    notification_id: int | None
    item_id: str
    item_type: str
    item_name: str
    business_id: str
    requested_date: date | None
    notified: bool

    @classmethod
    def from_domain(cls, subscription: StockSubscription) -> "StockSubscriptionModel":
        return cls(
            notification_id=subscription.notification_id,
            item_id=subscription.item_id,
            item_type=subscription.item_type,
            item_name=subscription.item_name,
            business_id=subscription.business_id,
            requested_date=subscription.requested_date,
            notified=subscription.notified,
        )
