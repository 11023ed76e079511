"""Domain models for orders."""

import json
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from booking_client.domain.cart import CartLineItem
from booking_client.domain.catalog import ItemKind


class OrderStatus(StrEnum):
    """Lifecycle states of an order on the server."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ClearPolicy(StrEnum):
    """What to remove from the cart after a submission with at least one success."""

    ALL = "all"
    SUCCEEDED_VENDORS = "succeeded_vendors"


@dataclass(frozen=True)
class OrderForm:
    """Customer and delivery details shared by every vendor order."""

    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_address: str
    delivery_date: str
    special_notes: str | None = None


@dataclass(frozen=True)
class OrderItemRecord:
    """Cart line item translated to the order API shape."""

    item_id: str
    item_name: str
    item_price: float
    quantity: int
    item_type: str
    business_id: str
    business_name: str
    image_url: str | None = None
    booking_date: date | None = None
    selected_dishes: str | None = None

    @classmethod
    def from_line_item(cls, item: CartLineItem) -> "OrderItemRecord":
        selected = None
        if item.kind is ItemKind.PLATE and item.selected_dishes:
            selected = json.dumps([dish.to_payload() for dish in item.selected_dishes])
        return cls(
            item_id=item.item_id,
            item_name=item.name,
            item_price=item.price,
            quantity=item.quantity,
            item_type=item.kind.value,
            business_id=item.business_id,
            business_name=item.business_name,
            image_url=item.image,
            booking_date=item.booking_date,
            selected_dishes=selected,
        )

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "itemId": self.item_id,
            "itemName": self.item_name,
            "itemPrice": self.item_price,
            "quantity": self.quantity,
            "itemType": self.item_type,
            "businessId": self.business_id,
            "businessName": self.business_name,
            "imageUrl": self.image_url,
        }
        if self.booking_date is not None:
            payload["bookingDate"] = self.booking_date.isoformat()
        if self.selected_dishes is not None:
            payload["selectedDishes"] = self.selected_dishes
        return payload


@dataclass(frozen=True)
class VendorOrderRequest:
    """One order-creation request covering a single vendor's items."""

    user_id: str
    business_id: str
    business_name: str
    form: OrderForm
    items: tuple[OrderItemRecord, ...]

    def to_payload(self) -> dict[str, object]:
        return {
            "userId": self.user_id,
            "customerName": self.form.customer_name,
            "customerEmail": self.form.customer_email,
            "customerPhone": self.form.customer_phone,
            "deliveryAddress": self.form.delivery_address,
            "deliveryDate": self.form.delivery_date,
            "specialNotes": self.form.special_notes or "",
            "items": [item.to_payload() for item in self.items],
        }


@dataclass(frozen=True)
class CreatedOrderItem:
    """Order item as echoed by the server."""

    order_item_id: int | None
    item_id: str
    item_name: str
    item_price: float
    quantity: int
    item_type: str
    business_id: str
    business_name: str
    image_url: str | None = None
    booking_date: str | None = None
    selected_dishes: str | None = None


@dataclass(frozen=True)
class CreatedOrder:
    """Order record returned by the order API."""

    order_id: int | str
    user_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_address: str
    delivery_date: str
    status: str
    total_amount: float = 0.0
    order_date: str | None = None
    special_notes: str | None = None
    items: tuple[CreatedOrderItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "CreatedOrder":
        raw_items = payload.get("orderItems") or []
        items = tuple(
            CreatedOrderItem(
                order_item_id=raw.get("orderItemId"),
                item_id=str(raw.get("itemId") or ""),
                item_name=str(raw.get("itemName") or ""),
                item_price=float(raw.get("itemPrice") or 0.0),
                quantity=int(raw.get("quantity") or 0),
                item_type=str(raw.get("itemType") or ""),
                business_id=str(raw.get("businessId") or ""),
                business_name=str(raw.get("businessName") or ""),
                image_url=raw.get("imageUrl"),
                booking_date=raw.get("bookingDate"),
                selected_dishes=raw.get("selectedDishes"),
            )
            for raw in raw_items
            if isinstance(raw, dict)
        )
        return cls(
            order_id=payload["orderId"],
            user_id=str(payload.get("userId") or ""),
            customer_name=str(payload.get("customerName") or ""),
            customer_email=str(payload.get("customerEmail") or ""),
            customer_phone=str(payload.get("customerPhone") or ""),
            delivery_address=str(payload.get("deliveryAddress") or ""),
            delivery_date=str(payload.get("deliveryDate") or ""),
            status=str(payload.get("status") or OrderStatus.PENDING),
            total_amount=float(payload.get("totalAmount") or 0.0),
            order_date=payload.get("orderDate"),
            special_notes=payload.get("specialNotes"),
            items=items,
        )


@dataclass(frozen=True)
class VendorOrderOutcome:
    """Result of one vendor's order request: a created order or an error."""

    business_id: str
    business_name: str
    request: VendorOrderRequest
    order: CreatedOrder | None = None
    error: str | None = None
    session_expired: bool = False

    @property
    def succeeded(self) -> bool:
        return self.order is not None


_DEFAULT_ORDER_LABEL = "Order"


def order_item_summary(order: CreatedOrder | None) -> str:
    """Return the first item name plus a count of the remaining items."""
    if order is None:
        return _DEFAULT_ORDER_LABEL
    names = [item.item_name.strip() for item in order.items if item.item_name.strip()]
    if not names:
        return _DEFAULT_ORDER_LABEL
    extra = len(names) - 1
    if extra <= 0:
        return names[0]
    suffix = "s" if extra > 1 else ""
    return f"{names[0]} + {extra} more item{suffix}"


def order_display_title(order: CreatedOrder | None) -> str:
    """Human readable order title for lists and notifications."""
    summary = order_item_summary(order)
    if summary != _DEFAULT_ORDER_LABEL:
        return summary
    if order is not None and order.order_id not in (None, ""):
        return f"Order #{order.order_id}"
    return _DEFAULT_ORDER_LABEL
