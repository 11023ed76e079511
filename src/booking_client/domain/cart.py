"""Domain models for the shopping cart."""

from dataclasses import dataclass, field
from datetime import date

from booking_client.domain.catalog import ItemKind


@dataclass(frozen=True)
class SelectedDish:
    """Dish chosen as part of a plate."""

    dish_id: str
    dish_name: str
    dish_price: float
    quantity: int

    def to_payload(self) -> dict[str, object]:
        return {
            "dishId": self.dish_id,
            "dishName": self.dish_name,
            "dishPrice": self.dish_price,
            "quantity": self.quantity,
        }


@dataclass
class CartLineItem:
    """One cart entry, unique by item id and kind."""

    item_id: str
    kind: ItemKind
    name: str
    description: str
    price: float
    business_id: str
    business_name: str
    quantity: int
    category: str
    image: str | None = None
    booking_date: date | None = None
    selected_dishes: tuple[SelectedDish, ...] = field(default_factory=tuple)

    @property
    def key(self) -> tuple[str, ItemKind]:
        return (self.item_id, self.kind)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class CartSnapshot:
    """Read-only projection of the cart."""

    items: tuple[CartLineItem, ...]
    total_items: int
    total_price: float
    business_id: str | None
