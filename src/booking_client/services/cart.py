"""In-memory cart store."""

import logging
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date

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
from booking_client.domain.errors import (
    InvalidPriceError,
    InvalidQuantityError,
    UnclassifiableItemError,
)

_logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_RANGE_SEPARATOR = re.compile(r"-|\bto\b", re.IGNORECASE)


@dataclass
class CartStore:
    """Holds the session's cart line items.

    Operations are synchronous and validate their input before touching the
    item list, so a rejected call leaves the cart exactly as it was. Totals are
    computed from the line items on every read.
    """

    _items: list[CartLineItem] = field(default_factory=list)

    @property
    def items(self) -> tuple[CartLineItem, ...]:
        return tuple(replace(item) for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_price(self) -> float:
        return sum(item.line_total for item in self._items)

    def snapshot(self) -> CartSnapshot:
        """Return a read-only projection of the cart."""
        vendor_ids = {item.business_id for item in self._items}
        return CartSnapshot(
            items=self.items,
            total_items=self.item_count,
            total_price=self.total_price,
            business_id=vendor_ids.pop() if len(vendor_ids) == 1 else None,
        )

    def add(  # noqa: PLR0913
        self,
        item: CatalogItem,
        vendor: Vendor,
        booking_date: date | None = None,
        selected_dishes: Iterable[SelectedDish] | None = None,
        quantity: int = 1,
    ) -> CartLineItem:
        """Add an item, or bump the quantity of the matching line item."""
        _require_quantity(quantity)
        dishes = tuple(selected_dishes or ())
        candidate = _build_line_item(item, vendor, booking_date, dishes, quantity)
        existing = self._find(candidate.item_id, candidate.kind)
        if existing is not None:
            existing.quantity += quantity
            return replace(existing)
        self._items.append(candidate)
        return replace(candidate)

    def remove(self, item_id: str, kind: ItemKind) -> None:
        """Remove a line item; unknown items are ignored."""
        self._items = [item for item in self._items if item.key != (item_id, kind)]

    def update_quantity(self, item_id: str, kind: ItemKind, quantity: int) -> None:
        """Set a line item's quantity, removing it when the quantity is not positive."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantityError(f"Quantity must be an integer, got {quantity!r}")
        if quantity <= 0:
            self.remove(item_id, kind)
            return
        existing = self._find(item_id, kind)
        if existing is not None:
            existing.quantity = quantity

    def update_booking_date(
        self, item_id: str, kind: ItemKind, booking_date: date | None
    ) -> None:
        """Set or clear the booking date of one line item."""
        existing = self._find(item_id, kind)
        if existing is not None:
            existing.booking_date = booking_date

    def contains(self, item_id: str, kind: ItemKind) -> bool:
        return self._find(item_id, kind) is not None

    def clear(self) -> None:
        self._items = []

    def remove_vendors(self, business_ids: Iterable[str]) -> None:
        """Drop every line item owned by the given vendors."""
        doomed = set(business_ids)
        self._items = [item for item in self._items if item.business_id not in doomed]

    def earliest_booking_date(self) -> date | None:
        dates = [item.booking_date for item in self._items if item.booking_date]
        return min(dates) if dates else None

    def _find(self, item_id: str, kind: ItemKind) -> CartLineItem | None:
        for item in self._items:
            if item.key == (item_id, kind):
                return item
        return None


def parse_price_range(price_range: str | None) -> tuple[float, float] | None:
    """Read the bounds of a free-text price range such as "5,000 - 25,000".

    Currency symbols and thousands separators are ignored. A single price
    yields equal bounds; text without any number yields None.
    """
    if not price_range:
        return None
    numbers = [float(raw) for raw in _NUMBER.findall(price_range.replace(",", ""))]
    if not numbers:
        return None
    if len(numbers) > 1 and _RANGE_SEPARATOR.search(price_range) and numbers[0] <= numbers[1]:
        return numbers[0], numbers[1]
    return numbers[0], numbers[0]


def parse_theme_price(price_range: str | None) -> float:
    """Unit price of a theme: the lower bound of its price range, or 0.

    Bounds are parsed separately rather than by stripping every non-numeric
    character, which would read "1,200 - 1,500" as 12001500.
    """
    bounds = parse_price_range(price_range)
    return bounds[0] if bounds else 0.0


def plate_unit_price(base_price: float, selected_dishes: Iterable[SelectedDish]) -> float:
    """Base plate price plus the price of every selected dish."""
    return base_price + sum(dish.dish_price * dish.quantity for dish in selected_dishes)


def _build_line_item(
    item: CatalogItem,
    vendor: Vendor,
    booking_date: date | None,
    dishes: tuple[SelectedDish, ...],
    quantity: int,
) -> CartLineItem:
    if isinstance(item, ThemeItem):
        price = parse_theme_price(item.price_range)
        image = None
        category = item.category
    elif isinstance(item, InventoryItem):
        price = item.price
        image = None
        category = item.category
    elif isinstance(item, PlateItem):
        for dish in dishes:
            _require_quantity(dish.quantity)
            _require_price(dish.dish_price)
        price = plate_unit_price(item.price, dishes)
        image = item.image
        category = "Food"
    elif isinstance(item, DishItem):
        price = item.price
        image = item.image
        category = item.category
    else:
        raise UnclassifiableItemError(
            f"Cannot add {type(item).__name__} to the cart"
        )
    _require_price(price)
    if dishes and not isinstance(item, PlateItem):
        _logger.warning("Ignoring selected dishes for %s item %s", item.kind, item.item_id)
        dishes = ()
    return CartLineItem(
        item_id=item.item_id,
        kind=item.kind,
        name=item.name,
        description=item.description,
        price=price,
        business_id=vendor.business_id,
        business_name=vendor.business_name,
        quantity=quantity,
        category=category,
        image=image,
        booking_date=booking_date,
        selected_dishes=dishes,
    )


def _require_quantity(quantity: object) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(f"Quantity must be a positive integer, got {quantity!r}")


def _require_price(price: object) -> None:
    if (
        isinstance(price, bool)
        or not isinstance(price, int | float)
        or not math.isfinite(price)
        or price < 0
    ):
        raise InvalidPriceError(f"Price must be a non-negative number, got {price!r}")
