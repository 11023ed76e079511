"""Catalogue items that can be placed in the cart."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from booking_client.domain.errors import UnclassifiableItemError


class ItemKind(StrEnum):
    """Kinds of bookable items."""

    THEME = "theme"
    INVENTORY = "inventory"
    PLATE = "plate"
    DISH = "dish"


@dataclass(frozen=True)
class Vendor:
    """Business that owns a catalogue item."""

    business_id: str
    business_name: str


@dataclass(frozen=True)
class ThemeItem:
    """Themed event package priced by a free-text range."""

    theme_id: str
    name: str
    description: str
    price_range: str
    category: str
    kind: ItemKind = field(default=ItemKind.THEME, init=False)

    @property
    def item_id(self) -> str:
        return self.theme_id


@dataclass(frozen=True)
class InventoryItem:
    """Rentable equipment."""

    inventory_id: str
    name: str
    description: str
    price: float
    category: str
    kind: ItemKind = field(default=ItemKind.INVENTORY, init=False)

    @property
    def item_id(self) -> str:
        return self.inventory_id


@dataclass(frozen=True)
class PlateItem:
    """Catering plate composed of selectable dishes."""

    plate_id: str
    name: str
    description: str
    price: float
    image: str | None = None
    dish_type: str | None = None
    kind: ItemKind = field(default=ItemKind.PLATE, init=False)

    @property
    def item_id(self) -> str:
        return self.plate_id


@dataclass(frozen=True)
class DishItem:
    """Single dish sold on its own."""

    dish_id: str
    name: str
    description: str
    price: float
    image: str | None = None
    category: str = "Food"
    availability_dates: tuple[date, ...] = ()
    kind: ItemKind = field(default=ItemKind.DISH, init=False)

    @property
    def item_id(self) -> str:
        return self.dish_id


CatalogItem = ThemeItem | InventoryItem | PlateItem | DishItem

_IDENTITY_FIELDS = {
    "themeId": ItemKind.THEME,
    "inventoryId": ItemKind.INVENTORY,
    "plateId": ItemKind.PLATE,
    "dishId": ItemKind.DISH,
}


def parse_catalog_item(payload: dict[str, object]) -> CatalogItem:
    """Build a tagged catalogue item from a raw API payload.

    Exactly one identity field must be present; the kind is fixed here so
    nothing downstream has to inspect field names again.
    """
    present = [
        kind for key, kind in _IDENTITY_FIELDS.items() if payload.get(key) is not None
    ]
    if len(present) != 1:
        raise UnclassifiableItemError(
            f"Expected exactly one item identity field, found {len(present)}"
        )
    kind = present[0]
    if kind is ItemKind.THEME:
        return ThemeItem(
            theme_id=str(payload["themeId"]),
            name=str(payload.get("themeName") or ""),
            description=str(payload.get("themeDescription") or ""),
            price_range=str(payload.get("priceRange") or ""),
            category=str(payload.get("themeCategory") or ""),
        )
    if kind is ItemKind.INVENTORY:
        return InventoryItem(
            inventory_id=str(payload["inventoryId"]),
            name=str(payload.get("inventoryName") or ""),
            description=str(payload.get("inventoryDescription") or ""),
            price=_to_float(payload.get("price")),
            category=str(payload.get("inventoryCategory") or ""),
        )
    if kind is ItemKind.PLATE:
        return PlateItem(
            plate_id=str(payload["plateId"]),
            name=str(payload.get("dishName") or ""),
            description=str(payload.get("dishDescription") or ""),
            price=_to_float(payload.get("price")),
            image=_optional_str(payload.get("plateImage")),
            dish_type=_optional_str(payload.get("dishType")),
        )
    return DishItem(
        dish_id=str(payload["dishId"]),
        name=str(payload.get("dishName") or ""),
        description=str(payload.get("dishDescription") or ""),
        price=_to_float(payload.get("price")),
        image=_optional_str(payload.get("dishImage") or payload.get("imageUrl")),
        category=str(payload.get("dishCategory") or "Food"),
        availability_dates=_parse_dates(payload.get("dishAvailabilityDates")),
    )


def parse_vendor(payload: dict[str, object]) -> Vendor:
    """Build a vendor from a business payload."""
    return Vendor(
        business_id=str(payload["businessId"]),
        business_name=str(payload.get("businessName") or ""),
    )


def _to_float(value: object) -> float:
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _parse_dates(value: object) -> tuple[date, ...]:
    if not isinstance(value, list):
        return ()
    parsed: list[date] = []
    for raw in value:
        try:
            parsed.append(date.fromisoformat(str(raw)))
        except ValueError:
            continue
    return tuple(parsed)
