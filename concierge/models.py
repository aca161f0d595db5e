"""Data models for catalog products, tracked items and list entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_ICON = "📦"
DEFAULT_CATEGORY = "Outros"
DEFAULT_UNIT = "un"


@dataclass
class CatalogProduct:
    """A product registered by the catalog collaborator."""

    id: str
    name: str
    icon: str = DEFAULT_ICON
    price: float = 0.0
    quantity: Any = None  # raw on-hand quantity, may be missing or junk
    category: str = DEFAULT_CATEGORY
    unit: str = DEFAULT_UNIT

    @classmethod
    def from_dict(cls, data: dict) -> CatalogProduct:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            icon=data.get("icon") or DEFAULT_ICON,
            price=_as_price(data.get("price")),
            quantity=data.get("quantity"),
            category=data.get("category") or DEFAULT_CATEGORY,
            unit=data.get("unit") or DEFAULT_UNIT,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "quantity": self.quantity,
            "unit": self.unit,
            "icon": self.icon,
        }


@dataclass(frozen=True)
class TrackedItem:
    """A consumable with its computed depletion state."""

    id: str
    name: str
    icon: str
    start_epoch: int  # ms since epoch, fixed at first observation
    total_days: int
    days_left: int
    status: str  # success | warning | urgent
    estimated_price: float


@dataclass(frozen=True)
class ShoppingListEntry:
    """A snapshot of an item the user intends to buy."""

    id: str
    name: str
    icon: str
    priority: str  # urgent | warning | normal
    estimated_price: float

    @classmethod
    def from_dict(cls, data: dict) -> ShoppingListEntry:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            icon=data.get("icon") or DEFAULT_ICON,
            priority=data.get("priority") or "normal",
            estimated_price=_as_price(data.get("estimatedPrice")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "priority": self.priority,
            "estimatedPrice": self.estimated_price,
        }


def _as_price(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
