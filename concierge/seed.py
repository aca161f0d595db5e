"""Default seed providers used when no catalog has been persisted."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .estimator import MS_PER_DAY, estimate_days
from .models import TrackedItem


@dataclass(frozen=True)
class SeedItem:
    id: str
    name: str
    icon: str
    total_days: int
    days_ago: int  # how long before "now" tracking is pretended to start
    estimated_price: float


DEMO_ITEMS: tuple[SeedItem, ...] = (
    SeedItem("1", "Café", "☕", total_days=15, days_ago=13, estimated_price=12.90),
    SeedItem("2", "Leite", "🥛", total_days=7, days_ago=2, estimated_price=4.50),
    SeedItem("3", "Arroz", "🍚", total_days=30, days_ago=18, estimated_price=8.99),
)


class SeedProvider(ABC):
    """Supplies tracked items for an empty installation."""

    @abstractmethod
    def items(self, now: int) -> list[TrackedItem]:
        """Return the seed items as of ``now`` (ms since epoch)."""
        ...


class DemoSeed(SeedProvider):
    """Fixed demo set whose offsets are relative to ``now``.

    The items are never persisted, so they always show the same
    pre-computed depletion and never overwrite real user data.
    """

    def __init__(self, seed_items: tuple[SeedItem, ...] = DEMO_ITEMS) -> None:
        self._seed_items = seed_items

    def items(self, now: int) -> list[TrackedItem]:
        tracked = []
        for s in self._seed_items:
            start = now - s.days_ago * MS_PER_DAY
            est = estimate_days(s.total_days, start, now)
            tracked.append(
                TrackedItem(
                    id=s.id,
                    name=s.name,
                    icon=s.icon,
                    start_epoch=start,
                    total_days=est.total_days,
                    days_left=est.days_left,
                    status=est.status,
                    estimated_price=s.estimated_price,
                )
            )
        return tracked


DEMO_SEED = DemoSeed()
