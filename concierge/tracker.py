"""Inventory tracker: the owning service for tracked consumables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .catalog import CatalogRepository
from .estimator import STATUS_URGENT, estimate
from .models import CatalogProduct, TrackedItem
from .seed import DEMO_SEED, SeedProvider
from .timestamps import TimestampStore, now_ms

logger = logging.getLogger(__name__)

MONTHLY_SAVINGS = 47.80

Subscriber = Callable[[tuple[TrackedItem, ...]], None]


@dataclass(frozen=True)
class DashboardStats:
    items_running_out: int
    avg_days_to_refill: int
    pending_items: int
    monthly_savings: float


class InventoryTracker:
    """Holds the current set of tracked items and recomputes it on demand.

    The tracker reads the persisted catalog and start times, assigns start
    times to newly observed products, runs every product through the
    estimator and publishes the result to subscribers. Scheduling lives
    outside; :meth:`refresh` is the single recompute entry point.
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        timestamps: TimestampStore,
        seed: SeedProvider | None = DEMO_SEED,
        *,
        clock: Callable[[], int] = now_ms,
        prune_orphans: bool = True,
    ) -> None:
        self._catalog = catalog
        self._timestamps = timestamps
        self._seed = seed
        self._clock = clock
        self._prune_orphans = prune_orphans
        self._items: tuple[TrackedItem, ...] = ()
        self._subscribers: list[Subscriber] = []
        self._seeded = False

    @property
    def items(self) -> tuple[TrackedItem, ...]:
        return self._items

    @property
    def seeded(self) -> bool:
        """True when the current items come from the seed provider."""
        return self._seeded

    def get(self, item_id: str) -> TrackedItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for item updates; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def load_initial(self, now: int | None = None) -> tuple[TrackedItem, ...]:
        """Build the first item set, assigning start times to new products."""
        return self._recompute(self._clock() if now is None else now, initial=True)

    def refresh(self, now: int | None = None) -> tuple[TrackedItem, ...]:
        """Re-read persisted state and recompute every item."""
        return self._recompute(self._clock() if now is None else now, initial=False)

    def stats(self, pending_items: int = 0) -> DashboardStats:
        items = self._items
        avg = round(sum(i.days_left for i in items) / len(items)) if items else 0
        return DashboardStats(
            items_running_out=sum(1 for i in items if i.status == STATUS_URGENT),
            avg_days_to_refill=avg,
            pending_items=pending_items,
            monthly_savings=MONTHLY_SAVINGS,
        )

    def _recompute(self, now: int, *, initial: bool) -> tuple[TrackedItem, ...]:
        products = self._catalog.load()

        if products is None:
            if self._seed is None:
                items: list[TrackedItem] = []
            else:
                items = self._seed.items(now)
                logger.debug("No catalog persisted; using %d seed item(s)", len(items))
            self._seeded = self._seed is not None
        else:
            ids = [p.id for p in products]
            # ensure() is a no-op for known ids, so new products that show up
            # between refreshes get their start time here too.
            times = self._timestamps.ensure(ids, now)
            if self._prune_orphans and not initial:
                self._timestamps.prune(ids)
            items = [self._track(p, times[p.id], now) for p in products]
            self._seeded = False

        self._items = tuple(items)
        logger.debug("Recomputed %d tracked item(s)", len(self._items))
        self._notify()
        return self._items

    @staticmethod
    def _track(product: CatalogProduct, start_epoch: int, now: int) -> TrackedItem:
        est = estimate(product.quantity, start_epoch, now)
        return TrackedItem(
            id=product.id,
            name=product.name,
            icon=product.icon,
            start_epoch=start_epoch,
            total_days=est.total_days,
            days_left=est.days_left,
            status=est.status,
            estimated_price=product.price,
        )

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._items)
            except Exception:
                logger.exception("Inventory subscriber %r failed", callback)
