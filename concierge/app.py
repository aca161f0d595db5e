"""Wires the engine's components together from a config."""

from __future__ import annotations

from typing import Callable

from .catalog import CatalogRepository
from .config import ConciergeConfig
from .db import KeyValueStore
from .preferences import Preferences
from .seed import DEMO_SEED
from .session import SessionGuard
from .share import Clipboard, CommandShareTarget
from .shopping import Deferrer, ShareResult, ShoppingListSync, timer_defer
from .timestamps import TimestampStore, now_ms
from .tracker import InventoryTracker


class Concierge:
    """One store, and every service that reads or writes it."""

    def __init__(
        self,
        config: ConciergeConfig,
        *,
        store: KeyValueStore | None = None,
        defer: Deferrer = timer_defer,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config
        self.store = store if store is not None else KeyValueStore(config.storage.path)
        self.catalog = CatalogRepository(self.store)
        self.timestamps = TimestampStore(self.store)
        self.tracker = InventoryTracker(
            self.catalog,
            self.timestamps,
            seed=DEMO_SEED if config.tracker.demo_seed else None,
            clock=clock,
            prune_orphans=config.tracker.prune_orphans,
        )
        self.shopping = ShoppingListSync(
            self.store,
            self.tracker,
            defer=defer,
            clear_delay=config.shopping.checkout_clear_delay,
            currency=config.shopping.currency,
            title=config.shopping.list_title,
        )
        self.guard = SessionGuard(self.store, clock=clock)
        self.preferences = Preferences(self.store)

    def share(self) -> ShareResult:
        return self.shopping.share(
            target=CommandShareTarget(self.config.share.command),
            clipboard=Clipboard(self.config.share.clipboard_command),
        )

    def close(self) -> None:
        self.store.close()
