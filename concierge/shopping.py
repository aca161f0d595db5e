"""Shopping list synchronizer: turns tracked items into list entries."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .db import UNCHANGED, KeyValueStore
from .errors import DataCorruptionError, EmptyListError, EnvironmentUnavailableError
from .estimator import PRIORITY_NORMAL, priority_for
from .models import CatalogProduct, ShoppingListEntry
from .share import Clipboard, ShareOutcome, ShareTarget
from .tracker import InventoryTracker

logger = logging.getLogger(__name__)

SHOPPING_LIST_KEY = "shoppingList"
DEFAULT_CLEAR_DELAY = 2.0

Deferrer = Callable[[float, Callable[[], None]], None]


class AddOutcome(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ListTotals:
    count: int
    urgent: int
    total_price: float


@dataclass(frozen=True)
class CheckoutReceipt:
    total: float
    count: int
    entries: tuple[ShoppingListEntry, ...]


@dataclass(frozen=True)
class ShareResult:
    outcome: ShareOutcome
    text: str
    message: str = ""


def timer_defer(delay: float, fn: Callable[[], None]) -> None:
    """Run ``fn`` once after ``delay`` seconds on a daemon timer thread."""
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()


class ShoppingListSync:
    """Owns the persisted shopping list.

    Entries are snapshots taken when the user adds an item; they are never
    re-derived from the tracker afterwards. Every mutation is a single
    atomic read-modify-write of the persisted list.
    """

    def __init__(
        self,
        store: KeyValueStore,
        tracker: InventoryTracker,
        *,
        defer: Deferrer = timer_defer,
        clear_delay: float = DEFAULT_CLEAR_DELAY,
        currency: str = "R$",
        title: str = "Minha Lista de Compras - Concierge",
        key: str = SHOPPING_LIST_KEY,
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._defer = defer
        self._clear_delay = clear_delay
        self._currency = currency
        self._title = title
        self._key = key
        self._pending_clear = False

    @property
    def entries(self) -> list[ShoppingListEntry]:
        try:
            raw = self._store.get_json(self._key)
        except DataCorruptionError as e:
            logger.warning("%s; treating shopping list as empty", e)
            return []
        return _parse(raw)

    @property
    def pending_clear(self) -> bool:
        """True between a successful checkout and the deferred clear."""
        return self._pending_clear

    def totals(self) -> ListTotals:
        entries = self.entries
        return ListTotals(
            count=len(entries),
            urgent=sum(1 for e in entries if e.priority == "urgent"),
            total_price=round(sum(e.estimated_price for e in entries), 2),
        )

    def add_to_list(self, item_id: str) -> AddOutcome:
        """Add the tracked item ``item_id`` to the list.

        Unknown ids are ignored. Adding an id that is already listed reports
        a duplicate and leaves the list untouched.
        """
        item = self._tracker.get(item_id)
        if item is None:
            logger.debug("add_to_list: unknown item %r", item_id)
            return AddOutcome.NOT_FOUND

        entry = ShoppingListEntry(
            id=item.id,
            name=item.name,
            icon=item.icon,
            priority=priority_for(item.status),
            estimated_price=item.estimated_price,
        )
        return self._append(entry, lambda e: e.id == entry.id)

    def add_product(self, product: CatalogProduct) -> AddOutcome:
        """Add a catalog product straight to the list with normal priority."""
        entry = ShoppingListEntry(
            id=product.id,
            name=product.name,
            icon=product.icon,
            priority=PRIORITY_NORMAL,
            estimated_price=product.price,
        )
        return self._append(
            entry, lambda e: e.id == entry.id or e.name == entry.name
        )

    def remove_from_list(self, item_id: str) -> ShoppingListEntry | None:
        """Remove the entry for ``item_id``; absent ids are a silent no-op."""
        removed: list[ShoppingListEntry] = []

        def drop(current: object) -> object:
            kept = []
            for entry in _parse(current):
                if entry.id == item_id:
                    removed.append(entry)
                else:
                    kept.append(entry.to_dict())
            return kept if removed else UNCHANGED

        self._store.update_json(self._key, drop, list)
        if removed:
            logger.info("Removed %s from the shopping list", removed[0].name)
            return removed[0]
        return None

    def checkout(self) -> CheckoutReceipt:
        """Finalize the list and schedule it to be cleared.

        The receipt is returned immediately; the list itself is wiped after
        ``clear_delay`` seconds by the deferral hook.

        Raises:
            EmptyListError: If the list has no entries.
        """
        entries = self.entries
        if not entries:
            raise EmptyListError("Add items to your list before checking out.")

        receipt = CheckoutReceipt(
            total=round(sum(e.estimated_price for e in entries), 2),
            count=len(entries),
            entries=tuple(entries),
        )
        logger.info(
            "Checkout: %d item(s), total %s %.2f",
            receipt.count,
            self._currency,
            receipt.total,
        )
        self._pending_clear = True
        self._defer(self._clear_delay, self.clear)
        return receipt

    def clear(self) -> None:
        """Empty the list and persist the empty state."""
        self._store.set_json(self._key, [])
        self._pending_clear = False
        logger.info("Shopping list cleared")

    def format_text(self, entries: list[ShoppingListEntry] | None = None) -> str:
        entries = self.entries if entries is None else entries
        lines = [
            f"{n}. {e.icon} {e.name} - {self._price(e.estimated_price)}"
            for n, e in enumerate(entries, start=1)
        ]
        total = sum(e.estimated_price for e in entries)
        return (
            f"🛒 {self._title}\n\n"
            + "\n".join(lines)
            + f"\n\n💰 Total: {self._price(total)}"
        )

    def share(
        self,
        target: ShareTarget | None = None,
        clipboard: Clipboard | None = None,
    ) -> ShareResult:
        """Share the list natively, falling back to the clipboard.

        Raises:
            EmptyListError: If the list has no entries.
        """
        entries = self.entries
        if not entries:
            raise EmptyListError("Add items to your list before sharing.")
        text = self.format_text(entries)

        if target is not None and target.available():
            try:
                if target.share(self._title, text):
                    return ShareResult(ShareOutcome.SHARED, text, "List shared.")
                return ShareResult(ShareOutcome.CANCELLED, text, "Share cancelled.")
            except EnvironmentUnavailableError as e:
                logger.info("Native share unavailable (%s); using clipboard", e)

        clipboard = clipboard if clipboard is not None else Clipboard()
        try:
            clipboard.copy(text)
        except EnvironmentUnavailableError as e:
            logger.warning("Could not share the list: %s", e)
            return ShareResult(ShareOutcome.FAILED, text, str(e))
        return ShareResult(
            ShareOutcome.COPIED, text, "List copied to the clipboard."
        )

    def _append(
        self,
        entry: ShoppingListEntry,
        is_duplicate: Callable[[ShoppingListEntry], bool],
    ) -> AddOutcome:
        outcome = AddOutcome.ADDED

        def append(current: object) -> object:
            nonlocal outcome
            existing = _parse(current)
            if any(is_duplicate(e) for e in existing):
                outcome = AddOutcome.DUPLICATE
                return UNCHANGED
            return [*(e.to_dict() for e in existing), entry.to_dict()]

        self._store.update_json(self._key, append, list)
        if outcome is AddOutcome.ADDED:
            logger.info("Added %s to the shopping list (%s)", entry.name, entry.priority)
        else:
            logger.info("%s is already on the shopping list", entry.name)
        return outcome

    def _price(self, value: float) -> str:
        return f"{self._currency} {value:.2f}"


def _parse(raw: object) -> list[ShoppingListEntry]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Shopping list is not a list (%s); ignoring it", type(raw).__name__)
        return []
    entries = []
    for item in raw:
        if not isinstance(item, dict) or item.get("id") in (None, ""):
            logger.warning("Skipping malformed shopping list entry: %r", item)
            continue
        entries.append(ShoppingListEntry.from_dict(item))
    return entries
