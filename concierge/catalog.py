"""Product catalog persistence (the catalog collaborator)."""

from __future__ import annotations

import logging
import uuid

from .db import UNCHANGED, KeyValueStore
from .errors import DataCorruptionError, InvalidOperationError
from .models import DEFAULT_CATEGORY, DEFAULT_ICON, DEFAULT_UNIT, CatalogProduct

logger = logging.getLogger(__name__)

CATALOG_KEY = "catalogProducts"


class CatalogRepository:
    """Reads and edits the persisted list of catalog products."""

    def __init__(self, store: KeyValueStore, key: str = CATALOG_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> list[CatalogProduct] | None:
        """Return the persisted products, or None if there is no catalog.

        A corrupt catalog is logged and reported as None so callers fall
        back to their defaults.
        """
        try:
            raw = self._store.get_json(self._key)
        except DataCorruptionError as e:
            logger.warning("%s; ignoring catalog", e)
            return None
        if raw is None:
            return None
        if not isinstance(raw, list):
            logger.warning("Catalog is not a list (%s); ignoring it", type(raw).__name__)
            return None
        return _parse(raw)

    def products(self) -> list[CatalogProduct]:
        return self.load() or []

    def get(self, product_id: str) -> CatalogProduct | None:
        for product in self.products():
            if product.id == product_id:
                return product
        return None

    def add(
        self,
        name: str,
        price: float,
        quantity: float,
        *,
        icon: str = "",
        category: str = "",
        unit: str = "",
        product_id: str | None = None,
    ) -> CatalogProduct:
        """Register a new product.

        Raises:
            InvalidOperationError: If name, price or quantity is missing.
        """
        if not name or price is None or not quantity:
            raise InvalidOperationError("Name, price and quantity are required.")

        product = CatalogProduct(
            id=product_id or uuid.uuid4().hex[:12],
            name=name,
            icon=icon or DEFAULT_ICON,
            price=float(price),
            quantity=quantity,
            category=category or DEFAULT_CATEGORY,
            unit=unit or DEFAULT_UNIT,
        )

        def append(current: list) -> list:
            if any(str(p.get("id")) == product.id for p in _dicts(current)):
                raise InvalidOperationError(
                    f"A product with id {product.id!r} already exists."
                )
            return [*_dicts(current), product.to_dict()]

        self._store.update_json(self._key, append, list)
        logger.info("Catalog product added: %s (%s)", product.name, product.id)
        return product

    def update(self, product: CatalogProduct) -> bool:
        """Replace the stored product with the same id. Returns False if absent."""
        found = False

        def replace(current: list) -> object:
            nonlocal found
            out = []
            for p in _dicts(current):
                if str(p.get("id")) == product.id:
                    found = True
                    out.append(product.to_dict())
                else:
                    out.append(p)
            return out if found else UNCHANGED

        self._store.update_json(self._key, replace, list)
        return found

    def remove(self, product_id: str) -> CatalogProduct | None:
        removed: list[CatalogProduct] = []

        def drop(current: list) -> object:
            kept = []
            for p in _dicts(current):
                if str(p.get("id")) == product_id:
                    removed.extend(_parse([p]))
                else:
                    kept.append(p)
            return kept if removed else UNCHANGED

        if self._store.get(self._key) is None:
            return None
        self._store.update_json(self._key, drop, list)
        if removed:
            logger.info("Catalog product removed: %s", product_id)
            return removed[0]
        return None


def _dicts(raw: object) -> list[dict]:
    if not isinstance(raw, list):
        return []
    return [p for p in raw if isinstance(p, dict)]


def _parse(raw: list) -> list[CatalogProduct]:
    products: list[CatalogProduct] = []
    for entry in raw:
        if not isinstance(entry, dict) or entry.get("id") in (None, ""):
            logger.warning("Skipping malformed catalog entry: %r", entry)
            continue
        products.append(CatalogProduct.from_dict(entry))
    return products
