"""Household consumables tracker: depletion estimates and shopping lists."""

from .app import Concierge
from .catalog import CatalogRepository
from .config import (
    ConciergeConfig,
    SessionConfig,
    ShareConfig,
    ShoppingConfig,
    StorageConfig,
    TrackerConfig,
    load_config,
)
from .db import KeyValueStore
from .errors import (
    ConciergeError,
    DataCorruptionError,
    EmptyListError,
    EnvironmentUnavailableError,
    InvalidOperationError,
    SessionInvalidError,
)
from .estimator import Estimate, estimate
from .models import CatalogProduct, ShoppingListEntry, TrackedItem
from .seed import DEMO_SEED, DemoSeed, SeedProvider
from .session import SessionGuard, SessionState
from .share import Clipboard, CommandShareTarget, ShareOutcome, ShareTarget
from .shopping import (
    AddOutcome,
    CheckoutReceipt,
    ListTotals,
    ShareResult,
    ShoppingListSync,
)
from .timestamps import TimestampStore
from .tracker import DashboardStats, InventoryTracker

__all__ = [
    "Concierge",
    "KeyValueStore",
    "CatalogRepository",
    "CatalogProduct",
    "TrackedItem",
    "ShoppingListEntry",
    "Estimate",
    "estimate",
    "TimestampStore",
    "SeedProvider",
    "DemoSeed",
    "DEMO_SEED",
    "InventoryTracker",
    "DashboardStats",
    "ShoppingListSync",
    "AddOutcome",
    "CheckoutReceipt",
    "ListTotals",
    "ShareResult",
    "ShareTarget",
    "CommandShareTarget",
    "Clipboard",
    "ShareOutcome",
    "SessionGuard",
    "SessionState",
    "ConciergeConfig",
    "StorageConfig",
    "TrackerConfig",
    "SessionConfig",
    "ShoppingConfig",
    "ShareConfig",
    "load_config",
    "ConciergeError",
    "DataCorruptionError",
    "InvalidOperationError",
    "EmptyListError",
    "SessionInvalidError",
    "EnvironmentUnavailableError",
]
