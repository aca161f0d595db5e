"""SQLite-backed persistence for the tracking engine."""

from .schema import ensure_schema
from .store import UNCHANGED, KeyValueStore

__all__ = [
    "KeyValueStore",
    "UNCHANGED",
    "ensure_schema",
]
