"""Small persisted user preferences."""

from __future__ import annotations

from .db import KeyValueStore

HAS_SEEN_GUIDE_KEY = "hasSeenGuide"


class Preferences:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def has_seen_guide(self) -> bool:
        return self._store.get(HAS_SEEN_GUIDE_KEY) == "true"

    def mark_guide_seen(self) -> None:
        self._store.set(HAS_SEEN_GUIDE_KEY, "true")
