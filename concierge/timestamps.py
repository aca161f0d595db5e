"""Durable per-item start times (first-tracked moment)."""

from __future__ import annotations

import logging
import time
from typing import Iterable

from .db import UNCHANGED, KeyValueStore
from .errors import DataCorruptionError

logger = logging.getLogger(__name__)

START_TIMES_KEY = "productStartTimes"


def now_ms() -> int:
    """Current wall-clock time in ms since the epoch."""
    return int(time.time() * 1000)


class TimestampStore:
    """Maps item ids to the epoch (ms) at which tracking began.

    A start time is written once per id and never changed while the id is
    present, so elapsed consumption survives any number of recomputations.
    """

    def __init__(self, store: KeyValueStore, key: str = START_TIMES_KEY) -> None:
        self._store = store
        self._key = key

    def all(self) -> dict[str, int]:
        try:
            raw = self._store.get_json(self._key)
        except DataCorruptionError as e:
            logger.warning("%s; treating start times as empty", e)
            return {}
        return _clean(raw)

    def get(self, item_id: str) -> int | None:
        return self.all().get(item_id)

    def ensure(self, item_ids: Iterable[str], now: int) -> dict[str, int]:
        """Assign ``now`` to every id without a start time.

        Existing entries are never overwritten, including ones written by
        another initializer after this call started.

        Returns:
            The full id -> start time map after the write.
        """
        wanted = list(item_ids)
        known = self.all()
        if all(item_id in known for item_id in wanted):
            return known
        assigned: list[str] = []

        def merge(current: object) -> dict[str, int]:
            times = _clean(current)
            for item_id in wanted:
                if item_id not in times:
                    times[item_id] = now
                    assigned.append(item_id)
            return times

        times = self._store.update_json(self._key, merge, dict)
        if assigned:
            logger.info("Started tracking %d item(s): %s", len(assigned), assigned)
        return times

    def prune(self, keep_ids: Iterable[str]) -> list[str]:
        """Drop start times for ids not in ``keep_ids``.

        Returns:
            The removed ids.
        """
        keep = set(keep_ids)
        removed: list[str] = []

        def drop(current: object) -> object:
            times = _clean(current)
            for item_id in list(times):
                if item_id not in keep:
                    del times[item_id]
                    removed.append(item_id)
            return times if removed else UNCHANGED

        if self._store.get(self._key) is None:
            return []
        self._store.update_json(self._key, drop, dict)
        if removed:
            logger.info("Pruned start times for removed items: %s", removed)
        return removed


def _clean(raw: object) -> dict[str, int]:
    if not isinstance(raw, dict):
        return {}
    times: dict[str, int] = {}
    for item_id, value in raw.items():
        if isinstance(value, bool):
            continue
        try:
            times[str(item_id)] = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid start time for %r: %r", item_id, value)
    return times
