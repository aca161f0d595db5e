"""Depletion estimation: quantity and elapsed time to days left and status.

Everything here is pure and deterministic, so it is safe to call on every
render and from scheduled refreshes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

MS_PER_DAY = 86_400_000
MIN_TOTAL_DAYS = 30
DAYS_PER_UNIT = 2

URGENT_MAX_DAYS = 2
WARNING_MAX_DAYS = 5

STATUS_SUCCESS = "success"
STATUS_WARNING = "warning"
STATUS_URGENT = "urgent"

PRIORITY_NORMAL = "normal"

_STATUS_TO_PRIORITY: dict[str, str] = {
    STATUS_URGENT: "urgent",
    STATUS_WARNING: "warning",
    STATUS_SUCCESS: PRIORITY_NORMAL,
}


@dataclass(frozen=True)
class Estimate:
    total_days: int
    days_left: int
    status: str


def total_days_for(quantity: Any) -> int:
    """Return the consumption cycle length for an on-hand quantity.

    Absent, zero, negative or non-numeric quantities mean "unknown" and
    fall back to the minimum cycle.
    """
    if quantity is None or isinstance(quantity, bool):
        return MIN_TOTAL_DAYS
    try:
        q = float(quantity)
    except (TypeError, ValueError):
        return MIN_TOTAL_DAYS
    if not math.isfinite(q) or q <= 0:
        return MIN_TOTAL_DAYS
    return max(MIN_TOTAL_DAYS, math.floor(q * DAYS_PER_UNIT))


def days_passed(start_epoch: int, now: int) -> int:
    """Whole days elapsed since ``start_epoch``; never negative."""
    return max(0, (now - start_epoch) // MS_PER_DAY)


def status_for(days_left: int) -> str:
    if days_left <= URGENT_MAX_DAYS:
        return STATUS_URGENT
    if days_left <= WARNING_MAX_DAYS:
        return STATUS_WARNING
    return STATUS_SUCCESS


def priority_for(status: str) -> str:
    return _STATUS_TO_PRIORITY.get(status, PRIORITY_NORMAL)


def estimate_days(total_days: int, start_epoch: int, now: int) -> Estimate:
    days_left = max(0, total_days - days_passed(start_epoch, now))
    return Estimate(
        total_days=total_days,
        days_left=days_left,
        status=status_for(days_left),
    )


def estimate(quantity: Any, start_epoch: int, now: int) -> Estimate:
    """Estimate depletion for ``quantity`` tracked since ``start_epoch``.

    Args:
        quantity: On-hand quantity as supplied by the catalog.
        start_epoch: First-tracked moment, ms since epoch.
        now: Current time, ms since epoch.
    """
    return estimate_days(total_days_for(quantity), int(start_epoch), int(now))
