"""Tests for the depletion estimator."""

import pytest

from concierge.estimator import (
    MS_PER_DAY,
    days_passed,
    estimate,
    priority_for,
    status_for,
    total_days_for,
)

T0 = 1_700_000_000_000


@pytest.mark.parametrize("quantity, expected", [
    (1, 30),
    (5, 30),
    (15, 30),
    (16, 32),
    (100, 200),
    (20.5, 41),
])
def test_total_days_from_quantity(quantity, expected):
    assert total_days_for(quantity) == expected


@pytest.mark.parametrize("quantity", [None, 0, -3, "abc", "", float("nan"), float("inf"), True, [], {}])
def test_total_days_unknown_quantity_falls_back(quantity):
    """Absent, zero or junk quantities mean the 30-day default."""
    assert total_days_for(quantity) == 30


def test_total_days_numeric_string():
    assert total_days_for("40") == 80


@pytest.mark.parametrize("days_left, status", [
    (0, "urgent"),
    (2, "urgent"),
    (3, "warning"),
    (5, "warning"),
    (6, "success"),
    (30, "success"),
])
def test_status_boundaries(days_left, status):
    assert status_for(days_left) == status


def test_priority_mapping():
    assert priority_for("urgent") == "urgent"
    assert priority_for("warning") == "warning"
    assert priority_for("success") == "normal"


def test_days_passed_clamps_future_start():
    """A start time in the future (clock skew) counts as zero days."""
    assert days_passed(T0 + 5 * MS_PER_DAY, T0) == 0


def test_days_passed_floors_partial_days():
    assert days_passed(T0, T0 + MS_PER_DAY - 1) == 0
    assert days_passed(T0, T0 + MS_PER_DAY) == 1
    assert days_passed(T0, T0 + int(2.9 * MS_PER_DAY)) == 2


def test_estimate_scenario_26_days():
    """quantity=5 first seen at T; 26 days later there are 4 days left."""
    est = estimate(5, T0, T0 + 26 * MS_PER_DAY)
    assert est.total_days == 30
    assert est.days_left == 4
    assert est.status == "warning"


def test_estimate_never_negative():
    est = estimate(1, T0, T0 + 365 * MS_PER_DAY)
    assert est.days_left == 0
    assert est.status == "urgent"


def test_days_left_non_increasing_over_time():
    previous = None
    for hours in range(0, 40 * 24, 7):
        est = estimate(10, T0, T0 + hours * 3_600_000)
        assert est.days_left >= 0
        if previous is not None:
            assert est.days_left <= previous
        previous = est.days_left


def test_estimate_is_pure():
    assert estimate(8, T0, T0 + 3 * MS_PER_DAY) == estimate(8, T0, T0 + 3 * MS_PER_DAY)
