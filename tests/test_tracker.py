"""Tests for InventoryTracker."""

import pytest

from concierge.catalog import CATALOG_KEY
from concierge.seed import DemoSeed
from concierge.timestamps import START_TIMES_KEY
from concierge.tracker import MONTHLY_SAVINGS, InventoryTracker

from conftest import DAY, T0


@pytest.fixture
def tracker(catalog, timestamps, clock):
    return InventoryTracker(catalog, timestamps, clock=clock)


def test_load_initial_assigns_start_times(catalog, timestamps, tracker):
    catalog.add("Arroz", 4.5, 5, product_id="1")
    catalog.add("Feijão", 6.2, 20, product_id="2")

    items = tracker.load_initial()

    assert [i.id for i in items] == ["1", "2"]
    assert all(i.start_epoch == T0 for i in items)
    assert timestamps.all() == {"1": T0, "2": T0}
    assert items[0].total_days == 30
    assert items[1].total_days == 40
    assert items[0].days_left == 30
    assert items[0].status == "success"
    assert items[0].estimated_price == 4.5
    assert tracker.seeded is False


def test_scenario_26_days_later(catalog, tracker, clock):
    catalog.add("Café", 12.9, 5, product_id="1")
    tracker.load_initial()

    clock.advance(26 * DAY)
    tracker.refresh()

    item = tracker.get("1")
    assert item.total_days == 30
    assert item.days_left == 4
    assert item.status == "warning"


def test_refresh_keeps_start_epoch(catalog, timestamps, tracker, clock):
    catalog.add("Leite", 3.8, 1, product_id="3")
    tracker.load_initial()
    for _ in range(5):
        clock.advance(DAY)
        tracker.refresh()
    assert timestamps.get("3") == T0
    assert tracker.get("3").days_left == 25


def test_refresh_picks_up_new_products(catalog, timestamps, tracker, clock):
    catalog.add("Arroz", 4.5, 5, product_id="1")
    tracker.load_initial()

    clock.advance(3 * DAY)
    catalog.add("Açúcar", 3.2, 2, product_id="6")
    tracker.refresh()

    assert tracker.get("1").days_left == 27
    assert tracker.get("6").days_left == 30
    assert timestamps.get("6") == T0 + 3 * DAY


def test_refresh_prunes_orphaned_start_times(catalog, timestamps, tracker):
    catalog.add("Arroz", 4.5, 5, product_id="1")
    catalog.add("Feijão", 6.2, 2, product_id="2")
    tracker.load_initial()

    catalog.remove("2")
    tracker.refresh()

    assert [i.id for i in tracker.items] == ["1"]
    assert timestamps.all() == {"1": T0}


def test_pruning_can_be_disabled(catalog, timestamps, clock):
    tracker = InventoryTracker(catalog, timestamps, clock=clock, prune_orphans=False)
    catalog.add("Arroz", 4.5, 5, product_id="1")
    catalog.add("Feijão", 6.2, 2, product_id="2")
    tracker.load_initial()

    catalog.remove("2")
    tracker.refresh()

    assert timestamps.all() == {"1": T0, "2": T0}


def test_seed_used_without_catalog(store, tracker):
    items = tracker.load_initial()

    assert tracker.seeded is True
    by_name = {i.name: i for i in items}
    assert by_name["Café"].days_left == 2
    assert by_name["Café"].status == "urgent"
    assert by_name["Leite"].days_left == 5
    assert by_name["Leite"].status == "warning"
    assert by_name["Arroz"].days_left == 12
    assert by_name["Arroz"].status == "success"
    # nothing persisted
    assert store.get(CATALOG_KEY) is None
    assert store.get(START_TIMES_KEY) is None


def test_seed_is_stable_across_refreshes(tracker, clock):
    first = tracker.load_initial()
    clock.advance(10 * DAY)
    second = tracker.refresh()
    assert [i.days_left for i in first] == [i.days_left for i in second]


def test_seed_never_overrides_real_catalog(catalog, tracker):
    catalog.add("Ração Pet", 25.8, 10, product_id="5")
    items = tracker.load_initial()
    assert [i.name for i in items] == ["Ração Pet"]
    assert tracker.seeded is False


def test_empty_catalog_is_not_seeded(store, tracker):
    store.set_json(CATALOG_KEY, [])
    assert tracker.load_initial() == ()
    assert tracker.seeded is False


def test_no_seed_provider(catalog, timestamps, clock):
    tracker = InventoryTracker(catalog, timestamps, seed=None, clock=clock)
    assert tracker.load_initial() == ()
    assert tracker.seeded is False


def test_custom_seed_provider(catalog, timestamps, clock):
    tracker = InventoryTracker(catalog, timestamps, seed=DemoSeed(()), clock=clock)
    assert tracker.load_initial() == ()


def test_corrupt_catalog_falls_back_to_seed(store, tracker, caplog):
    store.set(CATALOG_KEY, "[{broken")
    items = tracker.load_initial()
    assert tracker.seeded is True
    assert len(items) == 3
    assert "corrupt" in caplog.text


def test_corrupt_timestamps_recovered(store, catalog, tracker):
    catalog.add("Arroz", 4.5, 5, product_id="1")
    store.set(START_TIMES_KEY, "garbage")
    items = tracker.load_initial()
    assert items[0].start_epoch == T0


def test_junk_quantity_uses_default_cycle(store, tracker):
    store.set_json(CATALOG_KEY, [{"id": "1", "name": "X", "price": 1, "quantity": "lots"}])
    assert tracker.load_initial()[0].total_days == 30


def test_explicit_now_overrides_clock(catalog, tracker):
    catalog.add("Arroz", 4.5, 5, product_id="1")
    tracker.load_initial(now=T0)
    tracker.refresh(now=T0 + 29 * DAY)
    assert tracker.get("1").days_left == 1
    assert tracker.get("1").status == "urgent"


def test_subscribers_notified(catalog, tracker):
    catalog.add("Arroz", 4.5, 5, product_id="1")
    received = []
    unsubscribe = tracker.subscribe(received.append)

    tracker.load_initial()
    tracker.refresh()
    assert len(received) == 2
    assert received[-1][0].id == "1"

    unsubscribe()
    tracker.refresh()
    assert len(received) == 2


def test_failing_subscriber_does_not_block_others(tracker, caplog):
    received = []

    def broken(items):
        raise RuntimeError("boom")

    tracker.subscribe(broken)
    tracker.subscribe(received.append)
    tracker.load_initial()

    assert len(received) == 1
    assert "subscriber" in caplog.text


def test_get_unknown(tracker):
    tracker.load_initial()
    assert tracker.get("999") is None


def test_stats(tracker):
    tracker.load_initial()  # seed: 2, 5 and 12 days left
    stats = tracker.stats(pending_items=4)
    assert stats.items_running_out == 1
    assert stats.avg_days_to_refill == 6
    assert stats.pending_items == 4
    assert stats.monthly_savings == MONTHLY_SAVINGS


def test_stats_empty(catalog, timestamps, clock):
    tracker = InventoryTracker(catalog, timestamps, seed=None, clock=clock)
    tracker.load_initial()
    stats = tracker.stats()
    assert stats.items_running_out == 0
    assert stats.avg_days_to_refill == 0
