"""Shared fixtures."""

import pytest

from concierge.catalog import CatalogRepository
from concierge.db import KeyValueStore
from concierge.timestamps import TimestampStore

DAY = 86_400_000
T0 = 1_700_000_000_000  # fixed "now" for deterministic tests


class FakeClock:
    """Mutable millisecond clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def store(tmp_path):
    """Create a temporary KeyValueStore."""
    kv = KeyValueStore(db_path=tmp_path / "test.db")
    yield kv
    kv.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog(store):
    return CatalogRepository(store)


@pytest.fixture
def timestamps(store):
    return TimestampStore(store)
