"""Shared pytest fixtures for cache tests.

Every store runs against a temporary SQLite file and a fake clock, so TTL
behaviour is tested by advancing time instead of sleeping.
"""

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from tablecache.core.cache import CacheStore
from tablecache.core.config import CacheSettings
from tablecache.core.exceptions import CacheStoreError
from tablecache.models.cache import CacheEntry

START_TIME = 1_700_000_000.0


class FakeClock:
    def __init__(self, initial: float = START_TIME):
        self._value = initial

    def now(self) -> float:
        return self._value

    def advance(self, seconds: float) -> None:
        self._value += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}"


@pytest.fixture
def make_settings(db_url):
    """Factory for settings pointing at the test database."""
    def _make(**overrides) -> CacheSettings:
        values = {
            "database_url": db_url,
            "retry_initial_delay": 0.0,
            "log_format": "console",
        }
        values.update(overrides)
        return CacheSettings(**values)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest_asyncio.fixture
async def store(settings, clock):
    cache = CacheStore(settings, time_func=clock.now)
    await cache.startup()
    yield cache
    await cache.shutdown()


@pytest_asyncio.fixture
async def null_store(make_settings, clock):
    cache = CacheStore(make_settings(allow_null_values=True), time_func=clock.now)
    await cache.startup()
    yield cache
    await cache.shutdown()


async def count_rows(cache: CacheStore) -> int:
    """Count physical rows, expired ones included."""
    async def _count(session):
        result = await session.execute(select(func.count()).select_from(CacheEntry.__table__))
        return int(result.scalar_one())

    return await cache.database.run("count_rows", _count)


class RecordingListener:
    def __init__(self):
        self.events = []

    def on_put(self, key, value):
        self.events.append(("put", key, value))

    def on_evict(self, key):
        self.events.append(("evict", key))

    def on_clear(self):
        self.events.append(("clear",))


def fail_operations(monkeypatch, cache: CacheStore, *operations: str) -> None:
    """Make ``Database.run`` raise CacheStoreError for the named operations."""
    run = cache.database.run

    async def _run(operation, work, key=None):
        if operation in operations:
            raise CacheStoreError("Store operation failed", operation=operation, key=key)
        return await run(operation, work, key=key)

    monkeypatch.setattr(cache.database, "run", _run)
