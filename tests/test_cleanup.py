"""Tests for expired-entry cleanup and the background sweeper."""

import asyncio

from tablecache.core.cache import CacheStore
from tablecache.core.cleanup import ExpirationSweeper

from conftest import count_rows


class TestCleanupExpired:
    async def test_removes_only_expired_rows(self, store, clock):
        await store.put("short", 1, ttl=1)
        await store.put("long", 2, ttl=100)
        await store.put("forever", 3)
        clock.advance(5)
        assert await store.cleanup_expired() == 1
        assert await count_rows(store) == 2
        assert await store.cleanup_expired() == 0


class TestExpirationSweeper:
    async def test_run_once(self, store, clock):
        sweeper = ExpirationSweeper(store, interval=60)
        await store.put("k", "v", ttl=1)
        clock.advance(2)
        assert await sweeper.run_once() == 1
        assert sweeper.sweeps == 1

    async def test_start_stop_idempotent(self, store):
        sweeper = ExpirationSweeper(store, interval=60)
        await sweeper.start()
        await sweeper.start()
        assert sweeper.running
        await sweeper.stop()
        await sweeper.stop()
        assert not sweeper.running
        assert sweeper.sweeps == 0

    async def test_background_sweeps(self, make_settings, clock):
        settings = make_settings(background_cleanup_enabled=True, cleanup_interval=0.05)
        cache = CacheStore(settings, time_func=clock.now)
        await cache.startup()
        try:
            assert cache.sweeper is not None and cache.sweeper.running
            await cache.put("k", "v", ttl=1)
            clock.advance(5)
            for _ in range(100):
                if await count_rows(cache) == 0:
                    break
                await asyncio.sleep(0.05)
            assert await count_rows(cache) == 0
            assert cache.sweeper.sweeps >= 1
        finally:
            await cache.shutdown()
        assert cache.sweeper is None

    async def test_sweeper_survives_failures(self, store):
        class FailingStore:
            calls = 0

            async def cleanup_expired(self):
                FailingStore.calls += 1
                raise RuntimeError("store down")

        sweeper = ExpirationSweeper(FailingStore(), interval=0.01)
        await sweeper.start()
        await asyncio.sleep(0.1)
        assert sweeper.running
        await sweeper.stop()
        assert FailingStore.calls >= 2

    async def test_stop_cancels_sweep_that_outlives_timeout(self):
        started = asyncio.Event()

        class SlowStore:
            async def cleanup_expired(self):
                started.set()
                await asyncio.sleep(10)
                return 0

        sweeper = ExpirationSweeper(SlowStore(), interval=0.01, shutdown_timeout=0.1)
        await sweeper.start()
        await asyncio.wait_for(started.wait(), timeout=2)
        task = sweeper._task

        loop = asyncio.get_running_loop()
        began = loop.time()
        await sweeper.stop()

        assert loop.time() - began < 2
        assert task.cancelled()
        assert not sweeper.running
        assert sweeper.sweeps == 0

    async def test_disabled_by_default(self, store):
        assert store.sweeper is None
