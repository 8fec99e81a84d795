"""Tests for conditional insert."""

import asyncio

from tablecache.models.cache import TTLPolicy
from tablecache.services.codec import CacheResult

from conftest import RecordingListener


class TestPutIfAbsent:
    async def test_inserts_when_absent(self, store):
        result = await store.put_if_absent("k", "first", ttl=60)
        assert result == CacheResult.miss()
        assert (await store.get("k")).value == "first"
        assert store.get_statistics().puts == 1

    async def test_returns_existing_value(self, store):
        await store.put("k", "first")
        result = await store.put_if_absent("k", "second")
        assert result == CacheResult.hit("first")
        assert (await store.get("k")).value == "first"
        assert store.get_statistics().puts == 1

    async def test_does_not_touch_existing_timers(self, store, clock):
        await store.put("k", "v", ttl=10, policy=TTLPolicy.SLIDING)
        clock.advance(8)
        assert await store.put_if_absent("k", "other", ttl=100)
        clock.advance(3)
        assert not await store.get("k")

    async def test_replaces_expired_row(self, store, clock):
        await store.put("k", "old", ttl=1)
        clock.advance(5)
        result = await store.put_if_absent("k", "new", ttl=60, policy=TTLPolicy.SLIDING)
        assert not result
        assert (await store.get("k")).value == "new"
        assert await store.get_ttl_policy("k") is TTLPolicy.SLIDING

    async def test_existing_lookup_does_not_count_as_request(self, store):
        await store.put("k", "v")
        await store.put_if_absent("k", "w")
        assert store.get_statistics().request_count == 0

    async def test_fires_put_event_only_on_insert(self, store):
        listener = RecordingListener()
        store.add_listener(listener)
        await store.put_if_absent("k", 1)
        await store.put_if_absent("k", 2)
        assert listener.events == [("put", "k", 1)]

    async def test_concurrent_callers_agree_on_one_winner(self, store):
        results = await asyncio.gather(
            *(store.put_if_absent("shared", f"value-{i}") for i in range(8))
        )

        inserted = [r for r in results if not r]
        assert len(inserted) == 1

        stored = (await store.get("shared")).value
        for result in results:
            if result:
                assert result.value == stored
        assert store.get_statistics().puts == 1
