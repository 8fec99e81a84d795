"""Tests for caching None when null values are enabled."""

from tablecache.services.codec import CacheResult, NULL_VALUE

from conftest import RecordingListener


class TestNullValues:
    async def test_cached_null_is_found(self, null_store):
        await null_store.put("k", None)
        result = await null_store.get("k")
        assert result
        assert result.is_null
        assert result.value is NULL_VALUE
        assert result.get("fallback") is None

    async def test_cached_null_is_distinct_from_miss(self, null_store):
        await null_store.put("k", None)
        assert await null_store.get("k") == CacheResult.null()
        assert await null_store.get("other") == CacheResult.miss()
        stats = null_store.get_statistics()
        assert stats.hits == 1
        assert stats.misses == 1

    async def test_sentinel_can_be_stored(self, null_store):
        await null_store.put("k", NULL_VALUE)
        assert (await null_store.get("k")).is_null

    async def test_batch_with_nulls(self, null_store):
        await null_store.put_all({"a": None, "b": 1})
        assert await null_store.get_all(["a", "b", "c"]) == {"a": NULL_VALUE, "b": 1}

    async def test_null_counts_as_present(self, null_store):
        await null_store.put("k", None)
        assert await null_store.contains_key("k")
        assert await null_store.size() == 1
        assert (await null_store.put_if_absent("k", "v")).is_null

    async def test_listener_receives_none(self, null_store):
        listener = RecordingListener()
        null_store.add_listener(listener)
        await null_store.put("k", None)
        assert listener.events == [("put", "k", None)]

    async def test_null_entry_expires(self, null_store, clock):
        await null_store.put("k", None, ttl=5)
        clock.advance(6)
        assert await null_store.get("k") == CacheResult.miss()
