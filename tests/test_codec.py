"""Tests for payload envelopes, NULL_VALUE and CacheResult."""

import copy
import pickle
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel

from tablecache.core.exceptions import CacheSerializationError
from tablecache.services.codec import CacheResult, EntryCodec, NULL_PAYLOAD, NULL_VALUE


class User(BaseModel):
    id: int
    name: str


@pytest.fixture
def codec():
    return EntryCodec()


class TestEncode:
    def test_plain_values_are_wrapped(self, codec):
        assert codec.encode({"a": [1, 2]}) == {"v": {"a": [1, 2]}}
        assert codec.encode("text") == {"v": "text"}
        assert codec.encode(0) == {"v": 0}

    def test_none_and_sentinel_use_null_marker(self, codec):
        assert codec.encode(None) == NULL_PAYLOAD
        assert codec.encode(NULL_VALUE) == NULL_PAYLOAD

    def test_value_shaped_like_null_marker_stays_distinct(self, codec):
        payload = codec.encode({"null": True})
        assert payload == {"v": {"null": True}}
        assert codec.decode(payload) == {"null": True}

    def test_models_and_datetimes(self, codec):
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert codec.encode(User(id=1, name="Ada")) == {"v": {"id": 1, "name": "Ada"}}
        assert codec.encode(when) == {"v": "2024-01-02T03:04:05Z"}

    def test_unserializable_value(self, codec):
        with pytest.raises(CacheSerializationError) as exc_info:
            codec.encode(object(), key="k")
        assert exc_info.value.key == "k"
        assert exc_info.value.operation == "encode"


class TestDecode:
    def test_null_marker(self, codec):
        assert codec.decode({"null": True}) is NULL_VALUE

    def test_target_type_validation(self, codec):
        user = codec.decode({"v": {"id": 7, "name": "Grace"}}, User)
        assert user == User(id=7, name="Grace")

    def test_target_type_mismatch(self, codec):
        with pytest.raises(CacheSerializationError):
            codec.decode({"v": {"id": "x"}}, User, key="k")

    def test_malformed_payload(self, codec):
        with pytest.raises(CacheSerializationError):
            codec.decode({"x": 1})
        with pytest.raises(CacheSerializationError):
            codec.decode("raw")


class TestNullValue:
    def test_singleton_survives_copies(self):
        assert copy.copy(NULL_VALUE) is NULL_VALUE
        assert copy.deepcopy(NULL_VALUE) is NULL_VALUE
        assert pickle.loads(pickle.dumps(NULL_VALUE)) is NULL_VALUE

    def test_falsy_and_repr(self):
        assert not NULL_VALUE
        assert repr(NULL_VALUE) == "NULL_VALUE"


class TestCacheResult:
    def test_hit(self):
        result = CacheResult.hit(0)
        assert result
        assert result.found and not result.is_null
        assert result.value == 0
        assert result.get("default") == 0

    def test_null(self):
        result = CacheResult.null()
        assert result
        assert result.is_null
        assert result.value is NULL_VALUE
        assert result.get("default") is None

    def test_miss(self):
        result = CacheResult.miss()
        assert not result
        assert result.state == "miss"
        assert result.get("default") == "default"
        with pytest.raises(KeyError):
            result.value

    def test_from_decoded(self):
        assert CacheResult.from_decoded(NULL_VALUE) == CacheResult.null()
        assert CacheResult.from_decoded([1]) == CacheResult.hit([1])
        assert CacheResult.hit(1) != CacheResult.hit(2)

    def test_repr(self):
        assert repr(CacheResult.hit("a")) == "CacheResult.hit('a')"
        assert repr(CacheResult.miss()) == "CacheResult.miss()"
