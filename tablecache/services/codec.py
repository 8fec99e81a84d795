"""Payload codec and lookup results.

Every stored payload is a JSON envelope:

    {"v": <value>}      a regular value
    {"null": true}      a cached None (only when null caching is enabled)

Wrapping every value keeps the null marker distinct from anything a caller
can store.
"""

from functools import lru_cache
from typing import Any, Dict, Optional, Type

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from tablecache.core.exceptions import CacheSerializationError


VALUE_FIELD = "v"
NULL_FIELD = "null"


class _CachedNull:
    """Singleton returned for a cached None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NULL_VALUE"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_CachedNull, ())


NULL_VALUE = _CachedNull()

NULL_PAYLOAD: Dict[str, Any] = {NULL_FIELD: True}


@lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter:
    return TypeAdapter(target_type)


class EntryCodec:
    """Encode values into JSON envelopes and back."""

    def encode(self, value: Any, key: Optional[str] = None) -> Dict[str, Any]:
        if value is None or value is NULL_VALUE:
            return dict(NULL_PAYLOAD)
        try:
            return {VALUE_FIELD: to_jsonable_python(value)}
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise CacheSerializationError(
                f"Cannot serialize value of type {type(value).__name__}: {e}",
                operation="encode", key=key,
            ) from e

    def is_null_payload(self, payload: Any) -> bool:
        return isinstance(payload, dict) and payload.get(NULL_FIELD) is True and len(payload) == 1

    def decode(self, payload: Any, target_type: Optional[Type] = None,
               key: Optional[str] = None) -> Any:
        """Decode a payload, returning NULL_VALUE for the null marker."""
        if self.is_null_payload(payload):
            return NULL_VALUE
        if not isinstance(payload, dict) or VALUE_FIELD not in payload:
            raise CacheSerializationError(
                "Malformed cache payload", operation="decode", key=key,
            )
        raw = payload[VALUE_FIELD]
        if target_type is None:
            return raw
        try:
            return _adapter(target_type).validate_python(raw)
        except ValidationError as e:
            raise CacheSerializationError(
                f"Cached value is not a valid {getattr(target_type, '__name__', target_type)}: "
                f"{e.error_count()} validation error(s)",
                operation="decode", key=key,
            ) from e


class CacheResult:
    """Outcome of a lookup: a hit, a cached null, or a miss.

    ``bool(result)`` is True for hits and cached nulls. ``value`` returns
    NULL_VALUE for a cached null and raises KeyError on a miss.
    """

    __slots__ = ("_state", "_value")

    HIT = "hit"
    NULL = "null"
    MISS = "miss"

    def __init__(self, state: str, value: Any = None):
        self._state = state
        self._value = value

    @classmethod
    def hit(cls, value: Any) -> "CacheResult":
        return cls(cls.HIT, value)

    @classmethod
    def null(cls) -> "CacheResult":
        return _NULL_RESULT

    @classmethod
    def miss(cls) -> "CacheResult":
        return _MISS_RESULT

    @classmethod
    def from_decoded(cls, value: Any) -> "CacheResult":
        return cls.null() if value is NULL_VALUE else cls.hit(value)

    @property
    def found(self) -> bool:
        return self._state != self.MISS

    @property
    def is_null(self) -> bool:
        return self._state == self.NULL

    @property
    def state(self) -> str:
        return self._state

    @property
    def value(self) -> Any:
        if self._state == self.MISS:
            raise KeyError("cache miss")
        if self._state == self.NULL:
            return NULL_VALUE
        return self._value

    def get(self, default: Any = None) -> Any:
        """Return the cached value (None for a cached null) or ``default`` on a miss."""
        if self._state == self.MISS:
            return default
        if self._state == self.NULL:
            return None
        return self._value

    def __bool__(self) -> bool:
        return self.found

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheResult):
            return NotImplemented
        return self._state == other._state and self._value == other._value

    def __hash__(self):
        return hash(self._state)

    def __repr__(self) -> str:
        if self._state == self.HIT:
            return f"CacheResult.hit({self._value!r})"
        return f"CacheResult.{self._state}()"


_NULL_RESULT = CacheResult(CacheResult.NULL)
_MISS_RESULT = CacheResult(CacheResult.MISS)
