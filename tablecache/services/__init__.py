"""Building blocks used by the cache store.

- codec: JSON envelopes, the NULL_VALUE sentinel and CacheResult
- expiration: ABSOLUTE/SLIDING liveness, in Python and as SQL predicates
- statistics: hit/miss/put/eviction counters
- events: listener fan-out
- retry: bounded exponential backoff for transient store failures
"""

from .codec import (
    EntryCodec,
    CacheResult,
    NULL_VALUE,
    NULL_PAYLOAD,
)
from .expiration import (
    is_expired,
    expiration_deadline,
    remaining_ttl,
    expired_clause,
    live_clause,
)
from .statistics import CacheStatistics, StatisticsRecorder
from .events import CacheEventListener, CacheEventDispatcher
from .retry import RetryPolicy, is_transient

__all__ = [
    "EntryCodec",
    "CacheResult",
    "NULL_VALUE",
    "NULL_PAYLOAD",
    "is_expired",
    "expiration_deadline",
    "remaining_ttl",
    "expired_clause",
    "live_clause",
    "CacheStatistics",
    "StatisticsRecorder",
    "CacheEventListener",
    "CacheEventDispatcher",
    "RetryPolicy",
    "is_transient",
]
