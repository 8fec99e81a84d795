"""Async key-value cache stored in a relational table.

Entries live in a single ``cache_entries`` table on PostgreSQL or SQLite and
expire under an ABSOLUTE or SLIDING TTL policy.
"""

from tablecache.core.config import CacheSettings
from tablecache.core.cache import CacheStore, glob_to_like
from tablecache.core.cleanup import ExpirationSweeper
from tablecache.core.database import Database, InitializationGuard
from tablecache.core.exceptions import (
    CacheError,
    CacheValidationError,
    CacheSerializationError,
    CacheStoreError,
    CacheUnavailableError,
)
from tablecache.models.cache import CacheEntry, TTLPolicy
from tablecache.services.codec import CacheResult, NULL_VALUE
from tablecache.services.events import CacheEventListener
from tablecache.services.retry import RetryPolicy
from tablecache.services.statistics import CacheStatistics

__version__ = "0.1.0"

__all__ = [
    "CacheSettings",
    "CacheStore",
    "glob_to_like",
    "ExpirationSweeper",
    "Database",
    "InitializationGuard",
    "CacheError",
    "CacheValidationError",
    "CacheSerializationError",
    "CacheStoreError",
    "CacheUnavailableError",
    "CacheEntry",
    "TTLPolicy",
    "CacheResult",
    "NULL_VALUE",
    "CacheEventListener",
    "RetryPolicy",
    "CacheStatistics",
]
