"""Relational cache table: one row per key with TTL bookkeeping.

Timestamps are Unix seconds (float) so the expiry predicate stays plain
arithmetic on every backend.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import SQLModel, Field, Column, JSON
from sqlalchemy import Index, text
from sqlalchemy.dialects.postgresql import JSONB


class TTLPolicy(str, Enum):
    """How an entry's TTL is measured.

    ABSOLUTE:  expires ttl seconds after the last write.
    SLIDING:   expires ttl seconds after the last refreshing read.
    """
    ABSOLUTE = "ABSOLUTE"
    SLIDING = "SLIDING"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TTLPolicy":
        """Parse a stored policy string. Unknown or missing values mean ABSOLUTE."""
        try:
            return cls(value)
        except ValueError:
            return cls.ABSOLUTE


class CacheEntry(SQLModel, table=True):
    """Cached value with optional expiration."""

    __tablename__ = "cache_entries"
    __table_args__ = (
        Index(
            "cache_entries_sliding_ttl_idx", "ttl_policy", "last_accessed",
            postgresql_where=text("ttl_policy = 'SLIDING'"),
            sqlite_where=text("ttl_policy = 'SLIDING'"),
        ),
        Index(
            "cache_entries_ttl_idx", "updated_at", "ttl_seconds",
            postgresql_where=text("ttl_seconds IS NOT NULL"),
            sqlite_where=text("ttl_seconds IS NOT NULL"),
        ),
        Index(
            "cache_entries_key_pattern_idx", "key",
            postgresql_ops={"key": "text_pattern_ops"},
        ),
    )

    key: str = Field(primary_key=True, max_length=512)
    value: Dict[str, Any] = Field(
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    )
    updated_at: float = Field(default_factory=time.time)
    ttl_seconds: Optional[int] = Field(default=None)
    ttl_policy: str = Field(default=TTLPolicy.ABSOLUTE.value, max_length=10)
    last_accessed: Optional[float] = Field(default_factory=time.time)
