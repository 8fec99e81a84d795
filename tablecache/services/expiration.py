"""Entry liveness under ABSOLUTE and SLIDING TTL policies.

The same rules exist twice: as pure functions for rows already loaded into
Python, and as SQL predicates for bulk statements (size, sweep, key listing).
Both use strict comparison: an entry whose deadline equals ``now`` is still
live.
"""

from datetime import timedelta
from typing import Optional, Union

from sqlalchemy import and_, func, or_

from tablecache.models.cache import CacheEntry, TTLPolicy


PolicyLike = Union[TTLPolicy, str, None]


def expiration_deadline(updated_at: float, last_accessed: Optional[float],
                        ttl_seconds: Optional[int], policy: PolicyLike) -> Optional[float]:
    """Return the Unix time after which the entry is expired, or None if permanent."""
    if ttl_seconds is None:
        return None
    if not isinstance(policy, TTLPolicy):
        policy = TTLPolicy.parse(policy)
    if policy is TTLPolicy.SLIDING:
        reference = last_accessed if last_accessed is not None else updated_at
    else:
        reference = updated_at
    return reference + ttl_seconds


def is_expired(updated_at: float, last_accessed: Optional[float],
               ttl_seconds: Optional[int], policy: PolicyLike, now: float) -> bool:
    """Decide whether an entry is expired at ``now``."""
    deadline = expiration_deadline(updated_at, last_accessed, ttl_seconds, policy)
    if deadline is None:
        return False
    return now > deadline


def remaining_ttl(updated_at: float, last_accessed: Optional[float],
                  ttl_seconds: Optional[int], policy: PolicyLike,
                  now: float) -> Optional[timedelta]:
    """Time left before expiry; None for permanent or already-expired entries."""
    deadline = expiration_deadline(updated_at, last_accessed, ttl_seconds, policy)
    if deadline is None:
        return None
    remaining = deadline - now
    if remaining < 0:
        return None
    return timedelta(seconds=remaining)


# ============================================================================
# SQL predicates (table columns, usable in ORM selects and core DML)
# ============================================================================

_c = CacheEntry.__table__.c


def _sliding_deadline():
    return func.coalesce(_c.last_accessed, _c.updated_at) + _c.ttl_seconds


def _absolute_deadline():
    return _c.updated_at + _c.ttl_seconds


def expired_clause(now: float):
    """WHERE clause matching rows that are expired at ``now``."""
    sliding = _c.ttl_policy == TTLPolicy.SLIDING.value
    return and_(
        _c.ttl_seconds.is_not(None),
        or_(
            and_(sliding, _sliding_deadline() < now),
            and_(~sliding, _absolute_deadline() < now),
        ),
    )


def live_clause(now: float):
    """WHERE clause matching rows that are live at ``now``."""
    sliding = _c.ttl_policy == TTLPolicy.SLIDING.value
    return or_(
        _c.ttl_seconds.is_(None),
        and_(sliding, _sliding_deadline() >= now),
        and_(~sliding, _absolute_deadline() >= now),
    )
