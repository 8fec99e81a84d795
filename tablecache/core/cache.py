"""Key-value cache stored in a single relational table.

The database owns storage and per-row atomicity. This module owns the entry
lifecycle: TTL policies, lazy expiry on read, sliding refresh, null caching,
statistics, the cached size counter and event fan-out.

Every public operation validates its arguments before any I/O, then runs
each store interaction in its own transaction through ``Database.run``.
"""

import time
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type, Union

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tablecache.core.cleanup import ExpirationSweeper
from tablecache.core.config import CacheSettings
from tablecache.core.database import Database, InitializationGuard
from tablecache.core.exceptions import CacheError, CacheStoreError, CacheValidationError
from tablecache.core.logging import get_logger, log_cache_operation
from tablecache.models.cache import CacheEntry, TTLPolicy
from tablecache.services.codec import CacheResult, EntryCodec, NULL_VALUE
from tablecache.services.events import CacheEventDispatcher, CacheEventListener
from tablecache.services.expiration import (
    expired_clause,
    is_expired,
    live_clause,
    remaining_ttl,
)
from tablecache.services.statistics import CacheStatistics, StatisticsRecorder

logger = get_logger(__name__)

TTL = Union[int, float, timedelta, None]

_table = CacheEntry.__table__

MAX_KEY_LENGTH = 512
PUT_IF_ABSENT_ATTEMPTS = 3

# Columns replaced on every write
_WRITE_COLUMNS = ("value", "updated_at", "ttl_seconds", "ttl_policy", "last_accessed")


def glob_to_like(pattern: str) -> str:
    """Translate a key pattern into a SQL LIKE pattern (escape character ``\\``).

    ``*`` and ``%`` match any sequence, ``?`` and ``_`` match one character.
    A backslash makes the next character literal.
    """
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            nxt = pattern[i + 1]
            out.append("\\" + nxt if nxt in "%_\\" else nxt)
            i += 2
            continue
        if ch == "*":
            out.append("%")
        elif ch == "?":
            out.append("_")
        elif ch == "\\":
            out.append("\\\\")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _validate_key(key: Any, operation: str) -> str:
    if not isinstance(key, str) or not key:
        raise CacheValidationError("Cache key must be a non-empty string",
                                   operation=operation,
                                   key=key if isinstance(key, str) else None)
    if len(key) > MAX_KEY_LENGTH:
        raise CacheValidationError(f"Cache key longer than {MAX_KEY_LENGTH} characters",
                                   operation=operation, key=key[:64])
    return key


def _unique_keys(keys: Iterable[str], operation: str) -> List[str]:
    """Validate a batch of keys and drop duplicates, keeping first-seen order."""
    if isinstance(keys, (str, bytes)):
        raise CacheValidationError("Expected a collection of keys, got a single string",
                                   operation=operation)
    return list(dict.fromkeys(_validate_key(k, operation) for k in keys))


def _validate_policy(policy: Any, operation: str, key: Optional[str] = None) -> TTLPolicy:
    if policy is None:
        raise CacheValidationError("TTL policy cannot be None", operation=operation, key=key)
    if isinstance(policy, TTLPolicy):
        return policy
    if isinstance(policy, str):
        try:
            return TTLPolicy(policy.upper())
        except ValueError:
            pass
    raise CacheValidationError(f"Unknown TTL policy: {policy!r}", operation=operation, key=key)


def _validate_ttl(ttl: Any, operation: str, key: Optional[str] = None) -> int:
    """Convert a supplied TTL to whole seconds, rejecting non-positive values."""
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    elif isinstance(ttl, (int, float)) and not isinstance(ttl, bool):
        seconds = float(ttl)
    else:
        raise CacheValidationError(f"TTL must be seconds or a timedelta, got {type(ttl).__name__}",
                                   operation=operation, key=key)
    if seconds <= 0:
        raise CacheValidationError("TTL must be positive", operation=operation, key=key)
    whole = int(seconds)
    if whole < 1:
        raise CacheValidationError("TTL must be at least one second", operation=operation, key=key)
    return whole


class CacheStore:
    """Async cache over the ``cache_entries`` table.

    Usage::

        async with CacheStore(CacheSettings(allow_null_values=True)) as cache:
            await cache.put("user:1", {"name": "Ada"}, ttl=60, policy=TTLPolicy.SLIDING)
            result = await cache.get("user:1")
            if result:
                print(result.value)

    The store starts lazily on first use; ``startup()`` may also be called
    explicitly. Schema provisioning and background cleanup follow settings.
    """

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        database: Optional[Database] = None,
        listeners: Optional[Iterable[CacheEventListener]] = None,
        time_func: Callable[[], float] = time.time,
        codec: Optional[EntryCodec] = None,
    ):
        self.settings = settings or CacheSettings()
        self._owns_database = database is None
        self.database = database or Database(self.settings)
        self.codec = codec or EntryCodec()
        self.statistics = StatisticsRecorder()
        self.events = CacheEventDispatcher(listeners)
        self._time_func = time_func
        self._startup_guard = InitializationGuard(self._start)
        self._sweeper: Optional[ExpirationSweeper] = None
        # Wall-clock start time, independent of time_func
        self.started_at: Optional[float] = None

        # (count, computed_at) and the generation it was computed under
        self._size_cache: Optional[Tuple[int, float]] = None
        self._size_generation = 0

    # ============================================================================
    # Lifecycle
    # ============================================================================

    async def startup(self) -> None:
        """Start the database, provision the schema and the sweeper (once)."""
        await self._startup_guard.ensure()

    async def _start(self) -> None:
        await self.database.startup()
        if self.settings.auto_create_table:
            await self.database.ensure_schema()
        if self.settings.background_cleanup_enabled:
            self._sweeper = ExpirationSweeper(
                self,
                interval=self.settings.cleanup_interval,
                shutdown_timeout=self.settings.shutdown_timeout,
            )
            await self._sweeper.start()
        self.started_at = time.time()
        logger.info("Cache store started",
                    allow_null_values=self.settings.allow_null_values,
                    background_cleanup=self.settings.background_cleanup_enabled)

    async def shutdown(self) -> None:
        """Stop the sweeper and release connections. Safe to call repeatedly."""
        if self._sweeper is not None:
            await self._sweeper.stop()
            self._sweeper = None
        if self._owns_database:
            await self.database.shutdown()
        self._startup_guard.reset()
        self.started_at = None

    async def close(self) -> None:
        await self.shutdown()

    async def __aenter__(self) -> "CacheStore":
        await self.startup()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    @property
    def sweeper(self) -> Optional[ExpirationSweeper]:
        return self._sweeper

    @property
    def allow_null_values(self) -> bool:
        return self.settings.allow_null_values

    def _now(self) -> float:
        return float(self._time_func())

    # ============================================================================
    # Helpers
    # ============================================================================

    def _resolve_ttl(self, ttl: TTL, operation: str, key: Optional[str] = None) -> Optional[int]:
        if ttl is None:
            return self.settings.default_ttl
        return _validate_ttl(ttl, operation, key)

    def _encode(self, key: str, value: Any, operation: str) -> Dict[str, Any]:
        if (value is None or value is NULL_VALUE) and not self.settings.allow_null_values:
            raise CacheValidationError("Cache value cannot be None (allow_null_values=False)",
                                       operation=operation, key=key)
        return self.codec.encode(value, key=key)

    def _parse_policy(self, key: str, stored: Optional[str]) -> TTLPolicy:
        policy = TTLPolicy.parse(stored)
        if stored != policy.value:
            logger.warning("Invalid TTL policy, defaulting to ABSOLUTE", key=key, ttl_policy=stored)
        return policy

    @staticmethod
    def _row(key: str, payload: Dict[str, Any], ttl_seconds: Optional[int],
             policy: TTLPolicy, now: float) -> Dict[str, Any]:
        return {
            "key": key,
            "value": payload,
            "updated_at": now,
            "ttl_seconds": ttl_seconds,
            "ttl_policy": policy.value,
            "last_accessed": now,
        }

    def _upsert(self, rows: List[Dict[str, Any]]):
        stmt = self.database.insert().values(rows)
        return stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={column: stmt.excluded[column] for column in _WRITE_COLUMNS},
        )

    def _invalidate_size(self) -> None:
        self._size_generation += 1
        self._size_cache = None

    # ============================================================================
    # Reads
    # ============================================================================

    async def get(self, key: str, refresh: bool = True,
                  target_type: Optional[Type] = None) -> CacheResult:
        """Look up a key.

        Args:
            key: Cache key
            refresh: Move a SLIDING entry's expiry forward (ignored for ABSOLUTE)
            target_type: Optional type to validate the cached value into

        Returns:
            CacheResult.hit(value), CacheResult.null() or CacheResult.miss()
        """
        _validate_key(key, "get")
        await self.startup()

        async def _fetch(session: AsyncSession):
            result = await session.execute(select(_table).where(CacheEntry.key == key))
            return result.first()

        row = await self.database.run("get", _fetch, key=key)
        if row is None:
            self.statistics.record_misses()
            log_cache_operation(logger, "get", key, hit=False)
            return CacheResult.miss()

        now = self._now()
        policy = self._parse_policy(key, row.ttl_policy)
        if is_expired(row.updated_at, row.last_accessed, row.ttl_seconds, policy, now):
            await self._remove_expired(key, now)
            self.statistics.record_misses()
            log_cache_operation(logger, "get", key, hit=False, expired=True)
            return CacheResult.miss()

        if refresh and policy is TTLPolicy.SLIDING and row.ttl_seconds is not None:
            await self._touch(key, now)

        value = self.codec.decode(row.value, target_type, key=key)
        self.statistics.record_hits()
        log_cache_operation(logger, "get", key, hit=True)
        return CacheResult.from_decoded(value)

    async def _remove_expired(self, key: str, now: float) -> None:
        """Delete ``key`` only if it is still expired; failures are logged."""
        async def _delete(session: AsyncSession) -> int:
            result = await session.execute(
                delete(_table).where(CacheEntry.key == key, expired_clause(now))
            )
            return result.rowcount

        try:
            removed = await self.database.run("expire", _delete, key=key)
        except CacheError as e:
            logger.warning("Failed to remove expired entry", key=key, error=str(e))
            return
        if removed:
            self._invalidate_size()

    async def _touch(self, key: str, now: float) -> None:
        """Set last_accessed for a sliding entry; failures are logged."""
        async def _update(session: AsyncSession) -> None:
            await session.execute(
                update(_table).where(CacheEntry.key == key).values(last_accessed=now)
            )

        try:
            await self.database.run("refresh", _update, key=key)
        except CacheError as e:
            logger.warning("Sliding TTL refresh failed", key=key, error=str(e))

    async def contains_key(self, key: str) -> bool:
        """Check for a live entry without touching statistics or sliding timers."""
        _validate_key(key, "contains_key")
        await self.startup()
        now = self._now()

        async def _exists(session: AsyncSession) -> bool:
            result = await session.execute(
                select(CacheEntry.key).where(CacheEntry.key == key, live_clause(now)).limit(1)
            )
            return result.first() is not None

        return await self.database.run("contains_key", _exists, key=key)

    async def get_all(self, keys: Iterable[str],
                      target_type: Optional[Type] = None) -> Dict[str, Any]:
        """Fetch many keys in one query.

        Sliding entries are NOT refreshed and expired rows are skipped without
        being deleted. Cached nulls map to NULL_VALUE. Missing keys are
        absent from the result.
        """
        unique = _unique_keys(keys, "get_all")
        if not unique:
            return {}
        await self.startup()

        async def _fetch(session: AsyncSession):
            result = await session.execute(select(_table).where(CacheEntry.key.in_(unique)))
            return result.all()

        rows = await self.database.run("get_all", _fetch)
        now = self._now()
        found: Dict[str, Any] = {}
        for row in rows:
            policy = self._parse_policy(row.key, row.ttl_policy)
            if is_expired(row.updated_at, row.last_accessed, row.ttl_seconds, policy, now):
                continue
            found[row.key] = self.codec.decode(row.value, target_type, key=row.key)

        self.statistics.record_hits(len(found))
        self.statistics.record_misses(len(unique) - len(found))
        logger.debug("Batch get", requested=len(unique), found=len(found))
        return {k: found[k] for k in unique if k in found}

    async def get_keys(self, pattern: str) -> List[str]:
        """Return live keys matching a glob/LIKE pattern, sorted."""
        if not isinstance(pattern, str) or not pattern:
            raise CacheValidationError("Pattern cannot be empty", operation="get_keys")
        await self.startup()
        like = glob_to_like(pattern)
        now = self._now()

        async def _fetch(session: AsyncSession) -> List[str]:
            result = await session.execute(
                select(CacheEntry.key)
                .where(CacheEntry.key.like(like, escape="\\"), live_clause(now))
                .order_by(CacheEntry.key)
            )
            return list(result.scalars().all())

        return await self.database.run("get_keys", _fetch)

    async def get_all_keys(self) -> List[str]:
        return await self.get_keys("*")

    async def _fetch_live(self, key: str, operation: str):
        async def _fetch(session: AsyncSession):
            result = await session.execute(select(_table).where(CacheEntry.key == key))
            return result.first()

        row = await self.database.run(operation, _fetch, key=key)
        if row is None:
            return None
        policy = self._parse_policy(key, row.ttl_policy)
        if is_expired(row.updated_at, row.last_accessed, row.ttl_seconds, policy, self._now()):
            return None
        return row

    async def get_remaining_ttl(self, key: str) -> Optional[timedelta]:
        """Time until expiry; None if the key is absent, expired or permanent."""
        _validate_key(key, "get_remaining_ttl")
        await self.startup()
        row = await self._fetch_live(key, "get_remaining_ttl")
        if row is None:
            return None
        return remaining_ttl(row.updated_at, row.last_accessed, row.ttl_seconds,
                             TTLPolicy.parse(row.ttl_policy), self._now())

    async def get_ttl_policy(self, key: str) -> Optional[TTLPolicy]:
        """Stored TTL policy of a live key, or None if absent or expired."""
        _validate_key(key, "get_ttl_policy")
        await self.startup()
        row = await self._fetch_live(key, "get_ttl_policy")
        if row is None:
            return None
        return self._parse_policy(key, row.ttl_policy)

    async def size(self) -> int:
        """Count live entries.

        The count is cached for ``settings.size_cache_seconds``. Any mutation
        through this store invalidates it, so a caller's own write is always
        visible to their next size() call; writes from other processes may
        take up to one window to show.
        """
        now = self._now()
        cached = self._size_cache
        if cached is not None and now - cached[1] < self.settings.size_cache_seconds:
            logger.debug("Returning cached size", size=cached[0])
            return cached[0]

        await self.startup()
        generation = self._size_generation

        async def _count(session: AsyncSession) -> int:
            result = await session.execute(
                select(func.count()).select_from(_table).where(live_clause(now))
            )
            return int(result.scalar_one())

        count = await self.database.run("size", _count)
        # A mutation during the query makes this count stale
        if generation == self._size_generation:
            self._size_cache = (count, now)
        logger.debug("Cache size updated", size=count)
        return count

    # ============================================================================
    # Writes
    # ============================================================================

    async def put(self, key: str, value: Any, ttl: TTL = None,
                  policy: TTLPolicy = TTLPolicy.ABSOLUTE) -> None:
        """Insert or fully replace an entry.

        Args:
            key: Cache key
            value: Any JSON-compatible value (pydantic models, dataclasses,
                datetimes included). None requires allow_null_values.
            ttl: Seconds or timedelta; None uses settings.default_ttl
                (permanent when that is unset)
            policy: ABSOLUTE or SLIDING
        """
        _validate_key(key, "put")
        ttl_seconds = self._resolve_ttl(ttl, "put", key)
        policy = _validate_policy(policy, "put", key)
        payload = self._encode(key, value, "put")
        await self.startup()
        row = self._row(key, payload, ttl_seconds, policy, self._now())

        async def _write(session: AsyncSession) -> None:
            await session.execute(self._upsert([row]))

        await self.database.run("put", _write, key=key)
        self.statistics.record_puts()
        self._invalidate_size()
        log_cache_operation(logger, "put", key, ttl=ttl_seconds, policy=policy.value)
        await self.events.fire_on_put(key, value)

    async def put_if_absent(self, key: str, value: Any, ttl: TTL = None,
                            policy: TTLPolicy = TTLPolicy.ABSOLUTE) -> CacheResult:
        """Insert only if no live entry exists.

        Returns CacheResult.miss() when this call inserted the value, otherwise
        the live entry's value (hit or null) without touching its timers.
        An expired row that was not yet swept counts as absent and is
        replaced in the same statement.
        """
        _validate_key(key, "put_if_absent")
        ttl_seconds = self._resolve_ttl(ttl, "put_if_absent", key)
        policy = _validate_policy(policy, "put_if_absent", key)
        payload = self._encode(key, value, "put_if_absent")
        await self.startup()

        for _ in range(PUT_IF_ABSENT_ATTEMPTS):
            now = self._now()
            row = self._row(key, payload, ttl_seconds, policy, now)

            async def _conditional_insert(session: AsyncSession, row=row, now=now):
                stmt = self.database.insert().values([row])
                stmt = stmt.on_conflict_do_update(
                    index_elements=["key"],
                    set_={column: stmt.excluded[column] for column in _WRITE_COLUMNS},
                    where=expired_clause(now),
                ).returning(CacheEntry.key)
                inserted = (await session.execute(stmt)).first() is not None
                if inserted:
                    return True, None
                existing = await session.execute(
                    select(CacheEntry.value).where(CacheEntry.key == key, live_clause(now))
                )
                return False, existing.first()

            inserted, existing = await self.database.run("put_if_absent", _conditional_insert, key=key)
            if inserted:
                self.statistics.record_puts()
                self._invalidate_size()
                log_cache_operation(logger, "put_if_absent", key, inserted=True)
                await self.events.fire_on_put(key, value)
                return CacheResult.miss()
            if existing is not None:
                log_cache_operation(logger, "put_if_absent", key, inserted=False)
                return CacheResult.from_decoded(self.codec.decode(existing.value, key=key))
            # The winner was removed between the two statements; try again
            logger.debug("Conditional insert raced with a removal, retrying", key=key)

        raise CacheStoreError("Conditional insert did not settle",
                              operation="put_if_absent", key=key)

    async def put_all(self, entries: Mapping[str, Any], ttl: TTL = None,
                      policy: TTLPolicy = TTLPolicy.ABSOLUTE) -> int:
        """Upsert many entries with the same TTL and policy.

        All keys and values are validated and encoded before anything is
        written, and the rows are committed in one transaction: the batch is
        all-or-nothing.
        """
        ttl_seconds = self._resolve_ttl(ttl, "put_all")
        policy = _validate_policy(policy, "put_all")
        if not entries:
            return 0
        pending = []
        for key, value in entries.items():
            _validate_key(key, "put_all")
            pending.append((key, value, self._encode(key, value, "put_all")))
        await self.startup()
        now = self._now()
        rows = [self._row(key, payload, ttl_seconds, policy, now) for key, _, payload in pending]

        async def _write(session: AsyncSession) -> None:
            await session.execute(self._upsert(rows))

        await self.database.run("put_all", _write)
        self.statistics.record_puts(len(rows))
        self._invalidate_size()
        logger.debug("Batch put", count=len(rows), ttl=ttl_seconds, policy=policy.value)
        for key, value, _ in pending:
            await self.events.fire_on_put(key, value)
        return len(rows)

    async def refresh_ttl(self, key: str, ttl: TTL,
                          policy: TTLPolicy = TTLPolicy.ABSOLUTE) -> bool:
        """Set a new TTL on a live entry and restart its clock.

        The policy defaults to ABSOLUTE even for SLIDING entries; pass
        ``policy=TTLPolicy.SLIDING`` to keep sliding behaviour. Permanent
        entries become expiring ones.

        Returns:
            True if a live entry was updated
        """
        _validate_key(key, "refresh_ttl")
        if ttl is None:
            raise CacheValidationError("TTL cannot be None", operation="refresh_ttl", key=key)
        ttl_seconds = _validate_ttl(ttl, "refresh_ttl", key)
        policy = _validate_policy(policy, "refresh_ttl", key)
        await self.startup()
        now = self._now()

        async def _update(session: AsyncSession) -> int:
            result = await session.execute(
                update(_table)
                .where(CacheEntry.key == key, live_clause(now))
                .values(ttl_seconds=ttl_seconds, ttl_policy=policy.value,
                        updated_at=now, last_accessed=now)
            )
            return result.rowcount

        updated = bool(await self.database.run("refresh_ttl", _update, key=key))
        if updated:
            self._invalidate_size()
            logger.debug("Refreshed TTL", key=key, ttl=ttl_seconds, policy=policy.value)
        else:
            logger.debug("TTL refresh skipped, key not found", key=key)
        return updated

    # ============================================================================
    # Removal
    # ============================================================================

    async def evict(self, key: str) -> bool:
        """Delete a key. Returns True if a row was removed; absence is not an error."""
        _validate_key(key, "evict")
        await self.startup()

        async def _delete(session: AsyncSession) -> int:
            result = await session.execute(delete(_table).where(CacheEntry.key == key))
            return result.rowcount

        deleted = await self.database.run("evict", _delete, key=key)
        log_cache_operation(logger, "evict", key, deleted=bool(deleted))
        if not deleted:
            return False
        self.statistics.record_evictions()
        self._invalidate_size()
        await self.events.fire_on_evict(key)
        return True

    async def evict_all(self, keys: Iterable[str]) -> int:
        """Delete many keys in one statement. Returns the number removed."""
        unique = _unique_keys(keys, "evict_all")
        if not unique:
            return 0
        await self.startup()

        async def _delete(session: AsyncSession) -> List[str]:
            result = await session.execute(
                delete(_table).where(CacheEntry.key.in_(unique)).returning(CacheEntry.key)
            )
            return list(result.scalars().all())

        deleted = await self.database.run("evict_all", _delete)
        await self._after_bulk_evict(deleted)
        return len(deleted)

    async def evict_by_pattern(self, pattern: str) -> int:
        """Delete every row whose key matches, live or expired. Returns the count."""
        if not isinstance(pattern, str) or not pattern:
            raise CacheValidationError("Pattern cannot be empty", operation="evict_by_pattern")
        await self.startup()
        like = glob_to_like(pattern)

        async def _delete(session: AsyncSession) -> List[str]:
            result = await session.execute(
                delete(_table).where(CacheEntry.key.like(like, escape="\\")).returning(CacheEntry.key)
            )
            return list(result.scalars().all())

        deleted = await self.database.run("evict_by_pattern", _delete)
        if deleted:
            logger.debug("Evicted entries by pattern", pattern=pattern, count=len(deleted))
        await self._after_bulk_evict(deleted)
        return len(deleted)

    async def _after_bulk_evict(self, deleted: List[str]) -> None:
        if not deleted:
            return
        self.statistics.record_evictions(len(deleted))
        self._invalidate_size()
        for key in deleted:
            await self.events.fire_on_evict(key)

    async def clear(self) -> int:
        """Delete every entry. Fires on_clear once, even when the table was empty."""
        await self.startup()

        async def _delete(session: AsyncSession) -> int:
            result = await session.execute(delete(_table))
            return result.rowcount

        deleted = await self.database.run("clear", _delete)
        self.statistics.record_evictions(deleted)
        self._invalidate_size()
        logger.info("Cache cleared", deleted=deleted)
        await self.events.fire_on_clear()
        return deleted

    async def cleanup_expired(self) -> int:
        """Bulk-delete every expired entry. Returns the number removed."""
        await self.startup()
        now = self._now()

        async def _delete(session: AsyncSession) -> int:
            result = await session.execute(delete(_table).where(expired_clause(now)))
            return result.rowcount

        removed = await self.database.run("cleanup_expired", _delete)
        if removed > 0:
            self._invalidate_size()
            logger.info("Cleaned up expired cache entries", count=removed)
        else:
            logger.debug("No expired cache entries found during cleanup")
        return removed

    # ============================================================================
    # Statistics, listeners, schema
    # ============================================================================

    def get_statistics(self) -> CacheStatistics:
        return self.statistics.snapshot()

    def reset_statistics(self) -> None:
        self.statistics.reset()
        logger.debug("Cache statistics reset")

    def add_listener(self, listener: CacheEventListener) -> None:
        self.events.add_listener(listener)

    def remove_listener(self, listener: CacheEventListener) -> bool:
        return self.events.remove_listener(listener)

    async def table_exists(self) -> bool:
        await self.database.startup()
        return await self.database.table_exists()
