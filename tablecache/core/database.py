"""Async database service with SQLModel and SQLAlchemy 2.0."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlmodel import SQLModel
from sqlalchemy import event, inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from tablecache.core.config import CacheSettings
from tablecache.core.exceptions import CacheError, CacheStoreError, CacheUnavailableError
from tablecache.core.logging import get_logger
from tablecache.models.cache import CacheEntry
from tablecache.services.retry import RetryPolicy, is_transient

logger = get_logger(__name__)

T = TypeVar("T")

SUPPORTED_DIALECTS = ("postgresql", "sqlite")


class InitializationGuard:
    """One-shot async gate.

    The first caller runs the initializer while concurrent callers wait on
    the lock; once it succeeds nobody runs it again. A failed run leaves the
    gate open so the next caller retries.
    """

    def __init__(self, initializer: Callable[[], Awaitable[None]]):
        self._initializer = initializer
        self._lock = asyncio.Lock()
        self._done = False

    @property
    def initialized(self) -> bool:
        return self._done

    async def ensure(self) -> None:
        if self._done:
            return
        async with self._lock:
            if self._done:
                return
            await self._initializer()
            self._done = True

    def reset(self) -> None:
        self._done = False


class Database:
    """Async engine, sessions and retrying execution for the cache table."""

    def __init__(self, settings: CacheSettings, retry_policy: Optional[RetryPolicy] = None):
        self.settings = settings
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self.engine = None
        self.async_session = None
        self._schema_guard = InitializationGuard(self._create_schema)

    async def startup(self):
        """Create the engine and session factory. Safe to call twice."""
        if self.engine is not None:
            return

        try:
            backend = make_url(self.settings.database_url).get_backend_name()
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Invalid database URL: {e}", operation="startup") from e
        if backend not in SUPPORTED_DIALECTS:
            raise CacheStoreError(f"Unsupported database dialect: {backend}", operation="startup")

        engine_kwargs = {"echo": self.settings.database_echo, "future": True}
        if not self.settings.is_sqlite:
            engine_kwargs["pool_size"] = self.settings.database_pool_size
            engine_kwargs["max_overflow"] = self.settings.database_max_overflow
            engine_kwargs["pool_pre_ping"] = True

        try:
            self.engine = create_async_engine(self.settings.database_url, **engine_kwargs)
        except SQLAlchemyError as e:
            logger.error("Database startup failed", error=str(e))
            raise CacheStoreError(f"Cannot create engine: {e}", operation="startup") from e

        if self.dialect_name == "sqlite":
            self._install_sqlite_pragmas()

        self.async_session = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        logger.info("Database engine created", dialect=self.dialect_name)

    def _install_sqlite_pragmas(self) -> None:
        in_memory = ":memory:" in self.settings.database_url

        @event.listens_for(self.engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            # LIKE must be case-sensitive to match PostgreSQL
            cursor.execute("PRAGMA case_sensitive_like = ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode = WAL")
            cursor.close()

    async def shutdown(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session = None
            self._schema_guard.reset()
            logger.info("Database connections closed")

    @property
    def dialect_name(self) -> str:
        if self.engine is None:
            raise CacheStoreError("Database not initialized")
        return self.engine.dialect.name

    def insert(self):
        """Dialect-specific INSERT for the cache table (supports ON CONFLICT)."""
        if self.dialect_name == "postgresql":
            return pg_insert(CacheEntry.__table__)
        return sqlite_insert(CacheEntry.__table__)

    @asynccontextmanager
    async def get_session(self):
        """Get async database session."""
        if not self.async_session:
            raise CacheStoreError("Database not initialized")

        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]],
                  key: Optional[str] = None) -> T:
        """Run ``work(session)`` in its own transaction and commit it.

        Transient connectivity failures are retried with a fresh session
        under the retry policy. Other SQLAlchemy failures are raised as
        CacheStoreError; cache errors raised by ``work`` pass through.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                async with self.get_session() as session:
                    result = await work(session)
                    await session.commit()
                    return result
            except CacheError:
                raise
            except (SQLAlchemyError, OSError) as e:
                if self.retry_policy.should_retry(e, attempt):
                    delay = self.retry_policy.calculate_delay(attempt - 1)
                    logger.warning("Transient store failure, retrying",
                                   operation=operation,
                                   key=key,
                                   attempt=attempt,
                                   max_attempts=self.retry_policy.max_attempts,
                                   delay=delay,
                                   error=str(e)[:200])
                    await asyncio.sleep(delay)
                    continue
                if is_transient(e):
                    raise CacheUnavailableError("Store unavailable", attempts=attempt,
                                                operation=operation, key=key) from e
                raise CacheStoreError(f"Store operation failed: {e}",
                                      operation=operation, key=key) from e

    # ============================================================================
    # Schema
    # ============================================================================

    async def ensure_schema(self) -> None:
        """Provision the cache table once per Database instance."""
        await self._schema_guard.ensure()

    @property
    def schema_ready(self) -> bool:
        return self._schema_guard.initialized

    async def table_exists(self) -> bool:
        """Check whether the cache table exists."""
        if self.engine is None:
            raise CacheStoreError("Database not initialized", operation="table_exists")
        try:
            async with self.engine.connect() as conn:
                return await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).has_table(CacheEntry.__tablename__)
                )
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Failed to check if table exists: {e}",
                                  operation="table_exists") from e

    async def _create_schema(self) -> None:
        if self.engine is None:
            raise CacheStoreError("Database not initialized", operation="ensure_schema")
        table_name = CacheEntry.__tablename__
        try:
            async with self.engine.begin() as conn:
                existed = await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).has_table(table_name)
                )
                await conn.run_sync(SQLModel.metadata.create_all, tables=[CacheEntry.__table__])
                if (not existed and self.dialect_name == "postgresql"
                        and self.settings.unlogged_table):
                    await conn.execute(text(f"ALTER TABLE {table_name} SET UNLOGGED"))
        except SQLAlchemyError as e:
            logger.error("Failed to initialize cache table", error=str(e))
            raise CacheStoreError(f"Failed to initialize cache table: {e}",
                                  operation="ensure_schema") from e

        if existed:
            logger.debug("Cache table already exists, skipping creation", table=table_name)
        else:
            logger.info("Cache table created", table=table_name, dialect=self.dialect_name)

    async def ping(self) -> bool:
        """Run SELECT 1 against the store."""
        async def _select_one(session: AsyncSession) -> Any:
            return (await session.execute(text("SELECT 1"))).scalar()

        return await self.run("ping", _select_one) == 1
