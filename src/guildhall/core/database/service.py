"""
Async engine and session ownership for the Guildhall engine.

Every state change made by an engine operation runs inside one
`DatabaseService.get_transaction()` block: commit when the block exits
normally, rollback and re-raise when it doesn't. Services never call
`session.commit()` themselves.

SQLite notes
------------
- The stdlib driver opens transactions lazily and mishandles SAVEPOINT, so the
  driver is put in autocommit mode and the engine issues the BEGIN itself.
- That BEGIN is `BEGIN IMMEDIATE`: a second writer on the same file waits for
  the first to commit instead of failing halfway through with
  "database is locked". The waiter then reads the committed rows and reports
  the domain conflict (no active task, task already running).
- `:memory:` URLs share a single connection through StaticPool.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, Optional, Type

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool, StaticPool

from guildhall.core.config.config import Config
from guildhall.core.exceptions import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
)
from guildhall.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class _EngineSettings:
    """Connection settings frozen at initialize() time."""

    url: str
    echo: bool
    pool_class: Type[Pool]
    pool_size: int
    max_overflow: int
    pool_recycle: int
    pool_timeout: int
    statement_timeout_ms: int

    @property
    def scheme(self) -> str:
        return self.url.split(":", 1)[0]

    @property
    def is_sqlite(self) -> bool:
        return self.scheme.startswith("sqlite")

    @property
    def is_postgres(self) -> bool:
        return self.scheme.startswith("postgresql")

    @classmethod
    def from_config(cls, url: Optional[str]) -> "_EngineSettings":
        database_url = url or Config.DATABASE_URL
        if not isinstance(database_url, str) or not database_url:
            raise DatabaseInitializationError(
                "DATABASE_URL must be configured as a non-empty string"
            )

        if database_url.startswith("sqlite") and ":memory:" in database_url:
            pool_class: Type[Pool] = StaticPool
        elif Config.is_testing():
            pool_class = NullPool
        else:
            pool_class = AsyncAdaptedQueuePool

        return cls(
            url=database_url,
            echo=bool(Config.DATABASE_ECHO),
            pool_class=pool_class,
            pool_size=Config.DATABASE_POOL_SIZE,
            max_overflow=Config.DATABASE_MAX_OVERFLOW,
            pool_recycle=Config.DATABASE_POOL_RECYCLE,
            pool_timeout=Config.DATABASE_POOL_TIMEOUT,
            statement_timeout_ms=Config.DATABASE_STATEMENT_TIMEOUT_MS,
        )

    def engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"echo": self.echo, "poolclass": self.pool_class}
        if self.pool_class is AsyncAdaptedQueuePool:
            kwargs.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_recycle=self.pool_recycle,
                pool_timeout=self.pool_timeout,
            )
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
        return kwargs


def _configure_sqlite(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        # Take the write lock up front so concurrent writers queue.
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseService:
    """
    Process-wide owner of the AsyncEngine.

    Lifecycle: initialize(), create_all(), shutdown().
    Sessions: get_session() for reads, get_transaction() for writes.
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _settings: Optional[_EngineSettings] = None
    _init_lock: Optional[asyncio.Lock] = None

    _stats: Dict[str, int] = {
        "transactions_started": 0,
        "transactions_committed": 0,
        "transactions_rolled_back": 0,
    }

    @classmethod
    def _lock(cls) -> asyncio.Lock:
        # Created lazily so the lock binds to the running loop.
        if cls._init_lock is None:
            cls._init_lock = asyncio.Lock()
        return cls._init_lock

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Create the engine and session factory. A no-op when already initialized.

        Raises
        ------
        DatabaseInitializationError
            If the URL is missing or the engine cannot be created.
        """
        async with cls._lock():
            if cls._engine is not None:
                return

            try:
                settings = _EngineSettings.from_config(url)
                engine = create_async_engine(settings.url, **settings.engine_kwargs())
                if settings.is_sqlite:
                    _configure_sqlite(engine)
            except DatabaseInitializationError:
                logger.error("Database URL missing or invalid")
                raise
            except Exception as exc:
                logger.error(
                    "Database engine creation failed",
                    extra={"error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            cls._engine = engine
            cls._settings = settings
            cls._session_factory = async_sessionmaker(
                bind=engine, class_=AsyncSession, expire_on_commit=False
            )
            logger.info(
                "Database ready",
                extra={"url_scheme": settings.scheme, "pool_class": settings.pool_class.__name__},
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call repeatedly."""
        async with cls._lock():
            engine = cls._engine
            if engine is None:
                return
            cls._engine = None
            cls._session_factory = None
            cls._settings = None
            await engine.dispose()
            logger.info("Database engine disposed")

    @classmethod
    async def create_all(cls) -> None:
        """Create every table registered on the declarative metadata."""
        from guildhall.database import models  # noqa: F401  (registers tables)
        from guildhall.core.database.base import Base

        engine = cls._require_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Schema created", extra={"table_count": len(Base.metadata.tables)})

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    @classmethod
    async def health_check(cls) -> bool:
        """Run `SELECT 1`; False when uninitialized or unreachable."""
        if cls._engine is None:
            return False
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except DBAPIError as exc:
            logger.warning(
                "Database health check failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )
            return False
        return True

    @classmethod
    def _require_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService.initialize() must run before the database is used"
            )
        return cls._engine

    @classmethod
    def _new_session(cls) -> AsyncSession:
        cls._require_engine()
        assert cls._session_factory is not None
        return cls._session_factory()

    @classmethod
    async def _apply_statement_timeout(cls, session: AsyncSession) -> None:
        settings = cls._settings
        if settings is not None and settings.is_postgres:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {settings.statement_timeout_ms}")
            )

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit, for reads.

        Raises
        ------
        DatabaseNotInitializedError
            Before initialize() or after shutdown().
        """
        async with cls._new_session() as session:
            await cls._apply_statement_timeout(session)
            yield session

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in one atomic transaction.

        Commits when the block finishes. Any exception rolls the whole block
        back and propagates unchanged; domain errors are logged at INFO,
        driver errors at ERROR.
        """
        session = cls._new_session()
        started = time.perf_counter()
        cls._stats["transactions_started"] += 1
        async with session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
                await session.commit()
            except Exception as exc:
                await session.rollback()
                cls._stats["transactions_rolled_back"] += 1
                elapsed_ms = (time.perf_counter() - started) * 1000.0
                extra = {"error_type": type(exc).__name__, "duration_ms": elapsed_ms}
                if isinstance(exc, DBAPIError):
                    logger.error("Transaction failed in the driver", extra=extra, exc_info=True)
                else:
                    logger.info("Transaction rolled back", extra=extra)
                raise
            cls._stats["transactions_committed"] += 1

    @classmethod
    def get_stats(cls) -> Dict[str, int]:
        return dict(cls._stats)
