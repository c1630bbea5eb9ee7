"""Database session and engine management."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ecomonitor.core.config import get_settings
from ecomonitor.core.exceptions import AlertStoreError, AlertValidationError

# Connection execution option marking a transaction that only reads.
READ_ONLY_OPTION = "ecomonitor_read_only"


def build_engine(database_url: str, timeout: float) -> AsyncEngine:
    """Create the async engine used by the alert store.

    SQLite has no row locks, so every writing transaction starts with
    BEGIN IMMEDIATE and takes the database write lock up front. Concurrent
    writers then wait up to ``timeout`` seconds for each other instead of
    interleaving. Read-only transactions (see :func:`read_transaction`) use a
    plain deferred BEGIN and, with the WAL journal, never wait on writers.
    """

    if not database_url.startswith("sqlite"):
        return create_async_engine(database_url, future=True, echo=False, pool_timeout=timeout)

    engine = create_async_engine(
        database_url,
        future=True,
        echo=False,
        connect_args={"timeout": timeout},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_sqlite(dbapi_connection, _connection_record):  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):  # pragma: no cover - driver hook
        if conn.get_execution_options().get(READ_ONLY_OPTION):
            conn.exec_driver_sql("BEGIN")
        else:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


_settings = get_settings()
engine = build_engine(_settings.database_url, _settings.database_timeout_seconds)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Provide a transactional scope around a series of operations."""

    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def store_transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit the work done in the block, or roll it back and report a store failure.

    Constraint violations (an unknown station or sensor id) are the caller's
    fault and surface as :class:`AlertValidationError`; anything else the store
    raises is a retryable :class:`AlertStoreError`.
    """

    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise AlertValidationError(f"Alert store rejected the change: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise AlertStoreError(f"Alert store transaction failed: {exc}") from exc
    except BaseException:
        await session.rollback()
        raise


@asynccontextmanager
async def read_transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Like :func:`store_transaction`, for blocks that only read.

    A session that already has a transaction open keeps it as is.
    """

    async with store_transaction(session):
        if not session.in_transaction():
            await session.connection(execution_options={READ_ONLY_OPTION: True})
        yield session
