"""Row lock helpers

Bounded lock waits and translation of lock contention into
ConcurrencyTimeout, so callers can retry the same idempotent request.

The lock timeout is read from session.info["lock_timeout_ms"].
"""

import logging
from contextlib import asynccontextmanager
from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession
from src.domain.errors import ConcurrencyTimeout

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATEs: lock_not_available, deadlock_detected
LOCK_ERROR_CODES = {"55P03", "40P01"}
LOCK_ERROR_MESSAGES = ("database is locked", "database table is locked", "lock timeout")


def dialect_name(session: AsyncSession) -> str:
    return session.bind.dialect.name


def is_lock_contention(exc: DBAPIError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in LOCK_ERROR_CODES:
        return True
    message = str(orig if orig is not None else exc).lower()
    return any(fragment in message for fragment in LOCK_ERROR_MESSAGES)


def sqlite_connect_args(db_uri: str, lock_timeout_ms: int) -> dict:
    """Bound SQLite busy waits the way lock_timeout bounds them on PostgreSQL"""
    if db_uri.startswith("sqlite"):
        return {"timeout": lock_timeout_ms / 1000}
    return {}


def serialize_sqlite_writers(engine: AsyncEngine) -> AsyncEngine:
    """
    Open every SQLite transaction with BEGIN IMMEDIATE

    SQLite ignores FOR UPDATE and pysqlite defers BEGIN until the first
    write, so a locked read would otherwise see a balance another writer is
    about to change. Taking the database write lock at BEGIN serialises
    units of work the way row locks do on PostgreSQL. Other dialects are
    left untouched.
    """
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


async def apply_lock_timeout(session: AsyncSession) -> None:
    """Bound lock waits for the current transaction (PostgreSQL only)"""
    timeout_ms = session.info.get("lock_timeout_ms")
    if timeout_ms and dialect_name(session) == "postgresql":
        await session.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))


@asynccontextmanager
async def lock_contention_as_timeout(operation: str):
    """Re-raise lock waits and deadlocks inside the block as ConcurrencyTimeout"""
    try:
        yield
    except DBAPIError as e:
        if not is_lock_contention(e):
            raise
        logger.warning(f"Lock contention during {operation}: {e.orig if e.orig is not None else e}")
        raise ConcurrencyTimeout(
            f"Timed out waiting for a lock during {operation}",
            reason=str(e.orig if e.orig is not None else e),
        ) from e
