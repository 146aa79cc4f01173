"""Database connection manager and session factory."""

import asyncio
import functools
from typing import Any, Callable, Generator, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.exceptions import StorageTimeoutError
from app.core.logging import configure_sqlalchemy_logging, get_logger

logger = get_logger(__name__)

T = TypeVar("T")

APP_DATABASE_URL = settings.APP_DATABASE_URL


def _configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and SAVEPOINT-safe transactions on SQLite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy own BEGIN so nested transactions behave
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.SQL_ECHO,
        )
        _configure_sqlite(engine)
        return engine

    # Connection pooling (QueuePool is default)
    return create_engine(
        url,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
        pool_timeout=settings.POOL_TIMEOUT,
        pool_pre_ping=settings.POOL_PRE_PING,  # Validates connections before use
        echo=settings.SQL_ECHO,
    )


configure_sqlalchemy_logging(echo=settings.SQL_ECHO)
engine = _build_engine(APP_DATABASE_URL)

# Session factory; rows handed back to services stay readable after commit
SessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides database sessions.

    Yields:
        Session: SQLAlchemy session that automatically closes after use
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_engine() -> Engine:
    """Get the SQLAlchemy engine for advanced use cases."""
    return engine


def get_session_local() -> sessionmaker:
    """Get the SessionLocal factory for testing or advanced use cases."""
    return SessionLocal


async def run_db_call(
    func: Callable[..., T],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """
    Run a blocking storage call off the event loop, bounded by a timeout.

    Args:
        func: Synchronous repository or service callable
        timeout: Seconds to wait; defaults to STORAGE_TIMEOUT_SECONDS

    Raises:
        StorageTimeoutError: If the call does not finish in time. The worker
            thread keeps running and its transaction commits or rolls back
            on its own.
    """
    limit = settings.STORAGE_TIMEOUT_SECONDS if timeout is None else timeout
    loop = asyncio.get_running_loop()
    call = functools.partial(func, *args, **kwargs)
    try:
        return await asyncio.wait_for(loop.run_in_executor(None, call), timeout=limit)
    except asyncio.TimeoutError:
        name = getattr(func, "__name__", repr(func))
        logger.error(f"Storage call {name} exceeded {limit}s")
        raise StorageTimeoutError(
            f"Storage did not respond within {limit} seconds"
        ) from None
