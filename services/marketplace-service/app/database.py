"""
Database configuration and connection management.

Provides the SQLAlchemy engine, the session factory and the request-scoped
session dependency.
"""

import time
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .logging_config import get_logger
from .models import Base

logger = get_logger(__name__)


def get_engine_options(db_url: str) -> dict:
    """
    Get database-specific engine arguments.

    Args:
        db_url: Database connection URL

    Returns:
        Keyword arguments for ``create_engine``
    """
    if db_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,
    }


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Track query start time."""
    conn.info.setdefault("query_start_time", []).append(time.perf_counter())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    started = conn.info["query_start_time"].pop()
    total_time_ms = (time.perf_counter() - started) * 1000

    if total_time_ms > settings.QUERY_LOG_THRESHOLD_MS:
        logger.warning(
            "Slow query detected",
            query_time_ms=round(total_time_ms, 2),
            statement=statement[:200],
        )


engine = create_engine(settings.DATABASE_URL, echo=False, **get_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables on application startup. Existing tables are left as is.
    """
    logger.info("Initializing database tables")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database initialized", tables=sorted(Base.metadata.tables.keys()))


def get_db() -> Generator[Session, None, None]:
    """
    Get database session for dependency injection.

    Yields:
        SQLAlchemy database session, closed when the request finishes
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a unit of work as a single transaction.

    Commits when the block exits normally and rolls back on any exception,
    which is re-raised.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
