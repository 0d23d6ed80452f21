"""Database connection management for MealPath.

Provides synchronous, request-scoped database access using SQLAlchemy.
Supports SQLite for development with a PostgreSQL path for production.

Usage:
    # Sync (for FastAPI Depends)
    from mealpath.db.connection import get_db, init_db

    init_db()  # Create tables
    db = next(get_db())
    # ... use db session
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from mealpath.config import get_settings
from mealpath.db.models import Base

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Return the configured database URL.

    Precedence:
    1. DATABASE_URL (canonical)
    2. MEALPATH_DB_PATH (converted to sqlite URL)
    3. sqlite database in the platform data directory
    """
    return get_settings().database_url


# Engine creation
DATABASE_URL = get_database_url()

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False}
    if DATABASE_URL.startswith("sqlite")
    else {},
    echo=get_settings().sql_echo,
)


def configure_sqlite(dbapi_connection: Any, connection_record: Any) -> None:
    """Configure SQLite pragmas for correctness and concurrency.

    Enables:
    - foreign_keys=ON: Referential integrity (disabled by default in SQLite).
    - journal_mode=WAL: Concurrent readers with a single writer.
    - busy_timeout: Writers wait for the lock instead of failing at once,
      so concurrent checkouts serialize on the stock rows.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


if DATABASE_URL.startswith("sqlite"):
    event.listen(engine, "connect", configure_sqlite)


# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session scoped to one request.

    Intended for use with FastAPI's Depends().

    Yields:
        Session: SQLAlchemy session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            account = db.query(Account).first()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create all database tables.

    Safe to call multiple times - will not recreate existing tables.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready at %s", engine.url.render_as_string(hide_password=True))


def close_db() -> None:
    """Dispose of the engine connection pool."""
    engine.dispose()
