"""Database connection and session management for Vinyl Vault."""

import os
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine.base import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import NullPool

from vinylvault.core.utils.path_helper import get_app_data_path

# Version of the single supported table layout, kept in PRAGMA user_version
SCHEMA_VERSION = 1

DB_FILENAME = "vinylvault.db"


class Base(DeclarativeBase):
    """Declarative base for all Vinyl Vault models."""


# Global engine instance shared by every session
_ENGINE: Engine | None = None
_ENGINE_LOCK = threading.RLock()

# Global session factory
_SESSION_FACTORY: sessionmaker[Session] | None = None


def get_db_path() -> Path:
    """Get the default database path.

    Returns:
        Path: The database file path inside the user's app data directory
    """
    return get_app_data_path() / DB_FILENAME


def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    """Apply per-connection SQLite settings."""
    cursor = dbapi_connection.cursor()
    # Wait up to 30 seconds for locks held by another process
    cursor.execute("PRAGMA busy_timeout = 30000")
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA temp_store = MEMORY")
    cursor.close()


def create_db_engine(db_path: Path | str) -> Engine:
    """Create a new SQLite engine for the given file.

    Args:
        db_path: Path to the database file

    Returns:
        SQLAlchemy engine
    """
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    db_url = f"sqlite:///{db_path}"
    engine = create_engine(
        db_url,
        echo=False,
        poolclass=NullPool,  # One connection per session, released on close
        connect_args={"check_same_thread": False, "timeout": 30.0},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    logger.debug(f"Created database engine for {db_url}")

    optimize_sqlite_connection(engine)
    return engine


def get_engine(db_path: Path | str | None = None) -> Engine:
    """Create or return the shared SQLAlchemy engine.

    The first call decides which database file the process works on. Call
    ``dispose_engine()`` first to switch to another file.

    Args:
        db_path: Path to the database file (default: app data directory)

    Returns:
        SQLAlchemy engine
    """
    global _ENGINE

    with _ENGINE_LOCK:
        if _ENGINE is None:
            _ENGINE = create_db_engine(db_path or get_db_path())

    return _ENGINE


def dispose_engine() -> None:
    """Dispose the shared engine and session factory."""
    global _ENGINE, _SESSION_FACTORY

    with _ENGINE_LOCK:
        if _ENGINE is not None:
            _ENGINE.dispose()
            logger.debug("Disposed database engine")
        _ENGINE = None
        _SESSION_FACTORY = None


def get_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Create or return the shared session factory bound to the given engine.

    Args:
        engine: SQLAlchemy engine (will use the global engine if None)

    Returns:
        Session factory
    """
    global _SESSION_FACTORY

    with _ENGINE_LOCK:
        if _SESSION_FACTORY is None:
            if engine is None:
                engine = get_engine()

            _SESSION_FACTORY = sessionmaker(
                bind=engine,
                expire_on_commit=False,  # Snapshots stay readable after commit
                autoflush=False,
            )

    return _SESSION_FACTORY


def get_session(engine: Engine | None = None) -> Session:
    """Create and return a new database session.

    NOTE: prefer ``session_scope()`` so the session is always closed.

    Args:
        engine: SQLAlchemy engine (will use the global engine if None)

    Returns:
        SQLAlchemy session
    """
    if engine is not None:
        return Session(bind=engine, expire_on_commit=False, autoflush=False)

    return get_session_factory()()


@contextmanager
def session_scope(engine: Engine | None = None) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations.

    Example:
        with session_scope() as session:
            RecordRepository(session).create(record)
    """
    session = get_session(engine)
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.exception(f"Session error: {e}")
        session.rollback()
        raise
    finally:
        session.close()


def optimize_sqlite_connection(engine: Engine) -> None:
    """Apply database-wide SQLite settings.

    Args:
        engine: SQLAlchemy engine connected to a SQLite database
    """
    with engine.connect() as conn:
        # Journal mode is persistent, so it only needs to be set once
        conn.exec_driver_sql("PRAGMA journal_mode = WAL")
        conn.exec_driver_sql("PRAGMA synchronous = NORMAL")
        conn.commit()


def get_schema_version(engine: Engine) -> int:
    """Read the layout version stamped into the database file.

    Args:
        engine: SQLAlchemy engine

    Returns:
        The stored version, 0 for a database that was never initialized
    """
    with engine.connect() as conn:
        return int(conn.exec_driver_sql("PRAGMA user_version").scalar() or 0)


def init_database(engine: Engine) -> None:
    """Create the schema and stamp the layout version.

    Args:
        engine: SQLAlchemy engine
    """
    # Import models so they register with Base.metadata
    from vinylvault.core.data.models import db  # noqa: F401

    logger.info(f"Creating database schema at {engine.url.database}")
    Base.metadata.create_all(engine)

    with engine.connect() as conn:
        conn.exec_driver_sql(f"PRAGMA user_version = {SCHEMA_VERSION}")
        conn.commit()

    logger.info("Database schema created")
