"""Database initialization utilities."""

from pathlib import Path

from loguru import logger
from sqlalchemy import inspect
from sqlalchemy.engine.base import Engine

from vinylvault.core.data.database import (
    SCHEMA_VERSION,
    get_db_path,
    get_engine,
    get_schema_version,
    init_database,
)

# Columns every supported database must carry, per table
REQUIRED_COLUMNS: dict[str, list[str]] = {
    "vinyl_records": [
        "id",
        "artist",
        "album",
        "collection",
        "release_year",
        "country",
        "label",
        "cat_number",
        "condition_sleeve",
        "condition_media",
        "sound_quality",
        "rating",
        "best_tracks",
        "comments",
        "discogs_link",
        "to_be_sold",
        "cover_url",
        "dominant_color",
        "added_at",
    ],
    "vinyl_genres": ["id", "vinyl_id", "position", "name"],
}


def initialize_database(db_path: Path | str | None = None, engine: Engine | None = None) -> bool:
    """Create and initialize the database with required tables.

    Args:
        db_path: Path to the database file (default: app data directory)
        engine: Engine to use instead of the shared one

    Returns:
        bool: True if the resulting schema is valid
    """
    logger.info("Initializing database...")

    if engine is None:
        if db_path is None:
            db_path = get_db_path()
            logger.info(f"Using default database path: {db_path}")
        engine = get_engine(db_path)

    init_database(engine)

    valid = verify_schema(engine)
    if valid:
        logger.success(f"Database initialized at {engine.url.database}")
    return valid


def verify_schema(engine: Engine) -> bool:
    """Check that the database carries the supported layout.

    Args:
        engine: SQLAlchemy engine

    Returns:
        bool: True if schema is valid, False if there are issues
    """
    logger.info("Verifying database schema...")

    inspector = inspect(engine)
    tables = inspector.get_table_names()

    missing_tables = [table for table in REQUIRED_COLUMNS if table not in tables]
    if missing_tables:
        logger.error(f"Critical tables missing: {missing_tables}")
        return False

    valid = True
    for table, required_columns in REQUIRED_COLUMNS.items():
        columns = [col["name"] for col in inspector.get_columns(table)]
        missing_columns = [col for col in required_columns if col not in columns]
        if missing_columns:
            logger.error(f"Table {table} is missing columns: {missing_columns}")
            valid = False

    version = get_schema_version(engine)
    if version != SCHEMA_VERSION:
        logger.error(f"Unsupported schema version {version} (expected {SCHEMA_VERSION})")
        logger.warning("Run 'vinylvault database init --force' to recreate the database.")
        valid = False

    if valid:
        logger.info("Database schema is valid")
    return valid


def ensure_database(engine: Engine) -> None:
    """Create the schema on first use of a database file.

    Args:
        engine: SQLAlchemy engine
    """
    if get_schema_version(engine) == 0 and not inspect(engine).get_table_names():
        logger.info("Empty database, creating schema")
        init_database(engine)
