"""Data management module for Vinyl Vault."""

from vinylvault.core.data.database import get_engine, get_session, init_database, session_scope
from vinylvault.core.data.init_db import ensure_database, initialize_database, verify_schema
from vinylvault.core.data.repositories.record_repository import RecordRepository

__all__ = [
    "get_engine",
    "get_session",
    "init_database",
    "session_scope",
    "ensure_database",
    "initialize_database",
    "verify_schema",
    "RecordRepository",
]
