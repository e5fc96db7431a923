"""Repository package for database access."""

from vinylvault.core.data.repositories.record_repository import RecordRepository

__all__ = [
    "RecordRepository",
]
