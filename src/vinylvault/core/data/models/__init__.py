"""Database models for Vinyl Vault."""

from vinylvault.core.data.models.db import UTCDateTime, Vinyl, VinylGenre

__all__ = [
    "UTCDateTime",
    "Vinyl",
    "VinylGenre",
]
