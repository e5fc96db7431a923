"""Shared state and helpers for the CLI commands."""

import functools
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from loguru import logger
from sqlalchemy.engine.base import Engine
from sqlalchemy.orm import Session

from vinylvault.config.config_manager import Settings
from vinylvault.core.data.database import create_db_engine, get_session
from vinylvault.core.data.init_db import ensure_database
from vinylvault.core.data.repositories.record_repository import RecordRepository
from vinylvault.core.data.types import VinylRecord
from vinylvault.core.errors import VaultError
from vinylvault.core.platform.itunes.api_client import ItunesApiClient
from vinylvault.core.utils.image_helpers import is_data_url

F = TypeVar("F", bound=Callable[..., Any])


class CliContext:
    """Lazily opened database and services for one CLI invocation."""

    def __init__(self, settings: Settings) -> None:
        """Initialize the context.

        Args:
            settings: Loaded settings
        """
        self.settings = settings
        self._engine: Engine | None = None
        self._session: Session | None = None
        self._repository: RecordRepository | None = None

    @property
    def db_path(self) -> Path:
        """Database file this invocation works on."""
        return self.settings.db_path

    @property
    def engine(self) -> Engine:
        """Engine for the database, creating the schema on first use."""
        if self._engine is None:
            self._engine = create_db_engine(self.db_path)
            ensure_database(self._engine)
        return self._engine

    @property
    def repository(self) -> RecordRepository:
        """Record store for the database."""
        if self._repository is None:
            self._session = get_session(self.engine)
            self._repository = RecordRepository(self._session)
        return self._repository

    def lookup_client(self) -> ItunesApiClient:
        """Create the artwork lookup client from settings."""
        return ItunesApiClient(
            base_url=self.settings.lookup_url, timeout=self.settings.lookup_timeout
        )

    def close(self) -> None:
        """Release the session and engine."""
        if self._session is not None:
            self._session.close()
            self._session = None
        self._repository = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


pass_context = click.make_pass_decorator(CliContext)


def handle_errors(func: F) -> F:
    """Turn VaultErrors raised by a command into a red message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except VaultError as e:
            logger.debug(f"Command failed: {e!r}")
            click.secho(str(e), fg="red", err=True)
            raise SystemExit(1) from e

    return wrapper  # type: ignore[return-value]


def format_record(record: VinylRecord) -> str:
    """One-line summary of a record."""
    year = record.release_year if record.release_year is not None else "-"
    parts = [f"{record.id:>5}  {record.artist} - {record.album} ({year})"]
    if record.rating:
        parts.append(f"rating {record.rating}/10")
    if record.sound_quality:
        parts.append(f"sound {record.sound_quality}/5")
    if record.to_be_sold:
        parts.append("for sale")
    return "  ".join(parts)


def format_record_details(record: VinylRecord) -> str:
    """Multi-line description of every field of a record."""
    cover = record.cover_url or "-"
    if is_data_url(record.cover_url):
        cover = f"inline image ({len(record.cover_url)} bytes)"

    rows = [
        ("ID", record.id),
        ("Artist", record.artist),
        ("Album", record.album),
        ("Genre", "; ".join(record.genre) or "-"),
        ("Collection", record.collection or "-"),
        ("Release Year", record.release_year if record.release_year is not None else "-"),
        ("Country", record.country),
        ("Label", "; ".join(record.label) or "-"),
        ("Cat. Number", "; ".join(record.cat_number) or "-"),
        ("Condition Sleeve", record.condition_sleeve or "-"),
        ("Condition Media", record.condition_media or "-"),
        ("Sound Quality", f"{record.sound_quality}/5" if record.sound_quality else "unrated"),
        ("Rating", f"{record.rating}/10" if record.rating else "unrated"),
        ("Best tracks", "; ".join(record.best_tracks) or "-"),
        ("Comments", record.comments or "-"),
        ("Discogs link", record.discogs_link or "-"),
        ("To be sold", "YES" if record.to_be_sold else "NO"),
        ("Cover", cover),
        ("Added", record.added_at.isoformat()),
    ]
    return "\n".join(f"{name:>16}: {value}" for name, value in rows)
