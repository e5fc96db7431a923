"""Shared fixtures: a throwaway SQLite store per test and spreadsheet builders."""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from vinylvault.core.data.database import create_db_engine, get_session, init_database
from vinylvault.core.data.repositories.record_repository import RecordRepository
from vinylvault.core.data.types import VinylRecord

HEADERS = [
    "Artist",
    "Album",
    "Genre",
    "Collection",
    "Release Year",
    "Country",
    "Label",
    "Cat. Number",
    "Condition Sleeve",
    "Condition Media",
    "Sound Quality",
    "Rating",
    "Best tracks",
    "Others/Comments",
    "Discogs link",
    "To be sold",
]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a database file that does not exist yet."""
    return tmp_path / "vinylvault.db"


@pytest.fixture
def engine(db_path: Path):
    """Engine for an initialized, empty database."""
    engine = create_db_engine(db_path)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Session bound to the test database."""
    session = get_session(engine)
    yield session
    session.close()


@pytest.fixture
def repository(session) -> RecordRepository:
    """Record store backed by the test database."""
    return RecordRepository(session)


@pytest.fixture
def make_record() -> Callable[..., VinylRecord]:
    """Factory for records with sensible defaults."""

    def factory(artist: str = "Pink Floyd", album: str = "Animals", **values: Any) -> VinylRecord:
        values.setdefault("added_at", datetime(2024, 3, 25, 10, 0, tzinfo=UTC))
        return VinylRecord(artist=artist, album=album, **values)

    return factory


@pytest.fixture
def write_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Write rows (header first) into an .xlsx file and return its path."""

    def writer(rows: Sequence[Sequence[Any]], name: str = "collection.xlsx") -> Path:
        workbook = Workbook()
        worksheet = workbook.active
        for row in rows:
            worksheet.append(list(row))
        path = tmp_path / name
        workbook.save(path)
        return path

    return writer


@pytest.fixture
def sheet_row() -> Callable[..., list[Any]]:
    """Build a data row in ``HEADERS`` order from keyword arguments."""
    keys = {
        "artist": "Artist",
        "album": "Album",
        "genre": "Genre",
        "collection": "Collection",
        "release_year": "Release Year",
        "country": "Country",
        "label": "Label",
        "cat_number": "Cat. Number",
        "condition_sleeve": "Condition Sleeve",
        "condition_media": "Condition Media",
        "sound_quality": "Sound Quality",
        "rating": "Rating",
        "best_tracks": "Best tracks",
        "comments": "Others/Comments",
        "discogs_link": "Discogs link",
        "to_be_sold": "To be sold",
    }

    def build(**values: Any) -> list[Any]:
        row: list[Any] = [None] * len(HEADERS)
        for key, value in values.items():
            row[HEADERS.index(keys[key])] = value
        return row

    return build


@pytest.fixture
def sheet_headers() -> list[str]:
    """Header row of the collection spreadsheet."""
    return list(HEADERS)
