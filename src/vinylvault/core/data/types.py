"""Type definitions shared by the store, the query engine and the pipelines."""

from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Sentinel stored in ``country`` when the source did not supply one
UNKNOWN_COUNTRY = "-"

# Goldmine grading scale, best to worst
CONDITION_GRADES: tuple[str, ...] = ("M", "NM", "VG+", "VG", "G+", "G", "F", "P")

SOUND_QUALITY_RANGE = (0, 5)
RATING_RANGE = (0, 10)
RELEASE_YEAR_RANGE = (1, 9999)


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def identity_key(artist: str, album: str) -> str:
    """Build the deduplication key for an artist/album pair.

    Two records with the same key are the same logical item, whatever their
    other fields say.

    Args:
        artist: Artist name
        album: Album title

    Returns:
        Lower-cased, trimmed ``artist|album`` key
    """
    return f"{artist.strip().lower()}|{album.strip().lower()}"


@dataclass
class VinylRecord:
    """Detached snapshot of one record in the collection.

    Instances handed out by the store are copies; mutating them never touches
    the database. ``id`` is ``None`` until the store assigns one.
    """

    artist: str
    album: str
    genre: list[str] = field(default_factory=list)
    collection: str = ""
    release_year: int | None = None
    country: str = UNKNOWN_COUNTRY
    label: list[str] = field(default_factory=list)
    cat_number: list[str] = field(default_factory=list)
    condition_sleeve: str = ""
    condition_media: str = ""
    sound_quality: int = 0  # 0 = unrated
    rating: int = 0  # 0 = unrated
    best_tracks: list[str] = field(default_factory=list)
    comments: str = ""
    discogs_link: str = ""
    to_be_sold: bool = False
    cover_url: str | None = None
    dominant_color: str | None = None
    added_at: datetime = field(default_factory=utc_now)
    id: int | None = None

    @property
    def identity_key(self) -> str:
        """Deduplication key of this record."""
        return identity_key(self.artist, self.album)

    def field_values(self, include_id: bool = False) -> dict[str, Any]:
        """Return the record's fields as a dictionary.

        List fields are copied so the result can be handed to the store
        without aliasing this snapshot.

        Args:
            include_id: Whether to include the ``id`` key

        Returns:
            Mapping of field name to value
        """
        values = {}
        for f in fields(self):
            if f.name == "id" and not include_id:
                continue
            value = getattr(self, f.name)
            values[f.name] = list(value) if isinstance(value, list) else value
        return values

    def without_id(self) -> "VinylRecord":
        """Return a copy of this record that is not bound to a stored id."""
        return replace(self, id=None)


# Names of the fields that can be changed through ``RecordRepository.update``
EDITABLE_FIELDS = frozenset(
    f.name for f in fields(VinylRecord) if f.name not in ("id", "added_at")
)


class SortOption(str, Enum):
    """Orderings offered when browsing the collection."""

    ADDED_DESC = "added_desc"
    ARTIST_ASC = "artist_asc"
    ARTIST_DESC = "artist_desc"
    YEAR_ASC = "year_asc"
    YEAR_DESC = "year_desc"
    RATING_DESC = "rating_desc"
    RATING_ASC = "rating_asc"
    SOUND_DESC = "sound_desc"
    SOUND_ASC = "sound_asc"

    @property
    def label(self) -> str:
        """Human-readable name of the ordering."""
        return SORT_LABELS[self]


SORT_LABELS: dict[SortOption, str] = {
    SortOption.ADDED_DESC: "Recently Added",
    SortOption.ARTIST_ASC: "Artist (A-Z)",
    SortOption.ARTIST_DESC: "Artist (Z-A)",
    SortOption.YEAR_ASC: "Release Year (Oldest)",
    SortOption.YEAR_DESC: "Release Year (Newest)",
    SortOption.RATING_DESC: "Rating (High to Low)",
    SortOption.RATING_ASC: "Rating (Low to High)",
    SortOption.SOUND_DESC: "Sound Quality (High to Low)",
    SortOption.SOUND_ASC: "Sound Quality (Low to High)",
}


@dataclass
class FilterState:
    """Browse filters. Every field left as ``None`` (or empty search) passes."""

    search: str = ""
    genre: str | None = None
    artist: str | None = None
    collection: str | None = None
    release_year: int | None = None
    condition_sleeve: str | None = None
    condition_media: str | None = None
    to_be_sold: bool | None = None  # None = show all


@dataclass
class FilterOptions:
    """Distinct values present in the collection, for building filter choices."""

    genres: list[str] = field(default_factory=list)
    artists: list[str] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)
    years: list[int] = field(default_factory=list)
    sleeve_conditions: list[str] = field(default_factory=list)
    media_conditions: list[str] = field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of reconciling a parsed spreadsheet against the store."""

    inserted: list[VinylRecord] = field(default_factory=list)
    skipped: list[VinylRecord] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        """Number of records written to the store."""
        return len(self.inserted)

    @property
    def skipped_count(self) -> int:
        """Number of candidates skipped as duplicates."""
        return len(self.skipped)

    @property
    def total(self) -> int:
        """Number of candidates considered."""
        return self.inserted_count + self.skipped_count

    @property
    def all_duplicates(self) -> bool:
        """Whether every candidate was already known."""
        return self.total > 0 and self.inserted_count == 0


@dataclass
class ScanReport:
    """Outcome of an artwork enrichment scan."""

    total: int = 0
    enriched: int = 0
    not_found: int = 0
    failed: int = 0
    enriched_ids: list[int] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.enriched} of {self.total} enriched"
