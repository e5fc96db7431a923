"""Full backup and restore of the collection.

A backup is a JSON snapshot of every record, artwork included, plus a
companion spreadsheet for people who only want the metadata::

    {
      "version": "1.1.0",
      "exportDate": "2024-03-25T10:00:00+00:00",
      "recordCount": 2,
      "records": [{"id": 1, "artist": "...", "addedAt": "...", ...}, ...]
    }

Restoring replaces the whole collection. The store is cleared first and the
snapshot's records are then bulk inserted with fresh ids. Those two steps are
separate transactions: if the insert fails the collection is left empty and
``RestoreInterrupted`` is raised. The snapshot is fully decoded and validated
before anything is cleared, so a bad file never empties the store.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from vinylvault.core.collection.entry import split_and_trim
from vinylvault.core.collection.spreadsheet import export_workbook
from vinylvault.core.data.repositories.record_repository import RecordRepository
from vinylvault.core.data.types import (
    RATING_RANGE,
    RELEASE_YEAR_RANGE,
    SOUND_QUALITY_RANGE,
    UNKNOWN_COUNTRY,
    VinylRecord,
    utc_now,
)
from vinylvault.core.errors import (
    BackupFormatError,
    ParseError,
    RestoreInterrupted,
    ValidationError,
)
from vinylvault.core.utils.path_helper import dated_filename

BACKUP_VERSION = "1.1.0"

BACKUP_PREFIX = "vinyl-vault-backup-"
SPREADSHEET_PREFIX = "Vinyl_Collection_Backup_"

INVALID_BACKUP_MESSAGE = "Invalid backup file format. Please select a valid Vinyl Vault backup."

# Snapshot key -> record field
SNAPSHOT_KEYS: dict[str, str] = {
    "id": "id",
    "artist": "artist",
    "album": "album",
    "genre": "genre",
    "collection": "collection",
    "releaseYear": "release_year",
    "country": "country",
    "label": "label",
    "catNumber": "cat_number",
    "conditionSleeve": "condition_sleeve",
    "conditionMedia": "condition_media",
    "soundQuality": "sound_quality",
    "rating": "rating",
    "bestTracks": "best_tracks",
    "comments": "comments",
    "discogsLink": "discogs_link",
    "toBeSold": "to_be_sold",
    "coverUrl": "cover_url",
    "dominantColor": "dominant_color",
    "addedAt": "added_at",
}

# Keys left out of the snapshot when they have no value
OPTIONAL_KEYS = ("coverUrl", "dominantColor")


@dataclass
class BackupSnapshot:
    """A decoded, validated backup file."""

    version: str
    export_date: str
    record_count: int
    records: list[VinylRecord] = field(default_factory=list)

    @property
    def exported_at(self) -> datetime | None:
        """Export time, if the file carries a readable one."""
        return parse_timestamp(self.export_date)


@dataclass
class BackupFiles:
    """Files written by a backup export."""

    json_path: Path
    spreadsheet_path: Path
    record_count: int


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Args:
        value: ISO string (a trailing ``Z`` is accepted) or datetime

    Returns:
        The timestamp, or None if it cannot be read
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def record_to_snapshot(record: VinylRecord) -> dict[str, Any]:
    """Serialize a record with the snapshot's key names.

    Args:
        record: Record to serialize

    Returns:
        JSON-ready dictionary
    """
    values = record.field_values(include_id=True)
    data: dict[str, Any] = {}
    for key, field_name in SNAPSHOT_KEYS.items():
        value = values[field_name]
        if key in OPTIONAL_KEYS and not value:
            continue
        if isinstance(value, datetime):
            value = value.astimezone(UTC).isoformat()
        data[key] = value
    return data


def _as_int(value: Any, default: int | None) -> int | None:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return default


def _checked_int(data: dict, key: str, bounds: tuple[int, int], index: int) -> int:
    value = _as_int(data.get(key), 0) or 0
    low, high = bounds
    if value and not low <= value <= high:
        raise BackupFormatError(
            f"{INVALID_BACKUP_MESSAGE} (record {index} has {key} {value} outside {low}-{high})"
        )
    return value


def _as_optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return split_and_trim(value)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def snapshot_to_record(data: Any, index: int = 0) -> VinylRecord:
    """Decode one snapshot entry. The stored id is dropped.

    Args:
        data: Entry from the snapshot's ``records`` list
        index: Position of the entry, for error messages

    Returns:
        Record without an id, ``added_at`` coerced to a datetime

    Raises:
        BackupFormatError: If the entry is not an object, lacks artist/album or
            carries an out of range year or score
    """
    if not isinstance(data, dict):
        raise BackupFormatError(f"{INVALID_BACKUP_MESSAGE} (record {index} is not an object)")

    artist = _as_text(data.get("artist")).strip()
    album = _as_text(data.get("album")).strip()
    if not artist or not album:
        raise BackupFormatError(f"{INVALID_BACKUP_MESSAGE} (record {index} has no artist/album)")

    added_at = parse_timestamp(data.get("addedAt"))
    if added_at is None:
        logger.warning(f"Record {index} has no readable addedAt, using the restore time")
        added_at = utc_now()

    return VinylRecord(
        artist=artist,
        album=album,
        genre=_as_list(data.get("genre")),
        collection=_as_text(data.get("collection")),
        release_year=_checked_int(data, "releaseYear", RELEASE_YEAR_RANGE, index) or None,
        country=_as_text(data.get("country")) or UNKNOWN_COUNTRY,
        label=_as_list(data.get("label")),
        cat_number=_as_list(data.get("catNumber")),
        condition_sleeve=_as_text(data.get("conditionSleeve")),
        condition_media=_as_text(data.get("conditionMedia")),
        sound_quality=_checked_int(data, "soundQuality", SOUND_QUALITY_RANGE, index),
        rating=_checked_int(data, "rating", RATING_RANGE, index),
        best_tracks=_as_list(data.get("bestTracks")),
        comments=_as_text(data.get("comments")),
        discogs_link=_as_text(data.get("discogsLink")),
        to_be_sold=data.get("toBeSold") is True,
        cover_url=_as_optional_text(data.get("coverUrl")),
        dominant_color=_as_optional_text(data.get("dominantColor")),
        added_at=added_at,
    )


def create_snapshot(records: list[VinylRecord], exported_at: datetime | None = None) -> dict:
    """Build the snapshot object for a list of records.

    Args:
        records: Every record in the store
        exported_at: Export time (default: now)

    Returns:
        JSON-ready snapshot dictionary
    """
    exported_at = exported_at or utc_now()
    return {
        "version": BACKUP_VERSION,
        "exportDate": exported_at.astimezone(UTC).isoformat(),
        "recordCount": len(records),
        "records": [record_to_snapshot(record) for record in records],
    }


def parse_backup(content: str | bytes) -> BackupSnapshot:
    """Decode and validate a backup file.

    ``recordCount`` is informational and never checked against the records.

    Args:
        content: Raw file contents

    Returns:
        The decoded snapshot

    Raises:
        ParseError: If the content is not JSON
        BackupFormatError: If the JSON is not a valid snapshot
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Backup is not valid JSON: {e}")
        raise ParseError(
            "Failed to restore backup. The file may be corrupted or in an invalid format."
        ) from e

    if not isinstance(data, dict):
        raise BackupFormatError(INVALID_BACKUP_MESSAGE)

    version = data.get("version")
    records = data.get("records")
    if not version or not isinstance(version, str) or not isinstance(records, list):
        raise BackupFormatError(INVALID_BACKUP_MESSAGE)

    decoded = [snapshot_to_record(entry, index) for index, entry in enumerate(records)]

    record_count = _as_int(data.get("recordCount"), None)
    return BackupSnapshot(
        version=version,
        export_date=_as_text(data.get("exportDate")),
        record_count=len(decoded) if record_count is None else record_count,
        records=decoded,
    )


def load_backup(path: Path | str) -> BackupSnapshot:
    """Read and validate a backup file from disk.

    Args:
        path: Path to the JSON file

    Returns:
        The decoded snapshot
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"File read error: {e}")
        raise ParseError(f"Could not read backup file {path}.") from e
    return parse_backup(content)


class BackupManager:
    """Exports and restores full backups of the record store."""

    def __init__(self, repository: RecordRepository) -> None:
        """Initialize the manager.

        Args:
            repository: Store to back up and restore into
        """
        self.repository = repository

    def export_backup(
        self, output_dir: Path | str, exported_at: datetime | None = None
    ) -> BackupFiles:
        """Write the JSON snapshot and the companion spreadsheet.

        Args:
            output_dir: Directory the two files are written to
            exported_at: Export time (default: now)

        Returns:
            BackupFiles describing what was written

        Raises:
            ValidationError: If the collection is empty
        """
        records = self.repository.get_all()
        if not records:
            raise ValidationError("No records to backup.")

        exported_at = exported_at or utc_now()
        day = exported_at.date().isoformat()
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        spreadsheet_path = export_workbook(
            records, output_dir / dated_filename(SPREADSHEET_PREFIX, ".xlsx", day)
        )

        json_path = output_dir / dated_filename(BACKUP_PREFIX, ".json", day)
        snapshot = create_snapshot(records, exported_at)
        json_path.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")

        logger.success(f"Backup complete, exported {len(records)} records to {output_dir}")
        return BackupFiles(
            json_path=json_path, spreadsheet_path=spreadsheet_path, record_count=len(records)
        )

    def restore(
        self,
        snapshot: BackupSnapshot,
        confirm: Callable[[BackupSnapshot], bool],
    ) -> int | None:
        """Replace the whole collection with the snapshot's records.

        Args:
            snapshot: Validated snapshot from ``parse_backup``/``load_backup``
            confirm: Asked before anything is deleted; returning False cancels

        Returns:
            Number of records restored, or None if the restore was cancelled

        Raises:
            IntegrityError: If the store could not be emptied (nothing was restored)
            RestoreInterrupted: If the insert failed after the store was cleared
        """
        if not confirm(snapshot):
            logger.info("Restore cancelled")
            return None

        records = [record.without_id() for record in snapshot.records]

        removed = self.repository.clear()
        logger.info(f"Cleared {removed} records before restore")

        try:
            self.repository.bulk_create(records)
        except Exception as e:
            logger.exception(f"Backup restore failed after clearing the collection: {e}")
            raise RestoreInterrupted(
                "Restore failed after the collection was cleared. The collection is now "
                "empty; restore the same backup file again to recover."
            ) from e

        logger.success(f"Restore complete, {len(records)} records imported")
        return len(records)
