"""Spreadsheet import: parse, deduplicate against the store, bulk insert."""

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from loguru import logger

from vinylvault.core.collection.spreadsheet import parse_workbook, parse_workbook_file
from vinylvault.core.data.repositories.record_repository import RecordRepository
from vinylvault.core.data.types import ImportResult, VinylRecord, utc_now
from vinylvault.core.errors import ParseError

NO_RECORDS_MESSAGE = "No valid records found in the file. Please check the format."


def reconcile(
    candidates: Iterable[VinylRecord],
    existing: Iterable[VinylRecord] | set[str],
    imported_at: datetime | None = None,
) -> ImportResult:
    """Split candidates into records to insert and duplicates to skip.

    A candidate is a duplicate when its identity key (trimmed, lower-cased
    artist and album) matches a stored record or an earlier candidate.
    Duplicates are skipped, never merged into what is already there.

    Args:
        candidates: Parsed records, in file order
        existing: Stored records, or their identity keys
        imported_at: Timestamp given to every surviving record (default: now)

    Returns:
        ImportResult listing the survivors (not yet stored) and the skipped rows
    """
    if isinstance(existing, set):
        seen = set(existing)
    else:
        seen = {record.identity_key for record in existing}

    imported_at = imported_at or utc_now()
    result = ImportResult()

    for candidate in candidates:
        key = candidate.identity_key
        if key in seen:
            logger.debug(f"Skipping duplicate {candidate.artist} - {candidate.album}")
            result.skipped.append(candidate)
            continue

        seen.add(key)
        result.inserted.append(replace(candidate, id=None, added_at=imported_at))

    return result


class CollectionImporter:
    """Imports spreadsheets into the record store."""

    def __init__(self, repository: RecordRepository) -> None:
        """Initialize the importer.

        Args:
            repository: Store the records are written to
        """
        self.repository = repository

    def import_records(self, candidates: list[VinylRecord]) -> ImportResult:
        """Deduplicate parsed records and store the new ones in one bulk insert.

        An import where every row is a duplicate still succeeds, with nothing
        inserted.

        Args:
            candidates: Parsed records

        Returns:
            ImportResult whose ``inserted`` records carry their new ids

        Raises:
            ParseError: If there are no candidates at all
        """
        if not candidates:
            raise ParseError(NO_RECORDS_MESSAGE)

        result = reconcile(candidates, self.repository.get_identity_keys())

        if result.inserted:
            ids = self.repository.bulk_create(result.inserted)
            result.inserted = [
                replace(record, id=record_id)
                for record, record_id in zip(result.inserted, ids, strict=True)
            ]

        if result.all_duplicates:
            logger.info("All records in this file are already in the collection")
        else:
            logger.info(
                f"Imported {result.inserted_count} new records, "
                f"skipped {result.skipped_count} duplicates"
            )
        return result

    def import_bytes(self, data: bytes) -> ImportResult:
        """Import a workbook given as bytes.

        Parsing completes before anything is written, so a bad file never
        leaves a partial import behind.

        Args:
            data: Raw .xlsx bytes

        Returns:
            ImportResult
        """
        return self.import_records(parse_workbook(data))

    def import_file(self, path: Path | str) -> ImportResult:
        """Import a workbook from disk.

        Args:
            path: Path to the .xlsx file

        Returns:
            ImportResult
        """
        logger.info(f"Importing spreadsheet {path}")
        return self.import_records(parse_workbook_file(path))
