"""Reading and writing the collection spreadsheet format.

The sheet is header driven: the first row names the columns, in any order,
and a header matches a field when it contains the field's label
(case-insensitive). Multi-valued cells use ``;`` as separator (labels also
accept ``/``) and the "To be sold" column holds ``YES`` or anything else.
"""

import io
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

from loguru import logger
from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from vinylvault.core.collection.entry import parse_int, parse_yes_no, split_and_trim
from vinylvault.core.data.types import (
    RATING_RANGE,
    RELEASE_YEAR_RANGE,
    SOUND_QUALITY_RANGE,
    UNKNOWN_COUNTRY,
    VinylRecord,
)
from vinylvault.core.errors import ParseError

SHEET_TITLE = "Collection"

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"

# Record field -> spreadsheet column label, in export order
COLUMN_LABELS: dict[str, str] = {
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

PARSE_ERROR_MESSAGE = (
    "Failed to process file. Ensure it is a valid Excel file matching the specified format."
)


def resolve_columns(headers: Sequence[Any]) -> dict[str, int]:
    """Map record fields to column positions using the header row.

    For each field the first header containing its label wins.

    Args:
        headers: Values of the header row

    Returns:
        Field name -> column index, for the fields that were found
    """
    names = ["" if header is None else str(header).lower() for header in headers]
    columns: dict[str, int] = {}
    for field_name, label in COLUMN_LABELS.items():
        needle = label.lower()
        for index, name in enumerate(names):
            if needle in name:
                columns[field_name] = index
                break
    return columns


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _score(value: Any, bounds: tuple[int, int], name: str) -> int:
    score = parse_int(value) or 0
    low, high = bounds
    if not low <= score <= high:
        logger.warning(f"Ignoring out of range {name} {score!r}")
        return 0
    return score


def _release_year(value: Any) -> int | None:
    year = parse_int(value, default=None)
    low, high = RELEASE_YEAR_RANGE
    if year is not None and not low <= year <= high:
        logger.warning(f"Ignoring out of range release year {year!r}")
        return None
    return year


def row_to_record(row: Sequence[Any], columns: dict[str, int]) -> VinylRecord:
    """Convert one data row into a candidate record.

    Args:
        row: Cell values of the row
        columns: Column positions from ``resolve_columns``

    Returns:
        Candidate record (artist/album fall back to "Unknown ..." placeholders)
    """

    def get(field_name: str) -> Any:
        index = columns.get(field_name)
        if index is None or index >= len(row):
            return None
        return row[index]

    return VinylRecord(
        artist=_cell_text(get("artist")) or UNKNOWN_ARTIST,
        album=_cell_text(get("album")) or UNKNOWN_ALBUM,
        genre=split_and_trim(get("genre"), [";"]),
        collection=_cell_text(get("collection")),
        release_year=_release_year(get("release_year")),
        country=_cell_text(get("country")) or UNKNOWN_COUNTRY,
        label=split_and_trim(get("label"), [";", "/"]),
        cat_number=split_and_trim(get("cat_number"), [";"]),
        condition_sleeve=_cell_text(get("condition_sleeve")),
        condition_media=_cell_text(get("condition_media")),
        sound_quality=_score(get("sound_quality"), SOUND_QUALITY_RANGE, "sound quality"),
        rating=_score(get("rating"), RATING_RANGE, "rating"),
        best_tracks=split_and_trim(get("best_tracks"), [";"]),
        comments=_cell_text(get("comments")),
        discogs_link=_cell_text(get("discogs_link")),
        to_be_sold=parse_yes_no(get("to_be_sold")),
    )


def is_placeholder(record: VinylRecord) -> bool:
    """Whether a parsed row had neither an artist nor an album."""
    return record.artist == UNKNOWN_ARTIST and record.album == UNKNOWN_ALBUM


def parse_rows(rows: Iterable[Sequence[Any]]) -> list[VinylRecord]:
    """Parse sheet rows (header first) into candidate records.

    Args:
        rows: Row values, the first one being the header

    Returns:
        Candidate records, without rows lacking both artist and album
    """
    iterator = iter(rows)
    header = next(iterator, None)
    if header is None:
        return []

    columns = resolve_columns(header)
    logger.debug(f"Resolved spreadsheet columns: {columns}")

    records = []
    for row in iterator:
        record = row_to_record(row, columns)
        if is_placeholder(record):
            continue
        records.append(record)
    return records


def parse_workbook(data: bytes) -> list[VinylRecord]:
    """Parse an .xlsx file into candidate records.

    Only the first sheet is read. Nothing is written anywhere.

    Args:
        data: Raw bytes of the workbook

    Returns:
        Candidate records

    Raises:
        ParseError: If the bytes are not a readable workbook
    """
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as e:
        logger.error(f"Could not open workbook: {e}")
        raise ParseError(PARSE_ERROR_MESSAGE) from e

    try:
        worksheet = workbook[workbook.sheetnames[0]]
        records = parse_rows(worksheet.iter_rows(values_only=True))
    except (KeyError, IndexError, ValueError, TypeError) as e:
        logger.error(f"Could not read workbook rows: {e}")
        raise ParseError(PARSE_ERROR_MESSAGE) from e
    finally:
        workbook.close()

    logger.info(f"Parsed {len(records)} records from spreadsheet")
    return records


def parse_workbook_file(path: Path | str) -> list[VinylRecord]:
    """Parse an .xlsx file from disk.

    Args:
        path: Path to the workbook

    Returns:
        Candidate records

    Raises:
        ParseError: If the file cannot be read or is not a workbook
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ParseError(f"Could not read {path}: {e.strerror or e}") from e
    return parse_workbook(data)


def record_to_row(record: VinylRecord) -> list[Any]:
    """Convert a record to a spreadsheet row in ``COLUMN_LABELS`` order."""
    return [
        record.artist,
        record.album,
        "; ".join(record.genre),
        record.collection,
        record.release_year,
        record.country,
        "; ".join(record.label),
        "; ".join(record.cat_number),
        record.condition_sleeve,
        record.condition_media,
        record.sound_quality,
        record.rating,
        "; ".join(record.best_tracks),
        record.comments,
        record.discogs_link,
        "YES" if record.to_be_sold else "NO",
    ]


def export_workbook(records: Iterable[VinylRecord], path: Path | str) -> Path:
    """Write records to an .xlsx file in the import format (without artwork).

    Args:
        records: Records to export
        path: Destination file

    Returns:
        Path of the written file
    """
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = SHEET_TITLE
    worksheet.append(list(COLUMN_LABELS.values()))

    count = 0
    for record in records:
        worksheet.append(record_to_row(record))
        count += 1

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info(f"Exported {count} records to {path}")
    return path
