"""Normalization of record values typed in by hand or read from a sheet."""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from vinylvault.core.data.types import (
    CONDITION_GRADES,
    RATING_RANGE,
    RELEASE_YEAR_RANGE,
    SOUND_QUALITY_RANGE,
    UNKNOWN_COUNTRY,
    VinylRecord,
    utc_now,
)
from vinylvault.core.errors import ValidationError

LIST_FIELDS = ("genre", "label", "cat_number", "best_tracks")


def split_and_trim(value: Any, delimiters: Iterable[str] = (";",)) -> list[str]:
    """Split a multi-valued cell into its trimmed, non-empty pieces.

    Non-string values (numbers from a spreadsheet) are converted first.

    Args:
        value: Cell value, or an already split list
        delimiters: Separators to split on

    Returns:
        List of pieces in their original order
    """
    if value is None:
        return []
    if isinstance(value, list | tuple):
        pieces = [str(item) for item in value if item is not None]
    else:
        pieces = [str(value)]

    for delimiter in delimiters:
        pieces = [part for piece in pieces for part in piece.split(delimiter)]

    return [piece.strip() for piece in pieces if piece.strip()]


def parse_int(value: Any, default: int | None = 0) -> int | None:
    """Parse a leading integer the way a lenient spreadsheet reader would.

    ``"1977"``, ``1977``, ``1977.0`` and ``"1977 (reissue)"`` all give 1977.
    Anything without a leading number, infinities, NaN and 0 give ``default``.

    Args:
        value: Value to parse
        default: Result for missing, zero, or non-numeric values

    Returns:
        The parsed integer or ``default``
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    if isinstance(value, int | float):
        number = int(value)
        return number or default

    text = str(value).strip()
    sign = 1
    if text.startswith(("-", "+")):
        sign = -1 if text.startswith("-") else 1
        text = text[1:]

    digits = ""
    for ch in text:
        if not ch.isdigit():
            break
        digits += ch

    if not digits:
        return default
    return sign * int(digits) or default


def parse_yes_no(value: Any) -> bool:
    """Read a YES/NO cell. Only a literal ``YES`` (any case) is true."""
    if not value:
        return False
    return str(value).strip().upper() == "YES"


def parse_release_year(value: Any) -> int | None:
    """Read a release year; ``-``, blank and non-numeric values are unknown."""
    if isinstance(value, str) and value.strip() in ("", "-"):
        return None
    return parse_int(value, default=None)


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValidationError(f"{name} must be between {low} and {high}, got {value}.")
    return value


def _check_grade(name: str, value: str) -> str:
    grade = value.strip().upper()
    if grade and grade not in CONDITION_GRADES:
        raise ValidationError(
            f"{name} must be one of {', '.join(CONDITION_GRADES)} (got {value!r})."
        )
    return grade


def normalize_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate and normalize the fields present in ``data``.

    Only the keys present are returned, so the result can be used for partial
    updates.

    Args:
        data: Raw field values keyed by record field name

    Returns:
        Normalized values

    Raises:
        ValidationError: On blank artist/album, bad grades or out-of-range scores
    """
    values: dict[str, Any] = {}

    for key in ("artist", "album"):
        if key in data:
            text = str(data[key] or "").strip()
            if not text:
                raise ValidationError("Artist and Album are required.")
            values[key] = text

    for key in LIST_FIELDS:
        if key in data:
            values[key] = split_and_trim(data[key])

    if "collection" in data:
        values["collection"] = str(data["collection"] or "").strip()
    if "country" in data:
        values["country"] = str(data["country"] or "").strip() or UNKNOWN_COUNTRY
    if "release_year" in data:
        year = parse_release_year(data["release_year"])
        if year is not None:
            _check_range("Release year", year, RELEASE_YEAR_RANGE)
        values["release_year"] = year

    if "condition_sleeve" in data:
        values["condition_sleeve"] = _check_grade(
            "Sleeve condition", str(data["condition_sleeve"] or "")
        )
    if "condition_media" in data:
        values["condition_media"] = _check_grade(
            "Media condition", str(data["condition_media"] or "")
        )

    if "sound_quality" in data:
        values["sound_quality"] = _check_range(
            "Sound quality", parse_int(data["sound_quality"]) or 0, SOUND_QUALITY_RANGE
        )
    if "rating" in data:
        values["rating"] = _check_range("Rating", parse_int(data["rating"]) or 0, RATING_RANGE)

    for key in ("comments", "discogs_link"):
        if key in data:
            values[key] = str(data[key] or "").strip()
    if "to_be_sold" in data:
        flag = data["to_be_sold"]
        values["to_be_sold"] = flag if isinstance(flag, bool) else parse_yes_no(flag)
    for key in ("cover_url", "dominant_color"):
        if key in data:
            text = "" if data[key] is None else str(data[key]).strip()
            values[key] = text or None

    return values


def build_record(data: Mapping[str, Any], added_at: datetime | None = None) -> VinylRecord:
    """Build a new record from a manual entry.

    Args:
        data: Raw field values keyed by record field name
        added_at: Creation time (default: now)

    Returns:
        A record ready to be stored

    Raises:
        ValidationError: If artist or album is missing, or a value is invalid
    """
    if not str(data.get("artist") or "").strip() or not str(data.get("album") or "").strip():
        raise ValidationError("Artist and Album are required.")

    values = normalize_fields(data)
    return VinylRecord(added_at=added_at or utc_now(), **values)
