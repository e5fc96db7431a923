"""Filtering and sorting of collection snapshots.

Everything here is pure: functions take a list of records read from the store
and return a new list, leaving the input untouched.
"""

import math
import unicodedata
from collections.abc import Callable, Iterable
from typing import Any

from vinylvault.core.data.types import FilterOptions, FilterState, SortOption, VinylRecord


def collation_key(text: str) -> tuple[str, str]:
    """Build a locale-style sort key: accents and case only break ties.

    Args:
        text: Text to sort by

    Returns:
        Tuple of (folded text, original text)
    """
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return folded, text


def matches_filters(record: VinylRecord, filters: FilterState) -> bool:
    """Check a record against every active filter.

    Args:
        record: Record to check
        filters: Active filters; unset ones always pass

    Returns:
        True if the record passes all filters
    """
    if filters.search:
        needle = filters.search.lower()
        haystack = [record.album, record.artist, *record.label]
        if not any(needle in str(value or "").lower() for value in haystack):
            return False

    if filters.genre and filters.genre not in record.genre:
        return False
    if filters.artist and record.artist != filters.artist:
        return False
    if filters.collection and record.collection != filters.collection:
        return False
    if filters.release_year is not None and record.release_year != filters.release_year:
        return False
    if filters.condition_sleeve and record.condition_sleeve != filters.condition_sleeve:
        return False
    if filters.condition_media and record.condition_media != filters.condition_media:
        return False
    if filters.to_be_sold is not None and record.to_be_sold != filters.to_be_sold:
        return False

    return True


def _year_key(missing: float) -> Callable[[VinylRecord], float]:
    def key(record: VinylRecord) -> float:
        return missing if record.release_year is None else record.release_year

    return key


# Sort option -> (key function, descending)
_SORT_KEYS: dict[SortOption, tuple[Callable[[VinylRecord], Any], bool]] = {
    SortOption.ADDED_DESC: (lambda r: r.added_at, True),
    SortOption.ARTIST_ASC: (lambda r: collation_key(r.artist), False),
    SortOption.ARTIST_DESC: (lambda r: collation_key(r.artist), True),
    # Unknown years count as +inf oldest-first and as 0 newest-first: last either way
    SortOption.YEAR_ASC: (_year_key(math.inf), False),
    SortOption.YEAR_DESC: (_year_key(0), True),
    SortOption.RATING_DESC: (lambda r: r.rating, True),
    SortOption.RATING_ASC: (lambda r: r.rating, False),
    SortOption.SOUND_DESC: (lambda r: r.sound_quality, True),
    SortOption.SOUND_ASC: (lambda r: r.sound_quality, False),
}

_RATING_SORTS = (SortOption.RATING_DESC, SortOption.RATING_ASC)
_SOUND_SORTS = (SortOption.SOUND_DESC, SortOption.SOUND_ASC)


def apply_query(
    records: Iterable[VinylRecord],
    filters: FilterState | None = None,
    sort_option: SortOption | str = SortOption.ADDED_DESC,
) -> list[VinylRecord]:
    """Filter and sort a collection snapshot.

    Choosing a rating or sound-quality ordering also hides the records that
    are unrated on that score (value 0): the visible set changes, not just
    its order. Ties keep the order of ``records``.

    Args:
        records: Records as read from the store
        filters: Filters to apply (default: none)
        sort_option: Ordering to use (default: recently added first)

    Returns:
        New list with the matching records in display order
    """
    sort_option = SortOption(sort_option)
    filters = filters or FilterState()

    visible = [record for record in records if matches_filters(record, filters)]

    if sort_option in _RATING_SORTS:
        visible = [record for record in visible if (record.rating or 0) > 0]
    elif sort_option in _SOUND_SORTS:
        visible = [record for record in visible if (record.sound_quality or 0) > 0]

    key, descending = _SORT_KEYS[sort_option]
    return sorted(visible, key=key, reverse=descending)


def collect_filter_options(records: Iterable[VinylRecord]) -> FilterOptions:
    """Collect the distinct values that filters can be set to.

    Args:
        records: Records as read from the store

    Returns:
        Sorted distinct values; years newest first
    """
    genres: set[str] = set()
    artists: set[str] = set()
    collections: set[str] = set()
    years: set[int] = set()
    sleeves: set[str] = set()
    medias: set[str] = set()

    for record in records:
        genres.update(record.genre)
        if record.artist:
            artists.add(record.artist)
        if record.collection:
            collections.add(record.collection)
        if record.release_year:
            years.add(record.release_year)
        if record.condition_sleeve:
            sleeves.add(record.condition_sleeve)
        if record.condition_media:
            medias.add(record.condition_media)

    return FilterOptions(
        genres=sorted(genres),
        artists=sorted(artists),
        collections=sorted(collections),
        years=sorted(years, reverse=True),
        sleeve_conditions=sorted(sleeves),
        media_conditions=sorted(medias),
    )
