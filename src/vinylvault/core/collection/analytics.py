"""Collection statistics."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from vinylvault.core.data.types import VinylRecord

# Too generic and too dominant to say anything about a collection
EXCLUDED_GENRES = frozenset({"Rock"})

TOP_GENRES = 6
TOP_ARTISTS = 5


@dataclass
class ConditionHealth:
    """How well graded media holds up."""

    mint_or_near: int = 0
    good_plus: int = 0
    total_graded: int = 0


@dataclass
class CollectionStats:
    """Aggregates over the whole collection."""

    record_count: int = 0
    to_be_sold: int = 0
    decades: list[tuple[str, int]] = field(default_factory=list)
    top_genres: list[tuple[str, int]] = field(default_factory=list)
    top_artists: list[tuple[str, int]] = field(default_factory=list)
    health: ConditionHealth = field(default_factory=ConditionHealth)


def _grade_bucket(grade: str) -> str | None:
    grade = grade.lower()
    if "mint" in grade or grade in ("m", "nm"):
        return "mint"
    if "very good" in grade or grade in ("vg+", "vg"):
        return "good"
    return None


def collection_stats(records: Iterable[VinylRecord]) -> CollectionStats:
    """Compute statistics for a collection snapshot.

    Args:
        records: Records as read from the store

    Returns:
        CollectionStats
    """
    stats = CollectionStats()
    decades: Counter[str] = Counter()
    genres: Counter[str] = Counter()
    artists: Counter[str] = Counter()

    for record in records:
        stats.record_count += 1
        if record.to_be_sold:
            stats.to_be_sold += 1
        if record.release_year:
            decades[f"{record.release_year // 10 * 10}s"] += 1
        genres.update(g for g in record.genre if g not in EXCLUDED_GENRES)
        artists[record.artist] += 1

        if record.condition_media:
            stats.health.total_graded += 1
            bucket = _grade_bucket(record.condition_media)
            if bucket == "mint":
                stats.health.mint_or_near += 1
            elif bucket == "good":
                stats.health.good_plus += 1

    stats.decades = sorted(decades.items())
    stats.top_genres = genres.most_common(TOP_GENRES)
    stats.top_artists = artists.most_common(TOP_ARTISTS)
    return stats
