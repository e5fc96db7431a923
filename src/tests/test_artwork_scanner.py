"""Tests for the artwork enrichment scanner."""

from unittest.mock import MagicMock

import pytest

from vinylvault.core.collection.artwork_scanner import ArtworkScanner
from vinylvault.core.errors import LookupFailure, OperationInProgress, ValidationError


class FakeLookup:
    """Lookup that answers from a dictionary keyed by album."""

    def __init__(self, covers=None, failing=()):
        self.covers = covers or {}
        self.failing = set(failing)
        self.calls = []

    def find_album_cover(self, artist: str, album: str) -> str | None:
        self.calls.append((artist, album))
        if album in self.failing:
            raise LookupFailure("Artwork lookup failed: 503 Service Unavailable")
        return self.covers.get(album)


@pytest.fixture
def three_without_covers(repository, make_record):
    """Three records without artwork and one with."""
    ids = repository.bulk_create(
        [
            make_record(album="One"),
            make_record(album="Two"),
            make_record(album="Three"),
            make_record(album="Covered", cover_url="https://img.example/covered.jpg"),
        ]
    )
    return ids


def test_one_failure_does_not_stop_the_scan(repository, three_without_covers):
    """Test that a failed lookup only skips its own record."""
    lookup = FakeLookup(
        covers={"One": "https://img.example/1.jpg", "Three": "https://img.example/3.jpg"},
        failing={"Two"},
    )
    scanner = ArtworkScanner(repository, lookup, delay=0)

    report = scanner.scan()

    assert report.total == 3
    assert report.enriched == 2
    assert report.failed == 1
    assert str(report) == "2 of 3 enriched"

    covers = {record.album: record.cover_url for record in repository.get_all()}
    assert covers == {
        "One": "https://img.example/1.jpg",
        "Two": None,
        "Three": "https://img.example/3.jpg",
        "Covered": "https://img.example/covered.jpg",
    }


def test_only_records_without_covers_are_looked_up(repository, three_without_covers):
    """Test that records with artwork are never sent to the lookup."""
    lookup = FakeLookup()
    ArtworkScanner(repository, lookup, delay=0).scan()

    assert [album for _, album in lookup.calls] == ["One", "Two", "Three"]


def test_no_match_is_counted(repository, three_without_covers):
    """Test that an empty answer counts as not found, not as a failure."""
    report = ArtworkScanner(repository, FakeLookup(), delay=0).scan()

    assert report.enriched == 0
    assert report.not_found == 3
    assert report.failed == 0


def test_delay_before_every_lookup(repository, three_without_covers):
    """Test that the scan pauses before each lookup."""
    sleep = MagicMock()
    ArtworkScanner(repository, FakeLookup(), delay=1.0, sleep=sleep).scan()

    assert sleep.call_count == 3
    sleep.assert_called_with(1.0)


def test_progress_is_reported(repository, three_without_covers):
    """Test that progress is reported before each lookup."""
    progress = []
    ArtworkScanner(repository, FakeLookup(), delay=0).scan(
        lambda position, total, record: progress.append((position, total, record.album))
    )

    assert progress == [(1, 3, "One"), (2, 3, "Two"), (3, 3, "Three")]


def test_second_scan_is_rejected_while_running(repository, three_without_covers):
    """Test that only one scan can run at a time."""
    scanner = ArtworkScanner(repository, FakeLookup(), delay=0)
    errors = []

    def progress(position, total, record):
        assert scanner.is_scanning
        try:
            scanner.scan()
        except OperationInProgress as e:
            errors.append(e)

    scanner.scan(progress)

    assert len(errors) == 3
    assert not scanner.is_scanning


def test_unexpected_errors_are_contained(repository, three_without_covers):
    """Test that a non-lookup error is also counted as a per-record failure."""
    lookup = MagicMock()
    lookup.find_album_cover.side_effect = [RuntimeError("boom"), None, "https://img.example/3"]

    report = ArtworkScanner(repository, lookup, delay=0).scan()

    assert (report.enriched, report.not_found, report.failed) == (1, 1, 1)


def test_nothing_to_scan(repository, make_record):
    """Test a scan when every record already has artwork."""
    repository.create(make_record(cover_url="https://img.example/x.jpg"))
    lookup = FakeLookup()

    report = ArtworkScanner(repository, lookup, delay=0).scan()

    assert report.total == 0
    assert lookup.calls == []


class TestFetchCover:
    """Single-record lookups."""

    def test_stores_the_cover(self, repository, make_record):
        """Test that a match is stored on the record."""
        record_id = repository.create(make_record(album="One"))
        scanner = ArtworkScanner(repository, FakeLookup({"One": "https://img.example/1.jpg"}))

        assert scanner.fetch_cover(record_id) == "https://img.example/1.jpg"
        assert repository.get_by_id(record_id).cover_url == "https://img.example/1.jpg"

    def test_no_match(self, repository, make_record):
        """Test that no match leaves the record alone."""
        record_id = repository.create(make_record(album="One"))

        assert ArtworkScanner(repository, FakeLookup()).fetch_cover(record_id) is None
        assert repository.get_by_id(record_id).cover_url is None

    def test_missing_record(self, repository):
        """Test that an unknown id is a validation error."""
        with pytest.raises(ValidationError):
            ArtworkScanner(repository, FakeLookup()).fetch_cover(99)

    def test_lookup_failure_propagates(self, repository, make_record):
        """Test that the caller sees lookup failures."""
        record_id = repository.create(make_record(album="One"))
        scanner = ArtworkScanner(repository, FakeLookup(failing={"One"}))

        with pytest.raises(LookupFailure):
            scanner.fetch_cover(record_id)


def test_unmatched_record_keeps_no_cover(repository, three_without_covers):
    """Test a scan where one of three lookups has no match."""
    lookup = FakeLookup(
        covers={"One": "https://img.example/1.jpg", "Two": "https://img.example/2.jpg"}
    )

    report = ArtworkScanner(repository, lookup, delay=0).scan()

    assert str(report) == "2 of 3 enriched"
    assert report.not_found == 1
    three = next(record for record in repository.get_all() if record.album == "Three")
    assert three.cover_url is None
