"""Tests for backup export and restore."""

import json
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from vinylvault.core.collection.backup import (
    BACKUP_VERSION,
    BackupManager,
    create_snapshot,
    load_backup,
    parse_backup,
    parse_timestamp,
)
from vinylvault.core.errors import (
    BackupFormatError,
    ParseError,
    RestoreInterrupted,
    ValidationError,
)

EXPORTED_AT = datetime(2024, 3, 25, 10, 0, tzinfo=UTC)


def always(_snapshot) -> bool:
    return True


def never(_snapshot) -> bool:
    return False


@pytest.fixture
def manager(repository) -> BackupManager:
    return BackupManager(repository)


@pytest.fixture
def stored_records(repository, make_record):
    """Two records, one of them with artwork."""
    repository.bulk_create(
        [
            make_record(
                artist="Can",
                album="Tago Mago",
                genre=["Krautrock"],
                release_year=1971,
                rating=10,
                cover_url="https://img.example/600x600bb.jpg",
                dominant_color="#aa3300",
            ),
            make_record(artist="Neu!", album="Neu!", label=["Brain"], to_be_sold=True),
        ]
    )
    return repository.get_all()


class TestExport:
    """Writing backups."""

    def test_writes_json_and_spreadsheet(self, manager, stored_records, tmp_path):
        """Test the file names and the snapshot layout."""
        files = manager.export_backup(tmp_path, exported_at=EXPORTED_AT)

        assert files.json_path.name == "vinyl-vault-backup-2024-03-25.json"
        assert files.spreadsheet_path.name == "Vinyl_Collection_Backup_2024-03-25.xlsx"
        assert files.spreadsheet_path.exists()
        assert files.record_count == 2

        data = json.loads(files.json_path.read_text(encoding="utf-8"))
        assert data["version"] == BACKUP_VERSION
        assert data["exportDate"] == "2024-03-25T10:00:00+00:00"
        assert data["recordCount"] == 2

        first, second = data["records"]
        assert first["releaseYear"] == 1971
        assert first["coverUrl"] == "https://img.example/600x600bb.jpg"
        assert first["dominantColor"] == "#aa3300"
        assert first["addedAt"] == "2024-03-25T10:00:00+00:00"
        assert "coverUrl" not in second
        assert second["toBeSold"] is True
        assert second["catNumber"] == []

    def test_empty_store_is_refused(self, manager, tmp_path):
        """Test that there is nothing to back up in an empty store."""
        output_dir = tmp_path / "backups"
        with pytest.raises(ValidationError, match="No records to backup."):
            manager.export_backup(output_dir)
        assert not output_dir.exists()


class TestParse:
    """Reading backup files."""

    def test_not_json(self):
        """Test that a non-JSON file is a parse error, not a format error."""
        with pytest.raises(ParseError) as excinfo:
            parse_backup("{not json")
        assert not isinstance(excinfo.value, BackupFormatError)

    @pytest.mark.parametrize(
        "content",
        [
            "[]",
            json.dumps({"records": []}),
            json.dumps({"version": "1.1.0", "records": {}}),
            json.dumps({"version": "", "records": []}),
            json.dumps({"version": "1.1.0", "records": ["oops"]}),
            json.dumps({"version": "1.1.0", "records": [{"artist": "A"}]}),
        ],
    )
    def test_invalid_snapshots(self, content):
        """Test that structurally invalid snapshots are rejected."""
        with pytest.raises(BackupFormatError):
            parse_backup(content)

    @pytest.mark.parametrize(
        "fields",
        [{"releaseYear": 10**20}, {"releaseYear": -5}, {"rating": 42}, {"soundQuality": -3}],
    )
    def test_out_of_range_numbers_are_rejected(self, fields):
        """Test that years and scores outside their ranges make the file invalid."""
        record = {"artist": "A", "album": "B", **fields}
        content = json.dumps({"version": "1.1.0", "records": [record]})
        with pytest.raises(BackupFormatError):
            parse_backup(content)

    def test_loose_flags_and_covers(self):
        """Test that only real booleans and string covers are taken."""
        content = json.dumps(
            {
                "version": "1.1.0",
                "records": [
                    {"artist": "A", "album": "B", "toBeSold": "false", "coverUrl": 12},
                    {
                        "artist": "C",
                        "album": "D",
                        "toBeSold": True,
                        "coverUrl": "https://img.example/c.jpg",
                    },
                ],
            }
        )

        first, second = parse_backup(content).records

        assert (first.to_be_sold, first.cover_url) == (False, None)
        assert (second.to_be_sold, second.cover_url) == (True, "https://img.example/c.jpg")

    def test_record_count_is_not_checked(self):
        """Test that a wrong recordCount is ignored."""
        content = json.dumps(
            {"version": "1.0", "recordCount": 99, "records": [{"artist": "A", "album": "B"}]}
        )
        snapshot = parse_backup(content)
        assert snapshot.record_count == 99
        assert len(snapshot.records) == 1

    def test_timestamps_and_ids(self):
        """Test that addedAt is coerced and stored ids are dropped."""
        content = json.dumps(
            {
                "version": "1.1.0",
                "exportDate": "2024-03-25T10:00:00.000Z",
                "records": [
                    {"id": 7, "artist": "A", "album": "B", "addedAt": "2023-01-01T12:00:00Z"},
                    {"id": 8, "artist": "C", "album": "D", "addedAt": "yesterday"},
                ],
            }
        )

        snapshot = parse_backup(content)

        assert snapshot.exported_at == EXPORTED_AT
        assert snapshot.records[0].id is None
        assert snapshot.records[0].added_at == datetime(2023, 1, 1, 12, 0, tzinfo=UTC)
        assert snapshot.records[1].added_at.tzinfo is not None

    def test_parse_timestamp(self):
        """Test accepted timestamp forms."""
        assert parse_timestamp("2024-03-25T10:00:00Z") == EXPORTED_AT
        assert parse_timestamp("2024-03-25T12:00:00+02:00") == EXPORTED_AT
        assert parse_timestamp("2024-03-25T10:00:00") == EXPORTED_AT
        assert parse_timestamp("nope") is None
        assert parse_timestamp(None) is None

    def test_load_missing_file(self, tmp_path):
        """Test that an unreadable file is a parse error."""
        with pytest.raises(ParseError):
            load_backup(tmp_path / "missing.json")


class TestRestore:
    """Replacing the collection."""

    def test_round_trip(self, manager, repository, stored_records, tmp_path):
        """Test that export then restore reproduces every record with new ids."""
        files = manager.export_backup(tmp_path, exported_at=EXPORTED_AT)
        old_ids = {record.id for record in stored_records}

        restored = manager.restore(load_backup(files.json_path), always)

        assert restored == 2
        after = repository.get_all()
        assert [record.without_id() for record in after] == [
            record.without_id() for record in stored_records
        ]
        assert not old_ids & {record.id for record in after}

    def test_restore_replaces_current_data(self, manager, repository, make_record):
        """Test that records missing from the snapshot are gone afterwards."""
        repository.create(make_record(artist="Old", album="Record"))
        snapshot = parse_backup(
            json.dumps(create_snapshot([make_record(artist="New", album="Record")]))
        )

        manager.restore(snapshot, always)

        assert [record.artist for record in repository.get_all()] == ["New"]

    def test_cancelled_restore_changes_nothing(self, manager, repository, stored_records):
        """Test that declining the confirmation leaves the store alone."""
        snapshot = parse_backup(json.dumps(create_snapshot([])))

        assert manager.restore(snapshot, never) is None
        assert repository.get_all() == stored_records

    def test_confirmation_sees_the_snapshot(self, manager, stored_records):
        """Test that the confirmation callback gets the decoded snapshot."""
        seen = []
        snapshot = parse_backup(json.dumps(create_snapshot(stored_records, EXPORTED_AT)))

        manager.restore(snapshot, lambda s: seen.append(s) or False)

        assert seen == [snapshot]
        assert seen[0].record_count == 2

    def test_failed_insert_after_clear(self, manager, repository, stored_records):
        """Test that a failed insert after clearing is reported as interrupted."""
        snapshot = parse_backup(json.dumps(create_snapshot(stored_records)))

        with patch.object(
            repository, "bulk_create", side_effect=OperationalError("INSERT", {}, Exception())
        ):
            with pytest.raises(RestoreInterrupted):
                manager.restore(snapshot, always)

        assert repository.count() == 0

        # The same snapshot restores fine afterwards
        assert manager.restore(snapshot, always) == 2

    def test_invalid_record_keeps_current_data(self, manager, repository, make_record):
        """Test that a snapshot with an impossible year never reaches the store."""
        repository.create(make_record())
        snapshot = create_snapshot([make_record(artist="New", album="Record")])
        snapshot["records"][0]["releaseYear"] = 10**20

        with pytest.raises(BackupFormatError):
            manager.restore(parse_backup(json.dumps(snapshot)), always)

        assert repository.count() == 1

    def test_unexpected_insert_error_after_clear(self, manager, repository, stored_records):
        """Test that any insert failure after clearing is reported as interrupted."""
        snapshot = parse_backup(json.dumps(create_snapshot(stored_records)))

        with patch.object(repository, "bulk_create", side_effect=OverflowError("too large")):
            with pytest.raises(RestoreInterrupted):
                manager.restore(snapshot, always)

        assert repository.count() == 0
