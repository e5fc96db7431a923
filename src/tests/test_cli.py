"""Smoke tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from vinylvault.cli.main import cli
from vinylvault.core.platform.itunes.api_client import ItunesApiClient


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep the CLI from re-installing loguru sinks on the runner's streams."""
    with patch("vinylvault.cli.main.configure_logging"):
        yield


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def invoke(runner, db_path):
    """Run the CLI against the test database."""

    def run(*args: str, input: str | None = None):
        return runner.invoke(
            cli,
            ["--db", str(db_path), *args],
            input=input,
            env={"VINYLVAULT_SCAN_DELAY": "0"},
        )

    return run


@pytest.fixture
def sample_sheet(write_workbook, sheet_headers, sheet_row):
    return write_workbook(
        [
            sheet_headers,
            sheet_row(artist="Can", album="Tago Mago", rating=9, release_year=1971),
            sheet_row(artist="Neu!", album="Neu! 75", genre="Krautrock", release_year=1975),
        ]
    )


def test_database_init_and_verify(invoke, db_path):
    """Test creating and verifying a database."""
    result = invoke("database", "init")
    assert result.exit_code == 0, result.output
    assert "Database initialized successfully!" in result.output
    assert db_path.exists()

    result = invoke("database", "verify")
    assert result.exit_code == 0, result.output


def test_add_show_edit_delete(invoke):
    """Test the manual entry commands."""
    result = invoke("add", "--artist", "Kraftwerk", "--album", "Autobahn", "--genre", "Electronic")
    assert result.exit_code == 0, result.output
    assert "Added record 1" in result.output

    result = invoke("edit", "1", "--rating", "9", "--year", "1974")
    assert result.exit_code == 0, result.output

    result = invoke("show", "1")
    assert result.exit_code == 0, result.output
    assert "Kraftwerk" in result.output
    assert "9/10" in result.output
    assert "1974" in result.output
    # Form defaults
    assert "VG+" in result.output
    assert "5/5" in result.output

    result = invoke("delete", "1", "--yes")
    assert result.exit_code == 0, result.output

    result = invoke("show", "1")
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_add_requires_artist_and_album(invoke):
    """Test that a blank album is rejected with a message."""
    result = invoke("add", "--artist", "Someone", "--album", "  ")
    assert result.exit_code == 1
    assert "Artist and Album are required." in result.output


def test_import_and_list(invoke, sample_sheet):
    """Test importing a sheet, re-importing it, and listing the result."""
    result = invoke("import", str(sample_sheet))
    assert result.exit_code == 0, result.output
    assert "Successfully imported 2 records!" in result.output

    result = invoke("import", str(sample_sheet))
    assert result.exit_code == 0, result.output
    assert "already in your collection" in result.output

    result = invoke("list", "--sort", "rating_desc")
    assert result.exit_code == 0, result.output
    assert "Tago Mago" in result.output
    assert "Neu! 75" not in result.output

    result = invoke("list", "--genre", "Krautrock")
    assert "Neu! 75" in result.output
    assert "Tago Mago" not in result.output


def test_import_bad_file(invoke, tmp_path):
    """Test that an unreadable spreadsheet fails with a message."""
    bad = tmp_path / "bad.xlsx"
    bad.write_bytes(b"not a workbook")

    result = invoke("import", str(bad))

    assert result.exit_code == 1
    assert "Failed to process file" in result.output


def test_backup_and_restore(invoke, sample_sheet, tmp_path):
    """Test a backup followed by a confirmed and a declined restore."""
    invoke("import", str(sample_sheet))
    output_dir = tmp_path / "backups"

    result = invoke("backup", "--output-dir", str(output_dir))
    assert result.exit_code == 0, result.output
    [backup_file] = output_dir.glob("vinyl-vault-backup-*.json")
    assert json.loads(backup_file.read_text(encoding="utf-8"))["recordCount"] == 2

    invoke("add", "--artist", "Extra", "--album", "Record")

    result = invoke("restore", str(backup_file), input="n\n")
    assert result.exit_code == 0, result.output
    assert "This backup contains 2 records" in result.output
    assert "Restore cancelled." in result.output
    assert "Extra" in invoke("list").output

    result = invoke("restore", str(backup_file), "--yes")
    assert result.exit_code == 0, result.output
    assert "Restore complete! 2 records imported." in result.output
    assert "Extra" not in invoke("list").output


def test_restore_prompt_shows_stated_count(invoke, tmp_path):
    """Test that the confirmation quotes the count stored in the file."""
    backup_file = tmp_path / "backup.json"
    snapshot = {"version": "1.1.0", "recordCount": 5, "records": [{"artist": "A", "album": "B"}]}
    backup_file.write_text(json.dumps(snapshot), encoding="utf-8")

    result = invoke("restore", str(backup_file), input="n\n")

    assert result.exit_code == 0, result.output
    assert "This backup contains 5 records" in result.output


def test_restore_invalid_file(invoke, tmp_path):
    """Test that a bad backup is rejected before anything is asked."""
    bad = tmp_path / "backup.json"
    bad.write_text(json.dumps({"records": []}), encoding="utf-8")

    result = invoke("restore", str(bad))

    assert result.exit_code == 1
    assert "Invalid backup file format" in result.output


def test_scan(invoke, sample_sheet):
    """Test a scan where every lookup succeeds."""
    invoke("import", str(sample_sheet))

    with patch.object(
        ItunesApiClient, "find_album_cover", return_value="https://img.example/600x600bb.jpg"
    ):
        result = invoke("scan", "--yes")

    assert result.exit_code == 0, result.output
    assert "Scanning 2/2..." in result.output
    assert "Found covers for 2 of 2 records." in result.output

    result = invoke("scan")
    assert "All records already have covers!" in result.output


def test_stats_and_options(invoke, sample_sheet):
    """Test the read-only summary commands."""
    invoke("import", str(sample_sheet))

    result = invoke("stats")
    assert result.exit_code == 0, result.output
    assert "Records: 2" in result.output
    assert "1970s" in result.output

    result = invoke("options")
    assert result.exit_code == 0, result.output
    assert "Krautrock" in result.output
    assert "1975, 1971" in result.output
