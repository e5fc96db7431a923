"""Backup and restore CLI commands."""

from pathlib import Path

import click

from vinylvault.cli.context import CliContext, handle_errors, pass_context
from vinylvault.core.collection.backup import BackupManager, BackupSnapshot, load_backup
from vinylvault.core.utils.path_helper import get_app_data_path


def _confirm_restore(snapshot: BackupSnapshot) -> bool:
    exported_at = snapshot.exported_at
    date = exported_at.strftime("%Y-%m-%d %H:%M") if exported_at else "an unknown date"
    return click.confirm(
        f"This backup contains {snapshot.record_count} records from {date}.\n\n"
        "WARNING: This will REPLACE all current data in your collection. "
        "Are you sure you want to continue?",
        default=False,
    )


@click.command(name="backup", help="Write a full JSON backup and a companion spreadsheet")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the backup files (default: <app data>/backups)",
)
@pass_context
@handle_errors
def backup(app: CliContext, output_dir: Path | None) -> None:
    """Export a backup of the whole collection.

    Args:
        app: CLI context
        output_dir: Where to write the files
    """
    output_dir = output_dir or get_app_data_path() / "backups"
    files = BackupManager(app.repository).export_backup(output_dir)

    click.secho(f"Backup complete! Exported {files.record_count} records.", fg="green")
    click.echo(f"  {files.json_path}")
    click.echo(f"  {files.spreadsheet_path}")


@click.command(name="restore", help="Replace the collection with a JSON backup")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@pass_context
@handle_errors
def restore(app: CliContext, file: str, yes: bool) -> None:
    """Restore a backup file.

    The file is validated before anything is asked or deleted.

    Args:
        app: CLI context
        file: Path to the backup JSON
        yes: Skip confirmation prompt if set
    """
    snapshot = load_backup(file)

    confirm = (lambda _snapshot: True) if yes else _confirm_restore
    restored = BackupManager(app.repository).restore(snapshot, confirm)

    if restored is None:
        click.echo("Restore cancelled.")
        return
    click.secho(f"Restore complete! {restored} records imported.", fg="green")
