"""Database CLI commands."""

import os
from pathlib import Path

import click
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from vinylvault.cli.context import CliContext, handle_errors, pass_context
from vinylvault.core.data.database import create_db_engine
from vinylvault.core.data.init_db import initialize_database, verify_schema


def _database_files(db_path: Path) -> list[Path]:
    """The database file and the SQLite side files that may sit next to it."""
    return [
        db_path,
        db_path.with_name(f"{db_path.name}-wal"),
        db_path.with_name(f"{db_path.name}-shm"),
        db_path.with_name(f"{db_path.name}-journal"),
    ]


def _remove_files(db_path: Path) -> None:
    for file_path in _database_files(db_path):
        if file_path.exists():
            os.remove(file_path)
            logger.debug(f"Removed {file_path}")


@click.group(name="database")
def database():
    """Database management commands for Vinyl Vault."""
    pass


@database.command(name="init", help="Initialize a new database")
@click.option(
    "--force/--no-force",
    default=False,
    help="Recreate the database without asking if one already exists",
)
@click.option(
    "--path",
    type=click.Path(dir_okay=False),
    help="Custom database path (default: the configured database)",
)
@pass_context
def init_db(app: CliContext, force: bool, path: str | None) -> None:
    """Initialize a new Vinyl Vault database.

    Args:
        app: CLI context
        force: Whether to recreate an existing database without asking
        path: Optional custom database path
    """
    db_path = Path(path) if path else app.db_path

    if db_path.exists():
        if not force:
            click.secho(f"Database already exists at {db_path}", fg="yellow")
            if not click.confirm("Do you want to reinitialize the database? All data will be lost."):
                click.echo("Database initialization cancelled.")
                return

        # The context may already hold the file open
        app.close()
        try:
            click.echo(f"Removing existing database at {db_path}")
            _remove_files(db_path)
        except OSError as e:
            logger.error(f"Error removing existing database: {e}")
            click.secho(f"Error removing existing database: {e}", fg="red")
            raise SystemExit(1) from e

    db_path.parent.mkdir(parents=True, exist_ok=True)
    click.echo(f"Initializing new database at {db_path}")

    engine = create_db_engine(db_path)
    try:
        valid = initialize_database(engine=engine)
    except SQLAlchemyError as e:
        logger.exception(f"Error initializing database: {e}")
        click.secho(f"Error initializing database: {e}", fg="red")
        raise SystemExit(1) from e
    finally:
        engine.dispose()

    if not valid:
        click.secho("Database was created but its schema did not verify.", fg="red")
        raise SystemExit(1)
    click.secho("Database initialized successfully!", fg="green")


@database.command(name="reset", help="Delete every record, keeping the database")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@pass_context
@handle_errors
def reset_db(app: CliContext, yes: bool) -> None:
    """Remove all records from the collection.

    Args:
        app: CLI context
        yes: Skip confirmation prompt if set
    """
    repository = app.repository
    count = repository.count()
    if count == 0:
        click.secho("The collection is already empty.", fg="yellow")
        return

    if not yes and not click.confirm(
        f"Delete all {count} records from {app.db_path}? This cannot be undone.",
        default=False,
    ):
        click.echo("Reset cancelled.")
        return

    removed = repository.clear()
    click.secho(f"Removed {removed} records.", fg="green")


@database.command(name="remove", help="Remove the database")
@click.option(
    "--path",
    type=click.Path(dir_okay=False),
    help="Custom database path (default: the configured database)",
)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@pass_context
def remove_db(app: CliContext, path: str | None, yes: bool) -> None:
    """Remove the Vinyl Vault database.

    Args:
        app: CLI context
        path: Optional custom database path
        yes: Skip confirmation prompt if set
    """
    db_path = Path(path) if path else app.db_path

    if not db_path.exists():
        click.secho(f"No database found at {db_path}", fg="yellow")
        return

    if not yes and not click.confirm(
        f"Are you sure you want to remove the database at {db_path}? This cannot be undone.",
        default=False,
    ):
        click.echo("Database removal cancelled.")
        return

    app.close()
    try:
        _remove_files(db_path)
    except OSError as e:
        logger.exception(f"Error removing database: {e}")
        click.secho(f"Error removing database: {e}", fg="red")
        raise SystemExit(1) from e

    click.secho(f"Database at {db_path} removed successfully!", fg="green")


@database.command(name="verify", help="Check the database schema")
@pass_context
def verify_db(app: CliContext) -> None:
    """Verify that the database has the expected tables, columns and version.

    Args:
        app: CLI context
    """
    if not app.db_path.exists():
        click.secho(f"No database found at {app.db_path}", fg="yellow")
        raise SystemExit(1)

    engine = create_db_engine(app.db_path)
    try:
        valid = verify_schema(engine)
    finally:
        engine.dispose()

    if valid:
        click.secho(f"Database at {app.db_path} is valid.", fg="green")
    else:
        click.secho(
            f"Database at {app.db_path} has schema problems. "
            "Run 'vinylvault database init --force' to recreate it.",
            fg="red",
        )
        raise SystemExit(1)
