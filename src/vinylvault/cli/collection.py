"""Collection CLI commands: import, export, browse and manual editing."""

from pathlib import Path
from typing import Any

import click
from loguru import logger

from vinylvault.cli.context import (
    CliContext,
    format_record,
    format_record_details,
    handle_errors,
    pass_context,
)
from vinylvault.core.collection.analytics import collection_stats
from vinylvault.core.collection.entry import build_record, normalize_fields
from vinylvault.core.collection.importer import CollectionImporter
from vinylvault.core.collection.query import apply_query, collect_filter_options
from vinylvault.core.collection.spreadsheet import export_workbook
from vinylvault.core.data.types import FilterState, SortOption
from vinylvault.core.errors import ValidationError
from vinylvault.core.utils.image_helpers import decode_data_url, encode_image_file, is_data_url

SORT_CHOICES = [option.value for option in SortOption]

# CLI option name -> record field, for the options shared by add and edit
ENTRY_OPTIONS: dict[str, str] = {
    "artist": "artist",
    "album": "album",
    "genre": "genre",
    "collection": "collection",
    "year": "release_year",
    "country": "country",
    "label": "label",
    "cat_number": "cat_number",
    "sleeve": "condition_sleeve",
    "media": "condition_media",
    "sound_quality": "sound_quality",
    "rating": "rating",
    "best_tracks": "best_tracks",
    "comments": "comments",
    "discogs_link": "discogs_link",
    "to_be_sold": "to_be_sold",
    "cover_url": "cover_url",
}


def _entry_data(options: dict[str, Any], cover_file: str | None) -> dict[str, Any]:
    """Collect the options that were given, keyed by record field."""
    data = {
        field_name: options[option]
        for option, field_name in ENTRY_OPTIONS.items()
        if options.get(option) is not None
    }
    if cover_file:
        data["cover_url"] = encode_image_file(cover_file)
    return data


def entry_options(required: bool):
    """Decorate a command with the record field options.

    Args:
        required: Whether artist and album must be given (new records)
    """

    def decorator(func):
        options = [
            click.option("--artist", required=required, help="Artist name"),
            click.option("--album", required=required, help="Album title"),
            click.option("--genre", help="Genres, separated by ';'"),
            click.option(
                "--collection", default="Main" if required else None, help="Collection name"
            ),
            click.option("--year", help="Release year ('-' for unknown)"),
            click.option("--country", help="Country of release"),
            click.option("--label", help="Labels, separated by ';'"),
            click.option("--cat-number", help="Catalog numbers, separated by ';'"),
            click.option(
                "--sleeve", default="VG+" if required else None, help="Sleeve condition grade"
            ),
            click.option(
                "--media", default="VG+" if required else None, help="Media condition grade"
            ),
            click.option(
                "--sound-quality",
                type=click.IntRange(0, 5),
                default=5 if required else None,
                help="Sound quality 1-5 (0 = unrated)",
            ),
            click.option(
                "--rating",
                type=click.IntRange(0, 10),
                default=0 if required else None,
                help="Rating 1-10 (0 = unrated)",
            ),
            click.option("--best-tracks", help="Best tracks, separated by ';'"),
            click.option("--comments", help="Free-form comments"),
            click.option("--discogs-link", help="Discogs release URL"),
            click.option(
                "--to-be-sold/--not-to-be-sold",
                default=False if required else None,
                help="Flag the record for sale",
            ),
            click.option("--cover-url", help="Cover image URL"),
            click.option(
                "--cover-file",
                type=click.Path(exists=True, dir_okay=False),
                help="Image file stored inline as the cover",
            ),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


@click.command(name="import", help="Import records from an .xlsx spreadsheet")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@pass_context
@handle_errors
def import_sheet(app: CliContext, file: str) -> None:
    """Import a collection spreadsheet, skipping records already stored.

    Args:
        app: CLI context
        file: Path to the .xlsx file
    """
    result = CollectionImporter(app.repository).import_file(file)

    if result.all_duplicates:
        click.secho(
            f"All {result.skipped_count} records in this file are already in your collection.",
            fg="yellow",
        )
        return

    click.secho(f"Successfully imported {result.inserted_count} records!", fg="green")
    if result.skipped_count:
        click.echo(f"Skipped {result.skipped_count} duplicates.")


@click.command(name="export", help="Export the collection to an .xlsx spreadsheet")
@click.argument("file", type=click.Path(dir_okay=False))
@pass_context
@handle_errors
def export(app: CliContext, file: str) -> None:
    """Write every record to a spreadsheet.

    Args:
        app: CLI context
        file: Output path
    """
    records = app.repository.get_all()
    path = export_workbook(records, file)
    click.secho(f"Exported {len(records)} records to {path}", fg="green")


@click.command(name="list", help="List records with filters and sorting")
@click.option("--search", "-s", default="", help="Match album, artist or label")
@click.option("--genre", help="Only records with this genre")
@click.option("--artist", help="Only records by this artist")
@click.option("--collection", help="Only records in this collection")
@click.option("--year", type=int, help="Only records released this year")
@click.option("--sleeve", help="Only records with this sleeve grade")
@click.option("--media", help="Only records with this media grade")
@click.option(
    "--to-be-sold/--not-to-be-sold",
    default=None,
    help="Only records flagged (or not flagged) for sale",
)
@click.option(
    "--sort",
    "sort_option",
    type=click.Choice(SORT_CHOICES),
    default=SortOption.ADDED_DESC.value,
    show_default=True,
    help="Ordering",
)
@pass_context
@handle_errors
def list_records(
    app: CliContext,
    search: str,
    genre: str | None,
    artist: str | None,
    collection: str | None,
    year: int | None,
    sleeve: str | None,
    media: str | None,
    to_be_sold: bool | None,
    sort_option: str,
) -> None:
    """List the collection through the query engine."""
    filters = FilterState(
        search=search,
        genre=genre,
        artist=artist,
        collection=collection,
        release_year=year,
        condition_sleeve=sleeve,
        condition_media=media,
        to_be_sold=to_be_sold,
    )
    records = apply_query(app.repository.get_all(), filters, sort_option)

    if not records:
        click.secho("No records match.", fg="yellow")
        return

    for record in records:
        click.echo(format_record(record))
    click.echo(f"\n{len(records)} records ({SortOption(sort_option).label})")


@click.command(name="show", help="Show every field of a record")
@click.argument("record_id", type=int)
@click.option(
    "--save-cover",
    type=click.Path(dir_okay=False),
    help="Write an inline cover image to this file",
)
@pass_context
@handle_errors
def show(app: CliContext, record_id: int, save_cover: str | None) -> None:
    """Print one record.

    Args:
        app: CLI context
        record_id: The record ID
        save_cover: Optional path for the inline cover image
    """
    record = app.repository.get_by_id(record_id)
    if record is None:
        raise ValidationError(f"Record {record_id} does not exist.")

    click.echo(format_record_details(record))

    if save_cover:
        if not is_data_url(record.cover_url):
            raise ValidationError("This record has no inline cover image to save.")
        try:
            mime_type, image_data = decode_data_url(record.cover_url)
        except ValueError as e:
            raise ValidationError("The stored cover image is not readable.") from e
        Path(save_cover).write_bytes(image_data)
        click.echo(f"Saved {mime_type} cover to {save_cover}")


@click.command(name="add", help="Add a record by hand")
@entry_options(required=True)
@pass_context
@handle_errors
def add(app: CliContext, cover_file: str | None, **options: Any) -> None:
    """Add a new record to the collection."""
    record = build_record(_entry_data(options, cover_file))

    if record.identity_key in app.repository.get_identity_keys():
        click.secho(f"Note: {record.artist} - {record.album} is already stored.", fg="yellow")

    record_id = app.repository.create(record)
    logger.info(f"Added record {record_id}")
    click.secho(f"Added record {record_id}: {record.artist} - {record.album}", fg="green")


@click.command(name="edit", help="Change fields of a record")
@click.argument("record_id", type=int)
@entry_options(required=False)
@pass_context
@handle_errors
def edit(app: CliContext, record_id: int, cover_file: str | None, **options: Any) -> None:
    """Update only the fields given on the command line."""
    data = normalize_fields(_entry_data(options, cover_file))
    if not data:
        click.secho("Nothing to change.", fg="yellow")
        return

    if not app.repository.update(record_id, data):
        raise ValidationError(f"Record {record_id} does not exist.")
    click.secho(f"Updated record {record_id} ({', '.join(sorted(data))}).", fg="green")


@click.command(name="delete", help="Delete a record")
@click.argument("record_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@pass_context
@handle_errors
def delete(app: CliContext, record_id: int, yes: bool) -> None:
    """Delete a record. Deleting a missing record is not an error.

    Args:
        app: CLI context
        record_id: The record ID
        yes: Skip confirmation prompt if set
    """
    record = app.repository.get_by_id(record_id)
    if record is None:
        click.secho(f"Record {record_id} does not exist, nothing to delete.", fg="yellow")
        return

    if not yes and not click.confirm(
        f"Delete {record.artist} - {record.album}?", default=False
    ):
        click.echo("Delete cancelled.")
        return

    app.repository.delete(record_id)
    click.secho(f"Deleted record {record_id}.", fg="green")


@click.command(name="options", help="Show the values the list filters can take")
@pass_context
@handle_errors
def options(app: CliContext) -> None:
    """Print the distinct filter values present in the collection."""
    found = collect_filter_options(app.repository.get_all())
    rows = [
        ("Genres", found.genres),
        ("Artists", found.artists),
        ("Collections", found.collections),
        ("Years", found.years),
        ("Sleeve grades", found.sleeve_conditions),
        ("Media grades", found.media_conditions),
    ]
    for name, values in rows:
        click.secho(f"{name}:", bold=True)
        click.echo("  " + (", ".join(str(value) for value in values) or "-"))


@click.command(name="stats", help="Show collection statistics")
@pass_context
@handle_errors
def stats(app: CliContext) -> None:
    """Print counts per decade, top genres and artists, and condition health."""
    result = collection_stats(app.repository.get_all())
    if result.record_count == 0:
        click.secho("The collection is empty.", fg="yellow")
        return

    click.secho(f"Records: {result.record_count}", bold=True)
    click.echo(f"To be sold: {result.to_be_sold}")

    click.secho("\nBy decade:", bold=True)
    for decade, count in result.decades:
        click.echo(f"  {decade:<8}{count}")

    click.secho("\nTop genres:", bold=True)
    for genre, count in result.top_genres:
        click.echo(f"  {genre:<24}{count}")

    click.secho("\nTop artists:", bold=True)
    for artist, count in result.top_artists:
        click.echo(f"  {artist:<24}{count}")

    health = result.health
    if health.total_graded:
        click.secho("\nMedia condition:", bold=True)
        click.echo(f"  Mint / Near Mint: {health.mint_or_near} of {health.total_graded}")
        click.echo(f"  Very Good (+):    {health.good_plus} of {health.total_graded}")
