"""Artwork CLI commands."""

import click

from vinylvault.cli.context import CliContext, handle_errors, pass_context
from vinylvault.core.collection.artwork_scanner import ArtworkScanner
from vinylvault.core.data.types import VinylRecord


def _scanner(app: CliContext) -> ArtworkScanner:
    return ArtworkScanner(app.repository, app.lookup_client(), delay=app.settings.scan_delay)


@click.command(name="scan", help="Find covers for records that have none")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@pass_context
@handle_errors
def scan(app: CliContext, yes: bool) -> None:
    """Scan every record without a cover against the artwork service.

    Args:
        app: CLI context
        yes: Skip confirmation prompt if set
    """
    scanner = _scanner(app)
    pending = scanner.pending()
    if not pending:
        click.secho("All records already have covers!", fg="green")
        return

    seconds = int(len(pending) * scanner.delay)
    if not yes and not click.confirm(
        f"Found {len(pending)} records without covers. Scan for them now?\n"
        f"This may take around {seconds} seconds.",
        default=True,
    ):
        click.echo("Scan cancelled.")
        return

    def progress(position: int, total: int, record: VinylRecord) -> None:
        click.echo(f"Scanning {position}/{total}... {record.artist} - {record.album}")

    report = scanner.scan(progress)

    click.secho(
        f"Scan complete! Found covers for {report.enriched} of {report.total} records.",
        fg="green",
    )
    if report.failed:
        click.secho(f"{report.failed} lookups failed; run the scan again later.", fg="yellow")


@click.command(name="cover", help="Look up the cover of one record")
@click.argument("record_id", type=int)
@pass_context
@handle_errors
def cover(app: CliContext, record_id: int) -> None:
    """Fetch a cover for a single record right away.

    Args:
        app: CLI context
        record_id: The record ID
    """
    url = _scanner(app).fetch_cover(record_id)
    if url is None:
        click.secho("Could not find a cover for this album.", fg="yellow")
        return
    click.secho(f"Cover stored: {url}", fg="green")
