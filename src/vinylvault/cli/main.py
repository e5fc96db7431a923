"""Main CLI entry point for Vinyl Vault."""

from dataclasses import replace
from pathlib import Path

import click

from vinylvault import __version__
from vinylvault.cli.artwork import cover, scan
from vinylvault.cli.backup import backup, restore
from vinylvault.cli.collection import (
    add,
    delete,
    edit,
    export,
    import_sheet,
    list_records,
    options,
    show,
    stats,
)
from vinylvault.cli.context import CliContext
from vinylvault.cli.database import database
from vinylvault.config.config_manager import load_settings
from vinylvault.core.utils.logging import configure_logging
from vinylvault.core.utils.path_helper import get_app_log_path


@click.group()
@click.version_option(__version__, prog_name="vinylvault")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Database file (default: VINYLVAULT_DB_PATH or the app data directory)",
)
@click.option("--log-file/--no-log-file", default=False, help="Also write a debug log file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, db_path: Path | None, log_file: bool) -> None:
    """Vinyl Vault - a catalog for your record collection."""
    settings = load_settings()
    if db_path is not None:
        settings = replace(settings, db_path=db_path)

    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_file=get_app_log_path() / "vinylvault.log" if log_file else None,
    )

    app = CliContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)


# Add subcommands
cli.add_command(database)
cli.add_command(import_sheet)
cli.add_command(export)
cli.add_command(list_records)
cli.add_command(show)
cli.add_command(add)
cli.add_command(edit)
cli.add_command(delete)
cli.add_command(options)
cli.add_command(stats)
cli.add_command(backup)
cli.add_command(restore)
cli.add_command(scan)
cli.add_command(cover)


@cli.command(help="Print shell completion instructions")
@click.argument(
    "shell",
    type=click.Choice(["bash", "zsh", "fish"]),
    default="bash",
    required=False,
)
def completion(shell: str) -> None:
    """Print shell completion setup instructions for the specified shell.

    Args:
        shell: The shell type (bash, zsh, or fish)
    """
    shell_instructions = {
        "bash": """
# Add this to ~/.bashrc:
eval "$(_VINYLVAULT_COMPLETE=bash_source vinylvault)"
""",
        "zsh": """
# Add this to ~/.zshrc:
eval "$(_VINYLVAULT_COMPLETE=zsh_source vinylvault)"
""",
        "fish": """
# Add this to ~/.config/fish/config.fish:
_VINYLVAULT_COMPLETE=fish_source vinylvault | source
""",
    }

    click.echo(f"Shell completion setup for {shell}:\n")
    click.echo(shell_instructions[shell])
    click.echo("After adding the above, restart your shell or source the configuration file.")


if __name__ == "__main__":
    cli()
