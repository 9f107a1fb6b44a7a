"""CLI entry point for temporary storage maintenance commands."""

import sys
from pathlib import Path

import click

from tempstore.config import ConfigurationError, get_settings
from tempstore.services.leak_sweeper import sweep_leaked_directories
from tempstore.utils.base32 import new_identifier


@click.group()
def cli() -> None:
    """tempstore CLI - Temporary storage maintenance commands."""
    pass


@cli.command()
@click.option("--count", default=1, show_default=True, type=click.IntRange(min=1),
              help="Number of identifiers to print")
def token(count: int) -> None:
    """Print fresh 26-character filename-safe identifiers.

    Examples:
        tempstore-cli token              Print one identifier
        tempstore-cli token --count 5    Print five identifiers
    """
    for _ in range(count):
        click.echo(new_identifier())


@cli.command()
@click.option(
    "--parent",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to scan (defaults to TEMPSTORE_PARENT_DIR or the system temp dir)",
)
@click.option(
    "--prefix",
    default=None,
    help="Directory name prefix (defaults to TEMPSTORE_DIRECTORY_PREFIX)",
)
@click.option("--dry-run", is_flag=True, help="List leaked directories without removing them")
def sweep(parent: Path | None, prefix: str | None, dry_run: bool) -> None:
    """Remove temporary directories left behind by processes that no longer run.

    Only directories named <prefix><token>.<pid> are considered, and only when
    no process with that pid exists.

    Examples:
        tempstore-cli sweep --dry-run             Show what would be removed
        tempstore-cli sweep --parent /var/tmp     Clean up under /var/tmp
    """
    settings = get_settings()
    try:
        settings.validate_config()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    scan_dir = parent if parent is not None else settings.parent_dir
    if not scan_dir.is_dir():
        click.echo(f"Error: {scan_dir} is not a directory", err=True)
        sys.exit(1)

    result = sweep_leaked_directories(
        scan_dir,
        prefix if prefix is not None else settings.TEMPSTORE_DIRECTORY_PREFIX,
        dry_run=dry_run,
    )

    if not result.removed and not result.failed:
        click.echo(f"No leaked directories found in {scan_dir}")
        return

    verb = "Would remove" if dry_run else "Removed"
    for leaked in result.removed:
        click.echo(f"{verb} {leaked.path} (pid {leaked.pid})")
    for leaked, error in result.failed:
        click.echo(f"Error removing {leaked.path}: {error}", err=True)

    if result.failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
