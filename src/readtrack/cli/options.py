# ABOUTME: Shared Click options for Readtrack CLI commands.
# ABOUTME: Provides reusable decorators for the --home and --keep flags.

from pathlib import Path

import click

from readtrack.config import DEFAULT_HOME, MAX_BACKUPS

home_option = click.option(
    "--home",
    "home",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="READTRACK_HOME",
    default=None,
    help=f"Readtrack data directory (default: {DEFAULT_HOME}, env: READTRACK_HOME)",
)

keep_option = click.option(
    "--keep",
    type=click.IntRange(min=1),
    default=MAX_BACKUPS,
    show_default=True,
    help="Number of most recent backups to keep after each backup.",
)
