# ABOUTME: CLI package for Readtrack, built on Click.
# ABOUTME: Defines the root command group and registers subcommands.

import logging

import click

from readtrack.cli.commands import add_cmd, backup_cmd, ls_cmd


@click.group()
@click.version_option(package_name="readtrack")
@click.option("-v", "--verbose", count=True, help="Show log output (-vv for debug).")
def cli(verbose: int) -> None:
    """Readtrack - a reading tracker with full-library backups."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )


cli.add_command(add_cmd.add)
cli.add_command(ls_cmd.ls)
cli.add_command(backup_cmd.backup)
