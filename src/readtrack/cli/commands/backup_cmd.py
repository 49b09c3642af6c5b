# ABOUTME: The `readtrack backup` command group for creating, listing, and restoring backups.
# ABOUTME: Wraps BackupManager with Rich output and exits non-zero on failure.

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from readtrack.backup.manager import BackupManager, BackupNotFoundError
from readtrack.backup.retention import prune_archives
from readtrack.cli.options import home_option, keep_option
from readtrack.config import MAX_BACKUPS, BackupPolicy, LibraryPaths
from readtrack.db.catalog import LibraryCatalog
from readtrack.db.connection import open_library

console = Console()


@contextmanager
def _open_manager(home: Path | None, keep: int = MAX_BACKUPS) -> Iterator[BackupManager]:
    paths = LibraryPaths.from_home(home)
    paths.ensure_dirs()
    conn = open_library(paths.db_path)
    try:
        yield BackupManager(LibraryCatalog(conn), paths, policy=BackupPolicy(keep=keep))
    finally:
        conn.close()


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


@click.group("backup")
def backup() -> None:
    """Create, list, restore, and prune library backups."""


@backup.command("create")
@click.option(
    "--data-only",
    is_flag=True,
    default=False,
    help="Write a JSON export without cover images.",
)
@home_option
@keep_option
def backup_create(data_only: bool, home: Path | None, keep: int) -> None:
    """Create a manual backup of the whole library."""
    with _open_manager(home, keep) as manager:
        result = manager.create_backup(manual=True, data_only=data_only)

    if not result.success:
        console.print(f"[red]Backup failed:[/red] {result.error}")
        raise SystemExit(1)

    console.print(f"[green]Backup created:[/green] {result.path.name}")  # type: ignore[union-attr]
    if not data_only:
        console.print(f"{result.image_count} image(s) included.")
    if result.pruned:
        console.print(f"[dim]Removed {len(result.pruned)} old backup(s).[/dim]")


@backup.command("auto")
@home_option
@keep_option
def backup_auto(home: Path | None, keep: int) -> None:
    """Create an automatic backup if the last one is more than a day old."""
    with _open_manager(home, keep) as manager:
        if not manager.scheduler.is_due():
            console.print("[dim]Automatic backup not due.[/dim]")
            return
        made = manager.perform_auto_backup()

    if not made:
        console.print("[red]Automatic backup failed.[/red]")
        raise SystemExit(1)
    console.print("[green]Automatic backup created.[/green]")


@backup.command("list")
@home_option
def backup_list(home: Path | None) -> None:
    """List backups in the archive store, newest first."""
    with _open_manager(home) as manager:
        backups = manager.list_backups()

    if not backups:
        console.print("[yellow]No backups yet.[/yellow]")
        return

    table = Table()
    table.add_column("Name", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Format")

    for info in backups:
        table.add_row(info.filename, _format_size(info.size), info.format_label)

    console.print(table)
    console.print(f"\n[dim]{len(backups)} backup(s)[/dim]")


@backup.command("restore")
@click.argument("name")
@click.option("-y", "--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@home_option
def backup_restore(name: str, yes: bool, home: Path | None) -> None:
    """Replace the library with the contents of a backup.

    NAME is a backup filename from `readtrack backup list` or a path to an
    archive or JSON export anywhere on disk.
    """
    with _open_manager(home) as manager:
        try:
            path = manager.resolve(name)
        except BackupNotFoundError as exc:
            console.print(f"[red]{exc}[/red]")
            raise SystemExit(1) from exc

        if not yes and not click.confirm(
            f"Replace the current library with {path.name}?", default=False
        ):
            console.print("[yellow]Restore cancelled.[/yellow]")
            return

        result = manager.restore_backup(path)

    if result.invalid_archive:
        console.print(f"[red]Invalid backup:[/red] {result.error}")
        console.print("[dim]The library was not changed.[/dim]")
        raise SystemExit(1)
    if not result.success:
        console.print(f"[red]Restore failed:[/red] {result.error}")
        raise SystemExit(1)

    console.print(f"[green]Restored {result.books} book(s).[/green]")
    console.print(f"{result.relinked_assets} cover image(s) restored.")


@backup.command("delete")
@click.argument("name")
@home_option
def backup_delete(name: str, home: Path | None) -> None:
    """Delete one backup from the archive store."""
    with _open_manager(home) as manager:
        try:
            path = manager.delete_backup(name)
        except BackupNotFoundError as exc:
            console.print(f"[red]{exc}[/red]")
            raise SystemExit(1) from exc
        except OSError as exc:
            console.print(f"[red]Could not delete {name}:[/red] {exc}")
            raise SystemExit(1) from exc

    console.print(f"Deleted [bold]{path.name}[/bold].")


@backup.command("prune")
@home_option
@keep_option
def backup_prune(home: Path | None, keep: int) -> None:
    """Delete all but the most recent backups."""
    paths = LibraryPaths.from_home(home)
    deleted = prune_archives(paths.archives_dir, keep)
    console.print(f"Removed {len(deleted)} old backup(s).")


@backup.command("stats")
@home_option
def backup_stats(home: Path | None) -> None:
    """Summarize the archive store and the automatic backup schedule."""
    with _open_manager(home) as manager:
        stats = manager.stats()

    console.print(f"Backups: [bold]{stats.total_backups}[/bold] ({_format_size(stats.total_size)})")
    console.print(f"With images: {stats.with_images}")
    if stats.newest is not None:
        console.print(f"Newest: {stats.newest.filename}")
    if stats.oldest is not None:
        console.print(f"Oldest: {stats.oldest.filename}")
    if stats.last_backup_time is None:
        console.print("Last automatic backup: [yellow]never[/yellow]")
    else:
        console.print(
            f"Last automatic backup: {stats.last_backup_time:%Y-%m-%d %H:%M} UTC "
            f"({stats.days_since_backup} day(s) ago)"
        )
