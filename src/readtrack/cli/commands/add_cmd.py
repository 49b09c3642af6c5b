# ABOUTME: The `readtrack add` command for adding EPUB files to the library.
# ABOUTME: Extracts book details and copies covers into the local asset store.

from pathlib import Path

import click
from rich.console import Console

from readtrack.cli.options import home_option
from readtrack.config import LibraryPaths
from readtrack.core.importer import add_epubs
from readtrack.db.catalog import LibraryCatalog
from readtrack.db.connection import open_library

console = Console()


def _find_epubs(path: Path) -> list[Path]:
    """Find EPUB files at the given path (single file or directory)."""
    if path.is_file():
        return [path]
    return sorted(path.rglob("*.epub"))


@click.command("add")
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@home_option
def add(sources: tuple[Path, ...], home: Path | None) -> None:
    """Add EPUB files (or directories of them) to the library."""
    epub_files = [epub for source in sources for epub in _find_epubs(source)]
    if not epub_files:
        console.print("[yellow]No EPUB files found.[/yellow]")
        return

    paths = LibraryPaths.from_home(home)
    conn = open_library(paths.db_path)
    try:
        result = add_epubs(epub_files, LibraryCatalog(conn), paths.assets_dir)
    finally:
        conn.close()

    parts = [f"[green]{result.added} added[/green]"]
    if result.covers:
        parts.append(f"{result.covers} cover(s) stored")
    if result.errors:
        parts.append(f"[red]{result.errors} error(s)[/red]")
    console.print(", ".join(parts))

    for path, msg in result.error_details:
        console.print(f"  [dim]{path.name}:[/dim] {msg}")
