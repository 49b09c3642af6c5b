# ABOUTME: The `readtrack ls` command for listing books in the library.
# ABOUTME: Displays a Rich table of books with progress, session, and note counts.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from readtrack.backup.snapshot import local_asset_path
from readtrack.cli.options import home_option
from readtrack.config import LibraryPaths
from readtrack.db.catalog import LibraryCatalog
from readtrack.db.connection import open_library
from readtrack.db.mapping import BookRecord

console = Console()


def _cover_label(book: BookRecord, assets_dir: Path) -> str:
    if not book.cover_url:
        return ""
    if local_asset_path(book.cover_url, assets_dir) is not None:
        return "local"
    return "remote"


@click.command("ls")
@home_option
def ls(home: Path | None) -> None:
    """List all books in the library."""
    paths = LibraryPaths.from_home(home)
    conn = open_library(paths.db_path)
    try:
        catalog = LibraryCatalog(conn)
        books = catalog.list_books()
        sessions = catalog.list_sessions()
        notes = catalog.list_notes()
    finally:
        conn.close()

    if not books:
        console.print("[yellow]No books in the library.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Status")
    table.add_column("Progress")
    table.add_column("Sessions", justify="right")
    table.add_column("Notes", justify="right")
    table.add_column("Cover", width=6)

    for book in books:
        if book.tracking_type == "chapters" and book.total_chapters:
            progress = f"ch {book.current_chapter}/{book.total_chapters}"
        elif book.total_pages:
            progress = f"p {book.current_page}/{book.total_pages}"
        else:
            progress = ""

        table.add_row(
            str(book.id),
            book.title,
            book.author or "[dim]unknown[/dim]",
            book.status,
            progress,
            str(sum(1 for s in sessions if s.book_id == book.id)),
            str(sum(1 for n in notes if n.book_id == book.id)),
            _cover_label(book, paths.assets_dir),
        )

    console.print(table)
    console.print(f"\n[dim]{len(books)} book(s)[/dim]")
