# ABOUTME: Dataclasses for book, session, and note rows plus SQLite row conversion.
# ABOUTME: Keeps column lists in one place so inserts and reads stay in sync.

from dataclasses import dataclass, fields
from typing import Any


@dataclass
class BookRecord:
    """A book in the library. id is None until the row is inserted."""

    title: str
    author: str | None = None
    cover_url: str | None = None
    cover_path: str | None = None
    status: str = "Want to Read"
    rating: float = 0
    total_pages: int = 0
    current_page: int = 0
    book_url: str | None = None
    total_chapters: int | None = None
    current_chapter: int = 0
    tracking_type: str = "pages"
    format: str = "Physical"
    isbn: str | None = None
    publisher: str | None = None
    publication_year: str | None = None
    language: str = "English"
    original_language: str | None = None
    tags: str | None = None
    series_name: str | None = None
    series_order: float | None = None
    volume_number: int | None = None
    total_volumes: int | None = None
    collection_type: str | None = None
    series_cover_url: str | None = None
    total_in_series: int | None = None
    read_count: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    id: int | None = None


@dataclass
class SessionRecord:
    """A reading interval on one book."""

    book_id: int
    book_title: str
    start_time: str
    end_time: str | None = None
    start_page: int | None = 0
    end_page: int | None = None
    start_chapter: int | None = 0
    end_chapter: int | None = None
    duration: int | None = None
    reading_number: int = 1
    id: int | None = None


@dataclass
class NoteRecord:
    """A free-text note on one book, optionally tied to a page."""

    book_id: int
    note: str
    page_number: int | None = None
    created_at: str | None = None
    id: int | None = None


def column_names(record_type: type) -> list[str]:
    """Return the table columns for a record dataclass, excluding the primary key."""
    return [f.name for f in fields(record_type) if f.name != "id"]


def record_to_row(record: BookRecord | SessionRecord | NoteRecord) -> dict[str, Any]:
    """Convert a record to a dict suitable for INSERT.

    The primary key is never included. Timestamp columns left as None are
    dropped so the column default applies.
    """
    row = {name: getattr(record, name) for name in column_names(type(record))}
    for stamp in ("created_at", "updated_at"):
        if stamp in row and row[stamp] is None:
            del row[stamp]
    return row


def row_to_book(row: Any) -> BookRecord:
    """Convert a books row (dict-like) to a BookRecord."""
    return BookRecord(**{f.name: row[f.name] for f in fields(BookRecord)})


def row_to_session(row: Any) -> SessionRecord:
    """Convert a sessions row to a SessionRecord."""
    return SessionRecord(**{f.name: row[f.name] for f in fields(SessionRecord)})


def row_to_note(row: Any) -> NoteRecord:
    """Convert a reading_notes row to a NoteRecord."""
    return NoteRecord(**{f.name: row[f.name] for f in fields(NoteRecord)})
