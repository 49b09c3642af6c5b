# ABOUTME: The JSON interchange document holding every book, session, and note.
# ABOUTME: Exports the library to text and imports it back, remapping book IDs as it goes.

import json
import logging
import sqlite3
from dataclasses import MISSING, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, get_args

from readtrack.db.catalog import LibraryCatalog
from readtrack.db.mapping import BookRecord, NoteRecord, SessionRecord

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "2.1"


class DocumentError(Exception):
    """Raised when an interchange document cannot be parsed."""


@dataclass
class LibraryDocument:
    """A parsed interchange document. Record ids are the exporting database's ids."""

    version: str
    export_date: str | None
    books: list[BookRecord] = field(default_factory=list)
    sessions: list[SessionRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of importing a document.

    book_id_map maps the document's book ids to the ids assigned on insert.
    It is only meaningful when success is True.
    """

    success: bool = False
    book_id_map: dict[int, int] = field(default_factory=dict)
    books: int = 0
    sessions: int = 0
    notes: int = 0
    skipped: int = 0
    error: str | None = None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _record_to_dict(record: Any) -> dict[str, Any]:
    return {_camel(f.name): getattr(record, f.name) for f in fields(record)}


def _nullable(annotation: Any) -> bool:
    return type(None) in get_args(annotation)


def _record_from_dict(record_type: type, data: Any, label: str) -> Any:
    """Build a record from a camelCase dict.

    Unknown keys are ignored. A null value for a field that cannot hold
    None falls back to its default, matching the NOT NULL column defaults;
    nullable fields keep the null.
    """
    if not isinstance(data, dict):
        raise DocumentError(f"{label} entry is not an object: {data!r}")

    kwargs = {}
    for f in fields(record_type):
        key = _camel(f.name)
        if key not in data:
            continue
        value = data[key]
        if value is None and f.default is not MISSING and not _nullable(f.type):
            continue
        kwargs[f.name] = value

    try:
        return record_type(**kwargs)
    except TypeError as exc:
        raise DocumentError(f"{label} entry is missing a required field: {data!r}") from exc


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DocumentError(f"{what} must be an integer, got {value!r}")
    return value


def _optional_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DocumentError(f"Document {key} is not a list")
    return value


def export_all_data(catalog: LibraryCatalog) -> str:
    """Serialize every book, session, and note to the interchange document."""
    payload = {
        "version": DOCUMENT_VERSION,
        "exportDate": datetime.now(timezone.utc).isoformat(),
        "books": [_record_to_dict(book) for book in catalog.list_books()],
        "sessions": [_record_to_dict(session) for session in catalog.list_sessions()],
        "notes": [_record_to_dict(note) for note in catalog.list_notes()],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def parse_document(text: str) -> LibraryDocument:
    """Parse and validate an interchange document without touching any database.

    Accepts both the current format and legacy documents that carry no notes.

    Raises:
        DocumentError: If the text is not JSON, has no books list, has a
            sessions or notes value that is not a list, or holds malformed rows.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentError(f"Document is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise DocumentError("Document root is not an object")

    raw_books = data.get("books")
    if not isinstance(raw_books, list):
        raise DocumentError("Document has no books list")

    books = [_record_from_dict(BookRecord, raw, "Book") for raw in raw_books]
    seen: set[int] = set()
    for book in books:
        book_id = _require_int(book.id, "Book id")
        if book_id in seen:
            raise DocumentError(f"Duplicate book id {book_id}")
        seen.add(book_id)

    sessions = [
        _record_from_dict(SessionRecord, raw, "Session")
        for raw in _optional_list(data, "sessions")
    ]
    notes = [_record_from_dict(NoteRecord, raw, "Note") for raw in _optional_list(data, "notes")]
    for child in [*sessions, *notes]:
        _require_int(child.book_id, "bookId")

    return LibraryDocument(
        version=str(data.get("version", "")),
        export_date=data.get("exportDate"),
        books=books,
        sessions=sessions,
        notes=notes,
    )


def import_document(catalog: LibraryCatalog, document: LibraryDocument) -> ImportResult:
    """Insert a parsed document's rows and build the old-to-new book id map.

    Books are inserted first, then sessions and notes with their book_id
    rewritten through the map. Children whose book is not in the document
    are skipped and counted. Runs inside a transaction (a savepoint when the
    caller already holds one), so a database error leaves no rows behind.

    Args:
        catalog: Destination library.
        document: A document returned by parse_document().

    Returns:
        ImportResult; on failure success is False and book_id_map is empty.
    """
    result = ImportResult()
    book_id_map: dict[int, int] = {}

    try:
        with catalog.transaction():
            for book in document.books:
                new_id = catalog.add_book(replace(book, id=None))
                book_id_map[book.id] = new_id  # type: ignore[index]
                result.books += 1

            for session in document.sessions:
                new_book_id = book_id_map.get(session.book_id)
                if new_book_id is None:
                    logger.warning(
                        "Skipping session %s: book %s is not in the document",
                        session.id,
                        session.book_id,
                    )
                    result.skipped += 1
                    continue
                catalog.add_session(replace(session, id=None, book_id=new_book_id))
                result.sessions += 1

            for note in document.notes:
                new_book_id = book_id_map.get(note.book_id)
                if new_book_id is None:
                    logger.warning(
                        "Skipping note %s: book %s is not in the document",
                        note.id,
                        note.book_id,
                    )
                    result.skipped += 1
                    continue
                catalog.add_note(replace(note, id=None, book_id=new_book_id))
                result.notes += 1
    except sqlite3.Error as exc:
        logger.error("Import failed: %s", exc)
        return ImportResult(success=False, error=str(exc))

    result.success = True
    result.book_id_map = book_id_map
    logger.info(
        "Imported %d book(s), %d session(s), %d note(s)",
        result.books,
        result.sessions,
        result.notes,
    )
    return result


def import_data(catalog: LibraryCatalog, document: str) -> ImportResult:
    """Parse a document and import it into the catalog."""
    try:
        parsed = parse_document(document)
    except DocumentError as exc:
        logger.error("Import failed: %s", exc)
        return ImportResult(success=False, error=str(exc))
    return import_document(catalog, parsed)
