# ABOUTME: CRUD operations for books, reading sessions, and notes in the library database.
# ABOUTME: Provides a nestable transaction so multi-step writes commit or roll back together.

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from readtrack.db.mapping import (
    BookRecord,
    NoteRecord,
    SessionRecord,
    column_names,
    record_to_row,
    row_to_book,
    row_to_note,
    row_to_session,
)

_BOOK_COLUMNS = frozenset(column_names(BookRecord))


class LibraryCatalog:
    """Wraps a sqlite3 connection and provides typed CRUD for the library tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._depth = 0

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes so they commit together or not at all.

        The outermost call opens a real transaction; nested calls use
        savepoints, so an inner failure can be rolled back on its own.
        Individual CRUD methods do not commit while a transaction is open.
        """
        if self._depth == 0:
            if self._conn.in_transaction:
                self._conn.commit()
            self._conn.execute("BEGIN")
            savepoint = None
        else:
            savepoint = f"readtrack_sp_{self._depth}"
            self._conn.execute(f"SAVEPOINT {savepoint}")

        self._depth += 1
        try:
            yield
        except Exception:
            self._depth -= 1
            if savepoint is None:
                self._conn.rollback()
            else:
                self._conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")
            raise

        self._depth -= 1
        if savepoint is None:
            self._conn.commit()
        else:
            self._conn.execute(f"RELEASE SAVEPOINT {savepoint}")

    def _commit(self) -> None:
        if self._depth == 0:
            self._conn.commit()

    def _insert(self, table: str, row: dict[str, Any]) -> int:
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        cursor = self._conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            list(row.values()),
        )
        self._commit()
        return cursor.lastrowid  # type: ignore[return-value]

    # --- Books ---

    def add_book(self, book: BookRecord) -> int:
        """Insert a book and return its new row ID.

        Any id already set on the record is ignored; SQLite assigns a new one.
        """
        return self._insert("books", record_to_row(book))

    def get_book(self, book_id: int) -> BookRecord | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def list_books(self) -> list[BookRecord]:
        """Return every book, ordered by row ID."""
        cursor = self._conn.execute("SELECT * FROM books ORDER BY id")
        return [row_to_book(row) for row in cursor.fetchall()]

    def update_book(self, book_id: int, **fields: Any) -> None:
        """Update one or more columns on a book and bump updated_at.

        Raises:
            ValueError: If a field is not a books column or the book_id does not exist.
        """
        if not fields:
            return

        unknown = set(fields) - _BOOK_COLUMNS
        if unknown:
            raise ValueError(f"Unknown book field(s): {', '.join(sorted(unknown))}")

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        if "updated_at" not in fields:
            set_clause += ", updated_at = strftime('%Y-%m-%dT%H:%M:%S', 'now')"
        values = [*list(fields.values()), book_id]

        cursor = self._conn.execute(
            f"UPDATE books SET {set_clause} WHERE id = ?",
            values,
        )
        self._commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def set_cover_url(self, book_id: int, cover_url: str | None) -> None:
        """Point a book's cover at a new location without touching updated_at.

        Raises:
            ValueError: If the book_id does not exist.
        """
        cursor = self._conn.execute(
            "UPDATE books SET cover_url = ? WHERE id = ?",
            (cover_url, book_id),
        )
        self._commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def delete_book(self, book_id: int) -> None:
        """Delete a book; its sessions and notes cascade.

        Raises:
            ValueError: If the book_id does not exist.
        """
        cursor = self._conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        self._commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    # --- Sessions ---

    def add_session(self, session: SessionRecord) -> int:
        """Insert a reading session and return its new row ID."""
        return self._insert("sessions", record_to_row(session))

    def list_sessions(self, book_id: int | None = None) -> list[SessionRecord]:
        """Return all sessions, or only those for one book, ordered by row ID."""
        if book_id is None:
            cursor = self._conn.execute("SELECT * FROM sessions ORDER BY id")
        else:
            cursor = self._conn.execute(
                "SELECT * FROM sessions WHERE book_id = ? ORDER BY id", (book_id,)
            )
        return [row_to_session(row) for row in cursor.fetchall()]

    def delete_session(self, session_id: int) -> None:
        """Delete a reading session.

        Raises:
            ValueError: If the session_id does not exist.
        """
        cursor = self._conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        self._commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Session with id {session_id} not found")

    # --- Notes ---

    def add_note(self, note: NoteRecord) -> int:
        """Insert a note and return its new row ID."""
        return self._insert("reading_notes", record_to_row(note))

    def list_notes(self, book_id: int | None = None) -> list[NoteRecord]:
        """Return all notes, or only those for one book, ordered by row ID."""
        if book_id is None:
            cursor = self._conn.execute("SELECT * FROM reading_notes ORDER BY id")
        else:
            cursor = self._conn.execute(
                "SELECT * FROM reading_notes WHERE book_id = ? ORDER BY id", (book_id,)
            )
        return [row_to_note(row) for row in cursor.fetchall()]

    def delete_note(self, note_id: int) -> None:
        """Delete a note.

        Raises:
            ValueError: If the note_id does not exist.
        """
        cursor = self._conn.execute("DELETE FROM reading_notes WHERE id = ?", (note_id,))
        self._commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Note with id {note_id} not found")

    # --- Whole library ---

    def clear_all(self) -> None:
        """Delete every note, session, and book, children before parents."""
        self._conn.execute("DELETE FROM reading_notes")
        self._conn.execute("DELETE FROM sessions")
        self._conn.execute("DELETE FROM books")
        self._commit()

    def counts(self) -> dict[str, int]:
        """Row counts for the books, sessions, and notes tables."""
        return {
            "books": self._count("books"),
            "sessions": self._count("sessions"),
            "notes": self._count("reading_notes"),
        }

    def _count(self, table: str) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
