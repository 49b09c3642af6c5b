# ABOUTME: Unit tests for record dataclasses and row conversion helpers.
# ABOUTME: Verifies column lists, INSERT rows, and sqlite3.Row round-trips.

from readtrack.db.catalog import LibraryCatalog
from readtrack.db.mapping import (
    BookRecord,
    NoteRecord,
    SessionRecord,
    column_names,
    record_to_row,
    row_to_book,
)


class TestColumnNames:
    """Tests for column_names()."""

    def test_excludes_primary_key(self) -> None:
        assert "id" not in column_names(BookRecord)
        assert "id" not in column_names(SessionRecord)
        assert column_names(NoteRecord) == ["book_id", "note", "page_number", "created_at"]


class TestRecordToRow:
    """Tests for record_to_row()."""

    def test_drops_id(self) -> None:
        row = record_to_row(BookRecord(title="Dune", id=9))
        assert "id" not in row
        assert row["title"] == "Dune"

    def test_drops_unset_timestamps(self) -> None:
        """None timestamps are left out so the column default applies."""
        row = record_to_row(BookRecord(title="Dune"))
        assert "created_at" not in row
        assert "updated_at" not in row

    def test_keeps_set_timestamps(self) -> None:
        row = record_to_row(NoteRecord(book_id=1, note="x", created_at="2024-01-01T00:00:00"))
        assert row["created_at"] == "2024-01-01T00:00:00"

    def test_keeps_other_none_values(self) -> None:
        """Nullable non-timestamp columns are written as NULL."""
        row = record_to_row(BookRecord(title="Dune"))
        assert row["author"] is None
        assert row["isbn"] is None


class TestRowToBook:
    """Tests for row_to_book() against a real sqlite3.Row."""

    def test_round_trip(self, catalog: LibraryCatalog) -> None:
        book_id = catalog.add_book(
            BookRecord(title="Berserk", tracking_type="chapters", total_chapters=364)
        )
        row = catalog.connection.execute(
            "SELECT * FROM books WHERE id = ?", (book_id,)
        ).fetchone()

        book = row_to_book(row)

        assert book.id == book_id
        assert book.tracking_type == "chapters"
        assert book.total_chapters == 364
        assert book.format == "Physical"
