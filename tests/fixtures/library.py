# ABOUTME: Shared test data: a seeded reading library and fakes for clock and settings.
# ABOUTME: The seeded library has a local cover, a remote cover, and a book without one.

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from readtrack.db.catalog import LibraryCatalog
from readtrack.db.mapping import BookRecord, NoteRecord, SessionRecord

LOCAL_COVER_BYTES = b"\x89PNG\r\n\x1a\nlocal-cover"
REMOTE_COVER_URL = "https://covers.example.com/b/id/240727-L.jpg"


@dataclass
class SeededLibrary:
    """IDs of the rows seed_library() inserted."""

    local_id: int
    remote_id: int
    plain_id: int
    cover_path: Path


def seed_library(catalog: LibraryCatalog, assets_dir: Path) -> SeededLibrary:
    """Insert 3 books, 5 sessions, and 2 notes.

    Padding books are inserted and deleted first so the surviving ids are
    not 1, 2, 3 and a re-keying import cannot match them by accident.
    """
    assets_dir.mkdir(parents=True, exist_ok=True)
    cover_path = assets_dir / "cover_1700000000.png"
    cover_path.write_bytes(LOCAL_COVER_BYTES)

    for _ in range(4):
        catalog.delete_book(catalog.add_book(BookRecord(title="padding")))

    local_id = catalog.add_book(
        BookRecord(
            title="The Name of the Rose",
            author="Umberto Eco",
            cover_url=str(cover_path),
            status="Reading",
            rating=4.5,
            total_pages=512,
            current_page=140,
            isbn="9780156001311",
            series_name="Standalone",
            series_order=1.0,
            created_at="2024-01-05T10:00:00",
            updated_at="2024-02-01T09:30:00",
        )
    )
    remote_id = catalog.add_book(
        BookRecord(
            title="Dune",
            author="Frank Herbert",
            cover_url=REMOTE_COVER_URL,
            status="Read",
            rating=5,
            total_pages=612,
            current_page=612,
            read_count=2,
            created_at="2023-06-01T08:00:00",
            updated_at="2023-07-15T21:00:00",
        )
    )
    plain_id = catalog.add_book(
        BookRecord(
            title="Berserk",
            author="Kentaro Miura",
            tracking_type="chapters",
            total_chapters=364,
            current_chapter=12,
            format="Manga",
            created_at="2024-03-10T12:00:00",
            updated_at="2024-03-10T12:00:00",
        )
    )

    sessions = [
        (local_id, "The Name of the Rose", 0, 40),
        (local_id, "The Name of the Rose", 40, 140),
        (remote_id, "Dune", 0, 300),
        (remote_id, "Dune", 300, 612),
        (plain_id, "Berserk", 0, 0),
    ]
    for i, (book_id, title, start, end) in enumerate(sessions):
        catalog.add_session(
            SessionRecord(
                book_id=book_id,
                book_title=title,
                start_time=f"2024-04-0{i + 1}T20:00:00",
                end_time=f"2024-04-0{i + 1}T21:00:00",
                start_page=start,
                end_page=end,
                duration=3600,
            )
        )

    catalog.add_note(
        NoteRecord(
            book_id=local_id,
            note="Stat rosa pristina nomine.",
            page_number=502,
            created_at="2024-04-02T21:05:00",
        )
    )
    catalog.add_note(
        NoteRecord(
            book_id=remote_id,
            note="Fear is the mind-killer.",
            created_at="2024-04-03T22:00:00",
        )
    )

    return SeededLibrary(
        local_id=local_id,
        remote_id=remote_id,
        plain_id=plain_id,
        cover_path=cover_path,
    )


class FakeClock:
    """A controllable clock for scheduler and naming tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class MemorySettingsStore:
    """In-memory SettingsStore."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
