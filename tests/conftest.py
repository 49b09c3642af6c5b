# ABOUTME: Shared pytest fixtures for Readtrack tests.
# ABOUTME: Provides temporary library homes, open catalogs, a seeded library, and sample EPUBs.

from collections.abc import Iterator
from pathlib import Path

import pytest
from ebooklib import epub

from readtrack.config import LibraryPaths
from readtrack.db.catalog import LibraryCatalog
from readtrack.db.connection import open_library
from tests.fixtures.library import FakeClock, MemorySettingsStore, SeededLibrary, seed_library


@pytest.fixture
def library_paths(tmp_path: Path) -> LibraryPaths:
    """A fresh Readtrack home with its asset and archive directories."""
    paths = LibraryPaths.from_home(tmp_path / "home")
    paths.ensure_dirs()
    return paths


@pytest.fixture
def catalog(library_paths: LibraryPaths) -> Iterator[LibraryCatalog]:
    """An open, empty catalog in the temporary home."""
    conn = open_library(library_paths.db_path)
    yield LibraryCatalog(conn)
    conn.close()


@pytest.fixture
def seeded(catalog: LibraryCatalog, library_paths: LibraryPaths) -> SeededLibrary:
    """The catalog fixture populated with 3 books, 5 sessions, and 2 notes."""
    return seed_library(catalog, library_paths.assets_dir)


@pytest.fixture
def other_paths(tmp_path: Path) -> LibraryPaths:
    """A second, independent Readtrack home."""
    paths = LibraryPaths.from_home(tmp_path / "other")
    paths.ensure_dirs()
    return paths


@pytest.fixture
def other_catalog(other_paths: LibraryPaths) -> Iterator[LibraryCatalog]:
    """An empty catalog in the second home, for restoring into."""
    conn = open_library(other_paths.db_path)
    yield LibraryCatalog(conn)
    conn.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> MemorySettingsStore:
    return MemorySettingsStore()


def _build_epub(path: Path, title: str, cover: bytes | None = None) -> Path:
    book = epub.EpubBook()
    book.set_identifier(f"id-{path.stem}")
    book.set_title(title)
    book.set_language("en")
    book.add_author("Umberto Eco")
    book.add_metadata("DC", "publisher", "Harcourt")
    book.add_metadata("DC", "date", "1983-01-01")

    if cover is not None:
        book.set_cover("cover.jpg", cover)

    # Add a minimal chapter so the EPUB is structurally valid
    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = b"<html><body><h1>Chapter 1</h1><p>Content.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    epub.write_epub(str(path), book)
    return path


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """A minimal valid EPUB with known metadata and no cover."""
    books = tmp_path / "books"
    books.mkdir(exist_ok=True)
    return _build_epub(books / "name_of_the_rose.epub", "The Name of the Rose")


@pytest.fixture
def epub_with_cover(tmp_path: Path) -> Path:
    """A valid EPUB carrying a cover image."""
    books = tmp_path / "books"
    books.mkdir(exist_ok=True)
    return _build_epub(
        books / "foucaults_pendulum.epub",
        "Foucault's Pendulum",
        cover=b"\xff\xd8\xff\xe0fake-jpeg-cover",
    )


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """A file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath
