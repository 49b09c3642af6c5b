# ABOUTME: Adds EPUB files to the library, copying each cover into the asset store.
# ABOUTME: Covers are stored under content-hashed names so the flat store never collides.

import hashlib
from dataclasses import dataclass, field
from pathlib import Path

from readtrack.db.catalog import LibraryCatalog
from readtrack.db.mapping import BookRecord
from readtrack.formats.epub import EpubCover, EpubReadError, read_epub_details


@dataclass
class AddResult:
    """Summary of an add operation."""

    added: int = 0
    covers: int = 0
    errors: int = 0
    error_details: list[tuple[Path, str]] = field(default_factory=list)


def store_cover(cover: EpubCover, assets_dir: Path) -> Path:
    """Write cover bytes into the asset store under a content-hashed filename.

    Identical images map to the same file, so re-adding a book reuses it.
    """
    digest = hashlib.sha256(cover.data).hexdigest()[:16]
    suffix = Path(cover.filename).suffix.lower() or ".img"
    assets_dir.mkdir(parents=True, exist_ok=True)
    dest = assets_dir / f"cover_{digest}{suffix}"
    if not dest.exists():
        dest.write_bytes(cover.data)
    return dest


def add_epubs(paths: list[Path], catalog: LibraryCatalog, assets_dir: Path) -> AddResult:
    """Add EPUB files to the library as new books.

    For each file: extracts details, stores the cover (if any) in the asset
    store, and inserts a book row pointing at it. Unreadable files are
    recorded as errors and the rest continue.

    Args:
        paths: EPUB files to add.
        catalog: The library to add books to.
        assets_dir: The flat cover-image directory.

    Returns:
        AddResult with counts of added books, stored covers, and errors.
    """
    result = AddResult()

    for epub_path in paths:
        try:
            details = read_epub_details(epub_path)
        except EpubReadError as exc:
            result.errors += 1
            result.error_details.append((epub_path, str(exc)))
            continue

        cover_url: str | None = None
        if details.cover is not None:
            try:
                cover_url = str(store_cover(details.cover, assets_dir))
                result.covers += 1
            except OSError as exc:
                result.error_details.append((epub_path, f"cover not stored: {exc}"))

        catalog.add_book(
            BookRecord(
                title=details.title,
                author=details.author,
                cover_url=cover_url,
                isbn=details.isbn,
                publisher=details.publisher,
                publication_year=details.publication_year,
                language=details.language or "English",
                format="eBook",
            )
        )
        result.added += 1

    return result
