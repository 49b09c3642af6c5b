# ABOUTME: EPUB metadata and cover extraction using ebooklib.
# ABOUTME: Defensive wrapper that handles malformed files gracefully.

import logging
from dataclasses import dataclass
from pathlib import Path

import ebooklib
from ebooklib import epub

logger = logging.getLogger(__name__)

_IMAGE_TYPES = (ebooklib.ITEM_IMAGE, ebooklib.ITEM_COVER)


class EpubReadError(Exception):
    """Raised when an EPUB file cannot be read or parsed."""


@dataclass
class EpubCover:
    """Raw cover image bytes and the name the EPUB stores them under."""

    data: bytes
    filename: str


@dataclass
class EpubDetails:
    """The fields Readtrack takes from an EPUB when adding it to the library."""

    title: str
    authors: list[str]
    language: str | None = None
    publisher: str | None = None
    isbn: str | None = None
    publication_year: str | None = None
    cover: EpubCover | None = None

    @property
    def author(self) -> str | None:
        return ", ".join(self.authors) if self.authors else None


def _get_metadata_value(book: epub.EpubBook, namespace: str, name: str) -> str | None:
    """Extract a single metadata value from an EpubBook, or None if missing."""
    values = book.get_metadata(namespace, name)
    if not values:
        return None
    # Metadata entries are tuples of (value, attributes)
    value = values[0][0]
    return str(value).strip() if value else None


def _get_authors(book: epub.EpubBook) -> list[str]:
    """Extract all author names from an EpubBook."""
    creators = book.get_metadata("DC", "creator")
    if not creators:
        return []
    return [str(entry[0]).strip() for entry in creators if entry[0]]


def _detect_isbn(book: epub.EpubBook) -> str | None:
    """Find an identifier that is declared as, or looks like, an ISBN."""
    entries = book.get_metadata("DC", "identifier")
    for value, attrs in entries:
        scheme = attrs.get("opf:scheme", attrs.get("scheme", ""))
        if value and scheme.lower().startswith("isbn"):
            return str(value).strip()
    for value, _attrs in entries:
        if not value:
            continue
        cleaned = str(value).replace("-", "").replace(" ", "")
        if len(cleaned) in (10, 13) and cleaned.replace("X", "").isdigit():
            return str(value).strip()
    return None


def _extract_cover(book: epub.EpubBook) -> EpubCover | None:
    """Extract the cover image, if the EPUB has one."""
    meta_entries = book.get_metadata("OPF", "cover")
    if meta_entries:
        cover_id = meta_entries[0][1].get("content")
        item = book.get_item_with_id(cover_id) if cover_id else None
        if item is not None and item.get_type() in _IMAGE_TYPES:
            return EpubCover(data=item.get_content(), filename=Path(item.get_name()).name)

    # Fallback: an image item with "cover" in its id or filename
    for item in book.get_items():
        if item.get_type() not in _IMAGE_TYPES:
            continue
        item_id = item.get_id() or ""
        item_name = item.get_name() or ""
        if "cover" in item_id.lower() or "cover" in item_name.lower():
            return EpubCover(data=item.get_content(), filename=Path(item_name).name)

    return None


def read_epub_details(path: Path) -> EpubDetails:
    """Extract title, authors, publishing details, and the cover from an EPUB.

    Args:
        path: Path to the EPUB file.

    Returns:
        EpubDetails populated with extracted fields. The title falls back to
        the file stem when the EPUB has none.

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    if not path.exists():
        raise EpubReadError(f"File not found: {path}")

    try:
        book = epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:
        raise EpubReadError(f"Failed to read EPUB: {path}: {exc}") from exc

    title = _get_metadata_value(book, "DC", "title") or path.stem
    date = _get_metadata_value(book, "DC", "date")

    cover = _extract_cover(book)
    if cover is None:
        logger.debug("No cover image in %s", path.name)

    return EpubDetails(
        title=title,
        authors=_get_authors(book),
        language=_get_metadata_value(book, "DC", "language"),
        publisher=_get_metadata_value(book, "DC", "publisher"),
        isbn=_detect_isbn(book),
        publication_year=date[:4] if date else None,
        cover=cover,
    )
