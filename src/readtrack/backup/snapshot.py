# ABOUTME: Builds a full snapshot of the library for export.
# ABOUTME: Produces the interchange document plus the local cover files to embed.

import logging
from dataclasses import dataclass, field
from pathlib import Path

from readtrack.backup.document import export_all_data
from readtrack.db.catalog import LibraryCatalog

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Everything an archive needs: the document and (book_id, cover path) pairs."""

    document: str
    assets: list[tuple[int, Path]] = field(default_factory=list)


def local_asset_path(cover_url: str | None, assets_dir: Path) -> Path | None:
    """Return the cover path if it lives in the asset store, else None.

    Empty values and remote URLs are not local assets, and neither is a
    path outside the asset store.
    """
    if not cover_url or "://" in cover_url:
        return None
    candidate = Path(cover_url)
    if not candidate.resolve().is_relative_to(assets_dir.resolve()):
        return None
    return candidate


def build_snapshot(catalog: LibraryCatalog, assets_dir: Path) -> Snapshot:
    """Snapshot every row and collect the covers stored in the asset store.

    A cover that is referenced but missing on disk is logged and left out;
    the rest of the export continues.

    Args:
        catalog: The live library.
        assets_dir: The flat directory holding local cover images.

    Returns:
        A Snapshot with the full document and the embeddable covers.
    """
    document = export_all_data(catalog)
    assets: list[tuple[int, Path]] = []

    for book in catalog.list_books():
        path = local_asset_path(book.cover_url, assets_dir)
        if path is None:
            continue
        if not path.is_file():
            logger.warning("Cover for %r is missing: %s", book.title, path)
            continue
        assets.append((book.id, path))  # type: ignore[arg-type]

    logger.info("Snapshot holds %d book cover(s)", len(assets))
    return Snapshot(document=document, assets=assets)
