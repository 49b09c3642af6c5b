# ABOUTME: Restores embedded cover images and points the re-keyed book rows at them.
# ABOUTME: Owns parsing of the "<oldBookId>_<filename>" asset naming convention.

import logging
import re
import sqlite3
import zipfile
import zlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from readtrack.backup.archive import AssetEntry
from readtrack.db.catalog import LibraryCatalog

logger = logging.getLogger(__name__)

_ASSET_NAME_RE = re.compile(r"^(\d+)_(.+)$")


@dataclass
class RelinkResult:
    """Aggregate outcome of relinking a restore's assets."""

    relinked: int = 0
    skipped: list[tuple[str, str]] = field(default_factory=list)


def parse_asset_name(name: str) -> tuple[int, str] | None:
    """Split an asset name into (old_book_id, original_filename).

    Returns None when the name carries no numeric prefix, or when the
    remaining filename is not a plain name (path separators, dot entries).
    """
    match = _ASSET_NAME_RE.match(name)
    if match is None:
        return None
    filename = match.group(2)
    if "/" in filename or "\\" in filename or filename in (".", ".."):
        return None
    return int(match.group(1)), filename


def relink_assets(
    assets: Iterable[AssetEntry],
    book_id_map: dict[int, int],
    catalog: LibraryCatalog,
    assets_dir: Path,
) -> RelinkResult:
    """Copy each embedded cover into the asset store and relink its book.

    Assets are processed one at a time. An asset that cannot be attributed
    to an imported book, cannot be read, or cannot be written is logged and
    skipped; rows already committed are never touched on failure. Files are
    written under their original name, so a name collision overwrites.

    Args:
        assets: Embedded asset entries from an opened archive.
        book_id_map: Old book id to new book id, from a successful import.
        catalog: The library the document was imported into.
        assets_dir: The flat directory receiving cover images.

    Returns:
        RelinkResult with the relinked count and the skipped assets.
    """
    result = RelinkResult()
    try:
        assets_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Cannot create cover directory %s: %s", assets_dir, exc)
        result.skipped.extend((entry.name, str(exc)) for entry in assets)
        return result

    for entry in assets:
        parsed = parse_asset_name(entry.name)
        if parsed is None:
            logger.warning("Skipping cover %s: no book id prefix", entry.name)
            result.skipped.append((entry.name, "unattributable"))
            continue

        old_book_id, filename = parsed
        new_book_id = book_id_map.get(old_book_id)
        if new_book_id is None:
            logger.warning(
                "Skipping cover %s: book %d was not imported", entry.name, old_book_id
            )
            result.skipped.append((entry.name, "orphaned"))
            continue

        destination = assets_dir / filename
        try:
            destination.write_bytes(entry.read())
            catalog.set_cover_url(new_book_id, str(destination))
        except (OSError, ValueError, sqlite3.Error, zipfile.BadZipFile, zlib.error) as exc:
            logger.warning("Failed to restore cover %s: %s", entry.name, exc)
            result.skipped.append((entry.name, str(exc)))
            continue

        result.relinked += 1
        logger.debug("Restored cover for book %d -> %d: %s", old_book_id, new_book_id, filename)

    return result
