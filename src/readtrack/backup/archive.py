# ABOUTME: Reads and writes backup archives: a ZIP holding the data document, metadata, and covers.
# ABOUTME: Also owns the archive filename convention whose embedded timestamp orders backups.

import json
import logging
import re
import zipfile
import zlib
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

DOCUMENT_NAME = "library_data.json"
METADATA_NAME = "metadata.json"
ASSET_FOLDER = "covers/"
ARCHIVE_VERSION = "2.0"

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"

# manual_backup_2026-10-19T08-30-00-123Z.zip; older archives stop at the seconds
_NAME_RE = re.compile(
    r"^(?P<kind>manual|auto)_backup_"
    r"(?P<stamp>\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2})(?:-(?P<millis>\d{3}))?Z?"
    r"\.(?P<ext>zip|json)$"
)


class InvalidArchiveError(Exception):
    """Raised when a file is not a readable backup archive."""


def format_timestamp(moment: datetime) -> str:
    """Render a time as the filename-safe UTC stamp used in archive names."""
    moment = moment.astimezone(timezone.utc)
    return f"{moment.strftime(_TIMESTAMP_FORMAT)}-{moment.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class ArchiveName:
    """The parts encoded in an archive filename."""

    manual: bool
    created_at: datetime
    extension: str = "zip"

    @property
    def filename(self) -> str:
        kind = "manual" if self.manual else "auto"
        return f"{kind}_backup_{format_timestamp(self.created_at)}.{self.extension}"

    @classmethod
    def parse(cls, filename: str) -> "ArchiveName | None":
        """Parse an archive filename, or return None if it does not follow the convention."""
        match = _NAME_RE.match(filename)
        if match is None:
            return None
        try:
            created = datetime.strptime(match["stamp"], _TIMESTAMP_FORMAT)
        except ValueError:
            return None
        millis = int(match["millis"] or 0)
        created = created.replace(microsecond=millis * 1000, tzinfo=timezone.utc)
        return cls(
            manual=match["kind"] == "manual",
            created_at=created,
            extension=match["ext"],
        )


@dataclass
class ArchiveMetadata:
    """The small descriptor stored as metadata.json inside a ZIP archive."""

    image_count: int
    created_at: str
    manual: bool
    version: str = ARCHIVE_VERSION

    def to_json(self) -> str:
        return json.dumps(
            {
                "imageCount": self.image_count,
                "createdAt": self.created_at,
                "version": self.version,
                "isManual": self.manual,
            },
            indent=2,
        )

    @classmethod
    def from_json(cls, text: str) -> "ArchiveMetadata":
        data = json.loads(text)
        return cls(
            image_count=int(data.get("imageCount") or 0),
            created_at=str(data.get("createdAt", "")),
            manual=bool(data.get("isManual", False)),
            version=str(data.get("version", "")),
        )


@dataclass(frozen=True)
class AssetEntry:
    """One embedded cover, readable on demand. name is relative to the covers folder."""

    name: str
    member: str
    _zip: zipfile.ZipFile = field(repr=False, compare=False)

    def read(self) -> bytes:
        return self._zip.read(self.member)


@dataclass
class ArchiveReader:
    """An opened archive: the document text, its metadata, and unextracted assets."""

    path: Path
    document: str
    metadata: ArchiveMetadata | None = None
    assets: list[AssetEntry] = field(default_factory=list)

    @property
    def data_only(self) -> bool:
        return self.path.suffix.lower() == ".json"


def asset_entry_name(book_id: int, filename: str) -> str:
    """Name an embedded asset so it can be traced back to its book after re-keying."""
    return f"{book_id}_{filename}"


def _cleanup(path: Path) -> None:
    """Remove a partially written file if it exists."""
    if path.exists():
        path.unlink()


def write_archive(
    path: Path,
    document: str,
    assets: Sequence[tuple[int, Path]],
    *,
    manual: bool,
    created_at: datetime,
) -> ArchiveMetadata:
    """Write a ZIP archive holding the document, metadata, and cover assets.

    Each asset is stored as covers/<book_id>_<filename>. An asset that
    cannot be read is logged and left out. The archive is assembled in a
    sibling .part file and moved into place, so a failed write leaves
    nothing behind at path.

    Args:
        path: Destination archive path.
        document: The interchange document text.
        assets: (book_id, local cover path) pairs to embed.
        manual: Whether the user triggered this backup.
        created_at: Creation time recorded in the metadata.

    Returns:
        The metadata written, with image_count equal to assets actually stored.
    """
    partial = path.with_name(path.name + ".part")
    image_count = 0

    try:
        with zipfile.ZipFile(partial, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(DOCUMENT_NAME, document.encode("utf-8"))

            for book_id, asset_path in assets:
                try:
                    data = asset_path.read_bytes()
                except OSError as exc:
                    logger.warning("Skipping cover for book %d: %s", book_id, exc)
                    continue
                zf.writestr(ASSET_FOLDER + asset_entry_name(book_id, asset_path.name), data)
                image_count += 1

            metadata = ArchiveMetadata(
                image_count=image_count,
                created_at=created_at.astimezone(timezone.utc).isoformat(),
                manual=manual,
            )
            zf.writestr(METADATA_NAME, metadata.to_json())

        partial.replace(path)
    except Exception:
        _cleanup(partial)
        raise

    return metadata


def write_data_only(path: Path, document: str) -> None:
    """Write the legacy data-only archive: the document alone as a .json file."""
    partial = path.with_name(path.name + ".part")
    try:
        partial.write_bytes(document.encode("utf-8"))
        partial.replace(path)
    except Exception:
        _cleanup(partial)
        raise


def _read_metadata(zf: zipfile.ZipFile, path: Path) -> ArchiveMetadata | None:
    if METADATA_NAME not in zf.namelist():
        return None
    try:
        return ArchiveMetadata.from_json(zf.read(METADATA_NAME).decode("utf-8"))
    except (ValueError, AttributeError, zipfile.BadZipFile, zlib.error) as exc:
        logger.warning("Could not read backup metadata from %s: %s", path.name, exc)
        return None


def _read_zip(path: Path, zf: zipfile.ZipFile) -> ArchiveReader:
    try:
        raw = zf.read(DOCUMENT_NAME)
    except KeyError as exc:
        raise InvalidArchiveError(
            f"Invalid backup: {DOCUMENT_NAME} not found in {path.name}"
        ) from exc
    except (zipfile.BadZipFile, zlib.error) as exc:
        raise InvalidArchiveError(f"Invalid backup: corrupt {DOCUMENT_NAME}: {exc}") from exc

    try:
        document = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidArchiveError(f"Invalid backup: {DOCUMENT_NAME} is not UTF-8") from exc

    assets = [
        AssetEntry(name=info.filename[len(ASSET_FOLDER):], member=info.filename, _zip=zf)
        for info in zf.infolist()
        if info.filename.startswith(ASSET_FOLDER)
        and not info.is_dir()
        and len(info.filename) > len(ASSET_FOLDER)
    ]

    return ArchiveReader(
        path=path,
        document=document,
        metadata=_read_metadata(zf, path),
        assets=assets,
    )


@contextmanager
def open_archive(path: Path) -> Iterator[ArchiveReader]:
    """Open a ZIP or data-only JSON archive for reading.

    Nothing is extracted; asset bytes are read through AssetEntry.read()
    while the context is open.

    Raises:
        InvalidArchiveError: If the file is not a ZIP, lacks the document
            entry, or the document is not UTF-8 text.
        OSError: If the file cannot be opened at all.
    """
    if path.suffix.lower() == ".json":
        try:
            document = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidArchiveError(f"Invalid backup: {path.name} is not UTF-8") from exc
        yield ArchiveReader(path=path, document=document)
        return

    try:
        zf = zipfile.ZipFile(path)
    except zipfile.BadZipFile as exc:
        raise InvalidArchiveError(f"Invalid backup (not a valid ZIP): {path.name}") from exc

    with zf:
        yield _read_zip(path, zf)
