# ABOUTME: Restore orchestration: validate an archive, replace the library, relink covers.
# ABOUTME: Wipe and import share one transaction so a failed import keeps the old library.

import enum
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from readtrack.backup.archive import InvalidArchiveError, open_archive
from readtrack.backup.document import DocumentError, import_document, parse_document
from readtrack.backup.relinker import relink_assets
from readtrack.db.catalog import LibraryCatalog

logger = logging.getLogger(__name__)


class RestoreState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    WIPING = "wiping"
    IMPORTING = "importing"
    RELINKING = "relinking"
    DONE = "done"
    FAILED = "failed"


class _ImportFailed(Exception):
    """Aborts the wipe+import transaction when the importer reports failure."""


@dataclass
class RestoreResult:
    """Outcome of a restore.

    invalid_archive is set only when the archive itself was unreadable; the
    library is untouched in that case.
    """

    success: bool
    state: RestoreState
    books: int = 0
    relinked_assets: int = 0
    skipped_assets: int = 0
    invalid_archive: bool = False
    error: str | None = None

    @property
    def with_images(self) -> bool:
        return self.relinked_assets > 0


class RestoreOrchestrator:
    """Runs one restore through validating, wiping, importing, and relinking.

    Not safe to run concurrently; callers restore one archive at a time.
    """

    def __init__(self, catalog: LibraryCatalog, assets_dir: Path) -> None:
        self._catalog = catalog
        self._assets_dir = assets_dir
        self.state = RestoreState.IDLE

    def _enter(self, state: RestoreState) -> None:
        logger.debug("Restore %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, error: str, *, invalid_archive: bool = False) -> RestoreResult:
        self._enter(RestoreState.FAILED)
        logger.error("Restore failed: %s", error)
        return RestoreResult(
            success=False,
            state=self.state,
            invalid_archive=invalid_archive,
            error=error,
        )

    def restore(self, archive_path: Path) -> RestoreResult:
        """Replace the library with the contents of an archive.

        The archive is opened and its document parsed before anything is
        deleted. Wiping and importing then run in a single transaction that
        commits only if every row imports. Covers are relinked afterwards;
        cover failures are counted but never fail the restore.

        Args:
            archive_path: A ZIP archive or a data-only JSON export.

        Returns:
            RestoreResult describing the outcome and the relinked cover count.
        """
        self._enter(RestoreState.VALIDATING)
        logger.info("Restoring %s", archive_path.name)

        try:
            with open_archive(archive_path) as archive:
                try:
                    document = parse_document(archive.document)
                except DocumentError as exc:
                    raise InvalidArchiveError(f"Invalid backup: {exc}") from exc

                try:
                    with self._catalog.transaction():
                        self._enter(RestoreState.WIPING)
                        self._catalog.clear_all()

                        self._enter(RestoreState.IMPORTING)
                        imported = import_document(self._catalog, document)
                        if not imported.success:
                            raise _ImportFailed(imported.error or "Data import failed")
                except (_ImportFailed, sqlite3.Error) as exc:
                    return self._fail(str(exc))

                relinked = 0
                skipped = 0
                if not archive.data_only:
                    self._enter(RestoreState.RELINKING)
                    relink = relink_assets(
                        archive.assets,
                        imported.book_id_map,
                        self._catalog,
                        self._assets_dir,
                    )
                    relinked = relink.relinked
                    skipped = len(relink.skipped)
        except InvalidArchiveError as exc:
            return self._fail(str(exc), invalid_archive=True)
        except OSError as exc:
            return self._fail(f"Could not read {archive_path.name}: {exc}")

        self._enter(RestoreState.DONE)
        logger.info(
            "Restore complete: %d book(s), %d cover(s) relinked", imported.books, relinked
        )
        return RestoreResult(
            success=True,
            state=self.state,
            books=imported.books,
            relinked_assets=relinked,
            skipped_assets=skipped,
        )
