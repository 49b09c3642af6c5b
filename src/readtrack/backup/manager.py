# ABOUTME: Facade over the backup engine used by the CLI.
# ABOUTME: Creates, lists, deletes, and restores archives and runs due automatic backups.

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from readtrack.backup.archive import (
    ArchiveName,
    InvalidArchiveError,
    open_archive,
    write_archive,
    write_data_only,
)
from readtrack.backup.restore import RestoreOrchestrator, RestoreResult
from readtrack.backup.retention import (
    BackupScheduler,
    Clock,
    JsonSettingsStore,
    SettingsError,
    SettingsStore,
    list_archives,
    prune_archives,
    utcnow,
)
from readtrack.backup.snapshot import build_snapshot
from readtrack.config import BackupPolicy, LibraryPaths
from readtrack.db.catalog import LibraryCatalog

logger = logging.getLogger(__name__)


class BackupNotFoundError(Exception):
    """Raised when a named archive does not exist in the archive store."""


@dataclass
class BackupResult:
    """Outcome of creating one backup."""

    success: bool
    path: Path | None = None
    image_count: int = 0
    pruned: list[Path] = field(default_factory=list)
    error: str | None = None


@dataclass
class BackupInfo:
    """An archive in the store, as shown to the user."""

    filename: str
    path: Path
    size: int
    created_at: datetime
    manual: bool
    image_count: int = 0
    data_only: bool = False

    @property
    def has_images(self) -> bool:
        return self.image_count > 0

    @property
    def format_label(self) -> str:
        if self.data_only:
            return "JSON (data only)"
        if self.image_count == 0:
            return "ZIP (no images)"
        plural = "" if self.image_count == 1 else "s"
        return f"ZIP ({self.image_count} image{plural})"


@dataclass
class BackupStats:
    """Summary of the archive store."""

    total_backups: int = 0
    total_size: int = 0
    last_backup_time: datetime | None = None
    days_since_backup: int | None = None
    newest: BackupInfo | None = None
    oldest: BackupInfo | None = None
    with_images: int = 0


class BackupManager:
    """Runs backup operations against one library and its on-disk stores.

    Operations are single-flight: nothing here locks the archive or asset
    stores, so callers must not run two operations at once.
    """

    def __init__(
        self,
        catalog: LibraryCatalog,
        paths: LibraryPaths,
        *,
        policy: BackupPolicy | None = None,
        settings: SettingsStore | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._catalog = catalog
        self._paths = paths
        self._policy = policy or BackupPolicy()
        self._clock = clock
        self.scheduler = BackupScheduler(
            settings or JsonSettingsStore(paths.settings_path),
            interval=self._policy.interval,
            clock=clock,
        )

    @property
    def archives_dir(self) -> Path:
        return self._paths.archives_dir

    def create_backup(self, *, manual: bool = False, data_only: bool = False) -> BackupResult:
        """Snapshot the library into a new archive, then prune old archives.

        Automatic backups also record their time for the scheduler. Pruning
        runs after every successful backup, manual or automatic.

        Args:
            manual: Whether the user asked for this backup.
            data_only: Write the legacy JSON export without covers.

        Returns:
            BackupResult with the archive path and embedded cover count.
        """
        now = self._clock()
        name = ArchiveName(manual=manual, created_at=now, extension="json" if data_only else "zip")
        path = self.archives_dir / name.filename
        logger.info("Creating %s backup %s", "manual" if manual else "automatic", name.filename)

        try:
            self.archives_dir.mkdir(parents=True, exist_ok=True)
            snapshot = build_snapshot(self._catalog, self._paths.assets_dir)
            if data_only:
                write_data_only(path, snapshot.document)
                image_count = 0
            else:
                metadata = write_archive(
                    path,
                    snapshot.document,
                    snapshot.assets,
                    manual=manual,
                    created_at=now,
                )
                image_count = metadata.image_count
        except (OSError, sqlite3.Error) as exc:
            logger.error("Backup failed: %s", exc)
            return BackupResult(success=False, error=str(exc))

        if not manual:
            try:
                self.scheduler.record_backup(now)
            except SettingsError as exc:
                logger.error("Could not record backup time: %s", exc)

        pruned = prune_archives(self.archives_dir, self._policy.keep)
        logger.info("Backup saved: %s (%d cover(s))", path.name, image_count)
        return BackupResult(success=True, path=path, image_count=image_count, pruned=pruned)

    def perform_auto_backup(self) -> bool:
        """Create an automatic backup if one is due. Returns True if one was made."""
        if not self.scheduler.is_due():
            return False

        logger.info("Auto-backup triggered")
        result = self.create_backup(manual=False)
        if not result.success:
            logger.error("Auto-backup failed: %s", result.error)
        return result.success

    def _describe(self, name: ArchiveName, path: Path) -> BackupInfo:
        info = BackupInfo(
            filename=path.name,
            path=path,
            size=path.stat().st_size,
            created_at=name.created_at,
            manual=name.manual,
            data_only=name.extension == "json",
        )
        if info.data_only:
            return info

        try:
            with open_archive(path) as archive:
                if archive.metadata is not None:
                    info.image_count = archive.metadata.image_count
                else:
                    info.image_count = len(archive.assets)
        except (InvalidArchiveError, OSError) as exc:
            logger.warning("Could not read backup metadata from %s: %s", path.name, exc)
        return info

    def list_backups(self) -> list[BackupInfo]:
        """Describe every archive in the store, newest first."""
        return [self._describe(name, path) for name, path in list_archives(self.archives_dir)]

    def resolve(self, name: str) -> Path:
        """Find an archive by filename in the store, or by an existing file path.

        Raises:
            BackupNotFoundError: If neither exists.
        """
        candidate = Path(name)
        if candidate.is_file():
            return candidate
        stored = self.archives_dir / candidate.name
        if stored.is_file():
            return stored
        raise BackupNotFoundError(f"Backup not found: {name}")

    def delete_backup(self, filename: str) -> Path:
        """Delete one archive from the store.

        Raises:
            BackupNotFoundError: If the store holds no archive by that name.
        """
        path = self.archives_dir / Path(filename).name
        if ArchiveName.parse(path.name) is None or not path.is_file():
            raise BackupNotFoundError(f"Backup not found: {filename}")
        path.unlink()
        logger.info("Deleted backup %s", path.name)
        return path

    def restore_backup(self, path: Path) -> RestoreResult:
        """Replace the library with an archive's contents."""
        return RestoreOrchestrator(self._catalog, self._paths.assets_dir).restore(path)

    def stats(self) -> BackupStats:
        """Summarize the archive store and the automatic backup schedule."""
        backups = self.list_backups()
        try:
            last = self.scheduler.last_backup()
        except SettingsError as exc:
            logger.error("Error reading last backup time: %s", exc)
            last = None

        return BackupStats(
            total_backups=len(backups),
            total_size=sum(b.size for b in backups),
            last_backup_time=last,
            days_since_backup=(self._clock() - last).days if last else None,
            newest=backups[0] if backups else None,
            oldest=backups[-1] if backups else None,
            with_images=sum(1 for b in backups if b.has_images),
        )
