# ABOUTME: Automatic backup scheduling and archive retention for the archive store.
# ABOUTME: Decides when an automatic backup is due and prunes all but the newest archives.

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from readtrack.backup.archive import ArchiveName
from readtrack.config import BACKUP_INTERVAL, MAX_BACKUPS

logger = logging.getLogger(__name__)

LAST_AUTO_BACKUP_KEY = "last_auto_backup"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettingsError(Exception):
    """Raised when the persisted settings cannot be read or written."""


@runtime_checkable
class SettingsStore(Protocol):
    """Protocol for the small key-value store that survives restarts."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class JsonSettingsStore:
    """Key-value settings persisted as a flat JSON object in one file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SettingsError(f"Cannot read settings {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {self._path} is not a JSON object")
        return data

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot write settings {self._path}: {exc}") from exc


class BackupScheduler:
    """Tracks the last automatic backup and reports when the next one is due."""

    def __init__(
        self,
        settings: SettingsStore,
        *,
        interval: timedelta = BACKUP_INTERVAL,
        clock: Clock = utcnow,
    ) -> None:
        self._settings = settings
        self._interval = interval
        self._clock = clock

    def last_backup(self) -> datetime | None:
        """Time of the last recorded automatic backup, if any.

        Raises:
            SettingsError: If the store cannot be read or holds a bad timestamp.
        """
        raw = self._settings.get(LAST_AUTO_BACKUP_KEY)
        if raw is None:
            return None
        try:
            last = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise SettingsError(f"Bad {LAST_AUTO_BACKUP_KEY} value: {raw!r}") from exc
        return last if last.tzinfo else last.replace(tzinfo=timezone.utc)

    def is_due(self) -> bool:
        """True when no automatic backup is recorded or the interval has passed.

        An unreadable store reports False so a broken settings file cannot
        trigger a backup on every check.
        """
        try:
            last = self.last_backup()
        except SettingsError as exc:
            logger.error("Error checking backup status: %s", exc)
            return False

        if last is None:
            return True
        return self._clock() - last > self._interval

    def record_backup(self, when: datetime | None = None) -> None:
        """Persist the time of a successful automatic backup."""
        moment = when or self._clock()
        self._settings.set(LAST_AUTO_BACKUP_KEY, moment.isoformat())


def list_archives(archive_dir: Path) -> list[tuple[ArchiveName, Path]]:
    """List archives in the store, newest first by the timestamp in their names.

    Files whose names do not follow the archive convention are ignored.
    Manual and automatic archives are listed together.
    """
    if not archive_dir.is_dir():
        return []

    found = []
    for path in archive_dir.iterdir():
        name = ArchiveName.parse(path.name)
        if name is not None and path.is_file():
            found.append((name, path))

    found.sort(key=lambda item: (item[0].created_at, item[1].name), reverse=True)
    return found


def prune_archives(archive_dir: Path, keep: int = MAX_BACKUPS) -> list[Path]:
    """Delete all but the `keep` newest archives.

    A file that cannot be deleted is logged and left in place; pruning
    never raises for it. Running it again without a new archive deletes
    nothing further.

    Returns:
        The paths that were deleted.
    """
    deleted: list[Path] = []
    for _name, path in list_archives(archive_dir)[keep:]:
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Could not delete old backup %s: %s", path.name, exc)
            continue
        deleted.append(path)
        logger.info("Deleted old backup: %s", path.name)
    return deleted
