# ABOUTME: Public API for the Readtrack backup engine.
# ABOUTME: Exports export/import, archive I/O, restore, retention, and the manager facade.

from readtrack.backup.archive import ArchiveName, InvalidArchiveError, open_archive, write_archive
from readtrack.backup.document import ImportResult, export_all_data, import_data
from readtrack.backup.manager import (
    BackupInfo,
    BackupManager,
    BackupNotFoundError,
    BackupResult,
    BackupStats,
)
from readtrack.backup.restore import RestoreOrchestrator, RestoreResult, RestoreState
from readtrack.backup.retention import BackupScheduler, JsonSettingsStore, prune_archives

__all__ = [
    "ArchiveName",
    "BackupInfo",
    "BackupManager",
    "BackupNotFoundError",
    "BackupResult",
    "BackupScheduler",
    "BackupStats",
    "ImportResult",
    "InvalidArchiveError",
    "JsonSettingsStore",
    "RestoreOrchestrator",
    "RestoreResult",
    "RestoreState",
    "export_all_data",
    "import_data",
    "open_archive",
    "prune_archives",
    "write_archive",
]
