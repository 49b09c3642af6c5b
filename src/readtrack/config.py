# ABOUTME: Filesystem layout and backup policy settings for a Readtrack installation.
# ABOUTME: Resolves the home directory into database, asset, archive, and settings paths.

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

DEFAULT_HOME = Path.home() / ".readtrack"

MAX_BACKUPS = 7
BACKUP_INTERVAL = timedelta(hours=24)


@dataclass(frozen=True)
class LibraryPaths:
    """Locations of everything one installation keeps on disk."""

    home: Path

    @classmethod
    def from_home(cls, home: Path | None = None) -> "LibraryPaths":
        return cls(home=home or DEFAULT_HOME)

    @property
    def db_path(self) -> Path:
        return self.home / "library.db"

    @property
    def assets_dir(self) -> Path:
        """Flat directory of cover images referenced by book rows."""
        return self.home / "covers"

    @property
    def archives_dir(self) -> Path:
        """Flat directory of backup archives."""
        return self.home / "backups"

    @property
    def settings_path(self) -> Path:
        return self.home / "settings.json"

    def ensure_dirs(self) -> None:
        """Create the asset and archive directories if they are missing."""
        self.assets_dir.mkdir(parents=True, exist_ok=True)
        self.archives_dir.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class BackupPolicy:
    """How many archives to keep and how often automatic backups run."""

    keep: int = MAX_BACKUPS
    interval: timedelta = BACKUP_INTERVAL
