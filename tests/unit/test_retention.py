# ABOUTME: Unit tests for archive retention and the automatic backup scheduler.
# ABOUTME: Covers pruning to the newest archives, settings persistence, and due checks.

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from readtrack.backup.archive import ArchiveName
from readtrack.backup.retention import (
    LAST_AUTO_BACKUP_KEY,
    BackupScheduler,
    JsonSettingsStore,
    SettingsError,
    SettingsStore,
    list_archives,
    prune_archives,
)
from tests.fixtures.library import FakeClock, MemorySettingsStore

BASE = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _make_archives(archive_dir: Path, count: int, *, manual_every: int = 2) -> list[Path]:
    """Create `count` empty archives one hour apart, oldest first."""
    archive_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for i in range(count):
        name = ArchiveName(manual=i % manual_every == 0, created_at=BASE + timedelta(hours=i))
        path = archive_dir / name.filename
        path.write_bytes(b"zip")
        paths.append(path)
    return paths


class TestListArchives:
    """Tests for list_archives()."""

    def test_newest_first(self, tmp_path: Path) -> None:
        paths = _make_archives(tmp_path, 3)
        assert [p for _name, p in list_archives(tmp_path)] == list(reversed(paths))

    def test_ignores_unrelated_files(self, tmp_path: Path) -> None:
        _make_archives(tmp_path, 2)
        (tmp_path / "notes.txt").write_text("hi")
        (tmp_path / "backup.zip").write_bytes(b"zip")

        assert len(list_archives(tmp_path)) == 2

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert list_archives(tmp_path / "none") == []

    def test_mixed_precision_names_order_by_time(self, tmp_path: Path) -> None:
        """A legacy second-precision name sorts by its time, not its text."""
        (tmp_path / "auto_backup_2026-10-01T12-00-00.zip").write_bytes(b"")
        newer = ArchiveName(manual=True, created_at=BASE + timedelta(milliseconds=500))
        (tmp_path / newer.filename).write_bytes(b"")

        names = [p.name for _n, p in list_archives(tmp_path)]
        assert names[0] == newer.filename


class TestPruneArchives:
    """Tests for prune_archives()."""

    def test_keeps_seven_newest(self, tmp_path: Path) -> None:
        """With ten archives, the three oldest are deleted."""
        paths = _make_archives(tmp_path, 10)

        deleted = prune_archives(tmp_path, keep=7)

        assert sorted(deleted) == sorted(paths[:3])
        assert sorted(p.name for p in tmp_path.iterdir()) == sorted(p.name for p in paths[3:])

    def test_idempotent(self, tmp_path: Path) -> None:
        _make_archives(tmp_path, 10)
        prune_archives(tmp_path, keep=7)
        assert prune_archives(tmp_path, keep=7) == []
        assert len(list(tmp_path.iterdir())) == 7

    def test_under_limit_deletes_nothing(self, tmp_path: Path) -> None:
        _make_archives(tmp_path, 4)
        assert prune_archives(tmp_path, keep=7) == []

    def test_manual_and_auto_share_the_limit(self, tmp_path: Path) -> None:
        _make_archives(tmp_path, 9, manual_every=3)
        prune_archives(tmp_path, keep=5)
        assert len(list(tmp_path.iterdir())) == 5

    def test_unrelated_files_survive(self, tmp_path: Path) -> None:
        _make_archives(tmp_path, 9)
        keepsake = tmp_path / "keepsake.zip"
        keepsake.write_bytes(b"mine")

        prune_archives(tmp_path, keep=7)

        assert keepsake.exists()


class TestJsonSettingsStore:
    """Tests for JsonSettingsStore."""

    def test_is_a_settings_store(self, tmp_path: Path) -> None:
        assert isinstance(JsonSettingsStore(tmp_path / "s.json"), SettingsStore)

    def test_get_missing_file(self, tmp_path: Path) -> None:
        assert JsonSettingsStore(tmp_path / "s.json").get("anything") is None

    def test_set_then_get(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "s.json"
        JsonSettingsStore(path).set("k", "v")
        assert JsonSettingsStore(path).get("k") == "v"

    def test_set_keeps_other_keys(self, tmp_path: Path) -> None:
        store = JsonSettingsStore(tmp_path / "s.json")
        store.set("a", "1")
        store.set("b", "2")
        assert store.get("a") == "1"

    def test_corrupt_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "s.json"
        path.write_text("{oops")
        with pytest.raises(SettingsError):
            JsonSettingsStore(path).get("k")


class TestBackupScheduler:
    """Tests for BackupScheduler."""

    def test_due_when_never_backed_up(
        self, settings: MemorySettingsStore, clock: FakeClock
    ) -> None:
        assert BackupScheduler(settings, clock=clock).is_due()

    def test_not_due_within_interval(
        self, settings: MemorySettingsStore, clock: FakeClock
    ) -> None:
        scheduler = BackupScheduler(settings, clock=clock)
        scheduler.record_backup()
        clock.advance(hours=23, minutes=59)
        assert not scheduler.is_due()

    def test_due_after_interval(self, settings: MemorySettingsStore, clock: FakeClock) -> None:
        scheduler = BackupScheduler(settings, clock=clock)
        scheduler.record_backup()
        clock.advance(hours=24, seconds=1)
        assert scheduler.is_due()

    def test_custom_interval(self, settings: MemorySettingsStore, clock: FakeClock) -> None:
        scheduler = BackupScheduler(settings, interval=timedelta(hours=1), clock=clock)
        scheduler.record_backup()
        clock.advance(hours=2)
        assert scheduler.is_due()

    def test_record_persists_iso_time(
        self, settings: MemorySettingsStore, clock: FakeClock
    ) -> None:
        scheduler = BackupScheduler(settings, clock=clock)
        scheduler.record_backup()
        assert settings.values[LAST_AUTO_BACKUP_KEY] == clock.now.isoformat()
        assert scheduler.last_backup() == clock.now

    def test_naive_timestamp_treated_as_utc(
        self, settings: MemorySettingsStore, clock: FakeClock
    ) -> None:
        settings.values[LAST_AUTO_BACKUP_KEY] = "2026-10-19T08:00:00"
        scheduler = BackupScheduler(settings, clock=clock)
        assert scheduler.last_backup() == datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
        assert not scheduler.is_due()

    def test_bad_timestamp_is_not_due(
        self, settings: MemorySettingsStore, clock: FakeClock
    ) -> None:
        """An unreadable timestamp reports not due instead of raising."""
        settings.values[LAST_AUTO_BACKUP_KEY] = "yesterday-ish"
        scheduler = BackupScheduler(settings, clock=clock)

        assert not scheduler.is_due()
        with pytest.raises(SettingsError):
            scheduler.last_backup()

    def test_corrupt_settings_file_is_not_due(self, tmp_path: Path, clock: FakeClock) -> None:
        path = tmp_path / "settings.json"
        path.write_text("[not, an, object")
        assert not BackupScheduler(JsonSettingsStore(path), clock=clock).is_due()
