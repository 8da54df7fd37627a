"""Tests for the Knox batch run."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from knox.config import KnoxConfig
from knox.core import Knox
from knox.errors import ScanError, StorageError
from knox.notes.scanner import SkippedParseError
from knox.store import ExpiryStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def config(tmp_path: Path) -> KnoxConfig:
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    return KnoxConfig(inbox_dir=inbox, db_path=tmp_path / "knox.db")


@pytest.fixture
def store(config: KnoxConfig):
    s = ExpiryStore(config.db_path)
    yield s
    s.close()


@pytest.fixture
def knox(config: KnoxConfig, store: ExpiryStore) -> Knox:
    return Knox(config, store)


def _write(config: KnoxConfig, name: str, text: str) -> Path:
    path = config.inbox_dir / name
    path.write_text(text, encoding="utf-8")
    return path


class TestTracking:
    def test_expired_after_one_second(self, config, store, knox):
        a = _write(config, "a.md", "---\nexpiry_date: 1s\n---\nfleeting\n")
        b = _write(config, "b.md", "no header at all\n")
        config.dry_run = True

        knox.run(now=NOW)
        expired = store.expired(NOW + timedelta(seconds=1))

        assert [n.path for n in expired] == [str(a)]
        assert store.get(str(b)) is None
        assert store.count() == 1

    def test_rerun_recomputes_from_now(self, config, store, knox):
        a = _write(config, "a.md", "---\nexpiry_date: 7d\n---\n")
        knox.run(now=NOW)
        second = NOW + timedelta(seconds=2)
        knox.run(now=second)

        assert store.count() == 1
        note = store.get(str(a))
        assert note.tracked_at == second
        assert note.expiry_at == second + timedelta(days=7)

    def test_removed_field_keeps_record(self, config, store, knox):
        a = _write(config, "a.md", "---\nexpiry_date: 3d\n---\n")
        knox.run(now=NOW)
        a.write_text("---\ntitle: keep me\n---\n", encoding="utf-8")
        knox.run(now=NOW + timedelta(hours=1))

        note = store.get(str(a))
        assert note is not None
        assert note.expiry_at == NOW + timedelta(days=3)

    def test_parse_errors_reported(self, config, knox):
        _write(config, "bad.md", "---\nexpiry_date: tomorrow\n---\n")
        summary = knox.run(now=NOW)
        assert len(summary.errors) == 1
        assert isinstance(summary.errors[0], SkippedParseError)
        assert summary.tracked == []

    def test_upsert_failure_does_not_abort(self, config, store, knox, monkeypatch):
        a = _write(config, "a.md", "---\nexpiry_date: 1d\n---\n")
        b = _write(config, "b.md", "---\nexpiry_date: 2d\n---\n")
        real_upsert = store.upsert

        def flaky(note):
            if note.path == str(a):
                raise StorageError("disk full")
            real_upsert(note)

        monkeypatch.setattr(store, "upsert", flaky)
        summary = knox.run(now=NOW)

        assert summary.track_failures == [str(a)]
        assert store.get(str(b)) is not None

    def test_missing_inbox_is_fatal(self, config, knox):
        config.inbox_dir.rmdir()
        with pytest.raises(ScanError):
            knox.run(now=NOW)


class TestExpiry:
    def test_deletes_file_and_record(self, config, store, knox):
        a = _write(config, "a.md", "---\nexpiry_date: 1h\n---\n")
        knox.run(now=NOW)
        a.write_text("no header any more\n", encoding="utf-8")

        later = NOW + timedelta(hours=2)
        summary = knox.run(now=later)

        assert [n.path for n in summary.expired] == [str(a)]
        assert summary.deleted == [str(a)]
        assert not a.exists()
        assert store.get(str(a)) is None

    def test_dry_run_keeps_everything(self, config, store, knox):
        a = _write(config, "a.md", "---\nexpiry_date: 1h\n---\n")
        knox.run(now=NOW)
        config.dry_run = True

        # without the field the rescan leaves the stored expiry alone
        a.write_text("no header any more\n", encoding="utf-8")
        summary = knox.run(now=NOW + timedelta(hours=2))

        assert [n.path for n in summary.expired] == [str(a)]
        assert summary.deleted == []
        assert a.exists()
        assert store.get(str(a)) is not None

    def test_failed_file_delete_keeps_record(self, config, store, knox, monkeypatch):
        a = _write(config, "a.md", "---\nexpiry_date: 1h\n---\n")
        knox.run(now=NOW)
        a.write_text("untracked now\n", encoding="utf-8")

        real_unlink = Path.unlink

        def refuse(self, *args, **kwargs):
            if self == a:
                raise PermissionError(f"cannot delete {self}")
            real_unlink(self, *args, **kwargs)

        deleted_from_store = []
        monkeypatch.setattr(Path, "unlink", refuse)
        monkeypatch.setattr(store, "delete", deleted_from_store.append)

        summary = knox.run(now=NOW + timedelta(hours=2))
        assert summary.deleted == []
        assert deleted_from_store == []
        assert a.exists()
        assert store.get(str(a)) is not None

    def test_store_delete_failure_logged(self, config, store, knox, monkeypatch):
        a = _write(config, "a.md", "---\nexpiry_date: 1h\n---\n")
        knox.run(now=NOW)
        a.write_text("untracked now\n", encoding="utf-8")

        def broken(path):
            raise StorageError("locked")

        monkeypatch.setattr(store, "delete", broken)
        summary = knox.run(now=NOW + timedelta(hours=2))
        assert summary.deleted == []
        assert not a.exists()

    def test_expired_query_failure_is_fatal(self, config, store, knox, monkeypatch):
        def broken(now=None):
            raise StorageError("connection lost")

        monkeypatch.setattr(store, "expired", broken)
        with pytest.raises(StorageError):
            knox.run(now=NOW)


class TestReminder:
    def test_written_for_expiring_notes(self, config, knox):
        _write(config, "soon.md", "---\nexpiry_date: 2h\n---\n")
        _write(config, "later.md", "---\nexpiry_date: 30d\n---\n")
        summary = knox.run(now=NOW)

        assert summary.reminder_written is True
        assert [Path(n.path).name for n in summary.expiring] == ["soon.md"]
        text = config.reminder_path.read_text(encoding="utf-8")
        assert "[[soon.md]]" in text
        assert "later.md" not in text

    def test_removed_when_nothing_expiring(self, config, knox):
        _write(config, "later.md", "---\nexpiry_date: 30d\n---\n")
        config.reminder_path.write_text("stale", encoding="utf-8")
        summary = knox.run(now=NOW)

        assert summary.reminder_written is False
        assert not config.reminder_path.exists()

    def test_reminder_note_is_not_tracked(self, config, store, knox):
        _write(config, "soon.md", "---\nexpiry_date: 2h\n---\n")
        knox.run(now=NOW)
        knox.run(now=NOW + timedelta(minutes=1))
        assert store.get(str(config.reminder_path)) is None
        assert store.count() == 1

    def test_query_failure_not_fatal(self, config, store, knox, monkeypatch):
        def broken(window, now=None):
            raise StorageError("connection lost")

        monkeypatch.setattr(store, "expiring_within", broken)
        summary = knox.run(now=NOW)
        assert summary.reminder_written is False


class TestRunTime:
    def test_naive_now_rejected(self, config, store, knox):
        _write(config, "a.md", "---\nexpiry_date: 1h\n---\n")
        with pytest.raises(ValueError):
            knox.run(now=datetime(2026, 10, 19, 12, 0))
        assert store.count() == 0

    def test_huge_reminder_window(self, config, knox):
        _write(config, "a.md", "---\nexpiry_date: 30d\n---\n")
        config.reminder_window = timedelta(days=999_999_999)
        summary = knox.run(now=NOW)
        assert [Path(n.path).name for n in summary.expiring] == ["a.md"]
