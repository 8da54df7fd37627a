"""Expiry store using SQLite.

One table maps a note path to its absolute expiry and the last time a scan
saw it. Timestamps are kept as UTC ISO-8601 text at fixed microsecond
precision so that string comparison in SQL is chronological.

All operations go through one connection guarded by one lock. Every write
commits before the lock is released, so a query never sees half a write.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

from knox.errors import StorageError
from knox.notes.models import TrackedNote

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS notes (
    note_path TEXT PRIMARY KEY,
    expiry_datetime TEXT NOT NULL,
    tracked_at TEXT NOT NULL
)
"""

_UPSERT = """
INSERT INTO notes (note_path, expiry_datetime, tracked_at)
VALUES (?, ?, ?)
ON CONFLICT(note_path) DO UPDATE SET
    expiry_datetime = excluded.expiry_datetime,
    tracked_at = excluded.tracked_at
"""


def _to_db(ts: datetime) -> str:
    if ts.tzinfo is None:
        raise ValueError(f"timestamp must be timezone-aware: {ts!r}")
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db(text: str) -> datetime:
    return datetime.fromisoformat(text)


def _row_to_note(row: sqlite3.Row) -> TrackedNote:
    return TrackedNote(
        path=row["note_path"],
        expiry_at=_from_db(row["expiry_datetime"]),
        tracked_at=_from_db(row["tracked_at"]),
    )


class ExpiryStore:
    """Durable mapping from note path to expiry time."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None
        self._open()

    # ── Lifecycle ─────────────────────────────────────────────

    def _open(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"cannot open store {self.db_path}: {e}") from e

        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(_SCHEMA)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_notes_expiry ON notes(expiry_datetime)"
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.close()
            raise StorageError(f"cannot initialize store {self.db_path}: {e}") from e

        self._conn = conn
        logger.debug("Expiry store opened: %s", self.db_path)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> ExpiryStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError(f"store is closed: {self.db_path}")
        return self._conn

    # ── Writes ────────────────────────────────────────────────

    def upsert(self, note: TrackedNote) -> None:
        """Insert ``note`` or overwrite both timestamps of an existing record."""
        params = (note.path, _to_db(note.expiry_at), _to_db(note.tracked_at))
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.execute(_UPSERT, params)
            except sqlite3.Error as e:
                raise StorageError(f"failed to track {note.path}: {e}") from e

    def delete(self, path: str) -> None:
        """Forget ``path``. Deleting an unknown path does nothing."""
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.execute("DELETE FROM notes WHERE note_path = ?", (path,))
            except sqlite3.Error as e:
                raise StorageError(f"failed to remove {path}: {e}") from e

    # ── Queries ───────────────────────────────────────────────

    def _select(self, sql: str, params: tuple = ()) -> list[TrackedNote]:
        with self._lock:
            conn = self._connection()
            try:
                rows = conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"query failed on {self.db_path}: {e}") from e
        return [_row_to_note(row) for row in rows]

    def get(self, path: str) -> TrackedNote | None:
        notes = self._select(
            "SELECT note_path, expiry_datetime, tracked_at FROM notes WHERE note_path = ?",
            (path,),
        )
        return notes[0] if notes else None

    def count(self) -> int:
        with self._lock:
            conn = self._connection()
            try:
                return conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]
            except sqlite3.Error as e:
                raise StorageError(f"query failed on {self.db_path}: {e}") from e

    def expired(self, now: datetime | None = None) -> list[TrackedNote]:
        """Notes whose expiry is at or before ``now``. Order is unspecified."""
        now = now or datetime.now(timezone.utc)
        return self._select(
            "SELECT note_path, expiry_datetime, tracked_at FROM notes "
            "WHERE expiry_datetime <= ?",
            (_to_db(now),),
        )

    def expiring_within(
        self, window: timedelta, now: datetime | None = None
    ) -> list[TrackedNote]:
        """Notes expiring in ``(now, now + window]``, soonest first."""
        now = now or datetime.now(timezone.utc)
        try:
            deadline = now + window
        except OverflowError:
            deadline = datetime.max.replace(tzinfo=timezone.utc)
        return self._select(
            "SELECT note_path, expiry_datetime, tracked_at FROM notes "
            "WHERE expiry_datetime > ? AND expiry_datetime <= ? "
            "ORDER BY expiry_datetime ASC",
            (_to_db(now), _to_db(deadline)),
        )
