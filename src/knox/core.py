"""Knox orchestrator — one batch pass over the inbox.

Steps:
1. Scan the inbox and resolve every ``expiry_date`` against "now"
2. Upsert tracked notes into the expiry store
3. Delete (or, in dry-run mode, only report) expired notes
4. Regenerate the reminder note for notes expiring within the window
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from knox.config import KnoxConfig
from knox.errors import StorageError
from knox.notes.models import TrackedNote
from knox.notes.scanner import ScanResult, SkippedNoField, SkippedParseError, Tracked, scan_inbox
from knox.reminders import write_reminder
from knox.store import ExpiryStore

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """What a single run saw and did."""

    now: datetime
    scanned: list[ScanResult] = field(default_factory=list)
    track_failures: list[str] = field(default_factory=list)
    expired: list[TrackedNote] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    expiring: list[TrackedNote] = field(default_factory=list)
    reminder_written: bool = False

    @property
    def tracked(self) -> list[TrackedNote]:
        return [r.note for r in self.scanned if isinstance(r, Tracked)]

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.scanned if isinstance(r, SkippedNoField))

    @property
    def errors(self) -> list[SkippedParseError]:
        return [r for r in self.scanned if isinstance(r, SkippedParseError)]


class Knox:
    """Runs the scan → track → expire → remind pipeline against one store."""

    def __init__(self, config: KnoxConfig, store: ExpiryStore) -> None:
        self.config = config
        self.store = store

    def run(self, now: datetime | None = None) -> RunSummary:
        """Execute one batch pass.

        Raises:
            ScanError: the inbox cannot be listed.
            StorageError: the expired-notes query fails.
            ValueError: ``now`` is a naive datetime.
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            raise ValueError(f"run time must be timezone-aware: {now!r}")
        summary = RunSummary(now=now)

        summary.scanned = scan_inbox(self.config.inbox_dir, now=now)
        self._track(summary)

        summary.expired = self.store.expired(now)
        self._expire(summary)

        self._remind(summary)
        logger.info(
            "Run complete: %d tracked, %d skipped, %d error(s), %d expired, %d expiring",
            len(summary.tracked),
            summary.skipped,
            len(summary.errors),
            len(summary.expired),
            len(summary.expiring),
        )
        return summary

    # ── Steps ────────────────────────────────────────────────

    def _track(self, summary: RunSummary) -> None:
        for note in summary.tracked:
            try:
                self.store.upsert(note)
            except StorageError as e:
                logger.error("Failed to track note %s: %s", note.path, e)
                summary.track_failures.append(note.path)

    def _expire(self, summary: RunSummary) -> None:
        if self.config.dry_run:
            for note in summary.expired:
                logger.info("Dry run: would delete %s", note.path)
            return

        for note in summary.expired:
            try:
                Path(note.path).unlink()
            except OSError as e:
                logger.error("Failed to delete %s: %s", note.path, e)
                continue
            try:
                self.store.delete(note.path)
            except StorageError as e:
                logger.error("Failed to remove %s from store: %s", note.path, e)
                continue
            logger.info("Deleted expired note %s", note.path)
            summary.deleted.append(note.path)

    def _remind(self, summary: RunSummary) -> None:
        try:
            summary.expiring = self.store.expiring_within(
                self.config.reminder_window, summary.now
            )
        except StorageError as e:
            logger.error("Failed to get expiring notes: %s", e)
            return

        try:
            summary.reminder_written = write_reminder(
                self.config.reminder_path, summary.expiring, summary.now
            )
        except OSError as e:
            logger.error("Failed to write reminder note: %s", e)
