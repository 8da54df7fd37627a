"""Reminder note listing notes that expire soon.

The reminder lives inside the inbox and is rewritten on every run. When
nothing is about to expire it is removed rather than left empty.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import frontmatter

from knox.notes.models import TrackedNote

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Expiry Reminders"
REMINDER_TAGS = ["system"]


def _remaining(note: TrackedNote, now: datetime) -> tuple[int, int]:
    """Whole days and leftover whole hours until ``note`` expires."""
    seconds = max(int((note.expiry_at - now).total_seconds()), 0)
    return seconds // 86400, (seconds // 3600) % 24


def render_reminder(notes: list[TrackedNote], now: datetime) -> str:
    """Render the reminder note for ``notes``, which should be soonest first."""
    lines = [
        "# Notes Expiring Soon",
        "",
        f"Last updated: {now.astimezone().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ]
    for note in notes:
        days, hours = _remaining(note, now)
        expires = note.expiry_at.astimezone().strftime("%Y-%m-%d %H:%M")
        lines.append(f"- [[{note.filename}]] - Expires in {days}d {hours}h ({expires})")

    post = frontmatter.Post("\n".join(lines), title=REMINDER_TITLE, tags=list(REMINDER_TAGS))
    return frontmatter.dumps(post) + "\n"


def write_reminder(path: Path, notes: list[TrackedNote], now: datetime) -> bool:
    """Write the reminder to ``path``, or remove it when ``notes`` is empty.

    Returns True if a reminder was written.
    """
    if not notes:
        if path.exists():
            path.unlink()
            logger.info("No notes expiring soon, removed %s", path)
        return False

    path.write_text(render_reminder(notes, now), encoding="utf-8")
    logger.info("Reminder written: %s (%d note(s))", path, len(notes))
    return True
