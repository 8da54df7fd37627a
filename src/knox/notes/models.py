"""Tracked note record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class TrackedNote:
    """A note whose expiry has been resolved to an absolute instant.

    ``path`` is the note's identity in the store. Both timestamps are
    timezone-aware.
    """

    path: str
    expiry_at: datetime
    tracked_at: datetime

    @property
    def filename(self) -> str:
        return Path(self.path).name
