"""Inbox scanning: one ``ScanResult`` per Markdown note.

Every candidate file ends up in exactly one of three outcomes:

- ``Tracked``           — a valid ``expiry_date`` was found
- ``SkippedNoField``    — no header, no field, or a non-string value
- ``SkippedParseError`` — the file could not be read or decoded, or the
                          duration did not parse

A bad note never stops the scan. Only failing to list the folder does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

import yaml
from frontmatter import YAMLHandler

from knox.errors import ScanError
from knox.notes.duration import InvalidDurationFormat, parse_duration
from knox.notes.header import extract_header
from knox.notes.models import TrackedNote

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"
EXPIRY_FIELD = "expiry_date"

_yaml = YAMLHandler()


@dataclass(frozen=True)
class Tracked:
    note: TrackedNote

    @property
    def path(self) -> str:
        return self.note.path


@dataclass(frozen=True)
class SkippedNoField:
    path: str


@dataclass(frozen=True)
class SkippedParseError:
    path: str
    reason: str


ScanResult = Union[Tracked, SkippedNoField, SkippedParseError]


def scan_inbox(folder: Path, now: datetime | None = None) -> list[ScanResult]:
    """Examine every ``*.md`` file directly inside ``folder``.

    All notes in one scan share the same ``now``. Results follow directory
    order, which is platform dependent.

    Raises:
        ScanError: if the folder cannot be listed.
    """
    now = now or datetime.now(timezone.utc)
    try:
        entries = list(folder.iterdir())
    except OSError as e:
        raise ScanError(f"failed to read inbox {folder}: {e}") from e

    results: list[ScanResult] = []
    for entry in entries:
        if not entry.name.endswith(NOTE_SUFFIX) or not entry.is_file():
            continue
        logger.debug("Examining %s", entry.name)
        result = scan_note(entry, now)
        _log_result(entry.name, result)
        results.append(result)
    return results


def scan_note(path: Path, now: datetime) -> ScanResult:
    """Classify a single note file."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return SkippedParseError(str(path), f"cannot read note: {e}")

    header, _body = extract_header(content)
    try:
        meta = _yaml.load(header) if header else None
    except yaml.YAMLError as e:
        return SkippedParseError(str(path), f"invalid frontmatter: {e}")

    if meta is None:
        return SkippedNoField(str(path))
    if not isinstance(meta, dict):
        return SkippedParseError(
            str(path), f"frontmatter is not a mapping ({type(meta).__name__})"
        )

    value = meta.get(EXPIRY_FIELD)
    if not isinstance(value, str):
        return SkippedNoField(str(path))

    try:
        duration = parse_duration(value)
    except InvalidDurationFormat as e:
        return SkippedParseError(str(path), f"invalid {EXPIRY_FIELD} format: {e}")

    try:
        expiry_at = now + duration
    except OverflowError:
        return SkippedParseError(str(path), f"{EXPIRY_FIELD} {value!r} is out of range")

    return Tracked(TrackedNote(path=str(path), expiry_at=expiry_at, tracked_at=now))


def _log_result(name: str, result: ScanResult) -> None:
    if isinstance(result, Tracked):
        logger.info("Tracked %s (expires %s)", name, result.note.expiry_at.isoformat(timespec="seconds"))
    elif isinstance(result, SkippedParseError):
        logger.warning("Skipped %s: %s", name, result.reason)
    else:
        logger.info("Skipped %s: no %s field", name, EXPIRY_FIELD)
