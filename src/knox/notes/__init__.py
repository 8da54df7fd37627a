"""Note parsing: duration grammar, frontmatter extraction, inbox scanning."""

from knox.notes.duration import InvalidDurationFormat, UnknownDurationUnit, parse_duration
from knox.notes.header import extract_header
from knox.notes.models import TrackedNote
from knox.notes.scanner import (
    ScanResult,
    SkippedNoField,
    SkippedParseError,
    Tracked,
    scan_inbox,
)

__all__ = [
    "InvalidDurationFormat",
    "ScanResult",
    "SkippedNoField",
    "SkippedParseError",
    "Tracked",
    "TrackedNote",
    "UnknownDurationUnit",
    "extract_header",
    "parse_duration",
    "scan_inbox",
]
