"""Configuration loading from environment variables and knox.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from datetime import timedelta

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from knox.notes.duration import parse_duration

_DEFAULT_HOME = Path.home() / ".knox"
_DEFAULT_INBOX = Path.home() / "notes" / "inbox"
_DEFAULT_WINDOW = "7d"
_CONFIG_FILENAME = "knox.toml"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class KnoxConfig:
    """Top-level Knox configuration."""

    inbox_dir: Path = _DEFAULT_INBOX
    db_path: Path = _DEFAULT_HOME / "knox.db"
    reminder_window: timedelta = field(default_factory=lambda: parse_duration(_DEFAULT_WINDOW))
    reminder_filename: str = "_expiry-reminders.md"
    dry_run: bool = False
    log_level: str = "INFO"

    @property
    def reminder_path(self) -> Path:
        return self.inbox_dir / self.reminder_filename


def _as_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def load_config(config_path: Path | None = None) -> KnoxConfig:
    """Load configuration from environment variables and optional knox.toml.

    Priority: environment variables > knox.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.knox/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_HOME / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    inbox = os.getenv("KNOX_INBOX", file_data.get("inbox_dir", str(_DEFAULT_INBOX)))
    db = os.getenv("KNOX_DB", file_data.get("db_path", str(_DEFAULT_HOME / "knox.db")))
    window = os.getenv(
        "KNOX_REMINDER_WINDOW", file_data.get("reminder_window", _DEFAULT_WINDOW)
    )

    return KnoxConfig(
        inbox_dir=Path(inbox).expanduser(),
        db_path=Path(db).expanduser(),
        reminder_window=parse_duration(window),
        reminder_filename=os.getenv(
            "KNOX_REMINDER_FILE", file_data.get("reminder_filename", "_expiry-reminders.md")
        ),
        dry_run=_as_bool(os.getenv("KNOX_DRY_RUN", file_data.get("dry_run", False))),
        log_level=os.getenv("KNOX_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
