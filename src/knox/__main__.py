"""Entry point: python -m knox [--dry-run] [--db PATH] [--inbox PATH]

Runs one batch pass over the inbox. Exits non-zero only when the store
cannot be opened or the inbox cannot be read; problems with individual
notes are logged and do not change the exit status.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from knox.config import load_config
from knox.core import Knox, RunSummary
from knox.errors import KnoxError
from knox.notes.duration import format_duration
from knox.store import ExpiryStore

logger = logging.getLogger("knox")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knox",
        description="Track fleeting notes and delete them once their expiry_date has passed.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Don't delete, just show what would be deleted.",
    )
    parser.add_argument("--db", type=Path, default=None, help="Path to the SQLite database.")
    parser.add_argument("--inbox", type=Path, default=None, help="Folder holding fleeting notes.")
    parser.add_argument("--config", type=Path, default=None, help="Path to knox.toml.")
    return parser


def _report(summary: RunSummary, dry_run: bool) -> None:
    if summary.expired:
        print(f"Found {len(summary.expired)} expired note(s)")
        for note in summary.expired:
            if dry_run:
                status = "dry run"
            elif note.path in summary.deleted:
                status = "deleted"
            else:
                status = "kept"
            expired_at = note.expiry_at.isoformat(timespec="seconds")
            print(f"  - {note.path} (expired at {expired_at}) [{status}]")
    else:
        print("No expired notes found")

    if summary.reminder_written:
        print(f"Updated reminder note ({len(summary.expiring)} note(s) expiring soon)")


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (ValueError, OSError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if args.dry_run is not None:
        config.dry_run = args.dry_run
    if args.db is not None:
        config.db_path = args.db.expanduser()
    if args.inbox is not None:
        config.inbox_dir = args.inbox.expanduser()

    _setup_logging(config.log_level)
    logger.info(
        "Inbox: %s, store: %s, reminder window: %s%s",
        config.inbox_dir,
        config.db_path,
        format_duration(config.reminder_window),
        " (dry run)" if config.dry_run else "",
    )

    try:
        with ExpiryStore(config.db_path) as store:
            summary = Knox(config, store).run()
    except KnoxError as e:
        logger.error("%s", e)
        sys.exit(1)

    _report(summary, config.dry_run)


if __name__ == "__main__":
    main()
