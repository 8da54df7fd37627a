"""Knox — expiry tracking for fleeting notes.

A run scans an inbox folder for Markdown notes carrying a relative
``expiry_date`` in their frontmatter, records absolute expiry times in a
SQLite store, deletes (or reports) expired notes and keeps a reminder note
listing the ones about to expire.
"""

__version__ = "0.1.0"
