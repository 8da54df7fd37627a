"""Exceptions shared across Knox."""

from __future__ import annotations


class KnoxError(Exception):
    """Base class for Knox failures."""


class ScanError(KnoxError):
    """The inbox folder could not be enumerated."""


class StorageError(KnoxError):
    """The expiry store could not be opened or an operation on it failed."""
