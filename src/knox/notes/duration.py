"""Relative duration grammar used by the ``expiry_date`` field.

Grammar::

    duration := digit+ unit
    unit     := "s" | "m" | "h" | "d"

``"30d"`` is thirty days, ``"2h"`` two hours. The whole value may be padded
with whitespace (YAML values often are), but nothing may sit between the
numeral and the unit.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum

_DIGITS = frozenset("0123456789")


class InvalidDurationFormat(ValueError):
    """The text does not match ``<positive integer><unit>``."""


class UnknownDurationUnit(InvalidDurationFormat):
    """The unit suffix is not one of s, m, h, d."""


class DurationUnit(Enum):
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"
    DAYS = "d"

    @property
    def seconds(self) -> int:
        return _UNIT_SECONDS[self]

    @classmethod
    def from_suffix(cls, suffix: str) -> DurationUnit:
        try:
            return cls(suffix)
        except ValueError:
            raise UnknownDurationUnit(f"unknown duration unit: {suffix!r}") from None


_UNIT_SECONDS = {
    DurationUnit.SECONDS: 1,
    DurationUnit.MINUTES: 60,
    DurationUnit.HOURS: 60 * 60,
    DurationUnit.DAYS: 24 * 60 * 60,
}


def parse_duration(text: str) -> timedelta:
    """Parse a compact duration such as ``"7d"`` into a ``timedelta``.

    Raises:
        InvalidDurationFormat: if ``text`` is not a positive integer followed
            by exactly one unit letter. Unknown unit letters raise the
            ``UnknownDurationUnit`` subclass.
    """
    if not isinstance(text, str):
        raise InvalidDurationFormat(f"invalid duration format: {text!r}")

    s = text.strip()
    if len(s) < 2:
        raise InvalidDurationFormat(f"invalid duration format: {text!r}")

    numeral, suffix = s[:-1], s[-1]
    if not set(numeral) <= _DIGITS:
        raise InvalidDurationFormat(f"invalid duration format: {text!r}")
    if suffix in _DIGITS:
        # "30" has no unit at all
        raise InvalidDurationFormat(f"invalid duration format: {text!r}")

    unit = DurationUnit.from_suffix(suffix)
    count = int(numeral)
    if count == 0:
        raise InvalidDurationFormat(f"duration must be positive: {text!r}")
    try:
        return timedelta(seconds=count * unit.seconds)
    except OverflowError:
        raise InvalidDurationFormat(f"duration too large: {text!r}") from None


def format_duration(span: timedelta) -> str:
    """Render ``span`` in the largest unit that divides it exactly ("7d", "90m")."""
    total = int(span.total_seconds())
    for unit in (DurationUnit.DAYS, DurationUnit.HOURS, DurationUnit.MINUTES):
        if total and total % unit.seconds == 0:
            return f"{total // unit.seconds}{unit.value}"
    return f"{total}{DurationUnit.SECONDS.value}"
