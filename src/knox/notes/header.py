"""Split a note into its frontmatter block and body."""

from __future__ import annotations

DELIMITER = "---"


def extract_header(text: str) -> tuple[str, str]:
    """Return ``(header, body)`` for a note's raw text.

    The header is whatever sits between a leading ``---`` and the next
    ``---``, stripped. A note that does not open with the delimiter, or
    never closes it, has no header: ``("", text)`` comes back unchanged.
    """
    if not text.startswith(DELIMITER):
        return "", text

    rest = text[len(DELIMITER):]
    end = rest.find(DELIMITER)
    if end == -1:
        return "", text

    header = rest[:end]
    body = rest[end + len(DELIMITER):]
    return header.strip(), body.strip()
