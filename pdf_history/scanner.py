"""Revision boundary scanning and header checks."""

from __future__ import annotations

import logging
import re
from typing import Iterator, Tuple

from .exceptions import NoRevisionsFoundError, NotAPDFError
from .source import ByteSource

LOGGER = logging.getLogger("pdf_history.scanner")

EOF_MARKER = b"%%EOF"
HEADER_MARKER = b"%PDF-"
HEADER_SEARCH_LIMIT = 1024

_HEADER_VERSION = re.compile(rb"%PDF-(\d+)\.(\d+)")


def header_offset(source: ByteSource) -> int:
    """Offset of ``%PDF-`` inside the header region, or ``-1``."""

    return source.find(HEADER_MARKER, 0, HEADER_SEARCH_LIMIT)


def is_pdf(source: ByteSource) -> bool:
    return header_offset(source) != -1


def ensure_pdf(source: ByteSource) -> None:
    if not is_pdf(source):
        raise NotAPDFError(f"'{source.name or 'input'}' specified is not a valid PDF")


def read_header_version(source: ByteSource) -> Tuple[int, int]:
    """Return ``(major, minor)`` from the ``%PDF-M.m`` header, ``(0, 0)`` if unreadable."""

    offset = header_offset(source)
    if offset == -1:
        return 0, 0
    match = _HEADER_VERSION.match(source.read_at(offset, 16))
    if not match:
        return 0, 0
    return int(match.group(1)), int(match.group(2))


def iter_eof_markers(source: ByteSource) -> Iterator[int]:
    """Lazily yield the offset of every ``%%EOF`` marker, front to back.

    Each call starts a fresh scan from offset 0.
    """

    position = 0
    while True:
        found = source.find(EOF_MARKER, position)
        if found == -1:
            return
        yield found
        position = found + len(EOF_MARKER)


def find_boundaries(source: ByteSource) -> list[int]:
    """Return all revision boundaries, raising if there are none."""

    boundaries = list(iter_eof_markers(source))
    if not boundaries:
        raise NoRevisionsFoundError(f"No %%EOF markers found in '{source.name or 'input'}'")
    LOGGER.debug("Found %d revision boundaries", len(boundaries))
    return boundaries


__all__ = [
    "EOF_MARKER",
    "HEADER_SEARCH_LIMIT",
    "ensure_pdf",
    "find_boundaries",
    "is_pdf",
    "iter_eof_markers",
    "read_header_version",
]
