"""Cross-reference section location and plaintext table parsing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .exceptions import CorruptEntryTableError, InvalidXrefError
from .objects import adhoc_table, extract_object, read_object_header
from .scanner import EOF_MARKER
from .source import ByteSource
from .types import ObjectEntry, Revision, XrefKind

LOGGER = logging.getLogger("pdf_history.xref")

STARTXREF = b"startxref"
XREF = b"xref"
TRAILER = b"trailer"
SIZE = b"/Size"

_SUBSECTION = re.compile(rb"^[\x00\t\x0c ]*(\d+)[\x00\t\x0c ]+(\d+)[\x00\t\x0c ]*$")
_ENTRY = re.compile(rb"^(\d{10}) (\d{5}) ([fn])[\x00\t\x0c ]*$")
_LINE_BREAK = re.compile(rb"[\r\n]+")
ENTRY_MIN_LENGTH = 18
ENTRY_MAX_LENGTH = 20


@dataclass
class XrefLocation:
    """Where a revision's cross-reference section lives."""

    kind: XrefKind
    start: int = 0
    end: int = 0


def read_startxref(source: ByteSource, boundary: int, lower: int = 0) -> Optional[int]:
    """Return the ``startxref`` value preceding the marker at ``boundary``.

    The keyword is searched backward from ``boundary`` but never before
    ``lower``; ``None`` means no keyword or no numeric argument.
    """

    keyword_at = source.rfind(STARTXREF, lower, boundary)
    if keyword_at == -1:
        return None
    value_at = source.skip_whitespace(keyword_at + len(STARTXREF), boundary)
    parsed = source.read_integer(value_at, boundary)
    if parsed is None:
        return None
    return parsed[0]


def locate_xref(source: ByteSource, boundary: int, lower: int = 0) -> XrefLocation:
    """Classify what the revision ending at ``boundary`` points at.

    Raises :class:`InvalidXrefError` when the revision cannot be used; its
    ``is_linear`` attribute tells callers whether to keep that flag on the
    placeholder.
    """

    offset = read_startxref(source, boundary, lower)
    if offset is None:
        raise InvalidXrefError(f"No startxref value before offset {boundary}")

    if offset == 0:
        return _locate_linear_xref(source, boundary)

    if offset >= source.size:
        raise InvalidXrefError(f"startxref {offset} points past the end of the file")

    if source.read_at(offset, len(XREF)) == XREF:
        end = source.find(EOF_MARKER, offset)
        if end == -1:
            raise InvalidXrefError(f"No %%EOF after xref table at {offset}")
        LOGGER.debug("Plaintext xref table at %d (end %d)", offset, end)
        return XrefLocation(XrefKind.TABLE, start=offset, end=end)

    header = read_object_header(source, offset)
    if header is not None:
        obj_id = header[0]
        extracted = extract_object(source, obj_id, adhoc_table(obj_id, offset))
        if extracted is not None and extracted.is_stream:
            end = source.find(EOF_MARKER, offset)
            LOGGER.debug("Cross-reference stream object %d at %d", obj_id, offset)
            return XrefLocation(XrefKind.STREAM, start=offset, end=boundary if end == -1 else end)

    raise InvalidXrefError(f"startxref {offset} does not point at an xref section")


def _locate_linear_xref(source: ByteSource, boundary: int) -> XrefLocation:
    trailer_at = source.rfind(TRAILER, 0, boundary)
    if trailer_at == -1:
        raise InvalidXrefError("Linearized revision has no trailer", is_linear=True)
    xref_at = source.rfind(XREF, 0, trailer_at)
    if xref_at == -1:
        raise InvalidXrefError("Linearized revision has no xref keyword", is_linear=True)
    LOGGER.debug("Linearized header xref table at %d", xref_at)
    return XrefLocation(XrefKind.LINEAR, start=xref_at, end=boundary)


def read_declared_size(source: ByteSource, revision: Revision) -> int:
    """Return the trailer ``/Size`` of a plaintext revision."""

    trailer_at = source.find(TRAILER, revision.start, revision.end)
    if trailer_at == -1:
        raise CorruptEntryTableError(f"No trailer for xref table at {revision.start}")
    size_at = source.rfind(SIZE, trailer_at, revision.end)
    if size_at == -1:
        raise CorruptEntryTableError(f"Trailer at {trailer_at} has no /Size")
    value_at = source.skip_whitespace(size_at + len(SIZE), revision.end)
    parsed = source.read_integer(value_at, revision.end)
    if parsed is None:
        raise CorruptEntryTableError(f"Unreadable /Size in trailer at {trailer_at}")
    return parsed[0]


def parse_xref_entries(source: ByteSource, revision: Revision) -> list[ObjectEntry]:
    """Parse the plaintext xref table of ``revision``.

    At most ``/Size`` entries are read; scanning also stops at the
    ``trailer`` keyword. A later entry for an id already seen in the same
    table replaces the earlier one in place.
    """

    declared = read_declared_size(source, revision)
    revision.declared_size = declared

    trailer_at = source.find(TRAILER, revision.start, revision.end)
    body = source.read_range(revision.start + len(XREF), trailer_at)

    entries: list[ObjectEntry] = []
    positions: dict[int, int] = {}
    next_id: Optional[int] = None
    parsed = 0
    for line in _LINE_BREAK.split(body):
        if parsed >= declared:
            break
        if not line.strip():
            continue
        if TRAILER in line:
            break

        if len(line.rstrip()) < ENTRY_MIN_LENGTH:
            header = _SUBSECTION.match(line)
            if header is None:
                raise CorruptEntryTableError(
                    f"Malformed xref subsection header {line!r} in table at {revision.start}"
                )
            next_id = int(header.group(1))
            continue

        match = _ENTRY.match(line)
        if match is None or len(line) > ENTRY_MAX_LENGTH:
            raise CorruptEntryTableError(f"Malformed xref entry {line!r} in table at {revision.start}")
        if next_id is None:
            raise CorruptEntryTableError(f"Xref entry before any subsection header at {revision.start}")

        entry = ObjectEntry(
            obj_id=next_id,
            offset=int(match.group(1)),
            generation=int(match.group(2)),
            in_use=match.group(3) == b"n",
        )
        if next_id in positions:
            entries[positions[next_id]] = entry
        else:
            positions[next_id] = len(entries)
            entries.append(entry)
        next_id += 1
        parsed += 1

    LOGGER.debug(
        "Parsed %d of %d declared entries from table at %d", parsed, declared, revision.start
    )
    return entries


__all__ = [
    "XrefLocation",
    "locate_xref",
    "parse_xref_entries",
    "read_declared_size",
    "read_startxref",
]
