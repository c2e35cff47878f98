"""Raw indirect object extraction.

Objects are sliced straight out of the byte source using the offsets of a
revision's xref entries; nothing is tokenized beyond locating the
terminating ``endobj`` or ``endstream`` keyword.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from .source import WHITESPACE, ByteSource
from .types import ExtractedObject, ObjectEntry

LOGGER = logging.getLogger("pdf_history.objects")

READ_BLOCK_SIZE = 256
MAX_READ_BLOCK_SIZE = 64 * 1024
MAX_TYPE_LENGTH = 32

ENDOBJ = b"endobj"
STREAM = b"stream"
ENDSTREAM = b"endstream"

_OBJECT_HEADER = re.compile(rb"[\x00\t\n\x0c\r ]*(\d+)[\x00\t\n\x0c\r ]+(\d+)[\x00\t\n\x0c\r ]+obj")
_TYPE_TERMINATORS = WHITESPACE + b"/>[]()<"


def find_entry(entries: Sequence[ObjectEntry], obj_id: int) -> Optional[ObjectEntry]:
    for entry in entries:
        if entry.obj_id == obj_id:
            return entry
    return None


def adhoc_table(obj_id: int, offset: int) -> list[ObjectEntry]:
    """Single-entry table for lookups outside any parsed revision."""

    return [ObjectEntry(obj_id=obj_id, offset=offset, generation=0, in_use=True)]


def read_object_header(source: ByteSource, offset: int) -> Optional[tuple[int, int]]:
    """Parse ``<id> <gen> obj`` at ``offset``; ``None`` if absent."""

    match = _OBJECT_HEADER.match(source.read_at(offset, 64))
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def extract_object(
    source: ByteSource,
    obj_id: int,
    entries: Sequence[ObjectEntry],
) -> Optional[ExtractedObject]:
    """Return the raw bytes of ``obj_id`` using the offsets in ``entries``.

    Reading starts at the entry's offset and grows until ``endobj`` is
    found or, when the ``stream`` keyword comes first, until ``endstream``.
    ``None`` is returned when the id is not in the table or no terminator
    exists before the end of the source.
    """

    entry = find_entry(entries, obj_id)
    if entry is None:
        return None
    if entry.offset < 0 or entry.offset >= source.size:
        LOGGER.debug("Object %d offset %d is outside the file", obj_id, entry.offset)
        return None

    data = bytearray()
    position = entry.offset
    block_size = READ_BLOCK_SIZE
    stream_at = -1
    with source.preserve_position():
        while position < source.size:
            block = source.read_at(position, block_size)
            if not block:
                break
            search_from = max(len(data) - len(ENDSTREAM), 0)
            data.extend(block)
            position += len(block)
            block_size = min(block_size * 2, MAX_READ_BLOCK_SIZE)

            if stream_at == -1:
                endobj_at = data.find(ENDOBJ, search_from)
                candidate = data.find(STREAM, search_from)
                if candidate != -1 and (endobj_at == -1 or candidate < endobj_at):
                    stream_at = candidate
                elif endobj_at != -1:
                    return ExtractedObject(
                        obj_id=obj_id,
                        data=bytes(data[: endobj_at + len(ENDOBJ)]),
                        is_stream=False,
                    )
                else:
                    continue

            endstream_at = data.find(ENDSTREAM, max(search_from, stream_at + len(STREAM)))
            if endstream_at != -1:
                return ExtractedObject(
                    obj_id=obj_id,
                    data=bytes(data[: endstream_at + len(ENDSTREAM)]),
                    is_stream=True,
                )

    LOGGER.debug("Object %d at offset %d has no terminator", obj_id, entry.offset)
    return None


def object_type(source: ByteSource, obj_id: int, entries: Sequence[ObjectEntry]) -> str:
    """Return the ``/Type`` name of an object, ``Stream`` or ``Unknown``."""

    extracted = extract_object(source, obj_id, entries)
    if extracted is None:
        return "Unknown"
    if extracted.is_stream:
        return "Stream"
    return type_name(extracted.data) or "Unknown"


def type_name(data: bytes) -> Optional[str]:
    """Extract the value of ``/Type`` from raw object bytes.

    Names that merely start with ``/Type`` followed by a digit (font
    subtypes such as ``/Type1``) are skipped.
    """

    end = data.find(ENDOBJ)
    if end == -1:
        end = len(data)
    position = 0
    while True:
        position = data.find(b"/Type", position, end)
        if position == -1:
            return None
        after = position + len(b"/Type")
        if after < end and data[after:after + 1].isalnum():
            position = after
            continue
        break

    position = after
    while position < end and data[position] in WHITESPACE + b"/":
        position += 1
    stop = position
    while stop < end and data[stop] not in _TYPE_TERMINATORS and stop - position < MAX_TYPE_LENGTH:
        stop += 1
    if stop == position:
        return None
    return data[position:stop].decode("latin-1")


def read_reference(data: bytes, key: bytes) -> Optional[int]:
    """Return the object id of an indirect reference ``/Key <id> <gen> R``."""

    pattern = re.escape(key) + rb"(?![A-Za-z0-9])[\x00\t\n\x0c\r ]*(\d+)[\x00\t\n\x0c\r ]+(\d+)[\x00\t\n\x0c\r ]+R"
    match = re.search(pattern, data)
    if not match:
        return None
    return int(match.group(1))


__all__ = [
    "adhoc_table",
    "extract_object",
    "find_entry",
    "object_type",
    "read_object_header",
    "read_reference",
    "type_name",
]
