"""Per-revision document information (trailer ``/Info``) extraction.

Only the legacy key/value form of the info dictionary is understood. XMP
metadata streams are detected and left empty.
"""

from __future__ import annotations

import binascii
import logging
import re
from typing import Dict, Optional, Sequence

from .objects import ENDOBJ, extract_object, read_reference, type_name
from .source import WHITESPACE, ByteSource
from .types import INFO_KEYS, MAX_INFO_VALUE_LENGTH, DocumentInfo, ExtractedObject, Revision

LOGGER = logging.getLogger("pdf_history.info")

TRAILER = b"trailer"
MAX_RAW_VALUE_LENGTH = 4 * MAX_INFO_VALUE_LENGTH + 8
UTF16_BE_MARKER = b"FEFF"

_REFERENCE = re.compile(rb"(\d+)[\x00\t\n\x0c\r ]+(\d+)[\x00\t\n\x0c\r ]+R")
_NAME_TERMINATORS = WHITESPACE + b"/()<>[]{}%"


def decode_text_value(raw: bytes) -> str:
    """Decode a raw string token taken from an info dictionary.

    ``(literal)`` strings are returned verbatim without the parentheses,
    ``<FEFF...>`` hex strings are decoded as UTF-16BE and any other hex
    string is returned undecoded, brackets included.
    """

    if not raw:
        return ""
    if raw.startswith(b"("):
        body = raw[1:-1] if raw.endswith(b")") else raw[1:]
        return body.decode("latin-1")
    if raw.startswith(b"<"):
        digits = bytes(byte for byte in raw[1:].rstrip(b">") if byte not in WHITESPACE)
        if digits.upper().startswith(UTF16_BE_MARKER):
            return _decode_utf16_hex(digits[len(UTF16_BE_MARKER):])
        return raw.decode("latin-1")
    return raw.decode("latin-1")


def _decode_utf16_hex(digits: bytes) -> str:
    if len(digits) % 2:
        digits += b"0"
    try:
        data = binascii.unhexlify(digits)
    except (binascii.Error, ValueError):
        LOGGER.debug("Invalid hex digits in UTF-16 string: %r", digits[:32])
        return ""
    if len(data) % 2:
        data = data[:-1]
    return data.decode("utf-16-be", errors="replace")


def read_string_token(data: bytes, position: int) -> Optional[bytes]:
    """Return the literal, hex or name token starting at ``position``."""

    if position >= len(data):
        return None
    limit = min(len(data), position + MAX_RAW_VALUE_LENGTH)
    lead = data[position:position + 1]

    if lead == b"(":
        depth = 0
        index = position
        while index < limit:
            char = data[index:index + 1]
            if char == b"\\":
                index += 2
                continue
            if char == b"(":
                depth += 1
            elif char == b")":
                depth -= 1
                if depth == 0:
                    return data[position:index + 1]
            index += 1
        return data[position:limit]

    if lead == b"<" and data[position + 1:position + 2] != b"<":
        end = data.find(b">", position, limit)
        return data[position:limit] if end == -1 else data[position:end + 1]

    if lead == b"/":
        index = position + 1
        while index < limit and data[index] not in _NAME_TERMINATORS:
            index += 1
        return data[position:index]

    return None


def first_string_token(data: bytes) -> Optional[bytes]:
    """Return the first string token inside an object's body."""

    start = data.find(b"obj")
    position = 0 if start == -1 else start + len(b"obj")
    end = data.find(ENDOBJ, position)
    if end == -1:
        end = len(data)
    while position < end:
        lead = data[position:position + 1]
        if lead == b"(" or (lead == b"<" and data[position + 1:position + 2] != b"<"):
            return read_string_token(data, position)
        if lead == b"<":
            position += 2
            continue
        position += 1
    return None


def _display_value(token: bytes) -> str:
    if token.startswith(b"/"):
        return token[1:].decode("latin-1")
    return decode_text_value(token)


class DocumentInfoExtractor:
    """Fetch and decode the ``/Info`` dictionary of each revision."""

    def __init__(self, source: ByteSource, revisions: Sequence[Revision]) -> None:
        self.source = source
        self.revisions = revisions
        self.has_xml_metadata = False

    def load_all(self) -> None:
        for index, revision in enumerate(self.revisions):
            if revision.is_valid and not revision.is_stream:
                revision.info = self.extract(index)

    def info_object_id(self, revision: Revision) -> Optional[int]:
        trailer_at = self.source.find(TRAILER, revision.start, revision.end)
        if trailer_at == -1:
            return None
        return read_reference(self.source.read_range(trailer_at, revision.end), b"/Info")

    def fetch(self, index: int, obj_id: int) -> Optional[ExtractedObject]:
        """Fetch ``obj_id`` from revision ``index``.

        The only fallback is the other half of a linearized version 1: an
        adjacent table carrying the same version number.
        """

        revision = self.revisions[index]
        extracted = extract_object(self.source, obj_id, revision.entries)
        if extracted is not None:
            return extracted
        for neighbour in (index - 1, index + 1):
            if not 0 <= neighbour < len(self.revisions):
                continue
            other = self.revisions[neighbour]
            if not (other.is_linear or revision.is_linear):
                continue
            if not other.is_valid or other.version != revision.version:
                continue
            extracted = extract_object(self.source, obj_id, other.entries)
            if extracted is not None:
                return extracted
        return None

    def extract(self, index: int) -> Optional[DocumentInfo]:
        revision = self.revisions[index]
        info_id = self.info_object_id(revision)
        if info_id is None:
            return None

        info_object = self.fetch(index, info_id)
        if info_object is None:
            LOGGER.debug("Info object %d of version %d not found", info_id, revision.version)
            return None

        declared_type = type_name(info_object.data)
        if declared_type and declared_type.startswith("M"):
            LOGGER.info("Version %d uses XML metadata, which is not supported", revision.version)
            self.has_xml_metadata = True
            return DocumentInfo()

        values: Dict[str, str] = {}
        for key in INFO_KEYS:
            token = self._value_token(index, info_object.data, key)
            if token is not None:
                values[key] = _display_value(token)
        return DocumentInfo(values)

    def _value_token(self, index: int, data: bytes, key: str) -> Optional[bytes]:
        match = re.search(rb"/" + key.encode("ascii") + rb"(?![A-Za-z0-9])", data)
        if match is None:
            return None
        position = match.end()
        while position < len(data) and data[position] in WHITESPACE:
            position += 1

        reference = _REFERENCE.match(data, position)
        if reference is not None:
            target = self.fetch(index, int(reference.group(1)))
            if target is None:
                return None
            return first_string_token(target.data)
        return read_string_token(data, position)


__all__ = [
    "DocumentInfoExtractor",
    "decode_text_value",
    "first_string_token",
    "read_string_token",
]
