"""Seekable byte view over a PDF file.

All searches are bounded to a ``[start, end)`` window and return ``-1``
when the pattern is absent. Every public method restores the read position
of the underlying stream before returning.
"""

from __future__ import annotations

import io
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

SEARCH_BLOCK_SIZE = 4096

# PDF whitespace characters (ISO 32000-1, table 1)
WHITESPACE = b"\x00\t\n\x0c\r "


class ByteSource:
    """Read-only, position-preserving access to the bytes of a document."""

    def __init__(self, stream: BinaryIO, *, name: Optional[str] = None, owns_stream: bool = False) -> None:
        self._stream = stream
        self._owns_stream = owns_stream
        self.name = name
        with self.preserve_position():
            self._stream.seek(0, io.SEEK_END)
            self._size = self._stream.tell()

    @classmethod
    def open(cls, path: Union[str, Path]) -> "ByteSource":
        path = Path(path)
        return cls(path.open("rb"), name=str(path), owns_stream=True)

    @classmethod
    def from_bytes(cls, data: bytes, name: Optional[str] = None) -> "ByteSource":
        return cls(io.BytesIO(data), name=name, owns_stream=True)

    # ------------------------------------------------------------------
    def __enter__(self) -> "ByteSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    @property
    def size(self) -> int:
        return self._size

    @contextmanager
    def preserve_position(self) -> Iterator[None]:
        position = self._stream.tell()
        try:
            yield
        finally:
            self._stream.seek(position)

    # ------------------------------------------------------------------
    def _read(self, offset: int, length: int) -> bytes:
        if offset < 0 or length <= 0 or offset >= self._size:
            return b""
        self._stream.seek(offset)
        return self._stream.read(min(length, self._size - offset))

    def read_at(self, offset: int, length: int) -> bytes:
        """Return up to ``length`` bytes starting at ``offset``."""

        with self.preserve_position():
            return self._read(offset, length)

    def read_range(self, start: int, end: int) -> bytes:
        return self.read_at(start, end - start)

    def iter_blocks(self, block_size: int = SEARCH_BLOCK_SIZE) -> Iterator[bytes]:
        """Yield the whole source in blocks, from offset 0."""

        offset = 0
        while offset < self._size:
            block = self.read_at(offset, block_size)
            if not block:
                break
            yield block
            offset += len(block)

    def _window(self, start: int, end: Optional[int]) -> tuple[int, int]:
        start = max(start, 0)
        end = self._size if end is None else min(end, self._size)
        return start, end

    def find(self, pattern: bytes, start: int = 0, end: Optional[int] = None) -> int:
        """Return the offset of the first ``pattern`` inside ``[start, end)``."""

        start, end = self._window(start, end)
        if not pattern or end - start < len(pattern):
            return -1

        overlap = len(pattern) - 1
        position = start
        with self.preserve_position():
            while position < end:
                chunk = self._read(position, min(SEARCH_BLOCK_SIZE, end - position))
                if not chunk:
                    break
                index = chunk.find(pattern)
                if index != -1:
                    return position + index
                if position + len(chunk) >= end:
                    break
                position += max(len(chunk) - overlap, 1)
        return -1

    def rfind(self, pattern: bytes, start: int = 0, end: Optional[int] = None) -> int:
        """Return the offset of the last ``pattern`` inside ``[start, end)``."""

        start, end = self._window(start, end)
        if not pattern or end - start < len(pattern):
            return -1

        overlap = len(pattern) - 1
        position = end
        with self.preserve_position():
            while position > start:
                chunk_start = max(start, position - SEARCH_BLOCK_SIZE)
                chunk = self._read(chunk_start, position - chunk_start)
                index = chunk.rfind(pattern)
                if index != -1:
                    return chunk_start + index
                if chunk_start == start:
                    break
                position = chunk_start + overlap
        return -1

    def skip_whitespace(self, offset: int, end: Optional[int] = None) -> int:
        """Return the first non-whitespace offset at or after ``offset``."""

        _, end = self._window(offset, end)
        with self.preserve_position():
            while offset < end:
                chunk = self._read(offset, min(SEARCH_BLOCK_SIZE, end - offset))
                if not chunk:
                    break
                stripped = chunk.lstrip(WHITESPACE)
                if stripped:
                    return offset + len(chunk) - len(stripped)
                offset += len(chunk)
        return end

    def read_integer(self, offset: int, end: Optional[int] = None) -> Optional[tuple[int, int]]:
        """Parse an unsigned decimal integer at ``offset``.

        Returns ``(value, offset_after_digits)`` or ``None`` when no digit is
        present.
        """

        _, end = self._window(offset, end)
        digits = bytearray()
        position = offset
        with self.preserve_position():
            while position < end:
                chunk = self._read(position, min(32, end - position))
                if not chunk:
                    break
                for byte in chunk:
                    if 0x30 <= byte <= 0x39:
                        digits.append(byte)
                        position += 1
                    else:
                        break
                else:
                    continue
                break
        if not digits:
            return None
        return int(digits), position


__all__ = ["ByteSource", "WHITESPACE", "SEARCH_BLOCK_SIZE"]
