"""Revision history model of a single PDF file."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .diff import classify
from .exceptions import InvalidXrefError
from .info import DocumentInfoExtractor
from .linearization import resolve_linearization
from .objects import object_type
from .pages import collect_page_kids, page_number
from .scanner import EOF_MARKER, ensure_pdf, find_boundaries, read_header_version
from .source import ByteSource
from .types import DocumentInfo, ObjectEntry, ObjectStatus, Revision, XrefKind
from .xref import locate_xref, parse_xref_entries

LOGGER = logging.getLogger("pdf_history.document")


class PDFHistory:
    """Parsed revision history of a PDF.

    Revisions are kept in file order, with the linearized header table (if
    any) moved behind the table it belongs to. Invalid revisions remain as
    placeholders with ``version == 0``.

    Example:
        >>> with PDFHistory.load("report.pdf") as history:
        ...     history.valid_revision_count()
        2
    """

    def __init__(
        self,
        source: ByteSource,
        name: Optional[str] = None,
        *,
        path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.source = source
        self.path = Path(path) if path is not None else None
        label = name or source.name
        self.name = os.path.basename(label) if label else "Unknown"
        self.revisions: List[Revision] = []
        self.pdf_version: Tuple[int, int] = (0, 0)
        self.has_xref_streams = False
        self.has_xml_metadata = False
        self.linearized = False
        self._info = DocumentInfoExtractor(source, self.revisions)
        self._load()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "PDFHistory":
        """Open ``path`` read-only and parse its history."""

        source = ByteSource.open(path)
        try:
            return cls(source, path=path)
        except Exception:
            source.close()
            raise

    @classmethod
    def from_bytes(cls, data: bytes, name: Optional[str] = None) -> "PDFHistory":
        return cls(ByteSource.from_bytes(data, name=name))

    def __enter__(self) -> "PDFHistory":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.source.close()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _load(self) -> None:
        ensure_pdf(self.source)
        self.pdf_version = read_header_version(self.source)

        version = 0
        lower = 0
        for boundary in find_boundaries(self.source):
            revision = Revision()
            self.revisions.append(revision)
            search_from, lower = lower, boundary + len(EOF_MARKER)
            try:
                location = locate_xref(self.source, boundary, search_from)
            except InvalidXrefError as exc:
                LOGGER.warning("%s: skipping revision ending at %d: %s", self.name, boundary, exc)
                revision.invalidate()
                revision.is_linear = exc.is_linear
                continue

            version += 1
            revision.version = version
            revision.start = location.start
            revision.end = location.end
            revision.is_linear = location.kind is XrefKind.LINEAR
            revision.is_stream = location.kind is XrefKind.STREAM
            if revision.is_stream:
                self.has_xref_streams = True
                continue
            revision.entries = parse_xref_entries(self.source, revision)

        self.linearized = resolve_linearization(self.revisions)
        self._info.load_all()
        self.has_xml_metadata = self._info.has_xml_metadata

        for index, revision in enumerate(self.revisions):
            if revision.is_valid and not revision.is_stream:
                revision.kids = collect_page_kids(self.source, revision, self.merged_entries(index))

        LOGGER.debug(
            "%s: %d revisions, %d valid versions", self.name, self.revision_count(), self.valid_revision_count()
        )

    # ------------------------------------------------------------------
    # Parsed model surface
    # ------------------------------------------------------------------
    def revision_count(self) -> int:
        return len(self.revisions)

    def valid_revision_count(self) -> int:
        """Number of logical versions (a linearized version 1 counts once)."""

        return len({revision.version for revision in self.revisions if revision.is_valid})

    def revision(self, index: int) -> Revision:
        return self.revisions[index]

    @property
    def last_version(self) -> int:
        return max((revision.version for revision in self.revisions), default=0)

    def object_status(self, revision_index: int, entry_index: int) -> ObjectStatus:
        return classify(self.revisions, revision_index, entry_index)

    def object_bytes(self, obj_id: int, revision_index: int) -> Optional[bytes]:
        """Raw bytes of ``obj_id`` as listed by a revision, ``None`` if absent."""

        extracted = self._info.fetch(revision_index, obj_id)
        return extracted.data if extracted is not None else None

    def document_info(self, revision_index: int) -> Optional[DocumentInfo]:
        return self.revisions[revision_index].info

    def object_type(self, revision_index: int, entry_index: int) -> str:
        revision = self.revisions[revision_index]
        entry = revision.entries[entry_index]
        # a free entry's offset is the next free object number, not a position
        if entry.is_free:
            return "Unknown"
        return object_type(self.source, entry.obj_id, revision.entries)

    def page_number(self, revision_index: int, obj_id: int) -> int:
        return page_number(self.revisions[revision_index], obj_id)

    def merged_entries(self, revision_index: int) -> List[ObjectEntry]:
        """In-use entries visible at the version of ``revision_index``.

        Later versions override earlier ones; freed ids are dropped.
        """

        target = self.revisions[revision_index].version
        merged: dict[int, ObjectEntry] = {}
        for revision in sorted(
            (rev for rev in self.revisions if rev.is_valid and rev.version <= target),
            key=lambda rev: rev.version,
        ):
            for entry in revision.entries:
                if entry.in_use:
                    merged[entry.obj_id] = entry
                else:
                    merged.pop(entry.obj_id, None)
        return list(merged.values())

    def iter_objects(self) -> Iterator[Tuple[int, int, Revision, ObjectEntry]]:
        """Yield ``(revision_index, entry_index, revision, entry)`` for reportable entries.

        Invalid revisions and object 0 (the head of the free list) are skipped.
        """

        for revision_index, revision in enumerate(self.revisions):
            if not revision.is_valid:
                continue
            for entry_index, entry in enumerate(revision.entries):
                if entry.obj_id == 0:
                    continue
                yield revision_index, entry_index, revision, entry

    def version_object_counts(self) -> List[Tuple[int, int]]:
        """``(version, entry_count)`` pairs in ascending version order."""

        counts: dict[int, int] = {}
        for revision in self.revisions:
            if revision.is_valid:
                counts[revision.version] = counts.get(revision.version, 0) + revision.n_entries
        return sorted(counts.items())


__all__ = ["PDFHistory"]
