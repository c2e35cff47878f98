from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Iterator
import logging
import sys

import pytest
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


CATALOG = b"<< /Type /Catalog /Pages 2 0 R >>"
PAGES = b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>"
PAGE = b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 200 200] >>"

Row = tuple[int, int, int, str]


class PDFBuilder:
    """Assemble PDF bytes with known offsets, one section at a time."""

    def __init__(self, version: str = "1.4") -> None:
        self.data = bytearray(b"%PDF-" + version.encode("ascii") + b"\n%\xe2\xe3\xcf\xd3\n")
        self.offsets: dict[int, int] = {}
        self.xref_offsets: list[int] = []

    def add_object(self, obj_id: int, body: bytes, generation: int = 0) -> int:
        offset = len(self.data)
        self.data += b"%d %d obj\n" % (obj_id, generation) + body + b"\nendobj\n"
        self.offsets[obj_id] = offset
        return offset

    def add_stream(self, obj_id: int, dictionary: bytes, payload: bytes) -> int:
        return self.add_object(obj_id, dictionary + b"\nstream\n" + payload + b"\nendstream")

    def rows(self, *obj_ids: int, free_head: bool = True) -> list[Row]:
        rows: list[Row] = [(0, 0, 65535, "f")] if free_head else []
        rows.extend((obj_id, self.offsets[obj_id], 0, "n") for obj_id in obj_ids)
        return rows

    def add_xref(
        self,
        rows: Iterable[Row],
        *,
        size: int | None = None,
        trailer: bytes = b"",
        startxref: int | None = None,
    ) -> int:
        rows = sorted(rows)
        offset = len(self.data)

        groups: list[list[Row]] = []
        for row in rows:
            if groups and row[0] == groups[-1][-1][0] + 1:
                groups[-1].append(row)
            else:
                groups.append([row])

        table = bytearray(b"xref\n")
        for group in groups:
            table += b"%d %d\n" % (group[0][0], len(group))
            for _, obj_offset, generation, flag in group:
                table += b"%010d %05d %s \n" % (obj_offset, generation, flag.encode("ascii"))

        if size is None:
            size = rows[-1][0] + 1 if rows else 0
        table += b"trailer\n<< /Size %d %s >>\n" % (size, trailer)
        self.data += table
        self.add_startxref(offset if startxref is None else startxref)
        self.xref_offsets.append(offset)
        return offset

    def add_startxref(self, offset: int) -> None:
        self.data += b"startxref\n%d\n%%%%EOF\n" % offset

    def add_raw(self, data: bytes) -> int:
        offset = len(self.data)
        self.data += data
        return offset

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def write(self, path: Path) -> Path:
        path.write_bytes(self.to_bytes())
        return path


def build_single_revision() -> PDFBuilder:
    builder = PDFBuilder()
    builder.add_object(1, CATALOG)
    builder.add_object(2, PAGES)
    builder.add_object(3, PAGE)
    builder.add_xref(builder.rows(1, 2, 3), trailer=b"/Root 1 0 R")
    return builder


def build_two_revisions() -> PDFBuilder:
    """Version 2 rewrites object 2 and adds the info object 4."""

    builder = build_single_revision()
    previous = builder.xref_offsets[-1]
    builder.add_object(2, b"<< /Type /Pages /Kids [3 0 R] /Count 1 /Rotate 0 >>")
    builder.add_object(4, b"<< /Title (Second) /Producer (PDFBuilder) >>")
    builder.add_xref(
        builder.rows(1, 2, 3, 4),
        trailer=b"/Root 1 0 R /Info 4 0 R /Prev %d" % previous,
    )
    return builder


def build_three_revisions() -> PDFBuilder:
    """Version 3 rewrites object 2 again and frees object 4."""

    builder = build_two_revisions()
    previous = builder.xref_offsets[-1]
    builder.add_object(2, b"<< /Type /Pages /Kids [3 0 R] /Count 1 /Rotate 90 >>")
    rows = builder.rows(1, 2, 3) + [(4, 0, 1, "f")]
    builder.add_xref(rows, size=5, trailer=b"/Root 1 0 R /Prev %d" % previous)
    return builder


def build_linearized() -> PDFBuilder:
    """First-page table (objects 5 and 6) before the table holding 0-3."""

    builder = PDFBuilder()
    builder.add_object(5, b"<< /Linearized 1 /L 1000 /O 3 /E 0 /N 1 /T 0 /H [0 0] >>")
    builder.add_object(6, b"<< /Title (Linear Title) /Producer (PDFBuilder) >>")
    builder.add_xref(
        builder.rows(5, 6, free_head=False),
        size=7,
        trailer=b"/Root 1 0 R /Info 6 0 R",
        startxref=0,
    )
    builder.add_object(1, CATALOG)
    builder.add_object(2, PAGES)
    builder.add_object(3, PAGE)
    builder.add_xref(builder.rows(1, 2, 3), size=4, trailer=b"/Root 1 0 R /Info 6 0 R")
    return builder


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo the CLI's handler setup so caplog sees package records."""

    logger = logging.getLogger("pdf_history")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture()
def pdf_builder() -> type[PDFBuilder]:
    return PDFBuilder


@pytest.fixture()
def single_revision_pdf(tmp_path: Path) -> Path:
    return build_single_revision().write(tmp_path / "single.pdf")


@pytest.fixture()
def two_revision_pdf(tmp_path: Path) -> Path:
    return build_two_revisions().write(tmp_path / "edited.pdf")


@pytest.fixture()
def three_revision_pdf(tmp_path: Path) -> Path:
    return build_three_revisions().write(tmp_path / "history.pdf")


@pytest.fixture()
def two_revision_builder() -> PDFBuilder:
    return build_two_revisions()


@pytest.fixture()
def three_revision_builder() -> PDFBuilder:
    return build_three_revisions()


@pytest.fixture()
def linearized_builder() -> PDFBuilder:
    return build_linearized()


@pytest.fixture()
def xref_stream_pdf(tmp_path: Path) -> Path:
    builder = PDFBuilder("1.5")
    builder.add_object(1, CATALOG)
    builder.add_object(2, PAGES)
    builder.add_object(3, PAGE)
    offset = builder.add_stream(
        4,
        b"<< /Type /XRef /Size 5 /W [1 2 1] /Root 1 0 R /Length 4 >>",
        b"\x01\x00\x0f\x00",
    )
    builder.add_startxref(offset)
    return builder.write(tmp_path / "xref_stream.pdf")


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "sample.pdf"
    writer = PdfWriter()
    for _ in range(2):
        writer.add_blank_page(width=200, height=200)
    writer.add_metadata({"/Title": "Sample", "/Author": "pdf-history-tests"})
    with pdf_path.open("wb") as stream:
        writer.write(stream)
    return pdf_path


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[[str, bytes], Path]:
    def _create(filename: str, data: bytes) -> Path:
        path = tmp_path / filename
        path.write_bytes(data)
        return path

    return _create
