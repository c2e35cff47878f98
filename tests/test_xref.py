from __future__ import annotations

import pytest

from pdf_history.exceptions import CorruptEntryTableError, InvalidXrefError
from pdf_history.scanner import find_boundaries
from pdf_history.source import ByteSource
from pdf_history.types import Revision, XrefKind
from pdf_history.xref import locate_xref, parse_xref_entries, read_declared_size, read_startxref


def _table_revision(source: ByteSource) -> Revision:
    boundary = find_boundaries(source)[0]
    location = locate_xref(source, boundary)
    return Revision(start=location.start, end=location.end, version=1)


def _raw_table(body: bytes, size: int) -> bytes:
    return (
        b"%PDF-1.4\n"
        + b"xref\n"
        + body
        + b"trailer\n<< /Size %d >>\nstartxref\n9\n%%%%EOF\n" % size
    )


def test_locate_plain_table(two_revision_builder) -> None:
    source = ByteSource.from_bytes(two_revision_builder.to_bytes())
    boundaries = find_boundaries(source)

    first = locate_xref(source, boundaries[0])
    second = locate_xref(source, boundaries[1], boundaries[0] + 5)

    assert first.kind is XrefKind.TABLE
    assert first.start == two_revision_builder.xref_offsets[0]
    assert first.end == boundaries[0]
    assert second.start == two_revision_builder.xref_offsets[1]
    assert second.end == boundaries[1]


def test_startxref_search_stays_within_revision(pdf_builder) -> None:
    builder = pdf_builder()
    builder.add_object(1, b"<< /Type /Catalog >>")
    builder.add_xref(builder.rows(1))
    builder.add_raw(b"% appended comment\n%%EOF\n")
    source = ByteSource.from_bytes(builder.to_bytes())
    first, second = find_boundaries(source)

    assert read_startxref(source, second) == builder.xref_offsets[0]
    assert read_startxref(source, second, first + 5) is None
    with pytest.raises(InvalidXrefError):
        locate_xref(source, second, first + 5)


def test_startxref_past_end_is_invalid(pdf_builder) -> None:
    builder = pdf_builder()
    builder.add_startxref(99999)
    source = ByteSource.from_bytes(builder.to_bytes())

    with pytest.raises(InvalidXrefError) as excinfo:
        locate_xref(source, find_boundaries(source)[0])
    assert excinfo.value.is_linear is False


def test_startxref_at_plain_object_is_invalid(pdf_builder) -> None:
    builder = pdf_builder()
    offset = builder.add_object(1, b"<< /Type /Catalog >>")
    builder.add_startxref(offset)
    source = ByteSource.from_bytes(builder.to_bytes())

    with pytest.raises(InvalidXrefError):
        locate_xref(source, find_boundaries(source)[0])


def test_xref_stream_is_detected(xref_stream_pdf) -> None:
    source = ByteSource.open(xref_stream_pdf)
    boundary = find_boundaries(source)[0]

    location = locate_xref(source, boundary)

    assert location.kind is XrefKind.STREAM
    assert source.read_at(location.start, 7) == b"4 0 obj"
    source.close()


def test_linear_table_found_through_trailer(linearized_builder) -> None:
    source = ByteSource.from_bytes(linearized_builder.to_bytes())
    boundary = find_boundaries(source)[0]

    location = locate_xref(source, boundary)

    assert location.kind is XrefKind.LINEAR
    assert location.start == linearized_builder.xref_offsets[0]
    assert location.end == boundary


def test_linear_without_trailer_keeps_flag(pdf_builder) -> None:
    builder = pdf_builder()
    builder.add_startxref(0)
    source = ByteSource.from_bytes(builder.to_bytes())

    with pytest.raises(InvalidXrefError) as excinfo:
        locate_xref(source, find_boundaries(source)[0])
    assert excinfo.value.is_linear is True


def test_parse_entries(two_revision_builder) -> None:
    source = ByteSource.from_bytes(two_revision_builder.to_bytes())
    boundaries = find_boundaries(source)
    location = locate_xref(source, boundaries[1], boundaries[0] + 5)
    revision = Revision(start=location.start, end=location.end, version=2)

    entries = parse_xref_entries(source, revision)

    assert revision.declared_size == 5
    assert [entry.obj_id for entry in entries] == [0, 1, 2, 3, 4]
    assert entries[0].is_free and entries[0].generation == 65535
    assert entries[2].offset == two_revision_builder.offsets[2]
    assert all(entry.in_use for entry in entries[1:])


def test_parse_multiple_subsections() -> None:
    body = (
        b"0 1\n0000000000 65535 f \n"
        b"3 2\n0000000100 00000 n \n0000000200 00002 n \n"
    )
    source = ByteSource.from_bytes(_raw_table(body, 5))

    entries = parse_xref_entries(source, _table_revision(source))

    assert [(e.obj_id, e.offset, e.generation) for e in entries] == [
        (0, 0, 65535),
        (3, 100, 0),
        (4, 200, 2),
    ]


def test_crlf_line_endings() -> None:
    body = b"0 2\r\n0000000000 65535 f\r\n0000000100 00000 n\r\n"
    source = ByteSource.from_bytes(_raw_table(body, 2))

    entries = parse_xref_entries(source, _table_revision(source))

    assert [entry.in_use for entry in entries] == [False, True]


def test_parse_stops_at_declared_size() -> None:
    body = b"0 3\n0000000000 65535 f \n0000000100 00000 n \n0000000200 00000 n \n"
    source = ByteSource.from_bytes(_raw_table(body, 2))

    entries = parse_xref_entries(source, _table_revision(source))

    assert len(entries) == 2


def test_fewer_entries_than_declared() -> None:
    body = b"0 2\n0000000000 65535 f \n0000000100 00000 n \n"
    source = ByteSource.from_bytes(_raw_table(body, 10))

    entries = parse_xref_entries(source, _table_revision(source))

    assert len(entries) == 2


def test_duplicate_id_replaces_earlier_entry() -> None:
    body = (
        b"0 2\n0000000000 65535 f \n0000000100 00000 n \n"
        b"1 1\n0000000300 00000 n \n"
    )
    source = ByteSource.from_bytes(_raw_table(body, 3))

    entries = parse_xref_entries(source, _table_revision(source))

    assert [(entry.obj_id, entry.offset) for entry in entries] == [(0, 0), (1, 300)]


@pytest.mark.parametrize(
    "body",
    [
        b"0 1\n000000000 65535 f \n",
        b"0 1\n0000000000 65535 x \n",
        b"0 1\n0000000000 65535 f trailing\n",
        b"zero one\n",
        b"0000000100 00000 n \n",
    ],
)
def test_malformed_table_is_corrupt(body: bytes) -> None:
    source = ByteSource.from_bytes(_raw_table(body, 1))

    with pytest.raises(CorruptEntryTableError):
        parse_xref_entries(source, _table_revision(source))


def test_missing_size_is_corrupt() -> None:
    data = (
        b"%PDF-1.4\nxref\n0 1\n0000000000 65535 f \n"
        b"trailer\n<< /Root 1 0 R >>\nstartxref\n9\n%%EOF\n"
    )
    source = ByteSource.from_bytes(data)

    with pytest.raises(CorruptEntryTableError):
        read_declared_size(source, _table_revision(source))
