"""Per-object history summary."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, TextIO, Union

from .document import PDFHistory

XREF_STREAM_NOTICE = (
    "{name}: This PDF contains cross-reference streams; "
    "an object summary is not available for those versions."
)


def object_line(history: PDFHistory, revision_index: int, entry_index: int) -> str:
    revision = history.revision(revision_index)
    entry = revision.entries[entry_index]
    line = "{name}: --{status}-- Version {version} -- Object {obj_id} ({kind})".format(
        name=history.name,
        status=history.object_status(revision_index, entry_index).value,
        version=revision.version,
        obj_id=entry.obj_id,
        kind=history.object_type(revision_index, entry_index),
    )
    page = history.page_number(revision_index, entry.obj_id)
    if page:
        line += f" Page({page})"
    return line


def summary_lines(history: PDFHistory, *, quiet: bool = False) -> Iterator[str]:
    """Yield the summary report line by line."""

    n_versions = history.valid_revision_count()
    if quiet:
        yield f"{history.name}: {n_versions}"
        return

    # stream revisions have no entries to diff against
    if history.has_xref_streams:
        yield XREF_STREAM_NOTICE.format(name=history.name)
    else:
        for revision_index, entry_index, _, _ in history.iter_objects():
            yield object_line(history, revision_index, entry_index)

    yield f"---------- {history.name} ----------"
    yield f"Versions: {n_versions}"
    for version, count in history.version_object_counts():
        yield f"Version {version} -- {count} objects"


def write_summary(history: PDFHistory, stream: TextIO, *, quiet: bool = False) -> None:
    for line in summary_lines(history, quiet=quiet):
        stream.write(line + "\n")


def save_summary(history: PDFHistory, directory: Union[str, Path], *, quiet: bool = False) -> Path:
    """Write the summary to ``<directory>/<name>.summary``."""

    directory = Path(directory)
    stem = history.name[:-4] if history.name.lower().endswith(".pdf") else history.name
    destination = directory / f"{stem}.summary"
    with destination.open("w", encoding="utf-8") as handle:
        write_summary(history, handle, quiet=quiet)
    return destination


__all__ = ["object_line", "save_summary", "summary_lines", "write_summary", "XREF_STREAM_NOTICE"]
