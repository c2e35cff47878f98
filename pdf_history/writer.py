"""Write every historical version of a PDF as a standalone file.

Each version file is a byte copy of the original followed by a new
``startxref`` that points at that version's cross-reference table, so
readers resolve objects as they were when the version was saved.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from pypdf import PdfReader

from .document import PDFHistory
from .exceptions import OutputExistsError
from .summary import save_summary
from .types import VersionFile

LOGGER = logging.getLogger("pdf_history.writer")


def _stem(name: str) -> str:
    return name[:-4] if name.lower().endswith(".pdf") else name


def versions_directory(history: PDFHistory, output_dir: Union[str, Path] = ".") -> Path:
    return Path(output_dir) / f"{_stem(history.name)}-versions"


def count_pages(path: Union[str, Path]) -> Optional[int]:
    """Page count of a written version according to pypdf, ``None`` if unreadable."""

    try:
        reader = PdfReader(str(path), strict=False)
        return len(reader.pages)
    except Exception as exc:  # pragma: no cover - dependency exceptions vary
        LOGGER.warning("pypdf could not read %s: %s", path, exc)
        return None


def write_version(history: PDFHistory, version: int, start: int, directory: Path) -> VersionFile:
    destination = directory / f"{_stem(history.name)}-version-{version}.pdf"
    with destination.open("wb") as handle:
        for block in history.source.iter_blocks():
            handle.write(block)
        handle.write(b"\r\nstartxref\r\n%d\r\n%%%%EOF" % start)
    LOGGER.info("Wrote version %d to %s", version, destination)
    return VersionFile(version=version, path=str(destination))


def write_versions(
    history: PDFHistory,
    output_dir: Union[str, Path] = ".",
    *,
    verify: bool = True,
    summary: bool = True,
    quiet: bool = False,
) -> List[VersionFile]:
    """Write one file per valid version into ``<output_dir>/<name>-versions``.

    The directory must not exist yet. When ``verify`` is set each written
    file is re-opened with pypdf to record its page count. ``quiet`` selects
    the short form of the saved summary.
    """

    directory = versions_directory(history, output_dir)
    if directory.exists():
        raise OutputExistsError(
            f"Directory '{directory}' already exists, PDF version extraction will not occur."
        )
    directory.mkdir(parents=True)

    written: List[VersionFile] = []
    seen: set[int] = set()
    for revision in history.revisions:
        if not revision.is_valid or revision.version in seen:
            continue
        seen.add(revision.version)
        version_file = write_version(history, revision.version, revision.start, directory)
        if verify:
            version_file.page_count = count_pages(version_file.path)
        written.append(version_file)

    if summary:
        save_summary(history, directory, quiet=quiet)
    return written


__all__ = ["count_pages", "versions_directory", "write_version", "write_versions"]
