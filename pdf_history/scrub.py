"""Experimental removal of stale object data from a PDF.

Superseded and deleted object bodies are overwritten with ``0`` bytes in
a copy of the document. Offsets are preserved, so the xref tables stay
consistent, but readers that follow older tables will find garbage.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .diff import previous_entry
from .document import PDFHistory
from .exceptions import OutputExistsError
from .objects import extract_object
from .types import ObjectEntry, ObjectStatus

LOGGER = logging.getLogger("pdf_history.scrub")

SCRUB_SUFFIX = "-scrubbed.pdf"


def scrubbed_path(history: PDFHistory, output_dir: Optional[Union[str, Path]] = None) -> Path:
    name = history.name[:-4] if history.name.lower().endswith(".pdf") else history.name
    if output_dir is None:
        output_dir = history.path.parent if history.path is not None else Path(".")
    return Path(output_dir) / f"{name}{SCRUB_SUFFIX}"


def stale_entries(history: PDFHistory) -> list[ObjectEntry]:
    """Entries whose bodies no longer belong to the latest version.

    Modified objects of every version but the last and the prior bodies of
    deleted objects are stale. Bodies still referenced by the latest
    version are never included.
    """

    last = history.last_version
    live_offsets: set[int] = set()
    for index, revision in enumerate(history.revisions):
        if revision.version == last:
            live_offsets.update(entry.offset for entry in history.merged_entries(index))
            break

    stale: dict[int, ObjectEntry] = {}
    for revision_index, entry_index, revision, entry in history.iter_objects():
        status = history.object_status(revision_index, entry_index)
        if status is ObjectStatus.MODIFIED and revision.version != last:
            target = entry
        elif status is ObjectStatus.DELETED:
            target = previous_entry(history.revisions, revision_index, entry.obj_id)
            if target is None or target.is_free:
                continue
        else:
            continue
        if target.offset not in live_offsets:
            stale[target.offset] = target
    return list(stale.values())


def scrub_document(history: PDFHistory, output_dir: Optional[Union[str, Path]] = None) -> Path:
    """Write ``<name>-scrubbed.pdf`` with stale objects zeroed out."""

    destination = scrubbed_path(history, output_dir)
    if destination.exists():
        raise OutputExistsError(f"File name already exists for saving scrubbed document: {destination}")

    data = bytearray()
    for block in history.source.iter_blocks():
        data.extend(block)

    zeroed = 0
    for entry in stale_entries(history):
        extracted = extract_object(history.source, entry.obj_id, [entry])
        if extracted is None:
            LOGGER.debug("Object %d at %d could not be read; not scrubbed", entry.obj_id, entry.offset)
            continue
        data[entry.offset:entry.offset + extracted.length] = b"0" * extracted.length
        zeroed += 1

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(bytes(data))
    LOGGER.info("Scrubbed %d objects into %s", zeroed, destination)
    return destination


__all__ = ["SCRUB_SUFFIX", "scrub_document", "scrubbed_path", "stale_entries"]
