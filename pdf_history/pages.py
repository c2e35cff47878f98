"""Page tree traversal used to map object ids to page numbers."""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from .objects import extract_object, read_reference
from .source import ByteSource
from .types import ObjectEntry, Revision

LOGGER = logging.getLogger("pdf_history.pages")

_KID_REFERENCE = re.compile(rb"(\d+)[\x00\t\n\x0c\r ]+(\d+)[\x00\t\n\x0c\r ]+R")


def read_kids(data: bytes) -> Optional[list[int]]:
    """Object ids listed in ``/Kids [...]``, or ``None`` without a ``/Kids`` key."""

    key_at = data.find(b"/Kids")
    if key_at == -1:
        return None
    open_at = data.find(b"[", key_at)
    if open_at == -1:
        return []
    close_at = data.find(b"]", open_at)
    if close_at == -1:
        return []
    return [int(match.group(1)) for match in _KID_REFERENCE.finditer(data, open_at, close_at)]


def collect_page_kids(
    source: ByteSource,
    revision: Revision,
    entries: Sequence[ObjectEntry],
) -> list[int]:
    """Return the page object ids of ``revision`` in document order.

    ``entries`` is the object table used for lookups, usually the merged
    view of every version up to and including ``revision``. Traversal uses
    an explicit stack and never visits more nodes than there are entries.
    """

    trailer_at = source.find(b"trailer", revision.start, revision.end)
    if trailer_at == -1:
        return []
    root_id = read_reference(source.read_range(trailer_at, revision.end), b"/Root")
    if root_id is None:
        return []
    root = extract_object(source, root_id, entries)
    if root is None:
        return []
    pages_id = read_reference(root.data, b"/Pages")
    if pages_id is None:
        return []

    budget = len(entries)
    visited: set[int] = set()
    leaves: list[int] = []
    stack = [pages_id]
    while stack and len(visited) < budget:
        node_id = stack.pop()
        if node_id in visited:
            LOGGER.debug("Page tree node %d visited twice; skipping cycle", node_id)
            continue
        visited.add(node_id)
        node = extract_object(source, node_id, entries)
        if node is None:
            continue
        kids = read_kids(node.data)
        if kids is None:
            if node_id != pages_id:
                leaves.append(node_id)
            continue
        stack.extend(reversed(kids))
    return leaves


def page_number(revision: Revision, obj_id: int) -> int:
    """1-based page number of ``obj_id`` in ``revision``, 0 if it is not a page."""

    try:
        return revision.kids.index(obj_id) + 1
    except ValueError:
        return 0


__all__ = ["collect_page_kids", "page_number", "read_kids"]
