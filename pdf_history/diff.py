"""Classification of object changes between consecutive versions."""

from __future__ import annotations

from typing import Optional, Sequence

from .types import ObjectEntry, ObjectStatus, Revision


def previous_version(revisions: Sequence[Revision], version: int) -> int:
    """Highest valid version strictly lower than ``version``, or 0."""

    candidates = [rev.version for rev in revisions if rev.is_valid and rev.version < version]
    return max(candidates, default=0)


def previous_entry(
    revisions: Sequence[Revision],
    revision_index: int,
    obj_id: int,
) -> Optional[ObjectEntry]:
    """Entry for ``obj_id`` in the version preceding ``revision_index``.

    Only the immediately preceding version is consulted. When a linearized
    file splits that version over two tables, both are searched.
    """

    target = previous_version(revisions, revisions[revision_index].version)
    if not target:
        return None
    for revision in revisions:
        if revision.version != target:
            continue
        entry = revision.find_entry(obj_id)
        if entry is not None:
            return entry
    return None


def classify(revisions: Sequence[Revision], revision_index: int, entry_index: int) -> ObjectStatus:
    """Return how entry ``entry_index`` of revision ``revision_index`` changed."""

    revision = revisions[revision_index]
    current = revision.entries[entry_index]

    if revision.version == 1:
        return ObjectStatus.ADDED
    if current.is_free:
        return ObjectStatus.DELETED

    prior = previous_entry(revisions, revision_index, current.obj_id)
    if prior is None or (prior.is_free and current.in_use):
        return ObjectStatus.ADDED
    if prior.offset != current.offset:
        return ObjectStatus.MODIFIED
    return ObjectStatus.UNKNOWN


__all__ = ["classify", "previous_entry", "previous_version"]
