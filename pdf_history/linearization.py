"""Relabelling of revisions for linearized documents."""

from __future__ import annotations

import logging
from typing import MutableSequence

from .types import Revision

LOGGER = logging.getLogger("pdf_history.linearization")


def resolve_linearization(revisions: MutableSequence[Revision]) -> bool:
    """Reorder the revisions of a linearized document in place.

    A linearized file starts with a partial first-page table that physically
    precedes the table describing the rest of version 1. The two are
    swapped so the full table comes first, both keep version 1, and every
    later version moves down by one. The first-page table keeps its slot
    (and ``is_linear``) because objects of version 1, such as ``/Info``,
    may only be listed there.

    Returns ``True`` when the revisions were changed.
    """

    if len(revisions) < 2 or not revisions[0].is_linear:
        return False

    linear, first = revisions[0], revisions[1]
    if not (linear.is_valid and first.is_valid):
        LOGGER.warning("Linearized header or first version is invalid; versions left as parsed")
        return False

    revisions[0], revisions[1] = first, linear
    first.version = 1
    first.is_linear = False
    linear.version = 1
    for revision in revisions[2:]:
        if revision.is_valid:
            revision.version -= 1

    LOGGER.debug("Resolved linearized layout over %d revisions", len(revisions))
    return True


__all__ = ["resolve_linearization"]
