"""
Type definitions and dataclasses for PDF History.

This module defines the parsed model shared by every component: object
entries, revisions, document information and the derived object status.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

INFO_KEYS: Tuple[str, ...] = (
    "Title",
    "Author",
    "Subject",
    "Keywords",
    "Creator",
    "Producer",
    "CreationDate",
    "ModDate",
    "Trapped",
)

MAX_INFO_VALUE_LENGTH = 128


class ObjectStatus(Enum):
    """How an object entry changed relative to the previous revision."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    UNKNOWN = "?"

    def __str__(self) -> str:
        return self.value


class XrefKind(Enum):
    """What a revision's ``startxref`` value points at."""

    TABLE = "table"
    STREAM = "stream"
    LINEAR = "linear"


@dataclass
class ObjectEntry:
    """
    One row of a cross-reference table.

    Attributes:
        obj_id: Object number
        offset: Byte offset of the object body
        generation: Generation number
        in_use: ``True`` for ``n`` entries, ``False`` for free (``f``) entries
    """
    obj_id: int
    offset: int
    generation: int
    in_use: bool

    @property
    def is_free(self) -> bool:
        return not self.in_use


@dataclass
class DocumentInfo:
    """
    Decoded trailer ``/Info`` values of a revision.

    Only the keys in :data:`INFO_KEYS` are tracked. Missing keys map to an
    empty string and every value is bounded to :data:`MAX_INFO_VALUE_LENGTH`.
    """
    values: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.values) - set(INFO_KEYS)
        if unknown:
            raise ValueError(f"Unknown document info keys: {sorted(unknown)}")
        self.values = {
            key: (self.values.get(key) or "")[:MAX_INFO_VALUE_LENGTH]
            for key in INFO_KEYS
        }

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(INFO_KEYS)

    def get(self, key: str, default: str = "") -> str:
        return self.values.get(key, default)

    def items(self) -> List[Tuple[str, str]]:
        return [(key, self.values[key]) for key in INFO_KEYS]

    @property
    def is_empty(self) -> bool:
        return not any(self.values.values())


@dataclass
class Revision:
    """
    One incrementally saved revision: an xref section plus its trailer.

    Attributes:
        start: Offset of the ``xref`` keyword or the xref stream object
        end: Offset of the ``%%EOF`` closing this revision
        version: Logical version number, 0 when the revision is invalid
        is_stream: The xref is encoded as a cross-reference stream
        is_linear: This is the header table of a linearized file
        entries: Parsed object entries, in table order
        info: Document information declared by the trailer
        declared_size: ``/Size`` value of the trailer
        kids: Page object ids collected from the page tree
    """
    start: int = 0
    end: int = 0
    version: int = 0
    is_stream: bool = False
    is_linear: bool = False
    entries: List[ObjectEntry] = field(default_factory=list)
    info: Optional[DocumentInfo] = None
    declared_size: int = 0
    kids: List[int] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.version != 0

    @property
    def n_entries(self) -> int:
        return len(self.entries)

    def find_entry(self, obj_id: int) -> Optional[ObjectEntry]:
        for entry in self.entries:
            if entry.obj_id == obj_id:
                return entry
        return None

    def invalidate(self) -> None:
        """Turn the revision into a placeholder, keeping ``is_linear``."""
        is_linear = self.is_linear
        self.start = 0
        self.end = 0
        self.version = 0
        self.is_stream = False
        self.entries = []
        self.info = None
        self.declared_size = 0
        self.kids = []
        self.is_linear = is_linear


@dataclass
class ExtractedObject:
    """
    Raw bytes of one indirect object.

    ``data`` always ends with the terminating ``endobj`` or ``endstream``
    keyword.
    """
    obj_id: int
    data: bytes
    is_stream: bool = False

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass
class VersionFile:
    """
    A historical revision written out as a standalone PDF.

    Attributes:
        version: Logical version number
        path: Path of the written file
        page_count: Page count reported by pypdf, ``None`` if unreadable
    """
    version: int
    path: str
    page_count: Optional[int] = None
