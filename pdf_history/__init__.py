"""
PDF History - Recover the revision history of incrementally saved PDFs.

Every incremental save appends a new cross-reference table, trailer and
``%%EOF`` marker to a PDF. This library finds those revisions, parses each
table and reports how every object changed from one version to the next.

Quick Start:
    >>> from pdf_history import PDFHistory, summary_lines
    >>> with PDFHistory.load('input.pdf') as history:
    ...     for line in summary_lines(history):
    ...         print(line)

Main Classes:
    - PDFHistory: Parsed revision history of one PDF
    - ByteSource: Position-preserving view over the file bytes

Data Classes:
    - Revision: One xref table and trailer
    - ObjectEntry: One xref table row
    - DocumentInfo: Decoded /Info values of a revision
    - ObjectStatus: Added, Modified, Deleted or Unknown

Exceptions:
    - PDFHistoryException: Base exception
    - NotAPDFError: Missing %PDF- header
    - NoRevisionsFoundError: No %%EOF marker
    - CorruptEntryTableError: Unparsable xref table

For CLI usage, use the 'pdf-history' command after installation.
"""

__version__ = "1.0.0"

from pdf_history.document import PDFHistory
from pdf_history.source import ByteSource

from pdf_history.types import (
    DocumentInfo,
    ExtractedObject,
    ObjectEntry,
    ObjectStatus,
    Revision,
    VersionFile,
    XrefKind,
)

from pdf_history.exceptions import (
    PDFHistoryException,
    FormatError,
    NotAPDFError,
    NoRevisionsFoundError,
    InvalidXrefError,
    CorruptEntryTableError,
    OutputExistsError,
)

from pdf_history.info import decode_text_value
from pdf_history.summary import summary_lines, write_summary
from pdf_history.writer import write_versions
from pdf_history.scrub import scrub_document

__author__ = "PDF History Contributors"
__license__ = "MIT"

__all__ = [
    # Main classes
    "PDFHistory",
    "ByteSource",
    # Data types
    "DocumentInfo",
    "ExtractedObject",
    "ObjectEntry",
    "ObjectStatus",
    "Revision",
    "VersionFile",
    "XrefKind",
    # Exceptions
    "PDFHistoryException",
    "FormatError",
    "NotAPDFError",
    "NoRevisionsFoundError",
    "InvalidXrefError",
    "CorruptEntryTableError",
    "OutputExistsError",
    # Functions
    "decode_text_value",
    "summary_lines",
    "write_summary",
    "write_versions",
    "scrub_document",
    # Version info
    "__version__",
]
