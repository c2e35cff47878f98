"""
Custom exceptions for PDF History.

Fatal conditions abort parsing of the whole document. ``InvalidXrefError``
is the only recoverable one: it is raised for a single revision and caught
by the document loader, which demotes that revision to a placeholder.
"""


class PDFHistoryException(Exception):
    """Base exception for all PDF History errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown PDF history error occurred."


class FormatError(PDFHistoryException):
    """Raised when the input cannot be treated as a PDF at all."""

    @property
    def default_message(self) -> str:
        return "Input is not a readable PDF document."


class NotAPDFError(FormatError):
    """Raised when the ``%PDF-`` header is missing from the header region."""

    @property
    def default_message(self) -> str:
        return "File does not start with a PDF header."


class NoRevisionsFoundError(FormatError):
    """Raised when the file contains no ``%%EOF`` marker."""

    @property
    def default_message(self) -> str:
        return "No %%EOF markers found; the file has no revisions."


class InvalidXrefError(PDFHistoryException):
    """Raised when a single revision's ``startxref`` cannot be resolved."""

    def __init__(self, message: str = "", *, is_linear: bool = False) -> None:
        super().__init__(message)
        self.is_linear = is_linear

    @property
    def default_message(self) -> str:
        return "Revision does not point at a usable cross-reference section."


class CorruptEntryTableError(PDFHistoryException):
    """Raised when an xref table cannot be parsed."""

    @property
    def default_message(self) -> str:
        return "Cross-reference table is corrupt."


class OutputExistsError(PDFHistoryException):
    """Raised when an output file or directory would be overwritten."""

    @property
    def default_message(self) -> str:
        return "Output destination already exists."
