"""Exception hierarchy for the lead import workflow."""
from __future__ import annotations


class LeadImportError(RuntimeError):
    """Base class for every failure raised by :mod:`lead_importer`."""


class ConfigurationError(LeadImportError):
    """Raised when configuration files are missing or malformed."""


class ImportFileError(LeadImportError):
    """Raised when an uploaded file cannot be read as a spreadsheet."""


class UnsupportedFileTypeError(ImportFileError, ValueError):
    """Raised when an unsupported file format is passed to the loader."""


class EmptyFileError(ImportFileError):
    """Raised when a file holds a header row but no data rows."""


class NoValidRowsError(LeadImportError):
    """Raised when validation leaves nothing to submit."""


class ImportTransportError(LeadImportError):
    """Raised when the import endpoint could not be reached or answered with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ImportResponseError(LeadImportError):
    """Raised when the import endpoint answers with a payload we cannot interpret."""


class InvalidTransitionError(LeadImportError):
    """Raised when the import session is asked to move to a state it cannot reach."""


__all__ = [
    "LeadImportError",
    "ConfigurationError",
    "ImportFileError",
    "UnsupportedFileTypeError",
    "EmptyFileError",
    "NoValidRowsError",
    "ImportTransportError",
    "ImportResponseError",
    "InvalidTransitionError",
]
