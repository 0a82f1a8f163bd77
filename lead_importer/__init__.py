"""Bulk lead import: header matching, row validation and the upload/preview/commit workflow."""

from .classifier import FIELD_PATTERNS, FieldClassifier, HeaderMapping, classify_headers
from .client import ImportEndpointClient
from .config import ImportSettings, load_configuration
from .errors import (
    ConfigurationError,
    EmptyFileError,
    ImportFileError,
    ImportResponseError,
    ImportTransportError,
    InvalidTransitionError,
    LeadImportError,
    NoValidRowsError,
    UnsupportedFileTypeError,
)
from .mapper import clean_cell, map_rows
from .models import (
    CanonicalField,
    ErrorDetail,
    ImportResult,
    InvalidRowReport,
    MappedLeadRecord,
    RejectionReason,
    WarningDetail,
)
from .normalizer import normalize_header
from .results import ImportReport, summarize_result
from .session import ImportSessionController, LoadOutcome, SessionState
from .validation import ValidationOutcome, partition_records, validate_record

__all__ = [
    "FIELD_PATTERNS",
    "CanonicalField",
    "ConfigurationError",
    "EmptyFileError",
    "ErrorDetail",
    "FieldClassifier",
    "HeaderMapping",
    "ImportEndpointClient",
    "ImportFileError",
    "ImportReport",
    "ImportResponseError",
    "ImportResult",
    "ImportSessionController",
    "ImportSettings",
    "ImportTransportError",
    "InvalidRowReport",
    "InvalidTransitionError",
    "LeadImportError",
    "LoadOutcome",
    "MappedLeadRecord",
    "NoValidRowsError",
    "RejectionReason",
    "SessionState",
    "UnsupportedFileTypeError",
    "ValidationOutcome",
    "WarningDetail",
    "classify_headers",
    "clean_cell",
    "load_configuration",
    "map_rows",
    "normalize_header",
    "partition_records",
    "summarize_result",
    "validate_record",
]
