"""Data models shared by the lead import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .errors import ImportResponseError


# --- Canonical lead attributes ---

class CanonicalField(str, Enum):
    """Closed set of attributes an imported lead may carry.

    The values are the keys used on the wire when records are sent to the
    import endpoint.
    """

    REGISTRATION_DATE = "registrationDate"
    FULL_NAME = "fullName"
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    PHONE = "phone"
    CONTRACT_DURATION = "contractDuration"
    MOVE_IN_DATE_TEXT = "moveInDateText"
    HAS_PETS_TEXT = "hasPetsText"
    BUDGET_TEXT = "budgetText"
    BEDROOMS_TEXT = "bedroomsText"
    DESIRED_PROPERTY = "desiredProperty"
    PREFERRED_NEIGHBORHOOD = "preferredNeighborhood"
    PRIMARY_SELLER_NAME = "primarySellerName"
    SECONDARY_SELLER_NAME = "secondarySellerName"
    NOTES = "notes"
    STATUS = "status"
    EMAIL = "email"


class RejectionReason(str, Enum):
    """Why a mapped row cannot be imported."""

    MISSING_NAME_AND_PHONE = "missing name and phone"
    MISSING_PHONE = "missing phone number"


# --- Row level models ---

@dataclass(frozen=True)
class MappedLeadRecord:
    """One data row keyed by canonical field.

    ``row_number`` is the 1-based position of the row in the source sheet, so
    the first data row under the header is row 2.
    """

    row_number: int
    values: Mapping[CanonicalField, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only snapshot; the caller's dict may keep changing
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, canonical: CanonicalField) -> Optional[str]:
        return self.values.get(canonical)

    def has(self, canonical: CanonicalField) -> bool:
        value = self.values.get(canonical)
        return value is not None and bool(value.strip())

    def display_name(self) -> str:
        """Return a readable name for previews and logs."""
        full_name = self.get(CanonicalField.FULL_NAME)
        if full_name:
            return full_name
        parts = [self.get(CanonicalField.FIRST_NAME), self.get(CanonicalField.LAST_NAME)]
        return " ".join(filter(None, parts)).strip() or "(Unnamed Lead)"

    def as_payload(self) -> Dict[str, str]:
        """Return the wire representation: only fields that carry a value."""
        return {canonical.value: value for canonical, value in self.values.items() if value}


@dataclass(frozen=True, slots=True)
class InvalidRowReport:
    """A row that failed validation and will not be transmitted."""

    row: int
    reason: RejectionReason

    def describe(self) -> str:
        return f"Row {self.row}: {self.reason.value}"


# --- Server response models ---

@dataclass(slots=True)
class ErrorDetail:
    """A row the import endpoint refused to store."""

    row: int
    error: str


@dataclass(slots=True)
class WarningDetail:
    """A row the import endpoint stored (or skipped) with a remark."""

    row: int
    name: str
    warning: str


@dataclass(slots=True)
class ImportResult:
    """Outcome reported by the import endpoint."""

    imported: int = 0
    duplicates: int = 0
    errors: List[ErrorDetail] = field(default_factory=list)
    warnings: List[WarningDetail] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "ImportResult":
        """Build a result from the decoded JSON body of the import endpoint."""

        if not isinstance(payload, Mapping):
            raise ImportResponseError(f"Expected a JSON object from the import endpoint, got {type(payload).__name__}")

        imported = _require_count(payload, "imported")
        duplicates = _require_count(payload, "duplicates")

        errors = [
            ErrorDetail(row=_coerce_row(item.get("row")), error=str(item.get("error") or ""))
            for item in _require_list(payload, "errors")
        ]
        warnings = [
            WarningDetail(
                row=_coerce_row(item.get("row")),
                name=str(item.get("name") or ""),
                warning=str(item.get("warning") or ""),
            )
            for item in _require_list(payload, "warnings")
        ]
        return cls(imported=imported, duplicates=duplicates, errors=errors, warnings=warnings)


def _require_count(payload: Mapping[str, Any], key: str) -> int:
    if key not in payload:
        raise ImportResponseError(f"Import response is missing '{key}'")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ImportResponseError(f"Import response field '{key}' must be a non-negative integer, got {value!r}")
    return value


def _require_list(payload: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
        raise ImportResponseError(f"Import response field '{key}' must be a list of objects")
    return items


def _coerce_row(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ImportResponseError(f"Import response carries an invalid row number {value!r}") from exc


__all__ = [
    "CanonicalField",
    "RejectionReason",
    "MappedLeadRecord",
    "InvalidRowReport",
    "ErrorDetail",
    "WarningDetail",
    "ImportResult",
]
