"""Minimum-completeness checks applied to mapped lead records."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .models import CanonicalField, InvalidRowReport, MappedLeadRecord, RejectionReason
from .normalizer import normalize_person_name, normalize_phone_digits

LOGGER = logging.getLogger(__name__)


def validate_record(record: MappedLeadRecord) -> Optional[RejectionReason]:
    """Return why ``record`` cannot be imported, or ``None`` when it can.

    A lead needs a phone number. Without a full name or first name the phone
    alone identifies it.
    """

    has_phone = record.has(CanonicalField.PHONE)
    has_name = record.has(CanonicalField.FULL_NAME) or record.has(CanonicalField.FIRST_NAME)
    if not (has_name or has_phone):
        return RejectionReason.MISSING_NAME_AND_PHONE
    if not has_phone:
        return RejectionReason.MISSING_PHONE
    return None


@dataclass
class ValidationOutcome:
    """Partition of mapped records into importable leads and rejections."""

    valid: List[MappedLeadRecord] = field(default_factory=list)
    invalid: List[InvalidRowReport] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.valid) + len(self.invalid)

    def reasons(self) -> Dict[RejectionReason, int]:
        counts: Dict[RejectionReason, int] = {}
        for report in self.invalid:
            counts[report.reason] = counts.get(report.reason, 0) + 1
        return counts


def partition_records(records: Iterable[MappedLeadRecord]) -> ValidationOutcome:
    """Split records into valid leads and rejected rows.

    Every record ends up in exactly one of the two lists; a rejected row never
    stops the rest of the batch from being checked.
    """

    outcome = ValidationOutcome()
    for record in records:
        reason = validate_record(record)
        if reason is None:
            outcome.valid.append(record)
            continue
        LOGGER.warning("Row %s rejected: %s", record.row_number, reason.value)
        outcome.invalid.append(InvalidRowReport(row=record.row_number, reason=reason))

    LOGGER.info("Validation kept %s rows and rejected %s", len(outcome.valid), len(outcome.invalid))
    return outcome


def duplicate_keys_in_batch(records: Iterable[MappedLeadRecord]) -> Dict[Tuple[str, str], List[int]]:
    """Find rows within one file that describe the same person.

    Rows are keyed by folded name and the last ten digits of the phone. Only
    keys seen on more than one row are returned. The import endpoint decides
    what is actually a duplicate; this only helps the user spot repeats before
    confirming.
    """

    seen: Dict[Tuple[str, str], List[int]] = {}
    for record in records:
        phone = normalize_phone_digits(record.get(CanonicalField.PHONE))
        if phone is None:
            continue
        full_name = record.get(CanonicalField.FULL_NAME)
        if full_name:
            name = normalize_person_name(full_name)
        else:
            name = normalize_person_name(record.get(CanonicalField.FIRST_NAME), record.get(CanonicalField.LAST_NAME))
        seen.setdefault((name, phone), []).append(record.row_number)
    return {key: rows for key, rows in seen.items() if len(rows) > 1}


__all__ = ["ValidationOutcome", "duplicate_keys_in_batch", "partition_records", "validate_record"]
