"""Display-side summary of what the import endpoint reported."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .models import ErrorDetail, ImportResult, WarningDetail

DEFAULT_REPORT_LIMIT = 10


@dataclass(frozen=True)
class ImportReport:
    """Counts plus a bounded slice of the per-row errors and warnings."""

    result: ImportResult
    limit: int = DEFAULT_REPORT_LIMIT

    @property
    def imported(self) -> int:
        return self.result.imported

    @property
    def duplicates(self) -> int:
        return self.result.duplicates

    @property
    def error_count(self) -> int:
        return len(self.result.errors)

    @property
    def warning_count(self) -> int:
        return len(self.result.warnings)

    @property
    def visible_errors(self) -> List[ErrorDetail]:
        return self.result.errors[: self.limit]

    @property
    def visible_warnings(self) -> List[WarningDetail]:
        return self.result.warnings[: self.limit]

    @property
    def hidden_error_count(self) -> int:
        return max(self.error_count - self.limit, 0)

    @property
    def hidden_warning_count(self) -> int:
        return max(self.warning_count - self.limit, 0)

    @property
    def more_errors_text(self) -> Optional[str]:
        return _more_text(self.hidden_error_count)

    @property
    def more_warnings_text(self) -> Optional[str]:
        return _more_text(self.hidden_warning_count)

    def lines(self) -> List[str]:
        """Render the report as plain text lines."""
        lines = [
            f"Imported: {self.imported}",
            f"Duplicates skipped: {self.duplicates}",
            f"Warnings: {self.warning_count}",
            f"Errors: {self.error_count}",
        ]
        if self.visible_warnings:
            lines.append("Warnings:")
            lines.extend(f"  Row {item.row} ({item.name}): {item.warning}" for item in self.visible_warnings)
            if self.more_warnings_text:
                lines.append(f"  {self.more_warnings_text}")
        if self.visible_errors:
            lines.append("Errors:")
            lines.extend(f"  Row {item.row}: {item.error}" for item in self.visible_errors)
            if self.more_errors_text:
                lines.append(f"  {self.more_errors_text}")
        return lines


def _more_text(hidden: int) -> Optional[str]:
    if hidden <= 0:
        return None
    return f"... and {hidden} more"


def summarize_result(result: ImportResult, *, limit: int = DEFAULT_REPORT_LIMIT) -> ImportReport:
    return ImportReport(result=result, limit=limit)


__all__ = ["DEFAULT_REPORT_LIMIT", "ImportReport", "summarize_result"]
