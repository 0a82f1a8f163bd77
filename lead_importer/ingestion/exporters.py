"""Export rejected rows and accepted leads so users can fix and re-upload them."""
from __future__ import annotations

from pathlib import Path
from typing import List, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import CanonicalField, InvalidRowReport, MappedLeadRecord

PathLike = Union[str, Path]

REJECTION_COLUMNS = ["row", "reason"]
EXPORT_SUFFIXES = {".csv", ".tsv", ".xlsx", ".xlsm"}


def export_rejections(
    reports: Sequence[InvalidRowReport],
    path: PathLike,
    *,
    sheet_name: str = "Rejected",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write one line per rejected row (sheet row number and reason)."""

    dataframe = rejections_to_dataframe(reports)
    output_path = Path(path)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def export_leads(
    records: Sequence[MappedLeadRecord],
    path: PathLike,
    *,
    sheet_name: str = "Leads",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write mapped leads using the canonical field names as headers."""

    dataframe = leads_to_dataframe(records)
    output_path = Path(path)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def rejections_to_dataframe(reports: Sequence[InvalidRowReport]) -> pd.DataFrame:
    rows = [{"row": report.row, "reason": report.reason.value} for report in reports]
    return pd.DataFrame(rows, columns=REJECTION_COLUMNS)


def leads_to_dataframe(records: Sequence[MappedLeadRecord]) -> pd.DataFrame:
    """Convert mapped records into a :class:`pandas.DataFrame`.

    Only fields that appear in at least one record become columns, in the
    canonical field order.
    """

    present = {canonical for record in records for canonical in record.values}
    columns: List[str] = ["row"] + [canonical.value for canonical in CanonicalField if canonical in present]
    rows = []
    for record in records:
        row: MutableMapping[str, object] = {"row": record.row_number}
        row.update(record.as_payload())
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()
    if suffix not in EXPORT_SUFFIXES:
        raise ValueError(f"Unsupported export file extension: {suffix or '(none)'}")
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    engine = exporter_kwargs.pop("engine", None) or "openpyxl"
    dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)


__all__ = ["EXPORT_SUFFIXES", "export_leads", "export_rejections", "leads_to_dataframe", "rejections_to_dataframe"]
