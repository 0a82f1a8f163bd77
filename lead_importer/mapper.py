"""Turn spreadsheet rows into records keyed by canonical lead field."""
from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .classifier import HeaderMapping
from .ingestion.loaders import ParsedSheet, is_blank
from .models import CanonicalField, MappedLeadRecord

LOGGER = logging.getLogger(__name__)


def clean_cell(value: Any) -> Optional[str]:
    """Convert a raw cell into trimmed text, or ``None`` when it holds nothing.

    Spreadsheet engines hand back numbers as floats and dates as timestamps;
    phones such as ``9981234567`` must not come out as ``"9981234567.0"``.
    """

    if is_blank(value):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, dt.datetime):
        if value.time() == dt.time(0, 0):
            return value.date().isoformat()
        return value.isoformat(timespec="seconds")
    if isinstance(value, dt.date):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def map_row(row_number: int, cells: Sequence[Any], mapping: HeaderMapping) -> MappedLeadRecord:
    """Pair each recognised cell of one row with its canonical field.

    Columns are visited left to right, so when two columns share a field the
    leftmost non-empty cell provides the value.
    """

    values: Dict[CanonicalField, str] = {}
    for index in sorted(mapping.columns):
        canonical = mapping.columns[index]
        if canonical in values or index >= len(cells):
            continue
        text = clean_cell(cells[index])
        if text is not None:
            values[canonical] = text
    return MappedLeadRecord(row_number=row_number, values=values)


def map_rows(rows: Iterable[Tuple[int, Sequence[Any]]], mapping: HeaderMapping) -> List[MappedLeadRecord]:
    records = [map_row(row_number, cells, mapping) for row_number, cells in rows]
    LOGGER.debug("Mapped %s rows onto %s canonical fields", len(records), len(mapping.fields()))
    return records


def map_sheet(sheet: ParsedSheet, mapping: HeaderMapping) -> List[MappedLeadRecord]:
    return map_rows(sheet.rows, mapping)


__all__ = ["clean_cell", "map_row", "map_rows", "map_sheet"]
