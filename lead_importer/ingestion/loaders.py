"""Utilities for reading the header row and data rows of an uploaded spreadsheet."""
from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, MutableMapping, Optional, Tuple, Union

import pandas as pd
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from ..errors import EmptyFileError, ImportFileError, UnsupportedFileTypeError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
Source = Union[PathLike, bytes, bytearray]

CSV_SUFFIXES = {".csv", ".tsv"}
EXCEL_SUFFIXES = {".xls", ".xlsx", ".xlsm"}
SUPPORTED_SUFFIXES = CSV_SUFFIXES | EXCEL_SUFFIXES

_CSV_ENCODINGS = ("utf-8-sig", "cp1252")
_READ_ERRORS = (
    ValueError,
    OSError,
    KeyError,
    zipfile.BadZipFile,
    InvalidFileException,
    xlrd.XLRDError,
    pd.errors.EmptyDataError,
)


@dataclass
class ParsedSheet:
    """Header row plus the non-blank data rows of a single sheet.

    Each data row is stored with its 1-based sheet row number so later stages
    can report problems against what the user sees in their spreadsheet.
    """

    source_name: str
    headers: List[str]
    rows: List[Tuple[int, List[Any]]] = field(default_factory=list)
    blank_rows: List[int] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def load_sheet(
    source: Source,
    *,
    filename: Optional[str] = None,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> ParsedSheet:
    """Read a CSV or Excel file into a :class:`ParsedSheet`.

    Parameters
    ----------
    source:
        A path to the file, or its raw bytes as received from an upload.
    filename:
        Original file name. Required with raw bytes so the format can be
        chosen from the extension; defaults to the path's name otherwise.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_csv` or
        :func:`pandas.read_excel`.
    """

    if isinstance(source, (bytes, bytearray)):
        if not filename:
            raise UnsupportedFileTypeError("A file name is required to detect the format of uploaded bytes")
        name = filename
    else:
        name = filename or Path(source).name

    dataframe = _read_dataframe(source, name, loader_kwargs=loader_kwargs)
    sheet = _split_header(dataframe, name)
    LOGGER.info(
        "Read %s data rows from %s (%s blank rows skipped)",
        sheet.row_count,
        name,
        len(sheet.blank_rows),
    )
    return sheet


def _read_dataframe(
    source: Source,
    name: str,
    *,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    suffix = Path(name).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileTypeError(f"Unsupported file extension: {Path(name).suffix or '(none)'}")

    if isinstance(source, (bytes, bytearray)) and not source:
        raise EmptyFileError(f"{name} is empty")
    if not isinstance(source, (bytes, bytearray)) and not Path(source).exists():
        raise ImportFileError(f"{name} was not found")

    try:
        if suffix in CSV_SUFFIXES:
            if suffix == ".tsv":
                loader_kwargs.setdefault("sep", "\t")
            return _read_csv(source, loader_kwargs)
        engine = loader_kwargs.pop("engine", None) or ("xlrd" if suffix == ".xls" else "openpyxl")
        return pd.read_excel(
            _as_buffer(source),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=engine,
            **loader_kwargs,
        )
    except pd.errors.EmptyDataError as exc:
        raise EmptyFileError(f"{name} is empty") from exc
    except _READ_ERRORS as exc:
        raise ImportFileError(f"Could not read {name}: {exc}") from exc


def _read_csv(source: Source, loader_kwargs: MutableMapping[str, Any]) -> pd.DataFrame:
    requested = loader_kwargs.pop("encoding", None)
    encodings = (requested,) if requested else _CSV_ENCODINGS
    for encoding in encodings[:-1]:
        try:
            return _read_csv_as(source, encoding, loader_kwargs)
        except UnicodeDecodeError:
            LOGGER.debug("CSV is not %s encoded, trying the next encoding", encoding)
    return _read_csv_as(source, encodings[-1], loader_kwargs)


def _read_csv_as(source: Source, encoding: str, loader_kwargs: MutableMapping[str, Any]) -> pd.DataFrame:
    # Every cell stays text and blank lines are kept so row numbers match the file.
    options: dict = {"engine": "python", "on_bad_lines": _trim_extra_fields}
    options.update(loader_kwargs)
    return pd.read_csv(
        _as_buffer(source),
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        encoding=encoding,
        **options,
    )


def _trim_extra_fields(fields: List[str]) -> List[str]:
    """Handle a line with more fields than the header row.

    Spreadsheet exports often end data lines with a stray delimiter. Empty
    trailing fields are dropped; pandas discards whatever is still wider than
    the header.
    """

    trimmed = list(fields)
    while trimmed and not str(trimmed[-1]).strip():
        trimmed.pop()
    if len(trimmed) == len(fields):
        LOGGER.warning("Ignoring values beyond the header columns: %s", fields)
    else:
        LOGGER.debug("Dropped %s empty trailing fields", len(fields) - len(trimmed))
    return trimmed


def _as_buffer(source: Source) -> Union[Path, io.BytesIO]:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    return Path(source)


def _split_header(dataframe: pd.DataFrame, name: str) -> ParsedSheet:
    values = dataframe.to_numpy(dtype=object).tolist()
    if not values:
        raise EmptyFileError(f"{name} has no header row")

    headers = ["" if is_blank(cell) else str(cell).strip() for cell in values[0]]
    sheet = ParsedSheet(source_name=name, headers=headers)
    for offset, row in enumerate(values[1:]):
        # Row 1 is the header, so the first data row is sheet row 2.
        row_number = offset + 2
        if _row_is_empty(row):
            sheet.blank_rows.append(row_number)
            continue
        sheet.rows.append((row_number, list(row)))

    if not sheet.rows:
        raise EmptyFileError(f"{name} has a header row but no data rows")
    return sheet


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _row_is_empty(row: List[Any]) -> bool:
    return all(is_blank(value) for value in row)


__all__ = [
    "CSV_SUFFIXES",
    "EXCEL_SUFFIXES",
    "SUPPORTED_SUFFIXES",
    "ParsedSheet",
    "is_blank",
    "load_sheet",
]
