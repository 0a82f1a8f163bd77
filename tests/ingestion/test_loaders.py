import datetime as dt
import io
import struct

import pandas as pd
import pytest
from openpyxl import Workbook

from lead_importer.errors import EmptyFileError, ImportFileError, UnsupportedFileTypeError
from lead_importer.ingestion.loaders import load_sheet


def _biff_record(code, payload=b""):
    return struct.pack("<HH", code, len(payload)) + payload


def _biff_bof(stream_type):
    # BIFF8 (Excel 97-2003) beginning-of-stream record
    return _biff_record(0x0809, struct.pack("<HHHHII", 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 0))


def _legacy_xls(rows, sheet_name="Leads"):
    """Build a minimal BIFF8 workbook whose cells are all text labels."""

    def boundsheet(offset):
        name = sheet_name.encode("latin-1")
        return _biff_record(0x0085, struct.pack("<iBBBB", offset, 0, 0, len(name), 0) + name)

    eof = _biff_record(0x000A)
    globals_length = len(_biff_bof(0x0005) + boundsheet(0) + eof)
    workbook_globals = _biff_bof(0x0005) + boundsheet(globals_length) + eof

    cells = b""
    for row_index, row in enumerate(rows):
        for col_index, text in enumerate(row):
            if not text:
                continue
            encoded = text.encode("latin-1")
            cells += _biff_record(0x0204, struct.pack("<HHHHB", row_index, col_index, 0, len(encoded), 0) + encoded)
    return workbook_globals + _biff_bof(0x0010) + cells + eof


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {"Nombre Completo": "Juan Pérez", "Teléfono": "9981234567", "Email": "juan@example.com"},
            {"Nombre Completo": "Ana Ruiz", "Teléfono": "9987654321", "Email": ""},
        ]
    )


def test_load_sheet_from_csv(sample_dataframe, tmp_path):
    csv_path = tmp_path / "leads.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    sheet = load_sheet(csv_path)

    assert sheet.source_name == "leads.csv"
    assert sheet.headers == ["Nombre Completo", "Teléfono", "Email"]
    assert [row_number for row_number, _ in sheet.rows] == [2, 3]
    assert sheet.rows[0][1][:2] == ["Juan Pérez", "9981234567"]


def test_load_sheet_from_xlsx_keeps_native_cell_types(tmp_path):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Fecha de registro", "Nombre", "Teléfono"])
    sheet.append([dt.datetime(2024, 3, 1), "Ana", 9981234567])
    path = tmp_path / "leads.xlsx"
    workbook.save(path)

    parsed = load_sheet(path)

    assert parsed.headers == ["Fecha de registro", "Nombre", "Teléfono"]
    row_number, cells = parsed.rows[0]
    assert row_number == 2
    assert pd.Timestamp(cells[0]) == pd.Timestamp("2024-03-01")
    assert int(cells[2]) == 9981234567


def test_load_sheet_from_uploaded_bytes(sample_dataframe):
    payload = sample_dataframe.to_csv(index=False).encode("utf-8")

    sheet = load_sheet(payload, filename="upload.CSV")

    assert sheet.source_name == "upload.CSV"
    assert sheet.row_count == 2


def test_load_sheet_reads_cp1252_csv():
    payload = "Nombre,Teléfono\nJosé,9981234567\n".encode("cp1252")

    sheet = load_sheet(payload, filename="leads.csv")

    assert sheet.headers == ["Nombre", "Teléfono"]
    assert sheet.rows[0][1] == ["José", "9981234567"]


def test_blank_rows_are_skipped_but_keep_row_numbers():
    payload = b"Nombre,Telefono\nAna,111\n,\nLuis,222\n"

    sheet = load_sheet(payload, filename="leads.csv")

    assert [row_number for row_number, _ in sheet.rows] == [2, 4]
    assert sheet.blank_rows == [3]


def test_header_only_file_is_empty(tmp_path):
    path = tmp_path / "leads.csv"
    path.write_text("Nombre,Telefono\n", encoding="utf-8")

    with pytest.raises(EmptyFileError):
        load_sheet(path)


def test_zero_byte_upload_is_empty():
    with pytest.raises(EmptyFileError):
        load_sheet(b"", filename="leads.xlsx")


def test_corrupt_workbook_is_reported_as_file_error():
    with pytest.raises(ImportFileError):
        load_sheet(b"this is not a zip archive", filename="leads.xlsx")


def test_missing_file_is_reported_as_file_error(tmp_path):
    with pytest.raises(ImportFileError):
        load_sheet(tmp_path / "missing.csv")


def test_unsupported_file_extension(tmp_path):
    bad_path = tmp_path / "leads.json"
    bad_path.write_text("{}", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        load_sheet(bad_path)


def test_bytes_without_filename_are_rejected():
    with pytest.raises(UnsupportedFileTypeError):
        load_sheet(b"Nombre\nAna\n")


def test_trailing_delimiter_on_a_data_line_does_not_reject_the_file():
    payload = "Nombre Completo,Teléfono\nJuan Pérez,9981234567\nAna Ruiz,9987654321,\n".encode("utf-8")

    sheet = load_sheet(payload, filename="leads.csv")

    assert [row_number for row_number, _ in sheet.rows] == [2, 3]
    assert sheet.rows[1][1][:2] == ["Ana Ruiz", "9987654321"]


def test_legacy_xls_workbook_is_read_with_xlrd():
    payload = _legacy_xls(
        [
            ["Nombre Completo", "Teléfono", "Correo"],
            ["Juan Pérez", "9981234567", "juan@example.com"],
            ["Ana Ruiz", "9987654321", ""],
        ]
    )

    sheet = load_sheet(payload, filename="leads.xls")

    assert sheet.headers == ["Nombre Completo", "Teléfono", "Correo"]
    assert [row_number for row_number, _ in sheet.rows] == [2, 3]
    assert sheet.rows[0][1] == ["Juan Pérez", "9981234567", "juan@example.com"]
    assert sheet.rows[1][1][:2] == ["Ana Ruiz", "9987654321"]


def test_xlsx_content_renamed_to_xls_is_reported_as_file_error():
    workbook = Workbook()
    workbook.active.append(["Nombre", "Teléfono"])
    workbook.active.append(["Ana", "9981234567"])
    buffer = io.BytesIO()
    workbook.save(buffer)

    with pytest.raises(ImportFileError):
        load_sheet(buffer.getvalue(), filename="leads.xls")
