"""Smoke tests for the CLI entry point."""
from __future__ import annotations

import json

import pandas as pd
import pytest

from lead_importer import __main__
from lead_importer.cli import main
from lead_importer.client import ImportEndpointClient
from lead_importer.errors import ImportTransportError
from lead_importer.models import ImportResult


@pytest.fixture()
def input_path(tmp_path):
    path = tmp_path / "leads.csv"
    path.write_text(
        "Nombre Completo,Teléfono,Correo\n"
        "Juan Pérez,9981234567,juan@example.com\n"
        "Ana Ruiz,,ana@example.com\n"
        "Luis Gómez,9987654321,\n",
        encoding="utf-8",
    )
    return path


def test_cli_dry_run_prints_preview_and_rejections(input_path, tmp_path, capsys) -> None:
    rejections_path = tmp_path / "rejected.csv"

    exit_code = main([str(input_path), "--dry-run", "--rejections-out", str(rejections_path)])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "'Teléfono' -> phone" in captured.out
    assert "Row 3: missing phone number" in captured.out
    assert "Row 2: fullName=Juan Pérez, phone=9981234567, email=juan@example.com" in captured.out
    assert "2 leads ready to import, 1 rows will be skipped" in captured.out
    assert pd.read_csv(rejections_path)["row"].tolist() == [3]


def test_cli_submits_after_confirmation(input_path, tmp_path, monkeypatch, capsys) -> None:
    submitted = []

    def fake_submit(self, leads):
        submitted.extend(leads)
        return ImportResult(imported=1, duplicates=1)

    monkeypatch.setattr(ImportEndpointClient, "submit", fake_submit)
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"import": {"base_url": "https://crm.example.com"}}), encoding="utf-8")

    exit_code = main([str(input_path), "--config", str(config_path)], confirm=lambda prompt: "y")

    captured = capsys.readouterr()
    assert exit_code == 0
    assert [lead.row_number for lead in submitted] == [2, 4]
    assert "Imported: 1" in captured.out
    assert "Duplicates skipped: 1" in captured.out


def test_cli_declined_confirmation_sends_nothing(input_path, monkeypatch, capsys) -> None:
    def fail_submit(self, leads):  # pragma: no cover - must not be called
        raise AssertionError("submit should not be called")

    monkeypatch.setattr(ImportEndpointClient, "submit", fail_submit)

    exit_code = main([str(input_path), "--base-url", "https://crm.example.com"], confirm=lambda prompt: "n")

    assert exit_code == 0
    assert "Import cancelled" in capsys.readouterr().out


def test_cli_reports_transport_failure(input_path, monkeypatch, capsys) -> None:
    def broken_submit(self, leads):
        raise ImportTransportError("connection refused")

    monkeypatch.setattr(ImportEndpointClient, "submit", broken_submit)

    exit_code = main([str(input_path), "--base-url", "https://crm.example.com", "--yes"])

    assert exit_code == 1
    assert "Import failed: connection refused" in capsys.readouterr().err


def test_cli_reports_empty_file(tmp_path, capsys) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("Nombre,Teléfono\n", encoding="utf-8")

    exit_code = main([str(path), "--dry-run"])

    assert exit_code == 1
    assert "no data rows" in capsys.readouterr().err


def test_cli_requires_base_url_to_submit(input_path, capsys) -> None:
    exit_code = main([str(input_path), "--yes"])

    assert exit_code == 1
    assert "No base URL configured" in capsys.readouterr().err


def test_module_entry_point_delegates_to_cli(input_path, capsys) -> None:
    """The package entry point should behave like the CLI."""

    exit_code = __main__.main([str(input_path), "--dry-run"])

    assert exit_code == 0
    assert "Preview (first 2 of 2)" in capsys.readouterr().out


def test_module_entry_point_without_arguments_shows_help(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = __main__.main([])

    captured = capsys.readouterr()
    assert "python -m lead_importer" in captured.out
    assert exit_code == 2


def test_cli_rejects_unsupported_rejections_extension(input_path, tmp_path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([str(input_path), "--dry-run", "--rejections-out", str(tmp_path / "rejected.txt")])

    assert excinfo.value.code == 2
    assert "--rejections-out" in capsys.readouterr().err
    assert not (tmp_path / "rejected.txt").exists()


def test_cli_preview_lists_blank_rows(tmp_path, capsys) -> None:
    path = tmp_path / "leads.csv"
    path.write_text("Nombre Completo,Teléfono\nJuan Pérez,9981234567\n,\nAna Ruiz,9987654321\n", encoding="utf-8")

    exit_code = main([str(path), "--dry-run"])

    assert exit_code == 0
    assert "Blank rows skipped: 3" in capsys.readouterr().out


def test_cli_closed_stdin_at_confirmation_cancels(input_path, monkeypatch, capsys) -> None:
    def fail_submit(self, leads):  # pragma: no cover - must not be called
        raise AssertionError("submit should not be called")

    def closed_stdin(prompt):
        raise EOFError

    monkeypatch.setattr(ImportEndpointClient, "submit", fail_submit)

    exit_code = main([str(input_path), "--base-url", "https://crm.example.com"], confirm=closed_stdin)

    assert exit_code == 0
    assert "Import cancelled" in capsys.readouterr().out
