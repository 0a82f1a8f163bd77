"""Command line interface for previewing and committing a bulk lead import."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from .client import ImportEndpointClient
from .config import ImportSettings
from .errors import ConfigurationError, LeadImportError
from .ingestion.exporters import EXPORT_SUFFIXES, export_rejections
from .session import ImportSessionController, LoadOutcome

LOGGER = logging.getLogger(__name__)


def _export_path(value: str) -> Path:
    path = Path(value)
    if path.suffix.lower() not in EXPORT_SUFFIXES:
        supported = ", ".join(sorted(EXPORT_SUFFIXES))
        raise argparse.ArgumentTypeError(f"{value!r} must end in one of: {supported}")
    return path


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Import leads from a CSV or Excel file into the agency CRM",
    )
    parser.add_argument("input", help="Path to the spreadsheet to import (CSV, XLS or XLSX)")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a settings file (YAML or JSON) with the import endpoint details",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Base URL of the CRM server; overrides the value from --config",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Submit without asking for confirmation after the preview",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Stop after the preview without contacting the server",
    )
    parser.add_argument(
        "--rejections-out",
        default=None,
        type=_export_path,
        help="Write the rejected rows and their reasons to this CSV or XLSX file",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _load_settings(args: argparse.Namespace) -> ImportSettings:
    settings = ImportSettings.from_file(args.config) if args.config else ImportSettings()
    if args.base_url:
        settings.base_url = args.base_url
    return settings


def _print_preview(controller: ImportSessionController, outcome: LoadOutcome) -> None:
    session = controller.session
    print(f"File: {session.source_name}")
    if session.mapping is not None:
        print("Columns:")
        for line in session.mapping.describe():
            print(f"  {line}")

    validation = outcome.validation
    if validation is not None:
        print(f"Rows: {validation.total} ({len(validation.valid)} valid, {len(validation.invalid)} invalid)")
        for report in validation.invalid:
            print(f"  {report.describe()}")
    if session.blank_rows:
        print(f"Blank rows skipped: {', '.join(str(row) for row in session.blank_rows)}")

    for rows in session.batch_duplicates.values():
        print(f"Rows {', '.join(str(row) for row in rows)} look like the same lead")

    preview = controller.preview_rows
    if preview:
        print(f"Preview (first {len(preview)} of {len(session.valid_leads)}):")
        for record in preview:
            fields = ", ".join(f"{key}={value}" for key, value in record.as_payload().items())
            print(f"  Row {record.row_number}: {fields}")


def _print_rejections(outcome: LoadOutcome) -> None:
    if outcome.validation is None:
        return
    for report in outcome.validation.invalid:
        print(f"  {report.describe()}")


def main(argv: list[str] | None = None, *, confirm: Callable[[str], str] = input) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    try:
        settings = _load_settings(args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    client = ImportEndpointClient(settings)
    controller = ImportSessionController(
        client,
        preview_size=settings.preview_size,
        report_limit=settings.report_limit,
    )

    try:
        outcome = controller.load_file(Path(args.input))
        if args.rejections_out and outcome.validation is not None:
            destination = export_rejections(outcome.validation.invalid, args.rejections_out)
            LOGGER.info("Rejected rows written to %s", destination.resolve())

        if not outcome.ok:
            print(outcome.message, file=sys.stderr)
            _print_rejections(outcome)
            return 1

        _print_preview(controller, outcome)
        print(outcome.message)
        if args.dry_run:
            return 0

        if not settings.base_url:
            print("No base URL configured; pass --base-url or set it in --config", file=sys.stderr)
            return 1

        if not args.yes:
            try:
                answer = confirm(f"Import {len(controller.session.valid_leads)} leads? [y/N] ")
            except EOFError:
                # stdin closed: treat as "no"
                print()
                answer = ""
            if answer.strip().lower() not in {"y", "yes", "s", "si"}:
                print("Import cancelled")
                return 0

        try:
            report = controller.confirm()
        except LeadImportError as exc:
            print(f"Import failed: {exc}", file=sys.stderr)
            return 1

        for line in report.lines():
            print(line)
        return 0
    finally:
        client.close()


__all__ = ["build_parser", "main", "parse_args"]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
