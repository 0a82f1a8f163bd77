"""Upload, preview and commit workflow for a single bulk lead import."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .classifier import FieldClassifier, HeaderMapping, classify_headers
from .client import ImportClientProtocol
from .errors import (
    EmptyFileError,
    ImportFileError,
    InvalidTransitionError,
    LeadImportError,
    NoValidRowsError,
)
from .ingestion.loaders import Source, load_sheet
from .mapper import map_sheet
from .models import ImportResult, InvalidRowReport, MappedLeadRecord
from .results import DEFAULT_REPORT_LIMIT, ImportReport, summarize_result
from .validation import ValidationOutcome, duplicate_keys_in_batch, partition_records

LOGGER = logging.getLogger(__name__)

DEFAULT_PREVIEW_SIZE = 10


class SessionState(str, Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    IMPORTING = "importing"
    COMPLETE = "complete"


ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.UPLOAD: frozenset({SessionState.PREVIEW}),
    SessionState.PREVIEW: frozenset({SessionState.UPLOAD, SessionState.IMPORTING}),
    SessionState.IMPORTING: frozenset({SessionState.COMPLETE, SessionState.PREVIEW}),
    SessionState.COMPLETE: frozenset({SessionState.UPLOAD}),
}


@dataclass
class ImportSession:
    """Everything known about the file currently being imported."""

    state: SessionState = SessionState.UPLOAD
    source_name: Optional[str] = None
    mapping: Optional[HeaderMapping] = None
    records: List[MappedLeadRecord] = field(default_factory=list)
    validation: ValidationOutcome = field(default_factory=ValidationOutcome)
    blank_rows: List[int] = field(default_factory=list)
    batch_duplicates: Dict[Tuple[str, str], List[int]] = field(default_factory=dict)
    result: Optional[ImportResult] = None
    last_error: Optional[Exception] = None

    @property
    def valid_leads(self) -> List[MappedLeadRecord]:
        return self.validation.valid

    @property
    def invalid_rows(self) -> List[InvalidRowReport]:
        return self.validation.invalid


@dataclass
class LoadOutcome:
    """What happened when a file was offered to the session."""

    ok: bool
    message: str
    validation: Optional[ValidationOutcome] = None
    error: Optional[LeadImportError] = None


class ImportSessionController:
    """Drives one import session through ``upload → preview → importing → complete``.

    Only one submission may be in flight: a confirm is accepted solely from
    ``preview``, and the move to ``importing`` happens before the network call
    starts. A failed submission returns the session to ``preview`` with the
    same valid leads so it can be retried without re-reading the file.
    """

    def __init__(
        self,
        client: ImportClientProtocol,
        *,
        preview_size: int = DEFAULT_PREVIEW_SIZE,
        report_limit: int = DEFAULT_REPORT_LIMIT,
        classifier: Optional[FieldClassifier] = None,
    ) -> None:
        self._client = client
        self._preview_size = preview_size
        self._report_limit = report_limit
        self._classifier = classifier or FieldClassifier()
        self._session = ImportSession()
        self._lock = threading.RLock()

    @property
    def session(self) -> ImportSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def preview_rows(self) -> List[MappedLeadRecord]:
        return self._session.valid_leads[: self._preview_size]

    @property
    def report(self) -> Optional[ImportReport]:
        if self._session.result is None:
            return None
        return summarize_result(self._session.result, limit=self._report_limit)

    def _transition(self, target: SessionState) -> None:
        current = self._session.state
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(f"Cannot move import session from {current.value} to {target.value}")
        LOGGER.debug("Import session %s -> %s", current.value, target.value)
        self._session.state = target

    # --- upload ---

    def load_file(self, source: Source, *, filename: Optional[str] = None) -> LoadOutcome:
        """Read, map and validate a file; move to ``preview`` if anything can be imported.

        Expected failures (unreadable file, no data rows, no valid rows) are
        reported through the returned :class:`LoadOutcome` and leave the
        session in ``upload``.
        """

        with self._lock:
            if self._session.state is SessionState.IMPORTING:
                raise InvalidTransitionError("Cannot load a new file while an import is in progress")
            if self._session.state is not SessionState.UPLOAD:
                self.reset()

            try:
                sheet = load_sheet(source, filename=filename)
            except EmptyFileError as exc:
                LOGGER.warning("Rejected upload: %s", exc)
                return LoadOutcome(ok=False, message=f"The file has no data rows: {exc}", error=exc)
            except ImportFileError as exc:
                LOGGER.warning("Rejected upload: %s", exc)
                return LoadOutcome(ok=False, message=f"The file could not be read: {exc}", error=exc)

            mapping = classify_headers(sheet.headers, self._classifier)
            records = map_sheet(sheet, mapping)
            validation = partition_records(records)

            if not validation.valid:
                error = NoValidRowsError(
                    f"None of the {validation.total} rows in {sheet.source_name} has a phone number"
                )
                LOGGER.warning("Rejected upload: %s", error)
                return LoadOutcome(ok=False, message=str(error), validation=validation, error=error)

            self._session.source_name = sheet.source_name
            self._session.mapping = mapping
            self._session.records = records
            self._session.validation = validation
            self._session.blank_rows = list(sheet.blank_rows)
            self._session.batch_duplicates = duplicate_keys_in_batch(validation.valid)
            for (name, phone), rows in self._session.batch_duplicates.items():
                LOGGER.info("Rows %s repeat the same lead (%s, %s)", rows, name, phone)
            self._transition(SessionState.PREVIEW)

            message = f"{len(validation.valid)} leads ready to import"
            if validation.invalid:
                message += f", {len(validation.invalid)} rows will be skipped"
            return LoadOutcome(ok=True, message=message, validation=validation)

    def reset(self) -> None:
        """Drop the current file and go back to waiting for an upload."""

        with self._lock:
            if self._session.state is SessionState.UPLOAD:
                return
            self._transition(SessionState.UPLOAD)
            self._session = ImportSession()

    # --- commit ---

    def _begin_import(self) -> List[MappedLeadRecord]:
        with self._lock:
            if self._session.state is not SessionState.PREVIEW:
                raise InvalidTransitionError(
                    f"Cannot start an import while the session is in {self._session.state.value}"
                )
            self._transition(SessionState.IMPORTING)
            self._session.last_error = None
            return list(self._session.valid_leads)

    def _run_import(self, leads: List[MappedLeadRecord]) -> ImportReport:
        try:
            result = self._client.submit(leads)
        except Exception as exc:
            LOGGER.exception("Import of %s leads failed; returning to preview", len(leads))
            with self._lock:
                self._session.last_error = exc
                self._transition(SessionState.PREVIEW)
            raise

        with self._lock:
            self._session.result = result
            self._transition(SessionState.COMPLETE)
        return summarize_result(result, limit=self._report_limit)

    def confirm(self) -> ImportReport:
        """Submit every valid lead and wait for the server's answer.

        Raises :class:`InvalidTransitionError` outside ``preview``; transport
        and response errors are re-raised after the session has returned to
        ``preview``.
        """

        leads = self._begin_import()
        return self._run_import(leads)

    def confirm_in_background(self, executor: Executor) -> "Future[ImportReport]":
        """Like :meth:`confirm`, but the network call runs on ``executor``.

        The session is already in ``importing`` when this returns, so a second
        confirm issued before the future resolves is refused.
        """

        leads = self._begin_import()
        try:
            return executor.submit(self._run_import, leads)
        except RuntimeError:
            # executor already shut down; nothing was sent
            with self._lock:
                self._transition(SessionState.PREVIEW)
            raise


__all__ = [
    "ALLOWED_TRANSITIONS",
    "DEFAULT_PREVIEW_SIZE",
    "ImportSession",
    "ImportSessionController",
    "LoadOutcome",
    "SessionState",
]
