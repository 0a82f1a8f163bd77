"""HTTP transport for the bulk lead import endpoint."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Sequence

import requests

from .config import ImportSettings
from .errors import ImportResponseError, ImportTransportError
from .models import ImportResult, MappedLeadRecord

LOGGER = logging.getLogger(__name__)


class ImportClientProtocol(Protocol):
    """Interface the import session expects from its transport."""

    def submit(self, leads: Sequence[MappedLeadRecord]) -> ImportResult:  # pragma: no cover - runtime protocol
        """Send ``leads`` to the server and return what it reports."""


class ImportEndpointClient:
    """Posts accepted leads to ``/api/external-leads/import`` in a single batch.

    The server owns persistence and duplicate detection; this client only
    transports the records and decodes the counts it answers with.
    """

    def __init__(self, settings: ImportSettings, *, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._settings.endpoint_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        headers.update(self._settings.extra_headers)
        if self._settings.auth_token:
            headers["Authorization"] = f"Bearer {self._settings.auth_token}"
        return headers

    def submit(self, leads: Sequence[MappedLeadRecord]) -> ImportResult:
        payload = {"leads": [lead.as_payload() for lead in leads]}
        url = self.url
        LOGGER.info("Submitting %s leads to %s", len(leads), url)

        try:
            response = self._session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ImportTransportError(f"Could not reach the import endpoint: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ImportTransportError(
                f"Import endpoint answered {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ImportResponseError("Import endpoint did not return JSON") from exc

        result = ImportResult.from_payload(body)
        LOGGER.info(
            "Import endpoint reported %s imported, %s duplicates, %s errors, %s warnings",
            result.imported,
            result.duplicates,
            len(result.errors),
            len(result.warnings),
        )
        return result

    def close(self) -> None:
        self._session.close()


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])[:200]
    return str(body)[:200]


__all__ = ["ImportClientProtocol", "ImportEndpointClient"]
