"""Configuration helpers for the lead import workflow."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

DEFAULT_ENDPOINT_PATH = "/api/external-leads/import"

_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' could not be parsed: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass
class ImportSettings:
    """Where and how accepted leads are submitted."""

    base_url: Optional[str] = None
    endpoint_path: str = DEFAULT_ENDPOINT_PATH
    timeout_seconds: float = 30.0
    preview_size: int = 10
    report_limit: int = 10
    auth_token: Optional[str] = None
    extra_headers: Dict[str, str] = field(default_factory=dict)

    @property
    def endpoint_url(self) -> str:
        if not self.base_url:
            raise ConfigurationError("No base URL configured for the import endpoint")
        return f"{self.base_url.rstrip('/')}/{self.endpoint_path.lstrip('/')}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ImportSettings":
        section = data.get("import", data)
        if not isinstance(section, Mapping):
            raise ConfigurationError("The 'import' configuration section must be a mapping")

        unknown = set(section) - {
            "base_url",
            "endpoint_path",
            "timeout_seconds",
            "preview_size",
            "report_limit",
            "auth_token",
            "extra_headers",
        }
        for key in sorted(unknown):
            LOGGER.debug("Ignoring unknown configuration key %s", key)

        headers = section.get("extra_headers") or {}
        if not isinstance(headers, Mapping):
            raise ConfigurationError("'extra_headers' must be a mapping of header names to values")

        return cls(
            base_url=section.get("base_url") or None,
            endpoint_path=str(section.get("endpoint_path") or DEFAULT_ENDPOINT_PATH),
            timeout_seconds=_positive(section, "timeout_seconds", 30.0, float),
            preview_size=int(_positive(section, "preview_size", 10, int)),
            report_limit=int(_positive(section, "report_limit", 10, int)),
            auth_token=section.get("auth_token") or None,
            extra_headers={str(key): str(value) for key, value in headers.items()},
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "ImportSettings":
        return cls.from_mapping(load_configuration(path))


def _positive(section: Mapping[str, Any], key: str, default: float, kind: type) -> float:
    raw = section.get(key)
    if raw is None:
        return default
    try:
        value = kind(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"'{key}' must be greater than zero, got {raw!r}")
    return value


__all__ = ["DEFAULT_ENDPOINT_PATH", "ImportSettings", "load_configuration"]
