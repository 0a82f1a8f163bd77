"""Text folding used before matching headers and comparing leads."""
from __future__ import annotations

import re
import unicodedata
from typing import Optional

_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"\D")


def normalize_header(header: object) -> str:
    """Fold accents, case and spacing so headers compare on their letters only.

    ``"  Teléfono   Celular "`` becomes ``"telefono celular"``. Applying the
    function twice gives the same result as applying it once.
    """

    if header is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(header))
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _WHITESPACE.sub(" ", stripped.lower().strip())


def normalize_phone_digits(phone: Optional[str]) -> Optional[str]:
    """Reduce a phone number to the digits used to compare leads.

    Numbers with a country prefix keep their last ten digits. Fragments
    shorter than four digits are treated as missing.
    """

    if not phone:
        return None
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) >= 10:
        return digits[-10:]
    return digits if len(digits) >= 4 else None


def normalize_person_name(first_name: Optional[str], last_name: Optional[str] = None) -> str:
    text = f"{first_name or ''} {last_name or ''}"
    return _WHITESPACE.sub(" ", text.lower().strip())


__all__ = ["normalize_header", "normalize_person_name", "normalize_phone_digits"]
