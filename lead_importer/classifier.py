"""Map free-form spreadsheet headers onto canonical lead fields."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import CanonicalField
from .normalizer import normalize_header

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldPatterns:
    """Synonyms recognised for one canonical field.

    ``contains`` patterns match anywhere inside the header; ``exact`` patterns
    must equal the whole header.
    """

    field: CanonicalField
    contains: Tuple[str, ...] = ()
    exact: Tuple[str, ...] = ()


# Order matters: the first entry with a matching pattern wins, so "nombre
# completo" must be tried before the bare "nombre" of FIRST_NAME.
FIELD_PATTERNS: Tuple[FieldPatterns, ...] = (
    FieldPatterns(
        CanonicalField.REGISTRATION_DATE,
        contains=("fecha registro", "fecha de registro", "registration date", "date registered", "fecha"),
    ),
    FieldPatterns(CanonicalField.FULL_NAME, contains=("nombre completo", "full name", "nombre y apellido")),
    FieldPatterns(CanonicalField.FIRST_NAME, contains=("first name", "primer nombre"), exact=("nombre",)),
    FieldPatterns(CanonicalField.LAST_NAME, contains=("apellido", "last name", "apellidos")),
    FieldPatterns(CanonicalField.PHONE, contains=("telefono", "celular", "phone", "tel", "movil", "cel")),
    FieldPatterns(CanonicalField.CONTRACT_DURATION, contains=("duracion", "contrato", "contract duration", "meses")),
    FieldPatterns(CanonicalField.MOVE_IN_DATE_TEXT, contains=("entrada", "check in", "move in", "mudanza", "ingreso")),
    FieldPatterns(CanonicalField.HAS_PETS_TEXT, contains=("mascota", "pet", "animales")),
    FieldPatterns(
        CanonicalField.BUDGET_TEXT,
        contains=("presupuesto", "budget", "renta mensual", "costo", "precio"),
    ),
    FieldPatterns(
        CanonicalField.BEDROOMS_TEXT,
        contains=("recamara", "habitacion", "bedroom", "cuarto", "dormitorio"),
    ),
    FieldPatterns(
        CanonicalField.DESIRED_PROPERTY,
        contains=("propiedad", "departamento especifico", "unidad", "desired property", "specific"),
    ),
    FieldPatterns(
        CanonicalField.PREFERRED_NEIGHBORHOOD,
        contains=("zona", "colonia", "area", "neighborhood", "barrio", "ubicacion"),
    ),
    FieldPatterns(
        CanonicalField.PRIMARY_SELLER_NAME,
        contains=("vendedor principal", "asesor principal", "seller", "vendedor"),
    ),
    FieldPatterns(
        CanonicalField.SECONDARY_SELLER_NAME,
        contains=("vendedor secundario", "asistente", "segundo vendedor", "assistant"),
    ),
    FieldPatterns(CanonicalField.NOTES, contains=("nota", "comentario", "observacion", "notes", "comment")),
    FieldPatterns(CanonicalField.STATUS, contains=("estado", "status", "estatus")),
    FieldPatterns(CanonicalField.EMAIL, contains=("email", "correo", "e-mail")),
)


class FieldClassifier:
    """First-match classifier over an ordered pattern table."""

    def __init__(self, table: Sequence[FieldPatterns] = FIELD_PATTERNS) -> None:
        self._table: List[Tuple[CanonicalField, Tuple[str, ...], Tuple[str, ...]]] = [
            (
                entry.field,
                tuple(normalize_header(pattern) for pattern in entry.contains),
                tuple(normalize_header(pattern) for pattern in entry.exact),
            )
            for entry in table
        ]

    def classify(self, raw_header: object) -> Optional[CanonicalField]:
        """Return the canonical field for ``raw_header`` or ``None`` when unrecognised."""

        header = normalize_header(raw_header)
        if not header:
            return None
        for canonical, contains, exact in self._table:
            if header in exact:
                return canonical
            if any(pattern in header for pattern in contains):
                return canonical
        return None


@dataclass
class HeaderMapping:
    """Result of classifying every column of a header row."""

    headers: List[str]
    columns: Dict[int, CanonicalField] = field(default_factory=dict)
    unrecognized: List[str] = field(default_factory=list)
    shadowed: Dict[int, CanonicalField] = field(default_factory=dict)

    def fields(self) -> List[CanonicalField]:
        """Canonical fields found, in column order, without repeats."""
        seen: List[CanonicalField] = []
        for index in sorted(self.columns):
            if self.columns[index] not in seen:
                seen.append(self.columns[index])
        return seen

    def has_field(self, canonical: CanonicalField) -> bool:
        return canonical in self.columns.values()

    def describe(self) -> List[str]:
        lines: List[str] = []
        for index, header in enumerate(self.headers):
            canonical = self.columns.get(index)
            if canonical is None:
                lines.append(f"{header!r} -> (ignored)")
            elif index in self.shadowed:
                lines.append(f"{header!r} -> {canonical.value} (fallback column)")
            else:
                lines.append(f"{header!r} -> {canonical.value}")
        return lines


def classify_headers(headers: Iterable[object], classifier: Optional[FieldClassifier] = None) -> HeaderMapping:
    """Classify each header cell and record which columns share a field.

    When several columns land on the same field the leftmost one is the
    primary source; the others are kept as fallbacks and listed in
    ``shadowed``.
    """

    classifier = classifier or FieldClassifier()
    header_texts = ["" if header is None else str(header).strip() for header in headers]
    mapping = HeaderMapping(headers=header_texts)

    for index, header in enumerate(header_texts):
        canonical = classifier.classify(header)
        if canonical is None:
            if header:
                mapping.unrecognized.append(header)
            LOGGER.debug("Column %s (%r) is not a lead field", index + 1, header)
            continue
        if mapping.has_field(canonical):
            mapping.shadowed[index] = canonical
            LOGGER.warning(
                "Column %s (%r) maps to %s which an earlier column already provides; using it as a fallback",
                index + 1,
                header,
                canonical.value,
            )
        mapping.columns[index] = canonical

    LOGGER.info(
        "Recognised %s of %s columns (%s ignored)",
        len(mapping.columns),
        len(header_texts),
        len(header_texts) - len(mapping.columns),
    )
    return mapping


__all__ = ["FIELD_PATTERNS", "FieldPatterns", "FieldClassifier", "HeaderMapping", "classify_headers"]
