"""Inférence du type sémantique d'une colonne à partir de ses valeurs brutes."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum


class ColumnType(str, Enum):
    """Types sémantiques reconnus (ensemble fermé)."""

    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    UUID = "uuid"
    EMAIL = "email"
    PHONE = "phone"
    UNKNOWN = "unknown"


_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^(\+\d{1,3}[\s.-]?)?(\(\d{2,4}\)|\d{2,4})[\s.-]?\d{3,4}[\s.-]?\d{3,4}$")
_CURRENCY_RES = (
    re.compile(r"^\(?[-+]?\s*[$€£¥]\s*-?\d[\d,]*(\.\d+)?\)?$"),
    re.compile(r"^[-+]?\d[\d,]*(\.\d+)?\s*[$€£¥]$"),
    re.compile(r"^[-+]?\d[\d,]*(\.\d+)?\s*(usd|eur|gbp|cad|aud|chf|jpy)$", re.IGNORECASE),
    re.compile(r"^(usd|eur|gbp|cad|aud|chf|jpy)\s*[-+]?\d[\d,]*(\.\d+)?$", re.IGNORECASE),
)
_DATETIME_RES = (
    re.compile(r"^\d{4}-\d{1,2}-\d{1,2}[T ]\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?\s*(Z|[+-]\d{2}:?\d{2})?$"),
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}[ T]\d{1,2}:\d{2}(:\d{2})?(\s*[ap]\.?m\.?)?$", re.IGNORECASE),
)
_MONTHS = r"(jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
_DATE_RES = (
    re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$"),
    re.compile(r"^\d{4}/\d{1,2}/\d{1,2}$"),
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}$"),
    re.compile(r"^\d{1,2}-\d{1,2}-\d{4}$"),
    re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}$"),
    re.compile(rf"^{_MONTHS}\s+\d{{1,2}},?\s+\d{{4}}$", re.IGNORECASE),
    re.compile(rf"^\d{{1,2}}\s+{_MONTHS},?\s+\d{{4}}$", re.IGNORECASE),
)
_BOOLEAN_VALUES = frozenset({"true", "false", "yes", "no", "y", "n", "t", "f"})
_NUMBER_RE = re.compile(r"^[-+]?((\d{1,3}(,\d{3})+|\d+)(\.\d+)?|\.\d+)([eE][-+]?\d+)?$")


def _is_phone(v: str) -> bool:
    # Un nombre (entier nu, décimal "1234567.890") n'est pas un téléphone
    if _NUMBER_RE.match(v):
        return False
    return bool(_PHONE_RE.match(v))


def _is_currency(v: str) -> bool:
    return any(p.match(v) for p in _CURRENCY_RES)


def _is_datetime(v: str) -> bool:
    return any(p.match(v) for p in _DATETIME_RES)


def _is_date(v: str) -> bool:
    return any(p.match(v) for p in _DATE_RES)


# Ordre d'évaluation : la première famille reconnue l'emporte.
PATTERN_FAMILIES: tuple[tuple[ColumnType, Callable[[str], bool]], ...] = (
    (ColumnType.UUID, lambda v: bool(_UUID_RE.match(v))),
    (ColumnType.EMAIL, lambda v: bool(_EMAIL_RE.match(v))),
    (ColumnType.PHONE, _is_phone),
    (ColumnType.CURRENCY, _is_currency),
    (ColumnType.DATETIME, _is_datetime),
    (ColumnType.DATE, _is_date),
    (ColumnType.BOOLEAN, lambda v: v.lower() in _BOOLEAN_VALUES),
    (ColumnType.NUMBER, lambda v: bool(_NUMBER_RE.match(v))),
)
_FAMILY_ORDER = [t for t, _ in PATTERN_FAMILIES] + [ColumnType.STRING]


@dataclass
class InferenceResult:
    """Type inféré d'une colonne, avec confiance et comptages par famille."""

    inferred_type: ColumnType
    confidence: float
    stats: dict[str, int] = field(default_factory=dict)
    patterns: list[str] = field(default_factory=list)


def classify_value(value: str) -> ColumnType:
    """Classe une valeur non vide dans la première famille de motifs reconnue."""
    v = value.strip()
    for column_type, matcher in PATTERN_FAMILIES:
        if matcher(v):
            return column_type
    return ColumnType.STRING


def infer_column(values: Sequence[str | None]) -> InferenceResult:
    """
    Infère le type majoritaire d'une colonne.

    Chaque valeur non nulle est classée (voir ``PATTERN_FAMILIES``) ; la famille
    la plus fréquente devient le type inféré, avec
    ``confidence = correspondances / valeurs non nulles``. En cas d'égalité,
    l'ordre des familles départage. Sans valeur non nulle : ``unknown``, 0.

    Args:
        values: Valeurs brutes (None ou chaîne vide = absente).

    Returns:
        InferenceResult.
    """
    counts: dict[ColumnType, int] = {t: 0 for t in _FAMILY_ORDER}
    non_null = 0
    for value in values:
        if value is None or not str(value).strip():
            continue
        non_null += 1
        counts[classify_value(str(value))] += 1

    stats: dict[str, int] = {"total": len(values), "nonNull": non_null}
    stats.update({t.value: counts[t] for t in _FAMILY_ORDER})

    if non_null == 0:
        return InferenceResult(ColumnType.UNKNOWN, 0.0, stats, [])

    best = max(_FAMILY_ORDER, key=lambda t: (counts[t], -_FAMILY_ORDER.index(t)))
    seen = [t for t in _FAMILY_ORDER if counts[t] > 0]
    seen.sort(key=lambda t: (-counts[t], _FAMILY_ORDER.index(t)))

    return InferenceResult(
        inferred_type=best,
        confidence=counts[best] / non_null,
        stats=stats,
        patterns=[t.value for t in seen],
    )


# Familles de types cibles du registre → type sémantique
_FIELD_TYPE_ALIASES: dict[str, ColumnType] = {
    "string": ColumnType.STRING,
    "text": ColumnType.STRING,
    "varchar": ColumnType.STRING,
    "char": ColumnType.STRING,
    "enum": ColumnType.STRING,
    "number": ColumnType.NUMBER,
    "integer": ColumnType.NUMBER,
    "int": ColumnType.NUMBER,
    "decimal": ColumnType.NUMBER,
    "float": ColumnType.NUMBER,
    "numeric": ColumnType.NUMBER,
    "currency": ColumnType.CURRENCY,
    "money": ColumnType.CURRENCY,
    "boolean": ColumnType.BOOLEAN,
    "bool": ColumnType.BOOLEAN,
    "date": ColumnType.DATE,
    "datetime": ColumnType.DATETIME,
    "timestamp": ColumnType.DATETIME,
    "timestamptz": ColumnType.DATETIME,
    "uuid": ColumnType.UUID,
    "email": ColumnType.EMAIL,
    "phone": ColumnType.PHONE,
}

# (type cible, type inféré) → score ; absent = 0.1
_COMPATIBILITY: dict[tuple[ColumnType, ColumnType], float] = {
    (ColumnType.STRING, ColumnType.EMAIL): 0.9,
    (ColumnType.STRING, ColumnType.PHONE): 0.9,
    (ColumnType.STRING, ColumnType.UUID): 0.7,
    (ColumnType.STRING, ColumnType.NUMBER): 0.6,
    (ColumnType.STRING, ColumnType.CURRENCY): 0.5,
    (ColumnType.STRING, ColumnType.BOOLEAN): 0.5,
    (ColumnType.STRING, ColumnType.DATE): 0.5,
    (ColumnType.STRING, ColumnType.DATETIME): 0.5,
    (ColumnType.NUMBER, ColumnType.CURRENCY): 0.9,
    (ColumnType.NUMBER, ColumnType.BOOLEAN): 0.3,
    (ColumnType.NUMBER, ColumnType.PHONE): 0.2,
    (ColumnType.CURRENCY, ColumnType.NUMBER): 0.95,
    (ColumnType.DATE, ColumnType.DATETIME): 0.85,
    (ColumnType.DATETIME, ColumnType.DATE): 0.9,
    (ColumnType.EMAIL, ColumnType.STRING): 0.35,
    (ColumnType.PHONE, ColumnType.STRING): 0.35,
    (ColumnType.PHONE, ColumnType.NUMBER): 0.5,
    (ColumnType.UUID, ColumnType.STRING): 0.3,
    (ColumnType.BOOLEAN, ColumnType.STRING): 0.3,
    (ColumnType.BOOLEAN, ColumnType.NUMBER): 0.3,
}


def field_type_family(field_type: str) -> ColumnType:
    """Ramène un type de champ du registre (``varchar``, ``timestamp``...) à un ColumnType."""
    key = field_type.strip().lower().split("(")[0].strip()
    return _FIELD_TYPE_ALIASES.get(key, ColumnType.STRING)


def type_compatibility_score(inferred_type: ColumnType | str, field_type: str) -> float:
    """
    Score de compatibilité (0-1) entre un type inféré et le type d'un champ cible.

    Identique → 1.0 ; familles voisines (date/datetime, number/currency,
    email/phone vers texte) élevées ; type inconnu neutre (0.5).
    """
    inferred = ColumnType(inferred_type)
    if inferred is ColumnType.UNKNOWN:
        return 0.5
    target = field_type_family(field_type)
    if inferred is target:
        return 1.0
    return _COMPATIBILITY.get((target, inferred), 0.1)
