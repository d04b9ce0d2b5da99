"""Modèle de données commun à tous les parseurs : profils de colonnes et datasets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from concordingest.infer import ColumnType, infer_column
from concordingest.normalize import normalize_name, safe_ratio, take, uniq

SourceType = Literal["csv", "excel", "sql"]
Row = dict[str, str | None]

MAX_SAMPLES = 25
MAX_SAMPLE_ROWS = 25

COLLISION_WARNING = "Some column names normalize to the same value; collisions may occur."


@dataclass
class IngestColumnProfile:
    """Profil statistique d'une colonne source."""

    name: str
    normalized_name: str
    inferred_type: ColumnType
    inferred_type_confidence: float
    inference_stats: dict[str, int]
    detected_patterns: list[str]
    non_empty_count: int
    nullish_count: int
    unique_count: int
    non_empty_ratio: float
    unique_ratio: float
    min_length: int
    max_length: int
    avg_length: float
    samples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "normalizedName": self.normalized_name,
            "inferredType": self.inferred_type.value,
            "inferredTypeConfidence": self.inferred_type_confidence,
            "inferenceStats": dict(self.inference_stats),
            "detectedPatterns": list(self.detected_patterns),
            "nonEmptyCount": self.non_empty_count,
            "nullishCount": self.nullish_count,
            "uniqueCount": self.unique_count,
            "nonEmptyRatio": self.non_empty_ratio,
            "uniqueRatio": self.unique_ratio,
            "minLength": self.min_length,
            "maxLength": self.max_length,
            "avgLength": self.avg_length,
            "samples": list(self.samples),
        }


@dataclass
class IngestDataset:
    """Une table / feuille / instruction SQL analysée."""

    source_type: SourceType
    name: str
    column_names: list[str]
    row_count: int
    sample_rows: list[Row]
    columns: list[IngestColumnProfile]
    warnings: list[str] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    def column(self, name: str) -> IngestColumnProfile | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceType": self.source_type,
            "name": self.name,
            "columnNames": list(self.column_names),
            "rowCount": self.row_count,
            "sampleRows": [dict(r) for r in self.sample_rows],
            "columns": [c.to_dict() for c in self.columns],
            "warnings": list(self.warnings),
            "meta": dict(self.meta),
        }


def clean_value(value: Any) -> str | None:
    """Chaîne trimée, ou None si vide."""
    if value is None:
        return None
    s = str(value).strip()
    return s if s else None


def profile_column(name: str, normalized_name: str, values: Sequence[str | None]) -> IngestColumnProfile:
    """
    Calcule le profil d'une colonne : comptages, ratios, longueurs, type inféré.

    Les longueurs min/max/moyenne portent sur l'échantillon (25 premières
    valeurs non vides).
    """
    present = [v for v in values if v is not None and v.strip() != ""]
    non_empty = len(present)
    unique_count = len(set(present))
    samples = take(present, MAX_SAMPLES)
    lengths = [len(s) for s in samples]
    inferred = infer_column(values)

    return IngestColumnProfile(
        name=name,
        normalized_name=normalized_name,
        inferred_type=inferred.inferred_type,
        inferred_type_confidence=inferred.confidence,
        inference_stats=inferred.stats,
        detected_patterns=inferred.patterns,
        non_empty_count=non_empty,
        nullish_count=len(values) - non_empty,
        unique_count=unique_count,
        non_empty_ratio=safe_ratio(non_empty, len(values)),
        unique_ratio=safe_ratio(unique_count, max(1, non_empty)),
        min_length=min(lengths) if lengths else 0,
        max_length=max(lengths) if lengths else 0,
        avg_length=sum(lengths) / len(lengths) if lengths else 0.0,
        samples=samples,
    )


def dedupe_headers(headers: Sequence[str]) -> list[str]:
    """
    Rend les en-têtes bruts uniques : le doublon exact ``email`` devient ``email_2``.

    Les collisions après normalisation seule (``Email`` / ``e-mail``) ne sont
    pas renommées ; ``build_dataset`` les signale par un avertissement.
    """
    seen: set[str] = set()
    out: list[str] = []
    for header in headers:
        candidate = header
        n = 2
        while candidate in seen:
            candidate = f"{header}_{n}"
            n += 1
        seen.add(candidate)
        out.append(candidate)
    return out


def to_row(headers: Sequence[str], values: Sequence[Any]) -> Row:
    """Associe valeurs et en-têtes ; cellules manquantes ou vides → None."""
    return {h: clean_value(values[i]) if i < len(values) else None for i, h in enumerate(headers)}


def build_dataset(
    source_type: SourceType,
    name: str,
    column_names: Sequence[str],
    rows: Sequence[Row],
    *,
    meta: dict[str, Any] | None = None,
    warnings: Sequence[str] = (),
) -> IngestDataset:
    """
    Construit un IngestDataset complet à partir de lignes déjà découpées.

    Args:
        source_type: csv, excel ou sql.
        name: Libellé du dataset.
        column_names: En-têtes (ordre conservé).
        rows: Lignes {en-tête: valeur ou None}, déjà bornées par le parseur.
        meta: Métadonnées propres au format.
        warnings: Avertissements déjà collectés par le parseur.

    Returns:
        IngestDataset dont ``columns`` est aligné sur ``column_names``.
    """
    all_warnings = list(warnings)
    normalized = [normalize_name(h) or h for h in column_names]
    if len(uniq(normalized)) != len(normalized):
        all_warnings.append(COLLISION_WARNING)

    columns = [
        profile_column(col, normalized[idx], [r.get(col) for r in rows])
        for idx, col in enumerate(column_names)
    ]

    return IngestDataset(
        source_type=source_type,
        name=name,
        column_names=list(column_names),
        row_count=len(rows),
        sample_rows=take(list(rows), MAX_SAMPLE_ROWS),
        columns=columns,
        warnings=all_warnings,
        meta=dict(meta or {}),
    )


def empty_dataset(
    source_type: SourceType,
    name: str,
    warning: str,
    meta: dict[str, Any] | None = None,
) -> IngestDataset:
    return IngestDataset(
        source_type=source_type,
        name=name,
        column_names=[],
        row_count=0,
        sample_rows=[],
        columns=[],
        warnings=[warning],
        meta=dict(meta or {}),
    )
