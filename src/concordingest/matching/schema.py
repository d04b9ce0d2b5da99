"""Schémas et types pour le matching de schéma."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FieldMatchCandidate:
    """Une hypothèse : la colonne source correspond au champ ``table.field``."""

    table: str
    field: str
    score: float
    reasons: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.table}.{self.field}"

    def __repr__(self) -> str:
        return f"FieldMatchCandidate({self.key}, score={self.score:.2f})"

    def to_dict(self) -> dict[str, Any]:
        return {"table": self.table, "field": self.field, "score": self.score, "reasons": list(self.reasons)}


@dataclass
class ColumnSuggestion:
    """Candidats classés pour une colonne source."""

    source_column: str
    candidates: list[FieldMatchCandidate]

    def to_dict(self) -> dict[str, Any]:
        return {"sourceColumn": self.source_column, "candidates": [c.to_dict() for c in self.candidates]}


@dataclass
class TableMatchSuggestion:
    """Résultat de matching pour une table cible."""

    table: str
    score: float
    coverage: float
    suggested_mapping: dict[str, str]  # colonne source -> "table.field"
    column_suggestions: list[ColumnSuggestion]
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "score": self.score,
            "coverage": self.coverage,
            "suggestedMapping": dict(self.suggested_mapping),
            "columnSuggestions": [s.to_dict() for s in self.column_suggestions],
            "reasons": list(self.reasons),
        }


@dataclass
class SchemaMatchSuggestion:
    """Suggestions de matching d'un dataset, tables triées par score décroissant."""

    dataset_name: str
    best_table: TableMatchSuggestion | None
    tables: list[TableMatchSuggestion]

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"datasetName": self.dataset_name}
        if self.best_table is not None:
            d["bestTable"] = self.best_table.to_dict()
        d["tables"] = [t.to_dict() for t in self.tables]
        return d
