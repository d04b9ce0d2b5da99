"""Moteur de matching : candidats par colonne, affectation 1:1, score par table."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from concordingest.config import MatchOptions
from concordingest.dataset import IngestColumnProfile, IngestDataset
from concordingest.infer import type_compatibility_score
from concordingest.matching.schema import (
    ColumnSuggestion,
    FieldMatchCandidate,
    SchemaMatchSuggestion,
    TableMatchSuggestion,
)
from concordingest.matching.scorers import combine_scores, jaccard, name_similarity, value_hint_score
from concordingest.normalize import clamp, safe_ratio, tokenize_name
from concordingest.registry import SchemaTable

logger = logging.getLogger(__name__)

TABLE_NAME_HINT_THRESHOLD = 0.3


def column_strength(col: IngestColumnProfile) -> float:
    """Force d'une colonne : remplissage pondéré par la confiance du type."""
    return col.non_empty_ratio * (0.6 + 0.4 * col.inferred_type_confidence)


def score_column(
    col: IngestColumnProfile,
    table: SchemaTable,
    options: MatchOptions,
) -> list[FieldMatchCandidate]:
    """
    Classe les champs de ``table`` pour une colonne source.

    Returns:
        Candidats au-dessus de ``min_candidate_score``, triés par score
        décroissant, limités à ``per_column_candidates``.
    """
    candidates: list[FieldMatchCandidate] = []
    for f in table.fields:
        name_score = max(name_similarity(col.name, n) for n in f.names)
        type_score = type_compatibility_score(col.inferred_type, f.type)
        hint, hint_reasons = value_hint_score(
            col.inferred_type,
            col.name,
            f.field,
            non_empty_ratio=col.non_empty_ratio,
            unique_ratio=col.unique_ratio,
        )
        score = combine_scores(name_score, type_score, hint)
        if score < options.min_candidate_score:
            continue

        reasons: list[str] = []
        if name_score >= 0.85:
            reasons.append("Column name closely matches target field.")
        elif name_score >= 0.6:
            reasons.append("Column name is similar to target field.")
        if type_score >= 0.9:
            reasons.append("Inferred type is compatible.")
        elif type_score <= 0.25:
            reasons.append("Inferred type may be incompatible.")
        reasons.extend(hint_reasons)

        candidates.append(FieldMatchCandidate(table.table, f.field, score, reasons))

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[: options.per_column_candidates]


def assign_greedy(
    columns: Sequence[IngestColumnProfile],
    suggestions: Sequence[ColumnSuggestion],
    min_accepted_score: float,
) -> tuple[dict[str, str], list[float]]:
    """
    Affectation 1:1 gloutonne des colonnes aux champs cibles.

    Les colonnes les plus fortes choisissent en premier ; chacune prend son
    meilleur candidat s'il atteint ``min_accepted_score`` et que la cible
    n'est pas déjà prise, sinon elle reste non affectée.

    Returns:
        (mapping {colonne: "table.field"}, scores acceptés)
    """
    by_column = {s.source_column: s for s in suggestions}
    ordered = sorted(columns, key=column_strength, reverse=True)

    used: set[str] = set()
    mapping: dict[str, str] = {}
    accepted: list[float] = []
    for col in ordered:
        suggestion = by_column.get(col.name)
        if suggestion is None or not suggestion.candidates:
            continue
        best = suggestion.candidates[0]
        if best.score < min_accepted_score or best.key in used:
            continue
        used.add(best.key)
        mapping[col.name] = best.key
        accepted.append(best.score)
    return mapping, accepted


def score_table(
    dataset: IngestDataset,
    table: SchemaTable,
    options: MatchOptions,
) -> TableMatchSuggestion:
    """Évalue une table cible pour le dataset (candidats, mapping, score, raisons)."""
    column_suggestions = [ColumnSuggestion(col.name, score_column(col, table, options)) for col in dataset.columns]
    mapping, accepted = assign_greedy(dataset.columns, column_suggestions, options.min_accepted_mapping_score)

    n_columns = len(dataset.columns)
    coverage = safe_ratio(len(accepted), n_columns)
    avg_score = sum(accepted) / len(accepted) if accepted else 0.0

    reasons: list[str] = []
    required = [f"{table.table}.{f.field}" for f in table.required_fields]
    targets = set(mapping.values())
    required_matched = sum(1 for r in required if r in targets)
    required_coverage = safe_ratio(required_matched, max(1, len(required)))

    if required and required_coverage < 1:
        reasons.append(f"Missing {len(required) - required_matched} required field(s) for {table.table}.")
    elif required:
        reasons.append("All required fields can be mapped at high confidence.")

    dataset_tokens = tokenize_name(dataset.name)
    table_name_similarity = max(jaccard(dataset_tokens, tokenize_name(n)) for n in table.names)
    name_hint = table_name_similarity >= TABLE_NAME_HINT_THRESHOLD
    if name_hint:
        reasons.append("Dataset name suggests this table.")

    score = clamp(
        0.62 * avg_score + 0.22 * coverage + 0.14 * required_coverage + (0.02 if name_hint else 0.0),
        0.0,
        1.0,
    )

    if accepted:
        reasons.append(f"Mapped {len(accepted)} of {n_columns} columns.")

    return TableMatchSuggestion(
        table=table.table,
        score=score,
        coverage=coverage,
        suggested_mapping=mapping,
        column_suggestions=column_suggestions,
        reasons=reasons,
    )


def suggest_schema_matches(
    dataset: IngestDataset,
    tables: Sequence[SchemaTable],
    options: MatchOptions | None = None,
) -> SchemaMatchSuggestion:
    """
    Propose un mapping du dataset vers chaque table cible.

    Args:
        dataset: Dataset analysé.
        tables: Registre des tables cibles (lecture seule).
        options: Seuils ; valeurs par défaut si None.

    Returns:
        SchemaMatchSuggestion : tables triées par score décroissant,
        ``best_table`` = la première si son score est > 0.
    """
    options = options or MatchOptions()
    suggestions = [score_table(dataset, table, options) for table in tables]
    suggestions.sort(key=lambda t: t.score, reverse=True)
    best = suggestions[0] if suggestions and suggestions[0].score > 0 else None

    logger.debug(
        "Dataset %r: meilleure table=%s (score=%.2f)",
        dataset.name,
        best.table if best else None,
        best.score if best else 0.0,
    )
    return SchemaMatchSuggestion(dataset_name=dataset.name, best_table=best, tables=suggestions)
