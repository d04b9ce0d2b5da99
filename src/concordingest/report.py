"""Génération du rapport d'aperçu (DataFrames, onglets xlsx, console)."""

from __future__ import annotations

from datetime import datetime

import pandas as pd

from concordingest import __version__
from concordingest.preview import IngestPreviewResult

SUMMARY_COLUMNS = ["dataset", "source_type", "rows", "columns", "best_table", "score", "coverage", "warnings"]
COLUMN_COLUMNS = [
    "dataset",
    "column",
    "inferred_type",
    "confidence",
    "non_empty_ratio",
    "unique_ratio",
    "suggested_target",
    "top_candidate_score",
]


def build_summary_df(result: IngestPreviewResult) -> pd.DataFrame:
    """Une ligne par dataset : volumétrie, meilleure table, score, couverture."""
    rows = []
    for ds, sug in zip(result.datasets, result.schema_suggestions):
        best = sug.best_table
        rows.append(
            {
                "dataset": ds.name,
                "source_type": ds.source_type,
                "rows": ds.row_count,
                "columns": len(ds.columns),
                "best_table": best.table if best else "",
                "score": round(best.score, 4) if best else 0.0,
                "coverage": round(best.coverage, 4) if best else 0.0,
                "warnings": " | ".join(ds.warnings),
            }
        )
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def build_report_df(result: IngestPreviewResult) -> pd.DataFrame:
    """
    Construit le DataFrame détaillé : une ligne par colonne source.

    Contient le type inféré, la confiance, les ratios de remplissage et
    d'unicité, et la cible retenue dans la meilleure table (vide sinon).
    """
    rows = []
    for ds, sug in zip(result.datasets, result.schema_suggestions):
        best = sug.best_table
        mapping = best.suggested_mapping if best else {}
        top_scores = {}
        if best:
            top_scores = {s.source_column: s.candidates[0].score for s in best.column_suggestions if s.candidates}
        for col in ds.columns:
            rows.append(
                {
                    "dataset": ds.name,
                    "column": col.name,
                    "inferred_type": col.inferred_type.value,
                    "confidence": round(col.inferred_type_confidence, 4),
                    "non_empty_ratio": round(col.non_empty_ratio, 4),
                    "unique_ratio": round(col.unique_ratio, 4),
                    "suggested_target": mapping.get(col.name, ""),
                    "top_candidate_score": round(top_scores.get(col.name, 0.0), 4),
                }
            )
    return pd.DataFrame(rows, columns=COLUMN_COLUMNS)


def build_report_sheets(result: IngestPreviewResult) -> dict[str, pd.DataFrame]:
    """Onglets du rapport xlsx : Summary, Columns, REPORT (horodatage, version)."""
    meta = pd.DataFrame(
        [
            ("nb_datasets", len(result.datasets)),
            ("nb_columns", sum(len(d.columns) for d in result.datasets)),
            ("nb_mapped", sum(len(s.best_table.suggested_mapping) for s in result.schema_suggestions if s.best_table)),
            ("timestamp", datetime.now().isoformat()),
            ("version", __version__),
        ],
        columns=["Key", "Value"],
    )
    return {"Summary": build_summary_df(result), "Columns": build_report_df(result), "REPORT": meta}


def print_report_console(result: IngestPreviewResult) -> None:
    """Affiche un résumé du rapport en console."""
    print("\n=== concordingest preview ===")
    for ds, sug in zip(result.datasets, result.schema_suggestions):
        best = sug.best_table
        print(f"  Dataset:          {ds.name} ({ds.source_type})")
        print(f"  Lignes:           {ds.row_count}")
        print(f"  Colonnes:         {len(ds.columns)}")
        if best:
            print(f"  Meilleure table:  {best.table} (score={best.score:.2f}, couverture={best.coverage:.0%})")
            for source, target in best.suggested_mapping.items():
                print(f"    {source} -> {target}")
        else:
            print("  Meilleure table:  (aucune)")
        for w in ds.warnings:
            print(f"  Avertissement:    {w}")
        print("")
    print(f"  Version:          {__version__}")
    print("=============================\n")
