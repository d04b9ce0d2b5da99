"""Module de matching de schéma."""

from concordingest.matching.matcher import suggest_schema_matches
from concordingest.matching.schema import (
    ColumnSuggestion,
    FieldMatchCandidate,
    SchemaMatchSuggestion,
    TableMatchSuggestion,
)

__all__ = [
    "suggest_schema_matches",
    "ColumnSuggestion",
    "FieldMatchCandidate",
    "SchemaMatchSuggestion",
    "TableMatchSuggestion",
]
