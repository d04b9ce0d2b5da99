"""concordingest - Aperçu d'ingestion de données tabulaires et suggestion de mapping de schéma."""

__version__ = "0.1.0"

from concordingest.config import (
    ConcordIngestError,
    ConfigError,
    ConfigFileError,
    IngestConfig,
    IngestFormatError,
    MatchOptions,
)
from concordingest.io_csv import parse_csv_to_dataset
from concordingest.io_excel import ExcelFileError, parse_excel_to_datasets
from concordingest.io_sql import parse_sql_to_datasets
from concordingest.matching import suggest_schema_matches
from concordingest.preview import (
    IngestPreviewResult,
    ingest_preview_from_buffer,
    ingest_preview_from_text,
    ingest_preview_from_text_auto,
)

__all__ = [
    "__version__",
    "ConcordIngestError",
    "ConfigError",
    "ConfigFileError",
    "ExcelFileError",
    "IngestFormatError",
    "IngestConfig",
    "MatchOptions",
    "IngestPreviewResult",
    "parse_csv_to_dataset",
    "parse_excel_to_datasets",
    "parse_sql_to_datasets",
    "suggest_schema_matches",
    "ingest_preview_from_buffer",
    "ingest_preview_from_text",
    "ingest_preview_from_text_auto",
]
