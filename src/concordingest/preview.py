"""Aperçu d'ingestion : choix du parseur, analyse, suggestions de mapping."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any

from concordingest.config import IngestConfig, IngestFormatError
from concordingest.dataset import IngestDataset
from concordingest.io_csv import parse_csv_to_dataset
from concordingest.io_excel import OLE2_MAGIC, ZIP_MAGIC, parse_excel_to_datasets
from concordingest.io_sql import parse_sql_to_datasets
from concordingest.matching import SchemaMatchSuggestion, suggest_schema_matches
from concordingest.registry import DEFAULT_SCHEMA_TABLES, SchemaTable, load_schema_registry

logger = logging.getLogger(__name__)

SNIFF_BYTES = 4 * 1024
_SQL_KEYWORDS_RE = re.compile(
    r"\b(create\s+table|insert\s+into|alter\s+table|drop\s+table|select\s.+?\sfrom)\b",
    re.DOTALL,
)


class IngestFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"
    SQL = "sql"


_EXTENSIONS = {
    ".csv": IngestFormat.CSV,
    ".tsv": IngestFormat.CSV,
    ".xlsx": IngestFormat.EXCEL,
    ".xlsm": IngestFormat.EXCEL,
    ".xls": IngestFormat.EXCEL,
    ".sql": IngestFormat.SQL,
}

_MIME_TYPES = {
    "text/csv": IngestFormat.CSV,
    "application/csv": IngestFormat.CSV,
    "text/tab-separated-values": IngestFormat.CSV,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": IngestFormat.EXCEL,
    "application/vnd.ms-excel": IngestFormat.EXCEL,
    "application/vnd.ms-excel.sheet.macroenabled.12": IngestFormat.EXCEL,
    "application/sql": IngestFormat.SQL,
    "application/x-sql": IngestFormat.SQL,
    "text/x-sql": IngestFormat.SQL,
    "text/sql": IngestFormat.SQL,
}

_FORMAT_ALIASES = {
    "csv": IngestFormat.CSV,
    "tsv": IngestFormat.CSV,
    "excel": IngestFormat.EXCEL,
    "xlsx": IngestFormat.EXCEL,
    "xls": IngestFormat.EXCEL,
    "sql": IngestFormat.SQL,
}


@dataclass
class IngestPreviewResult:
    """Datasets analysés et une suggestion de mapping par dataset."""

    datasets: list[IngestDataset] = field(default_factory=list)
    schema_suggestions: list[SchemaMatchSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "datasets": [d.to_dict() for d in self.datasets],
            "schemaSuggestions": [s.to_dict() for s in self.schema_suggestions],
        }


def coerce_format(value: IngestFormat | str) -> IngestFormat:
    """
    Convertit un format fourni par l'appelant (``"xlsx"``, ``"sql"``...).

    Raises:
        IngestFormatError: Format inconnu.
    """
    if isinstance(value, IngestFormat):
        return value
    fmt = _FORMAT_ALIASES.get(str(value).strip().lower())
    if fmt is None:
        raise IngestFormatError(f"format invalide: {value!r}. Valides: {sorted(_FORMAT_ALIASES)}")
    return fmt


def sniff_text_format(text: str) -> IngestFormat:
    """
    Devine le format d'un texte : mots-clés SQL d'abord, sinon CSV.

    Seuls les 4 premiers Kio (en minuscules) sont examinés.
    """
    sample = text[:SNIFF_BYTES].lower()
    if _SQL_KEYWORDS_RE.search(sample):
        return IngestFormat.SQL
    return IngestFormat.CSV


def resolve_format(
    *,
    explicit: IngestFormat | str | None = None,
    filename: str | None = None,
    mime_type: str | None = None,
    data: bytes | None = None,
    text: str | None = None,
) -> IngestFormat:
    """
    Résout le format d'ingestion, par ordre de priorité.

    Format explicite, extension du nom de fichier, type MIME, signature
    binaire (zip / OLE2 → Excel), puis reniflage du texte ; CSV par défaut.
    """
    if explicit:
        return coerce_format(explicit)
    if filename:
        fmt = _EXTENSIONS.get(PurePath(filename).suffix.lower())
        if fmt is not None:
            return fmt
    if mime_type:
        fmt = _MIME_TYPES.get(mime_type.split(";")[0].strip().lower())
        if fmt is not None:
            return fmt
    if data is not None:
        if data[:4] == ZIP_MAGIC or data[:8] == OLE2_MAGIC:
            return IngestFormat.EXCEL
        text = decode_text(data[:SNIFF_BYTES])
    if text is not None:
        return sniff_text_format(text)
    return IngestFormat.CSV


def decode_text(data: bytes) -> str:
    """Décode en UTF-8 (BOM toléré), à défaut en latin-1."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def resolve_tables(tables: Sequence[SchemaTable] | None, config: IngestConfig) -> list[SchemaTable]:
    """Registre explicite, sinon ``config.schema_file``, sinon registre par défaut."""
    if tables is not None:
        return list(tables)
    if config.schema_file:
        return load_schema_registry(config.schema_file)
    return DEFAULT_SCHEMA_TABLES


def _match_all(
    datasets: list[IngestDataset],
    tables: Sequence[SchemaTable] | None,
    config: IngestConfig,
) -> IngestPreviewResult:
    registry = resolve_tables(tables, config)
    options = config.match_options()
    suggestions = [suggest_schema_matches(ds, registry, options) for ds in datasets]
    return IngestPreviewResult(datasets=datasets, schema_suggestions=suggestions)


def _parse_text(text: str, fmt: IngestFormat, name: str | None, config: IngestConfig) -> list[IngestDataset]:
    if fmt is IngestFormat.SQL:
        return parse_sql_to_datasets(text, name=name or "SQL", max_sample_rows=config.sql_max_sample_rows)
    if fmt is IngestFormat.CSV:
        return [
            parse_csv_to_dataset(
                text,
                name=name or "CSV",
                max_rows=config.csv_max_rows,
                has_header=config.has_header,
                delimiter=config.delimiter,
            )
        ]
    raise IngestFormatError("Excel requires a binary buffer; use ingest_preview_from_buffer.")


def ingest_preview_from_buffer(
    data: bytes,
    *,
    filename: str | None = None,
    mime_type: str | None = None,
    format: IngestFormat | str | None = None,
    sheet_name: str | None = None,
    name: str | None = None,
    tables: Sequence[SchemaTable] | None = None,
    config: IngestConfig | None = None,
) -> IngestPreviewResult:
    """
    Aperçu d'un fichier téléversé (CSV, Excel ou SQL).

    Args:
        data: Contenu binaire.
        filename: Nom d'origine (extension = indice de format, radical = nom par défaut).
        mime_type: Type MIME annoncé.
        format: Format imposé (prioritaire).
        sheet_name: Feuille à lire (Excel).
        name: Libellé des datasets.
        tables: Registre cible ; sinon celui de la configuration ou le registre par défaut.
        config: Limites et seuils ; IngestConfig() par défaut.

    Returns:
        IngestPreviewResult.

    Raises:
        IngestFormatError: Format explicite inconnu.
    """
    config = config or IngestConfig()
    fmt = resolve_format(explicit=format, filename=filename, mime_type=mime_type, data=data)
    label = name or (PurePath(filename).stem if filename else None)
    logger.debug("Aperçu %r: format=%s, %d octets", label, fmt.value, len(data))

    if fmt is IngestFormat.EXCEL:
        datasets = parse_excel_to_datasets(
            data,
            name=label or "Excel",
            sheet_name=sheet_name,
            max_rows=config.excel_max_rows,
            has_header=config.has_header,
        )
    else:
        datasets = _parse_text(decode_text(data), fmt, label, config)

    return _match_all(datasets, tables, config)


def ingest_preview_from_text(
    text: str,
    format: IngestFormat | str,
    *,
    name: str | None = None,
    tables: Sequence[SchemaTable] | None = None,
    config: IngestConfig | None = None,
) -> IngestPreviewResult:
    """
    Aperçu d'un texte collé, au format imposé (CSV ou SQL).

    Raises:
        IngestFormatError: Format inconnu ou Excel (un classeur exige un buffer).
    """
    config = config or IngestConfig()
    fmt = coerce_format(format)
    return _match_all(_parse_text(text, fmt, name, config), tables, config)


def ingest_preview_from_text_auto(
    text: str,
    *,
    name: str | None = None,
    tables: Sequence[SchemaTable] | None = None,
    config: IngestConfig | None = None,
) -> IngestPreviewResult:
    """Aperçu d'un texte collé dont le format (CSV ou SQL) est deviné."""
    config = config or IngestConfig()
    fmt = sniff_text_format(text)
    logger.debug("Texte collé: format détecté=%s", fmt.value)
    return _match_all(_parse_text(text, fmt, name, config), tables, config)
