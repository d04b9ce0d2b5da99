"""Tests des cas d'erreur."""

from pathlib import Path

import pytest

from concordingest.config import ConcordIngestError, ConfigError, ConfigFileError, IngestConfig, IngestFormatError
from concordingest.io_excel import ExcelFileError, list_sheets, parse_excel_to_datasets
from concordingest.preview import ingest_preview_from_buffer, ingest_preview_from_text
from concordingest.registry import load_schema_registry


def test_config_load_file_not_found(tmp_path: Path) -> None:
    """IngestConfig.load() lève ConfigFileError si le fichier n'existe pas."""
    missing = tmp_path / "inexistant.json"
    with pytest.raises(ConfigFileError, match="introuvable"):
        IngestConfig.load(missing)


def test_config_load_invalid_json(tmp_path: Path) -> None:
    """IngestConfig.load() lève ConfigFileError si le JSON est invalide."""
    bad_json = tmp_path / "config.json"
    bad_json.write_text("{ invalid json }", encoding="utf-8")
    with pytest.raises(ConfigFileError, match="JSON invalide"):
        IngestConfig.load(bad_json)


def test_config_load_not_dict(tmp_path: Path) -> None:
    """IngestConfig.load() lève ConfigFileError si le JSON n'est pas un objet."""
    bad_config = tmp_path / "config.json"
    bad_config.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ConfigFileError, match="objet JSON"):
        IngestConfig.load(bad_config)


def test_registry_invalid_structure(tmp_path: Path) -> None:
    path = tmp_path / "schema.json"
    path.write_text('{"tables": "contacts"}', encoding="utf-8")
    with pytest.raises(ConfigFileError, match="liste de tables"):
        load_schema_registry(path)


def test_registry_table_without_fields(tmp_path: Path) -> None:
    path = tmp_path / "schema.json"
    path.write_text('[{"table": "contacts", "fields": []}]', encoding="utf-8")
    with pytest.raises(ConfigError, match="fields"):
        load_schema_registry(path)


def test_list_sheets_file_not_found(tmp_path: Path) -> None:
    """list_sheets() lève ExcelFileError si le fichier n'existe pas."""
    missing = tmp_path / "inexistant.xlsx"
    with pytest.raises(ExcelFileError, match="introuvable"):
        list_sheets(missing)


def test_unknown_format_raises() -> None:
    with pytest.raises(IngestFormatError, match="format invalide"):
        ingest_preview_from_buffer(b"a,b\n1,2\n", format="parquet")


def test_excel_from_text_raises() -> None:
    with pytest.raises(IngestFormatError, match="binary buffer"):
        ingest_preview_from_text("a,b\n1,2", "excel")


def test_corrupt_workbook_propagates() -> None:
    """Un zip qui n'est pas un classeur : l'erreur du décodeur remonte."""
    with pytest.raises(Exception) as exc_info:
        parse_excel_to_datasets(b"PK\x03\x04 pas un classeur")
    assert not isinstance(exc_info.value, ConcordIngestError)


def test_error_hierarchy() -> None:
    assert issubclass(ConfigError, ConcordIngestError)
    assert issubclass(ConfigFileError, ConcordIngestError)
    assert issubclass(ExcelFileError, ConcordIngestError)
    assert issubclass(IngestFormatError, ValueError)
