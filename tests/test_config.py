"""Tests du module config."""

from pathlib import Path

import pytest

from concordingest.config import ConfigError, IngestConfig, MatchOptions


def test_config_defaults() -> None:
    config = IngestConfig()
    assert config.csv_max_rows == 2000
    assert config.excel_max_rows == 5000
    assert config.sql_max_sample_rows == 50
    assert config.has_header == "auto"
    assert config.delimiter == "auto"
    options = config.match_options()
    assert options == MatchOptions(6, 0.22, 0.55)


def test_config_from_dict_overrides() -> None:
    config = IngestConfig.from_dict({"csv_max_rows": 10, "delimiter": ";", "has_header": False})
    assert config.csv_max_rows == 10
    assert config.delimiter == ";"
    assert config.has_header is False


def test_config_load_resolves_paths(tmp_path: Path) -> None:
    """IngestConfig.load() résout schema_file par rapport au dossier du fichier config."""
    config_dir = tmp_path / "projet"
    config_dir.mkdir()
    config_path = config_dir / "config.json"
    config_path.write_text('{"schema_file": "schemas/crm.json", "excel_max_rows": 100}', encoding="utf-8")

    config = IngestConfig.load(config_path)
    assert config.excel_max_rows == 100
    assert Path(config.schema_file).is_absolute()
    assert Path(config.schema_file).parent.parent == config_dir.resolve()


def test_config_validation_max_rows() -> None:
    with pytest.raises(ConfigError, match="csv_max_rows doit être >= 1"):
        IngestConfig.from_dict({"csv_max_rows": 0})


def test_config_validation_has_header() -> None:
    with pytest.raises(ConfigError, match="has_header invalide"):
        IngestConfig.from_dict({"has_header": "maybe"})


def test_config_validation_delimiter() -> None:
    with pytest.raises(ConfigError, match="delimiter invalide"):
        IngestConfig.from_dict({"delimiter": ":"})


def test_config_validation_thresholds() -> None:
    with pytest.raises(ConfigError, match="min_accepted_mapping_score doit être entre 0 et 1"):
        IngestConfig.from_dict({"min_accepted_mapping_score": 1.5})
    with pytest.raises(ConfigError, match="per_column_candidates"):
        MatchOptions(per_column_candidates=0)


def test_config_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        IngestConfig.from_dict({"sql_max_sample_rows": -1})
