"""Configuration et chargement du fichier config JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

VALID_HEADER_MODES = frozenset({"auto", True, False})
VALID_DELIMITERS = frozenset({"auto", ",", "\t", ";", "|"})


class ConcordIngestError(Exception):
    """Exception de base pour concordingest."""


class ConfigError(ConcordIngestError, ValueError):
    """Erreur de validation de la configuration."""


class ConfigFileError(ConcordIngestError):
    """Erreur de chargement d'un fichier de configuration (fichier absent, JSON invalide)."""


class IngestFormatError(ConcordIngestError, ValueError):
    """Format d'ingestion inconnu ou non supporté par le point d'entrée appelé."""


@dataclass
class MatchOptions:
    """Seuils du matcher de schéma."""

    per_column_candidates: int = 6
    min_candidate_score: float = 0.22
    min_accepted_mapping_score: float = 0.55

    def __post_init__(self) -> None:
        if self.per_column_candidates < 1:
            raise ConfigError(f"per_column_candidates doit être >= 1 (got {self.per_column_candidates})")
        for label, value in (
            ("min_candidate_score", self.min_candidate_score),
            ("min_accepted_mapping_score", self.min_accepted_mapping_score),
        ):
            if not 0 <= value <= 1:
                raise ConfigError(f"{label} doit être entre 0 et 1 (got {value})")


@dataclass
class IngestConfig:
    """Configuration de l'ingestion (limites des parseurs, seuils du matcher, registre)."""

    csv_max_rows: int = 2000
    excel_max_rows: int = 5000
    sql_max_sample_rows: int = 50
    has_header: bool | str = "auto"
    delimiter: str = "auto"

    per_column_candidates: int = 6
    min_candidate_score: float = 0.22
    min_accepted_mapping_score: float = 0.55

    # Registre JSON ; None = registre par défaut
    schema_file: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> IngestConfig:
        csv_max_rows = int(d.get("csv_max_rows", 2000))
        excel_max_rows = int(d.get("excel_max_rows", 5000))
        sql_max_sample_rows = int(d.get("sql_max_sample_rows", 50))
        has_header = d.get("has_header", "auto")
        delimiter = d.get("delimiter", "auto")
        per_column_candidates = int(d.get("per_column_candidates", 6))
        min_candidate_score = float(d.get("min_candidate_score", 0.22))
        min_accepted_mapping_score = float(d.get("min_accepted_mapping_score", 0.55))

        for label, value in (
            ("csv_max_rows", csv_max_rows),
            ("excel_max_rows", excel_max_rows),
            ("sql_max_sample_rows", sql_max_sample_rows),
        ):
            if value < 1:
                raise ConfigError(f"{label} doit être >= 1 (got {value})")
        if has_header not in VALID_HEADER_MODES:
            raise ConfigError(f"has_header invalide: {has_header!r}. Valides: 'auto', true, false")
        if delimiter not in VALID_DELIMITERS:
            raise ConfigError(f"delimiter invalide: {delimiter!r}. Valides: {sorted(VALID_DELIMITERS)}")

        config = cls(
            csv_max_rows=csv_max_rows,
            excel_max_rows=excel_max_rows,
            sql_max_sample_rows=sql_max_sample_rows,
            has_header=has_header,
            delimiter=delimiter,
            per_column_candidates=per_column_candidates,
            min_candidate_score=min_candidate_score,
            min_accepted_mapping_score=min_accepted_mapping_score,
            schema_file=d.get("schema_file"),
        )
        # Valide les seuils du matcher
        config.match_options()
        return config

    @classmethod
    def load(cls, path: str | Path) -> IngestConfig:
        """
        Charge la configuration depuis un fichier JSON.

        Raises:
            ConfigFileError: Si le fichier est absent ou le JSON invalide.
            ConfigError: Si la configuration est invalide.
        """
        path = Path(path).resolve()
        d = read_json_file(path)
        if not isinstance(d, dict):
            raise ConfigFileError(f"Fichier de configuration invalide: {path} doit contenir un objet JSON")

        config = cls.from_dict(d)
        config.resolve_paths(path.parent)
        return config

    def resolve_paths(self, base_dir: Path) -> None:
        """Résout schema_file relativement au répertoire de base (dossier du fichier config)."""
        if self.schema_file and not Path(self.schema_file).is_absolute():
            self.schema_file = str((Path(base_dir) / self.schema_file).resolve())

    def match_options(self) -> MatchOptions:
        return MatchOptions(
            per_column_candidates=self.per_column_candidates,
            min_candidate_score=self.min_candidate_score,
            min_accepted_mapping_score=self.min_accepted_mapping_score,
        )


def read_json_file(path: str | Path) -> Any:
    """
    Lit un fichier JSON.

    Raises:
        ConfigFileError: Fichier absent, illisible ou JSON invalide.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileError(f"Fichier introuvable: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigFileError(f"JSON invalide dans {path}: {e}") from e
    except OSError as e:
        raise ConfigFileError(f"Impossible de lire {path}: {e}") from e
