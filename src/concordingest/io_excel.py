"""I/O tableurs : lecture des classeurs en datasets, liste des feuilles, export xlsx."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import load_workbook
from openpyxl.cell.rich_text import CellRichText
from rapidfuzz import fuzz, process

from concordingest.config import ConcordIngestError
from concordingest.dataset import IngestDataset, build_dataset, empty_dataset, to_row
from concordingest.io_csv import header_names, looks_like_header
from concordingest.normalize import is_missing

logger = logging.getLogger(__name__)

OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_MAGIC = b"PK\x03\x04"


class ExcelFileError(ConcordIngestError):
    """Erreur de chargement d'un classeur (fichier absent, lecteur manquant)."""


def _get_engine(path: Path) -> str | None:
    """Retourne le moteur pandas selon l'extension, ou None pour auto."""
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        return "openpyxl"
    if suffix == ".xls":
        return "xlrd"
    return None


def is_legacy_xls(data: bytes) -> bool:
    return data[:8] == OLE2_MAGIC


def cell_to_text(value: Any, hyperlink: Any = None) -> str | None:
    """
    Convertit une valeur de cellule en texte.

    - Texte enrichi : concaténation des runs.
    - Formule : valeur calculée (classeur ouvert en ``data_only``).
    - Lien hypertexte sans valeur : texte affiché, sinon cible.
    - Dates / heures : ISO 8601.
    - Le reste : ``str()`` trimé ; chaîne vide → None.
    """
    if isinstance(value, CellRichText):
        value = "".join(getattr(run, "text", run) for run in value)
    if (value is None or value == "") and hyperlink is not None:
        value = getattr(hyperlink, "display", None) or getattr(hyperlink, "target", None)
    if is_missing(value):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text if text else None


def _trim_row(values: list[str | None]) -> list[str | None]:
    while values and values[-1] is None:
        values.pop()
    return values


def _read_openpyxl_sheets(data: bytes) -> dict[str, list[list[str | None]]]:
    # Les erreurs du décodeur (zip corrompu, pas un classeur) remontent telles quelles
    wb = load_workbook(BytesIO(data), data_only=True, rich_text=True)
    try:
        sheets: dict[str, list[list[str | None]]] = {}
        for ws in wb.worksheets:
            rows = []
            for row in ws.iter_rows():
                rows.append(_trim_row([cell_to_text(c.value, getattr(c, "hyperlink", None)) for c in row]))
            sheets[ws.title] = rows
        return sheets
    finally:
        wb.close()


def _read_xls_sheets(data: bytes) -> dict[str, list[list[str | None]]]:
    try:
        frames = pd.read_excel(BytesIO(data), sheet_name=None, header=None, dtype=object, engine="xlrd")
    except ImportError as e:
        raise ExcelFileError(f"Format .xls requis: pip install xlrd. Détail: {e}") from e
    return {
        str(sheet): [_trim_row([cell_to_text(v) for v in row]) for row in df.itertuples(index=False, name=None)]
        for sheet, df in frames.items()
    }


def read_workbook_rows(data: bytes) -> dict[str, list[list[str | None]]]:
    """Lit toutes les feuilles d'un classeur : {nom_feuille: lignes de cellules texte}."""
    if is_legacy_xls(data):
        return _read_xls_sheets(data)
    return _read_openpyxl_sheets(data)


def parse_excel_to_datasets(
    data: bytes,
    *,
    name: str = "Excel",
    sheet_name: str | None = None,
    max_rows: int = 5000,
    has_header: bool | str = "auto",
) -> list[IngestDataset]:
    """
    Analyse un classeur et produit un IngestDataset par feuille.

    Args:
        data: Contenu binaire du classeur (.xlsx, .xlsm ou .xls).
        name: Préfixe des libellés de datasets ("{name}:{feuille}").
        sheet_name: Feuille à lire ; si absente du classeur, toutes les feuilles
            sont lues et un avertissement propose le nom le plus proche.
        max_rows: Nombre maximal de lignes de données par feuille.
        has_header: True, False ou "auto".

    Returns:
        Liste de datasets, dans l'ordre des feuilles.

    Raises:
        ExcelFileError: Si un .xls est fourni sans xlrd installé.
    """
    workbook = read_workbook_rows(data)
    extra_warnings: list[str] = []

    if sheet_name and sheet_name in workbook:
        selected = [sheet_name]
    else:
        selected = list(workbook)
        if sheet_name:
            warning = f"Sheet '{sheet_name}' not found; reading all sheets."
            best = process.extractOne(sheet_name, selected, scorer=fuzz.WRatio)
            if best is not None and best[1] >= 60:
                warning = f"Sheet '{sheet_name}' not found (did you mean '{best[0]}'?); reading all sheets."
            extra_warnings.append(warning)

    datasets: list[IngestDataset] = []
    for sheet in selected:
        ds_name = f"{name}:{sheet}"
        rows = [r for r in workbook[sheet] if any(v is not None for v in r)]

        if not rows:
            ds = empty_dataset("excel", ds_name, "No rows detected in sheet.", meta={"sheetName": sheet})
            ds.warnings.extend(extra_warnings)
            datasets.append(ds)
            continue

        first = rows[0]
        header = looks_like_header(first) if has_header == "auto" else bool(has_header)
        headers = header_names(first, header)

        body = rows[1:] if header else rows
        row_dicts = [to_row(headers, r) for r in body[:max_rows]]

        logger.debug("Feuille %r: en-tête=%s, %d lignes", sheet, header, len(row_dicts))
        datasets.append(
            build_dataset(
                "excel",
                ds_name,
                headers,
                row_dicts,
                meta={"sheetName": sheet, "hasHeader": header, "truncated": len(body) > max_rows},
                warnings=extra_warnings,
            )
        )

    return datasets


def list_sheets(filepath: str | Path) -> list[str]:
    """
    Liste les noms des feuilles d'un classeur.

    Raises:
        ExcelFileError: Si le fichier est absent ou illisible.
    """
    path = Path(filepath)
    if not path.exists():
        raise ExcelFileError(f"Fichier introuvable: {path}")
    try:
        engine = _get_engine(path)
        with pd.ExcelFile(path, engine=engine) as xl:
            return [str(s) for s in xl.sheet_names]
    except ImportError as e:
        if path.suffix.lower() == ".xls":
            raise ExcelFileError(f"Format .xls requis: pip install xlrd. Détail: {e}") from e
        raise ExcelFileError(f"Impossible de lire {path}: {e}") from e
    except Exception as e:
        raise ExcelFileError(f"Impossible de lire le fichier {path}: {e}") from e


def save_xlsx(
    filepath: str | Path,
    dataframes: dict[str, pd.DataFrame],
    *,
    index: bool = False,
) -> None:
    """
    Sauvegarde plusieurs DataFrames dans un fichier xlsx (une feuille par DataFrame).

    Args:
        filepath: Chemin de sortie.
        dataframes: Dict {nom_feuille: DataFrame}.
    """
    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        for sheet_name, df in dataframes.items():
            # Excel limite les noms de feuille à 31 caractères
            safe_name = str(sheet_name)[:31]
            df.to_excel(writer, sheet_name=safe_name, index=index)
