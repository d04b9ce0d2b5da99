"""Interface en ligne de commande concordingest."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from concordingest import __version__
from concordingest.config import ConcordIngestError, IngestConfig
from concordingest.io_excel import list_sheets, save_xlsx
from concordingest.preview import ingest_preview_from_buffer
from concordingest.registry import load_schema_registry
from concordingest.report import build_report_sheets, print_report_console

logger = logging.getLogger(__name__)


def cmd_list_sheets(filepath: str) -> int:
    """Liste les feuilles d'un classeur."""
    sheets = list_sheets(filepath)
    print(f"Feuilles dans {filepath}:")
    for s in sheets:
        print(f"  - {s}")
    return 0


def cmd_preview(
    filepath: str,
    *,
    fmt: str | None = None,
    sheet_name: str | None = None,
    name: str | None = None,
    config_path: str | None = None,
    schema_path: str | None = None,
    json_path: str | None = None,
    output_path: str | None = None,
) -> int:
    """Analyse un fichier et affiche les suggestions de mapping."""
    path = Path(filepath)
    if not path.exists():
        raise ConcordIngestError(f"Fichier introuvable: {path}")

    config = IngestConfig.load(config_path) if config_path else IngestConfig()
    tables = load_schema_registry(schema_path) if schema_path else None

    result = ingest_preview_from_buffer(
        path.read_bytes(),
        filename=path.name,
        format=fmt,
        sheet_name=sheet_name,
        name=name,
        tables=tables,
        config=config,
    )
    logger.info("%d dataset(s) analysé(s) depuis %s", len(result.datasets), path)

    print_report_console(result)

    if json_path:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, ensure_ascii=False, indent=2)
        print(f"JSON écrit: {json_path}")

    if output_path:
        save_xlsx(output_path, build_report_sheets(result))
        print(f"Rapport écrit: {output_path}")

    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="concordingest",
        description="Aperçu d'ingestion CSV / Excel / SQL et suggestions de mapping de schéma",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Journalisation détaillée (DEBUG)")

    subparsers = parser.add_subparsers(dest="command", help="Commandes")

    # list-sheets
    p_list = subparsers.add_parser("list-sheets", help="Lister les feuilles d'un classeur")
    p_list.add_argument("file", help="Fichier xlsx / xls")

    # preview
    p_prev = subparsers.add_parser("preview", help="Analyser un fichier et proposer un mapping")
    p_prev.add_argument("file", help="Fichier CSV, Excel ou SQL")
    p_prev.add_argument("--format", "-f", choices=["csv", "excel", "xlsx", "xls", "sql"], help="Format imposé")
    p_prev.add_argument("--sheet", "-s", help="Feuille à lire (Excel)")
    p_prev.add_argument("--name", "-n", help="Libellé des datasets")
    p_prev.add_argument("--config", "-c", help="Fichier config JSON")
    p_prev.add_argument("--schema", help="Registre de tables cibles (JSON)")
    p_prev.add_argument("--json", "-j", help="Écrire le résultat JSON dans ce fichier")
    p_prev.add_argument("--output", "-o", help="Écrire un rapport xlsx")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "list-sheets":
            return cmd_list_sheets(args.file)

        if args.command == "preview":
            return cmd_preview(
                args.file,
                fmt=args.format,
                sheet_name=args.sheet,
                name=args.name,
                config_path=args.config,
                schema_path=args.schema,
                json_path=args.json,
                output_path=args.output,
            )
    except ConcordIngestError as e:
        print(f"Erreur: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
