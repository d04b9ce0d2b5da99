"""Extraction de datasets depuis un dump SQL (CREATE TABLE, INSERT, SELECT)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from concordingest.dataset import IngestDataset, Row, build_dataset, empty_dataset
from concordingest.normalize import split_sql_list_top_level, uniq

logger = logging.getLogger(__name__)

_IDENT = r"[a-zA-Z0-9_.\"`\[\]]+"
_CREATE_RE = re.compile(rf"create\s+(?:temporary\s+|temp\s+)?table\s+(?:if\s+not\s+exists\s+)?({_IDENT})\s*\(", re.IGNORECASE)
_INSERT_RE = re.compile(rf"insert\s+into\s+({_IDENT})\s*(?:\(([^()]*)\)\s*)?values\b", re.IGNORECASE)
_SELECT_RE = re.compile(rf"select\s+(?:distinct\s+)?(.*?)\s+from\s+({_IDENT})", re.IGNORECASE | re.DOTALL)
_CONSTRAINT_RE = re.compile(r"^(constraint|primary\s+key|foreign\s+key|unique|check|index|key)\b", re.IGNORECASE)
_ALIAS_RE = re.compile(rf"\s+as\s+({_IDENT})\s*$", re.IGNORECASE)
_BARE_IDENT_RE = re.compile(rf"^{_IDENT}$")
_LINE_COMMENT_RE = re.compile(r"--[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

NO_PATTERN_WARNING = "No CREATE TABLE / INSERT / SELECT patterns detected."
NO_COLUMNS_WARNING = "INSERT statement has no column list and no prior CREATE TABLE columns were found."


@dataclass
class InsertStatement:
    table: str
    columns: list[str]
    rows: list[list[str]] = field(default_factory=list)


def strip_sql_comments(sql: str) -> str:
    """Retire les commentaires ``--`` (fin de ligne) et ``/* */``."""
    return _BLOCK_COMMENT_RE.sub("", _LINE_COMMENT_RE.sub("", sql))


def normalize_sql_ident(ident: str) -> str:
    """``"public"."Donations"`` → ``Donations`` : guillemets retirés, dernier segment."""
    s = ident.strip()
    parts = [p.strip().strip('"`[]\'') for p in s.split(".")]
    return parts[-1] if parts else ""


def _scan_balanced(text: str, start: int) -> tuple[str, int]:
    """
    Lit le contenu d'une parenthèse ouverte juste avant ``start``.

    Returns:
        (contenu, position après la parenthèse fermante) ; fin de texte si
        la parenthèse n'est jamais refermée.
    """
    depth = 1
    quote: str | None = None
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if quote is not None:
            if ch == "\\" and quote == "'":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[start:i], i + 1
        i += 1
    return text[start:], n


def _scan_statement_end(text: str, start: int) -> int:
    """Position du premier ``;`` hors chaîne à partir de ``start`` (ou fin de texte)."""
    quote: str | None = None
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if quote is not None:
            if ch == "\\" and quote == "'":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            return i
        i += 1
    return n


def parse_create_tables(sql: str) -> list[tuple[str, list[str]]]:
    """
    Extrait (table, colonnes) de chaque ``CREATE TABLE``.

    Les clauses CONSTRAINT / PRIMARY KEY / FOREIGN KEY / UNIQUE / CHECK ne
    produisent pas de colonne.
    """
    statements: list[tuple[str, list[str]]] = []
    for m in _CREATE_RE.finditer(sql):
        table = normalize_sql_ident(m.group(1))
        body, _ = _scan_balanced(sql, m.end())
        columns: list[str] = []
        for item in split_sql_list_top_level(body):
            if _CONSTRAINT_RE.match(item):
                continue
            tokens = item.split()
            if len(tokens) < 2:
                continue
            col = normalize_sql_ident(tokens[0])
            if col:
                columns.append(col)
        if columns:
            statements.append((table, uniq(columns)))
    return statements


def parse_values_groups(values_body: str) -> list[list[str]]:
    """
    Découpe ``(1, 'a'), (2, 'b, c')`` en lignes de valeurs brutes.

    Respecte parenthèses imbriquées et chaînes (apostrophes doublées et
    échappements ``\\'`` compris).
    """
    rows: list[list[str]] = []
    i = 0
    n = len(values_body)

    while i < n:
        while i < n and (values_body[i].isspace() or values_body[i] == ","):
            i += 1
        if i >= n or values_body[i] != "(":
            break
        i += 1

        depth = 1
        quote: str | None = None
        current: list[str] = []
        row: list[str] = []

        while i < n and depth > 0:
            ch = values_body[i]
            if quote is not None:
                current.append(ch)
                if ch == "\\" and quote == "'" and i + 1 < n:
                    current.append(values_body[i + 1])
                    i += 2
                    continue
                if ch == quote:
                    quote = None
                i += 1
                continue
            if ch in ("'", '"'):
                quote = ch
            elif ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    i += 1
                    break
            elif ch == "," and depth == 1:
                row.append("".join(current).strip())
                current = []
                i += 1
                continue
            current.append(ch)
            i += 1

        row.append("".join(current).strip())
        rows.append(row)

    return rows


def normalize_sql_value(raw: str) -> str | None:
    """Retire les guillemets d'un littéral ; ``NULL`` et chaîne vide → None."""
    v = raw.strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
        q = v[0]
        v = v[1:-1].replace(q + q, q)
        if q == "'":
            v = v.replace("\\'", "'")
    elif v.upper() == "NULL":
        return None
    return v if v else None


def parse_inserts(sql: str, create_columns: dict[str, list[str]]) -> list[InsertStatement]:
    """
    Extrait les ``INSERT INTO``, avec ou sans liste de colonnes.

    Sans liste, les colonnes viennent du ``CREATE TABLE`` de la même table
    présent n'importe où dans le texte (avant ou après l'INSERT) ; à défaut
    la liste reste vide.
    """
    statements: list[InsertStatement] = []
    for m in _INSERT_RE.finditer(sql):
        table = normalize_sql_ident(m.group(1))
        end = _scan_statement_end(sql, m.end())
        rows = parse_values_groups(sql[m.end() : end].strip())
        if m.group(2) is not None:
            columns = [normalize_sql_ident(c) for c in split_sql_list_top_level(m.group(2))]
        else:
            columns = list(create_columns.get(table, []))
        statements.append(InsertStatement(table, columns, rows))
    return statements


def parse_selects(sql: str) -> list[tuple[str, list[str]]]:
    """
    Extrait (table source, colonnes de sortie) de chaque ``SELECT ... FROM``.

    Priorité : alias ``AS``, puis identifiant final, puis dernier segment
    pointé ; ``*`` est ignoré.
    """
    statements: list[tuple[str, list[str]]] = []
    for m in _SELECT_RE.finditer(sql):
        from_table = normalize_sql_ident(m.group(2))
        columns: list[str] = []
        for item in split_sql_list_top_level(m.group(1)):
            if item == "*" or item.endswith(".*"):
                continue
            alias = _ALIAS_RE.search(item)
            if alias:
                columns.append(normalize_sql_ident(alias.group(1)))
                continue
            tokens = item.split()
            if len(tokens) >= 2:
                last = tokens[-1]
                if _BARE_IDENT_RE.match(last):
                    columns.append(normalize_sql_ident(last))
                    continue
            columns.append(normalize_sql_ident(item.split(".")[-1]))
        columns = [c for c in columns if c]
        if columns:
            statements.append((from_table, uniq(columns)))
    return statements


def parse_sql_to_datasets(
    sql: str,
    *,
    name: str = "SQL",
    max_sample_rows: int = 50,
) -> list[IngestDataset]:
    """
    Analyse un texte SQL et produit un dataset par CREATE TABLE, INSERT et SELECT.

    Extracteur « au mieux », pas un parseur SQL : un texte sans motif reconnu
    donne un dataset vide avec avertissement, jamais d'exception.

    Args:
        sql: Texte SQL.
        name: Préfixe des libellés de datasets.
        max_sample_rows: Lignes INSERT matérialisées par instruction.

    Returns:
        Datasets CREATE TABLE, puis INSERT, puis SELECT.
    """
    cleaned = strip_sql_comments(sql)
    datasets: list[IngestDataset] = []

    creates = parse_create_tables(cleaned)
    create_columns: dict[str, list[str]] = {}
    for table, columns in creates:
        create_columns[table] = columns
        datasets.append(
            build_dataset(
                "sql",
                f"{name}:CREATE_TABLE:{table}",
                columns,
                [],
                meta={"table": table, "statementType": "create_table"},
            )
        )

    for ins in parse_inserts(cleaned, create_columns):
        ds_name = f"{name}:INSERT:{ins.table}"
        if not ins.columns:
            datasets.append(
                empty_dataset("sql", ds_name, NO_COLUMNS_WARNING, meta={"table": ins.table, "statementType": "insert"})
            )
            continue

        rows: list[Row] = []
        for raw in ins.rows[:max_sample_rows]:
            rows.append(
                {col: normalize_sql_value(raw[i]) if i < len(raw) else None for i, col in enumerate(ins.columns)}
            )
        datasets.append(
            build_dataset(
                "sql",
                ds_name,
                ins.columns,
                rows,
                meta={
                    "table": ins.table,
                    "statementType": "insert",
                    "sampledRows": len(rows),
                    "totalRows": len(ins.rows),
                    "truncated": len(ins.rows) > len(rows),
                },
            )
        )

    for table, columns in parse_selects(cleaned):
        datasets.append(
            build_dataset(
                "sql",
                f"{name}:SELECT:{table}",
                columns,
                [],
                meta={"table": table, "statementType": "select"},
            )
        )

    if not datasets:
        logger.debug("SQL %r: aucun motif reconnu", name)
        return [empty_dataset("sql", name, NO_PATTERN_WARNING)]

    logger.debug("SQL %r: %d datasets", name, len(datasets))
    return datasets
