"""Lecture CSV : détection du séparateur, découpage des enregistrements, en-têtes."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from concordingest.dataset import IngestDataset, build_dataset, dedupe_headers, empty_dataset, to_row
from concordingest.normalize import is_numericish

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (",", "\t", ";", "|")
SNIFF_WINDOW = 16 * 1024


def detect_delimiter(text: str) -> str:
    """
    Devine le séparateur d'après le premier enregistrement.

    Compte ``, \\t ; |`` hors guillemets dans les 16 premiers Kio, jusqu'au
    premier saut de ligne non cité. Virgule en cas d'égalité ou d'échantillon vide.
    """
    counts = {d: 0 for d in CANDIDATE_DELIMITERS}
    sample = text[:SNIFF_WINDOW]
    in_quotes = False
    i = 0
    while i < len(sample):
        ch = sample[i]
        if ch == '"':
            if in_quotes and i + 1 < len(sample) and sample[i + 1] == '"':
                i += 1
            else:
                in_quotes = not in_quotes
        elif not in_quotes:
            if ch in counts:
                counts[ch] += 1
            elif ch in "\r\n":
                break
        i += 1

    best = ","
    best_count = 0
    for delim in CANDIDATE_DELIMITERS:
        if counts[delim] > best_count:
            best, best_count = delim, counts[delim]
    return best


def tokenize_csv(text: str, delimiter: str, max_records: int) -> tuple[list[list[str]], bool]:
    """
    Découpe le texte en enregistrements en un seul passage.

    Un ``"`` bascule l'état cité, sauf ``""`` à l'intérieur d'une zone citée
    (guillemet littéral). Séparateur et saut de ligne ne coupent qu'hors
    guillemets. Un enregistrement réduit à un champ vide (ligne blanche) est
    ignoré.

    Returns:
        (enregistrements, tronqué) ; tronqué si ``max_records`` est atteint
        avant la fin du texte.
    """
    text = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    records: list[list[str]] = []
    record: list[str] = []
    buf: list[str] = []
    in_quotes = False

    def push_record() -> None:
        nonlocal record
        if not (len(record) == 1 and record[0].strip() == ""):
            records.append(record)
        record = []

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                buf.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif not in_quotes and ch == delimiter:
            record.append("".join(buf))
            buf = []
        elif not in_quotes and ch == "\n":
            record.append("".join(buf))
            buf = []
            push_record()
            if len(records) >= max_records:
                return records, bool(text[i + 1 :].strip())
        else:
            buf.append(ch)
        i += 1

    if buf or record:
        record.append("".join(buf))
        push_record()

    return records, False


def looks_like_header(first: Sequence[str | None]) -> bool:
    """
    Heuristique : la première ligne est-elle une ligne d'en-têtes ?

    Cellules uniques (casse ignorée), au moins 60 % non vides, au plus 20 %
    numériques, aucune de plus de 80 caractères.
    """
    a = ["" if v is None else str(v).strip() for v in first]
    if not a:
        return False

    unique = len({v.lower() for v in a}) == len(a)
    non_empty = sum(1 for v in a if v)
    numericish = sum(1 for v in a if is_numericish(v))
    too_long = sum(1 for v in a if len(v) > 80)

    if not unique:
        return False
    if non_empty / len(a) < 0.6:
        return False
    if numericish / len(a) > 0.2:
        return False
    return too_long == 0


def header_names(first_row: Sequence[str | None], has_header: bool) -> list[str]:
    """En-têtes effectifs : cellules de la première ligne ou ``column_N``."""
    if not has_header:
        return [f"column_{i + 1}" for i in range(len(first_row))]
    names = []
    for i, h in enumerate(first_row):
        s = "" if h is None else str(h).strip()
        names.append(s if s else f"column_{i + 1}")
    return dedupe_headers(names)


def parse_csv_to_dataset(
    text: str,
    *,
    name: str = "CSV",
    max_rows: int = 2000,
    has_header: bool | str = "auto",
    delimiter: str = "auto",
) -> IngestDataset:
    """
    Analyse un texte CSV et produit un IngestDataset profilé.

    Args:
        text: Contenu CSV.
        name: Libellé du dataset.
        max_rows: Nombre maximal de lignes de données conservées.
        has_header: True, False ou "auto" (heuristique).
        delimiter: Séparateur explicite ou "auto".

    Returns:
        IngestDataset (jamais d'exception sur un contenu vide : avertissement).
    """
    delim = delimiter if delimiter and delimiter != "auto" else detect_delimiter(text)
    records, truncated = tokenize_csv(text, delim, max_rows + 1)
    rows = [r for r in records if any(c.strip() for c in r)]

    if not rows:
        logger.debug("CSV %r: aucune ligne", name)
        return empty_dataset(
            "csv",
            name,
            "No rows detected.",
            meta={"delimiter": delim, "hasHeader": False, "truncated": truncated},
        )

    first = rows[0]
    header = looks_like_header(first) if has_header == "auto" else bool(has_header)
    headers = header_names(first, header)

    data_rows = rows[1:] if header else rows
    if len(data_rows) > max_rows:
        data_rows = data_rows[:max_rows]
        truncated = True
    row_dicts = [to_row(headers, r) for r in data_rows]

    logger.debug(
        "CSV %r: séparateur=%r, en-tête=%s, %d lignes, tronqué=%s",
        name,
        delim,
        header,
        len(row_dicts),
        truncated,
    )
    return build_dataset(
        "csv",
        name,
        headers,
        row_dicts,
        meta={"delimiter": delim, "hasHeader": header, "truncated": truncated},
    )
