"""Normalisation des noms de colonnes et primitives partagées par les parseurs."""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NUMERICISH = re.compile(r"^-?\d+(\.\d+)?$")


def clamp(value: float, lo: float, hi: float) -> float:
    """Borne une valeur dans [lo, hi]."""
    return max(lo, min(hi, value))


def uniq(items: Iterable[T]) -> list[T]:
    """Dédoublonne en conservant l'ordre d'apparition."""
    seen: set[T] = set()
    out: list[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def take(items: Sequence[T], n: int) -> list[T]:
    return list(items[: max(n, 0)])


def safe_ratio(num: float, den: float) -> float:
    """Division protégée : 0.0 si le dénominateur est nul ou négatif."""
    if den <= 0:
        return 0.0
    return num / den


def is_missing(s: Any) -> bool:
    """True pour None et les flottants NaN/inf (cellules vides côté pandas)."""
    return s is None or (isinstance(s, float) and (math.isnan(s) or math.isinf(s)))


def normalize_name(s: str | None) -> str:
    """
    Normalise un nom de colonne ou de champ pour comparaison.

    "Donor E-mail " → "donor_e_mail" : minuscules, toute suite de caractères
    non alphanumériques remplacée par "_", "_" de bord retirés.
    """
    if is_missing(s):
        return ""
    text = unicodedata.normalize("NFKC", str(s)).lower()
    return _NON_ALNUM.sub("_", text).strip("_")


def tokenize_name(s: str | None) -> list[str]:
    """Découpe un nom normalisé en jetons (séparateur "_")."""
    return [t for t in normalize_name(s).split("_") if t]


def is_numericish(s: str) -> bool:
    return bool(_NUMERICISH.match(s))


def split_sql_list_top_level(s: str) -> list[str]:
    """
    Découpe une liste SQL sur les virgules de premier niveau.

    Les virgules entre parenthèses (``DECIMAL(15, 2)``) ou à l'intérieur
    d'une chaîne entre apostrophes ou guillemets ne sont pas des séparateurs.
    Un guillemet doublé dans une chaîne est un caractère littéral.

    Returns:
        Éléments non vides, espaces de bord retirés.
    """
    items: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    i = 0
    n = len(s)

    while i < n:
        ch = s[i]
        if quote is not None:
            current.append(ch)
            if ch == quote:
                if i + 1 < n and s[i + 1] == quote:
                    current.append(s[i + 1])
                    i += 2
                    continue
                quote = None
            i += 1
            continue

        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            items.append("".join(current).strip())
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1

    items.append("".join(current).strip())
    return [item for item in items if item]
