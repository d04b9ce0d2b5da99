"""Calcul des scores de similarité entre colonnes sources et champs cibles."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from concordingest.infer import ColumnType
from concordingest.normalize import clamp, normalize_name, tokenize_name

HINT_MIN = -0.25
HINT_MAX = 0.5


def bigrams(s: str) -> list[str]:
    """Paires de caractères consécutifs (``_`` lu comme espace)."""
    v = s.replace("_", " ").strip()
    if len(v) < 2:
        return [v] if v else []
    return [v[i : i + 2] for i in range(len(v) - 1)]


def dice_coefficient(a: str, b: str) -> float:
    """Coefficient de Dice sur les bigrammes (multiensembles)."""
    A = bigrams(a)
    B = bigrams(b)
    if not A or not B:
        return 0.0
    counts = Counter(A)
    matches = 0
    for y in B:
        if counts[y] > 0:
            matches += 1
            counts[y] -= 1
    return 2 * matches / (len(A) + len(B))


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    A = set(a)
    B = set(b)
    union = A | B
    if not union:
        return 0.0
    return len(A & B) / len(union)


def name_similarity(source: str, target: str) -> float:
    """
    Similarité (0-1) entre deux noms de colonnes.

    Après normalisation : 0.5 × Dice des bigrammes + 0.4 × Jaccard des jetons
    + 0.1 × bonus d'inclusion (0.8 si un nom contient l'autre). Égalité
    normalisée → 1.0.
    """
    s = normalize_name(source)
    t = normalize_name(target)
    if not s or not t:
        return 0.0
    if s == t:
        return 1.0
    token_score = jaccard(tokenize_name(s), tokenize_name(t))
    dice = dice_coefficient(s, t)
    substring = 0.8 if (s in t or t in s) else 0.0
    return clamp(0.5 * dice + 0.4 * token_score + 0.1 * substring, 0.0, 1.0)


def is_id_field(field_name: str) -> bool:
    """Champ identifiant : ``id`` ou dernier jeton ``id`` (``contact_id``)."""
    tokens = tokenize_name(field_name)
    return bool(tokens) and (tokens[-1] == "id" or field_name == "id")


_PHONE_TOKENS = ("phone", "mobile", "cell", "tel")
_NUMERIC_TOKENS = ("amount", "total", "hours", "count")
_DATE_TOKENS = ("date", "time", "at")


def _type_hint(inferred: ColumnType, target_tokens: list[str]) -> tuple[float, str | None]:
    def has_any(*needles: str) -> bool:
        return any(n in target_tokens for n in needles)

    if inferred is ColumnType.EMAIL:
        return (0.28, "Value pattern looks like email.") if has_any("email") else (0.0, None)
    if inferred is ColumnType.PHONE:
        return (0.28, "Value pattern looks like phone.") if has_any(*_PHONE_TOKENS) else (0.0, None)
    if inferred in (ColumnType.CURRENCY, ColumnType.NUMBER):
        if has_any(*_NUMERIC_TOKENS):
            return 0.2, "Numeric values fit numeric target field."
        return 0.0, None
    if inferred in (ColumnType.DATE, ColumnType.DATETIME):
        if has_any(*_DATE_TOKENS):
            return 0.2, "Date/time values fit date/time target field."
        return 0.0, None
    if inferred in (ColumnType.STRING, ColumnType.BOOLEAN, ColumnType.UUID, ColumnType.UNKNOWN):
        return 0.0, None
    raise ValueError(f"type inféré non géré: {inferred!r}")


def value_hint_score(
    inferred_type: ColumnType,
    source_name: str,
    target_field: str,
    non_empty_ratio: float,
    unique_ratio: float,
) -> tuple[float, list[str]]:
    """
    Bonus/malus (borné à [-0.25, 0.5]) tiré des valeurs de la colonne.

    Récompense un type inféré cohérent avec les jetons du champ cible, une
    colonne UUID très unique vers un champ ``*_id`` (+0.25), pénalise une
    colonne peu unique vers un identifiant (-0.15) et aligne ``first``/``last``.

    Returns:
        (score, raisons)
    """
    reasons: list[str] = []
    src_tokens = tokenize_name(source_name)
    tgt_tokens = tokenize_name(target_field)

    score, reason = _type_hint(inferred_type, tgt_tokens)
    if reason:
        reasons.append(reason)

    if is_id_field(target_field):
        if inferred_type is ColumnType.UUID and unique_ratio >= 0.9 and non_empty_ratio >= 0.8:
            score += 0.25
            reasons.append("High uniqueness + UUID-like values suggest an identifier field.")
        elif unique_ratio < 0.5 and non_empty_ratio >= 0.5:
            score -= 0.15
            reasons.append("Low uniqueness makes this less likely to be an identifier field.")

    if "first" in src_tokens and "first" in tgt_tokens:
        score += 0.15
        reasons.append("Column name indicates first name.")
    if "last" in src_tokens and "last" in tgt_tokens:
        score += 0.15
        reasons.append("Column name indicates last name.")

    return clamp(score, HINT_MIN, HINT_MAX), reasons


def combine_scores(name_score: float, type_score: float, hint: float) -> float:
    """
    Score global d'un candidat : le nom domine, puis le type, puis les indices.

    ``0.62 × nom + 0.28 × type + 0.10 × clamp(indice, 0, 1)``, plus
    ``0.08 × indice`` si l'indice est négatif ; borné à [0, 1].
    """
    score = 0.62 * name_score + 0.28 * type_score + 0.1 * clamp(hint, 0.0, 1.0)
    if hint < 0:
        score += 0.08 * hint
    return clamp(score, 0.0, 1.0)
