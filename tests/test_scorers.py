"""Tests des scorers."""

import pytest

from concordingest.infer import ColumnType
from concordingest.matching.scorers import (
    bigrams,
    combine_scores,
    dice_coefficient,
    is_id_field,
    jaccard,
    name_similarity,
    value_hint_score,
)


def test_bigrams() -> None:
    assert bigrams("abc") == ["ab", "bc"]
    assert bigrams("a_b") == ["a ", " b"]
    assert bigrams("x") == ["x"]
    assert bigrams("") == []


def test_dice_coefficient() -> None:
    assert dice_coefficient("night", "nacht") == pytest.approx(0.25)
    assert dice_coefficient("same", "same") == 1.0
    assert dice_coefficient("", "abc") == 0.0


def test_jaccard() -> None:
    assert jaccard(["a", "b"], ["b", "c"]) == pytest.approx(1 / 3)
    assert jaccard([], []) == 0.0


def test_name_similarity_exact_after_normalization() -> None:
    assert name_similarity("Donor Email", "donor_email") == 1.0
    assert name_similarity("EMAIL", "email") == 1.0


def test_name_similarity_partial() -> None:
    score = name_similarity("email_address", "email")
    assert 0.4 < score < 0.7
    assert name_similarity("zzz", "email") < 0.2
    assert name_similarity("", "email") == 0.0


def test_name_similarity_symmetric_and_bounded() -> None:
    pairs = [("first name", "first_name"), ("gift amount", "amount"), ("city", "country")]
    for a, b in pairs:
        assert name_similarity(a, b) == pytest.approx(name_similarity(b, a))
        assert 0.0 <= name_similarity(a, b) <= 1.0


def test_is_id_field() -> None:
    assert is_id_field("id")
    assert is_id_field("contact_id")
    assert not is_id_field("idea")
    assert not is_id_field("paid")


def test_value_hint_email() -> None:
    score, reasons = value_hint_score(ColumnType.EMAIL, "Email", "donor_email", 1.0, 1.0)
    assert score == pytest.approx(0.28)
    assert reasons == ["Value pattern looks like email."]


def test_value_hint_uuid_identifier() -> None:
    score, reasons = value_hint_score(ColumnType.UUID, "id", "contact_id", 1.0, 1.0)
    assert score == pytest.approx(0.25)
    assert "High uniqueness + UUID-like values suggest an identifier field." in reasons


def test_value_hint_low_uniqueness_identifier() -> None:
    score, reasons = value_hint_score(ColumnType.STRING, "contact_id", "contact_id", 1.0, 0.2)
    assert score == pytest.approx(-0.15)
    assert reasons == ["Low uniqueness makes this less likely to be an identifier field."]


def test_value_hint_first_last() -> None:
    score, reasons = value_hint_score(ColumnType.STRING, "First Name", "first_name", 1.0, 1.0)
    assert score == pytest.approx(0.15)
    assert reasons == ["Column name indicates first name."]


def test_value_hint_no_signal() -> None:
    assert value_hint_score(ColumnType.BOOLEAN, "active", "status", 1.0, 0.5) == (0.0, [])


def test_combine_scores() -> None:
    assert combine_scores(1.0, 1.0, 0.0) == pytest.approx(0.9)
    assert combine_scores(1.0, 1.0, 0.5) == pytest.approx(0.95)
    assert combine_scores(1.0, 1.0, -0.25) == pytest.approx(0.88)
    assert combine_scores(0.0, 0.0, -0.25) == 0.0
