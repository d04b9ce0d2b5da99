"""Tests du matcher de schéma."""

import pytest

from concordingest.config import MatchOptions
from concordingest.dataset import profile_column
from concordingest.io_csv import parse_csv_to_dataset
from concordingest.matching import ColumnSuggestion, FieldMatchCandidate, suggest_schema_matches
from concordingest.matching.matcher import assign_greedy, score_column
from concordingest.registry import DEFAULT_SCHEMA_TABLES, SchemaField, SchemaTable

DONATIONS_CSV = (
    "Donor Email,Amount,Donation Date\n"
    "a@x.org,$10.00,2024-01-15\n"
    "b@x.org,$25.50,2024-02-01\n"
    "c@x.org,$5.00,2024-03-10\n"
)


def _table(name: str) -> SchemaTable:
    return next(t for t in DEFAULT_SCHEMA_TABLES if t.table == name)


@pytest.fixture
def donations_result():
    ds = parse_csv_to_dataset(DONATIONS_CSV, name="gifts")
    return suggest_schema_matches(ds, DEFAULT_SCHEMA_TABLES)


def test_donations_best_table(donations_result) -> None:
    best = donations_result.best_table
    assert best is not None
    assert best.table == "donations"
    assert best.suggested_mapping == {
        "Donor Email": "donations.donor_email",
        "Amount": "donations.amount",
        "Donation Date": "donations.donation_date",
    }
    assert best.coverage == 1.0
    assert "All required fields can be mapped at high confidence." in best.reasons
    assert "Mapped 3 of 3 columns." in best.reasons


def test_tables_sorted_and_bounded(donations_result) -> None:
    scores = [t.score for t in donations_result.tables]
    assert scores == sorted(scores, reverse=True)
    assert len(donations_result.tables) == len(DEFAULT_SCHEMA_TABLES)
    for t in donations_result.tables:
        assert 0.0 <= t.score <= 1.0
        assert 0.0 <= t.coverage <= 1.0
        for s in t.column_suggestions:
            assert len(s.candidates) <= 6
            cand_scores = [c.score for c in s.candidates]
            assert cand_scores == sorted(cand_scores, reverse=True)
            assert all(0.22 <= c <= 1.0 for c in cand_scores)


def test_mapping_is_one_to_one(donations_result) -> None:
    for t in donations_result.tables:
        targets = list(t.suggested_mapping.values())
        assert len(targets) == len(set(targets))
        assert all(target.startswith(f"{t.table}.") for target in targets)


def test_missing_required_reason() -> None:
    ds = parse_csv_to_dataset("email\na@x.org\nb@x.org\n")
    result = suggest_schema_matches(ds, [_table("contacts")])
    contacts = result.tables[0]
    assert contacts.suggested_mapping == {"email": "contacts.email"}
    assert "Missing 2 required field(s) for contacts." in contacts.reasons


def test_dataset_name_hint() -> None:
    ds = parse_csv_to_dataset(DONATIONS_CSV, name="donations export")
    result = suggest_schema_matches(ds, DEFAULT_SCHEMA_TABLES)
    assert "Dataset name suggests this table." in result.best_table.reasons


def test_empty_dataset_has_no_best_table() -> None:
    ds = parse_csv_to_dataset("")
    result = suggest_schema_matches(ds, DEFAULT_SCHEMA_TABLES)
    assert result.best_table is None
    assert "bestTable" not in result.to_dict()
    assert all(t.suggested_mapping == {} for t in result.tables)


def test_uuid_column_prefers_identifier() -> None:
    values = [
        "3f2504e0-4f89-11d3-9a0c-0305e82c3301",
        "7c9e6679-7425-40de-944b-e07fc1f90ae7",
        "16fd2706-8baf-433b-82eb-8c7fada847da",
    ]
    col = profile_column("id", "id", values)
    candidates = score_column(col, _table("contacts"), MatchOptions())
    assert candidates[0].key == "contacts.contact_id"
    assert "High uniqueness + UUID-like values suggest an identifier field." in candidates[0].reasons


def test_low_uniqueness_penalizes_identifier() -> None:
    table = SchemaTable("t", "T", [SchemaField("contact_id", "uuid")])
    repeated = profile_column("contact_id", "contact_id", ["A", "A", "A", "A"])
    distinct = profile_column("contact_id", "contact_id", ["A", "B", "C", "D"])
    low = score_column(repeated, table, MatchOptions())[0]
    high = score_column(distinct, table, MatchOptions())[0]
    assert low.score < high.score
    assert "Low uniqueness makes this less likely to be an identifier field." in low.reasons


def test_same_name_uuid_columns_ranked_by_uniqueness() -> None:
    """Deux colonnes « Contact ID » : seule la plus unique est poussée vers l'identifiant."""
    uuids = [
        "3f2504e0-4f89-11d3-9a0c-0305e82c3301",
        "7c9e6679-7425-40de-944b-e07fc1f90ae7",
        "16fd2706-8baf-433b-82eb-8c7fada847da",
    ]
    unique = profile_column("Contact ID", "contact_id", uuids)
    repeated = profile_column("Contact ID", "contact_id", [uuids[0]] * 4)

    def candidate(col):
        return next(c for c in score_column(col, _table("contacts"), MatchOptions()) if c.key == "contacts.contact_id")

    high = candidate(unique)
    low = candidate(repeated)
    assert high.score > low.score
    assert "High uniqueness + UUID-like values suggest an identifier field." in high.reasons
    assert "Low uniqueness makes this less likely to be an identifier field." in low.reasons


def test_assign_greedy_stronger_column_wins() -> None:
    strong = profile_column("Email", "email", ["a@x.org", "b@x.org", "c@x.org", "d@x.org"])
    weak = profile_column("E-mail", "e_mail", ["a@x.org", None, None, None])
    suggestions = [
        ColumnSuggestion("E-mail", [FieldMatchCandidate("contacts", "email", 0.95)]),
        ColumnSuggestion("Email", [FieldMatchCandidate("contacts", "email", 0.9)]),
    ]
    mapping, accepted = assign_greedy([weak, strong], suggestions, 0.55)
    assert mapping == {"Email": "contacts.email"}
    assert accepted == [0.9]


def test_assign_greedy_threshold() -> None:
    col = profile_column("note", "note", ["x"])
    suggestions = [ColumnSuggestion("note", [FieldMatchCandidate("contacts", "notes", 0.5)])]
    assert assign_greedy([col], suggestions, 0.55) == ({}, [])


def test_suggestions_are_deterministic() -> None:
    ds = parse_csv_to_dataset(DONATIONS_CSV)
    first = suggest_schema_matches(ds, DEFAULT_SCHEMA_TABLES).to_dict()
    second = suggest_schema_matches(ds, DEFAULT_SCHEMA_TABLES).to_dict()
    assert first == second
