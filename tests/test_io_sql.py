"""Tests de l'extracteur SQL."""

from concordingest.io_sql import (
    NO_COLUMNS_WARNING,
    NO_PATTERN_WARNING,
    normalize_sql_ident,
    normalize_sql_value,
    parse_create_tables,
    parse_selects,
    parse_sql_to_datasets,
    parse_values_groups,
    strip_sql_comments,
)

DUMP = """
-- export CRM
CREATE TABLE IF NOT EXISTS "public"."donations" (
    id UUID PRIMARY KEY,
    donor_email VARCHAR(255) NOT NULL,
    amount DECIMAL(15, 2),
    donation_date TIMESTAMP,
    CONSTRAINT fk_donor FOREIGN KEY (donor_email) REFERENCES contacts(email)
);
/* données */
INSERT INTO donations VALUES
    ('3f2504e0-4f89-11d3-9a0c-0305e82c3301', 'a@x.org', 10.50, '2024-01-15 10:00:00'),
    ('7c9e6679-7425-40de-944b-e07fc1f90ae7', 'b@x.org', NULL, '2024-02-01 12:30:00');
"""


def test_strip_sql_comments() -> None:
    assert strip_sql_comments("a -- b\n/* c\nd */e").split() == ["a", "e"]


def test_normalize_sql_ident() -> None:
    assert normalize_sql_ident('"public"."Donations"') == "Donations"
    assert normalize_sql_ident("`crm`.`contacts`") == "contacts"
    assert normalize_sql_ident("[dbo].[tasks]") == "tasks"


def test_normalize_sql_value() -> None:
    assert normalize_sql_value("'O''Brien'") == "O'Brien"
    assert normalize_sql_value("'it\\'s'") == "it's"
    assert normalize_sql_value("NULL") is None
    assert normalize_sql_value("null") is None
    assert normalize_sql_value("''") is None
    assert normalize_sql_value("42") == "42"


def test_parse_create_tables_skips_constraints() -> None:
    creates = parse_create_tables(strip_sql_comments(DUMP))
    assert creates == [("donations", ["id", "donor_email", "amount", "donation_date"])]


def test_parse_values_groups() -> None:
    rows = parse_values_groups("(1, 'a, b', ROUND(2.5, 1)), (2, 'it''s', NULL)")
    assert rows == [["1", "'a, b'", "ROUND(2.5, 1)"], ["2", "'it''s'", "NULL"]]


def test_insert_inherits_create_table_columns() -> None:
    datasets = parse_sql_to_datasets(DUMP, name="dump")
    assert [d.name for d in datasets] == ["dump:CREATE_TABLE:donations", "dump:INSERT:donations"]

    create, insert = datasets
    assert create.row_count == 0
    assert create.meta == {"table": "donations", "statementType": "create_table"}

    assert insert.column_names == ["id", "donor_email", "amount", "donation_date"]
    assert insert.row_count == 2
    assert insert.sample_rows[1]["amount"] is None
    assert insert.sample_rows[0]["donor_email"] == "a@x.org"
    assert insert.column("id").inferred_type.value == "uuid"
    assert insert.meta["statementType"] == "insert"
    assert insert.meta["totalRows"] == 2


def test_insert_with_column_list() -> None:
    sql = "INSERT INTO contacts (first_name, last_name) VALUES ('Ada', 'Lovelace'), ('Alan', 'Turing');"
    datasets = parse_sql_to_datasets(sql)
    assert len(datasets) == 1
    ds = datasets[0]
    assert ds.name == "SQL:INSERT:contacts"
    assert ds.sample_rows == [
        {"first_name": "Ada", "last_name": "Lovelace"},
        {"first_name": "Alan", "last_name": "Turing"},
    ]


def test_insert_without_columns_warns() -> None:
    datasets = parse_sql_to_datasets("INSERT INTO orphan VALUES (1, 2);")
    assert len(datasets) == 1
    assert datasets[0].warnings == [NO_COLUMNS_WARNING]
    assert datasets[0].row_count == 0


def test_insert_sample_limit() -> None:
    values = ", ".join(f"({i}, 'n{i}')" for i in range(20))
    sql = f"INSERT INTO t (id, name) VALUES {values};"
    ds = parse_sql_to_datasets(sql, max_sample_rows=5)[0]
    assert ds.row_count == 5
    assert ds.meta["sampledRows"] == 5
    assert ds.meta["totalRows"] == 20
    assert ds.meta["truncated"] is True


def test_parse_selects_aliases() -> None:
    sql = "SELECT c.email AS contact_email, c.first_name fname, d.amount, COUNT(*), d.* FROM contacts c"
    assert parse_selects(sql) == [("contacts", ["contact_email", "fname", "amount", "COUNT(*)"])]


def test_select_dataset() -> None:
    datasets = parse_sql_to_datasets("SELECT DISTINCT email, phone FROM crm.contacts;")
    assert [d.name for d in datasets] == ["SQL:SELECT:contacts"]
    assert datasets[0].column_names == ["email", "phone"]
    assert datasets[0].meta["statementType"] == "select"


def test_no_pattern_warning() -> None:
    datasets = parse_sql_to_datasets("UPDATE contacts SET x = 1;", name="misc")
    assert len(datasets) == 1
    assert datasets[0].name == "misc"
    assert datasets[0].warnings == [NO_PATTERN_WARNING]
    assert datasets[0].columns == []


def test_insert_inherits_columns_from_later_create_table() -> None:
    """Le CREATE TABLE peut suivre l'INSERT sans liste de colonnes."""
    datasets = parse_sql_to_datasets("INSERT INTO t VALUES (1, 2); CREATE TABLE t (a INT, b INT);")
    insert = next(d for d in datasets if d.meta["statementType"] == "insert")
    assert insert.column_names == ["a", "b"]
    assert insert.sample_rows == [{"a": "1", "b": "2"}]
