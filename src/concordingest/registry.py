"""Registre des tables et champs cibles pour le matching de schéma."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from concordingest.config import ConfigError, ConfigFileError, read_json_file
from concordingest.normalize import uniq


@dataclass
class SchemaField:
    """Champ d'une table cible."""

    field: str
    type: str = "string"
    required: bool = False
    aliases: list[str] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        """Nom du champ suivi de ses alias, sans doublon."""
        return [n for n in uniq([self.field, *self.aliases]) if n]

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SchemaField:
        name = d.get("field", "")
        if not name:
            raise ConfigError(f"champ sans nom: {d!r}")
        aliases = d.get("aliases", [])
        if not isinstance(aliases, list):
            raise ConfigError(f"aliases doit être une liste (champ {name!r})")
        return cls(
            field=name,
            type=d.get("type", "string"),
            required=bool(d.get("required", False)),
            aliases=[str(a) for a in aliases],
        )


@dataclass
class SchemaTable:
    """Table cible : nom technique, libellé, champs et alias."""

    table: str
    label: str
    fields: list[SchemaField] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [n for n in uniq([self.table, self.label, *self.aliases]) if n]

    @property
    def required_fields(self) -> list[SchemaField]:
        return [f for f in self.fields if f.required]

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SchemaTable:
        table = d.get("table", "")
        if not table:
            raise ConfigError(f"table sans nom: {d!r}")
        fields = d.get("fields", [])
        if not isinstance(fields, list) or not fields:
            raise ConfigError(f"fields doit être une liste non vide (table {table!r})")
        return cls(
            table=table,
            label=d.get("label", table),
            fields=[SchemaField.from_dict(f) for f in fields],
            aliases=[str(a) for a in d.get("aliases", [])],
        )


def load_schema_registry(path: str | Path) -> list[SchemaTable]:
    """
    Charge un registre JSON : une liste de tables, ou ``{"tables": [...]}``.

    Raises:
        ConfigFileError: Fichier absent, JSON invalide ou structure inattendue.
        ConfigError: Table ou champ invalide.
    """
    d = read_json_file(path)
    if isinstance(d, dict):
        d = d.get("tables")
    if not isinstance(d, list):
        raise ConfigFileError(f"Registre invalide: {path} doit contenir une liste de tables")
    return [SchemaTable.from_dict(t) for t in d]


def _f(name: str, type_: str = "string", required: bool = False, *aliases: str) -> SchemaField:
    return SchemaField(name, type_, required, list(aliases))


# Registre par défaut : tables du CRM (contacts, comptes, dons, événements, bénévoles, tâches)
DEFAULT_SCHEMA_TABLES: list[SchemaTable] = [
    SchemaTable(
        "contacts",
        "Contacts",
        [
            _f("contact_id", "uuid", False, "id", "external_id"),
            _f("first_name", "string", True, "first", "given_name", "fname"),
            _f("last_name", "string", True, "last", "surname", "family_name", "lname"),
            _f("email", "email", False, "email_address", "e_mail"),
            _f("phone", "phone", False, "phone_number", "telephone", "home_phone"),
            _f("mobile_phone", "phone", False, "mobile", "cell", "cell_phone"),
            _f("job_title", "string", False, "title", "position"),
            _f("birth_date", "date", False, "dob", "date_of_birth", "birthday"),
            _f("address_line1", "string", False, "address", "street", "address_1"),
            _f("address_line2", "string", False, "address_2", "suite"),
            _f("city", "string", False, "town"),
            _f("state_province", "string", False, "state", "province", "region"),
            _f("postal_code", "string", False, "zip", "zip_code", "postcode"),
            _f("country", "string"),
            _f("notes", "text", False, "comments"),
        ],
        ["people", "person", "donors", "supporters"],
    ),
    SchemaTable(
        "accounts",
        "Accounts",
        [
            _f("account_number", "string", False, "account_no", "account_id"),
            _f("name", "string", True, "account_name", "organization", "organisation", "company"),
            _f("account_type", "string", False, "type"),
            _f("email", "email", False, "email_address"),
            _f("phone", "phone", False, "phone_number"),
            _f("website", "string", False, "url", "web"),
            _f("address_line1", "string", False, "address", "street"),
            _f("city", "string"),
            _f("state_province", "string", False, "state", "province"),
            _f("postal_code", "string", False, "zip", "zip_code"),
            _f("country", "string"),
        ],
        ["organizations", "companies"],
    ),
    SchemaTable(
        "donations",
        "Donations",
        [
            _f("donation_number", "string", False, "donation_no", "receipt_number"),
            _f("contact_id", "uuid", False, "donor_id"),
            _f("donor_email", "email", False, "email", "donor_e_mail"),
            _f("donor_first_name", "string", False, "first_name"),
            _f("donor_last_name", "string", False, "last_name"),
            _f("amount", "currency", True, "donation_amount", "gift_amount", "total"),
            _f("currency", "string", False, "currency_code"),
            _f("donation_date", "datetime", True, "date", "gift_date", "received_at"),
            _f("payment_method", "string", False, "method", "payment_type"),
            _f("payment_status", "string", False, "status"),
            _f("transaction_id", "string", False, "transaction", "reference"),
            _f("campaign_name", "string", False, "campaign", "appeal", "fund"),
            _f("designation", "string"),
            _f("is_recurring", "boolean", False, "recurring"),
            _f("notes", "text", False, "comments", "memo"),
        ],
        ["gifts", "contributions", "donors"],
    ),
    SchemaTable(
        "events",
        "Events",
        [
            _f("name", "string", True, "event_name", "title"),
            _f("description", "text"),
            _f("event_type", "string", False, "type", "category"),
            _f("status", "string"),
            _f("start_date", "datetime", True, "starts_at", "start", "start_time"),
            _f("end_date", "datetime", True, "ends_at", "end", "end_time"),
            _f("location_name", "string", False, "location", "venue"),
            _f("city", "string"),
            _f("capacity", "integer", False, "max_attendees"),
            _f("registered_count", "integer", False, "registrations", "registered"),
        ],
    ),
    SchemaTable(
        "volunteers",
        "Volunteers",
        [
            _f("contact_id", "uuid", False, "volunteer_id"),
            _f("first_name", "string", False, "first"),
            _f("last_name", "string", False, "last"),
            _f("email", "email", False, "email_address"),
            _f("phone", "phone", False, "phone_number", "mobile"),
            _f("volunteer_status", "string", False, "status"),
            _f("skills", "text"),
            _f("availability", "text"),
            _f("emergency_contact_name", "string"),
            _f("emergency_contact_phone", "phone"),
            _f("background_check_date", "date"),
            _f("hours_contributed", "decimal", False, "hours", "total_hours"),
        ],
    ),
    SchemaTable(
        "tasks",
        "Tasks",
        [
            _f("subject", "string", True, "title", "task", "name"),
            _f("description", "text", False, "details"),
            _f("status", "string"),
            _f("priority", "string"),
            _f("due_date", "datetime", False, "due", "deadline"),
            _f("completed_date", "datetime", False, "completed_at", "completed"),
            _f("assigned_to", "uuid", False, "assignee", "owner"),
        ],
        ["todos"],
    ),
]
