"""Crée des fichiers CSV / Excel / SQL de démonstration pour concordingest."""

from pathlib import Path

import pandas as pd

DATA_DIR = Path(__file__).parent / "data"
DATA_DIR.mkdir(exist_ok=True)

contacts = pd.DataFrame({
    "First Name": ["Ada", "Alan", "Grace", "Edsger"],
    "Last Name": ["Lovelace", "Turing", "Hopper", "Dijkstra"],
    "E-mail": ["ada@example.org", "alan@example.org", "grace@example.org", ""],
    "Mobile": ["+44 20 7946 0958", "(555) 123-4567", "", "+31 20 555 0199"],
    "City": ["London", "Manchester", "Arlington", "Nuenen"],
})

donations = pd.DataFrame({
    "Donor Email": ["ada@example.org", "alan@example.org", "grace@example.org"],
    "Gift Amount": ["$120.00", "$35.50", "$1,000.00"],
    "Date": ["2024-01-15", "2024-02-01", "2024-03-10"],
    "Campaign": ["Spring appeal", "Spring appeal", "Annual gala"],
})

events = pd.DataFrame({
    "Event Name": ["Annual gala", "Volunteer day"],
    "Starts At": ["2024-06-01 18:00", "2024-07-12 09:00"],
    "Ends At": ["2024-06-01 23:00", "2024-07-12 17:00"],
    "Venue": ["City Hall", "Riverside Park"],
})

contacts.to_csv(DATA_DIR / "contacts.csv", index=False)

with pd.ExcelWriter(DATA_DIR / "crm_export.xlsx", engine="openpyxl") as writer:
    donations.to_excel(writer, sheet_name="Donations", index=False)
    events.to_excel(writer, sheet_name="Events", index=False)

(DATA_DIR / "tasks.sql").write_text(
    """-- Export de tâches
CREATE TABLE tasks (
    id UUID PRIMARY KEY,
    title VARCHAR(200) NOT NULL,
    due DATE,
    owner UUID
);
INSERT INTO tasks VALUES
    ('3f2504e0-4f89-11d3-9a0c-0305e82c3301', 'Call major donors', '2024-04-01', NULL),
    ('7c9e6679-7425-40de-944b-e07fc1f90ae7', 'Book venue', '2024-04-15', NULL);
""",
    encoding="utf-8",
)
print(f"Fichiers créés dans {DATA_DIR}")
