"""
SQL schema definitions for compound stores. A store is a single SQLite file with three tables, compound, spectrum and
metadata, plus indices on the join path.

The compound table is a bag, not a set: spectrum centric sources (MoNA) carry one compound row per spectrum, so
compound_id is a grouping key only and rows are identified by the surrogate _compound_row. Spectra submitted together
with their compound keep that row in spectrum._compound_row, all others are joined on compound_id.
"""
import re
from typing import Dict, Iterable, List

# bump whenever a table or column changes shape, stores carrying another version are refused on open
SCHEMA_VERSION = "1"

COMPOUND_TABLE = "compound"
SPECTRUM_TABLE = "spectrum"
METADATA_TABLE = "metadata"
TABLES = [COMPOUND_TABLE, SPECTRUM_TABLE, METADATA_TABLE]

HIDDEN_PREFIX = "_"
COMPOUND_ROW = "_compound_row"

COMPOUND_COLUMNS: Dict[str, str] = {
    COMPOUND_ROW: "INTEGER PRIMARY KEY",
    "compound_id": "TEXT NOT NULL",
    "compound_name": "TEXT",
    "inchi": "TEXT",
    "inchi_key": "TEXT",
    "formula": "TEXT",
    "mass": "REAL",
    "smiles": "TEXT",
    "synonyms": "BLOB",
}

SPECTRUM_CORE_COLUMNS: Dict[str, str] = {
    "spectrum_id": "TEXT PRIMARY KEY",
    "compound_id": "TEXT",
    COMPOUND_ROW: "INTEGER",
    "collision_energy": "TEXT",
    "polarity": "INTEGER",
    "ms_level": "INTEGER",
    "instrument": "TEXT",
    "instrument_type": "TEXT",
    "precursor_mz": "REAL",
    "precursor_type": "TEXT",
    "predicted": "INTEGER",
    "splash": "TEXT",
}

SPECTRUM_PEAK_COLUMNS: Dict[str, str] = {
    "mz": "BLOB NOT NULL",
    "intensity": "BLOB NOT NULL",
}

METADATA_COLUMNS: Dict[str, str] = {
    "schema_version": "TEXT NOT NULL",
    "source": "TEXT NOT NULL",
    "url": "TEXT NOT NULL",
    "source_version": "TEXT NOT NULL",
    "source_date": "TEXT",
    "organism": "TEXT",
    "db_creation_date": "TEXT NOT NULL",
}

# msgpack encoded sequences, decoded on the way out and never filterable
SEQUENCE_COLUMNS = {"synonyms", "mz", "intensity"}

# extra compound and spectrum attributes become plain TEXT columns, as long as their name is a safe identifier
EXTRA_COLUMN_NAME = re.compile(r"[a-z][a-z0-9_]*")
EXTRA_COLUMN_TYPE = "TEXT"

INDEXES = [
    ("spectrum_compound_id_idx", SPECTRUM_TABLE, "compound_id"),
    ("compound_compound_id_idx", COMPOUND_TABLE, "compound_id"),
    ("compound_inchi_key_idx", COMPOUND_TABLE, "inchi_key"),
]

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    COMPOUND_TABLE: list(COMPOUND_COLUMNS),
    SPECTRUM_TABLE: list(SPECTRUM_CORE_COLUMNS) + list(SPECTRUM_PEAK_COLUMNS),
    METADATA_TABLE: list(METADATA_COLUMNS),
}


def compound_columns(extra_columns: Iterable[str]) -> Dict[str, str]:
    columns = {name: definition for name, definition in COMPOUND_COLUMNS.items() if name not in SEQUENCE_COLUMNS}
    columns.update({name: EXTRA_COLUMN_TYPE for name in extra_columns})
    columns.update({name: definition for name, definition in COMPOUND_COLUMNS.items() if name in SEQUENCE_COLUMNS})
    return columns


def spectrum_columns(extra_columns: Iterable[str]) -> Dict[str, str]:
    columns = dict(SPECTRUM_CORE_COLUMNS)
    columns.update({name: EXTRA_COLUMN_TYPE for name in extra_columns})
    columns.update(SPECTRUM_PEAK_COLUMNS)
    return columns


def create_table_sql(table: str, columns: Dict[str, str]) -> str:
    definitions = ",\n    ".join(f'"{name}" {definition}' for name, definition in columns.items())
    return f'CREATE TABLE "{table}" (\n    {definitions}\n)'


def create_index_sql(name: str, table: str, column: str) -> str:
    return f'CREATE INDEX "{name}" ON "{table}" ("{column}")'


def is_hidden(column: str) -> bool:
    return column.startswith(HIDDEN_PREFIX)
