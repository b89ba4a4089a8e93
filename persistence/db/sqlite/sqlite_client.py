import pathlib
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from compound_store_builder.record_dataclasses import (
    COMPOUND_FIELDS,
    SPECTRUM_SCALAR_FIELDS,
    Compound,
    Spectrum,
)
from persistence.db.sqlite import schema
from utils.sqlite_utils import SqliteUtils


class SqliteWrapper:
    def __init__(self, location: str, read_only: bool = False):
        self.location = location
        if read_only:
            uri = f"{pathlib.Path(location).resolve().as_uri()}?mode=ro"
            self.connection = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            # autocommit mode, transactions are opened explicitly with `transaction()`
            self.connection = sqlite3.connect(location, isolation_level=None)

    @contextmanager
    def transaction(self):
        """Run the enclosed statements as one transaction, rolled back on any error."""
        self.connection.execute("BEGIN")
        try:
            yield self
        except BaseException:
            if self.connection.in_transaction:
                self.connection.execute("ROLLBACK")
            raise
        self.connection.execute("COMMIT")

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """Execute a single statement and return its cursor."""
        return self.connection.execute(sql, params)

    def create_schema(self, extra_spectrum_columns: Iterable[str] = (), extra_compound_columns: Iterable[str] = ()):
        """Create the compound, spectrum and metadata tables and their indices."""
        self.execute(
            schema.create_table_sql(schema.COMPOUND_TABLE, schema.compound_columns(extra_compound_columns))
        )
        self.execute(
            schema.create_table_sql(schema.SPECTRUM_TABLE, schema.spectrum_columns(extra_spectrum_columns))
        )
        self.execute(schema.create_table_sql(schema.METADATA_TABLE, schema.METADATA_COLUMNS))
        for name, table, column in schema.INDEXES:
            self.execute(schema.create_index_sql(name, table, column))

    def insert_compounds(self, compounds: List[Compound], extra_columns: Sequence[str] = ()) -> Dict[int, int]:
        """
        Insert compound rows in the given order.
        :param compounds: List of Compound records.
        :param extra_columns: Names of the extra attribute columns the compound table was created with.
        :return: dict of id(compound) to the _compound_row it was stored under.
        """
        scalar_fields = [name for name in COMPOUND_FIELDS if name not in schema.SEQUENCE_COLUMNS]
        rows: Dict[int, int] = {}
        values = []
        for row, compound in enumerate(compounds, start=1):
            rows[id(compound)] = row
            values.append(
                [row]
                + [getattr(compound, name) for name in scalar_fields]
                + [self._extra_value(compound.extras.get(name)) for name in extra_columns]
                + [SqliteUtils.pack_sequence(compound.synonyms)]
            )

        columns = [schema.COMPOUND_ROW] + scalar_fields + list(extra_columns) + ["synonyms"]
        self.connection.executemany(self._insert_sql(schema.COMPOUND_TABLE, columns), values)
        return rows

    def insert_spectra(
        self,
        spectra: List[Spectrum],
        extra_columns: List[str],
        compound_rows: Optional[Dict[int, int]] = None,
    ):
        """Insert spectrum rows, linking spectra submitted with their compound to its stored row."""
        compound_rows = compound_rows or {}
        columns = (
            ["spectrum_id", "compound_id", schema.COMPOUND_ROW]
            + SPECTRUM_SCALAR_FIELDS
            + extra_columns
            + list(schema.SPECTRUM_PEAK_COLUMNS)
        )
        values = []
        for spectrum in spectra:
            linked_row = compound_rows.get(id(spectrum.compound)) if spectrum.compound is not None else None
            values.append(
                [spectrum.spectrum_id, spectrum.compound_id, linked_row]
                + [getattr(spectrum, name) for name in SPECTRUM_SCALAR_FIELDS]
                + [self._extra_value(spectrum.extras.get(name)) for name in extra_columns]
                + [SqliteUtils.pack_sequence(spectrum.mz), SqliteUtils.pack_sequence(spectrum.intensity)]
            )
        self.connection.executemany(self._insert_sql(schema.SPECTRUM_TABLE, columns), values)

    def insert_metadata(self, values: Dict[str, Any]):
        """Insert the single metadata row."""
        columns = list(schema.METADATA_COLUMNS)
        self.execute(self._insert_sql(schema.METADATA_TABLE, columns), [values.get(name) for name in columns])

    def table_names(self) -> List[str]:
        """List the table names in the database."""
        cursor = self.execute("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")
        return [row[0] for row in cursor.fetchall()]

    def table_columns(self, table: str) -> List[Tuple[str, str]]:
        """List (name, declared type) for every column of a table, in table order."""
        cursor = self.execute(f"PRAGMA table_info({SqliteUtils.quote_identifier(table)})")
        return [(row[1], row[2]) for row in cursor.fetchall()]

    def count(self, table: str) -> int:
        """Count rows in a table."""
        return self.execute(f"SELECT COUNT(*) FROM {SqliteUtils.quote_identifier(table)}").fetchone()[0]

    def close(self):
        self.connection.close()

    @staticmethod
    def _insert_sql(table: str, columns: List[str]) -> str:
        names = ", ".join(SqliteUtils.quote_identifier(column) for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        return f"INSERT INTO {SqliteUtils.quote_identifier(table)} ({names}) VALUES ({placeholders})"

    @staticmethod
    def _extra_value(value: Any) -> Optional[str]:
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)
