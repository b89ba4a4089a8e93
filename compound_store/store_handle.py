import logging
import os
import sqlite3
from typing import Dict, List

from compound_common.exceptions.store_exceptions import (
    IncompatibleStore,
    InvalidMetadata,
    UnknownColumn,
)
from compound_store.query.column_catalog import ColumnCatalog
from compound_store.query.query_engine import QueryEngine
from compound_store_builder.metadata.metadata_registry import Metadata, MetadataRegistry
from persistence.db.sqlite import schema
from persistence.db.sqlite.sqlite_client import SqliteWrapper


class CompoundStore:
    """
    Read only handle on a finished store. Opening checks that the file really is a store of the schema version this
    package writes. The handle itself only serves introspection and metadata, queries go through a QueryEngine bound
    to the same file, each of which opens its own connections.

    Usage:
        with CompoundStore("CompDb.Hsapiens.HMDB.5.0.sqlite") as store:
            for row in store.spectra(["compound_name", "mz", "intensity"], "polarity == 1"):
                ...
    """

    def __init__(self, location: str):
        if not os.path.isfile(location):
            raise FileNotFoundError(f"No compound store at {location}")
        self.location = location
        self.client = SqliteWrapper(location, read_only=True)
        try:
            self._columns = self._validate()
            self._metadata, self.schema_version, self.db_creation_date = self._read_metadata()
        except sqlite3.DatabaseError as e:
            self.client.close()
            raise IncompatibleStore(f"{location} is not a compound store: {str(e)}") from e
        except IncompatibleStore:
            self.client.close()
            raise
        self.catalog = ColumnCatalog(
            {table: self._columns[table] for table in (schema.COMPOUND_TABLE, schema.SPECTRUM_TABLE)}
        )

    def _validate(self) -> Dict[str, List]:
        present = set(self.client.table_names())
        missing_tables = [table for table in schema.TABLES if table not in present]
        if missing_tables:
            raise IncompatibleStore(f"{self.location} is missing tables {missing_tables}")

        columns = {}
        for table in schema.TABLES:
            columns[table] = self.client.table_columns(table)
            names = {name for name, _ in columns[table]}
            missing_columns = [column for column in schema.REQUIRED_COLUMNS[table] if column not in names]
            if missing_columns:
                raise IncompatibleStore(f"{self.location}: table {table} is missing columns {missing_columns}")

        rows = self.client.count(schema.METADATA_TABLE)
        if rows != 1:
            raise IncompatibleStore(f"{self.location} holds {rows} metadata rows, expected exactly one")
        return columns

    def _read_metadata(self):
        names = list(schema.METADATA_COLUMNS)
        values = self.client.execute(
            f"SELECT {', '.join(names)} FROM {schema.METADATA_TABLE}"
        ).fetchone()
        row = dict(zip(names, values))

        if row["schema_version"] != schema.SCHEMA_VERSION:
            raise IncompatibleStore(
                f"{self.location} has schema version {row['schema_version']}, this package reads version "
                f"{schema.SCHEMA_VERSION}"
            )
        try:
            metadata = MetadataRegistry.make_metadata(
                source=row["source"],
                url=row["url"],
                source_version=row["source_version"],
                source_date=row["source_date"],
                organism=row["organism"],
            )
        except InvalidMetadata as e:
            raise IncompatibleStore(f"{self.location} carries invalid metadata: {str(e)}") from e
        logging.info(f"Opened store {self.location}: {metadata.source} {metadata.source_version}")
        return metadata, row["schema_version"], row["db_creation_date"]

    def tables(self) -> Dict[str, List[str]]:
        """
        List the public columns of every table in the store.
        :return: dict of table name to column names, in table order.
        """
        return {table: self.columns(table) for table in schema.TABLES}

    def columns(self, table: str) -> List[str]:
        if table not in self._columns:
            raise UnknownColumn(table, "no such table")
        return [name for name, _ in self._columns[table] if not schema.is_hidden(name)]

    def metadata(self) -> Metadata:
        return self._metadata

    def query_engine(self, pushdown: bool = True) -> QueryEngine:
        return QueryEngine(self.location, self.catalog, pushdown=pushdown)

    def compounds(self, projection=None, filter=None):
        return self.query_engine().compounds(projection, filter)

    def spectra(self, projection=None, filter=None):
        return self.query_engine().spectra(projection, filter)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
