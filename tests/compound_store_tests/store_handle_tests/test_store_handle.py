import sqlite3

import pytest

from compound_common.exceptions.store_exceptions import IncompatibleStore, UnknownColumn
from compound_store.query.query_engine import QueryEngine
from compound_store.store_handle import CompoundStore
from tests.compound_store_builder_tests.store_builder_tests.fixtures import (
    built_store_fixture,
    compounds_fixture,
    metadata_fixture,
    spectra_fixture,
)


def tamper(path: str, *statements: str):
    connection = sqlite3.connect(path)
    try:
        for statement in statements:
            connection.execute(statement)
        connection.commit()
    finally:
        connection.close()


class TestCompoundStore:
    def test_open_happy(self, built_store_fixture, metadata_fixture):
        with CompoundStore(built_store_fixture) as store:
            assert store.metadata() == metadata_fixture
            assert store.schema_version == "1"
            assert store.db_creation_date is not None

    def test_tables_hide_internal_columns(self, built_store_fixture):
        with CompoundStore(built_store_fixture) as store:
            tables = store.tables()
            assert set(tables) == {"compound", "spectrum", "metadata"}
            assert tables["compound"] == [
                "compound_id",
                "compound_name",
                "inchi",
                "inchi_key",
                "formula",
                "mass",
                "smiles",
                "synonyms",
            ]
            assert "_compound_row" not in tables["spectrum"]
            assert "num_peaks" in store.columns("spectrum")
            assert "db_creation_date" in store.columns("metadata")

    def test_columns_unknown_table(self, built_store_fixture):
        with CompoundStore(built_store_fixture) as store:
            with pytest.raises(UnknownColumn):
                store.columns("peaks")
            with pytest.raises(KeyError):
                store.columns("peaks")

    def test_query_engine(self, built_store_fixture):
        with CompoundStore(built_store_fixture) as store:
            engine = store.query_engine(pushdown=False)
            assert isinstance(engine, QueryEngine)
            assert engine.pushdown is False
            assert [row["compound_id"] for row in store.compounds(["compound_id"])] == ["C1", "C2"]
            assert len(list(store.spectra("spectrum_id"))) == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CompoundStore(str(tmp_path / "nothing.sqlite"))

    def test_not_a_database(self, tmp_path):
        path = tmp_path / "store.sqlite"
        path.write_bytes(b"this is not a sqlite database, just some bytes " * 50)
        with pytest.raises(IncompatibleStore):
            CompoundStore(str(path))

    def test_schema_version_mismatch(self, built_store_fixture):
        tamper(built_store_fixture, "UPDATE metadata SET schema_version = '0'")
        with pytest.raises(IncompatibleStore) as e:
            CompoundStore(built_store_fixture)
        assert "schema version 0" in str(e.value)

    def test_missing_table(self, built_store_fixture):
        tamper(built_store_fixture, "DROP TABLE spectrum")
        with pytest.raises(IncompatibleStore):
            CompoundStore(built_store_fixture)

    def test_missing_column(self, tmp_path):
        path = str(tmp_path / "store.sqlite")
        tamper(
            path,
            "CREATE TABLE compound (compound_id TEXT)",
            "CREATE TABLE spectrum (spectrum_id TEXT)",
            "CREATE TABLE metadata (source TEXT)",
        )
        with pytest.raises(IncompatibleStore):
            CompoundStore(path)

    def test_metadata_row_count(self, built_store_fixture):
        tamper(built_store_fixture, "INSERT INTO metadata SELECT * FROM metadata")
        with pytest.raises(IncompatibleStore):
            CompoundStore(built_store_fixture)
