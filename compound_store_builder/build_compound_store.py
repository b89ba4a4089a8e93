import datetime
import logging
import os
import tempfile
from typing import Any, Dict, Iterable, List, Mapping, Union

from compound_common.exceptions.store_exceptions import StoreWriteFailure
from compound_common.timer import Timer
from compound_store_builder.metadata.metadata_registry import Metadata, MetadataRegistry
from compound_store_builder.record_dataclasses import Compound, Spectrum
from persistence.db.sqlite import schema
from persistence.db.sqlite.sqlite_client import SqliteWrapper
from utils.command_line_utils import CommandLineUtils


class CompoundStoreBuilder:
    """
    Writes normalized compounds, spectra and metadata into a new store file.

    The whole store is written to a temporary file next to the target inside a single transaction, and only moved into
    place once that transaction has committed. A failed build therefore never leaves a partial store behind, and
    readers never see a half written one.
    """

    def __init__(self, location: str, overwrite: bool = False):
        """
        :param location: Path of the store file to create, or an existing directory to create it in. In the latter
            case the file name is derived from the store metadata.
        :param overwrite: Whether to replace an existing store at the same path.
        """
        if not location:
            raise ValueError("A store location must be given explicitly")
        self.location = location
        self.overwrite = overwrite

    def build(
        self,
        compounds: Iterable[Compound],
        spectra: Iterable[Spectrum],
        metadata: Union[Metadata, Mapping[str, Any]],
    ) -> str:
        """
        Build the store.
        :param compounds: Compound records to write, in the order they should be returned by queries.
        :param spectra: Spectrum records to write, in the order they should be returned by queries.
        :param metadata: Metadata for the store, or a dict of metadata fields to validate.
        :return: Path of the finished store file.
        """
        timer = Timer("store build")
        if not isinstance(metadata, Metadata):
            metadata = MetadataRegistry.from_mapping(metadata)
        compounds = list(compounds)
        spectra = list(spectra)
        if not compounds and not spectra:
            raise StoreWriteFailure("No usable compound or spectrum records to write, refusing to build an empty store")

        target = self.resolve_target(metadata)
        if os.path.exists(target) and not self.overwrite:
            raise StoreWriteFailure(f"{target} already exists, set overwrite to replace it")
        directory = os.path.dirname(os.path.abspath(target))
        if not os.path.isdir(directory):
            raise StoreWriteFailure(f"Cannot write {target}, directory {directory} does not exist")

        CommandLineUtils.stage_banner("Writing store", target)
        spectrum_extras = self.collect_extra_columns(
            spectra, list(schema.SPECTRUM_CORE_COLUMNS) + list(schema.SPECTRUM_PEAK_COLUMNS)
        )
        compound_extras = self.collect_extra_columns(compounds, list(schema.COMPOUND_COLUMNS))
        temp_path = None
        committed = False
        try:
            handle, temp_path = tempfile.mkstemp(prefix=".compdb-", suffix=".tmp", dir=directory)
            os.close(handle)
            self._write(temp_path, compounds, spectra, metadata, spectrum_extras, compound_extras)
            os.replace(temp_path, target)
            committed = True
        except Exception as e:
            raise StoreWriteFailure(f"Failed to write store {target}: {str(e)}") from e
        finally:
            if not committed and temp_path is not None:
                self._discard(temp_path)

        timer.stop()
        print(f"Wrote {len(compounds)} compounds and {len(spectra)} spectra to {target}")
        print(timer.readout())
        return target

    def resolve_target(self, metadata: Metadata) -> str:
        if os.path.isdir(self.location):
            return os.path.join(self.location, MetadataRegistry.store_file_name(metadata))
        return self.location

    @staticmethod
    def collect_extra_columns(records: List[Union[Compound, Spectrum]], core_columns: List[str]) -> List[str]:
        """
        Gather the extra attribute names that will become columns of a table, in first seen order. Names that aren't
        safe identifiers or that clash with one of the table's own columns are left out with a warning.
        :param records: Compounds or spectra about to be written.
        :param core_columns: Columns the table always has.
        :return: List of column names.
        """
        reserved = set(core_columns)
        columns: Dict[str, None] = {}
        rejected = set()
        for record in records:
            for name in record.extras:
                if name in columns or name in rejected:
                    continue
                if name in reserved or not schema.EXTRA_COLUMN_NAME.fullmatch(name):
                    logging.warning(
                        f"{type(record).__name__} attribute '{name}' cannot be stored as a column, leaving it out"
                    )
                    rejected.add(name)
                    continue
                columns[name] = None
        return list(columns)

    @staticmethod
    def _write(
        path: str,
        compounds: List[Compound],
        spectra: List[Spectrum],
        metadata: Metadata,
        spectrum_extras: List[str],
        compound_extras: List[str],
    ):
        client = SqliteWrapper(path)
        try:
            with client.transaction():
                client.create_schema(spectrum_extras, compound_extras)
                compound_rows = client.insert_compounds(compounds, compound_extras)
                client.insert_spectra(spectra, spectrum_extras, compound_rows)
                client.insert_metadata(
                    {
                        **metadata.model_dump(),
                        "schema_version": schema.SCHEMA_VERSION,
                        "db_creation_date": datetime.datetime.now().isoformat(timespec="seconds"),
                    }
                )
        finally:
            client.close()

    @staticmethod
    def _discard(path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logging.exception(f"Could not remove temporary store file {path}")
