import pytest

from compound_common.config_classes.source_profiles import SourceFormat, SourceProfiles
from compound_store_builder.normalizer.normalizer import Normalizer
from compound_store_builder.record_dataclasses import RawRecord


def sdf_record(origin: str, **fields) -> RawRecord:
    return RawRecord(source_format=SourceFormat.structure_record, fields=fields, origin=origin)


@pytest.fixture
def hmdb_normalizer_fixture():
    normalizer = Normalizer(SourceProfiles.get("hmdb"))
    yield normalizer
    del normalizer


@pytest.fixture
def mona_normalizer_fixture():
    normalizer = Normalizer(SourceProfiles.get("mona"))
    yield normalizer
    del normalizer


@pytest.fixture
def hmdb_spectra_normalizer_fixture():
    normalizer = Normalizer(SourceProfiles.get("hmdb_spectra"))
    yield normalizer
    del normalizer


@pytest.fixture
def mona_records_fixture():
    """
    Two MoNA submissions of the same compound (same InChIKey) carrying different names, plus one without a
    spectrum id.
    """
    records = [
        RawRecord(
            source_format=SourceFormat.structure_record,
            fields={
                "ID": "MoNA_1",
                "NAME": "Glucose",
                "INCHIKEY": "WQZGKKKJIJFFOK-GASJEMHNSA-N",
                "FORMULA": "C6H12O6",
                "ION MODE": "P",
                "SPECTRUM_TYPE": "MS2",
                "PRECURSOR M/Z": "181.07",
                "NUM PEAKS": "2",
                "mz": [85.03, 163.06],
                "intensity": [100.0, 20.0],
            },
            origin="mona.sdf#1",
        ),
        RawRecord(
            source_format=SourceFormat.structure_record,
            fields={
                "ID": "MoNA_2",
                "NAME": "D-Glucose",
                "INCHIKEY": "WQZGKKKJIJFFOK-GASJEMHNSA-N",
                "FORMULA": "C6H12O6",
                "ION MODE": "negative",
                "SPECTRUM_TYPE": "2",
                "mz": [179.06],
                "intensity": [100.0],
            },
            origin="mona.sdf#2",
        ),
        RawRecord(
            source_format=SourceFormat.structure_record,
            fields={
                "NAME": "Mystery",
                "INCHIKEY": "AAAAAAAAAAAAAA-AAAAAAAAAA-N",
                "mz": [1.0],
                "intensity": [1.0],
            },
            origin="mona.sdf#3",
        ),
    ]
    yield records
    del records
