from unittest.mock import patch

import pytest

from compound_store_builder.build_compound_store import CompoundStoreBuilder
from compound_store_builder.metadata.metadata_registry import MetadataRegistry
from compound_store_builder.record_dataclasses import Compound, Spectrum


@pytest.fixture
def metadata_fixture():
    metadata = MetadataRegistry.make_metadata(
        source="HMDB",
        url="https://hmdb.ca/downloads",
        source_version="5.0",
        source_date="2021-11-17",
        organism="Hsapiens",
    )
    yield metadata
    del metadata


@pytest.fixture
def compounds_fixture():
    compounds = [
        Compound(
            compound_id="C1",
            compound_name="Glucose",
            inchi="InChI=1S/C6H12O6/c7-1-2-3(8)4(9)5(10)6(11)12-2/h2-11H,1H2/t2-,3-,4+,5-,6?/m1/s1",
            inchi_key="WQZGKKKJIJFFOK-GASJEMHNSA-N",
            formula="C6H12O6",
            mass=180.16,
            smiles="OC[C@H]1OC(O)[C@H](O)[C@@H](O)[C@@H]1O",
            synonyms=["Dextrose", "Grape sugar"],
        ),
        Compound(compound_id="C2", compound_name="Alanine", formula="C3H7NO2", mass=89.09),
    ]
    yield compounds
    del compounds


@pytest.fixture
def spectra_fixture():
    """
    Two spectra of C1, one of C2, and one whose compound_id references no compound at all. The first spectrum
    carries a formula attribute of its own, so 'formula' exists in both tables.
    """
    spectra = [
        Spectrum(
            spectrum_id="S1",
            compound_id="C1",
            mz=[85.03, 163.06, 181.07],
            intensity=[100.0, 20.0, 5.5],
            polarity=1,
            ms_level=2,
            collision_energy="10",
            extras={"num_peaks": "3", "formula": "C6H13O6+"},
        ),
        Spectrum(spectrum_id="S2", compound_id="C1", mz=[179.06], intensity=[100.0], polarity=0, ms_level=2),
        Spectrum(spectrum_id="S3", compound_id="C9", mz=[50.0, 60.0], intensity=[1.0, 2.0], polarity=1),
        Spectrum(
            spectrum_id="S4",
            compound_id="C2",
            mz=[44.05],
            intensity=[100.0],
            polarity=1,
            ms_level=2,
            precursor_mz=90.1,
            predicted=1,
        ),
    ]
    yield spectra
    del spectra


@pytest.fixture
def built_store_fixture(tmp_path, compounds_fixture, spectra_fixture, metadata_fixture):
    with patch("builtins.print"):
        path = CompoundStoreBuilder(str(tmp_path / "store.sqlite")).build(
            compounds_fixture, spectra_fixture, metadata_fixture
        )
    yield path
