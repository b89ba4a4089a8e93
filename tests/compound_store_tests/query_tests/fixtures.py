from unittest.mock import patch

import pytest

from compound_store.store_handle import CompoundStore
from compound_store_builder.build_compound_store import CompoundStoreBuilder
from compound_store_builder.record_dataclasses import Compound, Spectrum
from tests.compound_store_builder_tests.store_builder_tests.fixtures import (
    built_store_fixture,
    compounds_fixture,
    metadata_fixture,
    spectra_fixture,
)


@pytest.fixture
def store_fixture(built_store_fixture):
    store = CompoundStore(built_store_fixture)
    yield store
    store.close()


@pytest.fixture
def spectrum_centric_store_fixture(tmp_path, metadata_fixture):
    """
    A MoNA style store: the same compound_id on two compound rows with different names, each spectrum submitted
    with its own row.
    """
    first = Compound(compound_id="KEY1", compound_name="Glucose")
    second = Compound(compound_id="KEY1", compound_name="D-Glucose")
    spectra = [
        Spectrum(spectrum_id="M1", compound_id="KEY1", mz=[1.0], intensity=[2.0], compound=first),
        Spectrum(spectrum_id="M2", compound_id="KEY1", mz=[3.0], intensity=[4.0], compound=second),
        Spectrum(spectrum_id="M3", compound_id="KEY1", mz=[5.0], intensity=[6.0]),
    ]
    with patch("builtins.print"):
        path = CompoundStoreBuilder(str(tmp_path / "mona.sqlite")).build([first, second], spectra, metadata_fixture)
    store = CompoundStore(path)
    yield store
    store.close()
