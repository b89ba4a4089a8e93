import gzip

import pytest
import yaml

from tests.compound_store_builder_tests.parser_tests.fixtures import HMDB_SDF, MOLFILE_HEADER, spectrum_document


def sdf_text(*records) -> str:
    """
    :param records: Tuples of (title, dict of data items).
    :return: SDF text with one molfile record per tuple.
    """
    text = ""
    for title, items in records:
        text += title + MOLFILE_HEADER
        text += "".join(f"> <{tag}>\n{value}\n\n" for tag, value in items.items())
        text += "$$$$\n"
    return text


@pytest.fixture
def hmdb_sources_fixture(tmp_path):
    """
    A gzipped HMDB structure file and a directory of HMDB spectrum documents, one of them with 5 mz values but
    only 4 intensities.
    """
    sdf_path = tmp_path / "structures.sdf.gz"
    with gzip.open(sdf_path, "wb") as f:
        f.write(HMDB_SDF.encode("utf-8"))

    spectra_dir = tmp_path / "hmdb_spectra"
    spectra_dir.mkdir()
    (spectra_dir / "HMDB0000001_ms_ms_spectrum_1001_experimental.xml").write_bytes(
        spectrum_document(1001, "HMDB0000001", [56.05, 83.06, 110.07], [100.0, 38.5, 12.25])
    )
    (spectra_dir / "HMDB0000001_ms_ms_spectrum_1002_experimental.xml").write_bytes(
        spectrum_document(1002, "HMDB0000001", [56.0, 57.0, 58.0, 59.0, 60.0], [1.0, 2.0, 3.0, 4.0])
    )
    (spectra_dir / "HMDB0000002_ms_ms_spectrum_1003_predicted.xml").write_bytes(
        spectrum_document(1003, "HMDB0000002", [41.04, 58.07], [7.0, 100.0], polarity="Negative")
    )
    (spectra_dir / "HMDB0000404_ms_ms_spectrum_1004_experimental.xml").write_bytes(
        spectrum_document(1004, "HMDB0000404", [77.0], [3.0])
    )
    yield {"sdf": str(sdf_path), "spectra": str(spectra_dir), "root": tmp_path}


@pytest.fixture
def store_builder_config_fixture(hmdb_sources_fixture):
    root = hmdb_sources_fixture["root"]
    output = root / "out"
    output.mkdir()
    config = {
        "destination": str(output),
        "overwrite": False,
        "verbose_logging": False,
        "metadata": {
            "source": "HMDB",
            "url": "https://hmdb.ca/downloads",
            "source_version": 5.0,
            "source_date": "2021-11-17",
            "organism": "Hsapiens",
        },
        "sources": [
            {"profile": "hmdb", "path": hmdb_sources_fixture["sdf"]},
            {"profile": "hmdb_spectra", "path": hmdb_sources_fixture["spectra"]},
        ],
    }
    config_path = root / "store_builder.yaml"
    with open(config_path, "w") as f:
        yaml.safe_dump(config, f)
    yield {"config": str(config_path), "output": output}


@pytest.fixture
def hmdb_extras_sdf_fixture(tmp_path):
    """
    HMDB structure records carrying tags that have no canonical counterpart.
    """
    path = tmp_path / "structures_with_extras.sdf"
    path.write_text(
        sdf_text(
            (
                "HMDB0000122",
                {
                    "DATABASE_ID": "HMDB0000122",
                    "GENERIC_NAME": "Glucose",
                    "FORMULA": "C6H12O6",
                    "IUPAC_NAME": "D-glucose",
                    "JCHEM_LOGP": "-2.9",
                },
            ),
            ("HMDB0000161", {"DATABASE_ID": "HMDB0000161", "GENERIC_NAME": "L-Alanine", "JCHEM_LOGP": "-3"}),
        )
    )
    yield str(path)


@pytest.fixture
def mona_sources_fixture(tmp_path):
    """
    Two MoNA exports that both contain spectrum MoNA_1, with differing compound names.
    """
    first = tmp_path / "mona_a.sdf"
    first.write_text(
        sdf_text(
            (
                "Glucose",
                {
                    "ID": "MoNA_1",
                    "NAME": "Glucose",
                    "FORMULA": "C6H12O6",
                    "INCHIKEY": "WQZGKKKJIJFFOK-GASJEMHNSA-N",
                    "MASS SPECTRAL PEAKS": "85.03 100\n163.06 20",
                },
            )
        )
    )
    second = tmp_path / "mona_b.sdf"
    second.write_text(
        sdf_text(
            (
                "D-Glucose",
                {
                    "ID": "MoNA_1",
                    "NAME": "D-Glucose",
                    "FORMULA": "C6H12O6",
                    "INCHIKEY": "WQZGKKKJIJFFOK-GASJEMHNSA-N",
                    "MASS SPECTRAL PEAKS": "85.03 90",
                },
            ),
            (
                "Alanine",
                {
                    "ID": "MoNA_9",
                    "NAME": "Alanine",
                    "FORMULA": "C3H7NO2",
                    "MASS SPECTRAL PEAKS": "44.05 100",
                },
            ),
        )
    )
    yield {"first": str(first), "second": str(second)}
