import io

import pytest

from compound_common.config_classes.source_profiles import SourceProfiles
from compound_store_builder.parsers.spectrum_document_parser import SpectrumDocumentParser
from compound_store_builder.parsers.structure_record_parser import StructureRecordParser

MOLFILE_HEADER = """
  Mrv0541 02231215302D

  0  0  0  0  0  0            999 V2000
M  END
"""

HMDB_SDF = """HMDB0000001
  Mrv0541 02231215302D

  0  0  0  0  0  0            999 V2000
M  END
> <DATABASE_ID>
HMDB0000001

> <GENERIC_NAME>
1-Methylhistidine

> <FORMULA>
C7H11N3O2

> <EXACT_MASS>
169.085126611

> <SYNONYMS>
1 Methylhistidine; Pi-methylhistidine

> <INCHI_KEY>
BRMWTNUJHUMWMS-LURJTMIESA-N

$$$$
HMDB0000002
  Mrv0541 02231215302D

  0  0  0  0  0  0            999 V2000
M  END
> <DATABASE_ID>
HMDB0000002

> <GENERIC_NAME>
1,3-Diaminopropane

> <FORMULA>
C3H10N2

$$$$
"""


def spectrum_document(spectrum_id, compound_id, mz, intensity, polarity="Positive") -> bytes:
    peaks = "".join(
        f"""
    <ms-ms-peak>
      <id type="integer">{index}</id>
      <ms-ms-id type="integer">{spectrum_id}</ms-ms-id>
      <mass-charge type="decimal">{value}</mass-charge>
      <intensity type="decimal">{intensity[index] if index < len(intensity) else ''}</intensity>
    </ms-ms-peak>"""
        for index, value in enumerate(mz)
    )
    # peaks beyond the mz values carry an intensity only
    peaks += "".join(
        f"""
    <ms-ms-peak>
      <intensity type="decimal">{value}</intensity>
    </ms-ms-peak>"""
        for value in intensity[len(mz):]
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<ms-ms>
  <id type="integer">{spectrum_id}</id>
  <notes nil="true"/>
  <sample-concentration nil="true"/>
  <collision-energy-level>low</collision-energy-level>
  <collision-energy-voltage type="integer">10</collision-energy-voltage>
  <ionization-mode>{polarity}</ionization-mode>
  <instrument-type>LC-ESI-QTOF</instrument-type>
  <predicted>false</predicted>
  <splash-key>splash10-000i-0900000000-{spectrum_id}</splash-key>
  <database-id>{compound_id}</database-id>
  <references>
    <reference><pubmed-id>12345</pubmed-id></reference>
  </references>
  <ms-ms-peaks>{peaks}
  </ms-ms-peaks>
</ms-ms>
""".encode("utf-8")


@pytest.fixture
def hmdb_parser_fixture():
    parser = StructureRecordParser(SourceProfiles.get("hmdb"))
    yield parser
    del parser


@pytest.fixture
def mona_parser_fixture():
    parser = StructureRecordParser(SourceProfiles.get("mona"))
    yield parser
    del parser


@pytest.fixture
def chebi_parser_fixture():
    parser = StructureRecordParser(SourceProfiles.get("chebi"))
    yield parser
    del parser


@pytest.fixture
def hmdb_spectra_parser_fixture():
    parser = SpectrumDocumentParser(SourceProfiles.get("hmdb_spectra"))
    yield parser
    del parser


@pytest.fixture
def hmdb_sdf_stream_fixture():
    stream = io.BytesIO(HMDB_SDF.encode("utf-8"))
    yield stream
    stream.close()


@pytest.fixture
def spectrum_directory_fixture(tmp_path):
    """
    Three HMDB spectrum documents, the middle one with 5 mz values but only 4 intensities, plus files that don't
    follow the spectrum document naming convention.
    """
    (tmp_path / "HMDB0000001_ms_ms_spectrum_1001_experimental.xml").write_bytes(
        spectrum_document(1001, "HMDB0000001", [56.05, 83.06, 110.07], [100.0, 38.5, 12.25])
    )
    (tmp_path / "HMDB0000001_ms_ms_spectrum_1002_experimental.xml").write_bytes(
        spectrum_document(1002, "HMDB0000001", [56.0, 57.0, 58.0, 59.0, 60.0], [1.0, 2.0, 3.0, 4.0])
    )
    (tmp_path / "HMDB0000002_ms_ms_spectrum_1003_predicted.xml").write_bytes(
        spectrum_document(1003, "HMDB0000002", [41.04, 58.07], [7.0, 100.0], polarity="Negative")
    )
    (tmp_path / "HMDB0000001_c_ms_spectrum_77_experimental.xml").write_bytes(b"<c-ms/>")
    (tmp_path / "README.txt").write_text("not a spectrum")
    yield tmp_path
