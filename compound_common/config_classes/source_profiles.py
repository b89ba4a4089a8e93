from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel


class SourceFormat(str, Enum):
    structure_record = "structure_record"
    spectrum_document = "spectrum_document"


class NormalizationPolicy(str, Enum):
    compound_centric = "compound_centric"
    spectrum_centric = "spectrum_centric"


class SourceProfile(BaseModel):
    """
    Everything the parsers and the normalizer need to know about one annotation resource. The field alias table maps
    the source's own field names onto our canonical attribute names. Where a source has several fields for the same
    attribute (ie HMDB's EXACT_MASS and MONO_ISOTOPIC_WEIGHT) list them all, the first non empty one in the record
    wins. Anything not in the table ends up in the record's extras.
    """

    name: str
    source_format: SourceFormat
    policy: NormalizationPolicy = NormalizationPolicy.compound_centric
    field_aliases: Dict[str, str]
    emits_compounds: bool = True

    # structure record (SDF) specifics
    multi_valued_tags: List[str] = []
    synonym_separator: Optional[str] = None
    peak_tags: List[str] = []

    # spectrum document (XML) specifics
    filename_pattern: Optional[str] = None
    peak_element: str = "ms-ms-peak"
    peak_mz_element: str = "mass-charge"
    peak_intensity_element: str = "intensity"


HMDB = SourceProfile(
    name="hmdb",
    source_format=SourceFormat.structure_record,
    field_aliases={
        "HMDB_ID": "compound_id",
        "DATABASE_ID": "compound_id",
        "GENERIC_NAME": "compound_name",
        "INCHI_IDENTIFIER": "inchi",
        "INCHI_KEY": "inchi_key",
        "FORMULA": "formula",
        "CHEMICAL_FORMULA": "formula",
        "EXACT_MASS": "mass",
        "MONO_ISOTOPIC_WEIGHT": "mass",
        "SMILES": "smiles",
        "SYNONYMS": "synonyms",
    },
    synonym_separator="; ",
)

CHEBI = SourceProfile(
    name="chebi",
    source_format=SourceFormat.structure_record,
    field_aliases={
        "ChEBI ID": "compound_id",
        "ChEBI Name": "compound_name",
        "InChI": "inchi",
        "InChIKey": "inchi_key",
        "Formulae": "formula",
        "Monoisotopic Mass": "mass",
        "SMILES": "smiles",
        "Synonyms": "synonyms",
    },
    multi_valued_tags=["Synonyms"],
)

LIPIDMAPS = SourceProfile(
    name="lipidmaps",
    source_format=SourceFormat.structure_record,
    field_aliases={
        "LM_ID": "compound_id",
        "COMMON_NAME": "compound_name",
        "SYSTEMATIC_NAME": "compound_name",
        "INCHI": "inchi",
        "INCHI_KEY": "inchi_key",
        "FORMULA": "formula",
        "EXACT_MASS": "mass",
        "SMILES": "smiles",
        "SYNONYMS": "synonyms",
    },
    synonym_separator="; ",
)

PUBCHEM = SourceProfile(
    name="pubchem",
    source_format=SourceFormat.structure_record,
    field_aliases={
        "PUBCHEM_COMPOUND_CID": "compound_id",
        "PUBCHEM_IUPAC_TRADITIONAL_NAME": "compound_name",
        "PUBCHEM_IUPAC_NAME": "compound_name",
        "PUBCHEM_IUPAC_INCHI": "inchi",
        "PUBCHEM_IUPAC_INCHIKEY": "inchi_key",
        "PUBCHEM_MOLECULAR_FORMULA": "formula",
        "PUBCHEM_MONOISOTOPIC_WEIGHT": "mass",
        "PUBCHEM_EXACT_MASS": "mass",
        "PUBCHEM_SMILES": "smiles",
        "PUBCHEM_OPENEYE_ISO_SMILES": "smiles",
        "PUBCHEM_OPENEYE_CAN_SMILES": "smiles",
    },
)

# MoNA is organised around spectrum submissions, so the same compound turns up once per spectrum, often with
# differing names or formulae. No deduplication for this one.
MONA = SourceProfile(
    name="mona",
    source_format=SourceFormat.structure_record,
    policy=NormalizationPolicy.spectrum_centric,
    field_aliases={
        "ID": "spectrum_id",
        "NAME": "compound_name",
        "SYNONYMS": "synonyms",
        "INCHIKEY": "inchi_key",
        "INCHI": "inchi",
        "FORMULA": "formula",
        "EXACT MASS": "mass",
        "SMILES": "smiles",
        "INSTRUMENT": "instrument",
        "INSTRUMENT TYPE": "instrument_type",
        "ION MODE": "polarity",
        "COLLISION ENERGY": "collision_energy",
        "PRECURSOR TYPE": "precursor_type",
        "PRECURSOR M/Z": "precursor_mz",
        "SPECTRUM_TYPE": "ms_level",
        "SPLASH": "splash",
    },
    multi_valued_tags=["SYNONYMS"],
    peak_tags=["MASS SPECTRAL PEAKS"],
)

HMDB_SPECTRA = SourceProfile(
    name="hmdb_spectra",
    source_format=SourceFormat.spectrum_document,
    emits_compounds=False,
    field_aliases={
        "id": "spectrum_id",
        "database-id": "compound_id",
        "collision-energy-voltage": "collision_energy",
        "ionization-mode": "polarity",
        "instrument-type": "instrument_type",
        "predicted": "predicted",
        "splash-key": "splash",
    },
    filename_pattern=r"HMDB\d+_ms_ms_spectrum_\d+_.*\.xml",
)


class SourceProfiles:
    """
    Registry of the built in source profiles, keyed by profile name.
    """

    profiles: Dict[str, SourceProfile] = {
        profile.name: profile
        for profile in [HMDB, CHEBI, LIPIDMAPS, PUBCHEM, MONA, HMDB_SPECTRA]
    }

    @classmethod
    def get(cls, name: str) -> SourceProfile:
        """
        Look up a source profile by name.
        :param name: Profile name, ie 'hmdb' or 'mona'.
        :return: The matching SourceProfile.
        """
        try:
            return cls.profiles[name.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown source profile '{name}', expected one of {sorted(cls.profiles)}"
            ) from None
