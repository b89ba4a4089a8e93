from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from compound_common.config_classes.source_profiles import SourceFormat
from compound_common.exceptions.store_exceptions import MalformedSpectrum

COMPOUND_FIELDS = [
    "compound_id",
    "compound_name",
    "inchi",
    "inchi_key",
    "formula",
    "mass",
    "smiles",
    "synonyms",
]

SPECTRUM_SCALAR_FIELDS = [
    "collision_energy",
    "polarity",
    "ms_level",
    "instrument",
    "instrument_type",
    "precursor_mz",
    "precursor_type",
    "predicted",
    "splash",
]

SPECTRUM_FIELDS = ["spectrum_id", "compound_id"] + SPECTRUM_SCALAR_FIELDS + ["mz", "intensity"]


@dataclass
class RawRecord:
    """
    One source record as the parsers see it: field name to value, with the source's own field names. Values are
    strings, lists of strings for multi valued fields, or lists of floats for `mz` / `intensity`. `origin` says where
    the record came from (file name and block number) for diagnostics.
    """

    source_format: SourceFormat
    fields: Dict[str, Any]
    origin: str


@dataclass
class Compound:
    compound_id: str
    compound_name: Optional[str] = None
    inchi: Optional[str] = None
    inchi_key: Optional[str] = None
    formula: Optional[str] = None
    mass: Optional[float] = None
    smiles: Optional[str] = None
    synonyms: List[str] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)

    def merge(self, other: "Compound") -> None:
        """
        Fold a later record for the same compound into this one. A field is only taken from the later record if it is
        still empty here, so richer earlier data is never overwritten by sparser later data.
        :param other: Later Compound with the same compound_id.
        :return: None, modifies self in place.
        """
        for name in COMPOUND_FIELDS[1:]:
            if _is_empty(getattr(self, name)) and not _is_empty(getattr(other, name)):
                setattr(self, name, getattr(other, name))
        for key, value in other.extras.items():
            self.extras.setdefault(key, value)


@dataclass
class Spectrum:
    spectrum_id: str
    mz: List[float]
    intensity: List[float]
    compound_id: Optional[str] = None
    collision_energy: Optional[str] = None
    polarity: Optional[int] = None
    ms_level: Optional[int] = None
    instrument: Optional[str] = None
    instrument_type: Optional[str] = None
    precursor_mz: Optional[float] = None
    precursor_type: Optional[str] = None
    predicted: Optional[int] = None
    splash: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)
    # the exact compound row this spectrum was submitted with, only set for spectrum centric sources
    compound: Optional[Compound] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if len(self.mz) != len(self.intensity):
            raise MalformedSpectrum(self.spectrum_id, len(self.mz), len(self.intensity))


@dataclass
class NormalizedBatch:
    source: str
    compounds: List[Compound] = field(default_factory=list)
    spectra: List[Spectrum] = field(default_factory=list)

    def extend(self, other: "NormalizedBatch") -> "NormalizedBatch":
        self.compounds.extend(other.compounds)
        self.spectra.extend(other.spectra)
        return self


def _is_empty(value) -> bool:
    return value is None or value == "" or value == []
