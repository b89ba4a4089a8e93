import re
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from rdkit import Chem

from compound_common.config_classes.source_profiles import SourceFormat, SourceProfile
from compound_common.exceptions.store_exceptions import MalformedRecord, MalformedSpectrum
from compound_common.function_wrappers.builder_wrappers.record_exception_angel import (
    record_exception_angel,
)
from compound_store_builder.record_dataclasses import RawRecord

PEAK_SEPARATOR = re.compile(r"[\s:]+")


class StructureRecordParser:
    """
    Parser for structure-data (SDF) files, read with rdkit. Each record is a molfile followed by '> <TAG>' data items
    and terminated by a '$$$$' line. Molecules are read without sanitization, the structures are stored as the source
    gives them and only the data items end up in the RawRecord.

    Tags listed as multi valued in the source profile (synonyms, mostly) are kept as a list with one entry per value
    line. Tags listed as peak tags are decoded into the `mz` and `intensity` float lists. Records rdkit cannot read
    and records with bad peak lists are skipped, their origins end up in `self.skipped`.
    """

    def __init__(self, profile: SourceProfile):
        self.profile = profile
        self.multi_valued_tags = set(profile.multi_valued_tags)
        self.peak_tags = set(profile.peak_tags)
        self.parsed = 0
        self.skipped: List[str] = []

    def parse(self, stream: BinaryIO, origin: str) -> Iterator[RawRecord]:
        """
        Lazily parse every record in an SDF byte stream.
        :param stream: Binary stream of SDF content, already decompressed.
        :param origin: Name of the stream for diagnostics, usually the file name.
        :return: Iterator of RawRecords, one per well formed record.
        """
        supplier = Chem.ForwardSDMolSupplier(stream, sanitize=False, removeHs=False, strictParsing=False)
        for record_number, mol in enumerate(supplier, start=1):
            record_origin = f"{origin}#{record_number}"
            record = self._parse_molecule(mol, record_origin)
            if record is None:
                self.skipped.append(record_origin)
                continue
            self.parsed += 1
            yield record

    @record_exception_angel
    def _parse_molecule(self, mol: Optional[Chem.Mol], origin: str) -> RawRecord:
        if mol is None:
            raise MalformedRecord(origin, "rdkit could not read the molfile block")

        fields: Dict[str, object] = {}
        for tag in mol.GetPropNames():
            self._store(fields, tag, mol.GetProp(tag), origin)
        if not fields:
            raise MalformedRecord(origin, "record has no data items")
        return RawRecord(source_format=SourceFormat.structure_record, fields=fields, origin=origin)

    def _store(self, fields: dict, tag: str, value: str, origin: str) -> None:
        lines = [line.strip() for line in value.splitlines()]
        if tag in self.peak_tags:
            fields["mz"], fields["intensity"] = self._parse_peaks(lines, origin)
        elif tag in self.multi_valued_tags:
            fields[tag] = [line for line in lines if line]
        else:
            fields[tag] = value.strip()

    @staticmethod
    def _parse_peaks(lines: List[str], origin: str) -> Tuple[List[float], List[float]]:
        """
        Decode peak lines of the form 'mz intensity' (or 'mz:intensity'). Anything after the intensity, such as a
        peak annotation, is ignored. A line with only an mz value leaves the two lists unequal in length, which
        rejects the spectrum.
        """
        mz, intensity = [], []
        for line in lines:
            tokens = [token for token in PEAK_SEPARATOR.split(line) if token]
            if not tokens:
                continue
            try:
                mz.append(float(tokens[0]))
                if len(tokens) > 1:
                    intensity.append(float(tokens[1]))
            except ValueError:
                raise MalformedRecord(origin, f"non numeric peak '{line}'") from None
        if len(mz) != len(intensity):
            raise MalformedSpectrum(origin, len(mz), len(intensity))
        return mz, intensity
