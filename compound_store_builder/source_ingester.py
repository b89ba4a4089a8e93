import logging
import os
from typing import Iterator, List, Set

from compound_common.config_classes.source_profiles import SourceFormat, SourceProfiles
from compound_common.config_classes.store_builder_config import SourceInput
from compound_common.timer import Timer
from compound_store_builder.normalizer.normalizer import Normalizer
from compound_store_builder.parsers.spectrum_document_parser import SpectrumDocumentParser
from compound_store_builder.parsers.structure_record_parser import StructureRecordParser
from compound_store_builder.record_dataclasses import NormalizedBatch, RawRecord
from utils.command_line_utils import CommandLineUtils
from utils.general_file_utils import GeneralFileUtils


class SourceIngester:
    """
    Runs a configured source input through the right parser and the normalizer, giving back one NormalizedBatch per
    input. Origins of skipped and dropped records accumulate on the instance for reporting.
    """

    def __init__(self):
        self.skipped: List[str] = []
        self.dropped: List[str] = []

    def ingest(self, source_input: SourceInput) -> NormalizedBatch:
        profile = SourceProfiles.get(source_input.profile)
        timer = Timer(f"ingesting {source_input.path}")
        CommandLineUtils.stage_banner(f"Ingesting {profile.name}", source_input.path)

        normalizer = Normalizer(profile)
        if profile.source_format == SourceFormat.spectrum_document:
            parser = SpectrumDocumentParser(profile)
            batch = normalizer.normalize(parser.parse_directory(source_input.path))
        else:
            parser = StructureRecordParser(profile)
            batch = normalizer.normalize(self._parse_file(parser, source_input.path))

        self.skipped.extend(parser.skipped)
        self.dropped.extend(normalizer.dropped)
        print(f"Parsed {parser.parsed} records, skipped {len(parser.skipped)} malformed records")
        timer.stop()
        print(timer.readout())
        return batch

    def ingest_all(self, source_inputs: List[SourceInput]) -> NormalizedBatch:
        """
        Ingest several inputs into a single batch, in the configured order.
        :param source_inputs: List of SourceInputs from the builder config.
        :return: NormalizedBatch holding every compound and spectrum, named after the inputs' profiles.
        """
        combined = NormalizedBatch(source="+".join(source_input.profile for source_input in source_inputs))
        spectrum_ids: Set[str] = set()
        for source_input in source_inputs:
            batch = self.ingest(source_input)
            combined.extend(self.drop_repeated_spectra(batch, spectrum_ids, os.path.basename(source_input.path)))
        return combined

    def drop_repeated_spectra(self, batch: NormalizedBatch, spectrum_ids: Set[str], origin: str) -> NormalizedBatch:
        """
        Drop spectra whose spectrum_id an earlier input already supplied, together with the compound rows that were
        submitted with them. The ids kept are added to spectrum_ids.
        :param batch: NormalizedBatch of one input.
        :param spectrum_ids: Set of spectrum ids ingested so far, updated in place.
        :param origin: Name of the input for diagnostics.
        :return: The same batch, without the repeated spectra.
        """
        kept = []
        unlinked = set()
        for spectrum in batch.spectra:
            if spectrum.spectrum_id in spectrum_ids:
                logging.warning(
                    f"Dropping spectrum {spectrum.spectrum_id} from {origin}: spectrum_id already ingested from an "
                    f"earlier source"
                )
                self.dropped.append(f"{origin}:{spectrum.spectrum_id}")
                if spectrum.compound is not None:
                    unlinked.add(id(spectrum.compound))
                continue
            spectrum_ids.add(spectrum.spectrum_id)
            kept.append(spectrum)
        batch.spectra = kept
        batch.compounds = [compound for compound in batch.compounds if id(compound) not in unlinked]
        return batch

    @staticmethod
    def _parse_file(parser: StructureRecordParser, path: str) -> Iterator[RawRecord]:
        with GeneralFileUtils.open_byte_stream(path) as stream:
            yield from parser.parse(stream, os.path.basename(path))

