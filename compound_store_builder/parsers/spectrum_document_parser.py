import os
import xml.etree.ElementTree as ET
from typing import BinaryIO, Iterator, List, Optional

from compound_common.config_classes.source_profiles import SourceFormat, SourceProfile
from compound_common.dir_utils import DirUtils
from compound_common.doc_clients.xml_utils import XmlDocumentUtils
from compound_common.exceptions.store_exceptions import MalformedRecord, MalformedSpectrum
from compound_common.function_wrappers.builder_wrappers.record_exception_angel import (
    record_exception_angel,
)
from compound_store_builder.record_dataclasses import RawRecord
from utils.general_file_utils import GeneralFileUtils


class SpectrumDocumentParser:
    """
    Parser for per-spectrum XML documents (ie the HMDB MS/MS spectra dump), one spectrum per document. The scalar
    fields of a document are the leaf children of its root element, the peak list is read from every peak element
    below the root.
    """

    def __init__(self, profile: SourceProfile):
        self.profile = profile
        self.parsed = 0
        self.skipped: List[str] = []

    def parse_directory(self, directory: str) -> Iterator[RawRecord]:
        """
        Parse every document in a directory whose file name follows the source's naming convention. Files that don't
        follow it are not spectrum documents of this source and are silently ignored. Documents that fail to parse
        are skipped and recorded in `self.skipped`, the rest of the directory is still ingested.
        :param directory: Directory containing the spectrum documents.
        :return: Iterator of RawRecords in file name order.
        """
        if not self.profile.filename_pattern:
            raise ValueError(f"Source profile {self.profile.name} has no filename pattern")

        for path in DirUtils.get_files_matching_pattern(directory, self.profile.filename_pattern):
            origin = os.path.basename(path)
            with GeneralFileUtils.open_byte_stream(path) as stream:
                record = self._parse_document_or_skip(stream, origin)
            if record is None:
                self.skipped.append(origin)
                continue
            self.parsed += 1
            yield record

    def parse_document(self, stream: BinaryIO, origin: str) -> RawRecord:
        """
        Parse a single spectrum document.
        :param stream: Binary stream of the XML document.
        :param origin: Name of the document for diagnostics.
        :return: RawRecord with the document's scalar fields plus `mz` and `intensity`.
        """
        try:
            root = ET.parse(stream).getroot()
        except ET.ParseError as e:
            raise MalformedRecord(origin, f"XML parsing error: {str(e)}") from e

        fields = XmlDocumentUtils.leaf_children_to_dict(root)
        mz, intensity = [], []
        for peak in root.iter(self.profile.peak_element):
            mz_text = XmlDocumentUtils.child_text(peak, self.profile.peak_mz_element)
            intensity_text = XmlDocumentUtils.child_text(peak, self.profile.peak_intensity_element)
            try:
                if mz_text is not None:
                    mz.append(float(mz_text))
                if intensity_text is not None:
                    intensity.append(float(intensity_text))
            except ValueError:
                raise MalformedRecord(origin, f"non numeric peak value in {peak.tag}") from None

        if len(mz) != len(intensity):
            raise MalformedSpectrum(origin, len(mz), len(intensity))
        fields["mz"] = mz
        fields["intensity"] = intensity
        return RawRecord(source_format=SourceFormat.spectrum_document, fields=fields, origin=origin)

    @record_exception_angel
    def _parse_document_or_skip(self, stream: BinaryIO, origin: str) -> Optional[RawRecord]:
        return self.parse_document(stream, origin)
