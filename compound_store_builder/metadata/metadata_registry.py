import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from compound_common.exceptions.store_exceptions import InvalidMetadata

ORGANISM_CONVENTION = re.compile(r"[A-Z][a-z]+")
UNSPECIFIED_ORGANISM = "Unspecified"
UNSAFE_FILE_CHARACTERS = re.compile(r"[^0-9A-Za-z._-]+")


class Metadata(BaseModel):
    """
    Provenance of a store. Exactly one of these goes into every store, and it cannot be changed after construction.
    `organism` follows the capitalised genus, lower case species initial convention (ie 'Hsapiens'), or is the
    literal 'Unspecified'.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    source: str
    url: str
    source_version: str
    source_date: Optional[str] = None
    organism: Optional[str] = None

    @field_validator("source", "url", "source_version")
    @classmethod
    def not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("organism")
    @classmethod
    def organism_convention(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == UNSPECIFIED_ORGANISM:
            return value
        if not ORGANISM_CONVENTION.fullmatch(value):
            raise ValueError(
                f"'{value}' does not follow the organism naming convention, ie 'Hsapiens', or '{UNSPECIFIED_ORGANISM}'"
            )
        return value


class MetadataRegistry:
    """
    Collection of static methods to construct and describe store metadata.
    """

    @staticmethod
    def make_metadata(
        source: str,
        url: str,
        source_version: str,
        source_date: Optional[str] = None,
        organism: Optional[str] = None,
    ) -> Metadata:
        """
        Validate and construct the metadata for a store.
        :param source: Name of the annotation resource, ie 'HMDB'.
        :param url: Where the source files were retrieved from.
        :param source_version: Version of the source files.
        :param source_date: Release date of the source files, if known.
        :param organism: Organism the source is specific to, 'Unspecified' or None.
        :return: Immutable Metadata value.
        """
        try:
            return Metadata(
                source=source,
                url=url,
                source_version=source_version,
                source_date=source_date,
                organism=organism,
            )
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
            )
            raise InvalidMetadata(f"Invalid store metadata - {problems}") from e

    @staticmethod
    def from_mapping(mapping: Mapping[str, Any]) -> Metadata:
        """
        Construct metadata from a dict, ie one loaded from a yaml file. Unknown keys are an error.
        :param mapping: dict of metadata fields.
        :return: Immutable Metadata value.
        """
        unknown = set(mapping) - set(Metadata.model_fields)
        if unknown:
            raise InvalidMetadata(f"Unknown metadata fields: {sorted(unknown)}")
        return MetadataRegistry.make_metadata(
            source=mapping.get("source", ""),
            url=mapping.get("url", ""),
            source_version=mapping.get("source_version", ""),
            source_date=mapping.get("source_date"),
            organism=mapping.get("organism"),
        )

    @staticmethod
    def store_file_name(metadata: Metadata) -> str:
        """
        Derive a file name for a store from its metadata, ie 'CompDb.Hsapiens.HMDB.5.0.sqlite'.
        :param metadata: Metadata of the store to be.
        :return: File name, safe for use on any filesystem.
        """
        parts = ["CompDb"]
        if metadata.organism and metadata.organism != UNSPECIFIED_ORGANISM:
            parts.append(metadata.organism)
        parts.extend([metadata.source, metadata.source_version])
        stem = ".".join(UNSAFE_FILE_CHARACTERS.sub("_", part) for part in parts)
        return f"{stem}.sqlite"
