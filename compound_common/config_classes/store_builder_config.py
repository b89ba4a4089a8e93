from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class SourceInput(BaseModel):
    """
    One source to ingest. For structure record profiles `path` is a (possibly gzipped) SDF file, for spectrum document
    profiles it is a directory of XML documents.
    """

    profile: str
    path: str


class MetadataConfig(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    source: str
    url: str
    source_version: str
    source_date: Optional[str] = None
    organism: Optional[str] = None


class StoreBuilderConfig(BaseModel):
    """
    Config for the compound store builder entrypoint, populated from a store_builder.yaml. No default destination is
    supplied on purpose, it must be given explicitly.
    """

    destination: str
    overwrite: bool = False
    verbose_logging: bool = False
    metadata: MetadataConfig
    sources: List[SourceInput]
