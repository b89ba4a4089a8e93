import gzip
import os
from typing import Any, BinaryIO

import yaml

GZIP_MAGIC = b"\x1f\x8b"


class GeneralFileUtils:
    """
    Collection of general file read methods.
    """

    @staticmethod
    def open_yaml_file(path_to_yaml: str) -> Any:
        """
        Open a given yaml file.
        :param path_to_yaml: Absolute path to given yaml file.
        :return: Loaded yaml file, likely as a dict.
        """
        with open(path_to_yaml, "r") as f:
            thing = yaml.safe_load(f)
        return thing

    @staticmethod
    def open_byte_stream(path: str) -> BinaryIO:
        """
        Open a source file as a binary stream. Gzip compressed files are detected by their magic bytes rather than
        their extension, and are decompressed transparently. The caller owns the returned stream and should close it.
        :param path: Path to the source file.
        :return: Readable binary stream.
        """
        if not os.path.isfile(path):
            raise FileNotFoundError(path)
        with open(path, "rb") as f:
            magic = f.read(2)
        if magic == GZIP_MAGIC:
            return gzip.open(path, "rb")
        return open(path, "rb")
