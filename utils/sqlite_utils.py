from typing import Any, Iterable, List

import msgpack


class SqliteUtils:
    """
    Utility helpers for moving values in and out of the SQLite columns of a compound store.
    """

    @staticmethod
    def pack_sequence(values: Iterable[Any]) -> bytes:
        """
        Pack an ordered sequence (peak values, synonyms) into a msgpack BLOB. Order is preserved exactly.
        """
        return msgpack.packb(list(values), use_bin_type=True)

    @staticmethod
    def unpack_sequence(blob: bytes) -> List[Any]:
        """
        Unpack a msgpack BLOB back into a list.
        """
        return list(msgpack.unpackb(blob, raw=False))

    @staticmethod
    def quote_identifier(name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    @staticmethod
    def affinity(declared_type: str) -> str:
        """
        Work out the SQLite column affinity of a declared column type, following the rules SQLite itself uses.
        :param declared_type: Declared type as reported by PRAGMA table_info, ie 'INTEGER' or 'TEXT'.
        :return: One of INTEGER, TEXT, BLOB, REAL, NUMERIC.
        """
        declared = (declared_type or "").upper()
        if "INT" in declared:
            return "INTEGER"
        if any(token in declared for token in ("CHAR", "CLOB", "TEXT")):
            return "TEXT"
        if declared == "" or "BLOB" in declared:
            return "BLOB"
        if any(token in declared for token in ("REAL", "FLOA", "DOUB")):
            return "REAL"
        return "NUMERIC"
