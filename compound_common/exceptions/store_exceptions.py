class CompoundStoreError(Exception):
    """
    Base class for every error raised while building or querying a compound store.
    """


class MalformedRecord(CompoundStoreError):
    """
    A single source record could not be parsed. Non-fatal: the record is skipped and the stream continues.
    """

    def __init__(self, origin: str, reason: str):
        self.origin = origin
        self.reason = reason
        super().__init__(f"{origin}: {reason}")


class MalformedSpectrum(MalformedRecord):
    """
    A spectrum whose mz and intensity sequences differ in length. Only that spectrum is skipped.
    """

    def __init__(self, origin: str, mz_count: int, intensity_count: int):
        self.mz_count = mz_count
        self.intensity_count = intensity_count
        super().__init__(
            origin,
            f"{mz_count} mz values but {intensity_count} intensity values",
        )


class InvalidMetadata(CompoundStoreError):
    """
    Metadata failed validation. Raised before anything is written.
    """


class StoreWriteFailure(CompoundStoreError):
    """
    The atomic write of a store failed, or could not be started. No partial store is left on disk.
    """


class IncompatibleStore(CompoundStoreError):
    """
    The store exists but its schema shape or version does not match what this package expects.
    """


class UnknownColumn(CompoundStoreError, KeyError):
    """
    A projection or filter referenced a column that does not exist, is ambiguous, or cannot be filtered on.
    """

    def __init__(self, column: str, reason: str = "no such column"):
        self.column = column
        self.reason = reason
        super().__init__(f"{column}: {reason}")

    def __str__(self):
        return f"{self.column}: {self.reason}"


class InvalidFilter(CompoundStoreError, ValueError):
    """
    A filter expression could not be parsed, or a literal could not be coerced to its column's type.
    """
