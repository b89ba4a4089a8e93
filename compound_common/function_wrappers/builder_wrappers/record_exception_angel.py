# decorator to save try/except-ing the same record level exceptions in every parse method
import logging
from functools import wraps

from compound_common.exceptions.store_exceptions import MalformedRecord


def record_exception_angel(func):
    """
    Function wrapper to swallow and report record level parse failures. The wrapped function returns None instead of
    raising, so the caller can skip the record and carry on with the rest of the stream. Only MalformedRecord (and so
    MalformedSpectrum) is caught, anything else still propagates.
    :param func: Function to wrap.
    :return: Result of the function, or None if the record was malformed.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MalformedRecord as e:
            logging.warning(f"Skipping record, {type(e).__name__} in {func.__name__}: {str(e)}")

    return wrapper
