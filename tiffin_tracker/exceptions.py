"""
Error taxonomy for the tracker core.

Absent entries are returned as ``None`` and never raised. Storage engine
errors (``SQLAlchemyError``, ``OSError``) propagate unmodified;
``error_kind`` maps them for the UI's single failure notification.
"""
import enum

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError


class ErrorKind(str, enum.Enum):
    INVALID_RANGE = "invalid_range"
    INVALID_DATE = "invalid_date"
    INVALID_PRICE = "invalid_price"
    STORAGE_FAILURE = "storage_failure"
    IMPORT_MALFORMED = "import_malformed"
    EXPORT_SINK_UNAVAILABLE = "export_sink_unavailable"
    UNKNOWN = "unknown"


class TiffinTrackerError(Exception):
    kind = ErrorKind.UNKNOWN


class InvalidDateError(TiffinTrackerError, ValueError):
    """Date string is not a real YYYY-MM-DD calendar date"""
    kind = ErrorKind.INVALID_DATE


class InvalidPriceError(TiffinTrackerError, ValueError):
    """Negative price override, or a settings price that is not positive"""
    kind = ErrorKind.INVALID_PRICE


class InvalidRangeError(TiffinTrackerError, ValueError):
    """Start date falls after end date"""
    kind = ErrorKind.INVALID_RANGE


class ImportMalformedError(TiffinTrackerError, ValueError):
    """Backup text is not JSON or does not have the backup shape"""
    kind = ErrorKind.IMPORT_MALFORMED


class ExportSinkUnavailableError(TiffinTrackerError):
    """The file/share mechanism could not take the exported text"""
    kind = ErrorKind.EXPORT_SINK_UNAVAILABLE


def _validation_kind(exc: ValidationError) -> ErrorKind:
    # Field validators raise our own errors; pydantic keeps them in ctx["error"]
    kinds = set()
    for err in exc.errors():
        cause = (err.get("ctx") or {}).get("error")
        kinds.add(cause.kind if isinstance(cause, TiffinTrackerError) else ErrorKind.UNKNOWN)
    return kinds.pop() if len(kinds) == 1 else ErrorKind.UNKNOWN


def error_kind(exc: BaseException) -> ErrorKind:
    """Classify any exception raised by a core operation"""
    if isinstance(exc, TiffinTrackerError):
        return exc.kind
    if isinstance(exc, ValidationError):
        return _validation_kind(exc)
    if isinstance(exc, (SQLAlchemyError, OSError)):
        return ErrorKind.STORAGE_FAILURE
    return ErrorKind.UNKNOWN
