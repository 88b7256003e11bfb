"""
Error Taxonomy
==============
Named failure kinds shared by validation, the spreadsheet codec and the
sample collection.

INCOMPLETE is deliberately absent: a record with missing weights is a
"not yet computable" state, reported through ValidationStatus instead.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Named failure kinds reported to the presentation layer."""
    NON_NUMERIC_INPUT = "non_numeric_input"
    INVALID_ASH_WEIGHT = "invalid_ash_weight"
    INVALID_SAMPLE_WEIGHT = "invalid_sample_weight"
    MALFORMED_FILE = "malformed_file"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    UNKNOWN_FIELD = "unknown_field"
    UNSUPPORTED_FORMAT = "unsupported_format"


class MalformedFileError(ValueError):
    """Raised when an imported file cannot be read as a sample table."""

    kind = ErrorKind.MALFORMED_FILE

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message
