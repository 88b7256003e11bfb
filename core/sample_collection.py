"""
Sample Collection
=================
Ordered container of sample records and the operations the presentation
layer calls: append, update, recalculate_all, decode and encode.

Every public operation runs to completion and returns an OperationResult;
none of them raises. Decode parses into a fresh list before swapping it in,
so a failed import leaves the current samples untouched.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd

from . import spreadsheet_codec
from .config_manager import CalculatorConfig
from .errors import ErrorKind, MalformedFileError
from .sample_record import SampleField, SampleRecord
from .validation import BulkValidationReport, validate_bulk, validate_incremental

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """
    Outcome of a collection operation.

    Attributes:
        success: True if the operation took effect
        error_kind: Failure kind, or for recalculate_all the surfaced error kind
        message: User-facing message for error_kind
        value: Operation payload (record, report or file bytes)
    """
    success: bool
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    value: Any = None

    def __bool__(self) -> bool:
        return self.success


class SampleCollection:
    """
    Ordered sample records with validation and file exchange.

    Usage:
        collection = SampleCollection()
        collection.update(0, SampleField.CRUCIBLE_WEIGHT, '10.00')
        collection.update(0, 'sample_weight', '5.00')
        collection.update(0, 'ash_weight', '11.50')
        collection[0].yield_percent   # Decimal('30.00')
        result = collection.recalculate_all()
        data = collection.encode().value
    """

    def __init__(
        self,
        config: Optional[CalculatorConfig] = None,
        suppress_guidance: Optional[bool] = None,
        initial_records: Optional[int] = None,
    ):
        self.config = config or CalculatorConfig()
        self.suppress_guidance = (
            self.config.suppress_guidance if suppress_guidance is None else suppress_guidance
        )
        self._records: List[SampleRecord] = []
        self._last_error: Optional[str] = None

        count = self.config.initial_records if initial_records is None else initial_records
        for _ in range(count):
            self.append()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def records(self) -> Tuple[SampleRecord, ...]:
        return tuple(self._records)

    @property
    def last_error(self) -> Optional[str]:
        """The single error message currently surfaced to the user."""
        return self._last_error

    @property
    def show_guidance(self) -> bool:
        return not self.suppress_guidance

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SampleRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> SampleRecord:
        return self._records[index]

    def to_dataframe(self) -> pd.DataFrame:
        """Current records with export headers, for tabular display."""
        return spreadsheet_codec.records_to_dataframe(self._records, self.config)

    def _failure(self, kind: ErrorKind, detail: str = "") -> OperationResult:
        message = self.config.messages.for_kind(kind)
        if detail:
            logger.warning(f"{kind.value}: {detail}")
        return OperationResult(success=False, error_kind=kind, message=message)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, default_name_prefix: Optional[str] = None) -> OperationResult:
        """
        Add an empty record named '{prefix} {size + 1}'.

        Nothing is validated; the new record has no weights yet.
        """
        prefix = default_name_prefix or self.config.default_name_prefix
        record = SampleRecord(name=f"{prefix} {len(self._records) + 1}")
        self._records.append(record)
        return OperationResult(success=True, value=record)

    def update(
        self,
        index: int,
        field: Union[SampleField, str],
        value: Any
    ) -> OperationResult:
        """
        Set one field of the record at index.

        Weight edits re-validate that record silently: its yield is
        recomputed or cleared, no error is surfaced.

        Args:
            index: Zero-based record position (negative indices are rejected)
            field: SampleField or its name, e.g. 'ash_weight'
            value: New value; None clears the field
        """
        if not 0 <= index < len(self._records):
            return self._failure(
                ErrorKind.INDEX_OUT_OF_RANGE,
                f"index {index} outside 0..{len(self._records) - 1}",
            )

        try:
            selector = SampleField.coerce(field)
        except ValueError as e:
            return self._failure(ErrorKind.UNKNOWN_FIELD, str(e))

        record = self._records[index]
        record.set(selector, value)
        if selector.is_weight:
            validate_incremental(record, self.config.messages)

        self._last_error = None
        return OperationResult(success=True, value=record)

    def recalculate_all(self) -> OperationResult:
        """
        Validate and recompute every record in order.

        The result succeeds even when records fail validation; it carries the
        BulkValidationReport and the surfaced (last) error, which also becomes
        last_error.
        """
        report: BulkValidationReport = validate_bulk(self._records, self.config.messages)
        self._last_error = report.surfaced_message
        return OperationResult(
            success=True,
            error_kind=report.surfaced_kind,
            message=report.surfaced_message or "",
            value=report,
        )

    # -------------------------------------------------------------------------
    # File exchange
    # -------------------------------------------------------------------------

    def decode(self, data: bytes) -> OperationResult:
        """
        Replace all records with the content of a spreadsheet file.

        On a malformed file the current records are kept and the failure is
        returned.
        """
        try:
            records = spreadsheet_codec.decode(data, self.config)
        except MalformedFileError as e:
            return self._failure(ErrorKind.MALFORMED_FILE, str(e))

        self._records = records
        logger.info(f"Imported {len(records)} samples")
        return OperationResult(success=True, value=self.records)

    def encode(self, file_format: str = 'xlsx') -> OperationResult:
        """Export all records; value holds the file bytes."""
        if file_format not in spreadsheet_codec.FILE_FORMATS:
            return self._failure(ErrorKind.UNSUPPORTED_FORMAT, f"export format {file_format!r}")

        data = spreadsheet_codec.encode(self._records, self.config, file_format)
        return OperationResult(success=True, value=data)

    def summary(self) -> Dict[str, int]:
        calculated = sum(1 for r in self._records if r.yield_percent is not None)
        return {
            'total': len(self._records),
            'calculated': calculated,
            'pending': len(self._records) - calculated,
        }
