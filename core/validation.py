"""
Sample Validation
=================
Input correctness rules for char yield records.

Rules are evaluated in order and the first applicable outcome wins:
1. Any weight missing                -> INCOMPLETE (not an error)
2. Any present weight non-numeric    -> ERROR(NON_NUMERIC_INPUT)
3. Ash weight <= crucible weight     -> ERROR(INVALID_ASH_WEIGHT)
4. Sample weight <= 0                -> ERROR(INVALID_SAMPLE_WEIGHT)
5. Otherwise                         -> OK(yield)

Two invocation modes:
- Incremental: one record after a field edit. Silent, best-effort.
- Bulk: every record on an explicit recompute. At most one error is
  surfaced, the one from the LAST failing record in iteration order.
  Every failure is still listed in the report for diagnostics.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config_manager import ValidationMessages
from .errors import ErrorKind
from .sample_record import SampleField, SampleRecord, WEIGHT_FIELDS
from .yield_calculator import calculate

logger = logging.getLogger(__name__)


class ValidationStatus(Enum):
    """Outcome of validating one record."""
    INCOMPLETE = "INCOMPLETE"
    ERROR = "ERROR"
    OK = "OK"


@dataclass
class ValidationResult:
    """
    Result of validating a single record.

    Attributes:
        status: INCOMPLETE, ERROR or OK
        error_kind: Violated rule for ERROR, else None
        yield_percent: Computed yield for OK, else None
        message: User-facing message for ERROR, else empty
    """
    status: ValidationStatus
    error_kind: Optional[ErrorKind] = None
    yield_percent: Optional[Decimal] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ValidationStatus.OK

    @property
    def is_error(self) -> bool:
        return self.status == ValidationStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'error_kind': self.error_kind.value if self.error_kind else None,
            'yield_percent': str(self.yield_percent) if self.yield_percent is not None else None,
            'message': self.message,
        }

    def __str__(self) -> str:
        if self.ok:
            return f"[OK] {self.yield_percent}%"
        if self.is_error:
            return f"[ERROR] {self.error_kind.value}: {self.message}"
        return "[INCOMPLETE]"


def _error(kind: ErrorKind, messages: ValidationMessages) -> ValidationResult:
    return ValidationResult(
        status=ValidationStatus.ERROR,
        error_kind=kind,
        message=messages.for_kind(kind),
    )


def validate(record: SampleRecord, messages: Optional[ValidationMessages] = None) -> ValidationResult:
    """
    Apply the validation rules to one record without modifying it.

    Args:
        record: Record to check
        messages: Message set for error outcomes (English defaults)

    Returns:
        ValidationResult
    """
    messages = messages or ValidationMessages()

    if not record.has_all_weights():
        return ValidationResult(status=ValidationStatus.INCOMPLETE)

    parsed = {f: record.parse_weight(f) for f in WEIGHT_FIELDS}
    if any(v is None for v in parsed.values()):
        return _error(ErrorKind.NON_NUMERIC_INPUT, messages)

    crucible = parsed[SampleField.CRUCIBLE_WEIGHT]
    sample = parsed[SampleField.SAMPLE_WEIGHT]
    ash = parsed[SampleField.ASH_WEIGHT]

    if ash <= crucible:
        return _error(ErrorKind.INVALID_ASH_WEIGHT, messages)

    if sample <= 0:
        return _error(ErrorKind.INVALID_SAMPLE_WEIGHT, messages)

    return ValidationResult(
        status=ValidationStatus.OK,
        yield_percent=calculate(crucible, sample, ash),
    )


def apply_result(record: SampleRecord, result: ValidationResult):
    """Set the record's yield from a result; cleared unless OK."""
    record.yield_percent = result.yield_percent if result.ok else None


def validate_incremental(
    record: SampleRecord,
    messages: Optional[ValidationMessages] = None
) -> ValidationResult:
    """
    Re-validate one record after an edit and update its yield.

    Errors are never surfaced in this mode; the result is returned only so
    callers can inspect it.
    """
    result = validate(record, messages)
    apply_result(record, result)
    logger.debug(f"Incremental validation of '{record.name}': {result}")
    return result


@dataclass
class BulkValidationReport:
    """
    Outcome of a collection-wide recompute.

    `surfaced_error` is the single error shown to the user: the result of
    the last record that failed. `errors` keeps every failure in order.
    """
    results: List[ValidationResult] = field(default_factory=list)
    errors: List[Tuple[int, ValidationResult]] = field(default_factory=list)
    surfaced_error: Optional[ValidationResult] = None

    @property
    def surfaced_message(self) -> Optional[str]:
        return self.surfaced_error.message if self.surfaced_error else None

    @property
    def surfaced_kind(self) -> Optional[ErrorKind]:
        return self.surfaced_error.error_kind if self.surfaced_error else None

    @property
    def summary(self) -> Dict[str, int]:
        """Count of records by status."""
        return {
            'total': len(self.results),
            'ok': sum(1 for r in self.results if r.status == ValidationStatus.OK),
            'incomplete': sum(1 for r in self.results if r.status == ValidationStatus.INCOMPLETE),
            'errors': len(self.errors),
        }

    def add(self, index: int, result: ValidationResult):
        self.results.append(result)
        if result.is_error:
            self.errors.append((index, result))
            self.surfaced_error = result

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary,
            'surfaced_error': self.surfaced_error.to_dict() if self.surfaced_error else None,
            'errors': [{'index': i, **r.to_dict()} for i, r in self.errors],
        }

    def __str__(self) -> str:
        s = self.summary
        lines = [f"Recalculated {s['total']} samples: {s['ok']} ok, "
                 f"{s['incomplete']} incomplete, {s['errors']} errors"]
        for index, result in self.errors:
            lines.append(f"  #{index + 1} {result}")
        return "\n".join(lines)


def validate_bulk(
    records: Iterable[SampleRecord],
    messages: Optional[ValidationMessages] = None
) -> BulkValidationReport:
    """
    Validate every record in order and update each yield.

    A failing record only clears its own yield; processing continues with
    the next record.
    """
    report = BulkValidationReport()
    for index, record in enumerate(records):
        result = validate(record, messages)
        apply_result(record, result)
        report.add(index, result)
        if result.is_error:
            logger.debug(f"Sample #{index + 1} '{record.name}' failed: {result.error_kind.value}")

    logger.info(str(report).splitlines()[0])
    return report


def format_report_for_display(report: BulkValidationReport) -> str:
    """
    Format a bulk report for display in the UI.

    Returns:
        Markdown-formatted string
    """
    s = report.summary
    lines = [f"**Summary:** {s['ok']} calculated, {s['incomplete']} incomplete, {s['errors']} errors"]
    if report.errors:
        lines.append("")
        for index, result in report.errors:
            lines.append(f"- **#{index + 1}**: {result.message}")
    return "\n".join(lines)
