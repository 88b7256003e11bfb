"""
Test Suite for Sample Validation
================================
Tests for validation.py - rule order, incremental mode and bulk mode.

Run with: python -m pytest tests/test_validation.py -v
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add core to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config_manager import ValidationMessages
from core.errors import ErrorKind
from core.sample_record import SampleRecord
from core.validation import (
    BulkValidationReport,
    ValidationStatus,
    format_report_for_display,
    validate,
    validate_bulk,
    validate_incremental,
)


def make_record(crucible='', sample='', ash='', name='S', yield_percent=None):
    return SampleRecord(
        name=name,
        crucible_weight=crucible,
        sample_weight=sample,
        ash_weight=ash,
        yield_percent=yield_percent,
    )


class TestValidateRules:
    """Tests for validate() rule evaluation."""

    def test_ok(self):
        result = validate(make_record('10.00', '5.00', '11.50'))
        assert result.status == ValidationStatus.OK
        assert result.yield_percent == Decimal('30.00')
        assert result.error_kind is None
        assert result.message == ""

    def test_incomplete_for_each_missing_weight(self):
        for record in [
            make_record('', '5', '11.5'),
            make_record('10', '', '11.5'),
            make_record('10', '5', ''),
            make_record('10', '5', '   '),
            make_record(),
        ]:
            result = validate(record)
            assert result.status == ValidationStatus.INCOMPLETE
            assert result.yield_percent is None
            assert result.error_kind is None
            assert result.message == ""

    def test_incomplete_checked_before_non_numeric(self):
        result = validate(make_record('', 'abc', '11'))
        assert result.status == ValidationStatus.INCOMPLETE

    def test_non_numeric(self):
        for bad in ['abc', '1,5', 'nan', 'inf', '10..2']:
            result = validate(make_record('10', bad, '11'))
            assert result.status == ValidationStatus.ERROR
            assert result.error_kind == ErrorKind.NON_NUMERIC_INPUT

    def test_invalid_ash_weight(self):
        result = validate(make_record('10.00', '5.00', '9.00'))
        assert result.status == ValidationStatus.ERROR
        assert result.error_kind == ErrorKind.INVALID_ASH_WEIGHT
        assert result.yield_percent is None

    def test_ash_equal_to_crucible_is_invalid(self):
        result = validate(make_record('10', '5', '10.000'))
        assert result.error_kind == ErrorKind.INVALID_ASH_WEIGHT

    def test_ash_rule_independent_of_sample(self):
        for sample in ['5', '0', '-2']:
            result = validate(make_record('10', sample, '9'))
            assert result.error_kind == ErrorKind.INVALID_ASH_WEIGHT

    def test_invalid_sample_weight(self):
        result = validate(make_record('10.00', '0', '11.50'))
        assert result.status == ValidationStatus.ERROR
        assert result.error_kind == ErrorKind.INVALID_SAMPLE_WEIGHT

        result = validate(make_record('10', '-1.5', '11'))
        assert result.error_kind == ErrorKind.INVALID_SAMPLE_WEIGHT

    def test_validate_does_not_modify_record(self):
        record = make_record('10', '5', '9', yield_percent=Decimal('12.00'))
        validate(record)
        assert record.yield_percent == Decimal('12.00')

    def test_messages(self):
        assert validate(make_record('10', '5', '9')).message == ValidationMessages().invalid_ash_weight

        japanese = ValidationMessages.japanese()
        result = validate(make_record('10', '0', '11'), japanese)
        assert result.message == japanese.invalid_sample_weight


class TestIncremental:
    """Tests for validate_incremental()."""

    def test_sets_yield(self):
        record = make_record('10.00', '5.00', '11.50')
        result = validate_incremental(record)
        assert result.ok
        assert record.yield_percent == Decimal('30.00')

    def test_error_clears_yield(self):
        record = make_record('10', '5', '9', yield_percent=Decimal('30.00'))
        result = validate_incremental(record)
        assert result.is_error
        assert record.yield_percent is None

    def test_incomplete_clears_yield(self):
        record = make_record('10', '', '11.5', yield_percent=Decimal('30.00'))
        validate_incremental(record)
        assert record.yield_percent is None


class TestBulk:
    """Tests for validate_bulk()."""

    def test_one_invalid_record(self):
        records = [
            make_record('10.00', '5.00', '11.50', name='A'),
            make_record('10.00', '0', '11.50', name='B', yield_percent=Decimal('1.00')),
            make_record('20', '4', '21', name='C'),
        ]
        report = validate_bulk(records)

        assert records[0].yield_percent == Decimal('30.00')
        assert records[1].yield_percent is None
        assert records[2].yield_percent == Decimal('25.00')
        assert report.surfaced_kind == ErrorKind.INVALID_SAMPLE_WEIGHT
        assert report.surfaced_message == ValidationMessages().invalid_sample_weight
        assert report.summary == {'total': 3, 'ok': 2, 'incomplete': 0, 'errors': 1}

    def test_last_error_wins(self):
        records = [
            make_record('10', 'x', '11'),
            make_record('10', '5', '11.5'),
            make_record('10', '5', '9'),
            make_record('10', '', '9'),
        ]
        report = validate_bulk(records)

        assert report.surfaced_kind == ErrorKind.INVALID_ASH_WEIGHT
        assert [i for i, _ in report.errors] == [0, 2]
        assert report.errors[0][1].error_kind == ErrorKind.NON_NUMERIC_INPUT

    def test_incomplete_is_not_surfaced(self):
        records = [make_record('10', '5', ''), make_record('10', '5', '11.5')]
        report = validate_bulk(records)
        assert report.surfaced_error is None
        assert report.surfaced_message is None
        assert report.summary['incomplete'] == 1

    def test_empty(self):
        report = validate_bulk([])
        assert report.results == []
        assert report.surfaced_error is None

    def test_report_output(self):
        report = validate_bulk([make_record('10', '5', '9'), make_record('10', '5', '11.5')])
        assert 'Recalculated 2 samples' in str(report)
        assert report.to_dict()['errors'][0]['index'] == 0
        assert report.to_dict()['surfaced_error']['error_kind'] == 'invalid_ash_weight'

        display = format_report_for_display(report)
        assert '1 calculated' in display
        assert '**#1**' in display

    def test_report_add(self):
        report = BulkValidationReport()
        report.add(0, validate(make_record('10', '5', '9')))
        report.add(1, validate(make_record('10', '0', '11')))
        assert report.surfaced_kind == ErrorKind.INVALID_SAMPLE_WEIGHT
        assert len(report.errors) == 2
