"""
Char Yield Studio - Core Module
===============================
Char yield calculation for ashing runs: sample records, the yield formula,
input validation and spreadsheet exchange.

Components:
- sample_record: SampleRecord and the SampleField selector
- yield_calculator: ((ash - crucible) / sample) * 100, two decimals half-up
- validation: rule evaluation, incremental and bulk modes
- spreadsheet_codec: .xlsx / .csv import and export
- sample_collection: ordered records and the public operations
- config_manager: pydantic configuration (labels, messages, naming)

Usage:
    from core.sample_collection import SampleCollection
    from core.sample_record import SampleField
    from core.yield_calculator import calculate
    from core.validation import validate, validate_bulk
    from core.spreadsheet_codec import decode, encode
    from core.config_manager import ConfigManager
"""

from .errors import (
    ErrorKind,
    MalformedFileError,
)

from .sample_record import (
    SampleField,
    SampleRecord,
    WEIGHT_FIELDS,
)

from .yield_calculator import (
    FORMULA,
    calculate,
    round_yield,
)

from .config_manager import (
    CalculatorConfig,
    ColumnLabels,
    ConfigManager,
    ValidationMessages,
)

from .validation import (
    BulkValidationReport,
    ValidationResult,
    ValidationStatus,
    format_report_for_display,
    validate,
    validate_bulk,
    validate_incremental,
)

from .spreadsheet_codec import (
    decode,
    default_export_filename,
    encode,
)

from .sample_collection import (
    OperationResult,
    SampleCollection,
)

__version__ = "1.0.0"
