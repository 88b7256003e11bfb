"""
Spreadsheet Import / Export
===========================
Decode and encode sample records as spreadsheet files.

Supported Formats:
- Excel (.xlsx) via pandas + openpyxl, first sheet only on import
- Legacy Excel (.xls) via pandas + xlrd, import only
- CSV (UTF-8, BOM tolerated on import, written with BOM on export)

Column contract (lookup by header label, order not significant):
    Sample Name | Crucible Number | Crucible Weight | Sample Weight |
    Ash Weight | Char Yield

Import never touches caller state: it either returns a fresh list of
records or raises MalformedFileError.
"""

import io
import logging
import struct
from decimal import Decimal
from typing import Any, Dict, List, Optional
from zipfile import BadZipFile

import numpy as np
import pandas as pd
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError
from xlrd.compdoc import CompDocError

from .config_manager import CalculatorConfig
from .errors import MalformedFileError
from .sample_record import SampleRecord, WEIGHT_FIELDS, is_blank, to_decimal
from .yield_calculator import round_yield

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b'PK\x03\x04'
OLE2_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'
XLSX_MIME = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
CSV_MIME = 'text/csv'
EXPORT_BASENAME = 'char_yield_data'
FILE_FORMATS = ('xlsx', 'csv')

FIELD_ORDER = (
    'name',
    'crucible_number',
    'crucible_weight',
    'sample_weight',
    'ash_weight',
    'yield_percent',
)
TEXT_FIELDS = ('name', 'crucible_number') + tuple(f.value for f in WEIGHT_FIELDS)


def default_export_filename(file_format: str = 'xlsx') -> str:
    return f"{EXPORT_BASENAME}.{file_format}"


def mime_type(file_format: str = 'xlsx') -> str:
    return XLSX_MIME if file_format == 'xlsx' else CSV_MIME


# =============================================================================
# CELL CONVERSION
# =============================================================================

def _is_blank_cell(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell_text(value: Any) -> str:
    """
    Render a cell as text.

    Whole numbers lose their trailing '.0' and other floats use the shortest
    repr, so a weight typed as 10.1 comes back as '10.1'.
    """
    if _is_blank_cell(value):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return str(bool(value))
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        value = float(value)
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def _cell_yield(value: Any, row_number: int) -> Optional[Decimal]:
    if _is_blank_cell(value):
        return None
    if isinstance(value, np.floating):
        value = float(value)
    number = to_decimal(value)
    if number is None:
        logger.warning(f"Row {row_number}: ignoring non-numeric char yield {value!r}")
        return None
    return round_yield(number)


def _export_weight(raw: str) -> Any:
    """
    Numeric weights as numbers, other text verbatim, empty as a blank cell.

    A value a float cannot hold exactly (too many digits) stays as text so
    decode gives back what was entered.
    """
    if is_blank(raw):
        return None
    number = to_decimal(raw)
    if number is None:
        return raw
    as_float = float(number)
    return as_float if Decimal(repr(as_float)) == number else raw.strip()


# =============================================================================
# DECODE
# =============================================================================

# Cell text such as 'NA', 'N/A', 'None' or 'nan' is data, never a missing value.
_EXCEL_READ_OPTIONS = dict(sheet_name=0, dtype=object, keep_default_na=False, na_values=[])

# ElementTree's ParseError and lxml's XMLSyntaxError both derive from SyntaxError.
_XLSX_ERRORS = (BadZipFile, InvalidFileException, SyntaxError, KeyError, IndexError, ValueError, OSError)
_XLS_ERRORS = (XLRDError, CompDocError, struct.error, KeyError, IndexError, ValueError, OSError)


def _read_workbook(data: bytes, engine: str, errors: tuple) -> pd.DataFrame:
    with io.BytesIO(data) as buffer:
        try:
            return pd.read_excel(buffer, engine=engine, **_EXCEL_READ_OPTIONS)
        except errors as e:
            raise MalformedFileError("Cannot read workbook", detail=str(e)) from e


def _read_table(data: bytes) -> pd.DataFrame:
    """Read the first sheet (xlsx, xls) or the whole CSV into a DataFrame of raw cells."""
    if data.startswith(ZIP_SIGNATURE):
        return _read_workbook(data, 'openpyxl', _XLSX_ERRORS)
    if data.startswith(OLE2_SIGNATURE):
        return _read_workbook(data, 'xlrd', _XLS_ERRORS)

    try:
        text = data.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise MalformedFileError("File is neither an Excel workbook nor UTF-8 CSV", detail=str(e)) from e

    with io.StringIO(text) as buffer:
        try:
            return pd.read_csv(buffer, dtype=str, keep_default_na=False, skip_blank_lines=True)
        except ValueError as e:
            # pandas ParserError and EmptyDataError are ValueErrors
            raise MalformedFileError("Cannot parse CSV", detail=str(e)) from e


def _map_columns(df: pd.DataFrame, config: CalculatorConfig) -> Dict[str, Any]:
    """Field key -> DataFrame column, matched on stripped header labels."""
    lookup = config.header_lookup()
    column_map: Dict[str, Any] = {}
    for column in df.columns:
        key = lookup.get(str(column).strip())
        if key is not None:
            column_map.setdefault(key, column)
    return column_map


def decode(data: bytes, config: Optional[CalculatorConfig] = None) -> List[SampleRecord]:
    """
    Decode spreadsheet bytes into sample records.

    Args:
        data: Raw .xlsx, .xls or .csv file content
        config: Calculator configuration (labels, default name prefix)

    Returns:
        Records in row order

    Raises:
        MalformedFileError: If the content is not a readable sample table
    """
    config = config or CalculatorConfig()

    if not data:
        raise MalformedFileError("File is empty")

    df = _read_table(data)
    column_map = _map_columns(df, config)
    if not column_map:
        headers = [str(c) for c in df.columns]
        raise MalformedFileError("No recognised column headers", detail=f"found {headers}")

    missing = [config.column_labels.as_dict()[k] for k in FIELD_ORDER if k not in column_map]
    if missing:
        logger.info(f"Columns not present in file, using defaults: {missing}")

    records: List[SampleRecord] = []
    for _, row in df.iterrows():
        if all(_is_blank_cell(v) for v in row.tolist()):
            continue

        row_number = len(records) + 1
        values = {
            key: _cell_text(row[column_map[key]]) if key in column_map else ""
            for key in TEXT_FIELDS
        }
        if not values['name'].strip():
            values['name'] = f"{config.default_name_prefix} {row_number}"

        yield_percent = None
        if 'yield_percent' in column_map:
            yield_percent = _cell_yield(row[column_map['yield_percent']], row_number)

        records.append(SampleRecord(yield_percent=yield_percent, **values))

    logger.info(f"Decoded {len(records)} samples")
    return records


# =============================================================================
# ENCODE
# =============================================================================

def records_to_dataframe(
    records: List[SampleRecord],
    config: Optional[CalculatorConfig] = None
) -> pd.DataFrame:
    """Records as a DataFrame with export headers, one row per record."""
    config = config or CalculatorConfig()
    labels = config.column_labels.as_dict()

    rows = []
    for position, record in enumerate(records, 1):
        # a blank name would make the row unreadable as a sample on import
        name = record.name if not is_blank(record.name) else f"{config.default_name_prefix} {position}"
        row = {
            labels['name']: name,
            labels['crucible_number']: record.crucible_number,
        }
        for selector in WEIGHT_FIELDS:
            row[labels[selector.value]] = _export_weight(record.get(selector))
        row[labels['yield_percent']] = (
            float(record.yield_percent) if record.yield_percent is not None else None
        )
        rows.append(row)

    return pd.DataFrame(rows, columns=[labels[k] for k in FIELD_ORDER])


def _format_sheet(worksheet, df: pd.DataFrame, yield_label: str):
    """Two-decimal yield cells and column widths that fit the headers."""
    for col_idx, column in enumerate(df.columns, 1):
        letter = get_column_letter(col_idx)
        values = [str(column)] + [str(v) for v in df[column] if not _is_blank_cell(v)]
        worksheet.column_dimensions[letter].width = max(len(v) for v in values) + 4
        if column == yield_label:
            for row_idx in range(2, len(df) + 2):
                worksheet[f"{letter}{row_idx}"].number_format = '0.00'


def encode(
    records: List[SampleRecord],
    config: Optional[CalculatorConfig] = None,
    file_format: str = 'xlsx'
) -> bytes:
    """
    Encode records as spreadsheet bytes.

    Args:
        records: Records in export order
        config: Calculator configuration (labels, sheet name)
        file_format: 'xlsx' or 'csv'

    Returns:
        File content

    Raises:
        ValueError: If file_format is not supported
    """
    if file_format not in FILE_FORMATS:
        raise ValueError(f"Unsupported export format: {file_format}")

    config = config or CalculatorConfig()
    df = records_to_dataframe(records, config)

    if file_format == 'csv':
        data = df.to_csv(index=False).encode('utf-8-sig')
    else:
        with io.BytesIO() as buffer:
            with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
                df.to_excel(writer, sheet_name=config.sheet_name, index=False)
                _format_sheet(
                    writer.sheets[config.sheet_name], df, config.column_labels.yield_percent
                )
            data = buffer.getvalue()

    logger.info(f"Encoded {len(records)} samples as {file_format} ({len(data)} bytes)")
    return data
