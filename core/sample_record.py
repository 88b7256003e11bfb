"""
Sample Record
=============
Per-sample data unit for char yield measurements.

Weights are kept as entered (text) so that a value the technician is still
typing, or a stray non-numeric entry, survives until validation decides what
to do with it. An empty or whitespace-only string means "not entered".
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union


class SampleField(Enum):
    """Editable fields of a sample record. yield_percent is derived only."""
    NAME = "name"
    CRUCIBLE_NUMBER = "crucible_number"
    CRUCIBLE_WEIGHT = "crucible_weight"
    SAMPLE_WEIGHT = "sample_weight"
    ASH_WEIGHT = "ash_weight"

    @property
    def is_weight(self) -> bool:
        """True if editing this field triggers incremental validation."""
        return self in WEIGHT_FIELDS

    @classmethod
    def coerce(cls, value: Union['SampleField', str]) -> 'SampleField':
        """
        Resolve a field selector given as enum member, value or member name.

        Raises:
            ValueError: If the selector names no editable field
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            for member in cls:
                if key == member.value or key.upper() == member.name:
                    return member
        raise ValueError(f"Unknown sample field: {value!r}")


WEIGHT_FIELDS = (
    SampleField.CRUCIBLE_WEIGHT,
    SampleField.SAMPLE_WEIGHT,
    SampleField.ASH_WEIGHT,
)


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a weight value to Decimal.

    Floats go through repr() so 10.1 becomes Decimal('10.1') rather than its
    binary expansion. Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass
class SampleRecord:
    """
    One sample of a char yield run.

    Attributes:
        name: Sample label
        crucible_number: Crucible identifier (free text)
        crucible_weight: Empty crucible tare weight in g, as entered
        sample_weight: Sample weight before ashing in g, as entered
        ash_weight: Crucible + residue weight after ashing in g, as entered
        yield_percent: Char yield in %, two decimals, or None
    """
    name: str = ""
    crucible_number: str = ""
    crucible_weight: str = ""
    sample_weight: str = ""
    ash_weight: str = ""
    yield_percent: Optional[Decimal] = field(default=None)

    def get(self, selector: SampleField) -> str:
        return getattr(self, selector.value)

    def set(self, selector: SampleField, value: Any):
        """Set an editable field. None becomes empty text, numbers become text."""
        if value is None:
            text = ""
        elif isinstance(value, float):
            text = repr(value)
        else:
            text = str(value)
        setattr(self, selector.value, text)

    def parse_weight(self, selector: SampleField) -> Optional[Decimal]:
        """Parsed weight, or None if absent or non-numeric."""
        return to_decimal(self.get(selector))

    def has_all_weights(self) -> bool:
        return not any(is_blank(self.get(f)) for f in WEIGHT_FIELDS)

    def to_values(self) -> Dict[str, Any]:
        """
        Field values with numbers parsed, for comparison and export.

        Weights that parse become Decimal, empty weights become None and
        anything else is returned as the entered text.
        """
        values: Dict[str, Any] = {
            'name': self.name,
            'crucible_number': self.crucible_number,
        }
        for selector in WEIGHT_FIELDS:
            raw = self.get(selector)
            if is_blank(raw):
                values[selector.value] = None
            else:
                number = to_decimal(raw)
                values[selector.value] = number if number is not None else raw
        values['yield_percent'] = self.yield_percent
        return values

    def copy(self) -> 'SampleRecord':
        return SampleRecord(**{f.name: getattr(self, f.name) for f in fields(self)})

    def __str__(self) -> str:
        yield_text = f"{self.yield_percent}%" if self.yield_percent is not None else "-"
        return f"{self.name} [{self.crucible_number or '?'}]: {yield_text}"
