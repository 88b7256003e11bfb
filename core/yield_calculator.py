"""
Char Yield Calculation
======================
Pure formula evaluation for char yield.

    char yield (%) = ((ash weight - crucible weight) / sample weight) * 100

The ash weight includes the crucible, so the tare is subtracted before
relating the residue to the original sample mass. Results are rounded to two
decimals, half-up, as reported on lab sheets.

No validation happens here. Callers run the validation rules first; a zero
sample weight raises the decimal module's DivisionByZero.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from .sample_record import to_decimal

Number = Union[Decimal, int, float, str]

FORMULA = "Char yield (%) = [(Ash weight - Crucible weight) / Sample weight] x 100"
YIELD_QUANTUM = Decimal("0.01")


def _as_decimal(value: Number) -> Decimal:
    number = to_decimal(value)
    if number is None:
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def round_yield(value: Number) -> Decimal:
    """Round a yield value to two decimals, half-up."""
    return _as_decimal(value).quantize(YIELD_QUANTUM, rounding=ROUND_HALF_UP)


def calculate(crucible_weight: Number, sample_weight: Number, ash_weight: Number) -> Decimal:
    """
    Calculate char yield in percent.

    Args:
        crucible_weight: Empty crucible weight (g)
        sample_weight: Sample weight before ashing (g)
        ash_weight: Crucible + residue weight after ashing (g)

    Returns:
        Yield in %, quantized to 0.01

    Example:
        >>> calculate('10.00', '5.00', '11.50')
        Decimal('30.00')
    """
    crucible = _as_decimal(crucible_weight)
    sample = _as_decimal(sample_weight)
    ash = _as_decimal(ash_weight)

    char_weight = ash - crucible
    return round_yield(char_weight / sample * 100)
