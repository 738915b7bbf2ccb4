# merch_planning/utils/math_utils.py
import math
from typing import Optional, Union

from merch_planning.exceptions import CalculationError

Number = Union[int, float]

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding towards +infinity.

    All quantity and budget rounding in the engine goes through this
    function so breakdown quantities and rate-derived budgets agree.

    Args:
        value: Value to round

    Returns:
        Rounded integer
    """
    return int(math.floor(value + 0.5))

def percentage(part: float, whole: float, default: float = 0.0) -> float:
    """Express ``part`` as a percentage of ``whole``."""
    if whole is None or whole <= 0:
        return default
    return part / whole * 100.0

def optional_percentage(part: float, whole: float) -> Optional[float]:
    """Like percentage() but returns None (not applicable) for empty wholes."""
    if whole is None or whole <= 0:
        return None
    return part / whole * 100.0

def clamp(value: Number, lower: Number, upper: Number) -> Number:
    return max(lower, min(upper, value))

def to_number(value, default: Number = 0) -> Number:
    """Coerce a form/record value to a number.

    None and empty strings become ``default``; numeric strings are parsed.

    Raises:
        CalculationError: if the value is not numeric
    """
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise CalculationError(f"Boolean is not a numeric value: {value!r}")
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise CalculationError(f"Not a numeric value: {value!r}")
    return int(number) if number.is_integer() else number

def to_integer(value, default: int = 0) -> int:
    """Coerce a quantity or ratio to int, rejecting fractional values.

    Raises:
        CalculationError: if the value is not numeric or not a whole number
    """
    number = to_number(value, default)
    if isinstance(number, float):
        if not number.is_integer():
            raise CalculationError(f"Not a whole number: {value!r}")
        return int(number)
    return number

_TRUE_STRINGS = {'true', 'yes', 'y', '1'}
_FALSE_STRINGS = {'false', 'no', 'n', '0', ''}

def to_bool(value, default: bool = False) -> bool:
    """Coerce a flag from a loosely typed record.

    Strings are matched case-insensitively against true/false spellings.

    Raises:
        CalculationError: for strings that are not a recognised flag
    """
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise CalculationError(f"Not a boolean value: {value!r}")
    return bool(value)
