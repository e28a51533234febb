"""Lenient numeric parsing for uploaded values."""

import math
from typing import Any, Optional


def coerce_float(value: Any) -> Optional[float]:
    """Parse ``value`` as a finite float.

    Accepts numbers and numeric strings such as ``"+130"`` or ``" -3.5 "``.
    Returns None for blanks, booleans, non-numeric text, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_int(value: Any) -> Optional[int]:
    """Parse ``value`` as an int, accepting integral floats like ``"12.0"``."""
    number = coerce_float(value)
    if number is None or number != int(number):
        return None
    return int(number)
