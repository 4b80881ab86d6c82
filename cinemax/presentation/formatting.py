"""Display formatting for dates and ratings."""

import math
from datetime import date

ONE_DECIMAL_ARGUMENT = 10.0


def format_date(value: date, pattern: str) -> str:
    """Format a date with a strftime pattern, e.g. "%Y" or "%d %b %Y"."""
    return value.strftime(pattern)


def round_to_one_decimal(value: float) -> float:
    """Round to one decimal place, halves going up (7.25 -> 7.3, -7.25 -> -7.2)."""
    return math.floor(value * ONE_DECIMAL_ARGUMENT + 0.5) / ONE_DECIMAL_ARGUMENT
