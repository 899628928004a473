"""
Display formatting for memo figures. Missing values render as "Not disclosed".
"""

import math
from typing import Any, Optional

NOT_DISCLOSED = "Not disclosed"


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == NOT_DISCLOSED:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def format_large_number(value: Any, prefix: str = "$") -> str:
    """1.5e12 -> "$1.50T", 2.3e9 -> "$2.30B", 4e6 -> "$4.00M"."""
    number = _to_float(value)
    if number is None or not math.isfinite(number):
        return NOT_DISCLOSED
    sign = "-" if number < 0 else ""
    magnitude = abs(number)
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
        if magnitude >= threshold:
            return f"{sign}{prefix}{magnitude / threshold:.2f}{suffix}"
    return f"{sign}{prefix}{magnitude:.2f}"


def format_percent(value: Any, decimals: int = 2) -> str:
    number = _to_float(value)
    if number is None:
        return NOT_DISCLOSED
    return f"{number:.{decimals}f}%"


def format_ratio(value: Any, decimals: int = 2) -> str:
    number = _to_float(value)
    if number is None:
        return NOT_DISCLOSED
    if not math.isfinite(number):
        return "N/A"
    return f"{number:.{decimals}f}"


def pad(items: Any, count: int, placeholder: Any = NOT_DISCLOSED) -> list:
    """First *count* entries of *items*, padded with *placeholder*."""
    values = list(items) if isinstance(items, (list, tuple)) else []
    values = values[:count]
    return values + [placeholder] * (count - len(values))
