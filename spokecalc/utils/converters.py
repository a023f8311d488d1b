"""Type conversion utilities for safely handling component metadata.

Metadata values arrive as strings from the storefront; everything numeric
goes through these helpers so a malformed value never raises.
"""

import math
import re
from typing import Any


def safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert a value to float.

    Args:
        val: Value to convert (can be str, int, float, None, etc.)
        default: Value to return if conversion fails

    Returns:
        Converted float or default value

    Examples:
        >>> safe_float("3.14")
        3.14
        >>> safe_float(None)
        0.0
        >>> safe_float("invalid", default=-1.0)
        -1.0
    """
    if val is None or val == "" or isinstance(val, bool):
        return default
    try:
        result = float(val)
    except (ValueError, TypeError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def safe_int(val: Any, default: int = 0) -> int:
    """Safely convert a value to int.

    Examples:
        >>> safe_int("42")
        42
        >>> safe_int(3.7)
        3
        >>> safe_int(None)
        0
    """
    if val is None or val == "":
        return default
    try:
        return int(float(val))  # Handle "3.0" -> 3
    except (ValueError, TypeError, OverflowError):
        return default


def parse_spoke_count(val: Any) -> int:
    """Parse a spoke-count spec such as "32", "32h" or "28 Hole" into an int.

    Returns 0 when no count can be found.
    """
    if val is None:
        return 0
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return safe_int(val)
    match = re.search(r"\d+", str(val))
    return int(match.group(0)) if match else 0
