"""
Helper Utilities Module
Common utility functions used across the application.
"""

from datetime import datetime
from typing import Any, Dict, Optional


_TRUE_VALUES = ('1', 't', 'T', 'TRUE', 'true', 'True')
_FALSE_VALUES = ('0', 'f', 'F', 'FALSE', 'false', 'False')


def parse_bool(value: str) -> bool:
    """
    Parse a strict boolean query value.

    Args:
        value: One of 1, t, T, TRUE, true, True, 0, f, F, FALSE, false, False

    Returns:
        Parsed boolean

    Raises:
        ValueError: If the value is not a recognised boolean
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean: {value!r}")


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, matching the stored columns."""
    return datetime.utcnow()


def safe_get(data: Dict, *keys, default: Any = None) -> Any:
    """
    Safely get nested dictionary value.

    Args:
        data: Dictionary to search
        *keys: Keys to traverse
        default: Default value if not found

    Returns:
        Value at path or default
    """
    result = data
    for key in keys:
        if isinstance(result, dict):
            result = result.get(key)
        else:
            return default
        if result is None:
            return default
    return result


def truncate_string(s: Optional[str], max_length: int = 255) -> Optional[str]:
    """Truncate string to maximum length."""
    if s is None:
        return None
    if len(s) <= max_length:
        return s
    return s[:max_length - 3] + '...'
