"""Coercion helpers for HTML form and query-string values.

Browsers send everything as strings; an empty string means "not supplied".
"""

from typing import Any, Optional


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def is_one(value: Any) -> int:
    """Select/radio style flag: only "1" (or 1/True) is on."""
    return 1 if str(value) in ("1", "True", "true") else 0


def is_checked(value: Any) -> int:
    """Checkbox style flag: any non-empty value is on."""
    return 1 if value not in (None, "", "0", 0, False) else 0
