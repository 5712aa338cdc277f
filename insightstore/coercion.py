"""
Value Coercion Module

Locale-tolerant conversion of raw spreadsheet cells.
None of these functions raise: unparseable input degrades to a safe default.
"""

import math
import numbers
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd


_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^[+-]?\d+")
_DAY_FIRST_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})")


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def to_decimal(value: Any, default: float = 0.0) -> float:
    """
    Convert a cell to a float.

    Strings get their first comma turned into a period ("25,50" -> 25.5)
    and the longest leading number is taken. Anything unparseable yields
    `default`.
    """
    if _is_number(value):
        number = float(value)
        return number if math.isfinite(number) else default
    if value is None or isinstance(value, bool):
        return default

    text = str(value).strip().replace(",", ".", 1)
    match = _LEADING_FLOAT.match(text)
    if not match:
        return default
    try:
        number = float(match.group(0))
    except (ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def to_integer(value: Any) -> Optional[int]:
    """
    Convert a cell to an int from its leading digits.

    Returns None when no integer can be read, so callers can tell
    "missing" apart from an explicit 0.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if _is_number(value):
        number = float(value)
        return int(number) if math.isfinite(number) else None

    match = _LEADING_INT.match(str(value).strip())
    if not match:
        return None
    return int(match.group(0))


def _as_naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def to_timestamp(value: Any, now: datetime) -> datetime:
    """
    Convert a cell to a datetime.

    Native dates pass through. Strings starting with DD/MM/YYYY are read
    day-first; anything else goes through pandas' free-form parser.
    Falls back to `now` when nothing works.
    """
    if isinstance(value, datetime) or value is pd.NaT:
        if pd.isna(value):
            return now
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        return _as_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if value is None or isinstance(value, bool):
        return now

    text = str(value).strip()
    if not text:
        return now

    match = _DAY_FIRST_DATE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            return now

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return now
    if parsed is None or pd.isna(parsed):
        return now
    return _as_naive(parsed.to_pydatetime())
