"""
Value coercion for parsed table cells.

Every parser funnels raw cells through coerce(), which produces a TypedValue:
a tagged union over Null, Number, Boolean, Date and String. Downstream code
switches on TypedValue.kind instead of inspecting Python types.

Rules, in order:
- None / NaN / NaT / "", "na", "null" (any case) -> Null
- datetime, date, pandas.Timestamp -> Date
- bool -> Boolean, finite real number -> Number
- strings matching -?digits(.digits) -> Number (no exponents, no separators)
- "true" / "false" -> Boolean
- ISO 8601, M/D/YY(YY), D-Mon-YY(YY), Mon D, YYYY -> Date
- everything else -> String (trimmed)
"""
import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd


class ValueKind(Enum):
    NULL = "null"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    STRING = "string"


@dataclass(frozen=True)
class TypedValue:
    """A coerced cell value. Equality and hashing include the kind."""
    kind: ValueKind
    value: Any = None

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def __repr__(self) -> str:
        return f"TypedValue({self.kind.value}, {self.value!r})"


NULL = TypedValue(ValueKind.NULL, None)

NULL_TOKENS = {"", "na", "null"}

NUMERIC_PATTERN = re.compile(r'^-?\d+(\.\d+)?$')

ISO_DATE_PATTERN = re.compile(
    r'^\d{4}-\d{2}-\d{2}'
    r'([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$'
)
SLASH_DATE_PATTERN = re.compile(r'^\d{1,2}/\d{1,2}/(\d{2}|\d{4})$')
DASH_MONTH_DATE_PATTERN = re.compile(r'^\d{1,2}-[A-Za-z]{3}-(\d{2}|\d{4})$')
MONTH_NAME_DATE_PATTERN = re.compile(r'^[A-Za-z]{3,9}\.? \d{1,2}, \d{4}$')


# ============================================================================
# COERCION
# ============================================================================

def coerce(raw: Any) -> TypedValue:
    """
    Convert a raw cell into a TypedValue. Never raises.

    Args:
        raw: String from a delimited file, native value from a spreadsheet
             reader, or an existing TypedValue

    Returns:
        TypedValue
    """
    if isinstance(raw, TypedValue):
        return raw
    if raw is None or raw is pd.NaT or raw is pd.NA:
        return NULL

    if isinstance(raw, (datetime, date, np.datetime64)):
        return _coerce_date_object(raw)

    if isinstance(raw, (bool, np.bool_)):
        return TypedValue(ValueKind.BOOLEAN, bool(raw))

    if isinstance(raw, numbers.Real):
        number = float(raw)
        if math.isnan(number):
            return NULL
        if math.isfinite(number):
            return TypedValue(ValueKind.NUMBER, number)

    text = str(raw).strip()
    if text.lower() in NULL_TOKENS:
        return NULL

    number = parse_plain_number(text)
    if number is not None:
        return TypedValue(ValueKind.NUMBER, number)

    lowered = text.lower()
    if lowered in ("true", "false"):
        return TypedValue(ValueKind.BOOLEAN, lowered == "true")

    parsed_date = parse_date_string(text)
    if parsed_date is not None:
        return TypedValue(ValueKind.DATE, parsed_date)

    return TypedValue(ValueKind.STRING, text)


def _coerce_date_object(raw: Any) -> TypedValue:
    """Dates materialized by a reader; NaT and out-of-range values become Null."""
    try:
        if pd.isna(raw):
            return NULL
        if isinstance(raw, np.datetime64):
            raw = pd.Timestamp(raw)
        if isinstance(raw, pd.Timestamp):
            raw = raw.to_pydatetime()
        if not isinstance(raw, datetime):
            raw = datetime(raw.year, raw.month, raw.day)
        return TypedValue(ValueKind.DATE, _to_naive(raw))
    except (ValueError, OverflowError):
        return NULL


def _to_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_plain_number(text: str) -> Optional[float]:
    """Return the float for a plain integer/decimal string, else None."""
    if not NUMERIC_PATTERN.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


def is_plain_numeric_string(text: str) -> bool:
    return bool(NUMERIC_PATTERN.match(text.strip()))


def parse_date_string(text: str) -> Optional[datetime]:
    """Parse the supported date layouts; None when nothing matches or the date is invalid."""
    if ISO_DATE_PATTERN.match(text):
        iso = text.replace(" ", "T", 1)
        if iso.endswith("Z"):
            iso = iso[:-1] + "+00:00"
        # fromisoformat before 3.11 wants +HH:MM
        iso = re.sub(r'([+-]\d{2})(\d{2})$', r'\1:\2', iso)
        try:
            return _to_naive(datetime.fromisoformat(iso))
        except ValueError:
            return None

    if SLASH_DATE_PATTERN.match(text):
        year_format = "%Y" if len(text.rsplit("/", 1)[1]) == 4 else "%y"
        return _strptime(text, f"%m/%d/{year_format}")

    if DASH_MONTH_DATE_PATTERN.match(text):
        year_format = "%Y" if len(text.rsplit("-", 1)[1]) == 4 else "%y"
        return _strptime(text, f"%d-%b-{year_format}")

    if MONTH_NAME_DATE_PATTERN.match(text):
        cleaned = text.replace(".", "", 1)
        return _strptime(cleaned, "%b %d, %Y") or _strptime(cleaned, "%B %d, %Y")

    return None


def _strptime(text: str, fmt: str) -> Optional[datetime]:
    try:
        return datetime.strptime(text, fmt)
    except ValueError:
        return None


# ============================================================================
# VALUE HELPERS
# ============================================================================

def as_number(value: TypedValue) -> Optional[float]:
    """
    Numeric view of a TypedValue.

    Numbers pass through; plain numeric strings that coercion kept as String
    (non-finite as float) are retried and dropped. Booleans and dates are not
    numeric.
    """
    if value.kind is ValueKind.NUMBER:
        return value.value
    if value.kind is ValueKind.STRING:
        return parse_plain_number(value.value.strip())
    return None


def format_date(value: datetime) -> str:
    """Render a date as YYYY-MM-DD."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_number(value: float) -> str:
    """Shortest string for a float; integral values drop the trailing .0"""
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def value_to_string(value: TypedValue) -> str:
    """Canonical string key for frequency maps and prompt text."""
    if value.kind is ValueKind.NULL:
        return ""
    if value.kind is ValueKind.NUMBER:
        return format_number(value.value)
    if value.kind is ValueKind.BOOLEAN:
        return "true" if value.value else "false"
    if value.kind is ValueKind.DATE:
        return format_date(value.value)
    return value.value
