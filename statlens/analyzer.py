"""
Column Analyzer.

Infers one dominant type per column and computes a statistics summary:
- Type = majority tag over the first TYPE_SAMPLE_SIZE non-missing values
- Number columns: mean, median, sample std dev, min, max, mode
- String/Boolean columns: value counts, unique values, mode
- Date columns: earliest/latest as YYYY-MM-DD
- missing_count is always populated

Two fallback rules are kept as named policies so each can be tested alone:
numeric_string_override() and categorical_fallback().
"""
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from statlens.coercion import (
    TypedValue,
    ValueKind,
    as_number,
    format_date,
    is_plain_numeric_string,
    value_to_string,
)
from statlens.config import TYPE_SAMPLE_SIZE
from statlens.parsers import Table

StatValue = Union[float, str]


# ============================================================================
# DATA CLASSES
# ============================================================================

class ColumnType(str, Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    STRING = "string"
    UNKNOWN = "unknown"


KIND_TO_COLUMN_TYPE = {
    ValueKind.NUMBER: ColumnType.NUMBER,
    ValueKind.BOOLEAN: ColumnType.BOOLEAN,
    ValueKind.DATE: ColumnType.DATE,
    ValueKind.STRING: ColumnType.STRING,
}


@dataclass
class ColumnStats:
    """Statistics for a single column. Optional fields are None when not applicable."""
    missing_count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    std_dev: Optional[float] = None
    min: Optional[StatValue] = None
    max: Optional[StatValue] = None
    mode: Optional[StatValue] = None
    unique_values: Optional[List[Any]] = None
    value_counts: Optional[Dict[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization, omitting unset fields."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class ColumnInfo:
    name: str
    type: ColumnType
    stats: ColumnStats = field(default_factory=lambda: ColumnStats(missing_count=0))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.value, "stats": self.stats.to_dict()}


# ============================================================================
# TYPE INFERENCE POLICIES
# ============================================================================

def majority_value_kind(sample: Sequence[TypedValue]) -> Optional[ValueKind]:
    """
    Most frequent kind in the sample.

    The first kind to reach the running maximum keeps it unless another kind
    strictly exceeds that count later.
    """
    counts: Dict[ValueKind, int] = {}
    best_kind = None
    best_count = 0
    for value in sample:
        counts[value.kind] = counts.get(value.kind, 0) + 1
        if counts[value.kind] > best_count:
            best_count = counts[value.kind]
            best_kind = value.kind
    return best_kind


def numeric_string_override(column_type: ColumnType, sample: Sequence[TypedValue]) -> ColumnType:
    """A String majority whose sampled values are all blank or plain numeric strings is Number."""
    if column_type is not ColumnType.STRING or not sample:
        return column_type
    for value in sample:
        text = value_to_string(value).strip()
        if text and not is_plain_numeric_string(text):
            return column_type
    return ColumnType.NUMBER


def categorical_fallback(column_type: ColumnType, numeric_values: Sequence[float]) -> ColumnType:
    """A Number column without a single usable number is summarized as categorical."""
    if column_type is ColumnType.NUMBER and len(numeric_values) == 0:
        return ColumnType.STRING
    return column_type


def infer_column_type(values: Sequence[TypedValue], sample_size: int = TYPE_SAMPLE_SIZE) -> ColumnType:
    """Dominant ColumnType for a column's values (missing values are ignored)."""
    present = [v for v in values if not v.is_null]
    if not present:
        return ColumnType.UNKNOWN
    sample = present[:sample_size]
    column_type = KIND_TO_COLUMN_TYPE[majority_value_kind(sample)]
    return numeric_string_override(column_type, sample)


# ============================================================================
# STATISTICS
# ============================================================================

def median_of_sorted(values: Sequence[float]) -> float:
    """Midpoint of an ascending sequence; average of the two middles for even length."""
    n = len(values)
    middle = n // 2
    if n % 2 == 0:
        return (values[middle - 1] + values[middle]) / 2
    return values[middle]


def first_most_common(keys: Sequence[Any]) -> Any:
    """Most frequent key; ties go to the key seen first."""
    # Counter.most_common sorts stably, so insertion order breaks ties
    return Counter(keys).most_common(1)[0][0]


def _numeric_stats(stats: ColumnStats, numbers: List[float]) -> None:
    numbers = sorted(numbers)
    arr = np.array(numbers, dtype=float)
    n = len(numbers)

    mean = float(np.sum(arr) / n)
    # Sample variance; a single value divides by 1
    variance = float(np.sum((arr - mean) ** 2) / (n - 1 if n > 1 else 1))

    stats.mean = mean
    stats.median = float(median_of_sorted(numbers))
    stats.std_dev = float(np.sqrt(variance))
    stats.min = numbers[0]
    stats.max = numbers[-1]
    stats.mode = first_most_common(numbers)


def _categorical_stats(stats: ColumnStats, present: List[TypedValue]) -> None:
    counts = Counter(value_to_string(v) for v in present)
    stats.value_counts = dict(counts)
    stats.unique_values = list(counts.keys())
    if stats.unique_values:
        stats.mode = counts.most_common(1)[0][0]


def _date_stats(stats: ColumnStats, present: List[TypedValue]) -> None:
    dates = sorted(v.value for v in present if v.kind is ValueKind.DATE)
    if dates:
        stats.min = format_date(dates[0])
        stats.max = format_date(dates[-1])


def _synthesize_unique_values(column_type: ColumnType, present: List[TypedValue]) -> List[Any]:
    """Distinct values in first-occurrence order, rendered per column type."""
    seen = set()
    unique = []
    for value in present:
        if column_type is ColumnType.DATE and value.kind is ValueKind.DATE:
            item = format_date(value.value)
        elif column_type is ColumnType.BOOLEAN:
            item = value_to_string(value)
        else:
            item = value.value
        # kind is part of the key so True and 1.0 stay distinct
        key = (value.kind, item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def analyze_column(name: str, values: Sequence[TypedValue]) -> ColumnInfo:
    """
    Infer the type of one column and compute its statistics.

    Args:
        name: Column header
        values: Every value of the column, missing included

    Returns:
        ColumnInfo
    """
    present = [v for v in values if not v.is_null]
    stats = ColumnStats(missing_count=len(values) - len(present))

    column_type = infer_column_type(values)
    if column_type is ColumnType.UNKNOWN:
        return ColumnInfo(name=name, type=column_type, stats=stats)

    summary_type = column_type
    if column_type is ColumnType.NUMBER:
        numbers = [n for n in (as_number(v) for v in present) if n is not None]
        summary_type = categorical_fallback(column_type, numbers)
        if summary_type is ColumnType.NUMBER:
            _numeric_stats(stats, numbers)

    if summary_type in (ColumnType.STRING, ColumnType.BOOLEAN):
        _categorical_stats(stats, present)

    if column_type is ColumnType.DATE:
        _date_stats(stats, present)

    if stats.unique_values is None:
        stats.unique_values = _synthesize_unique_values(column_type, present)

    return ColumnInfo(name=name, type=column_type, stats=stats)


def analyze_columns(table: Table) -> List[ColumnInfo]:
    """
    Analyze every column of a table, preserving header order.

    Args:
        table: Parsed table

    Returns:
        One ColumnInfo per header
    """
    return [analyze_column(header, table.column(header)) for header in table.headers]


def find_column(column_infos: Sequence[ColumnInfo], name: Optional[str]) -> Optional[ColumnInfo]:
    """Case-insensitive lookup of a column by name."""
    if not name:
        return None
    wanted = name.lower()
    for info in column_infos:
        if info.name.lower() == wanted:
            return info
    return None
