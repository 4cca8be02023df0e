"""
Dynamic Statistic Calculator.

Computes one statistic for one column directly from the Table, without
reading the analyzer's cached ColumnStats. Used for operations the analyzer
does not cache (SUM, VAR) and whenever a fresh value is wanted.

A column name that is not in the table behaves like an empty column:
the result is None (or 0 for SUM / COUNT / COUNTUNIQUE).
"""
from collections import Counter
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from statlens.analyzer import ColumnType, infer_column_type, median_of_sorted
from statlens.coercion import TypedValue, ValueKind, as_number, format_date, value_to_string
from statlens.parsers import Table

CalculationResult = Optional[Union[float, int, str]]


class Operation(str, Enum):
    SUM = "SUM"
    AVERAGE = "AVERAGE"
    MEDIAN = "MEDIAN"
    MODE = "MODE"
    MIN = "MIN"
    MAX = "MAX"
    COUNT = "COUNT"
    COUNTA = "COUNTA"
    COUNTUNIQUE = "COUNTUNIQUE"
    STDEV = "STDEV"
    VAR = "VAR"
    UNKNOWN = "UNKNOWN"


VALID_OPERATIONS = [op.value for op in Operation if op is not Operation.UNKNOWN]


def parse_operation(name: Optional[str]) -> Operation:
    """Map an operation name to Operation; anything unrecognized is UNKNOWN."""
    if not name:
        return Operation.UNKNOWN
    try:
        return Operation(str(name).strip().upper())
    except ValueError:
        return Operation.UNKNOWN


# ============================================================================
# HELPERS
# ============================================================================

def _numbers(values: List[TypedValue]) -> List[float]:
    return [n for n in (as_number(v) for v in values) if n is not None]


def _sample_variance(numbers: List[float]) -> Optional[float]:
    if len(numbers) < 2:
        return None
    return float(np.var(np.array(numbers, dtype=float), ddof=1))


def _mode(values: List[TypedValue]) -> CalculationResult:
    if not values:
        return None
    first_seen: Dict[str, TypedValue] = {}
    for value in values:
        first_seen.setdefault(value_to_string(value), value)
    key = Counter(value_to_string(v) for v in values).most_common(1)[0][0]
    winner = first_seen[key]
    if winner.kind is ValueKind.NUMBER:
        return winner.value
    return value_to_string(winner)


def _extreme(values: List[TypedValue], largest: bool) -> CalculationResult:
    pick = max if largest else min
    if infer_column_type(values) is ColumnType.DATE:
        dates = [v.value for v in values if v.kind is ValueKind.DATE]
        return format_date(pick(dates)) if dates else None
    numbers = _numbers(values)
    return pick(numbers) if numbers else None


# ============================================================================
# CALCULATION
# ============================================================================

def calculate_dynamic_stat(table: Table, column_name: str, operation: Union[Operation, str]) -> CalculationResult:
    """
    Compute a single statistic over one column.

    Args:
        table: Parsed table
        column_name: Exact header name
        operation: Operation or its name (e.g. "SUM")

    Returns:
        Number, YYYY-MM-DD / string (MODE, date MIN/MAX), or None when
        the statistic is not determinable
    """
    if not isinstance(operation, Operation):
        operation = parse_operation(operation)

    values = [v for v in table.column(column_name) if not v.is_null]

    if operation is Operation.SUM:
        return float(sum(_numbers(values)))

    if operation is Operation.AVERAGE:
        numbers = _numbers(values)
        return sum(numbers) / len(numbers) if numbers else None

    if operation is Operation.MEDIAN:
        numbers = sorted(_numbers(values))
        return float(median_of_sorted(numbers)) if numbers else None

    if operation is Operation.MODE:
        return _mode(values)

    if operation is Operation.MIN:
        return _extreme(values, largest=False)

    if operation is Operation.MAX:
        return _extreme(values, largest=True)

    if operation in (Operation.COUNT, Operation.COUNTA):
        return len(values)

    if operation is Operation.COUNTUNIQUE:
        return len(set(values))

    if operation is Operation.STDEV:
        variance = _sample_variance(_numbers(values))
        return float(np.sqrt(variance)) if variance is not None else None

    if operation is Operation.VAR:
        return _sample_variance(_numbers(values))

    return None
