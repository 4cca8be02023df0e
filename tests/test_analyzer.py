"""
Unit tests for the column analyzer.
Covers type voting, both fallback policies, and each statistics branch.
"""

import math
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from statlens.analyzer import (
    ColumnType,
    analyze_column,
    analyze_columns,
    categorical_fallback,
    find_column,
    infer_column_type,
    majority_value_kind,
    numeric_string_override,
)
from statlens.coercion import TypedValue, ValueKind, coerce
from statlens.parsers import Table, parse_delimited


def _column(raw_values):
    return [coerce(v) for v in raw_values]


# ============================================================================
# TYPE INFERENCE
# ============================================================================

def test_majority_first_to_reach_maximum_wins():
    """Test: ties keep the kind that reached the count first"""
    number = TypedValue(ValueKind.NUMBER, 1.0)
    text = TypedValue(ValueKind.STRING, "x")
    assert majority_value_kind([number, text]) is ValueKind.NUMBER
    assert majority_value_kind([number, text, text, number]) is ValueKind.STRING
    assert majority_value_kind([text, number, number, text]) is ValueKind.NUMBER
    assert majority_value_kind([number, text, text]) is ValueKind.STRING


def test_type_uses_first_200_values_only():
    """Test: values beyond the sample do not vote"""
    values = _column(["word"] * 200 + ["1"] * 300)
    assert infer_column_type(values) is ColumnType.STRING
    assert infer_column_type(values, sample_size=500) is ColumnType.NUMBER


def test_numeric_string_override():
    """Test: String majority made only of numeric-looking strings becomes Number"""
    numeric_strings = [TypedValue(ValueKind.STRING, "12"), TypedValue(ValueKind.STRING, "-3.5")]
    assert numeric_string_override(ColumnType.STRING, numeric_strings) is ColumnType.NUMBER

    mixed = numeric_strings + [TypedValue(ValueKind.STRING, "abc")]
    assert numeric_string_override(ColumnType.STRING, mixed) is ColumnType.STRING
    assert numeric_string_override(ColumnType.BOOLEAN, numeric_strings) is ColumnType.BOOLEAN


def test_categorical_fallback():
    """Test: Number with no usable numbers is summarized as categorical"""
    assert categorical_fallback(ColumnType.NUMBER, []) is ColumnType.STRING
    assert categorical_fallback(ColumnType.NUMBER, [1.0]) is ColumnType.NUMBER
    assert categorical_fallback(ColumnType.STRING, []) is ColumnType.STRING


def test_overflowing_numeric_strings_use_categorical_stats():
    """Test: numeric-looking strings that are not finite floats"""
    huge = "9" * 400
    info = analyze_column("big", _column([huge, huge]))
    assert info.type is ColumnType.NUMBER
    assert info.stats.mean is None
    assert info.stats.value_counts == {huge: 2}
    assert info.stats.mode == huge


# ============================================================================
# NUMERIC STATISTICS
# ============================================================================

def test_median_even_and_odd():
    """Test: midpoint rule"""
    assert analyze_column("v", _column([4, 1, 3, 2])).stats.median == 2.5
    assert analyze_column("v", _column([3, 1, 2])).stats.median == 2


def test_constant_column_std_dev_is_zero():
    """Test: [10, 10, 10] has zero deviation"""
    stats = analyze_column("v", _column(["10", "10", "10"])).stats
    assert stats.std_dev == 0
    assert stats.mean == 10


def test_single_value_column():
    """Test: one value gives mean=median=min=max and std dev 0"""
    stats = analyze_column("v", _column(["5"])).stats
    assert stats.mean == stats.median == stats.min == stats.max == 5
    assert stats.std_dev == 0
    assert not math.isnan(stats.std_dev)
    assert stats.mode == 5


def test_sample_standard_deviation():
    """Test: divisor is n - 1"""
    stats = analyze_column("v", _column([2, 4, 4, 4, 5, 5, 7, 9])).stats
    assert stats.mean == 5
    assert stats.std_dev == pytest.approx(math.sqrt(32 / 7))
    assert stats.min == 2
    assert stats.max == 9
    assert stats.mode == 4


def test_numeric_mode_tie_goes_to_smallest():
    """Test: frequency map is built over the sorted values"""
    stats = analyze_column("v", _column([3, 1, 3, 1])).stats
    assert stats.mode == 1


def test_mixed_number_column_unique_values():
    """Test: non-numeric entries are skipped for stats but kept as unique values"""
    info = analyze_column("v", _column(["1", "2", "x", "2"]))
    assert info.type is ColumnType.NUMBER
    assert info.stats.mean == pytest.approx(5 / 3)
    assert info.stats.unique_values == [1.0, 2.0, "x"]
    assert info.stats.value_counts is None


def test_number_column_unique_values_keep_booleans_distinct():
    """Test: true/false stay separate from 1 and 0 in a number column"""
    from statlens.calculator import Operation, calculate_dynamic_stat
    from statlens.interpreter import CalculationInterpretation, resolve_calculation

    table = parse_delimited("v\n1\n2\n3\ntrue\n0\nfalse")
    columns = analyze_columns(table)
    unique = columns[0].stats.unique_values

    assert columns[0].type is ColumnType.NUMBER
    assert len(unique) == 6
    assert [type(item) for item in unique] == [float, float, float, bool, float, bool]

    cached = resolve_calculation(CalculationInterpretation(Operation.COUNTUNIQUE, "v"), table, columns)
    assert cached.result_value == 6
    assert cached.result_value == calculate_dynamic_stat(table, "v", Operation.COUNTUNIQUE)


# ============================================================================
# CATEGORICAL, BOOLEAN, DATE
# ============================================================================

def test_string_mode_tie_goes_to_first_seen():
    """Test: ["a", "b", "a", "b"] has mode "a" """
    stats = analyze_column("v", _column(["a", "b", "a", "b"])).stats
    assert stats.mode == "a"
    assert stats.value_counts == {"a": 2, "b": 2}
    assert stats.unique_values == ["a", "b"]


def test_boolean_column():
    """Test: booleans are counted by their string form"""
    info = analyze_column("flag", _column(["true", "false", "TRUE"]))
    assert info.type is ColumnType.BOOLEAN
    assert info.stats.value_counts == {"true": 2, "false": 1}
    assert info.stats.mode == "true"
    assert info.stats.unique_values == ["true", "false"]


def test_date_column():
    """Test: min/max and unique values as YYYY-MM-DD"""
    info = analyze_column("when", _column(["2024-03-01", "2023-12-25", "2024-01-10", "2023-12-25"]))
    assert info.type is ColumnType.DATE
    assert info.stats.min == "2023-12-25"
    assert info.stats.max == "2024-03-01"
    assert info.stats.unique_values == ["2024-03-01", "2023-12-25", "2024-01-10"]
    assert info.stats.mean is None


# ============================================================================
# MISSING VALUES
# ============================================================================

def test_all_missing_column_is_unknown():
    """Test: only missing_count is populated"""
    info = analyze_column("empty", _column([None, "", "NA"]))
    assert info.type is ColumnType.UNKNOWN
    assert info.stats.to_dict() == {"missing_count": 3}


def test_missing_accounting_invariant():
    """Test: missing + present == row count for every column"""
    table = parse_delimited("a,b,c\n1,x,\nNA,y,\n3,,\n,z,true\nnull,w,")
    for info in analyze_columns(table):
        present = sum(1 for row in table.rows if not row[info.name].is_null)
        assert info.stats.missing_count + present == table.row_count


def test_analyze_columns_preserves_order():
    """Test: one ColumnInfo per header, in header order"""
    table = parse_delimited("z,a,m\n1,2,3")
    assert [info.name for info in analyze_columns(table)] == ["z", "a", "m"]
    assert analyze_columns(Table.empty()) == []


def test_find_column_is_case_insensitive():
    """Test: lookup ignores case"""
    infos = analyze_columns(parse_delimited("Age,Name\n30,Ann"))
    assert find_column(infos, "AGE").name == "Age"
    assert find_column(infos, "salary") is None
    assert find_column(infos, None) is None


def test_to_dict_omits_unset_fields():
    """Test: serialization drops None fields"""
    info = analyze_column("v", _column(["1", "3"]))
    data = info.to_dict()
    assert data["type"] == "number"
    assert "value_counts" not in data["stats"]
    assert data["stats"]["mean"] == 2
