"""
Unit tests for the delimited-text and spreadsheet parsers.
"""

import io
import sys
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from statlens.coercion import NULL, TypedValue, ValueKind
from statlens.errors import SpreadsheetParseError, UnsupportedFileTypeError
from statlens.parsers import Table, decode_text, parse_delimited, parse_file, parse_spreadsheet


def _workbook_bytes(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ============================================================================
# DELIMITED TEXT
# ============================================================================

def test_blank_lines_are_skipped():
    """Test: a blank line between rows is not a row"""
    table = parse_delimited("a,b\n1,2\n\n3,4")
    assert table.headers == ["a", "b"]
    assert table.row_count == 2
    assert table.rows[1]["a"] == TypedValue(ValueKind.NUMBER, 3.0)


def test_header_quotes_are_stripped():
    """Test: one layer of surrounding quotes is removed from headers"""
    table = parse_delimited('"Name","Age"\nAlice,30')
    assert table.headers == ["Name", "Age"]
    assert table.rows[0]["Age"] == TypedValue(ValueKind.NUMBER, 30.0)


def test_field_quotes_are_stripped():
    """Test: quoted fields are unwrapped before coercion"""
    table = parse_delimited("name,flag\n'Bob',\"true\"")
    assert table.rows[0]["name"] == TypedValue(ValueKind.STRING, "Bob")
    assert table.rows[0]["flag"] == TypedValue(ValueKind.BOOLEAN, True)


def test_short_rows_fill_with_null_and_extra_fields_are_ignored():
    """Test: missing trailing fields are Null, surplus fields dropped"""
    table = parse_delimited("a,b,c\n1\n1,2,3,4")
    assert table.rows[0]["b"] == NULL
    assert table.rows[0]["c"] == NULL
    assert set(table.rows[1].keys()) == {"a", "b", "c"}


def test_line_endings():
    """Test: CRLF, CR and LF all split lines"""
    table = parse_delimited("a,b\r\n1,2\r3,4\n5,6\r\n")
    assert table.row_count == 3


def test_leading_blank_lines_before_header():
    """Test: the first non-empty line is the header"""
    table = parse_delimited("\n  \n a , b \n1,2")
    assert table.headers == ["a", "b"]
    assert table.row_count == 1


def test_tab_delimiter():
    """Test: TSV parsing"""
    table = parse_delimited("x\ty\n1\tfoo", "\t")
    assert table.rows[0]["x"] == TypedValue(ValueKind.NUMBER, 1.0)
    assert table.rows[0]["y"] == TypedValue(ValueKind.STRING, "foo")


def test_quoted_delimiters_are_not_supported():
    """Test: a delimiter inside quotes still splits the field"""
    table = parse_delimited('a,b\n"x,y",2')
    assert table.rows[0]["a"] == TypedValue(ValueKind.STRING, '"x')
    assert table.rows[0]["b"] == TypedValue(ValueKind.STRING, 'y"')


def test_empty_text():
    """Test: empty input gives an empty table"""
    table = parse_delimited("   \n\n")
    assert table.is_empty
    assert table == Table.empty()


def test_header_only():
    """Test: a header row without data is a valid zero-row table"""
    table = parse_delimited("a,b\n")
    assert table.headers == ["a", "b"]
    assert table.row_count == 0
    assert not table.is_empty


# ============================================================================
# SPREADSHEETS
# ============================================================================

def test_spreadsheet_first_sheet():
    """Test: header row, typed cells, and empty rows dropped"""
    data = _workbook_bytes([
        ["Name", "Age", "Joined"],
        ["Alice", 30, datetime(2024, 1, 5)],
        [None, None, None],
        ["Bob", None, None],
    ])
    table = parse_spreadsheet(data)

    assert table.headers == ["Name", "Age", "Joined"]
    assert table.row_count == 2
    assert table.rows[0]["Age"] == TypedValue(ValueKind.NUMBER, 30.0)
    assert table.rows[0]["Joined"] == TypedValue(ValueKind.DATE, datetime(2024, 1, 5))
    assert table.rows[1]["Age"] == NULL


def test_spreadsheet_text_cells_are_coerced():
    """Test: text cells go through the same coercion as CSV fields"""
    data = _workbook_bytes([["code", "active"], ["12", "TRUE"], ["na", "x"]])
    table = parse_spreadsheet(data)
    assert table.rows[0]["code"] == TypedValue(ValueKind.NUMBER, 12.0)
    assert table.rows[0]["active"] == TypedValue(ValueKind.BOOLEAN, True)
    assert table.rows[1]["code"] == NULL


def test_spreadsheet_header_only():
    """Test: header row without data"""
    table = parse_spreadsheet(_workbook_bytes([["a", "b"]]))
    assert table.headers == ["a", "b"]
    assert table.row_count == 0


def test_empty_workbook():
    """Test: a sheet with no rows is an empty table, not an error"""
    table = parse_spreadsheet(_workbook_bytes([]))
    assert table.is_empty


def test_corrupt_spreadsheet_raises():
    """Test: unreadable bytes are fatal"""
    with pytest.raises(SpreadsheetParseError):
        parse_spreadsheet(b"this is not a workbook")


# ============================================================================
# FILE DISPATCH
# ============================================================================

def test_parse_file_dispatch():
    """Test: extension selects the parser"""
    assert parse_file(b"a,b\n1,2", "data.CSV").headers == ["a", "b"]
    assert parse_file(b"a\tb\n1\t2", "data.tsv").headers == ["a", "b"]
    assert parse_file(_workbook_bytes([["a"], [1]]), "book.xlsx").row_count == 1


def test_parse_file_unsupported():
    """Test: unknown extensions are rejected"""
    with pytest.raises(UnsupportedFileTypeError):
        parse_file(b"{}", "data.json")


def test_decode_text_fallbacks():
    """Test: BOM is stripped, cp1252 is tried before latin-1"""
    assert decode_text(b"\xef\xbb\xbfa,b") == "a,b"
    assert decode_text(b"caf\xe9") == "café"
    assert decode_text(b"\x93quoted\x94") == "\u201cquoted\u201d"
    assert decode_text(b"caf\x81") == "caf\x81"
