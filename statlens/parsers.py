"""
Tabular parsers.

Turns delimited text and spreadsheet bytes into a Table of coerced rows:
- Delimited text: simple line/field splitting (no quoted delimiters)
- Spreadsheets: first sheet only, read through pandas/openpyxl
- Degenerate content always yields an empty or partial Table, never an error
- Only unreadable spreadsheet bytes raise (SpreadsheetParseError)
"""
import io
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from statlens.coercion import TypedValue, coerce
from statlens.errors import SpreadsheetParseError, UnsupportedFileTypeError
from statlens.logging_config import get_logger

logger = get_logger(__name__)

Row = Dict[str, TypedValue]

LINE_BREAK_PATTERN = re.compile(r'\r\n|\n|\r')

TEXT_ENCODINGS = ['utf-8-sig', 'cp1252', 'latin-1']


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class Table:
    """Headers in source order plus rows keyed by header."""
    headers: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "Table":
        return cls(headers=[], rows=[])

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.headers and not self.rows

    def column(self, name: str) -> List[TypedValue]:
        """All values of a column; an unknown column yields an empty list."""
        if name not in self.headers:
            return []
        return [row[name] for row in self.rows]


# ============================================================================
# DELIMITED TEXT
# ============================================================================

def _unquote(cell: str) -> str:
    """Trim and strip one layer of matching surrounding quotes."""
    cell = cell.strip()
    if len(cell) >= 2 and cell[0] == cell[-1] and cell[0] in ('"', "'"):
        return cell[1:-1]
    return cell


def parse_delimited(text: str, delimiter: str = ",") -> Table:
    """
    Parse CSV/TSV text into a Table.

    The first non-empty line is the header row. Whitespace-only lines are
    skipped. Fields beyond the header count are ignored; missing trailing
    fields become Null.

    Args:
        text: Decoded file content
        delimiter: Single field separator ("," or tab)

    Returns:
        Table with coerced values
    """
    lines = LINE_BREAK_PATTERN.split(text)

    header_index = next((i for i, line in enumerate(lines) if line.strip()), None)
    if header_index is None:
        return Table.empty()

    headers = [_unquote(h) for h in lines[header_index].split(delimiter)]
    rows: List[Row] = []

    for line in lines[header_index + 1:]:
        if not line.strip():
            continue
        fields = line.split(delimiter)
        row = {}
        for index, header in enumerate(headers):
            raw = _unquote(fields[index]) if index < len(fields) else None
            row[header] = coerce(raw)
        rows.append(row)

    logger.debug(f"Parsed delimited text: {len(headers)} columns, {len(rows)} rows")
    return Table(headers=headers, rows=rows)


# ============================================================================
# SPREADSHEETS
# ============================================================================

def _header_text(cell: Any) -> str:
    if cell is None or (not isinstance(cell, str) and pd.isna(cell)):
        return ""
    return str(cell).strip()


def parse_spreadsheet(data: bytes) -> Table:
    """
    Parse the first sheet of an Excel workbook into a Table.

    Rows that are entirely missing after coercion are dropped. A sheet with
    no header row, or blank headers and no data, yields Table.empty().

    Args:
        data: Raw workbook bytes

    Returns:
        Table with coerced values

    Raises:
        SpreadsheetParseError: If the bytes are not a readable workbook
    """
    try:
        sheet = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,  # null tokens are decided by coerce()
        )
    except Exception as e:
        raise SpreadsheetParseError(f"Could not read spreadsheet: {e}") from e

    if sheet.empty:
        return Table.empty()

    records = sheet.values.tolist()
    headers = [_header_text(cell) for cell in records[0]]

    rows: List[Row] = []
    for record in records[1:]:
        row = {}
        for index, header in enumerate(headers):
            row[header] = coerce(record[index] if index < len(record) else None)
        if all(value.is_null for value in row.values()):
            continue
        rows.append(row)

    if not any(headers) and not rows:
        return Table.empty()

    logger.debug(f"Parsed spreadsheet: {len(headers)} columns, {len(rows)} rows")
    return Table(headers=headers, rows=rows)


# ============================================================================
# FILE DISPATCH
# ============================================================================

def decode_text(data: bytes, encodings: Sequence[str] = TEXT_ENCODINGS) -> str:
    """Decode bytes trying each encoding in turn."""
    for encoding in encodings:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode('utf-8', errors='ignore')


def parse_file(data: bytes, file_name: str) -> Table:
    """
    Parse a tabular upload by extension.

    Supports: .csv (comma), .tsv (tab), .xlsx/.xls (first sheet)
    """
    ext = Path(file_name).suffix.lower()

    if ext == '.csv':
        return parse_delimited(decode_text(data), ",")
    elif ext == '.tsv':
        return parse_delimited(decode_text(data), "\t")
    elif ext in ['.xlsx', '.xls']:
        return parse_spreadsheet(data)
    else:
        raise UnsupportedFileTypeError(f"Unsupported tabular file type: {ext or file_name}")
