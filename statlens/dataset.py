"""
Dataset loading and prompt summaries.

load_dataset() is the upload entry point: parse by file extension, analyze
once, and keep the ColumnInfo cache next to the table for the session.
format_data_summary() renders the textual block handed to LLM prompts.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from statlens.analyzer import ColumnInfo, analyze_columns
from statlens.coercion import format_number, value_to_string
from statlens.config import SAMPLE_ROW_COUNT, SUMMARY_SAMPLE_ROWS
from statlens.errors import EmptyDatasetError
from statlens.logging_config import get_logger
from statlens.parsers import Row, Table, parse_file

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParsedDataset:
    """A parsed table plus its cached column analysis."""
    file_name: str
    table: Table
    column_infos: List[ColumnInfo] = field(default_factory=list)

    @property
    def headers(self) -> List[str]:
        return self.table.headers

    @property
    def rows(self) -> List[Row]:
        return self.table.rows

    @property
    def row_count(self) -> int:
        return self.table.row_count

    @property
    def column_count(self) -> int:
        return len(self.table.headers)

    @property
    def sample_rows(self) -> List[Row]:
        return self.table.rows[:SAMPLE_ROW_COUNT]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "file_name": self.file_name,
            "row_count": self.row_count,
            "column_count": self.column_count,
            "headers": list(self.headers),
            "columns": [info.to_dict() for info in self.column_infos],
        }


def build_dataset(table: Table, file_name: str) -> ParsedDataset:
    """Analyze a parsed table and bundle the result."""
    return ParsedDataset(file_name=file_name, table=table, column_infos=analyze_columns(table))


def load_dataset(data: bytes, file_name: str) -> ParsedDataset:
    """
    Parse and analyze an uploaded tabular file.

    Args:
        data: Raw file bytes
        file_name: Original file name (extension selects the parser)

    Returns:
        ParsedDataset

    Raises:
        UnsupportedFileTypeError: Unknown extension
        SpreadsheetParseError: Corrupt workbook
        EmptyDatasetError: No headers and no rows
    """
    table = parse_file(data, file_name)
    if table.is_empty:
        raise EmptyDatasetError(
            f"{file_name} is empty or has no usable structure. Check the file format."
        )

    dataset = build_dataset(table, file_name)
    logger.info(f"Loaded {file_name}: {dataset.row_count:,} rows, {dataset.column_count} columns")
    return dataset


# ============================================================================
# PROMPT SUMMARY
# ============================================================================

def _stat_text(value: Any) -> str:
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def format_column_line(info: ColumnInfo) -> str:
    """One summary line: '- name: type [stat=..., ...]'"""
    stats = info.stats
    parts = []
    if stats.mean is not None:
        parts.append(f"mean={stats.mean:.2f}")
    if stats.median is not None:
        parts.append(f"median={stats.median:.2f}")
    if stats.min is not None:
        parts.append(f"min={_stat_text(stats.min)}")
    if stats.max is not None:
        parts.append(f"max={_stat_text(stats.max)}")
    if stats.std_dev is not None:
        parts.append(f"stdev={stats.std_dev:.2f}")
    if stats.unique_values:
        parts.append(f"unique={len(stats.unique_values)}")
    if stats.missing_count > 0:
        parts.append(f"missing={stats.missing_count}")

    line = f"- {info.name}: {info.type.value}"
    if parts:
        line += f" [{', '.join(parts)}]"
    return line


def format_data_summary(dataset: ParsedDataset, sample_rows: int = SUMMARY_SAMPLE_ROWS) -> str:
    """
    Render the dataset summary block used as LLM prompt context.

    Includes row/column counts, one line per column with its inline
    statistics, and the first few rows.
    """
    lines = [
        f"Dataset: {dataset.file_name}",
        f"Rows: {dataset.row_count}, Columns: {dataset.column_count}",
        "",
        "Column details (name: type [key statistics if any]):",
    ]
    lines.extend(format_column_line(info) for info in dataset.column_infos)

    rows = dataset.sample_rows[:sample_rows]
    if rows:
        lines.append("")
        lines.append("Sample data (first rows):")
        lines.append(", ".join(dataset.headers))
        for row in rows:
            cells = [value_to_string(row[h]) if not row[h].is_null else "N/A" for h in dataset.headers]
            lines.append(", ".join(cells))

    return "\n".join(lines)
