"""
statlens: tabular statistics and natural-language calculation requests.

Key modules:
- coercion: per-cell type coercion into TypedValue
- parsers: CSV/TSV and Excel parsing into a Table
- analyzer: column type inference and per-column statistics
- calculator: single-statistic computation straight from the table
- interpreter: LLM-backed interpretation of calculation questions
- llm_client: OpenRouter service object
- dataset: upload entry point and prompt summary
- qa: end-to-end question answering over datasets and documents
- documents: PDF/DOCX/TXT text extraction
"""
from statlens.coercion import TypedValue, ValueKind, coerce
from statlens.parsers import Table, parse_delimited, parse_spreadsheet, parse_file
from statlens.analyzer import ColumnInfo, ColumnStats, ColumnType, analyze_columns
from statlens.calculator import Operation, calculate_dynamic_stat
from statlens.config import LLMConfig, load_llm_config
from statlens.llm_client import LLMService
from statlens.interpreter import (
    CalculationInterpretation,
    CalculationResolution,
    interpret_calculation_request,
    resolve_calculation,
)
from statlens.dataset import ParsedDataset, load_dataset, format_data_summary
from statlens.qa import DataAnswer, DocumentAnswer, answer_data_question, answer_document_question
from statlens.documents import DocumentText, extract_text, text_from_input
from statlens.errors import (
    StatlensError,
    ConfigurationError,
    ParseError,
    SpreadsheetParseError,
    UnsupportedFileTypeError,
    EmptyDatasetError,
    DocumentExtractionError,
    LLMServiceError,
)

__version__ = "0.1.0"

__all__ = [
    # Coercion
    "TypedValue",
    "ValueKind",
    "coerce",
    # Parsing
    "Table",
    "parse_delimited",
    "parse_spreadsheet",
    "parse_file",
    # Analysis
    "ColumnInfo",
    "ColumnStats",
    "ColumnType",
    "analyze_columns",
    "Operation",
    "calculate_dynamic_stat",
    # LLM
    "LLMConfig",
    "load_llm_config",
    "LLMService",
    "CalculationInterpretation",
    "CalculationResolution",
    "interpret_calculation_request",
    "resolve_calculation",
    # Datasets and documents
    "ParsedDataset",
    "load_dataset",
    "format_data_summary",
    "DataAnswer",
    "answer_data_question",
    "DocumentText",
    "extract_text",
    "text_from_input",
    "DocumentAnswer",
    "answer_document_question",
    # Errors
    "StatlensError",
    "ConfigurationError",
    "ParseError",
    "SpreadsheetParseError",
    "UnsupportedFileTypeError",
    "EmptyDatasetError",
    "DocumentExtractionError",
    "LLMServiceError",
]
