"""
Exception hierarchy for statlens.

Degenerate input (empty files, all-missing columns) never raises; these
exceptions cover unreadable input, configuration problems, and failed
LLM service calls.
"""


class StatlensError(Exception):
    """Base class for all statlens errors."""


class ConfigurationError(StatlensError):
    """Missing or invalid configuration (API key, model, numeric settings)."""


class ParseError(StatlensError):
    """Raised when a file cannot be turned into a table."""


class SpreadsheetParseError(ParseError):
    """The spreadsheet bytes could not be read (corrupt or not a workbook)."""


class UnsupportedFileTypeError(ParseError):
    """The file extension is not a supported tabular format."""


class EmptyDatasetError(ParseError):
    """The file parsed but holds no headers and no rows."""


class DocumentExtractionError(StatlensError):
    """Text could not be extracted from a document."""


class LLMServiceError(StatlensError):
    """A call to the LLM service failed (transport, HTTP status, payload)."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
