"""
Calculation-Request Interpreter Bridge.

Connects a free-text question to a deterministic computation:

1. interpret_calculation_request() asks the LLM service for a loose
   {operation, columnName, errorMessage} object and validates it against the
   real column schema. It never raises; service failures become an UNKNOWN
   interpretation carrying a diagnostic.
2. resolve_calculation() reads the cached ColumnStats (or runs the
   calculator for SUM / VAR) and produces the context message handed to the
   answer-generation call.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from statlens.analyzer import ColumnInfo, find_column
from statlens.calculator import Operation, calculate_dynamic_stat
from statlens.llm_client import InterpretationService, describe_service_error
from statlens.logging_config import get_logger
from statlens.parsers import Table

logger = get_logger(__name__)

ResultValue = Optional[Union[float, int, str]]

# Operations answered straight from ColumnStats
CACHED_STAT_FIELDS = {
    Operation.AVERAGE: "mean",
    Operation.MEDIAN: "median",
    Operation.MIN: "min",
    Operation.MAX: "max",
    Operation.MODE: "mode",
    Operation.STDEV: "std_dev",
}

# Operations recomputed from the table
DYNAMIC_OPERATIONS = {Operation.SUM, Operation.VAR}

NULL_COLUMN_TOKENS = {"", "null", "none"}


@dataclass
class CalculationInterpretation:
    operation: Operation
    column_name: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation.value,
            "columnName": self.column_name,
            "errorMessage": self.error_message,
        }


@dataclass
class CalculationResolution:
    result_value: ResultValue
    context_message: str


# ============================================================================
# INTERPRETATION
# ============================================================================

def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return None if text.lower() in NULL_COLUMN_TOKENS else text


def validate_interpretation(raw: Dict[str, Any], column_infos: Sequence[ColumnInfo]) -> CalculationInterpretation:
    """
    Sanitize a raw service reply against the real schema.

    An unrecognized operation becomes UNKNOWN with an explanation. An unknown
    column keeps the operation but gets a "not found" error message.
    """
    raw_operation = _clean_text(raw.get("operation")) or ""
    column_name = _clean_text(raw.get("columnName"))
    error_message = _clean_text(raw.get("errorMessage"))

    try:
        operation = Operation(raw_operation.upper())
    except ValueError:
        logger.warning(f"Invalid operation from LLM: {raw_operation!r}. Using UNKNOWN.")
        operation = Operation.UNKNOWN
        error_message = error_message or f"Operation '{raw_operation}' is not recognized."

    if column_name and find_column(column_infos, column_name) is None:
        logger.warning(f"LLM referenced unknown column: {column_name!r}")
        error_message = error_message or f"Column '{column_name}' was not found."

    return CalculationInterpretation(
        operation=operation,
        column_name=column_name,
        error_message=error_message,
    )


def interpret_calculation_request(
    question: str,
    column_infos: Sequence[ColumnInfo],
    service: InterpretationService,
) -> CalculationInterpretation:
    """
    Interpret a natural-language calculation request.

    Args:
        question: The user's question, passed verbatim to the service
        column_infos: Analyzer output for the dataset
        service: Object implementing interpret_calculation()

    Returns:
        A validated CalculationInterpretation; never raises
    """
    columns = [{"name": info.name, "type": info.type.value} for info in column_infos]
    try:
        raw = service.interpret_calculation(question, columns)
        if not isinstance(raw, dict):
            raise TypeError(f"expected a JSON object, got {type(raw).__name__}")
    except Exception as e:
        logger.error(f"Interpretation request failed for question {question!r}: {e}")
        return CalculationInterpretation(
            operation=Operation.UNKNOWN,
            column_name=None,
            error_message=f"Failed to interpret the request due to an internal error: {describe_service_error(e)}",
        )
    return validate_interpretation(raw, column_infos)


# ============================================================================
# RESOLUTION
# ============================================================================

def format_display_value(value: ResultValue) -> str:
    """Thousands separators and 0-2 fraction digits for numbers; strings as-is."""
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)
    text = f"{value:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _cached_value(operation: Operation, info: ColumnInfo, row_count: int) -> ResultValue:
    if operation in (Operation.COUNT, Operation.COUNTA):
        return row_count - info.stats.missing_count
    if operation is Operation.COUNTUNIQUE:
        return len(info.stats.unique_values or [])
    return getattr(info.stats, CACHED_STAT_FIELDS[operation])


def resolve_calculation(
    interpretation: CalculationInterpretation,
    table: Table,
    column_infos: Sequence[ColumnInfo],
) -> CalculationResolution:
    """
    Turn a validated interpretation into a value and a context message.

    Args:
        interpretation: Output of interpret_calculation_request()
        table: The parsed table (used for SUM / VAR)
        column_infos: Cached analyzer output for the same table

    Returns:
        CalculationResolution; result_value is None when nothing was computed
    """
    operation = interpretation.operation
    info = find_column(column_infos, interpretation.column_name)

    if interpretation.column_name and info is None:
        return CalculationResolution(
            result_value=None,
            context_message=(
                f"The column '{interpretation.column_name}' mentioned in the question "
                "does not exist in the dataset."
            ),
        )

    if operation is Operation.UNKNOWN or info is None:
        if interpretation.error_message:
            message = f"The calculation request could not be processed: {interpretation.error_message}"
        elif operation is Operation.UNKNOWN:
            message = "The question could not be interpreted as a supported calculation."
        else:
            message = f"No target column could be identified for the {operation.value} calculation."
        return CalculationResolution(result_value=None, context_message=message)

    if operation in DYNAMIC_OPERATIONS:
        value = calculate_dynamic_stat(table, info.name, operation)
    else:
        value = _cached_value(operation, info, table.row_count)

    if value is None:
        return CalculationResolution(
            result_value=None,
            context_message=(
                f"An attempt was made to calculate {operation.value} for column '{info.name}', "
                "but no determinate result was available (the column may not contain enough suitable values)."
            ),
        )

    logger.info(f"Resolved {operation.value}({info.name}) = {value}")
    return CalculationResolution(
        result_value=value,
        context_message=(
            f"The result of the {operation.value} calculation on column '{info.name}' "
            f"is {format_display_value(value)}."
        ),
    )
