"""
Question answering over loaded datasets and documents.

answer_data_question() runs the full query-time flow:
question -> interpretation (LLM) -> resolution (cache / calculator)
-> context message -> answer (LLM).

answer_document_question() answers from extracted document text alone.
"""
from dataclasses import dataclass

from statlens.dataset import ParsedDataset, format_data_summary
from statlens.documents import DocumentText
from statlens.interpreter import (
    CalculationInterpretation,
    CalculationResolution,
    interpret_calculation_request,
    resolve_calculation,
)
from statlens.llm_client import INFO_NOT_FOUND_MARKER, LLMService
from statlens.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class DataAnswer:
    answer: str
    interpretation: CalculationInterpretation
    resolution: CalculationResolution


def answer_data_question(dataset: ParsedDataset, question: str, service: LLMService) -> DataAnswer:
    """
    Answer a question about a dataset.

    The interpretation step recovers from service failures on its own; a
    failure of the final answer call propagates as LLMServiceError.

    Args:
        dataset: Loaded dataset with cached column analysis
        question: User question
        service: LLM service (interpretation + answer)

    Returns:
        DataAnswer with the answer text and the intermediate steps
    """
    interpretation = interpret_calculation_request(question, dataset.column_infos, service)
    resolution = resolve_calculation(interpretation, dataset.table, dataset.column_infos)
    logger.debug(f"Calculation context: {resolution.context_message}")

    answer = service.answer_question(
        format_data_summary(dataset),
        question,
        calculation_context=resolution.context_message,
    )
    return DataAnswer(answer=answer, interpretation=interpretation, resolution=resolution)


@dataclass
class DocumentAnswer:
    answer: str
    info_found: bool


def answer_document_question(document: DocumentText, question: str, service: LLMService) -> DocumentAnswer:
    """
    Answer a question from an extracted document's text only.

    A reply carrying INFO_NOT_FOUND_MARKER is returned with the marker
    removed and info_found set to False. Service failures propagate as
    LLMServiceError.
    """
    reply = service.answer_from_content(document.text, question)
    if reply.startswith(INFO_NOT_FOUND_MARKER):
        logger.info(f"No answer in {document.file_name} for question {question!r}")
        return DocumentAnswer(answer=reply[len(INFO_NOT_FOUND_MARKER):].strip(), info_found=False)
    return DocumentAnswer(answer=reply, info_found=True)
