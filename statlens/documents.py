"""
Document text extraction.

Thin wrappers that turn uploaded documents into plain text for the
document question-answering flow:
- PDF via pdfplumber (page by page)
- DOCX via python-docx (paragraphs)
- TXT / Markdown / anything else via the text decoding fallback chain
"""
import io
import re
from dataclasses import dataclass
from pathlib import Path

import docx
import pdfplumber

from statlens.errors import DocumentExtractionError
from statlens.logging_config import get_logger
from statlens.parsers import decode_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class DocumentText:
    file_name: str
    text: str
    file_type: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def clean_text(text: str) -> str:
    """Collapse runs of spaces/tabs and limit blank lines to one."""
    if not text:
        return ""
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r' *\n *', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return text.strip()


def _extract_pdf(data: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                pages.append(page_text)
    return "\n\n".join(pages)


def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_text(data: bytes, file_name: str) -> DocumentText:
    """
    Extract plain text from an uploaded document.

    Args:
        data: Raw file bytes
        file_name: Original file name (extension selects the extractor)

    Returns:
        DocumentText

    Raises:
        DocumentExtractionError: Unreadable file, or no text found
    """
    ext = Path(file_name).suffix.lower()

    try:
        if ext == '.pdf':
            file_type, raw_text = "pdf", _extract_pdf(data)
        elif ext == '.docx':
            file_type, raw_text = "docx", _extract_docx(data)
        else:
            file_type, raw_text = "text", decode_text(data)
    except Exception as e:
        raise DocumentExtractionError(f"Could not extract text from {file_name}: {e}") from e

    text = clean_text(raw_text)
    if not text:
        raise DocumentExtractionError(f"No text found in {file_name}")

    logger.info(f"Extracted {len(text):,} characters from {file_name}")
    return DocumentText(file_name=file_name, text=text, file_type=file_type)


def text_from_input(text: str, name: str = "Direct text") -> DocumentText:
    """Wrap pasted text the same way as an uploaded document."""
    cleaned = clean_text(text)
    if not cleaned:
        raise DocumentExtractionError("Input text is empty")
    return DocumentText(file_name=name, text=cleaned, file_type="text")
