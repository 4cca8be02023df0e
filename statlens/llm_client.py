"""
LLM service client (OpenRouter chat-completions over requests).

One LLMService is constructed at startup from an LLMConfig and handed to the
components that need it. Construction validates the configuration and
raises ConfigurationError; call failures raise LLMServiceError.

The service has three jobs:
- interpret_calculation(): turn a question + column schema into a loose
  {operation, columnName, errorMessage} object
- answer_question(): phrase the final answer from the dataset summary and
  the calculation context
- answer_from_content(): answer strictly from extracted document text
"""
import json
import re
from typing import Any, Dict, List, Optional, Protocol

import requests

from statlens.calculator import VALID_OPERATIONS
from statlens.config import CONTENT_CHAR_LIMIT, LLMConfig
from statlens.errors import LLMServiceError
from statlens.logging_config import get_logger

logger = get_logger(__name__)

CODE_FENCE_PATTERN = re.compile(r'^```(\w*)?\s*\n?(.*?)\n?\s*```$', re.DOTALL)


# ============================================================================
# LLM PROMPTS
# ============================================================================

SYSTEM_PROMPT_INTERPRET = """You interpret user requests for statistical calculations on tabular data.
Reply with a single JSON object and nothing else."""

INTERPRET_PROMPT_TEMPLATE = """Based on the user's question and the list of available columns, identify:
1. The requested statistical operation. Valid operations are: {operations}.
2. The target column name.

The output MUST be a single JSON object with this structure:
{{
  "operation": "VALID_OPERATION_NAME_OR_UNKNOWN",
  "columnName": "TARGET_COLUMN_NAME_OR_NULL",
  "errorMessage": "ERROR_CODE_OR_EMPTY"
}}

errorMessage can be:
- "COLUMN_NOT_FOUND" if the mentioned column is not in the list.
- "OPERATION_UNCLEAR" if the operation cannot be identified or is not valid, or if the request
  involves row-to-row comparisons or complex grouping (e.g. "customers with the same signup date").
- "AMBIGUOUS_REQUEST" if the request is too ambiguous to interpret.
- "" (empty string) if there is no error.

Available columns (name: type):
{columns}

User question: "{question}"

Interpretation JSON object:"""

SYSTEM_PROMPT_ANSWER = """You are a precise data analyst answering questions about a tabular dataset.

CRITICAL RULES:
1. Use ONLY the dataset summary and the additional context provided
2. If the additional context contains a calculation result, present it as the main answer
3. Otherwise use the statistics already present in the summary
4. If a calculation was requested but no result or statistic is available, explain conceptually how it would be computed - NEVER invent numbers
5. If the context says the operation was unclear or too complex, say so politely and offer a simpler related question
6. Keep answers short and direct"""

ANSWER_PROMPT_TEMPLATE = """{context_block}Dataset summary:
---
{data_summary}
---

User question: "{question}"

Answer:"""

SYSTEM_PROMPT_CONTENT = """You answer questions using ONLY the document content provided.
Do not use outside knowledge. Answer in plain, simple language."""

# Prefix the model is asked to use when the content lacks the answer
INFO_NOT_FOUND_MARKER = "[INFO_NOT_FOUND]"

CONTENT_PROMPT_TEMPLATE = """Answer the question using ONLY the content below.
If the answer is not in the content, start your reply with {marker} and then
state that the information is not available in the provided text.

Content:
---
{content}
---

Question: "{question}"

Answer (based ONLY on the content above):"""


class InterpretationService(Protocol):
    """Anything that can turn a question and a column schema into a raw interpretation dict."""

    def interpret_calculation(self, question: str, columns: List[Dict[str, str]]) -> Dict[str, Any]:
        ...


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    text = text.strip()
    match = CODE_FENCE_PATTERN.match(text)
    if match and match.group(2):
        return match.group(2).strip()
    return text


def truncate_content(text: str, limit: int = CONTENT_CHAR_LIMIT) -> str:
    """Cut text to limit characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + " ... (content truncated)"


# ============================================================================
# SERVICE
# ============================================================================

class LLMService:
    """OpenRouter-backed LLM service."""

    def __init__(self, config: LLMConfig, session: Optional[requests.Session] = None):
        config.validate()
        self.config = config
        self.session = session or requests

    def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Send a chat-completions request and return the reply text.

        Raises:
            LLMServiceError: On timeout, transport errors, HTTP errors or a malformed payload
        """
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.config.referer,
            "X-Title": self.config.app_title,
        }
        payload = {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": min(max_tokens or self.config.max_tokens, self.config.max_tokens),
            "temperature": self.config.temperature if temperature is None else temperature,
        }
        if response_format:
            payload["response_format"] = response_format

        logger.debug(f"Calling {self.config.model} with {len(messages)} message(s)")

        try:
            response = self.session.post(
                self.config.base_url,
                headers=headers,
                json=payload,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            data = response.json()
            return data["choices"][0]["message"]["content"]
        except requests.exceptions.Timeout as e:
            raise LLMServiceError(f"Request timed out after {self.config.timeout}s") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise LLMServiceError(f"LLM API returned HTTP {status}: {e}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            raise LLMServiceError(f"Error communicating with LLM: {e}") from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMServiceError(f"Malformed LLM response: {e}") from e

    def interpret_calculation(self, question: str, columns: List[Dict[str, str]]) -> Dict[str, Any]:
        """
        Ask the model which operation and column a question refers to.

        Args:
            question: The user's question, verbatim
            columns: [{"name": ..., "type": ...}] for every column

        Returns:
            The parsed JSON object (unvalidated)
        """
        prompt = INTERPRET_PROMPT_TEMPLATE.format(
            operations=", ".join(VALID_OPERATIONS),
            columns="\n".join(f"- {c['name']}: {c['type']}" for c in columns),
            question=question,
        )
        reply = self.chat(
            [
                {"role": "system", "content": SYSTEM_PROMPT_INTERPRET},
                {"role": "user", "content": prompt},
            ],
            max_tokens=300,
            temperature=0.0,
            response_format={"type": "json_object"},
        )
        try:
            parsed = json.loads(strip_code_fence(reply))
        except json.JSONDecodeError as e:
            raise LLMServiceError(f"Interpretation reply is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise LLMServiceError("Interpretation reply is not a JSON object")
        return parsed

    def answer_question(self, data_summary: str, question: str, calculation_context: Optional[str] = None) -> str:
        """Phrase an answer from the dataset summary and optional calculation context."""
        context_block = ""
        if calculation_context:
            context_block = (
                "ADDITIONAL CONTEXT: The system performed a calculation or interpretation "
                f"for this question. {calculation_context}\n\n"
            )
        prompt = ANSWER_PROMPT_TEMPLATE.format(
            context_block=context_block,
            data_summary=data_summary,
            question=question,
        )
        return self.chat([
            {"role": "system", "content": SYSTEM_PROMPT_ANSWER},
            {"role": "user", "content": prompt},
        ]).strip()


    def answer_from_content(self, text: str, question: str) -> str:
        """
        Answer a question from document text only.

        Args:
            text: Extracted document text (truncated to CONTENT_CHAR_LIMIT)
            question: User question

        Returns:
            The reply text; starts with INFO_NOT_FOUND_MARKER when the
            content does not hold the answer
        """
        prompt = CONTENT_PROMPT_TEMPLATE.format(
            marker=INFO_NOT_FOUND_MARKER,
            content=truncate_content(text),
            question=question,
        )
        return self.chat([
            {"role": "system", "content": SYSTEM_PROMPT_CONTENT},
            {"role": "user", "content": prompt},
        ]).strip()


def describe_service_error(error: Exception) -> str:
    """Error text plus a hint for common auth, quota and model failures."""
    message = f"LLM request failed: {error}"
    text = str(error).lower()
    status = getattr(error, "status_code", None)

    if status in (401, 403) or "permission" in text or "unauthorized" in text:
        message += " Hint: the API key may be invalid or lack access to the requested model."
    elif status == 429 or "quota" in text or "rate limit" in text:
        message += " Hint: the request quota may be exhausted; try again later."
    elif status == 404 or "model not found" in text or "model_not_found" in text:
        message += " Hint: the configured model may not exist or be unavailable for this key."
    return message
