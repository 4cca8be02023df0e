"""
Configuration for statlens.

Analysis constants live at module level. LLM settings are collected into an
LLMConfig dataclass read from environment variables, so the service object
can be constructed once and passed to whoever needs it.
"""
import os
from dataclasses import dataclass
from typing import Optional

from statlens.errors import ConfigurationError


# ============================================================================
# ANALYSIS CONSTANTS
# ============================================================================

# Non-missing values inspected when voting on a column's type
TYPE_SAMPLE_SIZE = 200

# Rows kept on a ParsedDataset for previews
SAMPLE_ROW_COUNT = 10

# Rows rendered into the prompt summary block
SUMMARY_SAMPLE_ROWS = 3

# Characters of extracted document text sent with a question
CONTENT_CHAR_LIMIT = 30000


# ============================================================================
# LLM SETTINGS
# ============================================================================

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_LLM_MODEL = "openai/gpt-4o-mini"
DEFAULT_TIMEOUT = 60
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.1


@dataclass
class LLMConfig:
    """Settings for the OpenRouter chat-completions client."""
    api_key: str
    model: str = DEFAULT_LLM_MODEL
    base_url: str = OPENROUTER_BASE_URL
    timeout: int = DEFAULT_TIMEOUT
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    app_title: str = "statlens"
    referer: str = "http://localhost:8501"

    def validate(self) -> None:
        """Raise ConfigurationError if the settings cannot work."""
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError(
                "No API key configured. Set OPENROUTER_API_KEY in the environment."
            )
        if not self.model or not self.model.strip():
            raise ConfigurationError("No LLM model configured.")
        if self.timeout <= 0:
            raise ConfigurationError(f"Invalid timeout: {self.timeout}")
        if self.max_tokens <= 0:
            raise ConfigurationError(f"Invalid max_tokens: {self.max_tokens}")


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number, got {raw!r}")


def load_llm_config(api_key: Optional[str] = None) -> LLMConfig:
    """
    Build an LLMConfig from environment variables.

    Args:
        api_key: Explicit key; falls back to OPENROUTER_API_KEY

    Returns:
        LLMConfig (not yet validated; LLMService validates on construction)
    """
    return LLMConfig(
        api_key=api_key if api_key is not None else os.environ.get("OPENROUTER_API_KEY", ""),
        model=os.environ.get("STATLENS_LLM_MODEL", DEFAULT_LLM_MODEL),
        base_url=os.environ.get("STATLENS_LLM_BASE_URL", OPENROUTER_BASE_URL),
        timeout=_env_number("STATLENS_LLM_TIMEOUT", DEFAULT_TIMEOUT, int),
        max_tokens=_env_number("STATLENS_LLM_MAX_TOKENS", DEFAULT_MAX_TOKENS, int),
        temperature=_env_number("STATLENS_LLM_TEMPERATURE", DEFAULT_TEMPERATURE, float),
    )
