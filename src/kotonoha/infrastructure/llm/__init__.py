"""LLM integration."""

from kotonoha.infrastructure.llm.client import LLMClient
from kotonoha.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from kotonoha.infrastructure.llm.prompt_repository import JinjaPromptRepository

__all__ = [
    "JinjaPromptRepository",
    "LLMAuthenticationError",
    "LLMClient",
    "LLMError",
    "LLMRateLimitError",
    "LLMTimeoutError",
]
