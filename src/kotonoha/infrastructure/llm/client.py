"""LLM client wrapper."""

import logging
from collections.abc import Sequence
from typing import Any

import litellm
from litellm.exceptions import AuthenticationError, RateLimitError, Timeout

from kotonoha.config import LLMConfig
from kotonoha.domain.entities import ChatCompletion, ChatMessage
from kotonoha.infrastructure.llm.converters import to_chat_completion, to_llm_messages
from kotonoha.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)


class LLMClient:
    """LiteLLM wrapper client.

    This class implements the CompletionProvider protocol on top of
    LiteLLM, applying configuration and handling errors.
    """

    def __init__(self, config: LLMConfig, *, debug_llm_messages: bool = False) -> None:
        """Initialize the client.

        Args:
            config: LLM configuration (model, temperature, max_tokens, etc.).
            debug_llm_messages: If True, log LLM messages at INFO level.
        """
        self._config = config
        self._debug_llm_messages = debug_llm_messages

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        tools: Sequence[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> ChatCompletion:
        """Execute chat completion.

        Args:
            messages: Chat messages, oldest first.
            tools: OpenAI-format tool definitions.
            **kwargs: Additional parameters (override config).

        Returns:
            Chat completion.

        Raises:
            LLMAuthenticationError: Invalid API key.
            LLMRateLimitError: Rate limit exceeded.
            LLMTimeoutError: Request timed out.
            LLMError: Other API errors.
        """
        llm_messages = to_llm_messages(messages)
        params: dict[str, Any] = {
            "model": self._config.model,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "messages": llm_messages,
            **kwargs,
        }
        if tools:
            params["tools"] = list(tools)

        logger.debug("LLM request: model=%s", params["model"])
        if self._should_log():
            self._log_messages(llm_messages)

        try:
            response = await litellm.acompletion(**params)
        except AuthenticationError as e:
            logger.error("LLM authentication error: %s", e)
            raise LLMAuthenticationError(str(e)) from e
        except RateLimitError as e:
            logger.warning("LLM rate limit exceeded: %s", e)
            raise LLMRateLimitError(str(e)) from e
        except Timeout as e:
            logger.warning("LLM request timed out: %s", e)
            raise LLMTimeoutError(str(e)) from e
        except Exception as e:
            logger.error("LLM error: %s", e)
            raise LLMError(str(e)) from e

        completion = to_chat_completion(response)
        logger.debug("LLM response received: finish_reason=%s", completion.finish_reason)
        if self._should_log():
            self._log_completion(completion)
        return completion

    def _should_log(self) -> bool:
        """Check if logging should occur."""
        return self._debug_llm_messages or logger.isEnabledFor(logging.DEBUG)

    def _log_messages(self, messages: list[dict[str, Any]]) -> None:
        """Log LLM request messages."""
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== LLM Request Messages ===")
        for i, msg in enumerate(messages):
            log_func("[%d] role=%s", i, msg.get("role", "unknown"))
            log_func("    content: %s", msg.get("content", ""))
            for tool_call in msg.get("tool_calls", []):
                log_func("    tool_call: %s", tool_call["function"]["name"])
        log_func("=== End of Messages ===")

    def _log_completion(self, completion: ChatCompletion) -> None:
        """Log LLM response."""
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== LLM Response ===")
        log_func("finish_reason: %s", completion.finish_reason.value)
        log_func("content: %s", completion.content)
        for tool_call in completion.tool_calls:
            log_func("tool_call: %s(%s)", tool_call.function_name, tool_call.arguments)
        log_func("=== End of Response ===")
