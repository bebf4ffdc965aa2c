"""Conversion between chat entities and the OpenAI wire format used by LiteLLM."""

import logging
from collections.abc import Sequence
from typing import Any

from kotonoha.domain.entities import (
    AssistantChatMessage,
    ChatCompletion,
    ChatMessage,
    FinishReason,
    SystemChatMessage,
    ToolCall,
    ToolChatMessage,
    UserChatMessage,
)

logger = logging.getLogger(__name__)


def to_llm_message(message: ChatMessage) -> dict[str, Any]:
    """Convert a chat message to an OpenAI-format message dict.

    Args:
        message: Chat message.

    Returns:
        Message dict such as {"role": "user", "content": "..."}.
    """
    if isinstance(message, SystemChatMessage):
        return {"role": "system", "content": message.content}
    if isinstance(message, UserChatMessage):
        return {"role": "user", "content": message.content}
    if isinstance(message, ToolChatMessage):
        return {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "content": message.content,
        }

    result: dict[str, Any] = {"role": "assistant", "content": message.content}
    if message.has_tool_calls:
        result["tool_calls"] = [
            {
                "id": tool_call.id,
                "type": "function",
                "function": {
                    "name": tool_call.function_name,
                    "arguments": tool_call.arguments,
                },
            }
            for tool_call in message.tool_calls
        ]
    return result


def to_llm_messages(messages: Sequence[ChatMessage]) -> list[dict[str, Any]]:
    return [to_llm_message(message) for message in messages]


def _to_finish_reason(value: str | None, has_tool_calls: bool) -> FinishReason:
    # 一部のプロバイダは関数呼び出し時も "stop" を返す
    if has_tool_calls:
        return FinishReason.TOOL_CALLS
    try:
        return FinishReason(value)
    except ValueError:
        logger.warning("Unknown finish reason: %s", value)
        return FinishReason.STOP


def to_chat_completion(response: Any) -> ChatCompletion:
    """Convert a LiteLLM ModelResponse to a ChatCompletion.

    Args:
        response: Response returned by litellm.acompletion.

    Returns:
        ChatCompletion entity.
    """
    choice = response.choices[0]
    message = choice.message
    tool_calls = tuple(
        ToolCall(
            id=tool_call.id,
            function_name=tool_call.function.name,
            arguments=tool_call.function.arguments or "{}",
        )
        for tool_call in (getattr(message, "tool_calls", None) or [])
    )
    return ChatCompletion(
        finish_reason=_to_finish_reason(choice.finish_reason, bool(tool_calls)),
        content=message.content,
        tool_calls=tool_calls,
    )
