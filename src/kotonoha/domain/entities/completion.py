"""Chat completion entity."""

from dataclasses import dataclass
from enum import Enum

from kotonoha.domain.entities.chat_message import AssistantChatMessage, ToolCall


class FinishReason(str, Enum):
    """Why the model stopped generating."""

    STOP = "stop"
    TOOL_CALLS = "tool_calls"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"


@dataclass(frozen=True)
class ChatCompletion:
    """Result of one completion request.

    Attributes:
        finish_reason: Finish reason reported by the backend.
        content: Assistant text (None when tools were requested).
        tool_calls: Requested tool calls.
    """

    finish_reason: FinishReason
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()

    @property
    def requests_tool_calls(self) -> bool:
        """Whether the model asked for tools to be invoked."""
        return self.finish_reason == FinishReason.TOOL_CALLS

    def to_message(self) -> AssistantChatMessage:
        """Convert to the assistant entry appended to the log."""
        return AssistantChatMessage(content=self.content, tool_calls=self.tool_calls)
