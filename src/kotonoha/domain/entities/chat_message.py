"""Chat message entities.

A conversation log is an ordered sequence of these entries. The order is the
single source of truth for what is sent to the completion backend and what
is persisted.
"""

from dataclasses import dataclass
from enum import Enum


class MessageType(str, Enum):
    """Stored message kind."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"


@dataclass(frozen=True)
class ToolCall:
    """Function call requested by the model.

    Attributes:
        id: Tool call ID issued by the backend.
        function_name: Name of the requested function.
        arguments: Raw JSON argument payload.
    """

    id: str
    function_name: str
    arguments: str = "{}"


@dataclass(frozen=True)
class UserChatMessage:
    """User input or instruction.

    Attributes:
        content: JSON of a ChatRequest.
    """

    content: str

    @property
    def type(self) -> MessageType:
        return MessageType.USER


@dataclass(frozen=True)
class AssistantChatMessage:
    """Assistant reply or tool call request.

    Attributes:
        content: Raw completion text (None when tools were requested).
        tool_calls: Requested tool calls.
    """

    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()

    @property
    def type(self) -> MessageType:
        return MessageType.ASSISTANT

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0


@dataclass(frozen=True)
class ToolChatMessage:
    """Result of a tool call.

    Attributes:
        tool_call_id: ID of the originating tool call.
        content: Plain-text result.
    """

    tool_call_id: str
    content: str

    @property
    def type(self) -> MessageType:
        return MessageType.TOOL


@dataclass(frozen=True)
class SystemChatMessage:
    """System prompt."""

    content: str

    @property
    def type(self) -> MessageType:
        return MessageType.SYSTEM


ChatMessage = UserChatMessage | AssistantChatMessage | ToolChatMessage | SystemChatMessage
