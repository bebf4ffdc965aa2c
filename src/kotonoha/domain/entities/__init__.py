"""Domain entities."""

from kotonoha.domain.entities.chat_message import (
    AssistantChatMessage,
    ChatMessage,
    MessageType,
    SystemChatMessage,
    ToolCall,
    ToolChatMessage,
    UserChatMessage,
)
from kotonoha.domain.entities.chat_payload import (
    ChatInputType,
    ChatRequest,
    ChatResponse,
)
from kotonoha.domain.entities.completion import ChatCompletion, FinishReason
from kotonoha.domain.entities.conversation_result import (
    ConversationFunction,
    ConversationResult,
    InvocationStatus,
)
from kotonoha.domain.entities.conversation_state import ConversationState
from kotonoha.domain.entities.kotonoha import Emotion, Kotonoha

__all__ = [
    "AssistantChatMessage",
    "ChatCompletion",
    "ChatInputType",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ConversationFunction",
    "ConversationResult",
    "ConversationState",
    "Emotion",
    "FinishReason",
    "InvocationStatus",
    "Kotonoha",
    "MessageType",
    "SystemChatMessage",
    "ToolCall",
    "ToolChatMessage",
    "UserChatMessage",
]
