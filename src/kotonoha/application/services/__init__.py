"""Application services."""

from kotonoha.application.services.conversation_service import ConversationService
from kotonoha.application.services.lazy_mode import (
    LazyModeHandler,
    LazyModeResult,
    LazyModeStage,
)
from kotonoha.application.services.tool_dispatcher import ToolDispatcher

__all__ = [
    "ConversationService",
    "LazyModeHandler",
    "LazyModeResult",
    "LazyModeStage",
    "ToolDispatcher",
]
