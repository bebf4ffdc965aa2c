"""Domain repositories."""

from kotonoha.domain.repositories.conversation_repository import (
    ConversationRepository,
)

__all__ = ["ConversationRepository"]
