"""Persistence infrastructure."""

from kotonoha.infrastructure.persistence.conversation_repository import (
    SQLiteConversationRepository,
)
from kotonoha.infrastructure.persistence.database import DatabaseManager
from kotonoha.infrastructure.persistence.exceptions import (
    DatabaseError,
    PersistenceError,
)
from kotonoha.infrastructure.persistence.models import (
    ChatMessageModel,
    ConversationModel,
)

__all__ = [
    "ChatMessageModel",
    "ConversationModel",
    "DatabaseError",
    "DatabaseManager",
    "PersistenceError",
    "SQLiteConversationRepository",
]
