"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class ConversationModel(SQLModel, table=True):
    """会話テーブル"""

    __tablename__ = "conversations"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChatMessageModel(SQLModel, table=True):
    """会話メッセージテーブル

    id の昇順が会話内のメッセージ順になる。
    """

    __tablename__ = "chat_messages"

    id: int | None = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversations.id", index=True)
    type: str  # user / assistant / tool / system
    content: str | None = None
    tool_calls: str = ""  # JSON format: [{"id": ..., "function_name": ..., "arguments": ...}]
    tool_call_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
