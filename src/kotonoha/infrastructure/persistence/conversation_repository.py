"""SQLite implementation of ConversationRepository."""

import json
import logging
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from kotonoha.domain.entities import (
    AssistantChatMessage,
    ChatMessage,
    MessageType,
    SystemChatMessage,
    ToolCall,
    ToolChatMessage,
    UserChatMessage,
)
from kotonoha.infrastructure.persistence.exceptions import DatabaseError
from kotonoha.infrastructure.persistence.models import (
    ChatMessageModel,
    ConversationModel,
)

logger = logging.getLogger(__name__)


class SQLiteConversationRepository:
    """SQLite 版 ConversationRepository 実装

    会話とメッセージを SQLite データベースに保存する。
    SQLAlchemy のエラーは DatabaseError に変換して送出する。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def create_conversation(self) -> int:
        """新しい会話を作成する

        Returns:
            作成された会話の ID
        """
        try:
            async with self._session_factory() as session:
                model = ConversationModel()
                session.add(model)
                await session.commit()
                await session.refresh(model)
        except SQLAlchemyError as e:
            raise DatabaseError("create conversation", e) from e

        assert model.id is not None
        logger.debug("Conversation created: id=%d", model.id)
        return model.id

    async def latest_conversation_id(self) -> int | None:
        """最新の会話 ID を取得する

        Returns:
            最新の会話 ID、会話が存在しない場合は None
        """
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(ConversationModel)
                    .order_by(ConversationModel.id.desc())  # type: ignore[union-attr]
                    .limit(1)
                )
                result = await session.exec(stmt)
                model = result.first()
        except SQLAlchemyError as e:
            raise DatabaseError("get latest conversation", e) from e

        return model.id if model is not None else None

    async def load_messages(self, conversation_id: int) -> list[ChatMessage]:
        """会話のメッセージを取得する

        Args:
            conversation_id: 会話 ID

        Returns:
            メッセージリスト（古い順）
        """
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(ChatMessageModel)
                    .where(ChatMessageModel.conversation_id == conversation_id)
                    .order_by(ChatMessageModel.id)  # type: ignore[arg-type]
                )
                result = await session.exec(stmt)
                models = list(result.all())
        except SQLAlchemyError as e:
            raise DatabaseError("load messages", e) from e

        return [self._to_entity(model) for model in models]

    async def append_messages(
        self, conversation_id: int, messages: Sequence[ChatMessage]
    ) -> None:
        """会話にメッセージを追加する

        すべてのメッセージを1トランザクションで追加する。

        Args:
            conversation_id: 会話 ID
            messages: 追加するメッセージ（古い順）
        """
        if not messages:
            return

        try:
            async with self._session_factory() as session:
                session.add_all(
                    [self._to_model(conversation_id, message) for message in messages]
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise DatabaseError("append messages", e) from e

    def _to_model(self, conversation_id: int, message: ChatMessage) -> ChatMessageModel:
        """エンティティをモデルに変換する"""
        model = ChatMessageModel(
            conversation_id=conversation_id,
            type=message.type.value,
            content=message.content,
        )
        if isinstance(message, AssistantChatMessage) and message.has_tool_calls:
            model.tool_calls = json.dumps(
                [
                    {
                        "id": tool_call.id,
                        "function_name": tool_call.function_name,
                        "arguments": tool_call.arguments,
                    }
                    for tool_call in message.tool_calls
                ],
                ensure_ascii=False,
            )
        if isinstance(message, ToolChatMessage):
            model.tool_call_id = message.tool_call_id
        return model

    def _to_entity(self, model: ChatMessageModel) -> ChatMessage:
        """モデルをエンティティに変換する"""
        message_type = MessageType(model.type)
        if message_type == MessageType.USER:
            return UserChatMessage(content=model.content or "")
        if message_type == MessageType.SYSTEM:
            return SystemChatMessage(content=model.content or "")
        if message_type == MessageType.TOOL:
            return ToolChatMessage(
                tool_call_id=model.tool_call_id or "",
                content=model.content or "",
            )

        tool_calls = tuple(
            ToolCall(
                id=item["id"],
                function_name=item["function_name"],
                arguments=item.get("arguments", "{}"),
            )
            for item in (json.loads(model.tool_calls) if model.tool_calls else [])
        )
        return AssistantChatMessage(content=model.content, tool_calls=tool_calls)
