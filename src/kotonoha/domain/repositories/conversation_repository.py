"""Conversation repository protocol."""

from collections.abc import Sequence
from typing import Protocol

from kotonoha.domain.entities import ChatMessage


class ConversationRepository(Protocol):
    """会話履歴リポジトリの抽象インターフェース

    会話とメッセージの保存・取得を抽象化し、
    永続化層の実装詳細を隠蔽する。メッセージは追記のみ。
    """

    async def create_conversation(self) -> int:
        """新しい会話を作成する

        Returns:
            作成した会話の ID
        """
        ...

    async def latest_conversation_id(self) -> int | None:
        """直近の会話 ID を取得する

        Returns:
            会話 ID（会話が存在しない場合は None）
        """
        ...

    async def load_messages(self, conversation_id: int) -> list[ChatMessage]:
        """会話のメッセージを取得する

        Args:
            conversation_id: 会話 ID

        Returns:
            メッセージリスト（古い順）
        """
        ...

    async def append_messages(
        self, conversation_id: int, messages: Sequence[ChatMessage]
    ) -> None:
        """メッセージを追記する

        Args:
            conversation_id: 会話 ID
            messages: 追記するメッセージ（古い順）
        """
        ...
