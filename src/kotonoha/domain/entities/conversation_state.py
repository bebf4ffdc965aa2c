"""Conversation state entity.

ConversationState is an immutable snapshot. Every transition returns a new
instance; the caller keeps the latest one and feeds it into the next turn.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from kotonoha.domain.entities.chat_message import (
    AssistantChatMessage,
    ChatMessage,
    SystemChatMessage,
    ToolChatMessage,
    UserChatMessage,
)
from kotonoha.domain.entities.chat_payload import (
    ChatInputType,
    ChatRequest,
    ChatResponse,
)
from kotonoha.domain.entities.completion import ChatCompletion
from kotonoha.domain.entities.kotonoha import Emotion, Kotonoha


@dataclass(frozen=True)
class ConversationState:
    """会話の状態

    Attributes:
        system_message_akane: 茜のシステムメッセージ
        system_message_aoi: 葵のシステムメッセージ
        current_sister: 現在会話中の姉妹
        patience_count: 同じ姉妹に連続してお願いした回数（忍耐値）
        last_tool_call_sister: 最後にお願いを聞いた姉妹
        conversation_id: 永続化された会話の ID（未作成の場合は None）
        chat_messages: 会話履歴（追記のみ）
        last_saved_message_index: 保存済みメッセージの境界
    """

    system_message_akane: str
    system_message_aoi: str
    current_sister: Kotonoha = Kotonoha.AKANE
    patience_count: int = 0
    last_tool_call_sister: Kotonoha = Kotonoha.AKANE
    conversation_id: int | None = None
    chat_messages: tuple[ChatMessage, ...] = ()
    last_saved_message_index: int = 0

    def __post_init__(self) -> None:
        """バリデーション"""
        if self.patience_count < 0:
            raise ValueError("patience_count must not be negative")
        if not 0 <= self.last_saved_message_index <= len(self.chat_messages):
            raise ValueError(
                "last_saved_message_index must be within the message log"
            )

    @property
    def system_message(self) -> str:
        """現在の姉妹のシステムメッセージ"""
        if self.current_sister is Kotonoha.AKANE:
            return self.system_message_akane
        return self.system_message_aoi

    @property
    def full_chat_messages(self) -> tuple[ChatMessage, ...]:
        """システムメッセージを先頭に付けた会話履歴"""
        return (SystemChatMessage(self.system_message), *self.chat_messages)

    @property
    def unsaved_messages(self) -> tuple[ChatMessage, ...]:
        """未保存のメッセージ"""
        return self.chat_messages[self.last_saved_message_index :]

    def _append(self, message: ChatMessage) -> "ConversationState":
        return replace(self, chat_messages=(*self.chat_messages, message))

    def add_user_message(self, text: str, now: datetime) -> "ConversationState":
        request = ChatRequest.create(ChatInputType.USER, text, now)
        return self._append(UserChatMessage(request.to_json()))

    def add_instruction(self, text: str, now: datetime) -> "ConversationState":
        request = ChatRequest.create(ChatInputType.INSTRUCTION, text, now)
        return self._append(UserChatMessage(request.to_json()))

    def add_assistant_message(
        self, sister: Kotonoha, text: str, emotion: Emotion = Emotion.CALM
    ) -> "ConversationState":
        response = ChatResponse(assistant=sister, text=text, emotion=emotion)
        return self._append(AssistantChatMessage(content=response.to_json()))

    def add_assistant_completion(
        self, completion: ChatCompletion
    ) -> "ConversationState":
        return self._append(completion.to_message())

    def add_tool_message(self, tool_call_id: str, result: str) -> "ConversationState":
        return self._append(ToolChatMessage(tool_call_id=tool_call_id, content=result))

    def switch_to_sister(self, sister: Kotonoha) -> "ConversationState":
        """姉妹を切り替える（忍耐値はリセットされる）"""
        return replace(self, current_sister=sister, patience_count=0)

    def switch_to_other_sister(self) -> "ConversationState":
        return replace(self, current_sister=self.current_sister.switch())

    def record_tool_call(self) -> "ConversationState":
        """関数呼び出しを記録し、忍耐値を更新する"""
        if self.last_tool_call_sister == self.current_sister:
            return replace(self, patience_count=self.patience_count + 1)
        return replace(
            self, patience_count=1, last_tool_call_sister=self.current_sister
        )

    def reset_patience_count(self) -> "ConversationState":
        return replace(self, patience_count=0)

    def mark_saved(self) -> "ConversationState":
        """全メッセージを保存済みにする"""
        return replace(self, last_saved_message_index=len(self.chat_messages))
