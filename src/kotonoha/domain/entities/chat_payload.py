"""Pydantic models for the JSON payloads exchanged with the model.

User input is sent as a ChatRequest and the model is asked to reply with a
ChatResponse. Parsing a reply is a normal outcome that may fail, so
``try_parse`` returns None instead of raising.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, ValidationError

from kotonoha.domain.entities.kotonoha import Emotion, Kotonoha

_WEEKDAYS = ("月", "火", "水", "木", "金", "土", "日")


def format_today(now: datetime) -> str:
    """Format a date like "2025年1月1日 (水曜日)"."""
    return f"{now.year}年{now.month}月{now.day}日 ({_WEEKDAYS[now.weekday()]}曜日)"


def format_current_time(now: datetime) -> str:
    """Format a time of day like "12時30分"."""
    return f"{now.hour}時{now.minute}分"


class ChatInputType(str, Enum):
    """入力タイプ"""

    USER = "User"
    INSTRUCTION = "Instruction"


class ChatRequest(BaseModel):
    """Input payload for a user message or an instruction."""

    input_type: ChatInputType = Field(description="入力タイプ")
    text: str = Field(description="ユーザーからの入力、または指示")
    today: str | None = Field(default=None, description="今日の日付")
    current_time: str | None = Field(default=None, description="現在時刻")

    @classmethod
    def create(
        cls, input_type: ChatInputType, text: str, now: datetime
    ) -> "ChatRequest":
        """Create a request stamped with the given local time."""
        return cls(
            input_type=input_type,
            text=text,
            today=format_today(now),
            current_time=format_current_time(now),
        )

    @classmethod
    def try_parse(cls, content: str | None) -> "ChatRequest | None":
        if not content:
            return None
        try:
            return cls.model_validate_json(content)
        except ValidationError:
            return None

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)


class ChatResponse(BaseModel):
    """Structured reply expected from the model."""

    assistant: Kotonoha = Field(description="返信した姉妹")
    text: str = Field(description="生成された返信")
    emotion: Emotion = Field(default=Emotion.CALM, description="会話のトーン")

    @classmethod
    def try_parse(cls, content: str | None) -> "ChatResponse | None":
        if not content:
            return None
        try:
            return cls.model_validate_json(content)
        except ValidationError:
            return None

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)
