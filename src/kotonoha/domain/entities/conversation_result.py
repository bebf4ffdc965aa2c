"""Conversation result entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kotonoha.domain.entities.kotonoha import Emotion, Kotonoha


class InvocationStatus(str, Enum):
    """How a requested tool call was handled."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENTS = "invalid_arguments"


@dataclass(frozen=True)
class ConversationFunction:
    """関数呼び出しの記録

    Attributes:
        name: 関数名
        arguments: パース済みの引数（パースできなかった場合は生の値）
        result: ツールメッセージとして記録した結果
        status: 処理結果
    """

    name: str
    arguments: dict[str, Any]
    result: str
    status: InvocationStatus = InvocationStatus.SUCCEEDED


@dataclass(frozen=True)
class ConversationResult:
    """1ターン分の会話結果

    Attributes:
        message: 表示用テキスト
        sister: 返信した姉妹
        emotion: 返信のトーン
        functions: このターンで呼び出した関数
    """

    message: str
    sister: Kotonoha
    emotion: Emotion = Emotion.CALM
    functions: list[ConversationFunction] = field(default_factory=list)
