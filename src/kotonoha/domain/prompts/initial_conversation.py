"""初回会話時に参考として挿入される会話"""

from dataclasses import dataclass
from datetime import datetime

from kotonoha.domain.entities import ConversationState, Emotion, Kotonoha


@dataclass(frozen=True)
class InitialMessage:
    """初期会話メッセージ

    Attributes:
        sister: 発言した姉妹（None の場合はユーザー）
        text: メッセージ本文
        emotion: 感情
    """

    sister: Kotonoha | None
    text: str
    emotion: Emotion = Emotion.CALM


INITIAL_CONVERSATION: tuple[InitialMessage, ...] = (
    InitialMessage(
        Kotonoha.AOI, "はじめまして、マスター。私は琴葉葵。こっちは姉の茜。"
    ),
    InitialMessage(Kotonoha.AKANE, "今日からうちらがマスターのことサポートするで。"),
    InitialMessage(
        Kotonoha.AOI,
        "これから一緒に過ごすことになるけど、気軽に声をかけてね。",
        Emotion.JOY,
    ),
    InitialMessage(
        Kotonoha.AKANE, "せやな！これからいっぱい思い出作っていこな。", Emotion.JOY
    ),
    InitialMessage(None, "うん。よろしくね。"),
)


def load_initial_conversation(
    state: ConversationState, now: datetime
) -> ConversationState:
    """生成時の参考のための初期会話を追加する

    Args:
        state: 会話の状態
        now: ユーザーメッセージに付与する時刻

    Returns:
        初期会話を追加した状態
    """
    for message in INITIAL_CONVERSATION:
        if message.sister is not None:
            state = state.add_assistant_message(
                message.sister, message.text, message.emotion
            )
        else:
            state = state.add_user_message(message.text, now)
    return state
