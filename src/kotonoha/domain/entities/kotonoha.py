"""Persona and emotion enums."""

from enum import Enum


class Kotonoha(str, Enum):
    """琴葉姉妹

    会話中の姉妹は常にどちらか一方。
    """

    AKANE = "Akane"
    AOI = "Aoi"

    def switch(self) -> "Kotonoha":
        """もう一方の姉妹を返す"""
        return Kotonoha.AOI if self is Kotonoha.AKANE else Kotonoha.AKANE

    @property
    def display_name(self) -> str:
        """表示名"""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Kotonoha.AKANE: "茜",
    Kotonoha.AOI: "葵",
}


class Emotion(str, Enum):
    """返信のトーン"""

    CALM = "Calm"
    JOY = "Joy"
    ANGER = "Anger"
    SADNESS = "Sadness"
