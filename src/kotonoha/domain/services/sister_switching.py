"""Sister switching based on names in user input."""

import logging
from datetime import datetime

from kotonoha.domain.entities import ConversationState, Kotonoha
from kotonoha.domain.prompts import switch_sister_to

logger = logging.getLogger(__name__)

# 呼びかけに使われる名前の表記ゆれ
NAME_VARIANTS: tuple[tuple[str, Kotonoha], ...] = (
    ("茜ちゃん", Kotonoha.AKANE),
    ("あかねちゃん", Kotonoha.AKANE),
    ("アカネちゃん", Kotonoha.AKANE),
    ("葵ちゃん", Kotonoha.AOI),
    ("あおいちゃん", Kotonoha.AOI),
    ("アオイちゃん", Kotonoha.AOI),
)


class SisterSwitchingService:
    """Detects which sister the user is addressing and switches to her."""

    def __init__(
        self,
        name_variants: tuple[tuple[str, Kotonoha], ...] = NAME_VARIANTS,
    ) -> None:
        """Initialize the service.

        Args:
            name_variants: Pairs of (name, sister) to search for.
        """
        self._name_variants = name_variants

    def guess_target_sister(self, text: str) -> Kotonoha | None:
        """Guess the sister addressed in the text.

        If names of both sisters appear, the one found earliest in the text
        wins, regardless of the order the variants are declared in.

        Args:
            text: Raw user input.

        Returns:
            The addressed sister, or None if no name was found.
        """
        matches = [
            (index, sister)
            for name, sister in self._name_variants
            if (index := text.find(name)) >= 0
        ]
        if not matches:
            return None
        return min(matches, key=lambda match: match[0])[1]

    def try_switch_sister(
        self, text: str, now: datetime, state: ConversationState
    ) -> ConversationState:
        """Switch sister if the input explicitly addresses the other one.

        Args:
            text: Raw user input.
            now: Time stamped on the switch instruction.
            state: Current conversation state.

        Returns:
            The switched state, or the given state itself if nothing changed.
        """
        next_sister = self.guess_target_sister(text)
        if next_sister is None or next_sister == state.current_sister:
            return state

        logger.info(
            "Sister switch detected: %s -> %s",
            state.current_sister.value,
            next_sister.value,
        )
        state = state.add_instruction(switch_sister_to(next_sister), now)
        return state.switch_to_sister(next_sister)
