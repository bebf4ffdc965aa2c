"""Domain service protocols."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from kotonoha.domain.entities import ChatCompletion, ChatMessage, Kotonoha


class CompletionProvider(Protocol):
    """Chat completion abstraction.

    This protocol defines the interface for requesting a completion from
    a language model with a tool catalog.
    """

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> ChatCompletion:
        """Request a completion.

        Args:
            messages: Messages to send, oldest first.
            tools: Tool definitions the model may call.

        Returns:
            The completion.

        Raises:
            Exception: Any backend failure. Callers treat it as no completion.
        """
        ...


class PromptRepository(Protocol):
    """System prompt source."""

    def get_system_message(self, sister: Kotonoha) -> str:
        """Return the system message for the given sister."""
        ...


class RandomGenerator(Protocol):
    """Random source, injectable for tests."""

    def next_double(self) -> float:
        """Return a float in [0.0, 1.0)."""
        ...


class DateTimeProvider(Protocol):
    """Clock, injectable for tests."""

    def now(self) -> datetime:
        """Return the current local time."""
        ...
