"""Common fixtures for application service tests."""

from collections.abc import Sequence
from datetime import datetime

import pytest

from kotonoha.domain.entities import ChatMessage, ConversationState, Kotonoha


class FakeRandomGenerator:
    """Returns scripted values, then a value that never triggers anything."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)
        self.call_count = 0

    def next_double(self) -> float:
        self.call_count += 1
        if self.values:
            return self.values.pop(0)
        return 0.99


class FixedDateTimeProvider:
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


class StubPromptRepository:
    def get_system_message(self, sister: Kotonoha) -> str:
        return f"system message for {sister.value}"


class InMemoryConversationRepository:
    """ConversationRepository kept in memory, with switchable failures."""

    def __init__(self) -> None:
        self.conversations: dict[int, list[ChatMessage]] = {}
        self.fail_create = False
        self.fail_append = False
        self.append_calls = 0

    async def create_conversation(self) -> int:
        if self.fail_create:
            raise RuntimeError("create failed")
        conversation_id = len(self.conversations) + 1
        self.conversations[conversation_id] = []
        return conversation_id

    async def latest_conversation_id(self) -> int | None:
        return max(self.conversations, default=None)

    async def load_messages(self, conversation_id: int) -> list[ChatMessage]:
        return list(self.conversations[conversation_id])

    async def append_messages(
        self, conversation_id: int, messages: Sequence[ChatMessage]
    ) -> None:
        self.append_calls += 1
        if self.fail_append:
            raise RuntimeError("append failed")
        self.conversations[conversation_id].extend(messages)


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 1, 12, 30)


@pytest.fixture
def state() -> ConversationState:
    return ConversationState(
        system_message_akane="system message for Akane",
        system_message_aoi="system message for Aoi",
        conversation_id=1,
    )


@pytest.fixture
def random_generator() -> FakeRandomGenerator:
    return FakeRandomGenerator()


@pytest.fixture
def datetime_provider(now: datetime) -> FixedDateTimeProvider:
    return FixedDateTimeProvider(now)


@pytest.fixture
def prompt_repository() -> StubPromptRepository:
    return StubPromptRepository()


@pytest.fixture
def conversation_repository() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()
