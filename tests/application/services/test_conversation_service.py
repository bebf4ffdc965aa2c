"""Tests for ConversationService."""

from unittest.mock import AsyncMock, Mock

import pytest

from kotonoha.application.services import (
    ConversationService,
    LazyModeHandler,
    ToolDispatcher,
)
from kotonoha.domain.entities import (
    AssistantChatMessage,
    ChatCompletion,
    ChatRequest,
    ChatResponse,
    ConversationResult,
    ConversationState,
    Emotion,
    FinishReason,
    InvocationStatus,
    Kotonoha,
    SystemChatMessage,
    ToolCall,
    ToolChatMessage,
    UserChatMessage,
)
from kotonoha.domain.prompts import CANCEL_LAZY_MODE, INITIAL_CONVERSATION
from kotonoha.infrastructure.functions import ForgetMemory, GetCurrentTime


def tool_completion(name: str, call_id: str = "call_1") -> ChatCompletion:
    return ChatCompletion(
        finish_reason=FinishReason.TOOL_CALLS,
        tool_calls=(ToolCall(id=call_id, function_name=name),),
    )


def reply(sister: Kotonoha, text: str, emotion: Emotion = Emotion.CALM) -> ChatCompletion:
    response = ChatResponse(assistant=sister, text=text, emotion=emotion)
    return ChatCompletion(finish_reason=FinishReason.STOP, content=response.to_json())


def instruction_texts(state: ConversationState) -> list[str]:
    texts = []
    for message in state.chat_messages:
        if isinstance(message, UserChatMessage):
            request = ChatRequest.try_parse(message.content)
            if request is not None and request.input_type.value == "Instruction":
                texts.append(request.text)
    return texts


async def collect(
    service: ConversationService, text: str, state: ConversationState
) -> list[tuple[ConversationState, ConversationResult | None]]:
    return [pair async for pair in service.talk(text, state)]


@pytest.fixture
def completion_provider() -> Mock:
    provider = Mock()
    provider.complete = AsyncMock()
    return provider


@pytest.fixture
def tool_dispatcher(random_generator, datetime_provider) -> ToolDispatcher:
    return ToolDispatcher(
        [ForgetMemory(random_generator), GetCurrentTime(datetime_provider)]
    )


@pytest.fixture
def service(
    prompt_repository,
    conversation_repository,
    completion_provider: Mock,
    tool_dispatcher: ToolDispatcher,
    random_generator,
    datetime_provider,
) -> ConversationService:
    return ConversationService(
        prompt_repository=prompt_repository,
        conversation_repository=conversation_repository,
        completion_provider=completion_provider,
        tool_dispatcher=tool_dispatcher,
        lazy_mode_handler=LazyModeHandler(tool_dispatcher.functions, random_generator),
        datetime_provider=datetime_provider,
    )


@pytest.fixture
async def started_state(service: ConversationService) -> ConversationState:
    return await service.create_new_conversation()


class TestTalkBasics:
    """Basic turn tests."""

    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_input(
        self,
        service: ConversationService,
        completion_provider: Mock,
        state: ConversationState,
        text: str,
    ) -> None:
        """Test that empty input yields the unchanged state once."""
        results = await collect(service, text, state)

        assert results == [(state, None)]
        completion_provider.complete.assert_not_awaited()

    async def test_simple_reply(
        self,
        service: ConversationService,
        completion_provider: Mock,
        conversation_repository,
        started_state: ConversationState,
    ) -> None:
        """Test a turn without functions."""
        completion_provider.complete.return_value = reply(
            Kotonoha.AKANE, "おはようさん", Emotion.JOY
        )

        results = await collect(service, "おはよう", started_state)

        assert len(results) == 1
        state, result = results[0]
        assert result == ConversationResult(
            message="おはようさん", sister=Kotonoha.AKANE, emotion=Emotion.JOY
        )
        assert state.last_saved_message_index == len(state.chat_messages)
        assert conversation_repository.conversations[1] == list(state.chat_messages)

    async def test_request_contains_system_message_and_tools(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test what is sent to the completion backend."""
        completion_provider.complete.return_value = reply(Kotonoha.AKANE, "はい")

        await collect(service, "こんにちは", started_state)

        messages, tools = completion_provider.complete.await_args.args
        assert messages[0] == SystemChatMessage("system message for Akane")
        request = ChatRequest.try_parse(messages[-1].content)
        assert request is not None
        assert request.text == "こんにちは"
        assert [tool["function"]["name"] for tool in tools] == [
            "forget_memory",
            "get_current_time",
        ]

    async def test_creates_conversation_when_missing(
        self,
        service: ConversationService,
        completion_provider: Mock,
        conversation_repository,
        state: ConversationState,
    ) -> None:
        """Test that the first turn starts a conversation with the onboarding."""
        completion_provider.complete.return_value = reply(Kotonoha.AKANE, "はい")
        state = ConversationState(
            system_message_akane=state.system_message_akane,
            system_message_aoi=state.system_message_aoi,
        )

        results = await collect(service, "こんにちは", state)

        new_state, _ = results[-1]
        assert new_state.conversation_id == 1
        assert len(new_state.chat_messages) == len(INITIAL_CONVERSATION) + 2
        assert len(conversation_repository.conversations[1]) == len(
            new_state.chat_messages
        )

    async def test_sister_switch(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test that addressing Aoi switches the sister before generation."""
        completion_provider.complete.return_value = reply(Kotonoha.AOI, "なに？")

        results = await collect(service, "葵ちゃん、ちょっといい？", started_state)

        state, result = results[-1]
        assert result is not None
        assert result.sister == Kotonoha.AOI
        assert state.current_sister == Kotonoha.AOI
        messages = completion_provider.complete.await_args.args[0]
        assert messages[0] == SystemChatMessage("system message for Aoi")
        assert instruction_texts(state) == ["姉妹が切り替わりました(茜 => 葵)"]

    async def test_completion_failure(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test that a backend error yields no result and keeps the input."""
        completion_provider.complete.side_effect = RuntimeError("backend down")

        results = await collect(service, "こんにちは", started_state)

        assert len(results) == 1
        state, result = results[0]
        assert result is None
        assert len(state.chat_messages) == len(started_state.chat_messages) + 1

    async def test_unparsable_reply(
        self,
        service: ConversationService,
        completion_provider: Mock,
        conversation_repository,
        started_state: ConversationState,
    ) -> None:
        """Test that an unparsable reply yields None but is still saved."""
        completion_provider.complete.return_value = ChatCompletion(
            finish_reason=FinishReason.STOP, content="plain text"
        )

        results = await collect(service, "こんにちは", started_state)

        state, result = results[-1]
        assert result is None
        assert state.chat_messages[-1] == AssistantChatMessage(content="plain text")
        assert state.unsaved_messages == ()


class TestTalkFunctions:
    """Function calling tests."""

    async def test_unknown_function(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test that an unknown function is answered and generation continues."""
        completion_provider.complete.side_effect = [
            tool_completion("set_alarm"),
            reply(Kotonoha.AKANE, "ごめん、できへんわ", Emotion.SADNESS),
        ]

        results = await collect(service, "アラームをセットして", started_state)

        state, result = results[-1]
        assert result is not None
        assert result.message == "ごめん、できへんわ"
        assert [f.status for f in result.functions] == [InvocationStatus.NOT_FOUND]
        tool_message = state.chat_messages[-2]
        assert isinstance(tool_message, ToolChatMessage)
        assert tool_message.content == "Function 'set_alarm' does not exist."
        assert completion_provider.complete.await_count == 2

    async def test_function_call(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test a function call that is answered with the current time."""
        completion_provider.complete.side_effect = [
            tool_completion("get_current_time"),
            reply(Kotonoha.AKANE, "12時30分やで"),
        ]

        results = await collect(service, "今何時？", started_state)

        state, result = results[-1]
        assert result is not None
        assert result.functions[0].name == "get_current_time"
        assert result.functions[0].result == "2025/01/01 12:30:00"
        assert state.patience_count == 1
        assert state.last_tool_call_sister == Kotonoha.AKANE

    async def test_round_limit_saves_answered_tool_calls(
        self,
        prompt_repository,
        conversation_repository,
        completion_provider: Mock,
        random_generator,
        datetime_provider,
    ) -> None:
        """Test that a cut-off tool loop never saves a tool call without its result."""
        dispatcher = ToolDispatcher([GetCurrentTime(datetime_provider)], max_rounds=2)
        service = ConversationService(
            prompt_repository=prompt_repository,
            conversation_repository=conversation_repository,
            completion_provider=completion_provider,
            tool_dispatcher=dispatcher,
            lazy_mode_handler=LazyModeHandler(dispatcher.functions, random_generator),
            datetime_provider=datetime_provider,
        )
        started_state = await service.create_new_conversation()
        completion_provider.complete.side_effect = [
            tool_completion("get_current_time", "call_1"),
            tool_completion("get_current_time", "call_2"),
            tool_completion("get_current_time", "call_3"),
        ]

        results = await collect(service, "今何時？", started_state)

        state, result = results[-1]
        assert result is None
        assert completion_provider.complete.await_count == 2
        saved = conversation_repository.conversations[state.conversation_id]
        requested = [
            call.id
            for message in saved
            if isinstance(message, AssistantChatMessage)
            for call in message.tool_calls
        ]
        answered = {
            message.tool_call_id
            for message in saved
            if isinstance(message, ToolChatMessage)
        }
        assert requested == ["call_1", "call_2"]
        assert set(requested) <= answered


class TestTalkLazyMode:
    """Lazy mode tests."""

    async def test_lazy_mode_hands_off_to_other_sister(
        self,
        service: ConversationService,
        completion_provider: Mock,
        random_generator,
        started_state: ConversationState,
    ) -> None:
        """Test that a hand-off yields the refusal and then the other sister."""
        random_generator.values = [0.05]
        completion_provider.complete.side_effect = [
            tool_completion("get_current_time"),
            reply(Kotonoha.AKANE, "葵、任せたで"),
            tool_completion("get_current_time", "call_2"),
            reply(Kotonoha.AOI, "もう、仕方ないなあ。12時30分だよ"),
        ]

        results = await collect(service, "今何時？", started_state)

        assert len(results) == 2
        _, lazy_result = results[0]
        state, result = results[1]
        assert lazy_result is not None
        assert lazy_result.sister == Kotonoha.AKANE
        assert lazy_result.message == "葵、任せたで"
        assert result is not None
        assert result.sister == Kotonoha.AOI
        assert result.message == "もう、仕方ないなあ。12時30分だよ"
        assert state.current_sister == Kotonoha.AOI
        assert state.patience_count == 0

    async def test_refusal_with_tool_calls_is_cancelled(
        self,
        service: ConversationService,
        completion_provider: Mock,
        random_generator,
        started_state: ConversationState,
    ) -> None:
        """Test that a refusal requesting tools falls back to the original."""
        random_generator.values = [0.0]
        completion_provider.complete.side_effect = [
            tool_completion("get_current_time"),
            tool_completion("get_current_time", "call_2"),
            reply(Kotonoha.AKANE, "12時30分やで"),
        ]

        results = await collect(service, "今何時？", started_state)

        assert len(results) == 1
        state, result = results[0]
        assert result is not None
        assert result.sister == Kotonoha.AKANE
        assert result.message == "12時30分やで"
        assert [f.name for f in result.functions] == ["get_current_time"]
        assert state.current_sister == Kotonoha.AKANE
        assert instruction_texts(state).count(CANCEL_LAZY_MODE) == 1

    async def test_failed_acceptance_hides_refusal(
        self,
        service: ConversationService,
        completion_provider: Mock,
        random_generator,
        started_state: ConversationState,
    ) -> None:
        """Test that a failed acceptance yields only the original sister's result."""
        random_generator.values = [0.0]
        completion_provider.complete.side_effect = [
            tool_completion("get_current_time"),
            reply(Kotonoha.AKANE, "葵、任せたで"),
            None,
            reply(Kotonoha.AOI, "12時30分だよ"),
        ]

        results = await collect(service, "今何時？", started_state)

        assert len(results) == 1
        state, result = results[0]
        assert result is not None
        assert result.message == "12時30分だよ"
        assert [f.name for f in result.functions] == ["get_current_time"]
        assert state.current_sister == Kotonoha.AOI
        assert state.patience_count == 1

    async def test_patience_forces_lazy_mode(
        self,
        service: ConversationService,
        completion_provider: Mock,
        random_generator,
        started_state: ConversationState,
    ) -> None:
        """Test that the fourth consecutive request to Akane is pushed onto Aoi."""
        state = started_state
        for i in range(3):
            completion_provider.complete.side_effect = [
                tool_completion("get_current_time", f"call_{i}"),
                reply(Kotonoha.AKANE, "12時30分やで"),
            ]
            results = await collect(service, "今何時？", state)
            state, _ = results[-1]
            assert state.patience_count == i + 1

        completion_provider.complete.side_effect = [
            tool_completion("get_current_time", "call_3"),
            reply(Kotonoha.AKANE, "葵、任せたで"),
            tool_completion("get_current_time", "call_4"),
            reply(Kotonoha.AOI, "はいはい、12時30分だよ"),
        ]
        results = await collect(service, "今何時？", state)

        assert len(results) == 2
        state, result = results[-1]
        assert result is not None
        assert result.sister == Kotonoha.AOI
        assert state.patience_count == 0
        assert random_generator.call_count == 3


class TestTalkForgetMemory:
    """Memory deletion tests."""

    async def test_forget_memory_starts_new_conversation(
        self,
        service: ConversationService,
        completion_provider: Mock,
        conversation_repository,
        started_state: ConversationState,
    ) -> None:
        """Test that a successful deletion reseeds a new conversation."""
        completion_provider.complete.side_effect = [
            tool_completion("forget_memory"),
            reply(Kotonoha.AKANE, "さよなら、マスター", Emotion.SADNESS),
        ]

        results = await collect(service, "記憶を消して", started_state)

        state, result = results[-1]
        assert result is not None
        assert result.message == "さよなら、マスター"
        assert state.conversation_id != started_state.conversation_id
        assert len(state.chat_messages) == len(INITIAL_CONVERSATION)
        assert state.chat_messages == started_state.chat_messages
        assert conversation_repository.conversations[2] == list(state.chat_messages)

    async def test_failed_deletion_keeps_conversation(
        self,
        service: ConversationService,
        completion_provider: Mock,
        random_generator,
        started_state: ConversationState,
    ) -> None:
        """Test that a failed deletion keeps the current conversation."""
        random_generator.values = [0.05]
        completion_provider.complete.side_effect = [
            tool_completion("forget_memory"),
            reply(Kotonoha.AKANE, "よかった、消えてへん"),
        ]

        results = await collect(service, "記憶を消して", started_state)

        state, result = results[-1]
        assert result is not None
        assert result.functions[0].result == ForgetMemory.FAILURE_MESSAGE
        assert state.conversation_id == started_state.conversation_id


class TestSaveState:
    """Checkpoint tests."""

    async def test_failed_save_is_retried(
        self,
        service: ConversationService,
        completion_provider: Mock,
        conversation_repository,
        started_state: ConversationState,
    ) -> None:
        """Test that messages are saved exactly once after a failed save."""
        conversation_repository.fail_append = True
        completion_provider.complete.return_value = reply(Kotonoha.AKANE, "はい")
        state, _ = (await collect(service, "ひとつめ", started_state))[-1]
        assert state.last_saved_message_index == 0

        conversation_repository.fail_append = False
        state, _ = (await collect(service, "ふたつめ", state))[-1]

        assert state.last_saved_message_index == len(state.chat_messages)
        assert conversation_repository.conversations[1] == list(state.chat_messages)

    async def test_nothing_to_save(
        self, service: ConversationService, conversation_repository, state
    ) -> None:
        """Test that a clean state is not written."""
        result = await service.save_state(state)

        assert result is state
        assert conversation_repository.append_calls == 0

    async def test_no_conversation(
        self, service: ConversationService, conversation_repository, state
    ) -> None:
        """Test that a state without conversation is not written."""
        state = ConversationState(
            system_message_akane="a", system_message_aoi="b"
        ).add_assistant_message(Kotonoha.AKANE, "x")

        result = await service.save_state(state)

        assert result is state
        assert conversation_repository.append_calls == 0


class TestCompleteChat:
    """complete_chat tests."""

    async def test_history_limit_strips_orphaned_tool_messages(
        self,
        prompt_repository,
        conversation_repository,
        completion_provider: Mock,
        tool_dispatcher: ToolDispatcher,
        random_generator,
        datetime_provider,
        state: ConversationState,
        now,
    ) -> None:
        """Test that old messages and leading tool results are not sent."""
        service = ConversationService(
            prompt_repository=prompt_repository,
            conversation_repository=conversation_repository,
            completion_provider=completion_provider,
            tool_dispatcher=tool_dispatcher,
            lazy_mode_handler=LazyModeHandler(
                tool_dispatcher.functions, random_generator
            ),
            datetime_provider=datetime_provider,
            history_limit=2,
        )
        state = (
            state.add_user_message("今何時？", now)
            .add_assistant_completion(tool_completion("get_current_time"))
            .add_tool_message("call_1", "2025/01/01 12:30:00")
            .add_user_message("ありがとう", now)
        )
        completion_provider.complete.return_value = reply(Kotonoha.AKANE, "ええよ")

        await service.complete_chat(state)

        messages = completion_provider.complete.await_args.args[0]
        assert len(messages) == 2
        assert isinstance(messages[0], SystemChatMessage)
        assert messages[1] == state.chat_messages[-1]

    async def test_error_returns_none(
        self,
        service: ConversationService,
        completion_provider: Mock,
        state: ConversationState,
    ) -> None:
        """Test that backend errors become None."""
        completion_provider.complete.side_effect = RuntimeError("boom")

        assert await service.complete_chat(state) is None


class TestConversationLifecycle:
    """create/load/replay tests."""

    async def test_create_new_conversation(
        self, service: ConversationService, conversation_repository
    ) -> None:
        """Test that a new conversation is seeded but not yet saved."""
        state = await service.create_new_conversation()

        assert state.conversation_id == 1
        assert len(state.chat_messages) == len(INITIAL_CONVERSATION)
        assert state.last_saved_message_index == 0
        assert state.current_sister == Kotonoha.AKANE
        assert conversation_repository.conversations[1] == []

    async def test_create_failure(
        self, service: ConversationService, conversation_repository
    ) -> None:
        """Test that a store failure yields a default state."""
        conversation_repository.fail_create = True

        state = await service.create_new_conversation()

        assert state.conversation_id is None
        assert state.chat_messages == ()

    async def test_load_without_conversation_creates_one(
        self, service: ConversationService
    ) -> None:
        """Test that loading with an empty store starts a conversation."""
        state = await service.load_latest_conversation()

        assert state.conversation_id == 1
        assert len(state.chat_messages) == len(INITIAL_CONVERSATION)

    async def test_load_restores_conversation(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test that the latest conversation and sister are restored."""
        completion_provider.complete.return_value = reply(Kotonoha.AOI, "なに？")
        saved, _ = (await collect(service, "葵ちゃん", started_state))[-1]

        loaded = await service.load_latest_conversation()

        assert loaded.conversation_id == saved.conversation_id
        assert loaded.chat_messages == saved.chat_messages
        assert loaded.last_saved_message_index == len(saved.chat_messages)
        assert loaded.current_sister == Kotonoha.AOI

    async def test_get_all_messages(
        self,
        service: ConversationService,
        completion_provider: Mock,
        started_state: ConversationState,
    ) -> None:
        """Test that only user input and replies after the onboarding are listed."""
        completion_provider.complete.side_effect = [
            tool_completion("get_current_time"),
            reply(Kotonoha.AOI, "12時30分だよ"),
        ]
        state, _ = (await collect(service, "葵ちゃん、今何時？", started_state))[-1]

        messages = list(service.get_all_messages(state))

        assert messages == [
            (None, "葵ちゃん、今何時？"),
            (Kotonoha.AOI, "12時30分だよ"),
        ]
