"""Conversation service: runs one turn of talking with the Kotonoha sisters."""

import logging
from collections.abc import AsyncIterator, Iterator, Sequence
from dataclasses import replace
from datetime import datetime

from kotonoha.application.services.lazy_mode import LazyModeHandler
from kotonoha.application.services.tool_dispatcher import ToolDispatcher
from kotonoha.domain.entities import (
    AssistantChatMessage,
    ChatCompletion,
    ChatInputType,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ConversationFunction,
    ConversationResult,
    ConversationState,
    InvocationStatus,
    Kotonoha,
    ToolChatMessage,
    UserChatMessage,
)
from kotonoha.domain.prompts import INITIAL_CONVERSATION, load_initial_conversation
from kotonoha.domain.repositories import ConversationRepository
from kotonoha.domain.services import (
    CompletionProvider,
    DateTimeProvider,
    PromptRepository,
    SisterSwitchingService,
)

logger = logging.getLogger(__name__)


def select_recent_messages(
    messages: Sequence[ChatMessage], limit: int
) -> list[ChatMessage]:
    """Take the most recent messages to send to the model.

    Leading tool messages are dropped because a tool result sent without
    the assistant message that requested it is rejected by the backend.

    Args:
        messages: Conversation log, oldest first.
        limit: Maximum number of messages.

    Returns:
        Recent messages, oldest first.
    """
    recent = list(messages[-limit:]) if limit > 0 else []
    while recent and isinstance(recent[0], ToolChatMessage):
        recent.pop(0)
    return recent


class ConversationService:
    """Drives the turn-based conversation with the two sisters.

    A turn detects sister switching, requests a completion, runs lazy mode
    and function calling, and checkpoints new messages to the repository.
    Recoverable failures are logged and never raised to the caller.
    """

    def __init__(
        self,
        prompt_repository: PromptRepository,
        conversation_repository: ConversationRepository,
        completion_provider: CompletionProvider,
        tool_dispatcher: ToolDispatcher,
        lazy_mode_handler: LazyModeHandler,
        datetime_provider: DateTimeProvider,
        sister_switching_service: SisterSwitchingService | None = None,
        *,
        history_limit: int = 20,
    ) -> None:
        """Initialize the service.

        Args:
            prompt_repository: Source of the system messages.
            conversation_repository: Durable store for the conversation.
            completion_provider: Chat completion backend.
            tool_dispatcher: Dispatcher for requested functions.
            lazy_mode_handler: Lazy mode protocol.
            datetime_provider: Clock used when no time is given.
            sister_switching_service: Sister switch detector.
            history_limit: Number of recent messages sent to the model.
        """
        self._prompt_repository = prompt_repository
        self._conversation_repository = conversation_repository
        self._completion_provider = completion_provider
        self._tool_dispatcher = tool_dispatcher
        self._lazy_mode_handler = lazy_mode_handler
        self._datetime_provider = datetime_provider
        self._sister_switching_service = (
            sister_switching_service or SisterSwitchingService()
        )
        self._history_limit = history_limit

    def default_state(self) -> ConversationState:
        """Create an empty state with Akane as the current sister."""
        return ConversationState(
            system_message_akane=self._prompt_repository.get_system_message(
                Kotonoha.AKANE
            ),
            system_message_aoi=self._prompt_repository.get_system_message(
                Kotonoha.AOI
            ),
        )

    async def create_new_conversation(
        self, now: datetime | None = None
    ) -> ConversationState:
        """Start a new conversation seeded with the initial conversation.

        If the repository fails, the returned state has no conversation ID
        and the next turn tries again.
        """
        now = now or self._datetime_provider.now()
        logger.info("Creating new conversation...")

        state = self.default_state()
        try:
            conversation_id = await self._conversation_repository.create_conversation()
        except Exception:
            logger.exception("Failed to create new conversation")
            return state

        logger.info("New conversation created: id=%d", conversation_id)
        state = load_initial_conversation(state, now)
        return replace(state, conversation_id=conversation_id)

    async def load_latest_conversation(self) -> ConversationState:
        """Load the most recent conversation, or create one if none exists.

        The current sister is restored from the last message when it is a
        parseable reply.
        """
        logger.info("Loading latest conversation...")

        try:
            conversation_id = await self._conversation_repository.latest_conversation_id()
        except Exception:
            logger.exception("Failed to get latest conversation ID")
            conversation_id = None

        if conversation_id is None:
            logger.info("No existing conversation found.")
            return await self.create_new_conversation()

        try:
            messages = await self._conversation_repository.load_messages(
                conversation_id
            )
        except Exception:
            logger.exception("Failed to load conversation: id=%d", conversation_id)
            return self.default_state()

        logger.info(
            "Loaded conversation: id=%d, message_count=%d",
            conversation_id,
            len(messages),
        )

        current_sister = Kotonoha.AKANE
        if messages and isinstance(messages[-1], AssistantChatMessage):
            response = ChatResponse.try_parse(messages[-1].content)
            if response is not None:
                current_sister = response.assistant
        logger.info("Current sister set to: %s", current_sister.value)

        return replace(
            self.default_state(),
            current_sister=current_sister,
            conversation_id=conversation_id,
            chat_messages=tuple(messages),
            last_saved_message_index=len(messages),
        )

    def get_all_messages(
        self, state: ConversationState
    ) -> Iterator[tuple[Kotonoha | None, str]]:
        """Replay the conversation for display.

        The initial conversation, tool messages, instructions and entries
        without text are skipped.

        Yields:
            (sister, text) pairs. sister is None for user messages.
        """
        for message in state.chat_messages[len(INITIAL_CONVERSATION) :]:
            if isinstance(message, AssistantChatMessage):
                response = ChatResponse.try_parse(message.content)
                if response is not None:
                    yield response.assistant, response.text
            elif isinstance(message, UserChatMessage):
                request = ChatRequest.try_parse(message.content)
                if request is not None and request.input_type == ChatInputType.USER:
                    yield None, request.text

    async def save_state(self, state: ConversationState) -> ConversationState:
        """Checkpoint unsaved messages to the repository.

        The checkpoint only advances when the write succeeds, so a failed
        range is retried by a later call.
        """
        if state.conversation_id is None:
            return state

        unsaved_messages = state.unsaved_messages
        if not unsaved_messages:
            return state

        logger.info(
            "Saving state: conversation_id=%d, unsaved_message_count=%d",
            state.conversation_id,
            len(unsaved_messages),
        )
        try:
            await self._conversation_repository.append_messages(
                state.conversation_id, unsaved_messages
            )
        except Exception:
            logger.exception("Failed to save state")
            return state

        logger.info("State saved successfully.")
        return state.mark_saved()

    async def complete_chat(self, state: ConversationState) -> ChatCompletion | None:
        """Request a completion for the current conversation.

        Returns:
            The completion, or None if the request failed.
        """
        messages = [
            state.full_chat_messages[0],
            *select_recent_messages(state.chat_messages, self._history_limit),
        ]
        try:
            return await self._completion_provider.complete(
                messages, self._tool_dispatcher.tool_definitions
            )
        except Exception:
            logger.exception("Chat completion failed")
            return None

    async def talk(
        self,
        text: str,
        state: ConversationState,
        now: datetime | None = None,
    ) -> AsyncIterator[tuple[ConversationState, ConversationResult | None]]:
        """Talk with the Kotonoha sisters.

        Yields an intermediate result when a sister pushes the task onto the
        other one, followed by the final result of the turn. Every yielded
        state must be kept by the caller and passed to the next turn.

        Args:
            text: User input.
            state: Current conversation state.
            now: Local time of the input (defaults to the clock).

        Yields:
            (state, result) pairs. result is None when no reply was produced.
        """
        if not text or not text.strip():
            yield state, None
            return

        logger.info("Starting conversation with input: '%s'", text)
        now = now or self._datetime_provider.now()

        state = await self._ensure_conversation_exists(state, now)

        # 姉妹切り替え
        state = self._sister_switching_service.try_switch_sister(text, now, state)

        # 返信を生成
        state = state.add_user_message(text, now)
        completion = await self.complete_chat(state)
        if completion is None:
            yield state, None
            return

        # 忍耐値の処理
        if completion.requests_tool_calls:
            state = state.record_tool_call()

        # 怠け癖モード処理
        lazy_result, state = await self._lazy_mode_handler.handle(
            completion, state, now, self.complete_chat
        )
        if lazy_result.was_lazy and lazy_result.lazy_response is not None:
            # 怠けると姉妹が入れ替わるのでカウンターをリセット
            state = state.reset_patience_count()
            yield state, lazy_result.lazy_response

        completion = lazy_result.final_completion
        state = state.add_assistant_completion(completion)

        # 関数の実行
        state, completion, functions = await self._tool_dispatcher.run(
            completion, state, self.complete_chat
        )

        # 記憶削除時は新しい会話にする
        state = await self._handle_memory_deletion(functions, state, now)
        state = await self.save_state(state)

        response = ChatResponse.try_parse(completion.content)
        if response is None:
            logger.error("Failed to parse completion: %s", completion.content)
            yield state, None
            return

        yield state, ConversationResult(
            message=response.text,
            sister=state.current_sister,
            emotion=response.emotion,
            functions=functions,
        )

    async def _ensure_conversation_exists(
        self, state: ConversationState, now: datetime
    ) -> ConversationState:
        if state.conversation_id is None:
            return await self.create_new_conversation(now)
        return state

    async def _handle_memory_deletion(
        self,
        functions: list[ConversationFunction],
        state: ConversationState,
        now: datetime,
    ) -> ConversationState:
        if any(self._clears_conversation(function) for function in functions):
            logger.info("Memory deletion detected. Creating new conversation...")
            return await self.create_new_conversation(now)
        return state

    def _clears_conversation(self, function: ConversationFunction) -> bool:
        if function.status != InvocationStatus.SUCCEEDED:
            return False
        tool = self._tool_dispatcher.resolve(function.name)
        return tool is not None and tool.clears_conversation(function.result)
