"""Lazy mode: a sister refuses a task and pushes it onto the other one."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from kotonoha.application.services.tool_dispatcher import CompleteChat
from kotonoha.domain.entities import (
    ChatCompletion,
    ChatResponse,
    ConversationResult,
    ConversationState,
)
from kotonoha.domain.prompts import BEGIN_LAZY_MODE, CANCEL_LAZY_MODE, END_LAZY_MODE
from kotonoha.domain.services import RandomGenerator, ToolFunction

logger = logging.getLogger(__name__)


class LazyModeStage(str, Enum):
    """Stages of the lazy mode protocol.

    IDLE -> CONSIDERING -> REFUSING -> HANDED_OFF -> ACCEPTED, with
    CANCELLED reachable from REFUSING.
    """

    IDLE = "idle"
    CONSIDERING = "considering"
    REFUSING = "refusing"
    HANDED_OFF = "handed_off"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class LazyModeResult:
    """怠け癖モードの結果

    Attributes:
        final_completion: 最終的な生成結果
        stage: 到達した段階
        lazy_response: タスク押し付け時の応答（フロント表示用、ACCEPTED のときのみ）
    """

    final_completion: ChatCompletion
    stage: LazyModeStage = LazyModeStage.IDLE
    lazy_response: ConversationResult | None = None

    @property
    def was_lazy(self) -> bool:
        """Whether the task was actually handed off and accepted."""
        return self.stage == LazyModeStage.ACCEPTED


class LazyModeHandler:
    """Runs the lazy mode protocol on a tool-call completion.

    The handler only rewrites the message log and re-requests completions;
    it never invokes functions itself.
    """

    def __init__(
        self,
        functions: Mapping[str, ToolFunction],
        random_generator: RandomGenerator,
        *,
        patience_threshold: int = 3,
        lazy_probability: float = 0.1,
    ) -> None:
        """Initialize the handler.

        Args:
            functions: Registered functions, keyed by name.
            random_generator: Random source for the lazy probability.
            patience_threshold: Lazy mode is forced once patience exceeds this.
            lazy_probability: Probability of lazy mode below the threshold.
        """
        self._functions = functions
        self._random_generator = random_generator
        self._patience_threshold = patience_threshold
        self._lazy_probability = lazy_probability

    def should_be_lazy(
        self, completion: ChatCompletion, state: ConversationState
    ) -> bool:
        """Decide whether the current sister refuses the requested task.

        Args:
            completion: Latest completion.
            state: Conversation state with the updated patience count.

        Returns:
            True if lazy mode should start.
        """
        # 関数呼び出し以外は怠けない
        if not completion.requests_tool_calls:
            return False

        # 怠け癖対象外の関数が含まれていたら怠けない
        requested = [
            self._functions[tool_call.function_name]
            for tool_call in completion.tool_calls
            if tool_call.function_name in self._functions
        ]
        if any(not function.can_be_lazy for function in requested):
            logger.info("Lazy mode skipped: function cannot be lazy.")
            return False

        if state.patience_count > self._patience_threshold:
            logger.info(
                "Lazy mode triggered: patience count exceeded (%d).",
                state.patience_count,
            )
            return True

        lazy = self._random_generator.next_double() < self._lazy_probability
        if lazy:
            logger.info("Lazy mode triggered: random probability.")
        return lazy

    async def handle(
        self,
        completion: ChatCompletion,
        state: ConversationState,
        now: datetime,
        complete: CompleteChat,
    ) -> tuple[LazyModeResult, ConversationState]:
        """Run lazy mode for a completion.

        Args:
            completion: Completion returned for the user input.
            state: Conversation state.
            now: Time stamped on appended instructions.
            complete: Completion request primitive.

        Returns:
            The result and the updated state.
        """
        if not self.should_be_lazy(completion, state):
            return LazyModeResult(final_completion=completion), state

        refusing_sister = state.current_sister
        logger.info("Lazy mode activated for %s.", refusing_sister.value)

        # タスクを押し付ける返信を生成
        state = state.add_instruction(BEGIN_LAZY_MODE[refusing_sister], now)
        logger.info("Generating refusal response...")
        lazy_completion = await complete(state)

        # それでも関数呼び出しされることがあるのでチェック
        if lazy_completion is None or lazy_completion.requests_tool_calls:
            logger.warning("Lazy mode cancelled: refusal was not generated.")
            state = state.add_instruction(CANCEL_LAZY_MODE, now)
            return (
                LazyModeResult(
                    final_completion=completion, stage=LazyModeStage.CANCELLED
                ),
                state,
            )

        state = state.add_assistant_completion(lazy_completion)
        lazy_response = self._to_result(lazy_completion)

        # 姉妹を切り替えて引き受けさせる
        state = state.add_instruction(END_LAZY_MODE[refusing_sister], now)
        state = state.switch_to_other_sister()
        logger.info(
            "Switching sister: %s -> %s",
            refusing_sister.value,
            state.current_sister.value,
        )

        logger.info("Generating acceptance response...")
        accept_completion = await complete(state)
        if accept_completion is None:
            # 姉妹の切り替えは戻さず、元の生成結果を使う。断りの返信は表示しない
            logger.warning("Failed to generate acceptance response.")
            return (
                LazyModeResult(
                    final_completion=completion,
                    stage=LazyModeStage.HANDED_OFF,
                ),
                state,
            )

        state = state.reset_patience_count()
        logger.info("Lazy mode completed successfully.")
        return (
            LazyModeResult(
                final_completion=accept_completion,
                stage=LazyModeStage.ACCEPTED,
                lazy_response=lazy_response,
            ),
            state,
        )

    def _to_result(self, completion: ChatCompletion) -> ConversationResult | None:
        response = ChatResponse.try_parse(completion.content)
        if response is None:
            logger.warning("Failed to parse refusal response: %s", completion.content)
            return None
        return ConversationResult(
            message=response.text,
            sister=response.assistant,
            emotion=response.emotion,
        )
