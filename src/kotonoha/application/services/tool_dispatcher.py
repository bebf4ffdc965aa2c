"""Tool dispatcher for function calling."""

import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from kotonoha.domain.entities import (
    ChatCompletion,
    ConversationFunction,
    ConversationState,
    InvocationStatus,
    ToolCall,
)
from kotonoha.domain.services import ToolFunction

logger = logging.getLogger(__name__)

CompleteChat = Callable[[ConversationState], Awaitable[ChatCompletion | None]]


def _decode_raw_arguments(raw_arguments: str) -> dict[str, Any]:
    """Best-effort decode used only for the invocation log."""
    try:
        decoded = json.loads(raw_arguments or "{}")
    except json.JSONDecodeError:
        return {"raw": raw_arguments}
    return decoded if isinstance(decoded, dict) else {"raw": decoded}


class ToolDispatcher:
    """Resolves and invokes the functions requested by the model.

    Failures never escape the dispatch loop. Unknown functions, invalid
    arguments and exceptions raised by a function are recorded as tool
    messages so the model sees what went wrong on the next completion.
    """

    def __init__(self, functions: Sequence[ToolFunction], max_rounds: int = 10) -> None:
        """Initialize the dispatcher.

        Args:
            functions: Functions available to the model.
            max_rounds: Upper bound of tool-call rounds in one turn.
        """
        self._functions = {function.name: function for function in functions}
        self._max_rounds = max_rounds

    @property
    def functions(self) -> dict[str, ToolFunction]:
        return dict(self._functions)

    @property
    def tool_definitions(self) -> list[dict[str, Any]]:
        """Tool catalog sent with every completion request."""
        return [function.to_tool_definition() for function in self._functions.values()]

    def resolve(self, name: str) -> ToolFunction | None:
        """Look up a function by name."""
        return self._functions.get(name)

    async def invoke_tool_call(
        self, tool_call: ToolCall, state: ConversationState
    ) -> ConversationFunction:
        """Invoke a single tool call.

        Args:
            tool_call: Tool call requested by the model.
            state: Current conversation state.

        Returns:
            Record of the invocation with the text to send back as the
            tool message.
        """
        name = tool_call.function_name
        function = self.resolve(name)
        if function is None:
            logger.warning("Function '%s' does not exist.", name)
            return ConversationFunction(
                name=name,
                arguments=_decode_raw_arguments(tool_call.arguments),
                result=f"Function '{name}' does not exist.",
                status=InvocationStatus.NOT_FOUND,
            )

        arguments = function.parse_arguments(tool_call.arguments)
        if arguments is None:
            logger.warning("Failed to parse arguments of '%s'.", name)
            return ConversationFunction(
                name=name,
                arguments=_decode_raw_arguments(tool_call.arguments),
                result=f"Failed to parse arguments of '{name}'.",
                status=InvocationStatus.INVALID_ARGUMENTS,
            )

        logger.info("Executing function: %s", name)
        try:
            result = await function.invoke(arguments, state)
        except Exception:
            logger.exception("Function '%s' raised an error", name)
            return ConversationFunction(
                name=name,
                arguments=arguments,
                result=function.failure_message,
                status=InvocationStatus.FAILED,
            )

        return ConversationFunction(
            name=name,
            arguments=arguments,
            result=result,
            status=InvocationStatus.SUCCEEDED,
        )

    async def invoke_tool_calls(
        self, completion: ChatCompletion, state: ConversationState
    ) -> tuple[ConversationState, list[ConversationFunction]]:
        """Invoke every tool call of a completion in order.

        Returns:
            State with one tool message appended per tool call, and the
            invocation records.
        """
        invoked: list[ConversationFunction] = []
        for tool_call in completion.tool_calls:
            function = await self.invoke_tool_call(tool_call, state)
            state = state.add_tool_message(tool_call.id, function.result)
            invoked.append(function)
        return state, invoked

    async def run(
        self,
        completion: ChatCompletion,
        state: ConversationState,
        complete: CompleteChat,
    ) -> tuple[ConversationState, ChatCompletion, list[ConversationFunction]]:
        """Run function calling until the model stops requesting tools.

        The given completion must already be appended to the state. Each
        follow-up completion is appended as it arrives. If a follow-up
        request fails, the loop stops and the last completion stands.
        After ``max_rounds`` rounds no follow-up is requested, so every
        tool call in the log always has its tool message.

        Args:
            completion: Completion that may request tool calls.
            state: Current conversation state.
            complete: Completion request primitive.

        Returns:
            Updated state, final completion and all invocation records.
        """
        functions: list[ConversationFunction] = []
        rounds = 0
        while completion.requests_tool_calls:
            rounds += 1
            logger.info("Invoking %d function(s)...", len(completion.tool_calls))
            state, invoked = await self.invoke_tool_calls(completion, state)
            functions.extend(invoked)

            if rounds >= self._max_rounds:
                logger.warning("Function calling stopped after %d rounds", rounds)
                break

            next_completion = await complete(state)
            if next_completion is None:
                logger.warning("Completion failed while calling functions.")
                break

            completion = next_completion
            state = state.add_assistant_completion(completion)

        return state, completion, functions
