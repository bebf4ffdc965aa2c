"""Interactive console chat."""

import asyncio
import logging
from collections.abc import Callable

from kotonoha.application.services import ConversationService
from kotonoha.domain.entities import ConversationResult, ConversationState, Kotonoha

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"exit", "quit"})


class ConsoleChat:
    """Console front end for the conversation service.

    Reads one line per turn and prints every result yielded by the turn.
    The latest state is kept here and passed to the next turn.
    """

    def __init__(
        self,
        conversation_service: ConversationService,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ) -> None:
        """Initialize the console.

        Args:
            conversation_service: Conversation service.
            input_func: Reads one line from the user.
            output_func: Writes one line to the user.
        """
        self._conversation_service = conversation_service
        self._input = input_func
        self._output = output_func

    def show_history(self, state: ConversationState) -> None:
        """Print the conversation so far."""
        for sister, text in self._conversation_service.get_all_messages(state):
            self._output(self._format_line(sister, text))

    async def handle_input(
        self, text: str, state: ConversationState
    ) -> ConversationState:
        """Run one turn and print its results.

        Returns:
            The latest state of the turn.
        """
        async for state, result in self._conversation_service.talk(text, state):
            if result is None:
                continue
            for function in result.functions:
                logger.info("Function invoked: %s -> %s", function.name, function.result)
            self._output(self._format_result(result))
        return state

    async def run(self, state: ConversationState) -> ConversationState:
        """Run the chat loop until EOF or an exit command.

        Returns:
            The final state.
        """
        self.show_history(state)
        while True:
            try:
                text = await asyncio.to_thread(self._input, "> ")
            except EOFError:
                break

            if text.strip().lower() in EXIT_COMMANDS:
                break
            state = await self.handle_input(text, state)

        logger.info("Console chat finished.")
        return state

    def _format_result(self, result: ConversationResult) -> str:
        return f"{self._format_line(result.sister, result.message)} ({result.emotion.value})"

    @staticmethod
    def _format_line(sister: Kotonoha | None, text: str) -> str:
        name = sister.display_name if sister is not None else "あなた"
        return f"{name}: {text}"
