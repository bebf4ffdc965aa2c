"""Base class for functions the model can call."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from kotonoha.domain.entities import ConversationState

logger = logging.getLogger(__name__)


class ToolFunction(ABC):
    """Function exposed to the model through function calling.

    Subclasses set ``name``, ``description`` and ``parameters`` and
    implement ``invoke``. Argument validation can be customized by
    overriding ``validate_arguments``.

    Attributes:
        name: Function name the model uses to call it.
        description: Description sent in the tool catalog.
        parameters: JSON schema of the arguments.
        can_be_lazy: Whether the sisters may push this task onto each other.
        failure_message: Result recorded when ``invoke`` raises.
    """

    name: str
    description: str
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": {},
        "required": [],
        "additionalProperties": False,
    }
    can_be_lazy: bool = True
    failure_message: str = "関数の実行に失敗しました"

    def parse_arguments(self, raw_arguments: str) -> dict[str, Any] | None:
        """Parse the raw JSON arguments.

        Args:
            raw_arguments: JSON payload produced by the model.

        Returns:
            Parsed arguments, or None if the payload is not a JSON object or
            fails validation.
        """
        try:
            arguments = json.loads(raw_arguments or "{}")
        except json.JSONDecodeError:
            logger.warning("Invalid JSON arguments for %s: %s", self.name, raw_arguments)
            return None

        if not isinstance(arguments, dict):
            return None
        if not self.validate_arguments(arguments):
            logger.warning("Argument validation failed for %s", self.name)
            return None
        return arguments

    def validate_arguments(self, arguments: dict[str, Any]) -> bool:
        """Additional validation hook for subclasses."""
        return True

    def clears_conversation(self, result: str) -> bool:
        """Whether this result means the conversation memory was erased."""
        return False

    @abstractmethod
    async def invoke(self, arguments: dict[str, Any], state: ConversationState) -> str:
        """Execute the function.

        Args:
            arguments: Parsed arguments.
            state: Read-only view of the conversation.

        Returns:
            Result text recorded as the tool message.
        """

    def to_tool_definition(self) -> dict[str, Any]:
        """Build the tool definition sent to the model."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
