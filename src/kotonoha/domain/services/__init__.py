"""Domain services."""

from kotonoha.domain.services.protocols import (
    CompletionProvider,
    DateTimeProvider,
    PromptRepository,
    RandomGenerator,
)
from kotonoha.domain.services.sister_switching import SisterSwitchingService
from kotonoha.domain.services.tool_function import ToolFunction

__all__ = [
    "CompletionProvider",
    "DateTimeProvider",
    "PromptRepository",
    "RandomGenerator",
    "SisterSwitchingService",
    "ToolFunction",
]
