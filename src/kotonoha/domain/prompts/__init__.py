"""Prompt texts appended to the conversation log."""

from kotonoha.domain.prompts.initial_conversation import (
    INITIAL_CONVERSATION,
    InitialMessage,
    load_initial_conversation,
)
from kotonoha.domain.prompts.instruction import (
    BEGIN_LAZY_MODE,
    CANCEL_LAZY_MODE,
    END_LAZY_MODE,
    switch_sister_to,
)

__all__ = [
    "BEGIN_LAZY_MODE",
    "CANCEL_LAZY_MODE",
    "END_LAZY_MODE",
    "INITIAL_CONVERSATION",
    "InitialMessage",
    "load_initial_conversation",
    "switch_sister_to",
]
