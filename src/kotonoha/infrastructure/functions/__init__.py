"""Built-in functions available to the sisters."""

from kotonoha.infrastructure.functions.forget_memory import ForgetMemory
from kotonoha.infrastructure.functions.get_current_time import GetCurrentTime

__all__ = [
    "ForgetMemory",
    "GetCurrentTime",
]
