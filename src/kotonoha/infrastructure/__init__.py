"""Infrastructure layer."""

from kotonoha.infrastructure.runtime import SystemDateTimeProvider, SystemRandomGenerator

__all__ = [
    "SystemDateTimeProvider",
    "SystemRandomGenerator",
]
