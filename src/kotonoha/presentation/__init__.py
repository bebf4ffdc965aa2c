"""Presentation layer."""

from kotonoha.presentation.console import ConsoleChat

__all__ = ["ConsoleChat"]
