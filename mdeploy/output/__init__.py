"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .prompt import ConfirmProtocol, StaticConfirm, TyperConfirm

__all__ = [
    "ConfirmProtocol",
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "StaticConfirm",
    "Style",
    "TyperConfirm",
]
