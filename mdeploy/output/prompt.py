"""Yes/no confirmation.

The release driver blocks on exactly one human decision. It asks through
``ConfirmProtocol`` so tests can answer without a terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from mdeploy.core.result import Err, Ok, Result

__all__ = ["ConfirmProtocol", "StaticConfirm", "TyperConfirm"]


class ConfirmProtocol(Protocol):
    def ask(self, prompt: str, *, default: bool) -> Result[bool, str]:
        """Return the answer, or Err(message) if no answer could be read."""
        ...


class TyperConfirm:
    """Interactive confirmation on the terminal."""

    def ask(self, prompt: str, *, default: bool) -> Result[bool, str]:
        import typer

        try:
            return Ok(typer.confirm(prompt, default=default))
        except typer.Abort:
            return Err("confirmation aborted")


def _empty_prompts() -> list[str]:
    return []


@dataclass
class StaticConfirm:
    """Answers every prompt with a fixed value and records the prompts."""

    answer: bool
    prompts: list[str] = field(default_factory=_empty_prompts)

    def ask(self, prompt: str, *, default: bool) -> Result[bool, str]:
        self.prompts.append(prompt)
        return Ok(self.answer)
