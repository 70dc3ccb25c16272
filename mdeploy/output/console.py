"""Terminal output for the deploy flow.

The driver reports progress, step traces and the changelog preview through
``ConsoleProtocol``. ``RichConsole`` renders them; ``MockConsole`` keeps
them as records for assertions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    INFO = auto()
    DIM = auto()
    BOLD = auto()
    DEBUG = auto()
    MARKDOWN = auto()


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None:
        """Trace line; only shown when debug output is on."""
        ...

    def markdown(self, text: str, width: int) -> None:
        """Render ``text`` as markdown, wrapped at ``width`` columns."""
        ...

    def newline(self) -> None: ...


_RICH_STYLES = {
    Style.SUCCESS: "green",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.BOLD: "bold",
}


class RichConsole:
    def __init__(self, *, debug: bool = False, scope: str = "deploy") -> None:
        from rich.console import Console

        self._console = Console()
        self._debug = debug
        self._scope = scope

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._console.print(message, style=_RICH_STYLES.get(style))

    def success(self, message: str) -> None:
        self._console.print(f"[green]OK[/green] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {message}")

    def debug(self, message: str) -> None:
        if not self._debug:
            return
        from rich.markup import escape

        self._console.print(f"[magenta]{self._scope}[/magenta] [dim]{escape(message)}[/dim]")

    def markdown(self, text: str, width: int) -> None:
        from rich.markdown import Markdown
        from rich.padding import Padding

        # indented so the preview stands apart from the prompt
        self._console.print(Padding(Markdown(text), (0, 0, 0, 2)), width=width)

    def newline(self) -> None:
        self._console.print()


@dataclass(frozen=True, slots=True)
class OutputRecord:
    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Records every call; debug lines are always kept."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def debug(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.DEBUG))

    def markdown(self, text: str, width: int) -> None:
        self.outputs.append(OutputRecord(text, Style.MARKDOWN))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def styled(self, style: Style) -> list[str]:
        return [o.message for o in self.outputs if o.style == style]
