"""External command execution.

Commands go through a ``CommandRunner`` so callers never parse raw
``subprocess`` output themselves. A runner returns a ``CommandResult``
(exit status, stdout, stderr); ``to_result()`` turns it into the usual
``Result[str, ProcessError]``:

    runner = SubprocessRunner()
    match runner.run(["git", "status", "--porcelain"], cwd=repo_root).to_result():
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"failed: {error.stderr}")

``RecordingRunner`` answers from scripted responses and records every call.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from mdeploy.core.result import Err, Ok, Result

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ProcessError",
    "RecordingRunner",
    "SubprocessRunner",
]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed command.

    Attributes:
        command: The command that was executed.
        returncode: The exit code (-1 if the process could not start).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Structured outcome of one command execution."""

    command: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def to_result(self) -> Result[str, ProcessError]:
        """Ok(stdout) on exit 0, Err(ProcessError) otherwise."""
        if self.ok:
            return Ok(self.stdout)
        return Err(
            ProcessError(
                command=self.command,
                returncode=self.returncode,
                stdout=self.stdout,
                stderr=self.stderr,
            )
        )


class CommandRunner(Protocol):
    """Runs an external command to completion."""

    def run(self, cmd: list[str], *, cwd: Path) -> CommandResult: ...


class SubprocessRunner:
    """Runs commands with ``subprocess.run``, blocking until they exit."""

    def run(self, cmd: list[str], *, cwd: Path) -> CommandResult:
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            return CommandResult(command=tuple(cmd), returncode=-1, stderr=str(e))

        return CommandResult(
            command=tuple(cmd),
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )


def _contains(haystack: tuple[str, ...], needle: tuple[str, ...]) -> bool:
    """True if ``needle`` occurs as a contiguous run inside ``haystack``."""
    n = len(needle)
    if n == 0:
        return True
    return any(haystack[i : i + n] == needle for i in range(len(haystack) - n + 1))


@dataclass(frozen=True, slots=True)
class _Rule:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def _empty_rules() -> list[_Rule]:
    return []


def _empty_calls() -> list[tuple[str, ...]]:
    return []


@dataclass
class RecordingRunner:
    """Runner that answers from scripted responses.

    A rule matches a command when its arguments appear in the command as a
    contiguous run; the first registered match wins. Unmatched commands fail
    with exit 127 so a missing script shows up as an error.
    """

    rules: list[_Rule] = field(default_factory=_empty_rules)
    calls: list[tuple[str, ...]] = field(default_factory=_empty_calls)

    def on(
        self,
        *args: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> RecordingRunner:
        self.rules.append(_Rule(tuple(args), returncode, stdout, stderr))
        return self

    def run(self, cmd: list[str], *, cwd: Path) -> CommandResult:
        command = tuple(cmd)
        self.calls.append(command)
        for rule in self.rules:
            if _contains(command, rule.args):
                return CommandResult(
                    command=command,
                    returncode=rule.returncode,
                    stdout=rule.stdout,
                    stderr=rule.stderr,
                )
        return CommandResult(
            command=command,
            returncode=127,
            stderr=f"no scripted response for: {' '.join(command)}",
        )

    def ran(self, *args: str) -> bool:
        """True if any recorded call contains ``args`` contiguously."""
        needle = tuple(args)
        return any(_contains(call, needle) for call in self.calls)
