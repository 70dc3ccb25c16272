"""Ok/Err values returned by every fallible git, gh and release call.

Callers branch on the variant instead of catching exceptions::

    head = repo.rev_parse("HEAD")
    if isinstance(head, Err):
        return Err(git_failed(head.error))
    sha = head.value
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E

    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> None:
        """Raise ValueError carrying the error; for tests and scripts."""
        raise ValueError(f"unwrap on Err: {self.error}")


type Result[T, E] = Ok[T] | Err[E]
