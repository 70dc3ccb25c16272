from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from mdeploy.git.repository import GitError

ReleaseErrorKind = Literal[
    "invalid_input",
    "dirty_tree",
    "wrong_branch",
    "git_failed",
    "gh_missing",
    "publish_failed",
    "prompt_failed",
    "internal_error",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None


def git_failed(error: GitError) -> ReleaseError:
    return ReleaseError(
        kind="git_failed",
        message=f"git {error.command} failed: {error.message}",
    )
