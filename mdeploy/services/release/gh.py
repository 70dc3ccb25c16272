from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from mdeploy.core.result import Err, Ok, Result
from mdeploy.platform.process import CommandRunner, SubprocessRunner
from mdeploy.services.release.errors import ReleaseError


class ReleasePublisher(Protocol):
    def create_release(self, *, tag: str, title: str, body: str) -> Result[None, ReleaseError]: ...


def ensure_gh_available(
    which: Callable[[str], str | None] = shutil.which,
) -> Result[None, ReleaseError]:
    if which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


class GhReleasePublisher:
    """Publishes releases with ``gh release create``."""

    def __init__(
        self,
        repo_root: Path,
        runner: CommandRunner | None = None,
        *,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._root = repo_root
        self._runner: CommandRunner = runner or SubprocessRunner()
        self._which = which

    def create_release(self, *, tag: str, title: str, body: str) -> Result[None, ReleaseError]:
        available = ensure_gh_available(self._which)
        if isinstance(available, Err):
            return available

        result = self._runner.run(
            ["gh", "release", "create", tag, "--notes", body, "-t", title],
            cwd=self._root,
        )
        if not result.ok:
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"gh release create {tag} failed (exit {result.returncode})",
                    hint=result.stderr.strip() or None,
                )
            )
        return Ok(None)


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    tag: str
    title: str
    body: str


def _empty_releases() -> list[PublishedRelease]:
    return []


@dataclass
class RecordingPublisher:
    """Publisher that records releases instead of creating them."""

    error: ReleaseError | None = None
    releases: list[PublishedRelease] = field(default_factory=_empty_releases)

    def create_release(self, *, tag: str, title: str, body: str) -> Result[None, ReleaseError]:
        if self.error is not None:
            return Err(self.error)
        self.releases.append(PublishedRelease(tag=tag, title=title, body=body))
        return Ok(None)
