"""Git repository abstraction.

This module provides the Repository class for the git operations a release
needs. All operations return Result types; nothing here raises on a failed
git call.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.is_clean():
        case Ok(True):
            print("Working tree clean")
        case Ok(False):
            print("Uncommitted changes")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from mdeploy.core.result import Err, Ok, Result
from mdeploy.platform.process import CommandRunner, ProcessError, SubprocessRunner

__all__ = [
    "CommitRecord",
    "GitError",
    "Repository",
]

# Unit and record separators keep subjects with arbitrary text parseable.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%h%x1f%H%x1f%s%x1f%an%x1f%aI%x1e"


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """One commit as reported by ``git log``."""

    short_hash: str
    long_hash: str
    subject: str
    author_name: str
    author_date: datetime


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
        runner: Executes the git binary
    """

    def __init__(self, path: Path, runner: CommandRunner | None = None) -> None:
        self.path = path
        self.runner: CommandRunner = runner or SubprocessRunner()

    def is_clean(self) -> Result[bool, GitError]:
        """True if there are no staged, unstaged or untracked changes."""
        result = self._run(["status", "--porcelain"])
        if isinstance(result, Err):
            return Err(self._error("status", result.error, "git status failed"))
        return Ok(result.value.strip() == "")

    def current_branch(self) -> Result[str | None, GitError]:
        """Get current branch name; None on a detached HEAD."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(result, Err):
            return Err(self._error("rev-parse", result.error, "cannot determine branch"))
        branch = result.value.strip()
        return Ok(None if branch in ("", "HEAD") else branch)

    def fetch_tags(self) -> Result[None, GitError]:
        """Fetch remote tags, replacing local tags that diverged."""
        result = self._run(["fetch", "--tags", "--force"])
        if isinstance(result, Err):
            return Err(self._error("fetch --tags", result.error, "fetch failed"))
        return Ok(None)

    def list_tags(self) -> Result[tuple[str, ...], GitError]:
        result = self._run(["tag", "--list"])
        if isinstance(result, Err):
            return Err(self._error("tag --list", result.error, "cannot list tags"))
        return Ok(tuple(ln.strip() for ln in result.value.splitlines() if ln.strip()))

    def tag_exists(self, name: str) -> Result[bool, GitError]:
        """Point lookup of a single tag.

        ``rev-parse --verify --quiet`` exits 1 when the ref is missing; any
        other failure is reported as an error.
        """
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/tags/{name}"])
        if isinstance(result, Ok):
            return Ok(True)
        if result.error.returncode == 1:
            return Ok(False)
        return Err(self._error("rev-parse", result.error, f"cannot look up tag {name}"))

    def rev_parse(self, ref: str) -> Result[str, GitError]:
        """Resolve a ref to a full commit hash."""
        result = self._run(["rev-parse", ref])
        if isinstance(result, Err):
            return Err(self._error("rev-parse", result.error, f"cannot resolve {ref}"))
        return Ok(result.value.strip())

    def create_tag(self, name: str) -> Result[None, GitError]:
        result = self._run(["tag", name])
        if isinstance(result, Err):
            return Err(self._error("tag", result.error, f"cannot create tag {name}"))
        return Ok(None)

    def push_tag(self, remote: str, name: str) -> Result[None, GitError]:
        result = self._run(["push", remote, f"refs/tags/{name}"])
        if isinstance(result, Err):
            return Err(self._error("push", result.error, f"cannot push tag {name}"))
        return Ok(None)

    def log(self, since_tag: str | None, until: str) -> Result[tuple[CommitRecord, ...], GitError]:
        """Commits reachable from ``until`` but not from tag ``since_tag``, newest first.

        With ``since_tag=None`` the whole history up to ``until`` is returned.
        The tag is qualified so a branch of the same name cannot shadow it.
        """
        rev = until if since_tag is None else f"refs/tags/{since_tag}..{until}"
        result = self._run(["log", f"--format={_LOG_FORMAT}", rev])
        if isinstance(result, Err):
            return Err(self._error("log", result.error, f"cannot read history for {rev}"))
        try:
            return Ok(_parse_log(result.value))
        except ValueError as e:
            return Err(GitError(command="log", message=f"unexpected git log output: {e}"))

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return self.runner.run(["git", "-C", str(self.path), *args], cwd=self.path).to_result()

    def _error(self, command: str, error: ProcessError, fallback: str) -> GitError:
        return GitError(
            command=command,
            message=error.stderr.strip() or error.stdout.strip() or fallback,
            returncode=error.returncode,
        )


def _parse_log(output: str) -> tuple[CommitRecord, ...]:
    commits: list[CommitRecord] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(_FIELD_SEP)
        if len(fields) != 5:
            raise ValueError(f"expected 5 fields, got {len(fields)}")
        short_hash, long_hash, subject, author_name, author_date = fields
        commits.append(
            CommitRecord(
                short_hash=short_hash,
                long_hash=long_hash,
                subject=subject,
                author_name=author_name,
                author_date=datetime.fromisoformat(author_date),
            )
        )
    return tuple(commits)
