"""Release preconditions: clean tree, release branch, fresh tags."""

from __future__ import annotations

from mdeploy.core.config import DEFAULT_RELEASE_BRANCHES
from mdeploy.core.result import Err, Ok, Result
from mdeploy.git.repository import Repository
from mdeploy.services.release.errors import ReleaseError, git_failed


class PreflightChecker:
    def __init__(
        self,
        repo: Repository,
        *,
        release_branches: tuple[str, ...] = DEFAULT_RELEASE_BRANCHES,
    ) -> None:
        self._repo = repo
        self._release_branches = release_branches

    def is_working_tree_clean(self) -> Result[bool, ReleaseError]:
        clean = self._repo.is_clean()
        if isinstance(clean, Err):
            return Err(git_failed(clean.error))
        return clean

    def is_on_release_branch(self) -> Result[bool, ReleaseError]:
        """True iff HEAD is exactly one of the release branches.

        A detached HEAD is never a release branch.
        """
        branch = self._repo.current_branch()
        if isinstance(branch, Err):
            return Err(git_failed(branch.error))
        return Ok(branch.value is not None and branch.value in self._release_branches)

    def fetch_remote_tags(self) -> Result[None, ReleaseError]:
        fetched = self._repo.fetch_tags()
        if isinstance(fetched, Err):
            return Err(git_failed(fetched.error))
        return Ok(None)

    def ensure_clean(self) -> Result[None, ReleaseError]:
        clean = self.is_working_tree_clean()
        if isinstance(clean, Err):
            return clean
        if not clean.value:
            return Err(
                ReleaseError(
                    kind="dirty_tree",
                    message="please make sure there are no changes",
                    hint="commit, stash or remove local changes (including untracked files)",
                )
            )
        return Ok(None)

    def ensure_release_branch(self) -> Result[None, ReleaseError]:
        on_branch = self.is_on_release_branch()
        if isinstance(on_branch, Err):
            return on_branch
        if not on_branch.value:
            allowed = "/".join(self._release_branches)
            first = self._release_branches[0] if self._release_branches else None
            return Err(
                ReleaseError(
                    kind="wrong_branch",
                    message=f"releases are only allowed from {allowed}",
                    hint=f"git switch {first}" if first else None,
                )
            )
        return Ok(None)
