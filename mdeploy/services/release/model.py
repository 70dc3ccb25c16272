from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from mdeploy.git.repository import CommitRecord

if TYPE_CHECKING:
    from mdeploy.services.release.semver import SemVer

ReleaseBump = Literal["major", "minor", "patch"]
LatestSource = Literal["family", "fallback", "baseline"]
ReleaseStatus = Literal["released", "aborted"]

__all__ = [
    "ChangelogDocument",
    "CommitRecord",
    "LatestTag",
    "LatestSource",
    "ReleaseBump",
    "ReleaseOutcome",
    "ReleaseStatus",
]


@dataclass(frozen=True, slots=True)
class LatestTag:
    """The tag a release continues from.

    ``source`` says how it was found: in the requested tag family, by
    falling back to the unnamespaced family, or as the 0.0.0 baseline of a
    repository without tags.
    """

    version: SemVer
    source: LatestSource

    @property
    def from_tag(self) -> SemVer | None:
        """Lower bound of the changelog range; None when no tag exists."""
        if self.source == "baseline":
            return None
        return self.version


@dataclass(frozen=True, slots=True)
class ChangelogDocument:
    tag: SemVer
    generated_at: datetime
    commits: tuple[CommitRecord, ...]


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    status: ReleaseStatus
    tag: str
