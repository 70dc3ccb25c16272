"""Changelog assembly from the commits since the previous release.

Rendered output, one bullet per commit, newest first:

    ## svc-1.5.0 18.10.2026
    - [a1b2c3d](../../commit/a1b2c3d...) Fix retry loop (Jane Doe, 17.10.2026)

The relative commit links resolve against the release page on GitHub.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from mdeploy.core.result import Err, Ok, Result
from mdeploy.git.repository import CommitRecord, Repository
from mdeploy.services.release.errors import ReleaseError, git_failed
from mdeploy.services.release.model import ChangelogDocument
from mdeploy.services.release.semver import SemVer

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True, slots=True)
class ChangelogTemplate:
    """Formatting rules, fixed at construction of the generator.

    ``heading`` receives ``tag`` and ``date``; ``line`` receives the commit
    fields with ``author_date`` already formatted.
    """

    heading: str = "## {tag} {date}"
    line: str = (
        "- [{short_hash}](../../commit/{long_hash}) {subject} ({author_name}, {author_date})"
    )
    date_format: str = "%d.%m.%Y"


DEFAULT_TEMPLATE = ChangelogTemplate()


class ChangelogGenerator:
    def __init__(
        self,
        repo: Repository,
        *,
        template: ChangelogTemplate = DEFAULT_TEMPLATE,
        clock: Clock = _local_now,
        tag_prefix: str = "",
    ) -> None:
        self._repo = repo
        self._template = template
        self._clock = clock
        self._prefix = tag_prefix

    def commits_in_range(
        self, from_tag: SemVer | None, to: str
    ) -> Result[tuple[CommitRecord, ...], ReleaseError]:
        """Commits reachable from ``to`` but not from ``from_tag``, newest first.

        Without ``from_tag`` the whole history up to ``to`` is returned.
        """
        since = None if from_tag is None else from_tag.to_tag(self._prefix)
        commits = self._repo.log(since, to)
        if isinstance(commits, Err):
            return Err(git_failed(commits.error))
        return commits

    def build(
        self, tag: SemVer, from_tag: SemVer | None, to: str = "HEAD"
    ) -> Result[ChangelogDocument, ReleaseError]:
        head = self._repo.rev_parse(to)
        if isinstance(head, Err):
            return Err(git_failed(head.error))

        commits = self.commits_in_range(from_tag, head.value)
        if isinstance(commits, Err):
            return commits

        return Ok(ChangelogDocument(tag=tag, generated_at=self._clock(), commits=commits.value))

    def render(self, document: ChangelogDocument) -> str:
        t = self._template
        heading = t.heading.format(
            tag=document.tag.to_tag(self._prefix),
            date=document.generated_at.strftime(t.date_format),
        )
        lines = [heading]
        for c in document.commits:
            lines.append(
                t.line.format(
                    short_hash=c.short_hash,
                    long_hash=c.long_hash,
                    subject=c.subject,
                    author_name=c.author_name,
                    author_date=c.author_date.strftime(t.date_format),
                )
            )
        return "\n".join(lines) + "\n"
