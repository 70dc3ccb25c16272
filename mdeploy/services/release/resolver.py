"""Latest/next tag resolution.

Tags are grouped into families by namespace. A release for service ``svc``
continues from the newest ``svc-X.Y.Z`` tag; tags written by older releases
as ``X.Y.Z+svc`` belong to the same family. A namespace that has never been
released continues from the newest unnamespaced tag instead, and a
repository without any release tag starts from 0.0.0.
"""

from __future__ import annotations

from collections.abc import Iterable

from mdeploy.core.result import Err, Ok, Result
from mdeploy.git.repository import Repository
from mdeploy.services.release.errors import ReleaseError, git_failed
from mdeploy.services.release.model import LatestTag, ReleaseBump
from mdeploy.services.release.semver import ZERO, SemVer, parse_tag, validate_namespace


def in_family(version: SemVer, namespace: str | None) -> bool:
    if version.namespace == namespace:
        return True
    # X.Y.Z+<namespace>, the form older releases used
    return namespace is not None and version.namespace is None and version.build == namespace


def latest_in_family(
    tags: Iterable[str], *, namespace: str | None, prefix: str = ""
) -> SemVer | None:
    """Highest stable version among ``tags`` that belong to ``namespace``.

    On equal versions the ``<namespace>-X.Y.Z`` form wins over ``X.Y.Z+<namespace>``.
    """
    best: SemVer | None = None
    for tag in tags:
        parsed = parse_tag(tag, prefix)
        if parsed is None or parsed.is_prerelease or not in_family(parsed, namespace):
            continue
        if best is None or _rank(parsed) > _rank(best):
            best = parsed
    return best


def _rank(version: SemVer) -> tuple[tuple[int, int, int], bool]:
    return (version.core, version.namespace is not None)


def compute_next(latest: SemVer, bump: ReleaseBump, namespace: str | None) -> SemVer:
    return latest.bump(bump).with_namespace(namespace)


class VersionResolver:
    def __init__(self, repo: Repository, *, tag_prefix: str = "") -> None:
        self._repo = repo
        self._prefix = tag_prefix

    def format(self, version: SemVer) -> str:
        return version.to_tag(self._prefix)

    def resolve_latest(self, namespace: str | None) -> Result[LatestTag, ReleaseError]:
        checked = validate_namespace(namespace, self._prefix)
        if isinstance(checked, Err):
            return checked

        tags = self._repo.list_tags()
        if isinstance(tags, Err):
            return Err(git_failed(tags.error))

        if namespace:
            candidate = latest_in_family(tags.value, namespace=namespace, prefix=self._prefix)
            if candidate is not None:
                exists = self._repo.tag_exists(self.format(candidate))
                if isinstance(exists, Err):
                    return Err(git_failed(exists.error))
                if exists.value:
                    return Ok(LatestTag(version=candidate, source="family"))

        plain = latest_in_family(tags.value, namespace=None, prefix=self._prefix)
        if plain is None:
            return Ok(LatestTag(version=ZERO, source="baseline"))
        return Ok(LatestTag(version=plain, source="fallback" if namespace else "family"))

    def compute_next(self, latest: SemVer, bump: ReleaseBump, namespace: str | None) -> SemVer:
        return compute_next(latest, bump, namespace)
