from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import lru_cache

from mdeploy.core.result import Err, Ok, Result
from mdeploy.services.release.errors import ReleaseError
from mdeploy.services.release.model import ReleaseBump

_NAMESPACE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9._-]*$")
_EMBEDDED_VERSION_RE = re.compile(r"-v?\d+\.\d+\.\d+")
_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"


@lru_cache(maxsize=8)
def _tag_re(prefix: str) -> re.Pattern[str]:
    return re.compile(
        r"^(?:(?P<namespace>[A-Za-z][A-Za-z0-9._-]*?)-)?"
        + re.escape(prefix)
        + r"(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
        + rf"(?:-(?P<pre>{_IDENT}))?"
        + rf"(?:\+(?P<build>{_IDENT}))?$"
    )


@dataclass(frozen=True, slots=True)
class SemVer:
    """A semantic-version tag, optionally scoped to a service namespace.

    Text form: ``[<namespace>-][<prefix>]<major>.<minor>.<patch>[-<pre>][+<build>]``.
    A namespaced tag and its unnamespaced counterpart belong to different
    families and are never compared with each other.
    """

    major: int
    minor: int
    patch: int
    namespace: str | None = None
    prerelease: str | None = None
    build: str | None = None

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def to_tag(self, prefix: str = "") -> str:
        text = f"{prefix}{self.major}.{self.minor}.{self.patch}"
        if self.namespace:
            text = f"{self.namespace}-{text}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def with_namespace(self, namespace: str | None) -> SemVer:
        return replace(self, namespace=namespace or None)

    def bump(self, kind: ReleaseBump) -> SemVer:
        """Next stable version; pre-release and build metadata are dropped."""
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0, namespace=self.namespace)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0, namespace=self.namespace)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1, namespace=self.namespace)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


ZERO = SemVer(0, 0, 0)


def parse_tag(tag: str, prefix: str = "") -> SemVer | None:
    """Parse a tag name; None if it is not a semantic-version tag."""
    m = _tag_re(prefix).match(tag.strip())
    if m is None:
        return None
    return SemVer(
        int(m.group("major")),
        int(m.group("minor")),
        int(m.group("patch")),
        namespace=m.group("namespace"),
        prerelease=m.group("pre"),
        build=m.group("build"),
    )


def validate_bump(value: str) -> Result[ReleaseBump, ReleaseError]:
    """Accept exactly patch, minor or major."""
    match value:
        case "patch" | "minor" | "major":
            return Ok(value)
        case _:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message="version has to be one of: patch, minor or major",
                    hint=f"got {value!r}" if value else "got an empty value",
                )
            )


def validate_namespace(value: str | None, prefix: str = "") -> Result[str | None, ReleaseError]:
    """Empty means no namespace; otherwise it must be usable as a tag prefix.

    A name is only accepted when the tags built from it parse back to it, so
    names such as ``svc-2.0.0`` that would read as a version are rejected.
    """
    if value is None or not value.strip():
        return Ok(None)
    name = value.strip()
    if (
        _NAMESPACE_RE.match(name) is None
        or name.endswith("-")
        or _EMBEDDED_VERSION_RE.search(name) is not None
        or not _round_trips(name, prefix)
    ):
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid name: {name}",
                hint="start with a letter, use letters, digits, '.', '_' or '-' "
                "and do not embed a version such as -1.2.3",
            )
        )
    return Ok(name)


def _round_trips(name: str, prefix: str) -> bool:
    sample = SemVer(1, 0, 0, namespace=name)
    return parse_tag(sample.to_tag(prefix), prefix) == sample
