from __future__ import annotations

from pathlib import Path

from mdeploy.core.result import Err, Ok
from mdeploy.git.repository import Repository
from mdeploy.platform.process import RecordingRunner
from mdeploy.services.release.model import LatestTag
from mdeploy.services.release.resolver import VersionResolver, compute_next, latest_in_family
from mdeploy.services.release.semver import ZERO, SemVer


def _resolver(tmp_path: Path, runner: RecordingRunner, prefix: str = "") -> VersionResolver:
    return VersionResolver(Repository(tmp_path, runner), tag_prefix=prefix)


class TestLatestInFamily:
    TAGS = (
        "1.0.0",
        "1.10.0",
        "1.9.3",
        "2.0.0-rc.1",
        "svc-0.3.0",
        "svc-0.2.9",
        "notes",
        "svc-api-9.0.0",
    )

    def test_numeric_not_lexical_order(self) -> None:
        assert latest_in_family(self.TAGS, namespace=None) == SemVer(1, 10, 0)

    def test_namespace_family(self) -> None:
        assert latest_in_family(self.TAGS, namespace="svc") == SemVer(0, 3, 0, namespace="svc")

    def test_missing_family(self) -> None:
        assert latest_in_family(self.TAGS, namespace="web") is None

    def test_prereleases_are_skipped(self) -> None:
        assert latest_in_family(("2.0.0-rc.1",), namespace=None) is None


class TestResolveLatest:
    def test_no_tags_is_zero_baseline(self, tmp_path: Path) -> None:
        runner = RecordingRunner().on("tag", "--list", stdout="")

        result = _resolver(tmp_path, runner).resolve_latest(None)

        assert result == Ok(LatestTag(version=ZERO, source="baseline"))
        assert isinstance(result, Ok)
        assert result.value.from_tag is None

    def test_latest_unnamespaced(self, tmp_path: Path) -> None:
        runner = RecordingRunner().on("tag", "--list", stdout="1.0.0\n1.2.0\nsvc-5.0.0\n")

        result = _resolver(tmp_path, runner).resolve_latest(None)

        assert result == Ok(LatestTag(version=SemVer(1, 2, 0), source="family"))

    def test_namespaced_tag_found(self, tmp_path: Path) -> None:
        runner = (
            RecordingRunner()
            .on("tag", "--list", stdout="1.0.0\nsvc-0.4.0\nsvc-0.3.0\n")
            .on("refs/tags/svc-0.4.0", stdout="abc\n")
        )

        result = _resolver(tmp_path, runner).resolve_latest("svc")

        assert result == Ok(LatestTag(version=SemVer(0, 4, 0, namespace="svc"), source="family"))
        assert runner.ran("rev-parse", "--verify", "--quiet", "refs/tags/svc-0.4.0")

    def test_missing_namespace_falls_back_to_unnamespaced(self, tmp_path: Path) -> None:
        runner = RecordingRunner().on("tag", "--list", stdout="1.0.0\n")

        result = _resolver(tmp_path, runner).resolve_latest("svc")

        assert result == Ok(LatestTag(version=SemVer(1, 0, 0), source="fallback"))

    def test_failed_point_lookup_falls_back(self, tmp_path: Path) -> None:
        runner = (
            RecordingRunner()
            .on("tag", "--list", stdout="1.0.0\nsvc-0.4.0\n")
            .on("refs/tags/svc-0.4.0", returncode=1)
        )

        result = _resolver(tmp_path, runner).resolve_latest("svc")

        assert result == Ok(LatestTag(version=SemVer(1, 0, 0), source="fallback"))

    def test_missing_namespace_without_any_tag(self, tmp_path: Path) -> None:
        runner = RecordingRunner().on("tag", "--list", stdout="")
        assert _resolver(tmp_path, runner).resolve_latest("svc") == Ok(
            LatestTag(version=ZERO, source="baseline")
        )

    def test_tag_prefix(self, tmp_path: Path) -> None:
        runner = RecordingRunner().on("tag", "--list", stdout="v1.0.0\nv1.1.0\n2.0.0\n")

        result = _resolver(tmp_path, runner, prefix="v").resolve_latest(None)

        assert result == Ok(LatestTag(version=SemVer(1, 1, 0), source="family"))

    def test_list_failure_propagates(self, tmp_path: Path) -> None:
        runner = RecordingRunner().on("tag", "--list", returncode=128, stderr="fatal")

        result = _resolver(tmp_path, runner).resolve_latest(None)

        assert isinstance(result, Err)
        assert result.error.kind == "git_failed"

    def test_lookup_failure_propagates(self, tmp_path: Path) -> None:
        runner = (
            RecordingRunner()
            .on("tag", "--list", stdout="svc-0.4.0\n")
            .on("refs/tags/svc-0.4.0", returncode=128, stderr="fatal: bad object")
        )

        result = _resolver(tmp_path, runner).resolve_latest("svc")

        assert isinstance(result, Err)
        assert result.error.kind == "git_failed"


class TestComputeNext:
    def test_bump_kinds(self) -> None:
        latest = SemVer(1, 4, 7)
        assert compute_next(latest, "patch", None) == SemVer(1, 4, 8)
        assert compute_next(latest, "minor", None) == SemVer(1, 5, 0)
        assert compute_next(latest, "major", None) == SemVer(2, 0, 0)

    def test_reattaches_namespace_after_fallback(self) -> None:
        assert compute_next(SemVer(1, 0, 0), "patch", "svc") == SemVer(1, 0, 1, namespace="svc")

    def test_first_release(self, tmp_path: Path) -> None:
        resolver = _resolver(tmp_path, RecordingRunner())
        next_version = resolver.compute_next(ZERO, "patch", None)

        assert resolver.format(next_version) == "0.0.1"

    def test_format_uses_prefix(self, tmp_path: Path) -> None:
        resolver = _resolver(tmp_path, RecordingRunner(), prefix="v")
        assert resolver.format(SemVer(1, 0, 1, namespace="svc")) == "svc-v1.0.1"


class TestBuildNamedTags:
    def test_join_namespace_family(self) -> None:
        tags = ("1.3.0", "svc-1.1.0", "1.2.0+svc", "1.4.0+web")
        assert latest_in_family(tags, namespace="svc") == SemVer(1, 2, 0, build="svc")

    def test_prefixed_form_wins_on_equal_version(self) -> None:
        tags = ("1.2.0+svc", "svc-1.2.0")
        assert latest_in_family(tags, namespace="svc") == SemVer(1, 2, 0, namespace="svc")

    def test_release_continues_from_build_named_tag(self, tmp_path: Path) -> None:
        runner = (
            RecordingRunner()
            .on("tag", "--list", stdout="1.0.0\n1.2.0+svc\n")
            .on("refs/tags/1.2.0+svc", stdout="abc\n")
        )
        resolver = _resolver(tmp_path, runner)

        result = resolver.resolve_latest("svc")

        assert result == Ok(LatestTag(version=SemVer(1, 2, 0, build="svc"), source="family"))
        assert isinstance(result, Ok)
        assert resolver.format(result.value.version) == "1.2.0+svc"
        next_version = resolver.compute_next(result.value.version, "patch", "svc")
        assert resolver.format(next_version) == "svc-1.2.1"


def test_name_that_clashes_with_tag_prefix_is_rejected(tmp_path: Path) -> None:
    runner = RecordingRunner().on("tag", "--list", stdout="")

    result = _resolver(tmp_path, runner, prefix="x").resolve_latest("a-x1.0.0")

    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"
    assert not runner.ran("tag", "--list")
