from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from mdeploy.core.result import Err, Ok, Result
from mdeploy.git.repository import Repository
from mdeploy.output.console import MockConsole, Style
from mdeploy.output.prompt import StaticConfirm
from mdeploy.platform.process import RecordingRunner
from mdeploy.services.release.changelog import ChangelogGenerator
from mdeploy.services.release.driver import ReleaseDriver
from mdeploy.services.release.errors import ReleaseError
from mdeploy.services.release.gh import RecordingPublisher
from mdeploy.services.release.model import ReleaseOutcome
from mdeploy.services.release.preflight import PreflightChecker
from mdeploy.services.release.resolver import VersionResolver

_HEAD = "ccc1111ffff"
_FMT = "--format=%h%x1f%H%x1f%s%x1f%an%x1f%aI%x1e"
_NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
_HISTORY = (
    "ccc1111\x1fccc1111ffff\x1fAdd export\x1fCam\x1f2026-10-17T10:00:00+00:00\x1e\n"
    "aaa3333\x1faaa3333ffff\x1fInitial commit\x1fAl\x1f2026-10-01T10:00:00+00:00\x1e\n"
)


def _git(*, status: str = "", branch: str = "main", tags: str = "") -> RecordingRunner:
    return (
        RecordingRunner()
        .on("status", "--porcelain", stdout=status)
        .on("--abbrev-ref", "HEAD", stdout=f"{branch}\n")
        .on("fetch", "--tags", "--force")
        .on("tag", "--list", stdout=tags)
        .on("rev-parse", "HEAD", stdout=f"{_HEAD}\n")
        .on("log", stdout=_HISTORY)
    )


@dataclass
class _Harness:
    runner: RecordingRunner
    console: MockConsole
    confirm: StaticConfirm
    publisher: RecordingPublisher
    driver: ReleaseDriver

    def tagged(self) -> bool:
        return any(c[3:4] == ("tag",) and c[4:5] != ("--list",) for c in self.runner.calls)


def _harness(
    tmp_path: Path,
    runner: RecordingRunner,
    *,
    answer: bool = True,
    publisher: RecordingPublisher | None = None,
) -> _Harness:
    repo = Repository(tmp_path, runner)
    console = MockConsole()
    confirm = StaticConfirm(answer=answer)
    publisher = publisher or RecordingPublisher()
    driver = ReleaseDriver(
        repo=repo,
        preflight=PreflightChecker(repo),
        resolver=VersionResolver(repo),
        changelog=ChangelogGenerator(repo, clock=lambda: _NOW),
        publisher=publisher,
        confirm=confirm,
        console=console,
    )
    return _Harness(runner, console, confirm, publisher, driver)


def test_first_release_declined_has_no_side_effects(tmp_path: Path) -> None:
    h = _harness(tmp_path, _git(), answer=False)

    result = h.driver.run("patch", None)

    assert result == Ok(ReleaseOutcome(status="aborted", tag="0.0.1"))
    assert h.confirm.prompts == ["Do you want to deploy: 0.0.1 ?"]
    assert h.runner.ran("log", _FMT, _HEAD)
    assert not h.tagged()
    assert not h.runner.ran("push")
    assert h.publisher.releases == []

    [preview] = [o.message for o in h.console.outputs if o.style == Style.MARKDOWN]
    assert preview.startswith("## 0.0.1 18.10.2026\n")
    assert "Add export (Cam, 17.10.2026)" in preview
    assert "Initial commit (Al, 01.10.2026)" in preview


def test_dirty_tree_aborts_before_any_network_call(tmp_path: Path) -> None:
    h = _harness(tmp_path, _git(status="?? scratch.txt\n"))

    result = h.driver.run("patch", None)

    assert isinstance(result, Err)
    assert result.error.kind == "dirty_tree"
    assert not h.runner.ran("--abbrev-ref")
    assert not h.runner.ran("fetch")
    assert not h.tagged()
    assert h.confirm.prompts == []
    assert h.publisher.releases == []


def test_wrong_branch_aborts_before_fetch(tmp_path: Path) -> None:
    h = _harness(tmp_path, _git(branch="feature/login"))

    result = h.driver.run("minor", None)

    assert isinstance(result, Err)
    assert result.error.kind == "wrong_branch"
    assert not h.runner.ran("fetch")


def test_fetch_failure_stops_pipeline(tmp_path: Path) -> None:
    runner = RecordingRunner().on("fetch", returncode=128, stderr="Could not resolve host")
    for rule in _git().rules:
        runner.rules.append(rule)
    h = _harness(tmp_path, runner)

    result = h.driver.run("patch", None)

    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert not h.runner.ran("tag", "--list")


def test_namespaced_release_falls_back_and_publishes(tmp_path: Path) -> None:
    runner = _git(tags="1.0.0\n0.9.0\n").on("tag", "svc-1.1.0")
    runner.on("push", "origin", "refs/tags/svc-1.1.0")
    h = _harness(tmp_path, runner)

    result = h.driver.run("minor", "svc")

    assert result == Ok(ReleaseOutcome(status="released", tag="svc-1.1.0"))
    assert h.runner.ran("log", _FMT, f"refs/tags/1.0.0..{_HEAD}")
    assert h.runner.ran("tag", "svc-1.1.0")
    assert h.runner.ran("push", "origin", "refs/tags/svc-1.1.0")
    assert h.console.find("no tag for svc yet, continuing from 1.0.0")

    [release] = h.publisher.releases
    assert release.tag == "svc-1.1.0"
    assert release.title == "svc-1.1.0"
    assert release.body.startswith(
        "## svc-1.1.0 18.10.2026\n- [ccc1111](../../commit/ccc1111ffff)"
    )


def test_tag_is_pushed_before_release_is_published(tmp_path: Path) -> None:
    order: list[str] = []
    runner = _git(tags="2.3.4\n").on("tag", "2.3.5").on("push", "origin", "refs/tags/2.3.5")

    class _OrderedPublisher(RecordingPublisher):
        def create_release(self, *, tag: str, title: str, body: str) -> Result[None, ReleaseError]:
            pushed = runner.ran("push", "origin", "refs/tags/2.3.5")
            order.append("publish" if pushed else "publish-early")
            return super().create_release(tag=tag, title=title, body=body)

    h = _harness(tmp_path, runner, publisher=_OrderedPublisher())

    assert h.driver.run("patch", None) == Ok(ReleaseOutcome(status="released", tag="2.3.5"))
    assert order == ["publish"]


def test_publish_failure_leaves_pushed_tag(tmp_path: Path) -> None:
    runner = _git(tags="1.2.0\n").on("tag", "2.0.0").on("push", "origin", "refs/tags/2.0.0")
    publisher = RecordingPublisher(
        error=ReleaseError(kind="publish_failed", message="gh release create 2.0.0 failed")
    )
    h = _harness(tmp_path, runner, publisher=publisher)

    result = h.driver.run("major", None)

    assert isinstance(result, Err)
    assert result.error.kind == "publish_failed"
    assert result.error.hint is not None
    assert "tag 2.0.0 is already pushed" in result.error.hint
    assert h.runner.ran("push", "origin", "refs/tags/2.0.0")
    assert not h.runner.ran("tag", "-d")
    assert not h.runner.ran("--delete")


def test_push_failure_does_not_publish(tmp_path: Path) -> None:
    runner = _git(tags="1.2.0\n").on("tag", "1.2.1").on(
        "push", returncode=1, stderr="! [rejected] 1.2.1 (already exists)"
    )
    h = _harness(tmp_path, runner)

    result = h.driver.run("patch", None)

    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert "rejected" in result.error.message
    assert h.publisher.releases == []


def test_prompt_failure_is_an_error(tmp_path: Path) -> None:
    class _BrokenConfirm(StaticConfirm):
        def ask(self, prompt: str, *, default: bool) -> Result[bool, str]:
            return Err("confirmation aborted")

    runner = _git()
    repo = Repository(tmp_path, runner)
    driver = ReleaseDriver(
        repo=repo,
        preflight=PreflightChecker(repo),
        resolver=VersionResolver(repo),
        changelog=ChangelogGenerator(repo, clock=lambda: _NOW),
        publisher=RecordingPublisher(),
        confirm=_BrokenConfirm(answer=True),
        console=MockConsole(),
    )

    result = driver.run("patch", None)

    assert isinstance(result, Err)
    assert result.error.kind == "prompt_failed"


def test_steps_are_traced_in_order(tmp_path: Path) -> None:
    h = _harness(tmp_path, _git(), answer=False)

    h.driver.run("patch", None)

    steps = [m.removeprefix("step: ") for m in h.console.messages if m.startswith("step: ")]
    assert steps == [
        "check_branch",
        "fetch_tags",
        "resolve_latest",
        "resolve_next",
        "build_changelog",
        "confirm",
    ]
