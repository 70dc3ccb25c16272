"""Release pipeline.

Steps run in a fixed order and each one is a precondition for the next:

    check_clean -> check_branch -> fetch_tags -> resolve_latest -> resolve_next
      -> build_changelog -> confirm -> push_tag -> publish_release

Declining at ``confirm`` ends the run as ``aborted`` before anything is
written. Tagging and publishing are two separate remote calls: when the
release cannot be published after the tag was pushed, the tag stays on the
remote and the error says so. Nothing is rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from mdeploy.core.config import DEFAULT_MARKDOWN_WIDTH, DEFAULT_REMOTE
from mdeploy.core.result import Err, Ok, Result
from mdeploy.git.repository import Repository
from mdeploy.output.console import ConsoleProtocol, Style
from mdeploy.output.prompt import ConfirmProtocol
from mdeploy.services.release.changelog import ChangelogGenerator
from mdeploy.services.release.errors import ReleaseError, git_failed
from mdeploy.services.release.fsm import (
    StepHandler,
    StepOutcome,
    advance,
    finish,
    run_state_machine,
)
from mdeploy.services.release.gh import ReleasePublisher
from mdeploy.services.release.model import (
    ChangelogDocument,
    LatestTag,
    ReleaseBump,
    ReleaseOutcome,
)
from mdeploy.services.release.preflight import PreflightChecker
from mdeploy.services.release.resolver import VersionResolver
from mdeploy.services.release.semver import SemVer

ReleaseStep = Literal[
    "check_clean",
    "check_branch",
    "fetch_tags",
    "resolve_latest",
    "resolve_next",
    "build_changelog",
    "confirm",
    "push_tag",
    "publish_release",
    "done",
    "aborted",
]


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """State of one release attempt; every step returns an updated copy."""

    step: ReleaseStep
    bump: ReleaseBump
    namespace: str | None
    latest: LatestTag | None = None
    next_version: SemVer | None = None
    changelog: ChangelogDocument | None = None
    notes: str | None = None
    tag: str | None = None


StepResult = Result[StepOutcome[ReleaseRequest], ReleaseError]


def _missing(field_name: str) -> ReleaseError:
    return ReleaseError(kind="internal_error", message=f"release step ran without {field_name}")


class ReleaseDriver:
    def __init__(
        self,
        *,
        repo: Repository,
        preflight: PreflightChecker,
        resolver: VersionResolver,
        changelog: ChangelogGenerator,
        publisher: ReleasePublisher,
        confirm: ConfirmProtocol,
        console: ConsoleProtocol,
        remote: str = DEFAULT_REMOTE,
        width: int = DEFAULT_MARKDOWN_WIDTH,
    ) -> None:
        self._repo = repo
        self._preflight = preflight
        self._resolver = resolver
        self._changelog = changelog
        self._publisher = publisher
        self._confirm = confirm
        self._console = console
        self._remote = remote
        self._width = width

    def run(self, bump: ReleaseBump, namespace: str | None) -> Result[ReleaseOutcome, ReleaseError]:
        self._console.debug(f"starting deployment {bump} for {namespace or '(no name)'}")
        handlers: dict[str, StepHandler[ReleaseRequest]] = {
            "check_clean": self._check_clean,
            "check_branch": self._check_branch,
            "fetch_tags": self._fetch_tags,
            "resolve_latest": self._resolve_latest,
            "resolve_next": self._resolve_next,
            "build_changelog": self._build_changelog,
            "confirm": self._ask_confirmation,
            "push_tag": self._push_tag,
            "publish_release": self._publish_release,
        }
        final = run_state_machine(
            initial_state=ReleaseRequest(step="check_clean", bump=bump, namespace=namespace),
            get_step=lambda r: r.step,
            handlers=handlers,
            on_advance=lambda r: self._console.debug(f"step: {r.step}"),
        )
        if isinstance(final, Err):
            return final

        request = final.value
        status = "aborted" if request.step == "aborted" else "released"
        return Ok(ReleaseOutcome(status=status, tag=request.tag or ""))

    def _check_clean(self, r: ReleaseRequest) -> StepResult:
        self._console.debug("checking if repo is clean")
        ok = self._preflight.ensure_clean()
        if isinstance(ok, Err):
            return ok
        return Ok(advance(replace(r, step="check_branch")))

    def _check_branch(self, r: ReleaseRequest) -> StepResult:
        self._console.debug("checking the release branch")
        ok = self._preflight.ensure_release_branch()
        if isinstance(ok, Err):
            return ok
        return Ok(advance(replace(r, step="fetch_tags")))

    def _fetch_tags(self, r: ReleaseRequest) -> StepResult:
        self._console.debug("fetching tags")
        ok = self._preflight.fetch_remote_tags()
        if isinstance(ok, Err):
            return ok
        return Ok(advance(replace(r, step="resolve_latest")))

    def _resolve_latest(self, r: ReleaseRequest) -> StepResult:
        latest = self._resolver.resolve_latest(r.namespace)
        if isinstance(latest, Err):
            return latest

        resolved = latest.value
        tag = self._resolver.format(resolved.version)
        match resolved.source:
            case "baseline":
                self._console.info("no release tags yet, starting from 0.0.0")
            case "fallback":
                self._console.info(f"no tag for {r.namespace} yet, continuing from {tag}")
            case "family":
                self._console.debug(f"latest tag: {tag}")
        return Ok(advance(replace(r, step="resolve_next", latest=resolved)))

    def _resolve_next(self, r: ReleaseRequest) -> StepResult:
        if r.latest is None:
            return Err(_missing("latest tag"))
        next_version = self._resolver.compute_next(r.latest.version, r.bump, r.namespace)
        return Ok(
            advance(
                replace(
                    r,
                    step="build_changelog",
                    next_version=next_version,
                    tag=self._resolver.format(next_version),
                )
            )
        )

    def _build_changelog(self, r: ReleaseRequest) -> StepResult:
        if r.latest is None or r.next_version is None:
            return Err(_missing("resolved versions"))
        from_tag = r.latest.from_tag
        since = "(start)" if from_tag is None else self._resolver.format(from_tag)
        self._console.debug(f"generating markdown - from: {since} until: {r.tag}")
        document = self._changelog.build(r.next_version, from_tag)
        if isinstance(document, Err):
            return document
        notes = self._changelog.render(document.value)
        return Ok(advance(replace(r, step="confirm", changelog=document.value, notes=notes)))

    def _ask_confirmation(self, r: ReleaseRequest) -> StepResult:
        if r.notes is None or r.tag is None:
            return Err(_missing("changelog"))
        self._console.newline()
        self._console.print("CHANGELOG:", Style.BOLD)
        self._console.markdown(r.notes, self._width)

        answer = self._confirm.ask(f"Do you want to deploy: {r.tag} ?", default=True)
        if isinstance(answer, Err):
            return Err(ReleaseError(kind="prompt_failed", message=answer.error))
        if not answer.value:
            self._console.print(f"not deploying {r.tag}", Style.DIM)
            return Ok(finish(replace(r, step="aborted")))
        return Ok(advance(replace(r, step="push_tag")))

    def _push_tag(self, r: ReleaseRequest) -> StepResult:
        if r.tag is None:
            return Err(_missing("tag"))
        self._console.debug("generating and pushing tag")
        created = self._repo.create_tag(r.tag)
        if isinstance(created, Err):
            return Err(git_failed(created.error))
        pushed = self._repo.push_tag(self._remote, r.tag)
        if isinstance(pushed, Err):
            return Err(
                replace(
                    git_failed(pushed.error),
                    hint=f"tag {r.tag} exists locally only; delete it with: git tag -d {r.tag}",
                )
            )
        self._console.success(f"tag pushed: {r.tag}")
        return Ok(advance(replace(r, step="publish_release")))

    def _publish_release(self, r: ReleaseRequest) -> StepResult:
        if r.tag is None or r.notes is None:
            return Err(_missing("tag"))
        self._console.debug("generating github release")
        published = self._publisher.create_release(tag=r.tag, title=r.tag, body=r.notes)
        if isinstance(published, Err):
            detail = f" ({published.error.hint})" if published.error.hint else ""
            return Err(
                replace(
                    published.error,
                    hint=f"tag {r.tag} is already pushed; create the release manually{detail}",
                )
            )
        self._console.success(f"release published: {r.tag}")
        self._console.debug("done deploying")
        return Ok(finish(replace(r, step="done")))
