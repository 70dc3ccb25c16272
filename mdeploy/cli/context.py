from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from mdeploy.core.config import Config, load_config_or_default
from mdeploy.core.errors import ErrorCode
from mdeploy.core.result import Err
from mdeploy.git.repository import Repository
from mdeploy.output.console import ConsoleProtocol, RichConsole
from mdeploy.output.prompt import ConfirmProtocol, TyperConfirm
from mdeploy.platform.process import CommandRunner, SubprocessRunner
from mdeploy.services.release.changelog import ChangelogGenerator
from mdeploy.services.release.driver import ReleaseDriver
from mdeploy.services.release.gh import GhReleasePublisher, ReleasePublisher
from mdeploy.services.release.preflight import PreflightChecker
from mdeploy.services.release.resolver import VersionResolver


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_root: Path
    config: Config
    console: ConsoleProtocol
    runner: CommandRunner
    publisher: ReleasePublisher
    confirm: ConfirmProtocol


def build_context(*, repo: Path | None, debug: bool) -> CLIContext:
    try:
        root = (repo or Path.cwd()).expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --repo: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if not root.is_dir():
        typer.echo(f"error: --repo '{root}' is not a directory", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config = load_config_or_default(root)
    if isinstance(config, Err):
        typer.echo(f"error: {config.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    runner = SubprocessRunner()
    return CLIContext(
        repo_root=root,
        config=config.value,
        console=RichConsole(debug=debug),
        runner=runner,
        publisher=GhReleasePublisher(root, runner),
        confirm=TyperConfirm(),
    )


def build_driver(ctx: CLIContext) -> ReleaseDriver:
    repo = Repository(ctx.repo_root, ctx.runner)
    release = ctx.config.release
    return ReleaseDriver(
        repo=repo,
        preflight=PreflightChecker(repo, release_branches=release.branches),
        resolver=VersionResolver(repo, tag_prefix=release.tag_prefix),
        changelog=ChangelogGenerator(repo, tag_prefix=release.tag_prefix),
        publisher=ctx.publisher,
        confirm=ctx.confirm,
        console=ctx.console,
        remote=release.remote,
        width=ctx.config.changelog.width,
    )
