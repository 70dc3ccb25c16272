from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from mdeploy.cli.context import build_context, build_driver
from mdeploy.core.errors import ErrorCode
from mdeploy.core.result import Err
from mdeploy.services.release.errors import ReleaseError, ReleaseErrorKind
from mdeploy.services.release.semver import validate_bump, validate_namespace

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="A monorepo deploy helper.",
)

_DESCRIPTION = """Generates a new release by:

- creating and pushing a semver git tag (optionally with a service name)
- generating a changelog
- creating a GitHub release
"""


_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "invalid_input": ErrorCode.USER_ERROR,
    "dirty_tree": ErrorCode.USER_ERROR,
    "wrong_branch": ErrorCode.USER_ERROR,
    "gh_missing": ErrorCode.ENV_ERROR,
    "git_failed": ErrorCode.EXEC_ERROR,
    "publish_failed": ErrorCode.EXEC_ERROR,
    "prompt_failed": ErrorCode.EXEC_ERROR,
    "internal_error": ErrorCode.EXEC_ERROR,
}


def release_error_code(kind: ReleaseErrorKind) -> ErrorCode:
    return _EXIT_CODES[kind]


def exit_release(error: ReleaseError) -> NoReturn:
    typer.echo(f"error: {error.message}", err=True)
    if error.hint:
        typer.echo(f"hint: {error.hint}", err=True)
    raise typer.Exit(code=int(release_error_code(error.kind)))


@app.command(help=_DESCRIPTION, epilog="Example: mdeploy --version minor --name myservice")
def deploy(
    version: str = typer.Option(
        "patch",
        "--version",
        "-v",
        help="Version you want to deploy, can be: patch, minor, major",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Optional: service prefix for the tag",
    ),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository root (defaults to the current directory)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        envvar="MDEPLOY_DEBUG",
        help="Trace every release step.",
    ),
) -> None:
    bump = validate_bump(version)
    if isinstance(bump, Err):
        exit_release(bump.error)
    namespace = validate_namespace(name)
    if isinstance(namespace, Err):
        exit_release(namespace.error)

    ctx = build_context(repo=repo, debug=debug)
    outcome = build_driver(ctx).run(bump.value, namespace.value)
    if isinstance(outcome, Err):
        exit_release(outcome.error)


def main() -> None:
    app()
