"""``mdeploy.toml`` loading.

The file is optional and lives at the repository root::

    [release]
    branches = ["master", "main"]
    remote = "origin"
    tag_prefix = ""

    [changelog]
    width = 80
"""

from __future__ import annotations

import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, get_int, get_str, get_str_list, is_str_dict

__all__ = [
    "CONFIG_FILENAME",
    "ChangelogConfig",
    "Config",
    "ConfigError",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "mdeploy.toml"

DEFAULT_RELEASE_BRANCHES = ("master", "main")
DEFAULT_REMOTE = "origin"
DEFAULT_MARKDOWN_WIDTH = 80


@dataclass(frozen=True, slots=True)
class ConfigError:
    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Where releases may be cut from and how tags are named."""

    branches: tuple[str, ...] = DEFAULT_RELEASE_BRANCHES
    remote: str = DEFAULT_REMOTE
    tag_prefix: str = ""

    @classmethod
    def from_table(cls, table: StrDict) -> ReleaseConfig:
        branches = get_str_list(table, "branches")
        if branches == ():
            raise ValueError("branches must name at least one branch")
        return cls(
            branches=branches or DEFAULT_RELEASE_BRANCHES,
            remote=get_str(table, "remote") or DEFAULT_REMOTE,
            tag_prefix=get_str(table, "tag_prefix") or "",
        )


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    width: int = DEFAULT_MARKDOWN_WIDTH

    @classmethod
    def from_table(cls, table: StrDict) -> ChangelogConfig:
        width = get_int(table, "width")
        if width is not None and width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        return cls(width=width or DEFAULT_MARKDOWN_WIDTH)


def _section[C](data: Mapping[str, object], name: str, parse: Callable[[StrDict], C]) -> C:
    table = data.get(name, {})
    if not is_str_dict(table):
        raise ValueError(f"[{name}] must be a table")
    try:
        return parse(table)
    except ValueError as e:
        raise ValueError(f"{name}.{e}") from e


@dataclass(frozen=True, slots=True)
class Config:
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Build from parsed TOML; raises ValueError naming the bad key."""
        return cls(
            release=_section(data, "release", ReleaseConfig.from_table),
            changelog=_section(data, "changelog", ChangelogConfig.from_table),
        )


def load_config(path: Path) -> Result[Config, ConfigError]:
    try:
        with path.open("rb") as f:
            data: object = tomllib.load(f)
    except FileNotFoundError:
        return Err(ConfigError(f"config file not found: {path}", path=path))
    except OSError as e:
        return Err(ConfigError(f"cannot read {path}: {e}", path=path))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"invalid TOML in {path.name}: {e}", path=path))

    if not is_str_dict(data):
        return Err(ConfigError(f"invalid TOML in {path.name}: root is not a table", path=path))
    try:
        return Ok(Config.from_dict(data))
    except ValueError as e:
        return Err(ConfigError(f"invalid {path.name}: {e}", path=path))


def load_config_or_default(repo_root: Path) -> Result[Config, ConfigError]:
    """A missing ``mdeploy.toml`` means defaults; a broken one is an error."""
    path = repo_root / CONFIG_FILENAME
    if not path.exists():
        return Ok(Config())
    return load_config(path)
