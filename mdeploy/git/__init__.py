"""Git operations module.

Usage:
    from mdeploy.git import Repository

    repo = Repository(Path("/path/to/repo"))
    tags = repo.list_tags()
"""

from mdeploy.git.repository import (
    CommitRecord,
    GitError,
    Repository,
)

__all__ = [
    "CommitRecord",
    "GitError",
    "Repository",
]
