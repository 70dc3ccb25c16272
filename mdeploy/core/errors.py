from enum import IntEnum


class ErrorCode(IntEnum):
    """Process exit status of ``mdeploy``.

    A declined confirmation is not a failure and exits with ``OK``.
    """

    OK = 0
    # bad --version/--name, dirty tree, wrong branch, unreadable mdeploy.toml
    USER_ERROR = 1
    # gh is not installed
    ENV_ERROR = 2
    # git or gh ran and failed, or the prompt could not be answered
    EXEC_ERROR = 3
