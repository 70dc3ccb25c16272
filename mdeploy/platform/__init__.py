"""Platform abstraction layer."""

from .process import (
    CommandResult,
    CommandRunner,
    ProcessError,
    RecordingRunner,
    SubprocessRunner,
)

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ProcessError",
    "RecordingRunner",
    "SubprocessRunner",
]
