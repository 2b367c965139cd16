"""Error taxonomy for tinysh.

Every error a command can report derives from ShellError. The dispatcher
writes ``message`` to the command's stderr sink and uses ``exit_status`` as
the command status; only FatalInputError ends the session.

    ShellError
    ├── UsageError        wrong argument count to a builtin
    ├── NotFoundError     missing path, executable or redirection target
    └── FatalInputError   bad numeric exit code, unreadable home directory
"""
from __future__ import annotations

from typing import Optional


class ShellError(Exception):
    """Base class for errors reported to the user on stderr."""

    exit_status: int = 1

    def __init__(self, message: str, exit_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if exit_status is not None:
            self.exit_status = exit_status

    def __str__(self) -> str:
        return self.message


class UsageError(ShellError):
    """A builtin was called with the wrong number of arguments."""


class NotFoundError(ShellError):
    """A path, executable or redirection target does not exist."""

    def __init__(self, message: str, path: Optional[str] = None, exit_status: Optional[int] = None) -> None:
        super().__init__(message, exit_status)
        self.path = path


class FatalInputError(ShellError):
    """Input the shell cannot recover from; the process terminates."""

    exit_status = 2
