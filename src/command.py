# module for builtin commands

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, TextIO

from errors import FatalInputError, UsageError
from paths import find_executable

if TYPE_CHECKING:
    from ops import ShellSession

logger = logging.getLogger(__name__)


class Builtin(Enum):
    EXIT = 'exit'
    ECHO = 'echo'
    TYPE = 'type'
    PWD = 'pwd'
    CD = 'cd'

    @classmethod
    def lookup(cls, name: str) -> Optional[Builtin]:
        try:
            return cls(name)
        except ValueError:
            return None


BUILTIN_NAMES: frozenset[str] = frozenset(b.value for b in Builtin)


def run_builtin(builtin: Builtin, args: List[str], session: ShellSession, stdout: TextIO, stderr: TextIO) -> int:
    """Run ``builtin`` with ``args`` (the command name excluded).

    Errors are raised as ShellError subclasses for the dispatcher to report.
    """
    logger.debug("builtin %s %r", builtin.value, args)
    match builtin:
        case Builtin.EXIT:
            return run_exit(args)
        case Builtin.ECHO:
            return run_echo(args, stdout)
        case Builtin.TYPE:
            return run_type(args, session, stdout)
        case Builtin.PWD:
            return run_pwd(args, session, stdout)
        case Builtin.CD:
            return run_cd(args, session)


def run_exit(args: List[str]) -> int:
    if len(args) > 1:
        raise UsageError("exit: too many arguments")
    if not args:
        raise SystemExit(0)
    try:
        code = int(args[0])
    except ValueError:
        raise FatalInputError(f"exit: {args[0]}: numeric argument required")
    raise SystemExit(code)


def run_echo(args: List[str], stdout: TextIO) -> int:
    stdout.write(' '.join(args) + '\n')
    return 0


def run_type(args: List[str], session: ShellSession, stdout: TextIO) -> int:
    # Misses are reported on stdout as well, with status 1
    status = 0
    for name in args:
        if name in BUILTIN_NAMES:
            stdout.write(f"{name} is a shell builtin\n")
            continue
        path = find_executable(name, session.search_path())
        if path:
            stdout.write(f"{name} is {path}\n")
        else:
            stdout.write(f"{name}: not found\n")
            status = 1
    return status


def run_pwd(args: List[str], session: ShellSession, stdout: TextIO) -> int:
    if args:
        raise UsageError("pwd: too many arguments")
    stdout.write(session.working_directory + '\n')
    return 0


def run_cd(args: List[str], session: ShellSession) -> int:
    if len(args) > 1:
        raise UsageError("cd: too many arguments")
    session.change_directory(args[0] if args else None)
    return 0
