from __future__ import annotations

import logging
import os
import subprocess
import sys
from contextlib import ExitStack
from typing import Dict, List, Optional, TextIO

from command import Builtin, run_builtin
from errors import FatalInputError, NotFoundError, ShellError
from lexer import tokenize
from paths import find_executable, home_directory, resolve_cd, search_path
from redirection import extract_redirection

logger = logging.getLogger(__name__)

# Status reported when a command cannot be found or started
STATUS_NOT_FOUND = 127
# Status reported when an external command is interrupted by Ctrl-C
STATUS_INTERRUPTED = 130


class ShellSession:
    """Holds session-wide shell context: working directory and environment."""

    def __init__(self, working_directory: Optional[str] = None, inherit_env: bool = True) -> None:
        # String-only environment used for PATH/HOME lookups and subprocesses
        self.env: Dict[str, str] = dict(os.environ) if inherit_env else {}
        # Tracked separately from the OS so `..` is applied textually
        self.working_directory: str = working_directory or os.getcwd()
        self.last_status: int = 0

    def get_env(self) -> Dict[str, str]:
        return dict(self.env)

    def search_path(self) -> str:
        return search_path(self.env) if 'PATH' in self.env else os.defpath

    def home(self) -> str:
        return home_directory(self.env if 'HOME' in self.env else None)

    def change_directory(self, destination: Optional[str]) -> str:
        """Resolve and switch to ``destination``; state is untouched on error."""
        needs_home = destination is None or destination == '~' or destination.startswith('~/')
        target = resolve_cd(self.working_directory, destination, self.home() if needs_home else None)
        try:
            os.chdir(target)
        except OSError as e:
            if destination is None or destination.startswith(('/', '~')):
                raise NotFoundError(f"cd: {destination or target}: {e.strerror or e}", path=target)
            # The textual result can disagree with the OS (e.g. `link/..`);
            # follow the literal path instead, the tracked value still wins.
            candidate = self.working_directory.rstrip('/') + '/' + destination
            try:
                os.chdir(candidate)
            except OSError as e2:
                raise NotFoundError(f"cd: {destination}: {e2.strerror or e2}", path=candidate)
        self.working_directory = target
        self.env['PWD'] = target
        return target


def _fileno(stream) -> Optional[int]:
    """Return the OS descriptor behind ``stream``, or None for in-memory streams."""
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _write_bytes(sink, data: bytes) -> None:
    buffer = getattr(sink, 'buffer', None)
    if buffer is not None:
        buffer.write(data)
        buffer.flush()
    else:
        sink.write(data.decode('utf-8', errors='replace'))
        sink.flush()


class CommandRunner:
    """Run one external program to completion.

    Lifecycle:
    - Initialize with the argv as typed and the resolved executable.
    - Call run() with the command's stdout/stderr sinks.
    - After running, access exit_code, stdout, stderr.

    Notes:
    - A sink backed by a file descriptor (the terminal, a redirected file) is
      handed to the program as is, so bytes and write order are kept.
    - Other sinks get the captured bytes afterwards; stdout/stderr hold
      whatever was captured, None for a passed-through sink.
    - stdin is inherited from the shell.
    """

    def __init__(self, argv: List[str], executable: str, env: Optional[Dict[str, str]] = None) -> None:
        self.argv: List[str] = list(argv)
        self.executable: str = executable
        self.env: Optional[Dict[str, str]] = dict(env) if env is not None else None
        self.exit_code: Optional[int] = None
        self.stdout: Optional[bytes] = None
        self.stderr: Optional[bytes] = None

    def run(self, stdout: TextIO, stderr: TextIO) -> int:
        """Run the program with its output going to the sinks.

        Raises NotFoundError if the program could not be started at all.
        """
        # Earlier text writes must land before the program's own
        stdout.flush()
        stderr.flush()
        out_fd = _fileno(stdout)
        err_fd = _fileno(stderr)
        try:
            completed = subprocess.run(
                self.argv,
                executable=self.executable,
                stdout=out_fd if out_fd is not None else subprocess.PIPE,
                stderr=err_fd if err_fd is not None else subprocess.PIPE,
                env=self.env,
            )
        except KeyboardInterrupt:
            self.exit_code = STATUS_INTERRUPTED
            return self.exit_code
        except OSError as e:
            logger.debug("could not start %s: %s", self.executable, e)
            raise NotFoundError(f"{self.argv[0]}: command not found", path=self.executable,
                                exit_status=STATUS_NOT_FOUND)

        self.exit_code = completed.returncode
        self.stdout = completed.stdout
        self.stderr = completed.stderr
        logger.debug("%s exited with %d", self.argv[0], self.exit_code)

        # A non-zero exit is not a shell error; its own stderr is the signal
        if self.stdout:
            _write_bytes(stdout, self.stdout)
        if self.stderr:
            _write_bytes(stderr, self.stderr)
        return self.exit_code


def run_external(args: List[str], session: ShellSession, stdout: TextIO, stderr: TextIO) -> int:
    name = args[0]
    path = find_executable(name, session.search_path())
    if path is None:
        raise NotFoundError(f"{name}: command not found", exit_status=STATUS_NOT_FOUND)
    runner = CommandRunner(args, executable=path, env=session.get_env())
    return runner.run(stdout, stderr)


def dispatch(args: List[str], session: ShellSession, stdout: TextIO, stderr: TextIO) -> int:
    """Run a builtin if ``args[0]`` names one, otherwise an external program."""
    if not args:
        return 0
    builtin = Builtin.lookup(args[0])
    if builtin is not None:
        return run_builtin(builtin, args[1:], session, stdout, stderr)
    return run_external(args, session, stdout, stderr)


def execute_line(line: str, session: ShellSession, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> int:
    """Tokenize, redirect and run one command line; return its status.

    ShellErrors are reported on the command's stderr sink. A FatalInputError
    is reported and then ends the session with SystemExit, as does `exit`.
    Redirected files are closed before this returns, on every path.
    """
    out = stdout if stdout is not None else sys.stdout
    err = stderr if stderr is not None else sys.stderr

    tokens = tokenize(line)
    if not tokens:
        return 0

    status: int
    with ExitStack() as stack:
        # Until the sinks are open, errors go to the inherited stream
        err_sink = err
        try:
            cmd = extract_redirection(tokens, stack, out, err)
            err_sink = cmd.stderr
            status = dispatch(cmd.args, session, cmd.stdout, cmd.stderr)
        except FatalInputError as e:
            err_sink.write(f"{e.message}\n")
            err_sink.flush()
            raise SystemExit(e.exit_status)
        except ShellError as e:
            err_sink.write(f"{e.message}\n")
            err_sink.flush()
            status = e.exit_status
        finally:
            out.flush()
    session.last_status = status
    return status
