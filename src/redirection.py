"""Output redirection clauses and the sinks they resolve to."""
from __future__ import annotations

import logging
import os
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Dict, List, TextIO, Tuple

from errors import NotFoundError

logger = logging.getLogger(__name__)

# operator -> (fd, append)
REDIRECT_OPERATORS: Dict[str, Tuple[int, bool]] = {
    '>': (1, False),
    '1>': (1, False),
    '2>': (2, False),
    '>>': (1, True),
    '1>>': (1, True),
    '2>>': (2, True),
}


@dataclass(frozen=True)
class Redirection:
    operator: str
    target: str

    @property
    def fd(self) -> int:
        return REDIRECT_OPERATORS[self.operator][0]

    @property
    def append(self) -> bool:
        return REDIRECT_OPERATORS[self.operator][1]

    @property
    def mode(self) -> str:
        return 'a' if self.append else 'w'


@dataclass
class ParsedCommand:
    """A command line after redirection has been resolved.

    ``name`` is the first word as typed, even when it is a redirection
    operator; ``args`` holds only positional words (args[0] is the program).
    """
    name: str
    args: List[str]
    stdout: TextIO
    stderr: TextIO
    redirections: List[Redirection]


def is_redirect_operator(tok: str) -> bool:
    return tok in REDIRECT_OPERATORS


def parse_redirections(tokens: List[str]) -> Tuple[List[str], List[Redirection]]:
    """Separate positional words from redirection clauses.

    The first operator that has a target ends the positional words; every
    later token is either an operator, a target or ignored. An operator in
    last position has no target and is kept as a plain word.
    """
    args: List[str] = []
    redirs: List[Redirection] = []
    in_clauses = False
    i = 0
    n = len(tokens)
    while i < n:
        tok = tokens[i]
        if is_redirect_operator(tok) and i + 1 < n:
            redirs.append(Redirection(tok, tokens[i + 1]))
            in_clauses = True
            i += 2
            continue
        if not in_clauses:
            args.append(tok)
        else:
            logger.debug("ignoring stray word after redirection: %r", tok)
        i += 1
    return args, redirs


def _open_target(redir: Redirection) -> TextIO:
    # O_APPEND on truncating opens too, so `> f 2>> f` keeps write order
    flags = os.O_WRONLY | os.O_CREAT | os.O_APPEND
    if not redir.append:
        flags |= os.O_TRUNC
    try:
        fd = os.open(redir.target, flags, 0o666)
        return open(fd, redir.mode, encoding='utf-8', newline='')
    except FileNotFoundError:
        raise NotFoundError(f"{redir.target}: No such file or directory", path=redir.target)
    except OSError as e:
        raise NotFoundError(f"{redir.target}: {e.strerror or e}", path=redir.target)


def open_sinks(redirs: List[Redirection], stack: ExitStack, stdout: TextIO, stderr: TextIO) -> Tuple[TextIO, TextIO]:
    """Open every redirection target and return the (stdout, stderr) sinks.

    Clauses are applied in order so the last one for a stream wins. All
    opened files are registered on ``stack`` and closed with it.
    """
    out: TextIO = stdout
    err: TextIO = stderr
    for r in redirs:
        f = stack.enter_context(_open_target(r))
        logger.debug("redirect fd %d -> %s (%s)", r.fd, r.target, 'append' if r.append else 'truncate')
        if r.fd == 1:
            out = f
        else:
            err = f
    return out, err


def extract_redirection(tokens: List[str], stack: ExitStack, stdout: TextIO, stderr: TextIO) -> ParsedCommand:
    """Strip redirection clauses from ``tokens`` and resolve their sinks.

    ``stdout``/``stderr`` are the inherited streams used when no clause
    applies to a stream.
    """
    name = tokens[0] if tokens else ''
    args, redirs = parse_redirections(tokens)
    out, err = open_sinks(redirs, stack, stdout, stderr)
    return ParsedCommand(name=name, args=args, stdout=out, stderr=err, redirections=redirs)
