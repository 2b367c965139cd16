"""Path handling: `cd` destination resolution and PATH searches."""
from __future__ import annotations

import logging
import os
import shutil
from typing import Iterator, List, Optional, Tuple

from errors import FatalInputError, NotFoundError

logger = logging.getLogger(__name__)


def home_directory(env: Optional[dict] = None) -> str:
    """Return the user's home directory or raise FatalInputError."""
    home = (env or os.environ).get('HOME') or os.path.expanduser('~')
    if not home or home == '~' or not os.path.isdir(home):
        raise FatalInputError(f"cd: cannot read home directory: {home or '(unset)'}")
    return home


def _split_segments(path: str) -> List[str]:
    return path.split('/')


def normalize(current: str, destination: str) -> str:
    """Apply ``destination`` to ``current`` segment by segment.

    '..' drops the last segment but never the root, '.' and empty segments
    are no-ops, anything else is appended. The OS is not consulted, so
    symlinks are not resolved.

    >>> normalize('/home/user', '../..')
    '/'
    """
    parts = _split_segments(current.rstrip('/'))
    for seg in _split_segments(destination):
        if seg == '..':
            if len(parts) > 1:
                parts.pop()
        elif seg in ('.', ''):
            continue
        else:
            parts.append(seg)
    return '/'.join(parts) or '/'


def _check_directory(path: str, shown: str) -> None:
    if not os.path.exists(path):
        raise NotFoundError(f"cd: {shown}: No such file or directory", path=path)
    if not os.path.isdir(path):
        raise NotFoundError(f"cd: {shown}: Not a directory", path=path)


def resolve_cd(current: str, destination: Optional[str], home: Optional[str] = None) -> str:
    """Compute the working directory `cd destination` would move to.

    Raises NotFoundError when the destination is missing or not a
    directory, and FatalInputError when the home directory is needed but
    cannot be read. Nothing is changed on disk or in the process.
    """
    if destination is None:
        return home if home is not None else home_directory()

    dest = destination
    if len(dest) > 1 and dest.endswith('/'):
        dest = dest.rstrip('/') or '/'

    if dest.startswith('/'):
        _check_directory(dest, destination)
        return dest

    if dest == '~' or dest.startswith('~/'):
        base = home if home is not None else home_directory()
        rest = dest[2:]
        target = base.rstrip('/') + '/' + rest if rest else base
        _check_directory(target, target)
        return target

    candidate = current.rstrip('/') + '/' + dest
    _check_directory(candidate, destination)
    resolved = normalize(current, dest)
    logger.debug("cd %r from %r -> %r", destination, current, resolved)
    return resolved


# --- PATH lookup ---

def search_path(env: Optional[dict] = None) -> str:
    return (env or os.environ).get('PATH', os.defpath)


def find_executable(name: str, path: Optional[str] = None) -> Optional[str]:
    """Return the full path of executable ``name`` found on ``path``."""
    if not name:
        return None
    if path is None:
        path = search_path()
    found = shutil.which(name, mode=os.F_OK | os.X_OK, path=path)
    logger.debug("lookup %r -> %r", name, found)
    return found


def iter_path_executables(path: Optional[str] = None) -> Iterator[Tuple[str, str]]:
    """Yield (name, full_path) for every executable file on ``path``."""
    if path is None:
        path = search_path()
    for directory in path.split(os.pathsep):
        if not directory:
            continue
        try:
            entries = list(os.scandir(directory))
        except OSError:
            continue
        for entry in entries:
            try:
                if entry.is_file() and os.access(entry.path, os.X_OK):
                    yield entry.name, entry.path
            except OSError:
                continue
