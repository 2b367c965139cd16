import os
import stat
import sys
from pathlib import Path
import pytest

# Ensure we can import modules from src/
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


SCRIPTS = {
    "greet": 'echo "hello $*"\n',
    "fail": 'echo oops 1>&2\nexit 3\n',
    "showargs": 'for a in "$@"; do echo "[$a]"; done\n',
    "where": 'pwd\n',
    "mixed": 'echo one\necho two 1>&2\necho three\n',
}


def write_script(directory: Path, name: str, body: str, executable: bool = True) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body)
    if executable:
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture()
def sandbox(tmp_path, monkeypatch):
    # Work in an isolated temp directory
    monkeypatch.chdir(tmp_path)
    safe_env = {
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
        "HOME": str(tmp_path),
        "LANG": os.environ.get("LANG", "C"),
        "LC_ALL": os.environ.get("LC_ALL", "C"),
        "TERM": os.environ.get("TERM", "dumb"),
    }
    monkeypatch.setenv("HOME", safe_env["HOME"])
    return tmp_path, safe_env


@pytest.fixture()
def bindir(tmp_path_factory):
    # A PATH directory holding small shell scripts
    directory = tmp_path_factory.mktemp("bin")
    for name, body in SCRIPTS.items():
        write_script(directory, name, body)
    write_script(directory, "notexec", "echo never\n", executable=False)
    return directory


@pytest.fixture()
def session(sandbox, bindir):
    from ops import ShellSession
    tmp_path, safe_env = sandbox
    sess = ShellSession(working_directory=str(tmp_path), inherit_env=False)
    sess.env.update(safe_env)
    sess.env["PATH"] = str(bindir) + os.pathsep + safe_env["PATH"]
    return sess


@pytest.fixture()
def make_script():
    return write_script
