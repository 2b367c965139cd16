import io

import pytest  # type: ignore

from command import BUILTIN_NAMES
from completion import BELL, Completer


class FakeLine:
    """Stands in for readline's line buffer accessors."""

    def __init__(self, buffer: str = "", begidx: int = 0) -> None:
        self.buffer = buffer
        self.begidx = begidx

    def get_line_buffer(self) -> str:
        return self.buffer

    def get_begidx(self) -> int:
        return self.begidx


@pytest.fixture()
def compdir(tmp_path, make_script):
    directory = tmp_path / "compbin"
    directory.mkdir()
    for name in ("xyz_one", "xyz_two", "xyz_three", "echo"):
        make_script(directory, name, "true\n")
    make_script(directory, "xyz_hidden", "true\n", executable=False)
    return directory


@pytest.fixture()
def completer(compdir):
    return Completer(BUILTIN_NAMES, lambda: str(compdir), prompt="$ ", out=io.StringIO(), line_reader=FakeLine())


def collect(completer, text):
    results = []
    state = 0
    while True:
        value = completer.complete(text, state)
        if value is None:
            return results
        results.append(value)
        state += 1


def test_candidates_union_is_sorted_and_unique(completer):
    assert completer.candidates("xyz_") == ["xyz_one", "xyz_three", "xyz_two"]
    assert completer.candidates("ech") == ["echo"]
    assert completer.candidates("ex") == ["exit"]


def test_single_match_completes_with_space(completer):
    completer.line_reader.buffer = "ec"
    assert collect(completer, "ec") == ["echo "]
    assert completer.out.getvalue() == ""


def test_path_executable_completes(completer):
    completer.line_reader.buffer = "xyz_o"
    assert collect(completer, "xyz_o") == ["xyz_one "]


def test_common_prefix_is_completed(completer):
    completer.line_reader.buffer = "xy"
    assert collect(completer, "xy") == ["xyz_"]
    assert completer.out.getvalue() == ""


def test_ambiguous_rings_then_lists(completer):
    completer.line_reader.buffer = "xyz_t"
    assert collect(completer, "xyz_t") == []
    assert completer.out.getvalue() == BELL

    assert collect(completer, "xyz_t") == []
    assert completer.out.getvalue() == BELL + "\nxyz_three  xyz_two\n$ xyz_t"


def test_listing_needs_unchanged_input(completer):
    completer.line_reader.buffer = "xyz_t"
    collect(completer, "xyz_t")
    completer.line_reader.buffer = "ec"
    collect(completer, "ec")
    completer.line_reader.buffer = "xyz_t"
    collect(completer, "xyz_t")
    assert completer.out.getvalue() == BELL + BELL


def test_no_match_rings_bell(completer):
    completer.line_reader.buffer = "qqq"
    assert collect(completer, "qqq") == []
    assert completer.out.getvalue() == BELL


def test_only_command_word_is_completed(completer):
    completer.line_reader.buffer = "echo ec"
    completer.line_reader.begidx = 5
    assert collect(completer, "ec") == []
    assert completer.out.getvalue() == ""


def test_leading_whitespace_still_command_word(completer):
    completer.line_reader.buffer = "  ec"
    completer.line_reader.begidx = 2
    assert collect(completer, "ec") == ["echo "]


def test_without_line_reader(compdir):
    out = io.StringIO()
    c = Completer(BUILTIN_NAMES, lambda: str(compdir), out=out)
    assert c.complete("pw", 0) == "pwd "
    assert c.complete("pw", 1) is None
