"""Tab completion of command names for the readline prompt.

Candidates are the builtin names plus every executable on PATH. A unique
match completes with a trailing space, a longer shared prefix completes to
that prefix. Otherwise the first Tab rings the bell and a second Tab on the
same input lists the candidates and redraws the prompt.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any, Callable, Iterable, List, Optional, TextIO

from paths import iter_path_executables

logger = logging.getLogger(__name__)

BELL = '\a'


class Completer:
    def __init__(
        self,
        builtins: Iterable[str],
        path_source: Callable[[], str],
        prompt: str = "$ ",
        out: Optional[TextIO] = None,
        line_reader: Optional[Any] = None,
    ) -> None:
        self.builtins = frozenset(builtins)
        # Called on every completion so PATH changes are picked up
        self.path_source = path_source
        self.prompt = prompt
        self.out = out
        # Object exposing get_line_buffer()/get_begidx(), normally readline
        self.line_reader = line_reader
        self._pending: Optional[str] = None
        self._results: List[str] = []

    def _stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    def candidates(self, text: str) -> List[str]:
        names = {b for b in self.builtins if b.startswith(text)}
        for name, _ in iter_path_executables(self.path_source()):
            if name.startswith(text):
                names.add(name)
        return sorted(names)

    def _line_buffer(self) -> str:
        if self.line_reader is None:
            return ''
        return self.line_reader.get_line_buffer()

    def _is_command_word(self) -> bool:
        if self.line_reader is None:
            return True
        begidx = self.line_reader.get_begidx()
        return not self._line_buffer()[:begidx].strip()

    def _ring(self) -> None:
        stream = self._stream()
        stream.write(BELL)
        stream.flush()

    def _show(self, matches: List[str]) -> None:
        stream = self._stream()
        stream.write('\n' + '  '.join(matches) + '\n')
        stream.write(self.prompt + self._line_buffer())
        stream.flush()

    def resolve(self, text: str) -> List[str]:
        """Return what should replace ``text``: one entry or nothing."""
        if not self._is_command_word():
            return []
        matches = self.candidates(text)
        logger.debug("completion %r -> %r", text, matches)
        if len(matches) == 1:
            self._pending = None
            return [matches[0] + ' ']
        if not matches:
            self._pending = None
            self._ring()
            return []
        prefix = os.path.commonprefix(matches)
        if len(prefix) > len(text):
            self._pending = None
            return [prefix]
        if self._pending == text:
            self._pending = None
            self._show(matches)
        else:
            self._pending = text
            self._ring()
        return []

    def complete(self, text: str, state: int) -> Optional[str]:
        """readline completer protocol: called with state 0, 1, ... until None."""
        if state == 0:
            self._results = self.resolve(text)
        if state < len(self._results):
            return self._results[state]
        return None
