"""Tokenization of a raw command line into argument words.

The scanner is a small state machine over the quote state plus a pending
escape flag. Parsing is permissive: an unterminated quote simply stops
applying at end of input and a trailing backslash is kept literally.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)


class QuoteState(Enum):
    UNQUOTED = "unquoted"
    SINGLE = "single"
    DOUBLE = "double"


# Characters a backslash escapes inside double quotes; before anything else
# the backslash is kept.
DOUBLE_QUOTE_ESCAPABLE = frozenset({'$', '"', '\\', '\n'})

WORD_SEPARATORS = (' ', '\t')


def tokenize(line: str) -> List[str]:
    """Split ``line`` into words honoring quotes and backslash escapes.

    - Unquoted spaces and tabs separate words; runs of them collapse.
    - '...' preserves everything literally, backslashes included.
    - "..." preserves everything except \\$, \\", \\\\ and \\<newline>.
    - An unquoted backslash makes the next character literal.
    - A quoted empty word ('' or "") yields an empty token.
    """
    tokens: List[str] = []
    buf: List[str] = []
    state = QuoteState.UNQUOTED
    escaped = False
    # Set once a quote pair contributed to the current word, so '' survives
    buf_quoted = False

    def flush_buf() -> None:
        nonlocal buf_quoted
        if buf or buf_quoted:
            tokens.append(''.join(buf))
            buf.clear()
            buf_quoted = False

    for ch in line:
        if escaped:
            if state is QuoteState.DOUBLE and ch not in DOUBLE_QUOTE_ESCAPABLE:
                buf.append('\\')
            buf.append(ch)
            escaped = False
            continue
        if ch == '\\' and state is not QuoteState.SINGLE:
            escaped = True
            continue
        if ch == "'" and state is not QuoteState.DOUBLE:
            state = QuoteState.SINGLE if state is QuoteState.UNQUOTED else QuoteState.UNQUOTED
            buf_quoted = True
            continue
        if ch == '"' and state is not QuoteState.SINGLE:
            state = QuoteState.DOUBLE if state is QuoteState.UNQUOTED else QuoteState.UNQUOTED
            buf_quoted = True
            continue
        if ch in WORD_SEPARATORS and state is QuoteState.UNQUOTED:
            flush_buf()
            continue
        buf.append(ch)

    if escaped:
        # Dangling escape at end of line
        buf.append('\\')
    flush_buf()

    if state is not QuoteState.UNQUOTED:
        logger.debug("unterminated %s quote in %r", state.value, line)
    logger.debug("tokens: %r", tokens)
    return tokens
