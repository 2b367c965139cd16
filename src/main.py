#!/usr/bin/env python3

# Entry of tinysh

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from command import BUILTIN_NAMES  # local modules in the same folder
from completion import Completer
from ops import ShellSession, execute_line

try:
    import readline  # type: ignore
except Exception:  # pragma: no cover - fallback when readline unavailable
    readline = None

READLINE_ACTIVE = bool(readline)

PROMPT = os.environ.get("TINYSH_PROMPT", "$ ")

LOG_FORMAT = "tinysh[%(name)s] %(levelname)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    """Send diagnostics to stderr; quiet unless debugging."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.WARNING)


def setup_readline(completer: Optional[Completer] = None) -> None:
    if not READLINE_ACTIVE:
        return
    try:
        readline.parse_and_bind("set editing-mode emacs")
        readline.parse_and_bind("Control-l: clear-screen")
        if completer is not None:
            readline.set_completer(completer.complete)
            readline.set_completer_delims(" \t\n")
            if "libedit" in (readline.__doc__ or ""):
                readline.parse_and_bind("bind ^I rl_complete")
            else:
                readline.parse_and_bind("tab: complete")
    except Exception:
        pass


def repl(session: Optional[ShellSession] = None, prompt: str = PROMPT, use_readline: bool = True) -> int:
    """Read and run lines until `exit` or end of input.

    Returns the status to exit with on end of input; `exit` and fatal input
    errors leave through SystemExit instead.
    """
    if session is None:
        session = ShellSession(inherit_env=True)

    readline_enabled = use_readline and READLINE_ACTIVE and sys.stdin.isatty()
    if readline_enabled:
        completer = Completer(BUILTIN_NAMES, session.search_path, prompt=prompt, line_reader=readline)
        setup_readline(completer)

    while True:
        try:
            line = input(prompt)
        except EOFError:
            # Ctrl-D -> end of session
            print()
            return 1
        except KeyboardInterrupt:
            # Ctrl-C at prompt -> new line and continue
            print()
            continue

        if not line.strip():
            continue

        try:
            execute_line(line, session)
        except Exception as e:
            logger.debug("unhandled error", exc_info=True)
            print(f"tinysh: error: {e}", file=sys.stderr)
            session.last_status = 1


def parse_args(args=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="tinysh - a small interactive shell",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tinysh                   # Interactive shell with the default prompt
  tinysh --prompt '> '     # Use a different prompt
  tinysh --debug           # Trace tokenization and dispatch on stderr

Environment: TINYSH_PROMPT sets the default prompt, TINYSH_DEBUG=1 enables --debug.
"""
    )

    parser.add_argument(
        "--prompt", "-p",
        metavar="TEXT",
        default=PROMPT,
        help="Prompt printed before each line (default: %(default)r)"
    )
    parser.add_argument(
        "--no-readline",
        action="store_true",
        help="Disable line editing and tab completion"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=bool(os.environ.get("TINYSH_DEBUG")),
        help="Log tokenization, redirection and dispatch to stderr"
    )

    return parser.parse_args(args)


def main() -> None:
    args = parse_args()
    configure_logging(args.debug)
    sys.exit(repl(prompt=args.prompt, use_readline=not args.no_readline))


if __name__ == "__main__":
    main()
