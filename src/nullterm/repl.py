"""Interactive REPL (Read-Eval-Print Loop) for the terminal.

The REPL builds the session tree, creates a shell, and enters the
classic loop:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the line to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

The shell never prints; this module is the thin I/O wrapper that
connects it to ``stdin``/``stdout``.  ``format_banner`` and
``new_session`` are pure and testable.  ``run()`` is the I/O
entrypoint.
"""

import readline

from nullterm.completer import Completer
from nullterm.fs.seed import build_default_filesystem
from nullterm.logging import Logger
from nullterm.shell import Shell

VERSION_INFO = "Null-Terminal v1.0.0"
_TAGLINE = "A tiny Unix-like shell over a virtual filesystem"
_BANNER_WIDTH = 52


def format_banner() -> str:
    """Return the greeting shown when a session starts."""
    border = "=" * _BANNER_WIDTH
    return (
        f"\n  {border}\n  {VERSION_INFO:^{_BANNER_WIDTH}}\n  {_TAGLINE:^{_BANNER_WIDTH}}\n"
        f"  {border}\n\nType 'help' for commands, 'exit' to quit.\n"
    )


def new_session() -> Shell:
    """Return a shell over a freshly seeded filesystem.

    The filesystem and the shell share one logger, so ``log`` shows
    entries from both.
    """
    logger = Logger()
    return Shell(filesystem=build_default_filesystem(logger=logger), logger=logger)


def run() -> None:
    """Start a session and run the interactive REPL.

    Handles Ctrl+C and Ctrl+D as a normal exit.
    """
    shell = new_session()

    # Wire up tab completion via readline.
    completer = Completer(shell)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner())  # noqa: T201

    try:
        while True:
            try:
                command = input(shell.prompt())
            except EOFError:
                # Ctrl+D
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        print("\nInterrupted.")  # noqa: T201

    finally:
        print("Session closed.")  # noqa: T201
