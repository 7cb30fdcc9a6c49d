"""Context-aware tab completer for the terminal shell.

The completer separates **what to complete** (pure logic, fully
testable) from **how to wire it** (readline integration in the REPL).

The ``complete(text, state)`` method is the readline callback.  It
delegates to ``completions(text, line)`` which looks at the words
typed so far and returns a list of candidate strings.
"""

from __future__ import annotations

import readline
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nullterm.fs.node import Node
    from nullterm.shell import Shell

# Commands whose arguments are filesystem paths.
_PATH_COMMANDS: frozenset[str] = frozenset(
    ["cat", "cp", "ls", "mkdir", "mv", "rm", "stat", "touch", "tree", "write"]
)

# Commands whose arguments must be directories.
_DIRECTORY_COMMANDS: frozenset[str] = frozenset(["cd"])


class Completer:
    """Tab completer for commands, paths, and variable names."""

    def __init__(self, shell: Shell) -> None:
        """Create a completer attached to a shell instance.

        Args:
            shell: The shell whose commands, filesystem, and environment
                   are used to generate completion candidates.

        """
        self._shell = shell

    def complete(self, text: str, state: int) -> str | None:
        """Readline callback — return the *state*-th candidate for *text*.

        Args:
            text: The partial word being completed.
            state: Index into the candidate list (0, 1, 2, …).

        Returns:
            The candidate at *state*, or ``None`` when exhausted.

        """
        line = readline.get_line_buffer()
        candidates = self.completions(text, line)
        if state < len(candidates):
            return candidates[state]
        return None

    def completions(self, text: str, line: str) -> list[str]:
        """Return completion candidates based on context.

        Args:
            text: The partial word under the cursor.
            line: The full input line so far.

        Returns:
            Sorted list of matching candidates.

        """
        words = line.lstrip().split()

        # Still typing the first word → command completion
        if not words or (len(words) == 1 and not line.endswith(" ")):
            return self._complete_commands(text)

        cmd = words[0]
        if text.startswith("$"):
            return self._complete_dollar_vars(text)
        if cmd == "help":
            return self._complete_commands(text)
        if cmd == "unset":
            return self._complete_env_vars(text)
        if text.startswith("-"):
            return []
        if cmd in _DIRECTORY_COMMANDS:
            return self._complete_paths(text, directories_only=True)
        if cmd in _PATH_COMMANDS or text.startswith(("/", "~")):
            return self._complete_paths(text)
        return []

    # -- private completers ------------------------------------------------

    def _complete_commands(self, text: str) -> list[str]:
        """Complete command names from the shell's dispatch table."""
        return [cmd for cmd in self._shell.command_names if cmd.startswith(text)]

    def _complete_paths(self, text: str, *, directories_only: bool = False) -> list[str]:
        """Complete a partial path against the virtual filesystem.

        ``Documents/no`` splits into the directory ``Documents/`` and the
        prefix ``no``.  Hidden entries are offered only when the prefix
        starts with a dot.  Directories get a trailing ``/``.
        """
        last_slash = text.rfind("/")
        directory = text[: last_slash + 1]
        prefix = text[last_slash + 1 :]

        node = self._shell.filesystem.find(directory or ".")
        if node is None or not node.is_directory:
            return []

        candidates: list[str] = []
        for child in node.children_nodes():
            name = child.full_name()
            if not name.startswith(prefix) or not _visible(child, prefix):
                continue
            if directories_only and not child.is_directory:
                continue
            candidates.append(directory + name + ("/" if child.is_directory else ""))
        return sorted(candidates)

    def _complete_env_vars(self, text: str) -> list[str]:
        """Complete environment variable names (without $ prefix)."""
        return [key for key, _val in self._shell.environment.items() if key.startswith(text)]

    def _complete_dollar_vars(self, text: str) -> list[str]:
        """Complete $VAR references with the dollar prefix."""
        prefix = text[1:]  # strip leading $
        names = [key for key, _val in self._shell.environment.items() if key.startswith(prefix)]
        return [f"${key}" for key in names]


def _visible(node: Node, prefix: str) -> bool:
    return prefix.startswith(".") or not node.is_hidden
