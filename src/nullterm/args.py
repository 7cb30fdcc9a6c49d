"""Command-line argument parsing — tokenizing and switch splitting.

Two small, independent steps turn a raw input line into something a
command can use:

1. ``tokenize`` splits the line into tokens the way a Unix shell does:
   whitespace separates tokens, single or double quotes group words,
   and a backslash escapes the next character.
2. ``split_args`` partitions tokens into switches (``-r``, ``--all``)
   and positional parameters.

Malformed input is handled on a best-effort basis rather than rejected:
an unterminated quote runs to the end of the line, and a trailing lone
backslash is kept literally.  The user sees what they typed instead of
a syntax error.
"""

from dataclasses import dataclass

_QUOTES = frozenset("\"'")
_ESCAPE = "\\"


def tokenize(line: str) -> list[str]:
    r"""Split a command line into tokens.

    Examples::

        'ls -a /home/user'      → ["ls", "-a", "/home/user"]
        'echo "Hello World"'    → ["echo", "Hello World"]
        "mkdir 'My Documents'"  → ["mkdir", "My Documents"]
        'echo "A quote: \""'    → ["echo", 'A quote: "']

    Quoted and unquoted parts that touch form one token (``a"b c"`` is
    ``ab c``), and ``""`` on its own is an empty token.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    quote: str | None = None

    i = 0
    while i < len(line):
        ch = line[i]
        i += 1

        if ch == _ESCAPE:
            # A lone backslash at the very end stays literal.
            current.append(line[i] if i < len(line) else ch)
            i += 1
            in_token = True
        elif quote is not None:
            if ch == quote:
                quote = None
            else:
                current.append(ch)
        elif ch in _QUOTES:
            quote = ch
            in_token = True
        elif ch.isspace():
            if in_token:
                tokens.append("".join(current))
                current.clear()
                in_token = False
        else:
            current.append(ch)
            in_token = True

    if in_token:
        tokens.append("".join(current))
    return tokens


@dataclass(frozen=True)
class SplitArgs:
    """Tokens partitioned into switches and positional parameters."""

    switches: list[str]
    params: list[str]


def split_args(tokens: list[str]) -> SplitArgs:
    """Separate switch tokens from parameters, keeping order in each group.

    A token starting with ``-`` is a switch; its leading ``-`` (or ``--``)
    is dropped.  Everything else is a parameter.

    Examples::

        ["-r", "-f", "a.txt", "b.txt"] → switches ["r", "f"], params ["a.txt", "b.txt"]
        ["--all", "docs"]              → switches ["all"], params ["docs"]

    """
    switches: list[str] = []
    params: list[str] = []
    for token in tokens:
        if token.startswith("--"):
            switches.append(token[2:])
        elif token.startswith("-"):
            switches.append(token[1:])
        else:
            params.append(token)
    return SplitArgs(switches=switches, params=params)
