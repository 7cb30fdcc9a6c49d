"""Environment variables — the session's configuration.

The terminal keeps its settings the way a Unix shell does: as string
``KEY=VALUE`` pairs.  The defaults describe the simulated user
(``USER``, ``HOSTNAME``, ``HOME``) and feed the prompt; users can add
their own with ``export`` and reference them as ``$NAME`` on the
command line.

Undefined variables expand to the empty string, as in bash.
"""

import re

DEFAULT_USER = "user"
DEFAULT_HOSTNAME = "system"
DEFAULT_SHELL = "voidsh"

# An escaped character is matched first so that \$NAME stays literal.
_VARIABLE = re.compile(r"\\.|\$([A-Za-z_][A-Za-z0-9_]*)")
_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Environment:
    """A key-value store for environment variables."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        """Create an environment, optionally pre-populated.

        Args:
            initial: Starting variables (copied, not referenced).

        """
        self._vars: dict[str, str] = dict(initial) if initial else {}

    @classmethod
    def with_defaults(cls, *, home: str) -> "Environment":
        """Return an environment seeded with the standard session variables."""
        return cls(
            {
                "USER": DEFAULT_USER,
                "HOSTNAME": DEFAULT_HOSTNAME,
                "HOME": home,
                "SHELL": DEFAULT_SHELL,
            }
        )

    @staticmethod
    def is_valid_name(key: str) -> bool:
        """Return True if *key* can be referenced as ``$key``."""
        return _NAME.match(key) is not None

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value for *key*, or *default* if not set."""
        return self._vars.get(key, default)

    def set(self, key: str, value: str) -> None:
        """Set *key* to *value* (creates or overwrites).

        Raises:
            ValueError: If *key* is not a valid variable name.

        """
        if not self.is_valid_name(key):
            msg = f"Not a valid identifier: '{key}'"
            raise ValueError(msg)
        self._vars[key] = value

    def delete(self, key: str) -> None:
        """Remove *key* from the environment.

        Raises:
            KeyError: If *key* does not exist.

        """
        del self._vars[key]

    def items(self) -> list[tuple[str, str]]:
        """Return all (key, value) pairs sorted by key."""
        return sorted(self._vars.items())

    def expand(self, text: str) -> str:
        """Replace every ``$NAME`` in *text* with its value.

        A backslash-escaped dollar is left for the tokenizer to unescape.
        """

        def substitute(match: re.Match[str]) -> str:
            if match.group(1) is None:
                return match.group(0)
            return self._vars.get(match.group(1), "")

        return _VARIABLE.sub(substitute, text)

    def __contains__(self, key: object) -> bool:
        """Return True if *key* is set."""
        return key in self._vars

    def __len__(self) -> int:
        """Return the number of variables."""
        return len(self._vars)
