"""The shell — command interpreter for the terminal.

The shell reads a command line, expands ``$VARIABLES``, tokenizes the
result, and dispatches the first token to a ``_cmd_*`` handler.  Every
handler takes the remaining tokens and returns a string; the caller
(REPL or web view) decides how to show it.

Failures never end the session.  The filesystem raises members of the
``OSError`` family (and ``ValueError`` for bad names); each handler
catches them and reports a line starting with ``Error:``, sometimes
followed by a ``Hint:`` line.
"""

from collections.abc import Callable

from nullterm.args import SplitArgs, split_args, tokenize
from nullterm.env import Environment
from nullterm.fs.filesystem import FileSystem, Resolution, ResolveResult, path_not_found
from nullterm.fs.node import Node
from nullterm.logging import Logger, LogLevel

# Type alias for a command handler: takes a list of args, returns output.
_Handler = Callable[[list[str]], str]

_LOG_SOURCE = "shell"

# name -> (summary, usage)
_HELP: dict[str, tuple[str, str]] = {
    "cat": ("Print file contents", "cat <file>..."),
    "cd": ("Change the current directory", "cd [directory]"),
    "cp": ("Copy files and directories", "cp [-r] <source>... <destination>"),
    "echo": ("Print text", "echo [text]..."),
    "env": ("List environment variables", "env"),
    "exit": ("Leave the terminal", "exit"),
    "export": ("Set an environment variable", "export KEY=VALUE"),
    "help": ("Show available commands", "help [command]"),
    "history": ("Show command history", "history"),
    "log": ("Show recent log entries", "log"),
    "ls": ("List directory contents", "ls [-a] [-l] [path]"),
    "mkdir": ("Create directories", "mkdir [-p] <directory>..."),
    "mv": ("Move or rename files and directories", "mv <source>... <destination>"),
    "pwd": ("Print the current directory", "pwd"),
    "rm": ("Remove files and directories", "rm [-r] <path>..."),
    "stat": ("Show details about a file or directory", "stat <path>"),
    "touch": ("Create files or update their timestamps", "touch <file>..."),
    "tree": ("Show a directory tree", "tree [directory]"),
    "unset": ("Remove an environment variable", "unset KEY"),
    "write": ("Write text to a file", "write <file> <text>..."),
}

# Switches each command accepts; commands not listed accept none.
_SWITCHES: dict[str, frozenset[str]] = {
    "cp": frozenset("r"),
    "ls": frozenset("al"),
    "mkdir": frozenset("p"),
    "rm": frozenset("r"),
}

_MKDIR_HINT = "Hint: Try using the '-p' switch to create parent directories."
_RECURSIVE_HINT = "Hint: Try using the '-r' switch to include directories."


class Shell:
    """Command interpreter bound to one filesystem session."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(
        self,
        *,
        filesystem: FileSystem,
        environment: Environment | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a shell that operates on *filesystem*.

        Args:
            filesystem: The tree the commands act on.
            environment: Session variables; defaults are derived from the
                filesystem's home directory when omitted.
            logger: Receives unknown commands and command errors.

        """
        self._fs = filesystem
        if environment is None:
            home = filesystem.home or filesystem.root
            environment = Environment.with_defaults(home=home.path())
        self._env = environment
        self._logger = logger if logger is not None else Logger()
        self._history: list[str] = []

        self._commands: dict[str, _Handler] = {
            "cat": self._cmd_cat,
            "cd": self._cmd_cd,
            "cp": self._cmd_cp,
            "echo": self._cmd_echo,
            "env": self._cmd_env,
            "exit": self._cmd_exit,
            "export": self._cmd_export,
            "help": self._cmd_help,
            "history": self._cmd_history,
            "log": self._cmd_log,
            "ls": self._cmd_ls,
            "mkdir": self._cmd_mkdir,
            "mv": self._cmd_mv,
            "pwd": self._cmd_pwd,
            "rm": self._cmd_rm,
            "stat": self._cmd_stat,
            "touch": self._cmd_touch,
            "tree": self._cmd_tree,
            "unset": self._cmd_unset,
            "write": self._cmd_write,
        }

    @property
    def filesystem(self) -> FileSystem:
        """Return the filesystem this shell operates on."""
        return self._fs

    @property
    def environment(self) -> Environment:
        """Return the session environment."""
        return self._env

    @property
    def logger(self) -> Logger:
        """Return the session logger."""
        return self._logger

    @property
    def history(self) -> list[str]:
        """Return a copy of the command history."""
        return list(self._history)

    @property
    def command_names(self) -> list[str]:
        """Return every command name in sorted order."""
        return sorted(self._commands)

    def prompt(self) -> str:
        """Return the prompt, e.g. ``user@system:~/Documents$ ``."""
        user = self._env.get("USER", "")
        host = self._env.get("HOSTNAME", "")
        cwd = self._fs.abbreviate_home_dir(self._fs.cwd.path())
        return f"{user}@{host}:{cwd}$ "

    def execute(self, command: str) -> str:
        """Run one command line and return its output.

        Args:
            command: The raw line, e.g. ``ls -a ~/Documents``.

        Returns:
            The command output, an error report, or ``EXIT_SENTINEL``.

        """
        stripped = command.strip()
        if not stripped:
            return ""
        self._history.append(stripped)

        tokens = tokenize(self._env.expand(stripped))
        if not tokens:
            return ""
        name, args = tokens[0], tokens[1:]

        handler = self._commands.get(name)
        if handler is None:
            self._log(LogLevel.WARNING, f"Unknown command: {name}")
            return f"Unknown command: {name}"

        output = handler(args)
        for line in output.splitlines():
            if not line.startswith("Error: "):
                continue
            message = line.removeprefix("Error: ")
            if not message.startswith(f"{name}: "):
                message = f"{name}: {message}"
            self._log(LogLevel.ERROR, message)
        return output

    # -- helpers -----------------------------------------------------------------

    def _log(self, level: LogLevel, message: str) -> None:
        self._logger.log(level, message, source=_LOG_SOURCE)

    @staticmethod
    def _usage(name: str) -> str:
        return f"Usage: {_HELP[name][1]}"

    def _parse(self, name: str, args: list[str]) -> SplitArgs | str:
        """Split *args*, or return an error report for a bad switch."""
        parsed = split_args(args)
        allowed = _SWITCHES.get(name, frozenset())
        for switch in parsed.switches:
            if switch not in allowed:
                return f"Error: {name}: Invalid switch: -{switch}\n{self._usage(name)}"
        return parsed

    @staticmethod
    def _errors(result: ResolveResult) -> list[str]:
        """Return the error lines for a resolution that did not succeed."""
        messages = result.errors or [path_not_found(result.target_name)]
        return [f"Error: {m}" for m in messages]

    def _existing(self, path: str) -> Node | list[str]:
        """Return the node *path* names, or the error lines explaining why not."""
        result = self._fs.resolve_path(path, must_exist=True)
        if result.status is Resolution.FOUND and result.target is not None:
            return result.target
        return self._errors(result)

    # -- commands ----------------------------------------------------------------

    def _cmd_help(self, args: list[str]) -> str:
        """List commands, or describe one."""
        if not args:
            return "Available commands: " + ", ".join(self.command_names)
        name = args[0]
        if name not in _HELP:
            return f"Error: help: No such command: {name}"
        summary, usage = _HELP[name]
        return f"{name}: {summary}\nUsage: {usage}"

    def _cmd_ls(self, args: list[str]) -> str:
        """List directory contents."""
        parsed = self._parse("ls", args)
        if isinstance(parsed, str):
            return parsed
        if len(parsed.params) > 1:
            return f"Error: ls: Too many arguments\n{self._usage('ls')}"

        node = self._existing(parsed.params[0] if parsed.params else ".")
        if isinstance(node, list):
            return "\n".join(node)

        if node.is_directory:
            show_hidden = "a" in parsed.switches
            entries = [c for c in node.children_nodes() if show_hidden or not c.is_hidden]
        else:
            entries = [node]

        if "l" in parsed.switches:
            return "\n".join(self._long_entry(e) for e in entries)
        return "\n".join(e.full_name() + ("/" if e.is_directory else "") for e in entries)

    @staticmethod
    def _long_entry(node: Node) -> str:
        info = node.to_info()
        suffix = "/" if node.is_directory else ""
        stamp = f"{info.modified:%Y-%m-%d %H:%M}"
        return f"{info.kind:<5} {info.size:>6}  {stamp}  {info.full_name}{suffix}"

    def _cmd_cd(self, args: list[str]) -> str:
        """Change the current directory."""
        if len(args) > 1:
            return f"Error: cd: Too many arguments\n{self._usage('cd')}"
        result = self._fs.navigate_to(args[0] if args else "")
        if not result.success:
            return f"Error: cd: {result.info}"
        return ""

    def _cmd_pwd(self, args: list[str]) -> str:
        """Print the current directory."""
        if args:
            return f"Error: pwd: Too many arguments\n{self._usage('pwd')}"
        return self._fs.cwd.path()

    def _cmd_mkdir(self, args: list[str]) -> str:
        """Create directories, with ``-p`` also their missing parents."""
        parsed = self._parse("mkdir", args)
        if isinstance(parsed, str):
            return parsed
        if not parsed.params:
            return self._usage("mkdir")

        create_parents = "p" in parsed.switches
        report: list[str] = []
        for path in parsed.params:
            result = self._fs.resolve_path(path, create_intermediate=create_parents)
            if result.status is Resolution.FOUND and result.target is not None:
                if not (create_parents and result.target.is_directory):
                    report.append(
                        f"Error: Cannot create directory '{path}': File or directory already exists"
                    )
                continue
            if result.status is not Resolution.PARENT_FOUND_TARGET_MISSING or result.parent is None:
                report.extend(self._errors(result))
                if result.status is Resolution.NOT_FOUND:
                    report.append(_MKDIR_HINT)
                continue
            try:
                self._fs.create_directory(result.parent, result.target_name)
            except (OSError, ValueError) as e:
                report.append(f"Error: {e}")
        return "\n".join(report)

    def _cmd_touch(self, args: list[str]) -> str:
        """Create empty files, or bump the timestamp of existing ones."""
        parsed = self._parse("touch", args)
        if isinstance(parsed, str):
            return parsed
        if not parsed.params:
            return self._usage("touch")

        report: list[str] = []
        for path in parsed.params:
            result = self._fs.resolve_path(path)
            if result.status is Resolution.FOUND and result.target is not None:
                result.target.touch()
                continue
            if result.status is not Resolution.PARENT_FOUND_TARGET_MISSING or result.parent is None:
                report.extend(self._errors(result))
                continue
            try:
                # "notes" names the same file as "notes.txt".
                name, kind = FileSystem.split_file_name(result.target_name)
                existing = result.parent.get_child(f"{name}.{kind}")
                if existing is not None:
                    existing.touch()
                else:
                    self._fs.create_file(result.parent, result.target_name)
            except (OSError, ValueError) as e:
                report.append(f"Error: {e}")
        return "\n".join(report)

    def _cmd_cat(self, args: list[str]) -> str:
        """Print the contents of files."""
        parsed = self._parse("cat", args)
        if isinstance(parsed, str):
            return parsed
        if not parsed.params:
            return self._usage("cat")

        output: list[str] = []
        for path in parsed.params:
            node = self._existing(path)
            if isinstance(node, list):
                output.extend(node)
                continue
            try:
                output.append(node.read())
            except IsADirectoryError as e:
                output.append(f"Error: {e}")
        return "\n".join(output)

    def _cmd_write(self, args: list[str]) -> str:
        """Replace a file's content, creating the file if needed."""
        if len(args) < 2:  # noqa: PLR2004
            return self._usage("write")
        path, content = args[0], " ".join(args[1:])

        result = self._fs.resolve_path(path)
        try:
            if result.status is Resolution.FOUND and result.target is not None:
                result.target.write(content)
            elif result.status is Resolution.PARENT_FOUND_TARGET_MISSING and result.parent:
                self._fs.create_file(result.parent, result.target_name, content)
            else:
                return "\n".join(self._errors(result))
        except (OSError, ValueError) as e:
            return f"Error: {e}"
        return ""

    def _cmd_echo(self, args: list[str]) -> str:
        """Print the parameters separated by single spaces."""
        return " ".join(split_args(args).params)

    def _cmd_rm(self, args: list[str]) -> str:
        """Remove files, and with ``-r`` directories and their contents."""
        parsed = self._parse("rm", args)
        if isinstance(parsed, str):
            return parsed
        if not parsed.params:
            return self._usage("rm")

        recursive = "r" in parsed.switches
        cwd = self._fs.cwd
        report: list[str] = []
        for path in parsed.params:
            node = self._existing(path)
            if isinstance(node, list):
                report.extend(node)
                continue
            if node is self._fs.root:
                report.append(f"Error: Cannot remove '{path}': Preserved directory")
            elif node is cwd:
                report.append(
                    f"Error: Cannot remove '{path}': Refusing to remove the current directory"
                )
            elif node is cwd.parent_node:
                report.append(
                    f"Error: Cannot remove '{path}': Refusing to remove the parent directory"
                )
            elif node.children and not recursive:
                report.append(f"Error: Cannot remove '{path}': Directory not empty")
                report.append(_RECURSIVE_HINT)
            else:
                try:
                    self._fs.delete_node(node, recursive=recursive)
                except OSError as e:
                    report.append(f"Error: {e}")
        return "\n".join(report)

    def _sources_and_destination(
        self, name: str, params: list[str]
    ) -> tuple[list[str], ResolveResult] | str:
        """Resolve the destination of ``cp``/``mv`` and check it fits the sources."""
        if len(params) < 2:  # noqa: PLR2004
            return self._usage(name)
        *sources, destination = params
        result = self._fs.resolve_path(destination)
        if result.status not in (Resolution.FOUND, Resolution.PARENT_FOUND_TARGET_MISSING):
            return "\n".join(self._errors(result))
        if len(sources) > 1 and (result.target is None or not result.target.is_directory):
            return f"Error: {name}: Target '{destination}' is not a directory"
        return sources, result

    def _cmd_cp(self, args: list[str]) -> str:
        """Copy files, and with ``-r`` directories, to a destination."""
        parsed = self._parse("cp", args)
        if isinstance(parsed, str):
            return parsed
        checked = self._sources_and_destination("cp", parsed.params)
        if isinstance(checked, str):
            return checked
        sources, dest = checked
        recursive = "r" in parsed.switches

        report: list[str] = []
        for source in sources:
            node = self._existing(source)
            if isinstance(node, list):
                report.extend(node)
                continue
            if node.is_directory and not recursive:
                report.append(f"Error: cp: Omitting directory '{source}'")
                report.append(_RECURSIVE_HINT)
                continue
            try:
                self._copy_one(node, dest, recursive=recursive)
            except (OSError, ValueError) as e:
                report.append(f"Error: {e}")
        return "\n".join(report)

    def _copy_one(self, node: Node, dest: ResolveResult, *, recursive: bool) -> None:
        target = dest.target
        if target is not None and target.is_directory:
            self._fs.copy_node(node, target, recursive=recursive)
        elif target is not None:
            if node.is_directory:
                msg = f"Cannot overwrite non-directory '{target.full_name()}' with a directory"
                raise IsADirectoryError(msg)
            target.write(node.read())
        elif dest.parent is not None:
            self._fs.copy_node(node, dest.parent, new_name=dest.target_name, recursive=recursive)

    def _cmd_mv(self, args: list[str]) -> str:
        """Move or rename files and directories."""
        parsed = self._parse("mv", args)
        if isinstance(parsed, str):
            return parsed
        checked = self._sources_and_destination("mv", parsed.params)
        if isinstance(checked, str):
            return checked
        sources, dest = checked

        report: list[str] = []
        for source in sources:
            node = self._existing(source)
            if isinstance(node, list):
                report.extend(node)
                continue
            try:
                self._move_one(node, dest)
            except (OSError, ValueError) as e:
                report.append(f"Error: {e}")
        return "\n".join(report)

    def _move_one(self, node: Node, dest: ResolveResult) -> None:
        target = dest.target
        if target is node:
            return
        if target is not None and target.is_directory:
            self._fs.move_node(node, target)
        elif target is not None:
            if node.is_directory:
                msg = f"Cannot overwrite non-directory '{target.full_name()}' with a directory"
                raise IsADirectoryError(msg)
            parent = target.parent_node
            if parent is None:  # pragma: no cover - only the root is parentless
                msg = f"Cannot replace '{target.full_name()}'"
                raise OSError(msg)
            self._fs.delete_node(target)
            self._fs.move_node(node, parent, new_name=target.full_name())
        elif dest.parent is not None:
            self._fs.move_node(node, dest.parent, new_name=dest.target_name)

    def _cmd_tree(self, args: list[str]) -> str:
        """Show the directory tree below a directory (default: cwd)."""
        parsed = self._parse("tree", args)
        if isinstance(parsed, str):
            return parsed
        if len(parsed.params) > 1:
            return f"Error: tree: Too many arguments\n{self._usage('tree')}"
        node = self._existing(parsed.params[0] if parsed.params else ".")
        if isinstance(node, list):
            return "\n".join(node)
        if not node.is_directory:
            return f"Error: Cannot access '{node.full_name()}': Not a directory"
        return "\n".join(self._fs.render_tree(node))

    def _cmd_stat(self, args: list[str]) -> str:
        """Show details about one file or directory."""
        if len(args) != 1:
            return self._usage("stat")
        node = self._existing(args[0])
        if isinstance(node, list):
            return "\n".join(node)
        info = node.to_info()
        size_label = "Entries" if node.is_directory else "Size"
        return "\n".join(
            [
                f"  File: {node.path()}",
                f"  Type: {info.kind.description}",
                f"{size_label:>7}: {info.size}",
                f" Inode: {info.inode_number}",
                f"Hidden: {'yes' if info.hidden else 'no'}",
                f"Created: {info.created:%Y-%m-%d %H:%M:%S}",
                f"Modified: {info.modified:%Y-%m-%d %H:%M:%S}",
            ]
        )

    def _cmd_history(self, _args: list[str]) -> str:
        """Show command history."""
        if not self._history:
            return "No history."
        return "\n".join(f"  {i + 1}  {cmd}" for i, cmd in enumerate(self._history))

    def _cmd_env(self, _args: list[str]) -> str:
        """List all environment variables."""
        items = self._env.items()
        return "\n".join(f"{k}={v}" for k, v in items) if items else "No variables set."

    def _cmd_export(self, args: list[str]) -> str:
        """Set an environment variable (KEY=VALUE)."""
        pair = " ".join(args)
        if "=" not in pair:
            return self._usage("export")
        key, value = pair.split("=", 1)
        try:
            self._env.set(key, value)
        except ValueError as e:
            return f"Error: export: {e}"
        return ""

    def _cmd_unset(self, args: list[str]) -> str:
        """Remove environment variables; unknown names are ignored."""
        if not args:
            return self._usage("unset")
        for key in args:
            if key in self._env:
                self._env.delete(key)
        return ""

    def _cmd_log(self, _args: list[str]) -> str:
        """Show recent log entries."""
        lines = self._logger.lines()
        return "\n".join(lines) if lines else "No log entries."

    def _cmd_exit(self, _args: list[str]) -> str:
        """Signal the caller to end the session."""
        return self.EXIT_SENTINEL
