"""The virtual filesystem — tree owner, navigator, and path resolver.

The filesystem owns the node arena and three references into it:

- **root** — the directory at ``/``; owns the whole tree.
- **home** — the user's home directory (``~``), or None.
- **cwd** — the current working directory; never None.

Two ways of walking a path exist side by side:

- ``navigate_to`` moves ``cwd``.  It only ever descends into
  directories, and it commits nothing unless the whole path resolves.
- ``resolve_path`` never moves anything.  It reports *how far* a path
  resolved (found, parent found but target missing, not found, ...),
  which is what commands like ``mkdir``, ``touch`` and ``mv`` need.

Every failure is a recoverable condition: navigation returns a status
object, and mutations raise members of the ``OSError`` family (or
``ValueError`` for bad names) for the shell to report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from nullterm.fs.node import FileKind, Node, NodeTable, parse_name_and_extension
from nullterm.logging import Logger, LogLevel

ROOT_PATH = "/"
HOME_SYMBOL = "~"

MAX_NAME_LENGTH = 255
"""Longest allowed file or directory name — matches Linux's NAME_MAX."""

_TREE_INDENT = 3

_LOG_SOURCE = "fs"


class NameViolation(StrEnum):
    """A rule broken by a proposed file or directory name."""

    EMPTY = "empty"
    CONTAINS_SLASH = "contains slash"
    CONTAINS_NUL = "contains null character"
    TOO_LONG = "exceeds max length"


class InvalidNameError(ValueError):
    """Raised when a node would be created with an invalid name."""

    def __init__(self, name: str, violations: list[NameViolation]) -> None:
        """Record the offending name and every rule it breaks."""
        self.name = name
        self.violations = violations
        reasons = ", ".join(violations)
        super().__init__(f"Invalid name '{name}': {reasons}")


class Resolution(StrEnum):
    """How far ``resolve_path`` got."""

    FOUND = "found"
    NOT_FOUND = "not found"
    PARENT_FOUND_TARGET_MISSING = "parent found, target missing"
    NOT_A_DIRECTORY = "not a directory"
    INVALID_PATH = "invalid path"


@dataclass(frozen=True)
class NavigationResult:
    """Outcome of ``navigate_to``; *info* explains a failure."""

    success: bool
    info: str | None = None


@dataclass
class ResolveResult:
    """Outcome of ``resolve_path``.

    Attributes:
        status: How far resolution got.
        target: The node the path names, if it exists.
        parent: The directory that holds (or would hold) the target, or
            the last directory reached before resolution stopped.
        target_name: The path component resolution stopped at.
        errors: Messages suitable for showing to the user.

    """

    status: Resolution
    target: Node | None
    parent: Node | None
    target_name: str
    errors: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]


def path_not_found(name: str) -> str:
    """Return the user-facing message for a missing path component."""
    return f"Cannot access '{name}': No such file or directory"


def not_a_directory(name: str) -> str:
    """Return the user-facing message for a file used as a directory."""
    return f"Cannot access '{name}': Not a directory"


class FileSystem:
    """An in-memory tree of typed files and directories.

    A fresh filesystem holds only the root directory, which is also the
    initial cwd.  ``nullterm.fs.seed`` builds the populated session tree.
    """

    def __init__(self, *, logger: Logger | None = None) -> None:
        """Create a filesystem with an empty root directory.

        Args:
            logger: Receives warnings about rejected operations.

        """
        self._table = NodeTable()
        self._root = self._table.create(ROOT_PATH, FileKind.DIRECTORY)
        self._table.root_ino = self._root.inode_number
        self._home: Node | None = None
        self._cwd: Node = self._root
        self._logger = logger

    # -- references ------------------------------------------------------------

    @property
    def root(self) -> Node:
        """Return the root directory."""
        return self._root

    @property
    def cwd(self) -> Node:
        """Return the current working directory."""
        return self._cwd

    @property
    def home(self) -> Node | None:
        """Return the home directory, if one is designated."""
        return self._home

    @home.setter
    def home(self, node: Node | None) -> None:
        """Designate *node* as the home directory.

        Raises:
            ValueError: If *node* is not a directory in this tree.

        """
        if node is not None and (not node.is_directory or not self.contains(node)):
            msg = f"Home must be a directory in this filesystem: {node.full_name()}"
            raise ValueError(msg)
        self._home = node

    @property
    def node_count(self) -> int:
        """Return the number of live nodes, root included."""
        return len(self._table)

    def contains(self, node: Node) -> bool:
        """Return True if *node* is live and reachable from the root."""
        return node.inode_number in self._table and node.is_within(self._root)

    # -- names and paths ---------------------------------------------------------

    @staticmethod
    def validate_name(name: str) -> list[NameViolation]:
        """Return every rule *name* breaks; an empty list means valid."""
        violations: list[NameViolation] = []
        if not name:
            violations.append(NameViolation.EMPTY)
        if "/" in name:
            violations.append(NameViolation.CONTAINS_SLASH)
        if "\0" in name:
            violations.append(NameViolation.CONTAINS_NUL)
        if len(name) > MAX_NAME_LENGTH:
            violations.append(NameViolation.TOO_LONG)
        return violations

    def tokenize_path(self, path: str) -> list[str] | None:
        """Split *path* into its non-empty segments.

        Returns:
            The segments in order, or None if any segment is an invalid
            name.

        """
        segments = [s for s in path.split("/") if s]
        for segment in segments:
            violations = self.validate_name(segment)
            if violations:
                self._log(
                    LogLevel.WARNING,
                    f"Invalid path segment in {path!r}: {', '.join(violations)}",
                )
                return None
        return segments

    def abbreviate_home_dir(self, path: str) -> str:
        """Replace a leading home directory path with ``~``.

        ``/home/user/Documents`` becomes ``~/Documents``; ``/home/username``
        is left alone because the match must end at a segment boundary.
        """
        if self._home is None:
            return path
        home_path = self._home.path()
        if path == home_path:
            return HOME_SYMBOL
        if home_path != ROOT_PATH and path.startswith(home_path + "/"):
            return HOME_SYMBOL + path[len(home_path) :]
        return path

    def _expand_home(self, path: str) -> str:
        """Expand a leading ``~`` to the home (or root) path."""
        if path != HOME_SYMBOL and not path.startswith(HOME_SYMBOL + "/"):
            return path
        home_path = (self._home or self._root).path()
        if path == HOME_SYMBOL:
            return home_path
        return home_path.rstrip("/") + path[1:]

    # -- navigation --------------------------------------------------------------

    def navigate_to(self, path: str) -> NavigationResult:
        """Change the cwd to the directory *path* names.

        ``/`` goes to the root and ``""`` (or ``~``) goes home; both always
        succeed.  Otherwise the walk starts at the root for absolute paths
        and at the cwd for relative ones.  ``.`` stays put, ``..`` moves
        up (staying at the root), and any other segment must name a
        directory child.  The cwd changes only if every segment resolves.
        """
        if path == ROOT_PATH:
            self._cwd = self._root
            return NavigationResult(success=True)

        if path in ("", HOME_SYMBOL):
            self._cwd = self._home or self._root
            return NavigationResult(success=True)

        path = self._expand_home(path)
        cursor = self._root if path.startswith("/") else self._cwd
        for segment in (s for s in path.split("/") if s):
            if segment == ".":
                continue
            if segment == "..":
                parent = cursor.parent_node
                if parent is not None:
                    cursor = parent
                continue
            child = cursor.get_child(segment, FileKind.DIRECTORY)
            if child is None:
                info = path_not_found(segment)
                self._log(LogLevel.WARNING, f"cd {path}: {info}")
                return NavigationResult(success=False, info=info)
            cursor = child

        self._cwd = cursor
        return NavigationResult(success=True)

    def resolve_path(
        self,
        path: str,
        *,
        create_intermediate: bool = False,
        must_exist: bool = False,
    ) -> ResolveResult:
        """Resolve *path* without changing the cwd.

        ``.`` and ``..`` are applied to the absolute form of the path
        before walking, so ``..`` above the cwd works and never climbs
        past the root.  The empty path names nothing and is invalid.

        Args:
            path: Absolute, relative, or ``~``-prefixed path.
            create_intermediate: Create missing directories on the way to
                the final component (like ``mkdir -p``).
            must_exist: Report an error message when only the final
                component is missing.

        """
        if not path:
            error = InvalidNameError(path, [NameViolation.EMPTY])
            return ResolveResult(Resolution.INVALID_PATH, None, None, path, [str(error)])

        expanded = self._expand_home(path)
        segments = self.tokenize_path(expanded)
        if segments is None:
            errors = [
                str(InvalidNameError(s, violations))
                for s in expanded.split("/")
                if s and (violations := self.validate_name(s))
            ]
            return ResolveResult(Resolution.INVALID_PATH, None, None, path, errors)

        start = self._root if expanded.startswith("/") else self._cwd
        names = self._names_from_root(start)
        for segment in segments:
            if segment == ".":
                continue
            if segment == "..":
                if names:
                    names.pop()
                continue
            names.append(segment)

        if not names:
            return ResolveResult(Resolution.FOUND, self._root, None, ROOT_PATH)

        cursor = self._root
        for name in names[:-1]:
            child = cursor.get_child(name)
            if child is None:
                if not create_intermediate:
                    return ResolveResult(
                        Resolution.NOT_FOUND, None, cursor, name, [path_not_found(name)]
                    )
                child = self.create_directory(cursor, name)
            elif not child.is_directory:
                return ResolveResult(
                    Resolution.NOT_A_DIRECTORY, child, cursor, name, [not_a_directory(name)]
                )
            cursor = child

        target_name = names[-1]
        target = cursor.get_child(target_name)
        if target is None:
            errors = [path_not_found(target_name)] if must_exist else []
            return ResolveResult(
                Resolution.PARENT_FOUND_TARGET_MISSING, None, cursor, target_name, errors
            )
        return ResolveResult(Resolution.FOUND, target, cursor, target_name)

    def find(self, path: str) -> Node | None:
        """Return the node *path* names, or None."""
        result = self.resolve_path(path)
        return result.target if result.status is Resolution.FOUND else None

    def _names_from_root(self, node: Node) -> list[str]:
        """Return the full names on the way from the root down to *node*."""
        names: list[str] = []
        cursor: Node | None = node
        while cursor is not None and cursor is not self._root:
            names.append(cursor.full_name())
            cursor = cursor.parent_node
        names.reverse()
        return names

    # -- creation ----------------------------------------------------------------

    @staticmethod
    def split_file_name(full_name: str, default: FileKind = FileKind.TEXT) -> tuple[str, FileKind]:
        """Split a file name into (name, kind).

        A name without an extension gets *default*.

        Raises:
            ValueError: If the extension is not a supported file type.

        """
        name, extension = parse_name_and_extension(full_name)
        if extension is None:
            return (name, default)
        if extension == FileKind.DIRECTORY.value or extension not in {kind.value for kind in FileKind}:
            msg = f"Unsupported file type: .{extension}"
            raise ValueError(msg)
        return (name, FileKind(extension))

    def create_directory(self, parent: Node, name: str) -> Node:
        """Create and attach a new empty directory under *parent*.

        Raises:
            InvalidNameError: If *name* is not a valid name.
            NotADirectoryError: If *parent* is a file.
            FileExistsError: If *parent* already has an entry called *name*.

        """
        self._check_name(name)
        node = self._table.create(name, FileKind.DIRECTORY)
        self._attach(parent, node)
        return node

    def create_file(self, parent: Node, full_name: str, content: str = "") -> Node:
        """Create and attach a new file under *parent*.

        The extension of *full_name* selects the file kind; without one
        the file is a text file (``notes`` becomes ``notes.txt``).

        Raises:
            InvalidNameError: If *full_name* is not a valid name.
            ValueError: If the extension is not a supported file type.
            NotADirectoryError: If *parent* is a file.
            FileExistsError: If *parent* already has that entry.

        """
        self._check_name(full_name)
        name, kind = self.split_file_name(full_name)
        node = self._table.create(name, kind, content)
        self._attach(parent, node)
        return node

    def _attach(self, parent: Node, node: Node) -> None:
        """Add a freshly created node, freeing it again if that fails."""
        try:
            parent.add_child(node)
        except (OSError, ValueError):
            self._table.discard(node.inode_number)
            raise

    def _check_name(self, name: str) -> None:
        violations = self.validate_name(name)
        if violations:
            error = InvalidNameError(name, violations)
            self._log(LogLevel.WARNING, str(error))
            raise error

    # -- mutation ----------------------------------------------------------------

    def delete_node(self, node: Node, *, recursive: bool = False) -> None:
        """Delete *node*, and with *recursive* everything beneath it.

        Descendants are deleted depth-first before *node* is detached from
        its parent.  All checks run before anything is removed, so a
        refused deletion leaves the tree untouched.

        Raises:
            OSError: If *node* is the root, holds the cwd or home, or is a
                non-empty directory and *recursive* is False.
            FileNotFoundError: If *node* was already deleted.

        """
        if node is self._root:
            msg = "Cannot delete root directory"
            raise OSError(msg)
        if node.inode_number not in self._table:
            msg = f"Node already deleted: {node.full_name()}"
            raise FileNotFoundError(msg)
        if self._cwd.is_within(node):
            msg = f"Cannot remove '{node.full_name()}': contains the current directory"
            raise OSError(msg)
        if self._home is not None and self._home.is_within(node):
            msg = f"Cannot remove '{node.full_name()}': Preserved directory"
            raise OSError(msg)
        if node.children and not recursive:
            msg = f"Cannot remove directory '{node.full_name()}': Directory not empty"
            raise OSError(msg)

        path = node.path()
        self._delete_subtree(node)
        self._log(LogLevel.INFO, f"Deleted {path}")

    def _delete_subtree(self, node: Node) -> None:
        for child in node.children_nodes():
            self._delete_subtree(child)
        parent = node.parent_node
        if parent is not None:
            parent.remove_child(node.full_name())
        self._table.discard(node.inode_number)

    def _identity_for(self, node: Node, new_name: str | None) -> tuple[str, FileKind]:
        """Return the (name, kind) *node* would have under *new_name*.

        Files keep their kind unless the new name carries an extension.
        """
        if new_name is None:
            return (node.name, node.kind)
        self._check_name(new_name)
        if node.is_directory:
            return (new_name, FileKind.DIRECTORY)
        return self.split_file_name(new_name, default=node.kind)

    def copy_node(
        self,
        node: Node,
        destination: Node,
        *,
        new_name: str | None = None,
        recursive: bool = False,
    ) -> Node:
        """Copy *node* into the directory *destination* and return the copy.

        Directories are copied empty unless *recursive* is set.  The copy
        is built completely before it is attached, so copying a directory
        into one of its own descendants terminates.  Copies get fresh
        timestamps.

        Raises:
            NotADirectoryError: If *destination* is a file.
            FileExistsError: If *destination* already has that entry.
            InvalidNameError: If *new_name* is not a valid name.
            ValueError: If *new_name* has an unsupported extension.

        """
        if not destination.is_directory:
            msg = not_a_directory(destination.full_name())
            raise NotADirectoryError(msg)
        name, kind = self._identity_for(node, new_name)
        key = name if kind is FileKind.DIRECTORY else f"{name}.{kind}"
        if destination.has_child(key):
            msg = f"Cannot create '{key}': File or directory already exists"
            raise FileExistsError(msg)

        copy = self._duplicate(node, name, kind, recursive=recursive)
        try:
            destination.add_child(copy)
        except (OSError, ValueError):
            self._delete_subtree(copy)
            raise
        return copy

    def _duplicate(self, node: Node, name: str, kind: FileKind, *, recursive: bool) -> Node:
        copy = self._table.create(name, kind, node.content or "")
        if recursive:
            for child in node.children_nodes():
                copy.add_child(self._duplicate(child, child.name, child.kind, recursive=True))
        return copy

    def move_node(self, node: Node, destination: Node, *, new_name: str | None = None) -> None:
        """Move *node* into the directory *destination*, optionally renamed.

        Moving a node onto its own name in its own directory does nothing.

        Raises:
            OSError: If *node* is the root or *destination* lies inside it.
            NotADirectoryError: If *destination* is a file.
            FileExistsError: If *destination* already has that entry.
            InvalidNameError: If *new_name* is not a valid name.

        """
        if node is self._root:
            msg = "Cannot move root directory"
            raise OSError(msg)
        if not destination.is_directory:
            msg = not_a_directory(destination.full_name())
            raise NotADirectoryError(msg)
        if destination.is_within(node):
            msg = f"Cannot move '{node.full_name()}' into itself"
            raise OSError(msg)

        name, kind = self._identity_for(node, new_name)
        key = name if kind is FileKind.DIRECTORY else f"{name}.{kind}"
        if node.parent_node is destination and key == node.full_name():
            return
        if destination.has_child(key):
            msg = f"Cannot create '{key}': File or directory already exists"
            raise FileExistsError(msg)

        source_path = node.path()
        old_parent = node.parent_node
        old_name, old_kind = node.name, node.kind
        if old_parent is not None:
            old_parent.remove_child(node.full_name())
        node.rename(name)
        node.kind = kind
        try:
            destination.add_child(node)
        except (OSError, ValueError):
            node.name, node.kind = old_name, old_kind
            if old_parent is not None:
                old_parent.add_child(node)
            raise
        self._log(LogLevel.INFO, f"Moved {source_path} to {node.path()}")

    # -- rendering ---------------------------------------------------------------

    def stringify_tree(self) -> str:
        """Render the whole tree, one node per line, indented by depth."""
        lines: list[str] = []

        def visit(node: Node, depth: int) -> None:
            lines.append(" " * (_TREE_INDENT * depth) + node.full_name())
            for child in node.children_nodes():
                visit(child, depth + 1)

        visit(self._root, 0)
        return "\n".join(lines)

    def render_tree(self, start: Node | None = None) -> list[str]:
        """Render the subtree at *start* (default: cwd) like ``tree``.

        The start node is printed bare; descendants get box-drawing
        connectors.  A summary line closes the listing.
        """
        start = start or self._cwd
        lines = [start.full_name()]
        counts = {"dirs": 0, "files": 0}

        def visit(node: Node, prefix: str) -> None:
            children = node.children_nodes()
            for i, child in enumerate(children):
                last = i == len(children) - 1
                lines.append(prefix + ("└── " if last else "├── ") + child.full_name())
                if child.is_directory:
                    counts["dirs"] += 1
                    visit(child, prefix + ("    " if last else "│   "))
                else:
                    counts["files"] += 1

        visit(start, "")
        lines.append("")
        lines.append(f"{counts['dirs']} directories, {counts['files']} files")
        return lines

    def _log(self, level: LogLevel, message: str) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source=_LOG_SOURCE)
