"""Filesystem nodes and the arena that owns them.

Every file and directory is a ``Node``.  Nodes never hold references to
each other directly:

- **NodeTable** is an arena mapping stable inode numbers to nodes.
- A directory's ``children`` is a ``dict[str, int]`` mapping a child's
  *full name* (``name`` or ``name.ext``) to its inode number.  This map
  is the owning edge of the tree.
- ``parent`` is a plain inode number, a non-owning back-reference.

Keeping the tree as ids in an arena means a detached subtree is still
addressable (for ``mv``) until the filesystem explicitly frees it, and
there is no ambiguity about who owns whom.

Files are typed: the extension is not part of ``name`` but comes from
the node's ``FileKind``, so ``notes.txt`` is the node ``notes`` of kind
``TEXT``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from itertools import count


class FileKind(StrEnum):
    """The fixed set of node kinds — ``dir`` or a supported file extension."""

    DIRECTORY = "dir"
    TEXT = "txt"
    JPEG = "jpg"
    PNG = "png"
    MARKDOWN = "md"
    JSON = "json"
    EXECUTABLE = "exe"
    URL = "url"
    POWERPOINT = "pptx"
    CONFIG = "conf"
    LOG = "log"
    TEMPORARY = "tmp"

    @property
    def description(self) -> str:
        """Return a human-readable description of this kind."""
        return _KIND_DESCRIPTIONS[self]


_KIND_DESCRIPTIONS: dict[FileKind, str] = {
    FileKind.DIRECTORY: "Directory",
    FileKind.TEXT: "Text File",
    FileKind.JPEG: "JPEG Image File",
    FileKind.PNG: "PNG Image File",
    FileKind.MARKDOWN: "Markdown File",
    FileKind.JSON: "JSON File",
    FileKind.EXECUTABLE: "Executable File",
    FileKind.URL: "URL File",
    FileKind.POWERPOINT: "PowerPoint Presentation",
    FileKind.CONFIG: "Configuration File",
    FileKind.LOG: "Log File",
    FileKind.TEMPORARY: "Temporary File",
}

# Optional leading dot, a base with no dots, then an optional extension.
_NAME_PATTERN = re.compile(r"^(\.)?([^.]+)(?:\.(.+))?$")


def parse_name_and_extension(full_name: str) -> tuple[str, str | None]:
    """Split a full file name into (name, extension).

    A leading dot belongs to the name (hidden files); everything after
    the first remaining dot is the extension.  Names the pattern cannot
    split are returned whole with no extension.

    Examples::

        "notes.txt"      → ("notes", "txt")
        ".bashrc"        → (".bashrc", None)
        "archive.tar.gz" → ("archive", "tar.gz")

    """
    match = _NAME_PATTERN.match(full_name)
    if match is None:
        return (full_name, None)
    dot, base, extension = match.groups()
    return ((dot or "") + base, extension)


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class NodeMetadata:
    """Timestamps and size of a node."""

    created: datetime
    modified: datetime
    size: int = 0


@dataclass(frozen=True)
class NodeInfo:
    """Read-only snapshot of a node's metadata (returned by stat)."""

    inode_number: int
    full_name: str
    kind: FileKind
    size: int
    created: datetime
    modified: datetime
    hidden: bool


class Node:
    """A single filesystem entry — a directory or a typed file.

    Nodes are created by a ``NodeTable`` and start out detached.  They
    join the tree through ``add_child`` on a directory of the same table.
    """

    def __init__(
        self,
        table: NodeTable,
        inode_number: int,
        name: str,
        kind: FileKind,
        content: str = "",
    ) -> None:
        """Create a detached node.  Use ``NodeTable.create`` instead.

        Raises:
            ValueError: If *name* is empty.

        """
        if not name:
            msg = "Node name must not be empty"
            raise ValueError(msg)
        now = _now()
        self._table = table
        self.inode_number = inode_number
        self.name = name
        self.kind = kind
        self.parent: int | None = None
        self.children: dict[str, int] | None = {} if kind is FileKind.DIRECTORY else None
        self.content: str | None = None if kind is FileKind.DIRECTORY else content
        self.metadata = NodeMetadata(created=now, modified=now, size=len(content))

    def __repr__(self) -> str:
        """Show the inode number and full name."""
        return f"Node({self.inode_number}, {self.full_name()!r})"

    # -- identity ------------------------------------------------------------

    @property
    def is_directory(self) -> bool:
        """Return True if this node is a directory."""
        return self.kind is FileKind.DIRECTORY

    @property
    def is_hidden(self) -> bool:
        """Return True if the name starts with a dot."""
        return self.name.startswith(".")

    @property
    def parent_node(self) -> Node | None:
        """Return the parent directory, or None if detached or root."""
        if self.parent is None:
            return None
        return self._table[self.parent]

    def full_name(self) -> str:
        """Return the key this node is stored under in its parent."""
        if self.is_directory:
            return self.name
        return f"{self.name}.{self.kind}"

    def path(self) -> str:
        """Return the absolute path from the root to this node.

        The root is ``/``.  A detached node reports the path of its own
        detached subtree, rooted at its topmost ancestor.
        """
        parts: list[str] = []
        node: Node | None = self
        while node is not None:
            if node.inode_number != self._table.root_ino:
                parts.append(node.full_name())
            node = node.parent_node
        return "/" + "/".join(reversed(parts))

    def is_within(self, other: Node) -> bool:
        """Return True if this node is *other* or one of its descendants."""
        node: Node | None = self
        while node is not None:
            if node is other:
                return True
            node = node.parent_node
        return False

    def rename(self, name: str) -> None:
        """Change the node's name (without extension).

        Only detached nodes may be renamed; the parent's map is keyed by
        full name and is never rewritten behind its back.

        Raises:
            ValueError: If the node is attached or *name* is empty.

        """
        if self.parent is not None:
            msg = f"Cannot rename attached node: {self.full_name()}"
            raise ValueError(msg)
        if not name:
            msg = "Node name must not be empty"
            raise ValueError(msg)
        self.name = name
        self.touch()

    # -- children ------------------------------------------------------------

    def has_child(self, full_name: str, kind: FileKind | None = None) -> bool:
        """Return True if this directory has a matching child."""
        return self.get_child(full_name, kind) is not None

    def get_child(self, full_name: str, kind: FileKind | None = None) -> Node | None:
        """Return the child stored under *full_name*, or None.

        Files have no children.  If *kind* is given the child must be of
        exactly that kind.
        """
        if self.children is None:
            return None
        ino = self.children.get(full_name)
        if ino is None:
            return None
        child = self._table[ino]
        if kind is not None and child.kind is not kind:
            return None
        return child

    def children_nodes(self) -> list[Node]:
        """Return the child nodes sorted by full name (empty for files)."""
        if self.children is None:
            return []
        return [self._table[ino] for _name, ino in sorted(self.children.items())]

    def add_child(self, child: Node) -> None:
        """Attach *child* under this directory.

        Raises:
            NotADirectoryError: If this node is a file.
            FileExistsError: If a sibling with the same full name exists.
            ValueError: If *child* is already attached, belongs to another
                table, or is this node or one of its ancestors.

        """
        if self.children is None:
            msg = f"Cannot add child to '{self.full_name()}': not a directory"
            raise NotADirectoryError(msg)
        if child._table is not self._table:
            msg = f"Node '{child.full_name()}' belongs to a different filesystem"
            raise ValueError(msg)
        if child.parent is not None:
            msg = f"Node '{child.full_name()}' is already attached"
            raise ValueError(msg)
        if self.is_within(child):
            msg = f"Cannot add '{child.full_name()}' beneath itself"
            raise ValueError(msg)
        key = child.full_name()
        if key in self.children:
            msg = f"Directory '{self.full_name()}' already contains '{key}'"
            raise FileExistsError(msg)
        child.parent = self.inode_number
        self.children[key] = child.inode_number
        self.touch()

    def remove_child(self, full_name: str) -> Node:
        """Detach and return the child stored under *full_name*.

        The child's parent reference is cleared; the node stays in the
        table until the filesystem frees it.

        Raises:
            NotADirectoryError: If this node is a file.
            FileNotFoundError: If there is no such child.

        """
        if self.children is None:
            msg = f"Cannot remove child from '{self.full_name()}': not a directory"
            raise NotADirectoryError(msg)
        ino = self.children.pop(full_name, None)
        if ino is None:
            msg = f"No such entry in '{self.full_name()}': {full_name}"
            raise FileNotFoundError(msg)
        child = self._table[ino]
        child.parent = None
        self.touch()
        return child

    # -- content -------------------------------------------------------------

    def read(self) -> str:
        """Return the file's text content.

        Raises:
            IsADirectoryError: If this node is a directory.

        """
        if self.content is None:
            msg = f"Cannot read '{self.full_name()}': is a directory"
            raise IsADirectoryError(msg)
        return self.content

    def write(self, content: str) -> None:
        """Replace the file's content and update its size.

        Raises:
            IsADirectoryError: If this node is a directory.

        """
        if self.is_directory:
            msg = f"Cannot write '{self.full_name()}': is a directory"
            raise IsADirectoryError(msg)
        self.content = content
        self.metadata.size = len(content)
        self.touch()

    def touch(self) -> None:
        """Set the modified timestamp to now."""
        self.metadata.modified = _now()

    def to_info(self) -> NodeInfo:
        """Create a read-only snapshot of this node's metadata."""
        size = len(self.children) if self.children is not None else self.metadata.size
        return NodeInfo(
            inode_number=self.inode_number,
            full_name=self.full_name(),
            kind=self.kind,
            size=size,
            created=self.metadata.created,
            modified=self.metadata.modified,
            hidden=self.is_hidden,
        )


class NodeTable:
    """Arena of nodes addressed by inode number.

    One table backs one filesystem.  Inode numbers are never reused
    within a table.
    """

    def __init__(self) -> None:
        """Create an empty table."""
        self._nodes: dict[int, Node] = {}
        self._counter = count(start=0)
        self.root_ino: int | None = None

    def create(self, name: str, kind: FileKind, content: str = "") -> Node:
        """Allocate a new detached node."""
        node = Node(self, next(self._counter), name, kind, content)
        self._nodes[node.inode_number] = node
        return node

    def discard(self, inode_number: int) -> None:
        """Free a node's slot.  Unknown numbers are ignored."""
        self._nodes.pop(inode_number, None)

    def __getitem__(self, inode_number: int) -> Node:
        """Return the node with the given inode number."""
        return self._nodes[inode_number]

    def __contains__(self, inode_number: object) -> bool:
        """Return True if the inode number is live."""
        return inode_number in self._nodes

    def __len__(self) -> int:
        """Return the number of live nodes."""
        return len(self._nodes)
