"""Virtual filesystem — nodes, the tree that owns them, and the session seed.

Re-exports public symbols so callers can write::

    from nullterm.fs import FileSystem, build_default_filesystem
"""

from nullterm.fs.filesystem import (
    HOME_SYMBOL,
    MAX_NAME_LENGTH,
    ROOT_PATH,
    FileSystem,
    InvalidNameError,
    NameViolation,
    NavigationResult,
    Resolution,
    ResolveResult,
)
from nullterm.fs.node import FileKind, Node, NodeInfo, NodeTable, parse_name_and_extension
from nullterm.fs.seed import HOME_PATH, build_default_filesystem

__all__ = [
    "HOME_PATH",
    "HOME_SYMBOL",
    "MAX_NAME_LENGTH",
    "ROOT_PATH",
    "FileKind",
    "FileSystem",
    "InvalidNameError",
    "NameViolation",
    "NavigationResult",
    "Node",
    "NodeInfo",
    "NodeTable",
    "Resolution",
    "ResolveResult",
    "build_default_filesystem",
    "parse_name_and_extension",
]
