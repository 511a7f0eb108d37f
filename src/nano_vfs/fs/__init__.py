"""File system subsystem — nodes, permissions, the seed tree, and the VFS engine.

Re-exports public symbols so callers can write::

    from nano_vfs.fs import NodeType, VirtualFileSystem
"""

from nano_vfs.fs.node import DIRECTORY_SIZE, Node, NodeType
from nano_vfs.fs.permissions import ROOT_USER, PermissionOp, check_permission
from nano_vfs.fs.seed import INITIAL_FILESYSTEM
from nano_vfs.fs.vfs import (
    DEFAULT_OWNER,
    MAX_SYMLINK_DEPTH,
    VirtualFileSystem,
    join_segments,
    resolve_path,
)

__all__ = [
    "DEFAULT_OWNER",
    "DIRECTORY_SIZE",
    "INITIAL_FILESYSTEM",
    "MAX_SYMLINK_DEPTH",
    "ROOT_USER",
    "Node",
    "NodeType",
    "PermissionOp",
    "VirtualFileSystem",
    "check_permission",
    "join_segments",
    "resolve_path",
]
