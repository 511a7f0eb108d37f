"""Filesystem nodes — the atomic unit of the tree.

A node is one entry in the filesystem: a file, a directory, or a
symbolic link.  Unlike an inode-based design, the node carries its own
name and its full metadata record:

- **FILE** — holds text ``content``.
- **DIRECTORY** — holds ``children``, an insertion-ordered mapping from
  child name to child node.  Each directory exclusively owns its
  children; there are no parent back-references.
- **SYMLINK** — holds a ``target`` path string.  The target is never
  validated on creation; dangling links are legal.

The static *seed* document that initialises a filesystem uses a plain
dict shape (``name``, ``type``, ``content``, ``target``, ``children``,
``permissions``, ``owner``, ``group``, ``lastModified``, ``size``).
``Node.from_seed`` builds a live tree from that shape.  It and
``Node.clone`` build fresh objects at every level, so a live tree never
aliases its seed or another tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class NodeType(StrEnum):
    """The kind of object a node represents."""

    FILE = "FILE"
    DIRECTORY = "DIRECTORY"
    SYMLINK = "SYMLINK"


DIRECTORY_SIZE = 4096
"""Nominal size reported for every directory."""

_TYPE_FLAGS = {
    NodeType.FILE: "-",
    NodeType.DIRECTORY: "d",
    NodeType.SYMLINK: "l",
}


def type_flag(node_type: NodeType) -> str:
    """Return the leading permission-string character for a node type."""
    return _TYPE_FLAGS[node_type]


def now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


@dataclass
class Node:
    """A single file, directory, or symlink in the tree.

    Only the field matching ``node_type`` is populated: ``content`` for
    files, ``children`` for directories, ``target`` for symlinks.
    """

    name: str
    node_type: NodeType
    permissions: str
    owner: str
    group: str
    size: int = 0
    last_modified: datetime = field(default_factory=now)
    content: str | None = None
    target: str | None = None
    children: dict[str, Node] | None = None

    @property
    def is_dir(self) -> bool:
        """Return True if this node is a directory."""
        return self.node_type is NodeType.DIRECTORY

    @property
    def is_file(self) -> bool:
        """Return True if this node is a regular file."""
        return self.node_type is NodeType.FILE

    @property
    def is_symlink(self) -> bool:
        """Return True if this node is a symbolic link."""
        return self.node_type is NodeType.SYMLINK

    def clone(self, name: str | None = None) -> Node:
        """Return a deep, fully independent copy of this node.

        The subtree is copied level by level with an explicit stack, so
        the copy shares no mutable structure with the original and tree
        depth is not limited by the interpreter's recursion limit.

        Args:
            name: Optional new name for the top-level copy.

        """
        root = replace(self, name=self.name if name is None else name, children=None)
        stack = [(self, root)]
        while stack:
            source, copy = stack.pop()
            if source.children is None:
                continue
            copy.children = {}
            for key, child in source.children.items():
                copy.children[key] = replace(child, children=None)
                stack.append((child, copy.children[key]))
        return root

    def touch(self) -> None:
        """Refresh the last-modified timestamp."""
        self.last_modified = now()

    @classmethod
    def from_seed(cls, data: dict[str, Any]) -> Node:
        """Build a fresh node tree from a seed dict.

        Raises:
            ValueError: If an entry has an unknown ``type``.

        """
        root = cls._from_entry(data)
        stack = [(data, root)]
        while stack:
            entry, node = stack.pop()
            if node.children is None:
                continue
            for key, child in entry.get("children", {}).items():
                node.children[key] = cls._from_entry(child)
                stack.append((child, node.children[key]))
        return root

    @classmethod
    def _from_entry(cls, data: dict[str, Any]) -> Node:
        """Build one node from a seed entry, with empty children if a directory."""
        try:
            node_type = NodeType(data["type"])
        except ValueError:
            msg = f"Unknown node type in seed: {data['type']!r}"
            raise ValueError(msg) from None

        modified = data.get("lastModified")
        return cls(
            name=data["name"],
            node_type=node_type,
            permissions=data["permissions"],
            owner=data["owner"],
            group=data["group"],
            size=data.get("size", 0),
            last_modified=datetime.fromisoformat(modified) if modified else now(),
            content=data.get("content", "") if node_type is NodeType.FILE else None,
            target=data.get("target", "") if node_type is NodeType.SYMLINK else None,
            children={} if node_type is NodeType.DIRECTORY else None,
        )
