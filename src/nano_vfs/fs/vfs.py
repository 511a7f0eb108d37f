"""In-memory virtual filesystem with path resolution, symlinks, and search.

The engine owns a single tree of ``Node`` objects rooted at ``/`` and
exposes a path-based API on top of it:

- **Path resolution** — ``"../docs/./a.txt"`` relative to
  ``/home/user`` becomes the segments ``["home", "docs", "a.txt"]``.
  Segments are then walked from the root, child by child.

- **Symlink traversal** — when the walk meets a symlink, its target is
  resolved (relative targets against the directory holding the link)
  and any segments not yet walked are appended.  A dereference counter
  bounds the recursion, so cycles end in "not found" instead of a
  stack overflow.

- **Mutations** — create, remove, copy, move, chmod, chown, and content
  updates.  Each one either fully succeeds or leaves the tree unchanged.

Failure is reported through the return value (``False``, ``None``, or
an empty list), never by raising.  The command layer turns those
results into error text.  Permission checks are likewise left to the
caller: ``check_permission`` is available, but no mutation consults it.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from nano_vfs.fs.node import DIRECTORY_SIZE, Node, NodeType
from nano_vfs.fs.seed import INITIAL_FILESYSTEM
from nano_vfs.logging import LogLevel
from nano_vfs.fs.permissions import (
    PermissionOp,
    check_permission,
    mode_to_permissions,
    parse_owner_group,
)

if TYPE_CHECKING:
    from nano_vfs.logging import Logger

MAX_SYMLINK_DEPTH = 10
"""Maximum number of symlink dereferences in a single lookup."""

DEFAULT_OWNER = "user"
"""Owner and group given to new nodes when the caller names none."""

_SIZE_CRITERION = re.compile(r"([+-]?)(\d+)")

_DEFAULT_PERMISSIONS = {
    NodeType.FILE: "-rw-r--r--",
    NodeType.DIRECTORY: "drwxr-xr-x",
}


def resolve_path(path: str, current_dir: str) -> list[str]:
    """Turn a path into canonical root-to-leaf segments.

    Relative paths are joined onto *current_dir* first.  ``.`` and
    empty segments are dropped; ``..`` pops the previous segment, and
    popping past the root stays at the root.

    Examples::

        ("/etc/passwd", "/")       → ["etc", "passwd"]
        ("../guest", "/home/user") → ["home", "guest"]
        ("../../..", "/home")      → []

    """
    absolute = path if path.startswith("/") else f"{current_dir}/{path}"
    resolved: list[str] = []
    for part in absolute.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if resolved:
                resolved.pop()
        else:
            resolved.append(part)
    return resolved


def join_segments(segments: list[str]) -> str:
    """Render segments back into an absolute path string."""
    return "/" + "/".join(segments)


def _size_matcher(criterion: str) -> Callable[[int], bool] | None:
    """Build a predicate for a ``+N`` / ``-N`` / ``N`` size criterion."""
    match = _SIZE_CRITERION.fullmatch(criterion)
    if match is None:
        return None
    sign, digits = match.groups()
    limit = int(digits)
    if sign == "+":
        return lambda size: size > limit
    if sign == "-":
        return lambda size: size < limit
    return lambda size: size == limit


class VirtualFileSystem:
    """A hierarchical, in-memory filesystem with POSIX-like semantics.

    The tree is built from a seed document at construction time (see
    ``nano_vfs.fs.seed``).  Every public operation takes the caller's
    current directory so that relative paths resolve the same way the
    shell sees them.
    """

    def __init__(
        self,
        seed: dict[str, Any] | None = None,
        *,
        logger: Logger | None = None,
    ) -> None:
        """Create a filesystem from *seed* (defaults to the initial tree).

        Args:
            seed: A seed document whose top level is the root directory.
            logger: Optional audit log for mutation results.

        Raises:
            ValueError: If the seed root is not a directory named ``/``.

        """
        root = Node.from_seed(INITIAL_FILESYSTEM if seed is None else seed)
        if not root.is_dir or root.name != "/":
            msg = f"Seed root must be a directory named '/', got {root.name!r}"
            raise ValueError(msg)
        self._root = root
        self._logger = logger

    @property
    def root(self) -> Node:
        """Return the root directory node."""
        return self._root

    # -- Resolution ----------------------------------------------------------

    def resolve(self, path: str, current_dir: str) -> list[str]:
        """Return the canonical segments for *path* (see ``resolve_path``)."""
        return resolve_path(path, current_dir)

    def canonical(self, path: str, current_dir: str) -> str:
        """Return *path* as a canonical absolute path string."""
        return join_segments(resolve_path(path, current_dir))

    def get_node(
        self,
        path: str,
        current_dir: str = "/",
        follow_links: bool = True,  # noqa: FBT001, FBT002
    ) -> Node | None:
        """Look up the node at *path*.

        Args:
            path: Absolute or relative path.
            current_dir: Directory relative paths are resolved against.
            follow_links: When False, a symlink in the final position is
                returned itself rather than dereferenced.  Symlinks in
                intermediate positions are always followed.

        Returns:
            The node, or None if the path does not exist, runs through
            a non-directory, or needs more than ``MAX_SYMLINK_DEPTH``
            dereferences.

        """
        if path == "/":
            return self._root
        return self._walk(resolve_path(path, current_dir), follow_links=follow_links, depth=0)

    def _walk(self, segments: list[str], *, follow_links: bool, depth: int) -> Node | None:
        current = self._root
        for i, part in enumerate(segments):
            if not current.is_dir or current.children is None:
                return None
            child = current.children.get(part)
            if child is None:
                return None

            if child.is_symlink:
                if i == len(segments) - 1 and not follow_links:
                    return child
                depth += 1
                if depth > MAX_SYMLINK_DEPTH:
                    return None
                if not child.target:
                    return None
                # Relative targets resolve from the directory holding the link.
                link_dir = join_segments(segments[:i])
                target = resolve_path(child.target, link_dir) + segments[i + 1 :]
                return self._walk(target, follow_links=follow_links, depth=depth)

            current = child
        return current

    def exists(self, path: str, current_dir: str = "/") -> bool:
        """Return True if *path* resolves to a node."""
        return self.get_node(path, current_dir) is not None

    def list_nodes(self, path: str, current_dir: str = "/") -> list[Node] | None:
        """Return the children of the directory at *path*, in insertion order.

        Returns:
            The child nodes, or None if *path* is missing or not a directory.

        """
        node = self.get_node(path, current_dir)
        if node is None or not node.is_dir or node.children is None:
            return None
        return list(node.children.values())

    def _lookup_parent(self, segments: list[str]) -> tuple[Node, str] | None:
        """Find the directory that should hold the last segment.

        The walk does not follow symlinks: every intermediate segment
        must be a real directory.
        """
        if not segments:
            return None
        *parents, name = segments
        current = self._root
        for part in parents:
            child = current.children.get(part) if current.children is not None else None
            if child is None or not child.is_dir:
                return None
            current = child
        if current.children is None:  # pragma: no cover
            return None
        return current, name

    # -- Permissions ---------------------------------------------------------

    @staticmethod
    def check_permission(node: Node, user: str, group: str, op: PermissionOp | str) -> bool:
        """Return True if *user*/*group* may perform *op* on *node*."""
        return check_permission(node, user, group, op)

    # -- Mutations -----------------------------------------------------------

    def _record(self, message: str, *, ok: bool) -> bool:
        if self._logger is not None:
            level = LogLevel.INFO if ok else LogLevel.WARNING
            text = message if ok else f"{message} failed"
            self._logger.log(level, text, source="vfs")
        return ok

    def create_node(
        self,
        path: str,
        current_dir: str,
        node_type: NodeType,
        content: str = "",
        *,
        owner: str = DEFAULT_OWNER,
        group: str = DEFAULT_OWNER,
    ) -> bool:
        """Create a file or directory at *path*.

        Existing entries are never overwritten.  Symlinks are created
        with ``create_symlink`` instead.

        Args:
            path: Where to create the node.
            current_dir: Directory relative paths are resolved against.
            node_type: ``NodeType.FILE`` or ``NodeType.DIRECTORY``.
            content: Initial content for a file (ignored for directories).
            owner: Owner of the new node.
            group: Group of the new node.

        Returns:
            True on success; False if the parent is missing, the name is
            taken, or *node_type* is not a file or directory.

        """
        segments = resolve_path(path, current_dir)
        message = f"create {node_type.value.lower()} {join_segments(segments)}"
        location = self._lookup_parent(segments)
        if location is None or node_type not in _DEFAULT_PERMISSIONS:
            return self._record(message, ok=False)
        parent, name = location
        assert parent.children is not None  # noqa: S101
        if name in parent.children:
            return self._record(message, ok=False)

        if node_type is NodeType.DIRECTORY:
            node = Node(
                name=name,
                node_type=node_type,
                permissions=_DEFAULT_PERMISSIONS[node_type],
                owner=owner,
                group=group,
                size=DIRECTORY_SIZE,
                children={},
            )
        else:
            node = Node(
                name=name,
                node_type=node_type,
                permissions=_DEFAULT_PERMISSIONS[node_type],
                owner=owner,
                group=group,
                size=len(content),
                content=content,
            )
        parent.children[name] = node
        return self._record(message, ok=True)

    def create_symlink(
        self,
        path: str,
        target: str,
        current_dir: str,
        *,
        owner: str = DEFAULT_OWNER,
        group: str = DEFAULT_OWNER,
    ) -> bool:
        """Create a symbolic link at *path* pointing to *target*.

        The target is stored verbatim and not checked — dangling links
        are allowed.

        Returns:
            True on success; False if the parent is missing or the name
            is taken.

        """
        segments = resolve_path(path, current_dir)
        message = f"symlink {join_segments(segments)} -> {target}"
        location = self._lookup_parent(segments)
        if location is None:
            return self._record(message, ok=False)
        parent, name = location
        assert parent.children is not None  # noqa: S101
        if name in parent.children:
            return self._record(message, ok=False)

        parent.children[name] = Node(
            name=name,
            node_type=NodeType.SYMLINK,
            permissions="lrwxrwxrwx",
            owner=owner,
            group=group,
            size=len(target),
            target=target,
        )
        return self._record(message, ok=True)

    def remove_node(
        self,
        path: str,
        current_dir: str,
        recursive: bool = False,  # noqa: FBT001, FBT002
    ) -> bool:
        """Remove the node at *path* along with its whole subtree.

        A symlink is removed itself; its target is untouched.  The root
        can never be removed.

        Returns:
            True on success; False if the node is missing, is the root,
            or is a non-empty directory and *recursive* is False.

        """
        segments = resolve_path(path, current_dir)
        message = f"remove {join_segments(segments)}"
        location = self._lookup_parent(segments)
        if location is None:
            return self._record(message, ok=False)
        parent, name = location
        assert parent.children is not None  # noqa: S101
        node = parent.children.get(name)
        if node is None:
            return self._record(message, ok=False)
        if node.is_dir and node.children and not recursive:
            return self._record(message, ok=False)

        del parent.children[name]
        return self._record(message, ok=True)

    def copy_node(
        self,
        src: str,
        dest: str,
        current_dir: str,
        recursive: bool = False,  # noqa: FBT001, FBT002
    ) -> bool:
        """Copy the node at *src* to *dest* as an independent deep clone.

        The source is looked up with symlinks followed.  An existing
        entry at *dest* is replaced.

        Returns:
            True on success; False if the source is missing, is a
            directory and *recursive* is False, or the destination's
            parent is missing.

        """
        dest_segments = resolve_path(dest, current_dir)
        message = f"copy {self.canonical(src, current_dir)} -> {join_segments(dest_segments)}"
        source = self.get_node(src, current_dir)
        if source is None or (source.is_dir and not recursive):
            return self._record(message, ok=False)
        location = self._lookup_parent(dest_segments)
        if location is None:
            return self._record(message, ok=False)
        parent, name = location
        assert parent.children is not None  # noqa: S101

        parent.children[name] = source.clone(name)
        return self._record(message, ok=True)

    def move_node(self, src: str, dest: str, current_dir: str) -> bool:
        """Move *src* to *dest*: a recursive copy, then removal of *src*.

        Everything that could make the removal fail is checked before
        the copy, and the removal only runs after a successful copy, so
        a failed move leaves the tree unchanged.  Moving a node onto
        itself, into its own subtree, or onto one of its ancestors
        fails.

        Returns:
            True on success, False otherwise.

        """
        src_segments = resolve_path(src, current_dir)
        dest_segments = resolve_path(dest, current_dir)
        message = f"move {join_segments(src_segments)} -> {join_segments(dest_segments)}"

        shared = min(len(src_segments), len(dest_segments))
        if src_segments[:shared] == dest_segments[:shared]:
            return self._record(message, ok=False)
        location = self._lookup_parent(src_segments)
        if location is None:
            return self._record(message, ok=False)
        parent, name = location
        if parent.children is None or name not in parent.children:
            return self._record(message, ok=False)

        if not self.copy_node(src, dest, current_dir, recursive=True):
            return self._record(message, ok=False)
        return self._record(message, ok=self.remove_node(src, current_dir, recursive=True))

    def chmod(self, path: str, mode: str, current_dir: str) -> bool:
        """Set the permission bits of *path* from a 3-digit octal *mode*.

        Returns:
            True on success; False if the node is missing or *mode* is
            not exactly three octal digits.

        """
        message = f"chmod {mode} {self.canonical(path, current_dir)}"
        node = self.get_node(path, current_dir)
        if node is None:
            return self._record(message, ok=False)
        permissions = mode_to_permissions(mode, node.node_type)
        if permissions is None:
            return self._record(message, ok=False)
        node.permissions = permissions
        return self._record(message, ok=True)

    def chown(self, path: str, owner_group: str, current_dir: str) -> bool:
        """Change the owner and/or group of *path* from ``owner:group``.

        Either half may be empty to leave that field unchanged.

        Returns:
            True on success; False if the node is missing.

        """
        message = f"chown {owner_group} {self.canonical(path, current_dir)}"
        node = self.get_node(path, current_dir)
        if node is None:
            return self._record(message, ok=False)
        owner, group = parse_owner_group(owner_group)
        if owner:
            node.owner = owner
        if group:
            node.group = group
        return self._record(message, ok=True)

    def update_file_content(self, path: str, current_dir: str, content: str) -> bool:
        """Replace the content of the file at *path*.

        Size and modification time are updated along with the content.

        Returns:
            True on success; False if the node is missing or not a file.

        """
        message = f"write {self.canonical(path, current_dir)}"
        node = self.get_node(path, current_dir)
        if node is None or not node.is_file:
            return self._record(message, ok=False)
        node.content = content
        node.size = len(content)
        node.touch()
        return self._record(message, ok=True)

    # -- Search --------------------------------------------------------------

    def find(
        self,
        path: str,
        current_dir: str,
        *,
        name: str | None = None,
        node_type: NodeType | None = None,
        size: str | None = None,
    ) -> list[str]:
        """Search the subtree at *path* for nodes matching every criterion.

        The walk is pre-order and depth-first, following each
        directory's insertion order.  The base node is tested too, and
        non-matching directories are still descended into.

        Args:
            path: Where to start searching.
            current_dir: Directory relative paths are resolved against.
            name: Substring the node name must contain.
            node_type: Exact node type to match.
            size: ``+N`` (larger than N), ``-N`` (smaller than N), or
                ``N`` (exactly N).

        Returns:
            Absolute paths of matching nodes; empty if the base is
            missing or *size* is malformed.

        """
        base = self.get_node(path, current_dir)
        if base is None:
            return []
        size_matches = None
        if size is not None:
            size_matches = _size_matcher(size)
            if size_matches is None:
                return []

        def matches(node: Node) -> bool:
            if name is not None and name not in node.name:
                return False
            if node_type is not None and node.node_type is not node_type:
                return False
            return size_matches is None or size_matches(node.size)

        results: list[str] = []
        # Children go on in reverse so they pop in insertion order (pre-order).
        stack = [(base, self.canonical(path, current_dir))]
        while stack:
            node, node_path = stack.pop()
            if matches(node):
                results.append(node_path)
            prefix = node_path.rstrip("/")
            stack.extend(
                (child, f"{prefix}/{child_name}")
                for child_name, child in reversed((node.children or {}).items())
            )
        return results
