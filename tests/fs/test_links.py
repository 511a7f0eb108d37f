"""Tests for symbolic links — creation, traversal, and the depth guard.

A symlink stores a path string, not a reference.  Its target is only
looked at when a lookup walks through it, so links may dangle, point
at each other, or form chains.  The engine bounds dereferencing at
``MAX_SYMLINK_DEPTH`` so cycles end in "not found".
"""

from nano_vfs.fs.node import NodeType
from nano_vfs.fs.vfs import MAX_SYMLINK_DEPTH, VirtualFileSystem

HOME = "/home/user"


def _with_target() -> VirtualFileSystem:
    """Create a filesystem with a small target file at ``/target.txt``."""
    vfs = VirtualFileSystem()
    vfs.create_node("/target.txt", "/", NodeType.FILE, "payload")
    return vfs


def _chain(vfs: VirtualFileSystem, length: int) -> str:
    """Build ``/l1 -> /l2 -> ... -> /l<length> -> /target.txt`` and return ``/l1``."""
    for i in range(1, length + 1):
        target = f"/l{i + 1}" if i < length else "/target.txt"
        assert vfs.create_symlink(f"/l{i}", target, "/")
    return "/l1"


class TestCreateSymlink:
    """Verify symlink nodes and their metadata."""

    def test_metadata(self) -> None:
        """Links get lrwxrwxrwx and a size equal to the target length."""
        vfs = _with_target()
        assert vfs.create_symlink("/link", "/target.txt", "/")
        link = vfs.get_node("/link", "/", follow_links=False)
        assert link is not None
        assert link.node_type is NodeType.SYMLINK
        assert link.permissions == "lrwxrwxrwx"
        assert link.target == "/target.txt"
        assert link.size == len("/target.txt")
        assert link.children is None
        assert link.content is None

    def test_dangling_link_is_allowed(self) -> None:
        """The target does not need to exist."""
        vfs = VirtualFileSystem()
        assert vfs.create_symlink("/dangling", "/nowhere", "/")
        assert vfs.get_node("/dangling") is None
        assert vfs.get_node("/dangling", "/", follow_links=False) is not None

    def test_name_collision_fails(self) -> None:
        """An existing entry is not replaced by a link."""
        vfs = VirtualFileSystem()
        assert not vfs.create_symlink("README.md", "/etc/motd", HOME)
        node = vfs.get_node("README.md", HOME, follow_links=False)
        assert node is not None
        assert node.node_type is NodeType.FILE

    def test_missing_parent_fails(self) -> None:
        """The parent directory must exist."""
        vfs = VirtualFileSystem()
        assert not vfs.create_symlink("/no/such/link", "/etc", "/")

    def test_owner_defaults_and_override(self) -> None:
        """Links belong to ``user`` unless an owner is given."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/a", "/etc", "/")
        vfs.create_symlink("/b", "/etc", "/", owner="root", group="root")
        a = vfs.get_node("/a", "/", follow_links=False)
        b = vfs.get_node("/b", "/", follow_links=False)
        assert a is not None
        assert b is not None
        assert a.owner == "user"
        assert b.owner == "root"


class TestTraversal:
    """Verify lookups through links."""

    def test_empty_target_is_dangling(self) -> None:
        """A link with an empty target resolves to nothing."""
        vfs = VirtualFileSystem()
        assert vfs.create_symlink(f"{HOME}/void", "", "/")
        assert vfs.get_node(f"{HOME}/void") is None
        assert vfs.get_node(f"{HOME}/void/README.md") is None
        link = vfs.get_node(f"{HOME}/void", follow_links=False)
        assert link is not None
        assert link.target == ""

    def test_final_link_is_followed(self) -> None:
        """A link in the final position resolves to its target."""
        vfs = _with_target()
        vfs.create_symlink("/link", "/target.txt", "/")
        node = vfs.get_node("/link")
        assert node is not None
        assert node.content == "payload"

    def test_intermediate_link_is_followed(self) -> None:
        """Remaining segments are appended to the link's target."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/h", HOME, "/")
        node = vfs.get_node("/h/README.md")
        assert node is not None
        assert node.name == "README.md"

    def test_relative_target_uses_link_directory(self) -> None:
        """Relative targets resolve from the link's directory, not the caller's."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("readme-link", "README.md", HOME)
        node = vfs.get_node("home/user/readme-link", "/")
        assert node is not None
        assert node.name == "README.md"

    def test_relative_target_with_dotdot(self) -> None:
        """``..`` in a target climbs from the link's directory."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/home/guest/up", "../user", "/")
        node = vfs.get_node("/home/guest/up/README.md")
        assert node is not None
        assert node.owner == "user"

    def test_no_follow_returns_final_link(self) -> None:
        """With follow_links=False the final link is returned itself."""
        vfs = _with_target()
        vfs.create_symlink("/link", "/target.txt", "/")
        node = vfs.get_node("/link", "/", follow_links=False)
        assert node is not None
        assert node.node_type is NodeType.SYMLINK

    def test_no_follow_still_follows_intermediate_links(self) -> None:
        """Only the final segment is exempt from dereferencing."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/h", HOME, "/")
        node = vfs.get_node("/h/README.md", "/", follow_links=False)
        assert node is not None
        assert node.node_type is NodeType.FILE

    def test_list_through_link(self) -> None:
        """Listing a link to a directory lists the directory."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/h", HOME, "/")
        nodes = vfs.list_nodes("/h")
        assert nodes is not None
        assert [n.name for n in nodes] == ["README.md"]


class TestDepthGuard:
    """Verify cycles and long chains end in not-found."""

    def test_max_depth_is_ten(self) -> None:
        """Ten dereferences are allowed per lookup."""
        expected_depth = 10
        assert expected_depth == MAX_SYMLINK_DEPTH

    def test_chain_of_nine_resolves(self) -> None:
        """A chain shorter than the limit reaches the target."""
        vfs = _with_target()
        node = vfs.get_node(_chain(vfs, 9))
        assert node is not None
        assert node.content == "payload"

    def test_chain_at_the_limit_resolves(self) -> None:
        """Exactly MAX_SYMLINK_DEPTH dereferences still succeed."""
        vfs = _with_target()
        assert vfs.get_node(_chain(vfs, MAX_SYMLINK_DEPTH)) is not None

    def test_chain_of_eleven_is_not_found(self) -> None:
        """One dereference past the limit fails, even without a cycle."""
        vfs = _with_target()
        assert vfs.get_node(_chain(vfs, 11)) is None

    def test_self_loop_is_not_found(self) -> None:
        """A link pointing at itself terminates."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/loop", "/loop", "/")
        assert vfs.get_node("/loop") is None

    def test_two_link_cycle_is_not_found(self) -> None:
        """Mutually referencing links terminate."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/a", "b", "/")
        vfs.create_symlink("/b", "a", "/")
        assert vfs.get_node("/a/child") is None


class TestMutationsAndLinks:
    """Verify how mutations treat links."""

    def test_remove_removes_link_not_target(self) -> None:
        """Removing a link leaves its target alone."""
        vfs = _with_target()
        vfs.create_symlink("/link", "/target.txt", "/")
        assert vfs.remove_node("/link", "/")
        assert vfs.get_node("/link", "/", follow_links=False) is None
        assert vfs.get_node("/target.txt") is not None

    def test_copy_of_link_copies_target(self) -> None:
        """The source is dereferenced before cloning."""
        vfs = _with_target()
        vfs.create_symlink("/link", "/target.txt", "/")
        assert vfs.copy_node("/link", "/copy.txt", "/")
        copy = vfs.get_node("/copy.txt", "/", follow_links=False)
        assert copy is not None
        assert copy.node_type is NodeType.FILE
        assert copy.content == "payload"

    def test_chmod_through_link_changes_target(self) -> None:
        """chmod follows the link."""
        vfs = _with_target()
        vfs.create_symlink("/link", "/target.txt", "/")
        vfs.chmod("/link", "600", "/")
        assert vfs.get_node("/target.txt").permissions == "-rw-------"  # type: ignore[union-attr]
        link = vfs.get_node("/link", "/", follow_links=False)
        assert link is not None
        assert link.permissions == "lrwxrwxrwx"

    def test_write_through_link(self) -> None:
        """Content updates follow the link to the file."""
        vfs = _with_target()
        vfs.create_symlink("/link", "/target.txt", "/")
        assert vfs.update_file_content("/link", "/", "new")
        assert vfs.get_node("/target.txt").content == "new"  # type: ignore[union-attr]

    def test_create_under_linked_directory_fails(self) -> None:
        """The parent walk for mutations only accepts real directories."""
        vfs = VirtualFileSystem()
        vfs.create_symlink("/h", HOME, "/")
        assert not vfs.create_node("/h/new.txt", "/", NodeType.FILE)
