"""Permissions — the owner/group/other access model.

Every node carries a 10-character permission string such as
``drwxr-xr-x``: a type flag followed by three **triplets** for the
owner, the group, and everyone else.

Checking access works like Unix:

1. ``root`` bypasses every check.
2. If the caller owns the node, the owner triplet applies.
3. Otherwise, if the caller's group matches, the group triplet applies.
4. Otherwise the "other" triplet applies.

Only the *selected* triplet is consulted — an owner locked out by their
own triplet is not rescued by a more generous "other" triplet.

The filesystem engine never enforces these checks on its own
mutations.  Commands call ``check_permission`` at the point of use.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING

from nano_vfs.fs.node import NodeType, type_flag

if TYPE_CHECKING:
    from nano_vfs.fs.node import Node

ROOT_USER = "root"

_OCTAL_MODE = re.compile(r"^[0-7]{3}$")

_OWNER = slice(1, 4)
_GROUP = slice(4, 7)
_OTHER = slice(7, 10)


class PermissionOp(StrEnum):
    """An access operation, named by its permission-string character."""

    READ = "r"
    WRITE = "w"
    EXECUTE = "x"


def check_permission(node: Node, user: str, group: str, op: PermissionOp | str) -> bool:
    """Return True if *user* in *group* may perform *op* on *node*.

    Args:
        node: The node being accessed.
        user: The acting username.
        group: The acting group name.
        op: ``PermissionOp`` or its single-character value.  Any other
            string is never permitted, except to root.

    """
    if user == ROOT_USER:
        return True
    if user == node.owner:
        triplet = node.permissions[_OWNER]
    elif group == node.group:
        triplet = node.permissions[_GROUP]
    else:
        triplet = node.permissions[_OTHER]
    try:
        flag = PermissionOp(op)
    except ValueError:
        return False
    return flag.value in triplet


def _triplet(digit: int) -> str:
    return (
        ("r" if digit & 4 else "-")
        + ("w" if digit & 2 else "-")
        + ("x" if digit & 1 else "-")
    )


def mode_to_permissions(mode: str, node_type: NodeType) -> str | None:
    """Translate a 3-digit octal mode into a permission string.

    Examples::

        ("755", DIRECTORY) → "drwxr-xr-x"
        ("640", FILE)      → "-rw-r-----"
        ("75", FILE)       → None

    Returns:
        The permission string, or None if *mode* is not exactly three
        octal digits.

    """
    if not _OCTAL_MODE.match(mode):
        return None
    return type_flag(node_type) + "".join(_triplet(int(digit)) for digit in mode)


def parse_owner_group(spec: str) -> tuple[str | None, str | None]:
    """Split an ``owner:group`` string into its parts.

    Empty parts come back as None so callers can leave them unchanged::

        "alice:staff" → ("alice", "staff")
        "alice"       → ("alice", None)
        ":staff"      → (None, "staff")

    """
    parts = spec.split(":")
    owner = parts[0] or None
    group = (parts[1] or None) if len(parts) > 1 else None
    return owner, group
