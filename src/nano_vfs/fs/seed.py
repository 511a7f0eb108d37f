"""The initial filesystem — the seed tree every new VFS is built from.

The document is a plain nested dict so it can be inspected, compared,
and reused freely; ``VirtualFileSystem`` never mutates it.  The files
under ``/etc`` are read by name by the account commands (``su``,
``sudo``), so their content strings matter.

The ``size`` values are nominal, as they would be in a snapshot taken
from another machine; only engine mutations recompute sizes.
"""

from typing import Any

from nano_vfs.fs.node import DIRECTORY_SIZE, now

_BOOT_TIME = now().isoformat()


def _dir(
    name: str,
    children: dict[str, Any],
    *,
    owner: str = "root",
    group: str = "root",
    permissions: str = "drwxr-xr-x",
) -> dict[str, Any]:
    return {
        "name": name,
        "type": "DIRECTORY",
        "permissions": permissions,
        "owner": owner,
        "group": group,
        "lastModified": _BOOT_TIME,
        "size": DIRECTORY_SIZE,
        "children": children,
    }


def _file(
    name: str,
    content: str,
    size: int,
    *,
    owner: str = "root",
    group: str = "root",
    permissions: str = "-rw-r--r--",
) -> dict[str, Any]:
    return {
        "name": name,
        "type": "FILE",
        "content": content,
        "permissions": permissions,
        "owner": owner,
        "group": group,
        "lastModified": _BOOT_TIME,
        "size": size,
    }


PASSWD = (
    "root:x:0:0:root:/root:/bin/bash\n"
    "user:x:1000:1000:user:/home/user:/bin/bash\n"
    "guest:x:1001:1001:guest:/home/guest:/bin/bash"
)
SHADOW = "root:password123\nuser:admin\nguest:guest"
SUDOERS = "root ALL=(ALL:ALL) ALL\nuser ALL=(ALL:ALL) ALL"
MOTD = (
    "Welcome to POSIX Nanokernel v1.2.0 LTS\n"
    "Networking: Enabled (Shared from Host)\n"
    "Symlink Support: Active"
)
README = "# System v1.2.0\nTry: 'su root', 'find / -name README', or 'ln -s README.md link'."

INITIAL_FILESYSTEM: dict[str, Any] = _dir(
    "/",
    {
        "bin": _dir("bin", {}),
        "etc": _dir(
            "etc",
            {
                "passwd": _file("passwd", PASSWD, 150),
                "shadow": _file("shadow", SHADOW, 60, permissions="-rw-------"),
                "sudoers": _file("sudoers", SUDOERS, 50, permissions="-r--r-----"),
                "motd": _file("motd", MOTD, 120),
            },
        ),
        "home": _dir(
            "home",
            {
                "user": _dir(
                    "user",
                    {"README.md": _file("README.md", README, 80, owner="user", group="user")},
                    owner="user",
                    group="user",
                ),
                "guest": _dir("guest", {}, owner="guest", group="guest"),
            },
        ),
        "root": _dir("root", {}, permissions="drwx------"),
    },
)
