"""Accounts — identities read from the account files inside the VFS.

There is no separate user database.  Like a real Unix box, the
accounts live in ordinary files:

- ``/etc/passwd`` — ``name:x:uid:gid:gecos:home:shell`` per line.
- ``/etc/shadow`` — ``name:password`` per line (plain text here).
- ``/etc/sudoers`` — ``name ALL=(ALL:ALL) ALL`` per line.

``AccountDatabase`` parses them on every lookup, so edits made through
the filesystem (``write /etc/passwd ...`` as root) take effect at once.
The files are read with ``follow_links=False``: replacing ``/etc/shadow``
with a symlink must not redirect authentication.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from nano_vfs.fs.permissions import ROOT_USER

if TYPE_CHECKING:
    from nano_vfs.fs.vfs import VirtualFileSystem

PASSWD_PATH = "/etc/passwd"
SHADOW_PATH = "/etc/shadow"
SUDOERS_PATH = "/etc/sudoers"

_PASSWD_FIELDS = 7


@dataclass(frozen=True)
class Account:
    """One ``/etc/passwd`` entry."""

    username: str
    uid: int
    gid: int
    home: str
    shell: str

    def __repr__(self) -> str:
        """Return a readable representation."""
        return f"Account(uid={self.uid}, username={self.username!r})"


class AccountDatabase:
    """Read-only view of the account files of a filesystem."""

    def __init__(self, vfs: VirtualFileSystem) -> None:
        """Create a view over *vfs*."""
        self._vfs = vfs

    def _lines(self, path: str) -> list[str]:
        node = self._vfs.get_node(path, "/", follow_links=False)
        if node is None or not node.is_file or not node.content:
            return []
        return [line for line in node.content.splitlines() if line.strip()]

    def accounts(self) -> list[Account]:
        """Return every well-formed entry of ``/etc/passwd``."""
        result: list[Account] = []
        for line in self._lines(PASSWD_PATH):
            fields = line.split(":")
            if len(fields) != _PASSWD_FIELDS:
                continue
            name, _password, uid, gid, _gecos, home, shell = fields
            try:
                result.append(
                    Account(username=name, uid=int(uid), gid=int(gid), home=home, shell=shell)
                )
            except ValueError:
                continue
        return result

    def get(self, username: str) -> Account | None:
        """Look up an account by username.

        Returns:
            The account, or None if not found.

        """
        for account in self.accounts():
            if account.username == username:
                return account
        return None

    def password_for(self, username: str) -> str | None:
        """Return the stored password of *username*, or None."""
        for line in self._lines(SHADOW_PATH):
            name, sep, password = line.partition(":")
            if sep and name == username:
                return password
        return None

    def authenticate(self, username: str, password: str) -> bool:
        """Return True if *password* matches the shadow entry for *username*."""
        stored = self.password_for(username)
        return stored is not None and stored == password

    def is_sudoer(self, username: str) -> bool:
        """Return True if *username* has an entry in ``/etc/sudoers``."""
        if username == ROOT_USER:
            return True
        return any(line.split()[0] == username for line in self._lines(SUDOERS_PATH))

    def home_directory(self, username: str) -> str:
        """Return the home directory of *username* (``/`` if unknown)."""
        account = self.get(username)
        return account.home if account is not None else "/"
