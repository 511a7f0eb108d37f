"""Session context — who is acting, and where.

Every command runs on behalf of a session: a current user and group,
a working directory, and a hostname.  The session is an explicit object
handed to each command rather than module-level state, so two sessions
(or two tests) can never see each other's identity or directory.

The filesystem consults the session's values but never owns them.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from nano_vfs.fs.permissions import ROOT_USER

DEFAULT_USER = "user"
DEFAULT_CWD = "/home/user"
DEFAULT_HOSTNAME = "nanokernel"


@dataclass
class Session:
    """Mutable per-terminal state.

    ``login_user`` is the identity the session started with; ``exit``
    returns to it after ``su``.
    """

    user: str = DEFAULT_USER
    group: str = DEFAULT_USER
    cwd: str = DEFAULT_CWD
    hostname: str = DEFAULT_HOSTNAME
    login_user: str = field(default="")

    def __post_init__(self) -> None:
        """Default the login identity to the starting user."""
        if not self.login_user:
            self.login_user = self.user

    @property
    def is_root(self) -> bool:
        """Return True if the session is acting as root."""
        return self.user == ROOT_USER

    @property
    def prompt(self) -> str:
        """Build the prompt string, e.g. ``user@nanokernel:/home/user$ ``."""
        marker = "#" if self.is_root else "$"
        return f"{self.user}@{self.hostname}:{self.cwd}{marker} "

    def switch_user(self, user: str, group: str) -> None:
        """Change the acting identity."""
        self.user = user
        self.group = group

    @contextmanager
    def as_user(self, user: str, group: str) -> Iterator[None]:
        """Temporarily act as *user*/*group*, restoring the old identity after."""
        previous = (self.user, self.group)
        self.switch_user(user, group)
        try:
            yield
        finally:
            self.switch_user(*previous)
