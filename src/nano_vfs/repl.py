"""Interactive REPL (Read-Eval-Print Loop) for the virtual filesystem.

The REPL is the terminal interface.  It builds a filesystem from the
seed tree, opens a session, creates a shell, and enters the classic
loop:

    1. **Read** — display the session prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

The shell is fully testable (returns strings, no I/O); the REPL is the
thin I/O wrapper that connects it to ``stdin``/``stdout``.  Passwords
are read with ``getpass`` so they are not echoed.
"""

import getpass
import readline

from nano_vfs.completer import Completer
from nano_vfs.fs.vfs import VirtualFileSystem
from nano_vfs.logging import Logger
from nano_vfs.session import Session
from nano_vfs.shell import Shell

MOTD_PATH = "/etc/motd"

_BANNER_WIDTH = 42


def format_banner(motd: str) -> str:
    """Frame the message of the day for display at start-up.

    Args:
        motd: The content of ``/etc/motd`` (may be empty).

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    body = "\n".join(f"  {line}" for line in motd.splitlines())
    footer = "\nType 'help' for commands, 'exit' to quit.\n"
    return f"\n  {border}\n{body}\n  {border}\n{footer}"


def create_shell() -> Shell:
    """Build a fresh filesystem, session, and shell sharing one audit log."""
    logger = Logger()
    vfs = VirtualFileSystem(logger=logger)
    return Shell(vfs=vfs, session=Session(), logger=logger, prompt_password=getpass.getpass)


def read_motd(shell: Shell) -> str:
    """Return the message of the day from the shell's filesystem."""
    node = shell.vfs.get_node(MOTD_PATH, "/")
    if node is None or not node.is_file:
        return ""
    return node.content or ""


def run() -> None:
    """Run the interactive REPL.

    This is the ``nano-vfs`` console entry point.  It handles:
    - Shell creation and tab completion.
    - The read-eval-print loop.
    - Graceful handling of Ctrl+C and Ctrl+D.
    """
    shell = create_shell()

    # Wire up tab completion via readline.
    completer = Completer(shell)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(read_motd(shell)))  # noqa: T201

    try:
        while True:
            try:
                command = input(shell.session.prompt)
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        print("Session closed.")  # noqa: T201
