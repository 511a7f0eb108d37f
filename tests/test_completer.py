"""Tests for the tab-completion engine.

The Completer provides context-aware completion for the shell.  Its
logic is pure (no I/O): it analyses the input line and returns
candidate strings, making it testable without a terminal.
"""

from unittest.mock import patch

from nano_vfs.completer import Completer
from nano_vfs.fs.vfs import VirtualFileSystem
from nano_vfs.shell import Shell


def _completer() -> tuple[Shell, Completer]:
    """Create a shell over a fresh filesystem and a completer for it."""
    shell = Shell(vfs=VirtualFileSystem())
    return shell, Completer(shell)


class TestCommandCompletion:
    """Verify completion of command names (first word on the line)."""

    def test_empty_line_returns_all_commands(self) -> None:
        """Pressing Tab on a blank line should list every command."""
        shell, completer = _completer()
        assert completer.completions("", "") == shell.command_names

    def test_partial_match(self) -> None:
        """A partial prefix should return only matching commands."""
        _shell, completer = _completer()
        candidates = completer.completions("c", "c")
        assert candidates == ["cat", "cd", "chmod", "chown", "cp"]

    def test_unique_prefix(self) -> None:
        """A prefix matching exactly one command should return just that."""
        _shell, completer = _completer()
        assert completer.completions("hel", "hel") == ["help"]

    def test_no_match_returns_empty(self) -> None:
        """An unrecognised prefix should return no candidates."""
        _shell, completer = _completer()
        assert completer.completions("zzz", "zzz") == []

    def test_sudo_completes_commands(self) -> None:
        """The word after sudo is a command name."""
        _shell, completer = _completer()
        assert completer.completions("who", "sudo who") == ["whoami"]
        assert "ls" in completer.completions("", "man ")


class TestPathCompletion:
    """Verify completion of filesystem paths."""

    def test_relative_to_cwd(self) -> None:
        """Bare names complete against the working directory."""
        _shell, completer = _completer()
        assert completer.completions("", "cat ") == ["README.md"]

    def test_root_entries(self) -> None:
        """Absolute paths complete from the root; directories get a slash."""
        _shell, completer = _completer()
        assert completer.completions("/", "ls /") == ["/bin/", "/etc/", "/home/", "/root/"]

    def test_subdirectory_completion(self) -> None:
        """Prefixes inside a directory filter its children."""
        _shell, completer = _completer()
        candidates = completer.completions("/etc/s", "cat /etc/s")
        assert candidates == ["/etc/shadow", "/etc/sudoers"]

    def test_link_to_directory_gets_slash(self) -> None:
        """Links to directories complete like directories."""
        shell, completer = _completer()
        shell.execute("ln -s /etc conf")
        shell.execute("ln -s /etc/motd motd")
        assert completer.completions("", "cd ") == ["README.md", "conf/", "motd"]

    def test_follows_session_cwd(self) -> None:
        """Completion uses the current working directory."""
        shell, completer = _completer()
        shell.execute("cd /etc")
        assert completer.completions("m", "cat m") == ["motd"]

    def test_no_matches_returns_empty(self) -> None:
        """Missing directories produce no candidates."""
        _shell, completer = _completer()
        assert completer.completions("/nope/x", "cat /nope/x") == []


class TestReadlineInterface:
    """Verify the readline callback."""

    def test_complete_state_interface(self) -> None:
        """complete() returns candidates by index, then None."""
        _shell, completer = _completer()
        with patch("readline.get_line_buffer", return_value="hel"):
            assert completer.complete("hel", 0) == "help"
            assert completer.complete("hel", 1) is None
