"""Context-aware tab completer for the shell.

The completer separates **what to complete** (pure logic, fully
testable) from **how to wire it** (readline integration in the REPL).

The ``complete(text, state)`` method is the readline callback.  It
delegates to ``completions(text, line)``, which looks at the line so
far and returns candidate strings: command names for the first word,
filesystem paths (resolved against the session's working directory)
afterwards.
"""

from __future__ import annotations

import readline
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nano_vfs.shell import Shell

# Commands whose second word is another command name.
_COMMAND_ARGUMENT: frozenset[str] = frozenset(["sudo", "man"])

_SECOND = 2


class Completer:
    """Context-aware tab completer for the shell."""

    def __init__(self, shell: Shell) -> None:
        """Create a completer attached to a shell instance."""
        self._shell = shell

    def complete(self, text: str, state: int) -> str | None:
        """Readline callback — return the *state*-th candidate for *text*.

        Returns:
            The candidate at *state*, or ``None`` when exhausted.

        """
        line = readline.get_line_buffer()
        candidates = self.completions(text, line)
        if state < len(candidates):
            return candidates[state]
        return None

    def completions(self, text: str, line: str) -> list[str]:
        """Return completion candidates based on context.

        Args:
            text: The partial word under the cursor.
            line: The full input line so far.

        Returns:
            Sorted list of matching candidates.

        """
        words = line.lstrip().split()

        # No words yet, or still typing the first word → command completion
        if not words or (len(words) == 1 and not line.endswith(" ")):
            return self._complete_commands(text)

        typing_second = len(words) == _SECOND and not line.endswith(" ")
        second_word = len(words) == 1 or typing_second
        if words[0] in _COMMAND_ARGUMENT and second_word:
            return self._complete_commands(text)

        return self._complete_paths(text)

    def _complete_commands(self, text: str) -> list[str]:
        """Complete command names from the shell's registry."""
        return [cmd for cmd in self._shell.command_names if cmd.startswith(text)]

    def _complete_paths(self, text: str) -> list[str]:
        """Complete filesystem paths.

        Split the partial path into a directory and a name prefix, list
        the directory, and filter by prefix.  Directories get a trailing
        ``/`` suffix.  Relative input produces relative candidates.
        """
        last_slash = text.rfind("/")
        directory = text[: last_slash + 1]
        prefix = text[last_slash + 1 :]

        vfs = self._shell.vfs
        nodes = vfs.list_nodes(directory or ".", self._shell.session.cwd)
        if nodes is None:
            return []

        candidates: list[str] = []
        for node in nodes:
            if not node.name.startswith(prefix):
                continue
            candidate = directory + node.name
            if node.is_dir:
                candidate += "/"
            elif node.is_symlink:
                target = vfs.get_node(candidate, self._shell.session.cwd)
                if target is not None and target.is_dir:
                    candidate += "/"
            candidates.append(candidate)
        return sorted(candidates)
