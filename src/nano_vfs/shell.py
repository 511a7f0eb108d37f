"""The shell — command interpreter over the virtual filesystem.

The shell reads a command line, splits it into a command name and
arguments, dispatches to the matching handler, and returns a string.
It is the only layer that turns the filesystem's boolean/None results
into human-readable messages.

Design choices:
    - **Returns strings, not prints.**  The caller (REPL or web UI)
      decides how to display output, which keeps every command testable.
    - **A registry of commands.**  Each ``Command`` pairs a name and a
      description with a handler of one uniform shape
      (``list[str] -> str``).  The registry is built once, in the
      constructor; adding a command means writing one handler and one
      registry entry.
    - **Identity comes from the session.**  Handlers read the acting
      user, group and working directory from the ``Session`` they were
      given.  ``sudo`` swaps the identity only for the duration of the
      wrapped command, except ``sudo su``, which switches for good.
    - **Permissions are checked here.**  The filesystem never gates its
      own mutations, so commands call ``check_permission`` before reads
      and writes that need it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from nano_vfs.accounts import AccountDatabase
from nano_vfs.fs.node import NodeType
from nano_vfs.logging import Logger, LogLevel
from nano_vfs.fs.permissions import ROOT_USER, PermissionOp
from nano_vfs.session import Session

if TYPE_CHECKING:
    from nano_vfs.fs.node import Node
    from nano_vfs.fs.vfs import VirtualFileSystem

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

# Reads a password for the given prompt text.
PasswordPrompt: TypeAlias = Callable[[str], str]

_FIND_TYPES = {
    "f": NodeType.FILE,
    "d": NodeType.DIRECTORY,
    "l": NodeType.SYMLINK,
}

_ARCHIVE_SEPARATOR = "\n---\n"
_ARCHIVE_HEADER = "[FILE: {name}]"

MAN_PAGES: dict[str, str] = {
    "ln": (
        "LN(1)                           User Commands                          LN(1)\n"
        "NAME\n       ln - make links between files\n"
        "SYNOPSIS\n       ln -s TARGET LINK_NAME"
    ),
    "su": (
        "SU(1)                           User Commands                          SU(1)\n"
        "NAME\n       su - run a command with substitute user and group ID\n"
        "SYNOPSIS\n       su [USER]"
    ),
    "sudo": (
        "SUDO(8)                        System Manager's Manual                 SUDO(8)\n"
        "NAME\n       sudo - execute a command as another user\n"
        "SYNOPSIS\n       sudo COMMAND [ARG]..."
    ),
    "tar": (
        "TAR(1)                          User Commands                         TAR(1)\n"
        "NAME\n       tar - an archiving utility\n"
        "SYNOPSIS\n       tar -cf ARCHIVE FILE...\n       tar -tf ARCHIVE\n       tar -xf ARCHIVE"
    ),
    "find": (
        "FIND(1)                         User Commands                        FIND(1)\n"
        "NAME\n       find - search for files in a directory hierarchy\n"
        "SYNOPSIS\n       find [PATH] [-name TEXT] [-type f|d|l] [-size [+-]N]"
    ),
    "log": (
        "LOG(1)                          User Commands                          LOG(1)\n"
        "NAME\n       log - show or clear the audit log\n"
        "SYNOPSIS\n       log [-l LEVEL] [-s SOURCE] [COUNT]\n       log -c"
    ),
}


@dataclass(frozen=True)
class Command:
    """A registered command: its name, one-line description, and handler."""

    name: str
    description: str
    handler: _Handler


def _split_flags(args: list[str]) -> tuple[str, list[str]]:
    """Separate ``-xyz`` flags from operands.

    Returns:
        The concatenated flag letters and the remaining operands.

    """
    letters = "".join(a[1:] for a in args if a.startswith("-") and len(a) > 1)
    operands = [a for a in args if not a.startswith("-") or a == "-"]
    return letters, operands


_DEFAULT_LOG_COUNT = 20


def _parse_log_query(args: list[str]) -> tuple[LogLevel | None, str | None, int] | str:
    """Parse ``log`` arguments into (min_level, source, count).

    Returns:
        The parsed query, or an error message for bad arguments.

    """
    min_level: LogLevel | None = None
    source: str | None = None
    count = _DEFAULT_LOG_COUNT
    remaining = list(args)
    while remaining:
        arg = remaining.pop(0)
        if arg not in {"-l", "-s"}:
            try:
                count = int(arg)
            except ValueError:
                return f"log: invalid count '{arg}'"
            continue
        if not remaining:
            return f"log: option requires an argument -- '{arg[1]}'"
        value = remaining.pop(0)
        if arg == "-s":
            source = value
        elif value.upper() in LogLevel.__members__:
            min_level = LogLevel[value.upper()]
        else:
            return f"log: unknown level '{value}'"
    return min_level, source, count


class Shell:
    """Command interpreter bound to one filesystem and one session."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(
        self,
        *,
        vfs: VirtualFileSystem,
        session: Session | None = None,
        logger: Logger | None = None,
        prompt_password: PasswordPrompt | None = None,
    ) -> None:
        """Create a shell over *vfs*.

        Args:
            vfs: The filesystem every command operates on.
            session: Identity and working directory (a fresh default
                session if omitted).
            logger: Audit log shared with the caller, if any.
            prompt_password: Callback used by ``su`` and ``sudo`` to
                read a password.  Without one, authentication fails.

        """
        self._vfs = vfs
        self._session = session if session is not None else Session()
        self._logger = logger if logger is not None else Logger()
        self._prompt_password = prompt_password
        self._accounts = AccountDatabase(vfs)
        self._history: list[str] = []

        entries: list[tuple[str, str, _Handler]] = [
            ("help", "List available commands", self._cmd_help),
            ("ls", "List directory contents", self._cmd_ls),
            ("cd", "Change the working directory", self._cmd_cd),
            ("pwd", "Print the working directory", self._cmd_pwd),
            ("whoami", "Print the current user", self._cmd_whoami),
            ("hostname", "Show or set the host name", self._cmd_hostname),
            ("cat", "Print file contents", self._cmd_cat),
            ("write", "Write text to a file", self._cmd_write),
            ("echo", "Print arguments", self._cmd_echo),
            ("mkdir", "Make directories", self._cmd_mkdir),
            ("touch", "Create a file or refresh its timestamp", self._cmd_touch),
            ("rm", "Remove files or directories", self._cmd_rm),
            ("cp", "Copy files and directories", self._cmd_cp),
            ("mv", "Move or rename files", self._cmd_mv),
            ("ln", "Make symbolic links", self._cmd_ln),
            ("readlink", "Print a symbolic link's target", self._cmd_readlink),
            ("stat", "Display node metadata", self._cmd_stat),
            ("chmod", "Change permission bits", self._cmd_chmod),
            ("chown", "Change owner and group", self._cmd_chown),
            ("find", "Search for files", self._cmd_find),
            ("tar", "Archiving utility", self._cmd_tar),
            ("su", "Substitute user", self._cmd_su),
            ("sudo", "Execute a command as root", self._cmd_sudo),
            ("exit", "Log out or close the session", self._cmd_exit),
            ("man", "Show a manual page", self._cmd_man),
            ("history", "Show command history", self._cmd_history),
            ("log", "Show or clear the audit log", self._cmd_log),
        ]
        # Command registry: name to handler.
        self._commands: dict[str, Command] = {
            name: Command(name=name, description=description, handler=handler)
            for name, description, handler in entries
        }

    @property
    def session(self) -> Session:
        """Return the session this shell acts for."""
        return self._session

    @property
    def vfs(self) -> VirtualFileSystem:
        """Return the filesystem this shell operates on."""
        return self._vfs

    @property
    def logger(self) -> Logger:
        """Return the shell's audit log."""
        return self._logger

    @property
    def command_names(self) -> list[str]:
        """Return the sorted names of all registered commands."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. "ls -l /etc").

        Returns:
            The command output, an error message, or ``EXIT_SENTINEL``
            when the session should close.

        """
        parts = command.strip().split()
        if not parts:
            return ""
        name, args = parts[0], parts[1:]
        entry = self._commands.get(name)
        output = f"sh: command not found: {name}" if entry is None else entry.handler(args)
        # History holds earlier lines only.
        self._history.append(command.strip())
        return output

    # -- Helpers -----------------------------------------------------------

    @property
    def _cwd(self) -> str:
        return self._session.cwd

    def _allowed(self, node: Node, op: PermissionOp) -> bool:
        return self._vfs.check_permission(node, self._session.user, self._session.group, op)

    def _into_directory(self, src: str, dest: str) -> str:
        """Return *dest*, or *dest*/<basename of src> if *dest* is a directory."""
        target = self._vfs.get_node(dest, self._cwd)
        segments = self._vfs.resolve(src, self._cwd)
        if target is not None and target.is_dir and segments:
            return f"{dest.rstrip('/')}/{segments[-1]}"
        return dest

    def _read_password(self, prompt: str) -> str | None:
        if self._prompt_password is None:
            return None
        return self._prompt_password(prompt)

    # -- Command handlers ----------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        width = max(len(name) for name in self._commands)
        return "\n".join(
            f"{name:<{width}}  {self._commands[name].description}" for name in self.command_names
        )

    def _cmd_ls(self, args: list[str]) -> str:
        """List directory contents (``-l`` long format, ``-F`` classify)."""
        flags, operands = _split_flags(args)
        path = operands[0] if operands else "."
        node = self._vfs.get_node(path, self._cwd)
        if node is None:
            return f"ls: cannot access '{path}': No such file or directory"

        if node.is_dir:
            if not self._allowed(node, PermissionOp.READ):
                return f"ls: cannot open directory '{path}': Permission denied"
            nodes = self._vfs.list_nodes(path, self._cwd) or []
        else:
            nodes = [node]

        long_format = "l" in flags
        lines: list[str] = []
        for entry in nodes:
            name = entry.name
            if "F" in flags:
                if entry.is_dir:
                    name += "/"
                elif entry.is_symlink:
                    name += "@"
                elif "x" in entry.permissions:
                    name += "*"
            if long_format:
                if entry.is_symlink:
                    name += f" -> {entry.target}"
                stamp = entry.last_modified.strftime("%b %d %H:%M")
                owner = f"{entry.owner} {entry.group}"
                lines.append(f"{entry.permissions} {owner} {entry.size:>5} {stamp} {name}")
            else:
                lines.append(name)
        return "\n".join(lines) if long_format else "  ".join(lines)

    def _cmd_cd(self, args: list[str]) -> str:
        """Change the working directory (home directory by default)."""
        path = args[0] if args else self._accounts.home_directory(self._session.user)
        node = self._vfs.get_node(path, self._cwd)
        if node is None:
            return f"cd: {path}: No such file or directory"
        if not node.is_dir:
            return f"cd: {path}: Not a directory"
        if not self._allowed(node, PermissionOp.EXECUTE):
            return f"cd: {path}: Permission denied"
        self._session.cwd = self._vfs.canonical(path, self._cwd)
        return ""

    def _cmd_pwd(self, _args: list[str]) -> str:
        """Print the working directory."""
        return self._cwd

    def _cmd_whoami(self, _args: list[str]) -> str:
        """Print the current user."""
        return self._session.user

    def _cmd_hostname(self, args: list[str]) -> str:
        """Show the host name, or set it (root only)."""
        if not args:
            return self._session.hostname
        if not self._session.is_root:
            return "hostname: you must be root to change the host name"
        self._session.hostname = args[0]
        return ""

    def _cmd_cat(self, args: list[str]) -> str:
        """Print the contents of one or more files."""
        _flags, operands = _split_flags(args)
        if not operands:
            return "cat: missing operand"
        output: list[str] = []
        for path in operands:
            node = self._vfs.get_node(path, self._cwd)
            if node is None:
                output.append(f"cat: {path}: No such file or directory")
            elif node.is_dir:
                output.append(f"cat: {path}: Is a directory")
            elif not self._allowed(node, PermissionOp.READ):
                output.append(f"cat: {path}: Permission denied")
            else:
                output.append(node.content or "")
        return "\n".join(output)

    def _cmd_write(self, args: list[str]) -> str:
        r"""Replace a file's content, creating the file if needed.

        A literal ``\n`` in the text becomes a newline.
        """
        min_args = 2
        if len(args) < min_args:
            return "Usage: write <path> <text...>"
        path = args[0]
        content = " ".join(args[1:]).replace("\\n", "\n")

        node = self._vfs.get_node(path, self._cwd)
        if node is None:
            created = self._vfs.create_node(
                path,
                self._cwd,
                NodeType.FILE,
                content,
                owner=self._session.user,
                group=self._session.group,
            )
            return "" if created else f"write: {path}: No such file or directory"
        if not node.is_file:
            return f"write: {path}: Is a directory"
        if not self._allowed(node, PermissionOp.WRITE):
            return f"write: {path}: Permission denied"
        self._vfs.update_file_content(path, self._cwd, content)
        return ""

    def _cmd_echo(self, args: list[str]) -> str:
        """Print arguments."""
        return " ".join(args)

    def _cmd_mkdir(self, args: list[str]) -> str:
        """Create directories."""
        if not args:
            return "mkdir: missing operand"
        errors = [
            f"mkdir: cannot create directory '{path}'"
            for path in args
            if not self._vfs.create_node(
                path,
                self._cwd,
                NodeType.DIRECTORY,
                owner=self._session.user,
                group=self._session.group,
            )
        ]
        return "\n".join(errors)

    def _cmd_touch(self, args: list[str]) -> str:
        """Create empty files, or refresh the timestamp of existing ones."""
        if not args:
            return "touch: missing file operand"
        errors: list[str] = []
        for path in args:
            node = self._vfs.get_node(path, self._cwd)
            if node is not None:
                node.touch()
            elif not self._vfs.create_node(
                path,
                self._cwd,
                NodeType.FILE,
                owner=self._session.user,
                group=self._session.group,
            ):
                errors.append(f"touch: cannot touch '{path}': No such file or directory")
        return "\n".join(errors)

    def _cmd_rm(self, args: list[str]) -> str:
        """Remove files, or directories with ``-r``."""
        flags, operands = _split_flags(args)
        if not operands:
            return "rm: missing operand"
        recursive = "r" in flags or "R" in flags
        errors: list[str] = []
        for path in operands:
            node = self._vfs.get_node(path, self._cwd, follow_links=False)
            if node is None:
                errors.append(f"rm: cannot remove '{path}': No such file or directory")
            elif node.is_dir and not recursive:
                errors.append(f"rm: cannot remove '{path}': Is a directory")
            elif not self._vfs.remove_node(path, self._cwd, recursive=recursive):
                errors.append(f"rm: cannot remove '{path}'")
        return "\n".join(errors)

    def _cmd_cp(self, args: list[str]) -> str:
        """Copy a file, or a directory tree with ``-r``."""
        flags, operands = _split_flags(args)
        min_operands = 2
        if len(operands) < min_operands:
            return "cp: missing operand"
        src, dest = operands[0], operands[1]
        recursive = "r" in flags or "R" in flags
        node = self._vfs.get_node(src, self._cwd)
        if node is None:
            return f"cp: cannot stat '{src}': No such file or directory"
        if node.is_dir and not recursive:
            return f"cp: -r not specified; omitting directory '{src}'"
        if not self._allowed(node, PermissionOp.READ):
            return f"cp: cannot open '{src}' for reading: Permission denied"
        dest = self._into_directory(src, dest)
        if not self._vfs.copy_node(src, dest, self._cwd, recursive=recursive):
            return f"cp: cannot copy '{src}' to '{dest}'"
        return ""

    def _cmd_mv(self, args: list[str]) -> str:
        """Move or rename a node."""
        _flags, operands = _split_flags(args)
        min_operands = 2
        if len(operands) < min_operands:
            return "mv: missing operand"
        src, dest = operands[0], operands[1]
        if self._vfs.get_node(src, self._cwd) is None:
            return f"mv: cannot stat '{src}': No such file or directory"
        dest = self._into_directory(src, dest)
        if not self._vfs.move_node(src, dest, self._cwd):
            return f"mv: cannot move '{src}' to '{dest}'"
        return ""

    def _cmd_ln(self, args: list[str]) -> str:
        """Create a symbolic link: ``ln -s <target> [link_name]``."""
        flags, operands = _split_flags(args)
        if "s" not in flags:
            return "ln: only symbolic links (-s) are supported"
        if not operands:
            return "ln: missing file operand"
        target = operands[0]
        if len(operands) > 1:
            link_path = operands[1]
        else:
            link_path = target.rstrip("/").rsplit("/", 1)[-1]
        created = self._vfs.create_symlink(
            link_path,
            target,
            self._cwd,
            owner=self._session.user,
            group=self._session.group,
        )
        return "" if created else f"ln: failed to create symbolic link '{link_path}'"

    def _cmd_readlink(self, args: list[str]) -> str:
        """Print the target of a symbolic link."""
        if not args:
            return "readlink: missing operand"
        node = self._vfs.get_node(args[0], self._cwd, follow_links=False)
        if node is None or not node.is_symlink:
            return f"readlink: {args[0]}: not a symbolic link"
        return node.target or ""

    def _cmd_stat(self, args: list[str]) -> str:
        """Display node metadata.  Symlinks are reported themselves."""
        if not args:
            return "stat: missing operand"
        path = args[0]
        node = self._vfs.get_node(path, self._cwd, follow_links=False)
        if node is None:
            return f"stat: cannot stat '{path}': No such file or directory"

        file_line = f"  File: {path}"
        if node.is_symlink:
            file_line += f" -> {node.target}"
        lines = [
            file_line,
            f"  Type: {node.node_type.value.lower()}",
            f"  Size: {node.size}",
            f"Access: {node.permissions}",
            f" Owner: {node.owner}",
            f" Group: {node.group}",
            f"Modify: {node.last_modified.isoformat()}",
        ]
        return "\n".join(lines)

    def _cmd_chmod(self, args: list[str]) -> str:
        """Change permission bits from a 3-digit octal mode."""
        min_args = 2
        if len(args) < min_args:
            return "Usage: chmod <mode> <path>"
        mode, path = args[0], args[1]
        node = self._vfs.get_node(path, self._cwd)
        if node is None:
            return f"chmod: cannot access '{path}': No such file or directory"
        if not self._session.is_root and node.owner != self._session.user:
            return f"chmod: changing permissions of '{path}': Operation not permitted"
        if not self._vfs.chmod(path, mode, self._cwd):
            return f"chmod: invalid mode: '{mode}'"
        return ""

    def _cmd_chown(self, args: list[str]) -> str:
        """Change owner and/or group (root only)."""
        min_args = 2
        if len(args) < min_args:
            return "Usage: chown <owner[:group]> <path>"
        owner_group, path = args[0], args[1]
        if not self._vfs.exists(path, self._cwd):
            return f"chown: cannot access '{path}': No such file or directory"
        if not self._session.is_root:
            return f"chown: changing ownership of '{path}': Operation not permitted"
        self._vfs.chown(path, owner_group, self._cwd)
        return ""

    def _cmd_find(self, args: list[str]) -> str:
        """Search for nodes by name, type, and size."""
        path = "." if not args or args[0].startswith("-") else args[0]
        name: str | None = None
        node_type: NodeType | None = None
        size: str | None = None

        options = args[1:] if args and not args[0].startswith("-") else args
        i = 0
        while i < len(options):
            option = options[i]
            value = options[i + 1] if i + 1 < len(options) else None
            if value is None:
                return f"find: missing argument to '{option}'"
            if option == "-name":
                name = value
            elif option == "-type":
                if value not in _FIND_TYPES:
                    return f"find: Unknown argument to -type: {value}"
                node_type = _FIND_TYPES[value]
            elif option == "-size":
                size = value
            else:
                return f"find: unknown predicate '{option}'"
            i += 2

        if not self._vfs.exists(path, self._cwd):
            return f"find: '{path}': No such file or directory"
        return "\n".join(
            self._vfs.find(path, self._cwd, name=name, node_type=node_type, size=size)
        )

    def _cmd_tar(self, args: list[str]) -> str:
        """Create, list, or extract a simple text archive."""
        usage = "tar: usage: tar -cf ARCHIVE FILE... | tar -tf ARCHIVE | tar -xf ARCHIVE"
        min_args = 2
        if len(args) < min_args:
            return usage
        mode, archive, files = args[0], args[1], args[2:]
        if mode == "-cf":
            return self._tar_create(archive, files)
        if mode in ("-tf", "-xf"):
            members = self._tar_members(archive)
            if members is None:
                return f"tar: {archive}: Cannot open: No such file or directory"
            if mode == "-tf":
                return "\n".join(name for name, _content in members)
            return self._tar_extract(members)
        return usage

    def _tar_create(self, archive: str, files: list[str]) -> str:
        if not files:
            return "tar: Cowardly refusing to create an empty archive"
        chunks: list[str] = []
        for path in files:
            node = self._vfs.get_node(path, self._cwd)
            if node is None or not node.is_file:
                return f"tar: {path}: Cannot stat: No such file or directory"
            if not self._allowed(node, PermissionOp.READ):
                return f"tar: {path}: Cannot open: Permission denied"
            chunks.append(_ARCHIVE_HEADER.format(name=path) + "\n" + (node.content or ""))
        content = _ARCHIVE_SEPARATOR.join(chunks)
        created = self._vfs.create_node(
            archive,
            self._cwd,
            NodeType.FILE,
            content,
            owner=self._session.user,
            group=self._session.group,
        )
        if not created and not self._vfs.update_file_content(archive, self._cwd, content):
            return f"tar: {archive}: Cannot open"
        return f"Archive {archive} created."

    def _tar_members(self, archive: str) -> list[tuple[str, str]] | None:
        node = self._vfs.get_node(archive, self._cwd)
        if node is None or not node.is_file or not self._allowed(node, PermissionOp.READ):
            return None
        members: list[tuple[str, str]] = []
        for chunk in (node.content or "").split(_ARCHIVE_SEPARATOR):
            header, _, body = chunk.partition("\n")
            if header.startswith("[FILE: ") and header.endswith("]"):
                members.append((header[len("[FILE: ") : -1], body))
        return members

    def _tar_extract(self, members: list[tuple[str, str]]) -> str:
        errors: list[str] = []
        for name, content in members:
            if self._vfs.exists(name, self._cwd):
                ok = self._vfs.update_file_content(name, self._cwd, content)
            else:
                ok = self._vfs.create_node(
                    name,
                    self._cwd,
                    NodeType.FILE,
                    content,
                    owner=self._session.user,
                    group=self._session.group,
                )
            if not ok:
                errors.append(f"tar: {name}: Cannot extract")
        return "\n".join(errors)

    def _cmd_su(self, args: list[str]) -> str:
        """Switch to another user (root by default) after a password check."""
        target = args[0] if args else ROOT_USER
        if self._accounts.get(target) is None:
            return f"su: user {target} does not exist"

        if not self._session.is_root:
            password = self._read_password(f"Password for {target}: ")
            if password is None or not self._accounts.authenticate(target, password):
                self._logger.log(
                    LogLevel.WARNING,
                    f"failed su to {target}",
                    source="shell",
                    user=self._session.user,
                )
                return "su: Authentication failure"

        return self._switch_to(target)

    def _switch_to(self, target: str) -> str:
        self._logger.log(LogLevel.INFO, f"su to {target}", source="shell", user=self._session.user)
        self._session.switch_user(target, target)
        return f"Switched to user {target}."

    def _cmd_sudo(self, args: list[str]) -> str:
        """Run one command as root.

        ``sudo su [USER]`` switches for good once the caller's own
        password is accepted; ``sudo exit`` is refused.
        """
        if not args:
            return "sudo: usage: sudo command [args]"
        if args[0] == "exit":
            return "sudo: exit: shell builtin cannot be run with sudo"
        user = self._session.user
        if not self._accounts.is_sudoer(user):
            self._logger.log(LogLevel.WARNING, "sudo denied", source="shell", user=user)
            return f"{user} is not in the sudoers file. This incident will be reported."

        if not self._session.is_root:
            password = self._read_password(f"[sudo] password for {user}: ")
            if password is None or not self._accounts.authenticate(user, password):
                return "sudo: 1 incorrect password attempt"

        entry = self._commands.get(args[0])
        if entry is None:
            return f"sudo: {args[0]}: command not found"
        self._logger.log(LogLevel.INFO, f"sudo {' '.join(args)}", source="shell", user=user)
        if args[0] == "su":
            return self._sudo_su(args[1:])
        with self._session.as_user(ROOT_USER, ROOT_USER):
            return entry.handler(args[1:])

    def _sudo_su(self, args: list[str]) -> str:
        target = args[0] if args else ROOT_USER
        if self._accounts.get(target) is None:
            return f"su: user {target} does not exist"
        return self._switch_to(target)

    def _cmd_exit(self, _args: list[str]) -> str:
        """Return to the login user, or close the session if already there."""
        login = self._session.login_user
        if self._session.user != login:
            self._session.switch_user(login, login)
            return f"Logged out back to '{login}'."
        return self.EXIT_SENTINEL

    def _cmd_man(self, args: list[str]) -> str:
        """Show the manual page for a command."""
        if not args:
            return "What manual page do you want?"
        name = args[0]
        if name in MAN_PAGES:
            return MAN_PAGES[name]
        entry = self._commands.get(name)
        if entry is None:
            return f"No manual entry for {name}"
        return f"NAME\n       {entry.name} - {entry.description}"

    def _cmd_history(self, _args: list[str]) -> str:
        """Show command history."""
        if not self._history:
            return "No history."
        return "\n".join(f"  {i + 1}  {cmd}" for i, cmd in enumerate(self._history))

    def _cmd_log(self, args: list[str]) -> str:
        """Show recent audit log entries, or clear the log.

        ``log [-l LEVEL] [-s SOURCE] [COUNT]`` shows the last COUNT
        (default 20) entries at or above LEVEL from SOURCE.
        ``log -c`` empties the log and needs root.
        """
        if args == ["-c"]:
            if not self._session.is_root:
                return "log: clearing the log requires root"
            self._logger.clear()
            return "Log cleared."

        query = _parse_log_query(args)
        if isinstance(query, str):
            return query
        min_level, source, count = query
        if min_level is None and source is None:
            entries = self._logger.tail(count)
        else:
            matched = self._logger.filter(min_level=min_level, source=source)
            entries = matched[-count:] if count > 0 else []
        return "\n".join(str(entry) for entry in entries) if entries else "No log entries."
