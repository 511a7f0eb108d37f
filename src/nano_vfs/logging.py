"""Audit log for filesystem and shell events.

The logger records structured entries for everything that changes the
tree or the session — an audit trail of what happened and who did it.
It mirrors a kernel log buffer (``dmesg`` on Linux):

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, user).
- **Logger** — an append-only log with filtering and clearing.

The filesystem engine reports failures through return values, not
exceptions, so the log is the only place a failed mutation leaves a
trace.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event (e.g. "vfs").
        user: The username that triggered the event.

    """

    level: LogLevel
    message: str
    source: str
    user: str = "root"

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        user: str = "root",
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Subsystem that generated the event.
            user: Username associated with the event.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, user=user))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)

    def tail(self, count: int) -> list[LogEntry]:
        """Return the *count* most recent entries, oldest first."""
        if count <= 0:
            return []
        return self._entries[-count:]

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
