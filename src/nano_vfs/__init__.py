"""nano-vfs — an in-memory POSIX-like virtual filesystem with a small shell."""

__version__ = "0.1.0"
