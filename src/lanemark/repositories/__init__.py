"""Repository layer for board files."""

from .filesystem import FilesystemRepository

__all__ = [
    "FilesystemRepository",
]
