"""lanemark - lossless markdown kanban boards."""

from .parser import create_empty_board, parse, serialize

__version__ = "0.1.0"

__all__ = ["create_empty_board", "parse", "serialize"]
