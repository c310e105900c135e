"""Utility functions."""

from .datetime import format_date, sunday_index, today
from .ids import IdFactory, IdGenerator, generate_id

__all__ = [
    "IdFactory",
    "IdGenerator",
    "format_date",
    "generate_id",
    "sunday_index",
    "today",
]
