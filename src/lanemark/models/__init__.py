"""Data models."""

from .board import (
    ARCHIVE_ANCHOR,
    ARCHIVE_TITLE,
    DEFAULT_BOARD_SETTINGS,
    MARKER_KEY,
    MARKER_VALUE,
    Board,
    Lane,
)
from .card import META_PRIORITY, META_PROGRESS, META_PROJECT, Card, Subtask
from .recurrence import WEEKEND, WORKWEEK, DayOfWeek, Frequency, RecurrencePattern

__all__ = [
    "ARCHIVE_ANCHOR",
    "ARCHIVE_TITLE",
    "DEFAULT_BOARD_SETTINGS",
    "MARKER_KEY",
    "MARKER_VALUE",
    "META_PRIORITY",
    "META_PROGRESS",
    "META_PROJECT",
    "WEEKEND",
    "WORKWEEK",
    "Board",
    "Card",
    "DayOfWeek",
    "Frequency",
    "Lane",
    "RecurrencePattern",
    "Subtask",
]
