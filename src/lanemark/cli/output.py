"""CLI output helpers."""

import sys
from datetime import date

from ..models import Card
from ..parser.dates import format_relative_date
from ..parser.recurrence import serialize_recurrence

GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
BULLET = "\u2022"  # •
CROSS = "\u2717"  # ✗


def _supports_color(stream=None) -> bool:
    stream = stream or sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


def _colorize(text: str, color: str, stream=None) -> str:
    if _supports_color(stream):
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def header(message: str) -> None:
    print(_colorize(message, BLUE))


def error(message: str) -> None:
    """Print error message with red cross to stderr."""
    print(f"{_colorize(CROSS, RED, sys.stderr)} {message}", file=sys.stderr)


def describe_card(card: Card, reference: date | None = None) -> str:
    """One-line summary of a card: checkbox, title and its scheduling details."""
    mark = "x" if card.completed else " "
    details: list[str] = []
    if card.due_date:
        due = format_relative_date(card.due_date, reference)
        details.append(f"due {due} {card.due_time_text}" if card.due_time else f"due {due}")
    elif card.due_time:
        details.append(f"at {card.due_time_text}")
    if card.recurrence:
        details.append(serialize_recurrence(card.recurrence))
    if card.progress is not None:
        details.append(f"{card.progress}%")
    if card.subtasks:
        done = sum(1 for s in card.subtasks if s.completed)
        details.append(f"{done}/{len(card.subtasks)} subtasks")

    line = f"[{mark}] {card.title}"
    if details:
        line = f"{line} {_colorize('(' + ', '.join(details) + ')', DIM)}"
    return line
