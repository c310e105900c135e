"""Board commands: show, check, write and create."""

import json
import logging
from pathlib import Path

from ..config import Settings
from ..models import Board
from ..parser import parse, serialize
from ..repositories import FilesystemRepository
from .output import describe_card, error, header, info, success

logger = logging.getLogger(__name__)


def _repository(path: Path, settings: Settings) -> FilesystemRepository:
    return FilesystemRepository(
        path.parent,
        parse_natural_dates=settings.parse_natural_dates,
        parse_recurrence=settings.parse_recurrence,
    )


def _load(path: Path, settings: Settings) -> Board | None:
    if not path.exists():
        error(f"Board not found: {path}")
        return None
    try:
        return _repository(path, settings).load(path.name)
    except (OSError, UnicodeDecodeError) as e:
        error(f"Cannot read board {path}: {e}")
        return None


def print_board(board: Board) -> None:
    """Print lanes and their cards."""
    for lane in board.lanes:
        header(f"{lane.title} ({len(lane.cards)})")
        for card in lane.cards:
            print(f"  {describe_card(card)}")
    if board.archive:
        header(f"Archive ({len(board.archive)})")
        for card in board.archive:
            print(f"  {describe_card(card)}")


def run_show(path: Path, settings: Settings, as_json: bool = False) -> int:
    """
    Print a board.

    Returns:
        Exit code (0 = success, 1 = board missing or unreadable)
    """
    board = _load(path, settings)
    if board is None:
        return 1
    if as_json:
        print(json.dumps(board.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        print_board(board)
    return 0


def run_check(path: Path, settings: Settings) -> int:
    """
    Check that a board file is already in its stable serialized form.

    Returns:
        Exit code (0 = stable, 1 = rewriting would change the file or it is unreadable)
    """
    if not path.exists():
        error(f"Board not found: {path}")
        return 1
    try:
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        error(f"Cannot read board {path}: {e}")
        return 1
    board = parse(
        text,
        parse_natural_dates=settings.parse_natural_dates,
        parse_recurrence=settings.parse_recurrence,
    )
    if serialize(board) == text:
        success(f"Board is stable: {path}")
        return 0
    error(f"Board would be rewritten: {path}")
    return 1


def run_write(path: Path, settings: Settings) -> int:
    """
    Rewrite a board file in stable form (identifiers, marker key).

    Returns:
        Exit code (0 = success, 1 = board missing or unreadable)
    """
    board = _load(path, settings)
    if board is None:
        return 1
    _repository(path, settings).save(path.name, board)
    success(f"Wrote board: {path}")
    return 0


def run_create(path: Path, settings: Settings) -> int:
    """
    Create a new board with the default lanes.

    Returns:
        Exit code (0 = created, 1 = file already exists)
    """
    if path.exists():
        info(f"Board exists: {path}")
        return 1
    _repository(path, settings).create(path.name)
    success(f"Created board: {path}")
    return 0
