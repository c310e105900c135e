"""Filesystem-based repository for board documents."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ..models import Board
from ..parser import create_empty_board, has_marker_key, parse, serialize
from ..utils import IdFactory, generate_id

logger = logging.getLogger(__name__)


class FilesystemRepository:
    """
    Repository for board files stored on the filesystem.

    Each board is one markdown file whose header block carries the
    "kanban-plugin" key. Files are read and written as UTF-8 without
    newline translation so unchanged boards stay byte-identical.
    """

    SUFFIX = ".md"

    def __init__(
        self,
        board_root: Path,
        id_factory: IdFactory = generate_id,
        parse_natural_dates: bool | None = None,
        parse_recurrence: bool | None = None,
    ) -> None:
        """
        Initialize repository.

        Args:
            board_root: Directory holding the board files
            id_factory: Source of identifiers for items that lack one
            parse_natural_dates: Override the per-board setting when not None
            parse_recurrence: Override the per-board setting when not None
        """
        self.board_root = board_root
        self._id_factory = id_factory
        self._parse_natural_dates = parse_natural_dates
        self._parse_recurrence = parse_recurrence

    def ensure_directory(self) -> None:
        """Create the board directory if it doesn't exist."""
        self.board_root.mkdir(parents=True, exist_ok=True)

    def get_filepath(self, name: str) -> Path:
        """Path of a board file; the .md suffix is optional in name."""
        filename = name if name.endswith(self.SUFFIX) else f"{name}{self.SUFFIX}"
        return self.board_root / filename

    # --- Board Operations ---

    def list_boards(self) -> list[str]:
        """Names of the board files in the board root, sorted."""
        if not self.board_root.exists():
            return []
        return sorted(path.name for path in self._iter_board_files())

    def exists(self, name: str) -> bool:
        return self.get_filepath(name).exists()

    def load(self, name: str) -> Board:
        """Parse a board file. Raises FileNotFoundError if it is missing."""
        filepath = self.get_filepath(name)
        text = self._read(filepath)
        board = parse(
            text,
            id_factory=self._id_factory,
            parse_natural_dates=self._parse_natural_dates,
            parse_recurrence=self._parse_recurrence,
        )
        logger.debug("Loaded board %s (%d lanes)", filepath, len(board.lanes))
        return board

    def save(self, name: str, board: Board) -> Path:
        """Serialize a board to its file, creating the directory if needed."""
        self.ensure_directory()
        filepath = self.get_filepath(name)
        self._write(filepath, serialize(board))
        logger.info("Saved board: %s", filepath)
        return filepath

    def create(self, name: str) -> Board:
        """Write a new default board. Raises FileExistsError if the file exists."""
        filepath = self.get_filepath(name)
        if filepath.exists():
            raise FileExistsError(f"Board already exists: {filepath}")
        board = create_empty_board(self._id_factory)
        self.save(name, board)
        logger.info("Created board: %s", filepath)
        return board

    def validate(self) -> tuple[bool, str | None]:
        """Validate repository configuration.

        Returns:
            (True, None) if the board root exists or can be created,
            (False, message) otherwise.
        """
        if self.board_root.exists() and not self.board_root.is_dir():
            return (False, f"Board root is not a directory: {self.board_root}")
        try:
            self.ensure_directory()
            return (True, None)
        except OSError as e:
            return (False, f"Cannot access board directory: {e}")

    # --- Private Methods ---

    def _iter_board_files(self) -> Iterator[Path]:
        """Markdown files in the board root whose header declares a board."""
        for filepath in self.board_root.glob(f"*{self.SUFFIX}"):
            try:
                text = self._read(filepath)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable file %s: %s", filepath, e)
                continue
            if has_marker_key(text):
                yield filepath

    @staticmethod
    def _read(filepath: Path) -> str:
        with filepath.open(encoding="utf-8", newline="") as f:
            return f.read()

    @staticmethod
    def _write(filepath: Path, text: str) -> None:
        with filepath.open("w", encoding="utf-8", newline="") as f:
            f.write(text)
