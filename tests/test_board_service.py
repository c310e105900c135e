"""Tests for BoardService."""

from datetime import date

import pytest

from lanemark import parse, serialize
from lanemark.models import Board
from lanemark.services import (
    BoardService,
    BoardServiceError,
    CardNotFoundError,
    LaneNotFoundError,
)

WEDNESDAY = date(2025, 1, 15)

DOCUMENT = """---
kanban-plugin: basic
---

## Todo ^todo

- [ ] First ^c1
- [ ] Second ^c2
\t- [ ] step one
\t- [ ] step two

## Done ^done

- [x] Old ^c3
"""


@pytest.fixture
def board(ids) -> Board:
    return parse(DOCUMENT, id_factory=ids, reference_date=WEDNESDAY)


@pytest.fixture
def service(board: Board, ids) -> BoardService:
    return BoardService(board, id_factory=ids, reference_date=WEDNESDAY)


def _card_ids(board: Board, lane_id: str) -> list[str]:
    lane = board.get_lane(lane_id)
    assert lane is not None
    return [card.id for card in lane.cards]


class TestLookup:
    """Tests for find_card and find_lane."""

    def test_find_card_in_lane_and_archive(self, service: BoardService, board: Board):
        """Cards are found in lanes and in the archive."""
        assert service.find_card("c2").title == "Second"
        board.archive.append(board.lanes[1].cards.pop())
        assert service.find_card("c3").title == "Old"
        assert service.find_card("nope") is None

    def test_find_lane(self, service: BoardService):
        """Lanes are found by id, not by title."""
        assert service.find_lane("done").title == "Done"
        assert service.find_lane("Done") is None

    def test_errors_are_lookup_errors(self, service: BoardService):
        """Unknown ids raise LookupError subclasses."""
        with pytest.raises(LaneNotFoundError):
            service.rename_lane("missing", "x")
        with pytest.raises(CardNotFoundError):
            service.toggle_card("missing")
        assert issubclass(BoardServiceError, LookupError)


class TestLanes:
    """Tests for lane operations."""

    def test_add_lane(self, service: BoardService, board: Board):
        """New lanes get a generated id and are written after the others."""
        lane = service.add_lane("Review")
        assert lane.id.startswith("id")
        assert board.lanes[-1] is lane
        assert serialize(board).endswith(f"- [x] Old ^c3\n\n## Review ^{lane.id}\n\n")

    def test_add_lane_at_index(self, service: BoardService, board: Board):
        """A lane can be inserted at a position."""
        lane = service.add_lane("Backlog", index=0)
        assert board.lanes[0] is lane

    def test_rename_lane(self, service: BoardService, board: Board):
        """Renaming rewrites only the header line."""
        service.rename_lane("todo", "Doing")
        assert serialize(board) == DOCUMENT.replace("## Todo ^todo", "## Doing ^todo")

    def test_remove_lane(self, service: BoardService, board: Board):
        """Removing a lane drops it with its cards."""
        removed = service.remove_lane("done")
        assert removed.cards[0].id == "c3"
        assert [lane.id for lane in board.lanes] == ["todo"]

    def test_remove_lane_after_settings_block(self, ids):
        """Removing the lane that follows the settings block hands its place to the next lane."""
        text = (
            "---\nkanban-plugin: basic\n---\n## A ^a\n"
            '%% kanban:settings\n{"x": 1}\n%%\n## B ^b\n## C ^c\n'
        )
        board = parse(text, id_factory=ids)
        BoardService(board, id_factory=ids).remove_lane("b")
        assert board.settings_anchor == "c"
        assert serialize(board).endswith("%%\n## C ^c\n")

    def test_move_lane(self, service: BoardService, board: Board):
        """Lanes can be reordered; positions are clamped."""
        service.move_lane("done", 0)
        assert [lane.id for lane in board.lanes] == ["done", "todo"]
        service.move_lane("done", 99)
        assert [lane.id for lane in board.lanes] == ["todo", "done"]


class TestCards:
    """Tests for card operations."""

    def test_add_card_reads_composer_text(self, service: BoardService, board: Board):
        """Card text goes through the card grammar and is appended."""
        card = service.add_card("todo", "Pay rent tomorrow #home")
        assert card.due_date == date(2025, 1, 16)
        assert card.tags == ["home"]
        assert _card_ids(board, "todo") == ["c1", "c2", card.id]
        assert f"- [ ] Pay rent tomorrow #home ^{card.id}\n" in serialize(board)

    def test_add_card_prepend_setting(self, service: BoardService, board: Board):
        """The board setting can put new cards first."""
        board.settings["new-card-insertion-method"] = "prepend"
        card = service.add_card("todo", "Urgent")
        assert _card_ids(board, "todo")[0] == card.id

    def test_update_card_title(self, service: BoardService, board: Board):
        """A new title re-reads tags and dates but keeps the id."""
        card = service.update_card_title("c1", "Renamed #new @2025-02-01")
        assert card.id == "c1"
        assert card.tags == ["new"]
        assert card.due_date == date(2025, 2, 1)
        assert "- [ ] Renamed #new @2025-02-01 ^c1\n" in serialize(board)

    def test_remove_card(self, service: BoardService, board: Board):
        """Removed cards leave the board."""
        service.remove_card("c1")
        assert _card_ids(board, "todo") == ["c2"]
        assert "^c1" not in serialize(board)

    def test_move_card(self, service: BoardService, board: Board):
        """Moving keeps the card line and content block."""
        service.move_card("c2", "done", index=0)
        assert _card_ids(board, "done") == ["c2", "c3"]
        out = serialize(board)
        assert "## Done ^done\n\n- [ ] Second ^c2\n\t- [ ] step one\n\t- [ ] step two\n" in out

    def test_reorder_card(self, service: BoardService, board: Board):
        """Cards move up and down within the lane and stop at the edges."""
        assert service.reorder_card("c2", -1) is True
        assert _card_ids(board, "todo") == ["c2", "c1"]
        assert service.reorder_card("c2", -1) is False

    def test_toggle_card(self, service: BoardService, board: Board):
        """Toggling flips the checkbox."""
        service.toggle_card("c1")
        assert "- [x] First ^c1\n" in serialize(board)
        service.toggle_card("c1")
        assert serialize(board) == DOCUMENT


class TestArchive:
    """Tests for archiving."""

    def test_archive_and_unarchive(self, service: BoardService, board: Board):
        """Cards go to the archive and come back to the first lane."""
        service.archive_card("c3")
        assert [c.id for c in board.archive] == ["c3"]
        assert "## Archive\n" in serialize(board)

        service.unarchive_card("c3")
        assert _card_ids(board, "todo")[-1] == "c3"
        assert board.archive == []

    def test_archive_with_date(self, service: BoardService, board: Board):
        """The archive date is prefixed when the board asks for it."""
        board.settings["archive-with-date"] = True
        board.settings["prepend-archive-format"] = "YYYY-MM-DD"
        card = service.archive_card("c1")
        assert card.title == "2025-01-15 First"

    def test_unarchive_requires_archived_card(self, service: BoardService):
        """Only archived cards can be unarchived."""
        with pytest.raises(CardNotFoundError):
            service.unarchive_card("c1")


class TestSubtasks:
    """Tests for subtask operations."""

    def test_toggle_subtask(self, service: BoardService, board: Board):
        """Toggling a subtask patches its checkbox only."""
        service.toggle_subtask("c2", 1)
        assert serialize(board) == DOCUMENT.replace("\t- [ ] step two", "\t- [x] step two")

    def test_toggle_missing_subtask(self, service: BoardService):
        """An out-of-range subtask index is an error."""
        with pytest.raises(BoardServiceError):
            service.toggle_subtask("c2", 5)

    def test_add_subtask(self, service: BoardService, board: Board):
        """New subtasks are appended to the content block."""
        subtask = service.add_subtask("c1", "first step")
        assert subtask.text == "first step"
        assert "- [ ] First ^c1\n\t- [ ] first step\n- [ ] Second ^c2\n" in serialize(board)
