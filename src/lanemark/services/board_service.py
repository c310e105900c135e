"""Service for in-memory board edits."""

from __future__ import annotations

import logging
from datetime import date

from ..models import Board, Card, Lane, Subtask
from ..parser.board import board_options
from ..parser.card import ParseOptions, add_subtask_to_content, parse_card_text
from ..utils import IdFactory, format_date, generate_id, today

logger = logging.getLogger(__name__)

INSERT_PREPEND = "prepend"


class BoardServiceError(LookupError):
    """Raised when an edit refers to something that is not on the board."""

    pass


class LaneNotFoundError(BoardServiceError):
    pass


class CardNotFoundError(BoardServiceError):
    pass


class BoardService:
    """
    Edits a parsed board in place.

    Every edit goes through the models, so serialize() regenerates only the
    lines an edit touched.
    """

    def __init__(
        self,
        board: Board,
        id_factory: IdFactory = generate_id,
        reference_date: date | None = None,
    ) -> None:
        self.board = board
        self._id_factory = id_factory
        self._reference_date = reference_date

    def _options(self) -> ParseOptions:
        return board_options(self.board, self._reference_date)

    # --- Lookup ---

    def find_lane(self, lane_id: str) -> Lane | None:
        return self.board.get_lane(lane_id)

    def find_card(self, card_id: str) -> Card | None:
        """Find a card in any lane or in the archive."""
        located = self._locate(card_id)
        if located is None:
            return None
        cards, index = located
        return cards[index]

    def _locate(self, card_id: str) -> tuple[list[Card], int] | None:
        for lane in self.board.lanes:
            index = lane.index_of(card_id)
            if index >= 0:
                return lane.cards, index
        for index, card in enumerate(self.board.archive):
            if card.id == card_id:
                return self.board.archive, index
        return None

    def _require_lane(self, lane_id: str) -> Lane:
        lane = self.board.get_lane(lane_id)
        if lane is None:
            raise LaneNotFoundError(f"Lane not found: {lane_id}")
        return lane

    def _require_card(self, card_id: str) -> tuple[list[Card], int]:
        located = self._locate(card_id)
        if located is None:
            raise CardNotFoundError(f"Card not found: {card_id}")
        return located

    def _take_card(self, card_id: str) -> Card:
        cards, index = self._require_card(card_id)
        card = cards.pop(index)
        card.leading = ""
        return card

    # --- Lanes ---

    def add_lane(self, title: str, index: int | None = None) -> Lane:
        """Add a lane (at the end unless an index is given)."""
        lane = Lane(id=self._id_factory(), title=title.strip())
        if index is None:
            self.board.lanes.append(lane)
        else:
            self.board.lanes.insert(index, lane)
        logger.info("Lane added: %s (%s)", lane.title, lane.id)
        return lane

    def rename_lane(self, lane_id: str, title: str) -> Lane:
        lane = self._require_lane(lane_id)
        old_title = lane.title
        lane.title = title.strip()
        logger.info("Lane renamed: %s (%r -> %r)", lane_id, old_title, lane.title)
        return lane

    def remove_lane(self, lane_id: str) -> Lane:
        """Remove a lane together with its cards."""
        lane = self._require_lane(lane_id)
        index = self.board.lanes.index(lane)
        self.board.lanes.remove(lane)
        if self.board.archive_index is not None and self.board.archive_index > index:
            self.board.archive_index -= 1
        if self.board.settings_anchor == lane_id:
            following = self.board.lanes[index] if index < len(self.board.lanes) else None
            self.board.settings_anchor = following.id if following else None
        logger.info("Lane removed: %s (%d cards)", lane_id, len(lane.cards))
        return lane

    def move_lane(self, lane_id: str, index: int) -> Lane:
        """Move a lane to a new position (clamped to the lane list)."""
        lane = self._require_lane(lane_id)
        self.board.lanes.remove(lane)
        index = max(0, min(index, len(self.board.lanes)))
        self.board.lanes.insert(index, lane)
        logger.debug("Lane moved: %s -> position %d", lane_id, index)
        return lane

    # --- Cards ---

    def add_card(self, lane_id: str, text: str) -> Card:
        """
        Create a card from composer text such as "Pay rent tomorrow #home".

        The text goes through the card grammar, so tags, dates, recurrence
        and metadata are picked up. Placement follows the board's
        "new-card-insertion-method" setting.
        """
        lane = self._require_lane(lane_id)
        card = parse_card_text(text, self._id_factory, self._options())
        if self.board.get_setting("new-card-insertion-method") == INSERT_PREPEND:
            lane.cards.insert(0, card)
        else:
            lane.cards.append(card)
        logger.info("Card added: %s in lane %s", card.id, lane_id)
        return card

    def update_card_title(self, card_id: str, text: str) -> Card:
        """Replace the card line text, re-reading tags, dates and metadata from it."""
        cards, index = self._require_card(card_id)
        card = cards[index]
        parsed = parse_card_text(text, self._id_factory, self._options())
        card.title = parsed.title
        card.tags = parsed.tags
        card.due_date = parsed.due_date
        card.due_time = parsed.due_time
        card.recurrence = parsed.recurrence
        card.reminder = parsed.reminder
        card.note_path = parsed.note_path
        card.base_task_path = parsed.base_task_path
        card.metadata = parsed.metadata
        logger.info("Card updated: %s", card_id)
        return card

    def remove_card(self, card_id: str) -> Card:
        card = self._take_card(card_id)
        logger.info("Card removed: %s", card_id)
        return card

    def move_card(self, card_id: str, to_lane_id: str, index: int | None = None) -> Card:
        """Move a card to another lane (at the end unless an index is given)."""
        lane = self._require_lane(to_lane_id)
        card = self._take_card(card_id)
        if index is None:
            lane.cards.append(card)
        else:
            lane.cards.insert(max(0, min(index, len(lane.cards))), card)
        logger.info("Card moved: %s -> %s", card_id, to_lane_id)
        return card

    def reorder_card(self, card_id: str, delta: int) -> bool:
        """
        Move a card up or down within its lane.

        Args:
            card_id: Card to move
            delta: -1 to move up, 1 to move down

        Returns:
            True if the card was moved
        """
        cards, current_idx = self._require_card(card_id)
        new_idx = current_idx + delta
        if new_idx < 0 or new_idx >= len(cards):
            logger.debug("reorder_card: at boundary, cannot move: %s", card_id)
            return False

        cards[current_idx], cards[new_idx] = cards[new_idx], cards[current_idx]
        # Gap lines stay at their positions in the lane
        cards[current_idx].leading, cards[new_idx].leading = (
            cards[new_idx].leading,
            cards[current_idx].leading,
        )
        logger.debug("Card reordered: %s (pos %d -> %d)", card_id, current_idx, new_idx)
        return True

    def toggle_card(self, card_id: str) -> Card:
        cards, index = self._require_card(card_id)
        card = cards[index]
        card.completed = not card.completed
        logger.info("Card %s: %s", "completed" if card.completed else "reopened", card_id)
        return card

    def archive_card(self, card_id: str) -> Card:
        """Move a card to the archive, prefixing the archive date if the board asks for it."""
        cards, index = self._require_card(card_id)
        if cards is self.board.archive:
            return cards[index]

        card = self._take_card(card_id)
        if self.board.get_setting("archive-with-date"):
            pattern = str(self.board.get_setting("prepend-archive-format"))
            stamp = format_date(self._reference_date or today(), pattern)
            card.title = f"{stamp} {card.title}".strip()
        self.board.archive.append(card)
        logger.info("Card archived: %s", card_id)
        return card

    def unarchive_card(self, card_id: str, lane_id: str | None = None) -> Card:
        """Move an archived card back to a lane (the first lane by default)."""
        if lane_id is None:
            if not self.board.lanes:
                raise LaneNotFoundError("Board has no lanes")
            lane = self.board.lanes[0]
        else:
            lane = self._require_lane(lane_id)

        if all(card.id != card_id for card in self.board.archive):
            raise CardNotFoundError(f"Card not archived: {card_id}")
        card = self._take_card(card_id)
        lane.cards.append(card)
        logger.info("Card unarchived: %s -> %s", card_id, lane.id)
        return card

    # --- Subtasks ---

    def toggle_subtask(self, card_id: str, subtask_index: int) -> Subtask:
        cards, index = self._require_card(card_id)
        card = cards[index]
        if not 0 <= subtask_index < len(card.subtasks):
            raise BoardServiceError(f"Card {card_id} has no subtask {subtask_index}")
        subtask = card.subtasks[subtask_index]
        subtask.completed = not subtask.completed
        logger.debug("Subtask %d of %s -> %s", subtask_index, card_id, subtask.completed)
        return subtask

    def add_subtask(self, card_id: str, text: str) -> Subtask:
        """Append an unchecked subtask to the card's content block."""
        cards, index = self._require_card(card_id)
        card = cards[index]
        subtask = Subtask(id=self._id_factory(), text=text.strip())
        card.subtasks.append(subtask)
        card.content = add_subtask_to_content(card.content, subtask.text)
        logger.debug("Subtask added to %s: %s", card_id, subtask.text)
        return subtask
