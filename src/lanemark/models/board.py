"""Board and lane models."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import frontmatter
from pydantic import BaseModel, Field, PrivateAttr

from .card import Card

logger = logging.getLogger(__name__)

MARKER_KEY = "kanban-plugin"
MARKER_VALUE = "basic"
ARCHIVE_TITLE = "Archive"
# settings_anchor value when the archive section directly follows the settings block
ARCHIVE_ANCHOR = "^archive"

DEFAULT_BOARD_SETTINGS: dict[str, Any] = {
    "parse-natural-dates": True,
    "parse-recurrence": True,
    "new-card-insertion-method": "append",
    "archive-with-date": False,
    "prepend-archive-format": "YYYY-MM-DD",
}


class Lane(BaseModel):
    """A titled column of cards. Identity is `id`, never `title`."""

    id: str
    title: str
    cards: list[Card] = Field(default_factory=list)

    # Layout: the header line as read, and the untouched lines around the cards
    raw_header: str | None = Field(default=None, exclude=True, repr=False)
    preamble: str = Field(default="\n", exclude=True, repr=False)
    trailing: str = Field(default="\n", exclude=True, repr=False)

    _origin: tuple[str, str] | None = PrivateAttr(default=None)

    def mark_parsed(self) -> None:
        """Remember the header state as parsed."""
        self._origin = (self.id, self.title)

    @property
    def header_untouched(self) -> bool:
        return self._origin == (self.id, self.title)

    def index_of(self, card_id: str) -> int:
        """Position of a card in this lane, or -1."""
        for i, card in enumerate(self.cards):
            if card.id == card_id:
                return i
        return -1


class Board(BaseModel):
    """A parsed board document."""

    lanes: list[Lane] = Field(default_factory=list)
    archive: list[Card] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)

    # Preserved spans of the source document
    header_block: str = ""  # "---" delimited key/value block, verbatim
    header_content: str = ""  # Between the header block and the first lane
    pre_settings_content: str = ""  # After the last card, before the settings block
    post_settings_content: str = ""  # After the settings block, before the lanes that follow it
    footer_content: str = ""  # After everything else

    # Layout of the archive section and the settings block
    archive_header: str | None = Field(default=None, exclude=True, repr=False)
    archive_preamble: str = Field(default="\n", exclude=True, repr=False)
    archive_trailing: str = Field(default="\n", exclude=True, repr=False)
    archive_index: int | None = Field(default=None, exclude=True, repr=False)
    raw_settings: str | None = Field(default=None, exclude=True, repr=False)
    # Id of the lane written right after the settings block (None: block comes last)
    settings_anchor: str | None = Field(default=None, exclude=True, repr=False)

    _settings_origin: dict[str, Any] | None = PrivateAttr(default=None)
    # (parse_natural_dates, parse_recurrence, reference_date) the board was read with
    _parse_context: tuple[bool, bool, date | None] | None = PrivateAttr(default=None)

    def mark_parsed(
        self,
        parse_natural_dates: bool = True,
        parse_recurrence: bool = True,
        reference_date: date | None = None,
    ) -> None:
        """Remember the settings record and grammar switches as parsed."""
        self._settings_origin = dict(self.settings)
        self._parse_context = (parse_natural_dates, parse_recurrence, reference_date)

    @property
    def parse_context(self) -> tuple[bool, bool, date | None] | None:
        return self._parse_context

    @property
    def settings_untouched(self) -> bool:
        return self._settings_origin is not None and self._settings_origin == self.settings

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Board setting with built-in defaults."""
        if key in self.settings:
            return self.settings[key]
        return DEFAULT_BOARD_SETTINGS.get(key, default)

    @property
    def header_metadata(self) -> dict[str, Any]:
        """Key/value pairs of the header block (empty if unparseable)."""
        if not self.header_block:
            return {}
        try:
            metadata, _ = frontmatter.parse(self.header_block)
        except Exception as e:
            logger.debug("Header block is not valid YAML: %s", e)
            return {}
        return dict(metadata)

    def get_lane(self, lane_id: str) -> Lane | None:
        for lane in self.lanes:
            if lane.id == lane_id:
                return lane
        return None

    def all_cards(self) -> list[Card]:
        """Cards of every lane in board order, followed by archived cards."""
        cards = [card for lane in self.lanes for card in lane.cards]
        return cards + list(self.archive)
