"""Board assembly from a document, and the inverse."""

from __future__ import annotations

import logging
from datetime import date

from ..models.board import ARCHIVE_ANCHOR, ARCHIVE_TITLE, Board, Lane
from ..models.card import Card
from ..utils.ids import IdFactory, generate_id
from .card import ParseOptions, is_card_line, line_ending, parse_card, serialize_card
from .document import (
    Section,
    ensure_marker_key,
    format_settings_block,
    parse_section_header,
    segment,
)

logger = logging.getLogger(__name__)

DEFAULT_LANES = ("To Do", "In Progress", "Done")


def _options(
    board_settings: dict,
    parse_natural_dates: bool | None,
    parse_recurrence: bool | None,
    reference_date: date | None = None,
) -> ParseOptions:
    if parse_natural_dates is None:
        parse_natural_dates = bool(board_settings.get("parse-natural-dates", True))
    if parse_recurrence is None:
        parse_recurrence = bool(board_settings.get("parse-recurrence", True))
    return ParseOptions(
        parse_natural_dates=parse_natural_dates,
        parse_recurrence=parse_recurrence,
        reference_date=reference_date,
    )


def board_options(board: Board, reference_date: date | None = None) -> ParseOptions:
    """Grammar switches for a board: those it was parsed with, else its settings."""
    if board.parse_context is None:
        return _options(board.settings, None, None, reference_date)
    natural, recurrence, parsed_reference = board.parse_context
    return ParseOptions(
        parse_natural_dates=natural,
        parse_recurrence=recurrence,
        reference_date=reference_date or parsed_reference,
    )


def _parse_section(
    section: Section, id_factory: IdFactory, options: ParseOptions
) -> tuple[list[Card], str, str]:
    """(cards, preamble, trailing) of a section body."""
    body = section.body
    cards: list[Card] = []
    preamble = ""
    consumed = 0
    i = 0
    while i < len(body):
        if not is_card_line(body[i]):
            i += 1
            continue
        card, end = parse_card(body, i, id_factory, options)
        if card is None:  # pragma: no cover - is_card_line guards this
            i += 1
            continue
        gap = "".join(body[consumed:i])
        if cards:
            card.leading = gap
        else:
            preamble = gap
        cards.append(card)
        consumed = i = end + 1

    if not cards:
        return cards, "".join(body), ""
    return cards, preamble, "".join(body[consumed:])


def parse(
    text: str,
    *,
    id_factory: IdFactory = generate_id,
    parse_natural_dates: bool | None = None,
    parse_recurrence: bool | None = None,
    reference_date: date | None = None,
) -> Board:
    """
    Parse a board document.

    Never raises on malformed input: anything not recognized is kept as
    text and written back unchanged by serialize().

    Args:
        text: Full document text
        id_factory: Source of identifiers for lanes/cards/subtasks lacking one
        parse_natural_dates: Override the board's "parse-natural-dates" setting
        parse_recurrence: Override the board's "parse-recurrence" setting
        reference_date: Date that natural-language phrases are relative to
    """
    segments = segment(text)
    options = _options(segments.settings, parse_natural_dates, parse_recurrence, reference_date)

    board = Board(
        settings=segments.settings,
        header_block=segments.header_block,
        header_content=segments.header_content,
        pre_settings_content=segments.pre_settings,
        post_settings_content=segments.post_settings,
        footer_content=segments.footer,
        raw_settings=segments.settings_block,
    )

    for n, section in enumerate(segments.sections):
        cards, preamble, trailing = _parse_section(section, id_factory, options)
        if section.is_archive:
            board.archive = cards
            board.archive_header = section.header
            board.archive_preamble = preamble
            board.archive_trailing = trailing
            board.archive_index = len(board.lanes)
            if n == segments.settings_index:
                board.settings_anchor = ARCHIVE_ANCHOR
            continue

        lane = Lane(
            id=section.lane_id or id_factory(),
            title=section.title,
            cards=cards,
            raw_header=section.header,
            preamble=preamble,
            trailing=trailing,
        )
        lane.mark_parsed()
        board.lanes.append(lane)
        if n == segments.settings_index:
            board.settings_anchor = lane.id
        logger.debug("Parsed lane %r (%s) with %d cards", lane.title, lane.id, len(cards))

    board.mark_parsed(options.parse_natural_dates, options.parse_recurrence, reference_date)
    return board


class _Writer:
    """Accumulates output spans, keeping every span on its own lines."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def write(self, text: str) -> None:
        if not text:
            return
        if self._parts and not self._parts[-1].endswith("\n"):
            self._parts.append("\n")
        self._parts.append(text)

    def blank_line(self) -> None:
        """Make sure what follows is separated from existing output by an empty line."""
        if not self._parts:
            return
        tail = "".join(self._parts[-2:])
        if tail.endswith("\n\n"):
            return
        self._parts.append("\n" if tail.endswith("\n") else "\n\n")

    def getvalue(self) -> str:
        return "".join(self._parts)


def _header_untouched(lane: Lane) -> bool:
    if lane.raw_header is None or not lane.header_untouched:
        return False
    parsed = parse_section_header(lane.raw_header)
    return parsed is not None and parsed[1] == lane.id


def _write_cards(out: _Writer, cards: list[Card], options: ParseOptions) -> None:
    for card in cards:
        out.write(card.leading)
        out.write(serialize_card(card, options))


def _write_lane(out: _Writer, lane: Lane, options: ParseOptions) -> None:
    if _header_untouched(lane):
        out.write(lane.raw_header or "")
    else:
        if lane.raw_header is None:
            out.blank_line()
        ending = line_ending(lane.raw_header or "") or "\n"
        out.write(f"## {lane.title} ^{lane.id}{ending}")
    out.write(lane.preamble)
    _write_cards(out, lane.cards, options)
    out.write(lane.trailing)


def _write_archive(out: _Writer, board: Board, options: ParseOptions) -> None:
    if board.archive_header is None:
        out.blank_line()
        out.write(f"## {ARCHIVE_TITLE}\n")
    else:
        out.write(board.archive_header)
    out.write(board.archive_preamble)
    _write_cards(out, board.archive, options)
    out.write(board.archive_trailing)


def _write_settings(out: _Writer, board: Board) -> None:
    out.write(board.pre_settings_content)
    if board.raw_settings is not None and board.settings_untouched:
        out.write(board.raw_settings)
    elif board.settings:
        if board.raw_settings is None:
            out.blank_line()
        out.write(format_settings_block(board.settings))
    out.write(board.post_settings_content)


def _section_order(board: Board) -> list[tuple[str, Lane | None]]:
    """(anchor key, lane) per section in document order; the archive has no lane."""
    order: list[tuple[str, Lane | None]] = [(lane.id, lane) for lane in board.lanes]
    if board.archive or board.archive_header is not None:
        at = board.archive_index if board.archive_index is not None else len(order)
        order.insert(min(at, len(order)), (ARCHIVE_ANCHOR, None))
    return order


def serialize(board: Board, *, reference_date: date | None = None) -> str:
    """
    Write a board back to document text.

    Untouched cards, lane headers and the settings block are emitted
    exactly as they were read; only edited parts are regenerated.
    """
    options = board_options(board, reference_date)
    out = _Writer()

    out.write(ensure_marker_key(board.header_block))
    out.write(board.header_content)

    settings_written = False
    for key, lane in _section_order(board):
        if not settings_written and key == board.settings_anchor:
            _write_settings(out, board)
            settings_written = True
        if lane is None:
            _write_archive(out, board, options)
        else:
            _write_lane(out, lane, options)

    if not settings_written:
        _write_settings(out, board)

    out.write(board.footer_content)
    return out.getvalue()


def create_empty_board(id_factory: IdFactory = generate_id) -> Board:
    """A new board with the default To Do / In Progress / Done lanes."""
    return Board(lanes=[Lane(id=id_factory(), title=title) for title in DEFAULT_LANES])
