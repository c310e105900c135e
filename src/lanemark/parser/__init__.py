"""Markdown board grammar: parsing and serialization."""

from .board import create_empty_board, parse, serialize
from .card import (
    CardSerializationError,
    ParseOptions,
    add_subtask_to_content,
    parse_card,
    parse_card_text,
    parse_subtasks_from_content,
    serialize_card,
    update_subtask_in_content,
)
from .dates import format_relative_date, parse_natural_date
from .document import BASIC_HEADER, has_marker_key
from .recurrence import next_occurrence, parse_recurrence, serialize_recurrence

__all__ = [
    "BASIC_HEADER",
    "CardSerializationError",
    "ParseOptions",
    "add_subtask_to_content",
    "create_empty_board",
    "format_relative_date",
    "has_marker_key",
    "next_occurrence",
    "parse",
    "parse_card",
    "parse_card_text",
    "parse_natural_date",
    "parse_recurrence",
    "parse_subtasks_from_content",
    "serialize",
    "serialize_card",
    "serialize_recurrence",
    "update_subtask_in_content",
]
