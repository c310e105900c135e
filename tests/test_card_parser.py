"""Tests for the card-line grammar and its serializer."""

from datetime import date, time

import pytest

from lanemark.models import Card, Frequency, RecurrencePattern, Subtask
from lanemark.parser.card import (
    CardSerializationError,
    ParseOptions,
    add_subtask_to_content,
    parse_card,
    parse_card_text,
    parse_subtasks_from_content,
    serialize_card,
    split_lines,
    update_subtask_in_content,
)

WEDNESDAY = date(2025, 1, 15)
OPTIONS = ParseOptions(reference_date=WEDNESDAY)


def _parse(text: str, ids, options: ParseOptions = OPTIONS) -> tuple[Card, int]:
    card, end = parse_card(split_lines(text), 0, ids, options)
    assert card is not None
    return card, end


class TestParseCard:
    """Tests for parse_card."""

    def test_due_datetime_and_id(self, ids):
        """A card line with an ISO date-time and an id marker."""
        card, _ = _parse("- [ ] Ship release @2025-03-10T14:30 ^task1\n", ids)
        assert card.id == "task1"
        assert card.due_date == date(2025, 3, 10)
        assert card.due_time_text == "14:30"
        assert card.completed is False

    def test_completed_either_case(self, ids):
        """[x] and [X] both mean completed."""
        assert _parse("- [x] Done ^a\n", ids)[0].completed
        assert _parse("- [X] Done ^a\n", ids)[0].completed

    def test_not_a_card(self, ids):
        """Lines without a checkbox are not cards."""
        card, end = parse_card(["Just text\n"], 0, ids)
        assert card is None
        assert end == 0

    def test_missing_id_comes_from_factory(self, ids):
        """Cards without a marker get a generated id."""
        card, _ = _parse("- [ ] No id yet\n", ids)
        assert card.id == "id1"

    def test_tags_and_metadata(self, ids):
        """Hashtags stay in the title; bracketed metadata does not."""
        card, _ = _parse("- [ ] Buy milk #errand [progress::40%] [project::Home] ^m\n", ids)
        assert card.tags == ["errand"]
        assert card.progress == 40
        assert card.project == "Home"
        assert "#errand" in card.title
        assert card.title == "Buy milk #errand"

    def test_date_text_stays_in_title(self, ids):
        """Date tokens are decoded but remain part of the title."""
        card, _ = _parse("- [ ] Call mom tomorrow ^c\n", ids)
        assert card.due_date == date(2025, 1, 16)
        assert card.title == "Call mom tomorrow"

    def test_bracketed_recurrence_leaves_title(self, ids):
        """[recur::] and [remind::] tags are cut from the title."""
        card, _ = _parse("- [ ] Water [recur::weekly] [remind::30m] ^w\n", ids)
        assert card.title == "Water"
        assert card.recurrence.frequency == Frequency.WEEKLY
        assert card.recurrence.raw == "weekly"
        assert card.reminder == "30m"

    def test_bare_recurrence_stays_in_title(self, ids):
        """A bare phrase is decoded and kept in the title."""
        card, _ = _parse("- [ ] Water plants every 2 weeks ^w\n", ids)
        assert card.title == "Water plants every 2 weeks"
        assert card.recurrence.interval == 2

    def test_options_disable_phrases(self, ids):
        """Natural dates and bare recurrence can be switched off."""
        options = ParseOptions(
            parse_natural_dates=False, parse_recurrence=False, reference_date=WEDNESDAY
        )
        card, _ = _parse("- [ ] Call tomorrow every week ^c\n", ids, options)
        assert card.due_date is None
        assert card.recurrence is None

    def test_note_and_base_links(self, ids):
        """note:: and base:: become links."""
        card, _ = _parse("- [ ] Read [note::Notes/read.md] [base::Tasks/read.md] ^r\n", ids)
        assert card.note_path == "Notes/read.md"
        assert card.base_task_path == "Tasks/read.md"
        assert card.metadata == {}


class TestContentBlock:
    """Tests for the indented block under a card line."""

    def test_blank_line_between_subtasks_stays_with_card(self, ids):
        """A blank line followed by more of the block belongs to the card."""
        text = "- [ ] A ^a\n\t- [ ] one\n\n\t- [x] two\n- [ ] B ^b\n"
        card, end = _parse(text, ids)
        assert end == 3
        assert [(s.text, s.completed) for s in card.subtasks] == [("one", False), ("two", True)]
        assert card.content == "\t- [ ] one\n\n\t- [x] two\n"

    def test_trailing_blank_lines_are_not_content(self, ids):
        """Blank lines not followed by more of the block end it."""
        card, end = _parse("- [ ] A ^a\n\t- [ ] one\n\nLoose text\n", ids)
        assert end == 1
        assert card.content == "\t- [ ] one\n"

    def test_notes(self, ids):
        """Quoted lines become notes."""
        card, _ = _parse("- [ ] A ^a\n\t> first\n\t> second\n", ids)
        assert card.notes == "first\nsecond"

    def test_sibling_card_is_not_content(self, ids):
        """A card at the same indent starts a new card."""
        card, end = _parse("- [ ] A ^a\n- [ ] B ^b\n", ids)
        assert end == 0
        assert card.content is None


class TestSerializeCard:
    """Tests for serialize_card."""

    def test_untouched_line_is_verbatim(self, ids):
        """An unedited card is written back exactly."""
        text = "  - [X]   Odd   spacing  #t @2025-01-01 ^c1\n    - [ ] sub\n"
        card, _ = _parse(text, ids)
        assert serialize_card(card, OPTIONS) == text

    def test_edited_title_keeps_indent_mark_and_id(self, ids):
        """A regenerated line keeps the indent, the [X] spelling and the id."""
        card, _ = _parse("  - [X] Old ^c1\n", ids)
        card.title = "New"
        assert serialize_card(card, OPTIONS) == "  - [X] New ^c1\n"

    def test_missing_id_is_written(self, ids):
        """A card read without a marker is written with its generated id."""
        card, _ = _parse("- [ ] Fresh\n", ids)
        assert serialize_card(card, OPTIONS) == "- [ ] Fresh ^id1\n"

    def test_changed_due_date_replaces_token(self, ids):
        """A changed date replaces the stale token in the title."""
        card, _ = _parse("- [ ] Ship @2025-03-10 ^t\n", ids)
        card.due_date = date(2025, 4, 1)
        assert serialize_card(card, OPTIONS) == "- [ ] Ship @2025-04-01 ^t\n"

    def test_changed_natural_date_becomes_iso(self, ids):
        """A phrase that no longer matches the due date is replaced."""
        card, _ = _parse("- [ ] Call mom tomorrow ^c\n", ids)
        card.due_date = date(2025, 2, 1)
        card.due_time = time(9, 0)
        assert serialize_card(card, OPTIONS) == "- [ ] Call mom @2025-02-01T09:00 ^c\n"

    def test_new_card_fields(self):
        """Fields not present in the title are appended in a fixed order."""
        card = Card(
            id="n1",
            title="Task",
            tags=["work"],
            metadata={"progress": 20, "project": "Apollo", "priority": "high"},
            recurrence=RecurrencePattern(frequency=Frequency.WEEKLY, interval=2),
            reminder="1h",
            due_date=date(2025, 5, 1),
        )
        assert serialize_card(card, OPTIONS) == (
            "- [ ] Task #work [progress::20%] [project::Apollo] [priority::high] "
            "[recur::every 2 weeks] [remind::1h] @2025-05-01 ^n1\n"
        )

    def test_generated_line_reads_back(self, ids):
        """A regenerated line parses back to the same fields."""
        card = Card(
            id="n1",
            title="Task",
            tags=["work"],
            metadata={"progress": 20},
            recurrence=RecurrencePattern(frequency=Frequency.MONTHLY),
            due_date=date(2025, 5, 1),
        )
        again, _ = _parse(serialize_card(card, OPTIONS), ids)
        assert again.title == "Task #work @2025-05-01"
        assert again.tags == ["work"]
        assert again.progress == 20
        assert again.recurrence.frequency == Frequency.MONTHLY
        assert again.due_date == date(2025, 5, 1)

    def test_card_without_id_cannot_be_written(self):
        """Serializing a card with an empty id is an error."""
        with pytest.raises(CardSerializationError):
            serialize_card(Card(id="", title="Nameless"))

    def test_subtask_toggle_is_patched_in_place(self, ids):
        """Completing a subtask flips only its checkbox."""
        card, _ = _parse("- [ ] A ^a\n    - [ ] one\n\n    - [ ] two\n", ids)
        card.subtasks[1].completed = True
        assert serialize_card(card, OPTIONS) == "- [ ] A ^a\n    - [ ] one\n\n    - [x] two\n"

    def test_structured_block_for_new_subtasks(self):
        """Subtasks and notes set in code are written as an indented block."""
        card = Card(
            id="c",
            title="T",
            subtasks=[Subtask(id="s1", text="a"), Subtask(id="s2", text="b", completed=True)],
            notes="remember",
        )
        assert serialize_card(card, OPTIONS) == "- [ ] T ^c\n\t- [ ] a\n\t- [x] b\n\t> remember\n"

    def test_edited_content_wins(self, ids):
        """A directly edited content block is written as given."""
        card, _ = _parse("- [ ] A ^a\n\t- [ ] one\n", ids)
        card.content = "\t> replaced\n"
        assert serialize_card(card, OPTIONS) == "- [ ] A ^a\n\t> replaced\n"


class TestParseCardText:
    """Tests for parse_card_text."""

    def test_plain_text_becomes_card(self, ids):
        """Composer text without a checkbox is read as an open card."""
        card = parse_card_text("Pay rent @2025-02-01 #home", ids, OPTIONS)
        assert card.id == "id1"
        assert card.tags == ["home"]
        assert card.due_date == date(2025, 2, 1)
        assert card.raw_line is None
        assert card.origin is None


class TestContentHelpers:
    """Tests for the content block helpers."""

    def test_parse_subtasks_from_content(self, ids):
        """Every checkbox line is a subtask."""
        subtasks = parse_subtasks_from_content("\t- [ ] a\n\t> note\n\t- [x] b\n", ids)
        assert [(s.text, s.completed) for s in subtasks] == [("a", False), ("b", True)]

    def test_update_subtask_in_content(self):
        """Only the n-th checkbox changes."""
        content = "\t- [ ] a\n\t> note\n\t- [ ] b\n"
        assert update_subtask_in_content(content, 1, True) == "\t- [ ] a\n\t> note\n\t- [x] b\n"
        assert update_subtask_in_content(content, 5, True) == content

    def test_add_subtask_to_content(self):
        """New subtasks are appended on their own line."""
        assert add_subtask_to_content(None, "x") == "\t- [ ] x\n"
        assert add_subtask_to_content("\t- [ ] a", "x") == "\t- [ ] a\n\t- [ ] x\n"
