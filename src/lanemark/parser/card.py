"""Card line grammar: one checkbox line plus its indented content block."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

from ..models.card import META_PROGRESS, META_PROJECT, Card, Subtask
from ..utils.ids import IdFactory, generate_id
from .extractors import (
    RECUR_META,
    REMIND_META,
    cut,
    extract_date,
    extract_id,
    extract_metadata,
    extract_recurrence,
    extract_reminder,
    extract_tags,
    find_bare_recurrence,
)
from .recurrence import serialize_recurrence

logger = logging.getLogger(__name__)

CHECKBOX = re.compile(r"^(\s*)-\s*\[([ xX])\]\s*(.*)$")
SUBTASK = re.compile(r"^(\s+)-\s*\[([ xX])\]\s*(.*)$")
NOTE = re.compile(r"^\s*>\s?(.*)$")
SUBTASK_MARK = re.compile(r"^(\s*-\s*\[)([ xX])(\].*)$")
ANY_CHECKBOX = re.compile(r"^\s*-\s*\[([ xX])\]\s*(.*)$")

# Card fields rendered on the checkbox line itself
CONTENT_FIELDS = frozenset({"content", "notes", "subtasks"})

CONTENT_INDENT = "\t"


class CardSerializationError(ValueError):
    """Raised when a card cannot be written back as text."""

    pass


@dataclass(frozen=True)
class ParseOptions:
    """Switches for the optional parts of the card grammar."""

    parse_natural_dates: bool = True
    parse_recurrence: bool = True
    reference_date: date | None = None


DEFAULT_OPTIONS = ParseOptions()


def line_text(line: str) -> str:
    """A line without its terminator."""
    return line.rstrip("\r\n")


def split_lines(text: str) -> list[str]:
    """Split on "\\n" only, keeping terminators, so "".join() is the identity."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def line_ending(line: str) -> str:
    """The terminator of a line ("" for an unterminated last line)."""
    return line[len(line_text(line)) :]


def indent_of(line: str) -> int:
    text = line_text(line)
    return len(text) - len(text.lstrip())


def is_card_line(line: str) -> bool:
    return CHECKBOX.match(line_text(line)) is not None


def _belongs(line: str, card_indent: int) -> bool:
    """Whether a non-blank line is part of the content block of a card."""
    text = line_text(line)
    if NOTE.match(text):
        return True
    subtask = SUBTASK.match(text)
    if subtask and len(subtask.group(1)) > card_indent:
        return True
    return indent_of(text) > card_indent


def scan_content_block(lines: list[str], index: int, card_indent: int) -> int:
    """
    Index of the last line of the content block of the card at `index`.

    Two cursors: `i` walks the block; on a blank line `j` looks ahead to the
    next non-blank line, and the blank run is kept only if that line belongs
    to the card too.
    """
    end = index
    i = index + 1
    while i < len(lines):
        if line_text(lines[i]).strip():
            if not _belongs(lines[i], card_indent):
                break
            end = i
            i += 1
            continue

        j = i + 1
        while j < len(lines) and not line_text(lines[j]).strip():
            j += 1
        if j >= len(lines) or not _belongs(lines[j], card_indent):
            break
        end = j
        i = j + 1
    return end


def _classify_block(
    block: list[str], card_indent: int, id_factory: IdFactory
) -> tuple[list[str], list[Subtask]]:
    notes: list[str] = []
    subtasks: list[Subtask] = []
    for line in block:
        text = line_text(line)
        note = NOTE.match(text)
        if note:
            notes.append(note.group(1).strip())
            continue
        subtask = SUBTASK.match(text)
        if subtask and len(subtask.group(1)) > card_indent:
            subtasks.append(
                Subtask(
                    id=id_factory(),
                    text=subtask.group(3).strip(),
                    completed=subtask.group(2).lower() == "x",
                )
            )
    return notes, subtasks


def parse_card(
    lines: list[str],
    index: int,
    id_factory: IdFactory = generate_id,
    options: ParseOptions = DEFAULT_OPTIONS,
) -> tuple[Card | None, int]:
    """
    Parse the card whose checkbox line is lines[index].

    Lines keep their terminators. Returns (card, index of the last line of
    the card's content block), or (None, index) when the line is not a card.
    """
    line = lines[index]
    match = CHECKBOX.match(line_text(line))
    if not match:
        return None, index

    card_indent = len(match.group(1))
    completed = match.group(2).lower() == "x"

    ident = extract_id(match.group(3).strip())
    meta = extract_metadata(ident.text)
    tags = extract_tags(meta.text)
    dated = extract_date(meta.text, options.parse_natural_dates, options.reference_date)
    recurring = extract_recurrence(dated.text, options.parse_recurrence)
    reminder = extract_reminder(recurring.text)

    # Bracketed recur/remind tags leave the title like other [key::value] tags
    title = meta.text
    if recurring.bracketed:
        title = _cut_pattern(title, RECUR_META)
    if reminder.reminder is not None:
        title = _cut_pattern(title, REMIND_META)

    end = scan_content_block(lines, index, card_indent)
    block = lines[index + 1 : end + 1]
    notes, subtasks = _classify_block(block, card_indent, id_factory)

    card = Card(
        id=ident.id or id_factory(),
        title=title,
        completed=completed,
        tags=tags,
        due_date=dated.due_date,
        due_time=dated.due_time,
        recurrence=recurring.recurrence,
        reminder=reminder.reminder,
        notes="\n".join(notes) if notes else None,
        note_path=meta.note_path,
        base_task_path=meta.base_task_path,
        content="".join(block) if block else None,
        subtasks=subtasks,
        metadata=meta.metadata,
        raw_line=line,
    )
    card.mark_parsed()
    return card, end


def parse_card_text(
    text: str,
    id_factory: IdFactory = generate_id,
    options: ParseOptions = DEFAULT_OPTIONS,
) -> Card:
    """Build a new card from composer text such as "Pay rent @2025-02-01 #home"."""
    source = text if CHECKBOX.match(text.split("\n", 1)[0]) else f"- [ ] {text}"
    lines = split_lines(source)
    card, _ = parse_card(lines, 0, id_factory, options)
    if card is None:  # pragma: no cover - the prefix above always matches
        raise CardSerializationError(f"Not a card: {text!r}")
    card.raw_line = None
    card._origin = None
    return card


def _cut_pattern(text: str, pattern: re.Pattern[str]) -> str:
    match = pattern.search(text)
    if not match:
        return text
    return cut(text, match.start(), match.end())


# --- Serialization ---


def _line_fields(dump: dict) -> dict:
    return {k: v for k, v in dump.items() if k not in CONTENT_FIELDS}


def _line_untouched(card: Card) -> bool:
    origin = card.origin
    if origin is None or card.raw_line is None:
        return False
    # A line that lacked the marker must be rewritten to carry the generated id
    if not line_text(card.raw_line).rstrip().endswith(f"^{card.id}"):
        return False
    return _line_fields(origin) == _line_fields(card.model_dump())


def _date_token(card: Card) -> str | None:
    if card.due_date and card.due_time:
        return f"@{card.due_date.isoformat()}T{card.due_time_text}"
    if card.due_date:
        return f"@{card.due_date.isoformat()}"
    if card.due_time:
        return f"@@{card.due_time_text}"
    return None


def _reconcile_date(text: str, card: Card, options: ParseOptions) -> str:
    """Make the date tokens in text resolve to the card's due date/time."""
    found = extract_date(text, options.parse_natural_dates, options.reference_date)
    if (found.due_date, found.due_time) == (card.due_date, card.due_time):
        return text

    # Whatever the text said is stale: drop it and state the card's own value
    text = found.text
    token = _date_token(card)
    return f"{text} {token}".strip() if token else text


def _reconcile_recurrence(text: str, card: Card, options: ParseOptions) -> str:
    """Make the recurrence phrase in text match the card's rule."""
    wanted = card.recurrence
    found = find_bare_recurrence(text) if options.parse_recurrence else None

    if found is not None:
        rule, match = found
        if wanted is not None and (
            (wanted.raw or "").lower() == match.group(0).lower()
            or wanted.model_dump(exclude={"raw"}) == rule.model_dump(exclude={"raw"})
        ):
            return text
        text = cut(text, match.start(), match.end())

    if wanted is None or "recur::" in text:
        return text
    return f"{text} [recur::{serialize_recurrence(wanted)}]".strip()


def _has_tag(text: str, tag: str) -> bool:
    return re.search(rf"#{re.escape(tag)}(?![\w\-/])", text) is not None


def format_card_body(card: Card, options: ParseOptions = DEFAULT_OPTIONS) -> str:
    """Text after the checkbox: title plus any fields not already in it, and the id."""
    if not card.id:
        raise CardSerializationError("Card has no identifier")

    content = card.title.strip()
    lowered = content.lower()

    for tag in card.tags:
        if not _has_tag(content, tag):
            content = f"{content} #{tag}".strip()

    extra: list[str] = []
    if card.progress is not None and "progress::" not in lowered:
        extra.append(f"[{META_PROGRESS}::{card.progress}%]")
    if card.project and "project::" not in lowered:
        extra.append(f"[{META_PROJECT}::{card.project}]")
    if card.note_path and "note::" not in lowered:
        extra.append(f"[note::{card.note_path}]")
    if card.base_task_path and "base::" not in lowered:
        extra.append(f"[base::{card.base_task_path}]")
    for key, value in card.metadata.items():
        if key in (META_PROGRESS, META_PROJECT):
            continue
        if f"{key.lower()}::" not in lowered:
            extra.append(f"[{key}::{value}]")
    if extra:
        content = f"{content} {' '.join(extra)}".strip()

    content = _reconcile_recurrence(content, card, options)
    if card.reminder and "remind::" not in content.lower():
        content = f"{content} [remind::{card.reminder}]".strip()
    content = _reconcile_date(content, card, options)

    return f"{content} ^{card.id}".strip()


def format_card_line(card: Card, options: ParseOptions = DEFAULT_OPTIONS) -> str:
    """The checkbox line of a card, including its terminator."""
    if _line_untouched(card):
        return card.raw_line or ""

    indent = ""
    mark = "x" if card.completed else " "
    ending = "\n"
    if card.raw_line is not None:
        raw = CHECKBOX.match(line_text(card.raw_line))
        if raw:
            indent = raw.group(1)
            if card.completed and raw.group(2) == "X":
                mark = "X"
        ending = line_ending(card.raw_line)
    return f"{indent}- [{mark}] {format_card_body(card, options)}{ending}"


def _structured_block(card: Card, indent: str) -> str | None:
    lines = [
        f"{indent}{CONTENT_INDENT}- [{'x' if s.completed else ' '}] {s.text}\n"
        for s in card.subtasks
    ]
    if card.notes:
        lines.extend(f"{indent}{CONTENT_INDENT}> {note}\n" for note in card.notes.split("\n"))
    return "".join(lines) or None


def reconcile_content(card: Card) -> str | None:
    """
    Content block to write under the card line.

    A directly edited content block wins. Otherwise subtask completion
    toggles are patched into the existing block, and any other change to
    subtasks or notes rebuilds the block from the structured fields.
    """
    origin = card.origin
    indent = ""
    if card.raw_line is not None:
        indent = line_text(card.raw_line)[: indent_of(card.raw_line)]

    if card.content is not None:
        if origin is None or card.content != origin.get("content"):
            return card.content

        current = [(s.text, s.completed) for s in card.subtasks]
        parsed = [(s["text"], s["completed"]) for s in origin.get("subtasks", [])]
        if current == parsed and card.notes == origin.get("notes"):
            return card.content

        if [t for t, _ in current] == [t for t, _ in parsed] and card.notes == origin.get("notes"):
            patched = card.content
            for i, ((_, done), (_, was_done)) in enumerate(zip(current, parsed, strict=True)):
                if done != was_done:
                    patched = update_subtask_in_content(patched, i, done)
            return patched

        logger.debug("Rebuilding content block of card %s", card.id)

    return _structured_block(card, indent)


def serialize_card(card: Card, options: ParseOptions = DEFAULT_OPTIONS) -> str:
    """Card line followed by its content block."""
    line = format_card_line(card, options)
    content = reconcile_content(card)
    if not content:
        return line
    if not line.endswith("\n"):
        line += "\n"
    return line + content


# --- Content block helpers ---


def parse_subtasks_from_content(
    content: str | None, id_factory: IdFactory = generate_id
) -> list[Subtask]:
    """Every checkbox line in a content block, in order."""
    subtasks: list[Subtask] = []
    for line in (content or "").splitlines():
        match = ANY_CHECKBOX.match(line)
        if match:
            subtasks.append(
                Subtask(
                    id=id_factory(),
                    text=match.group(2).strip(),
                    completed=match.group(1).lower() == "x",
                )
            )
    return subtasks


def update_subtask_in_content(content: str, subtask_index: int, completed: bool) -> str:
    """Set the checkbox of the n-th checkbox line of a content block, in place."""
    lines = content.splitlines(keepends=True)
    count = 0
    for i, line in enumerate(lines):
        match = SUBTASK_MARK.match(line_text(line))
        if not match:
            continue
        if count == subtask_index:
            mark = "x" if completed else " "
            lines[i] = f"{match.group(1)}{mark}{match.group(3)}{line_ending(line)}"
            break
        count += 1
    return "".join(lines)


def add_subtask_to_content(content: str | None, text: str) -> str:
    """Append an unchecked subtask line to a content block."""
    line = f"{CONTENT_INDENT}- [ ] {text}\n"
    if not content or not content.strip():
        return line
    if not content.endswith("\n"):
        content += "\n"
    return content + line
