"""Scalar extractors for a single card line.

Each extractor is total: it returns the decoded value (or None) together
with the text that remains once the matched span is cut out. Nothing here
raises on unrecognized input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, time

from ..models.card import META_PROGRESS, META_PROJECT, MetadataValue
from ..models.recurrence import Frequency, RecurrencePattern
from .dates import find_natural_date
from .recurrence import find_recurrence, parse_recurrence

logger = logging.getLogger(__name__)

ID_MARKER = re.compile(r"\s*\^([\w-]+)\s*$")
INLINE_META = re.compile(r"\[(\w+)::([^\]]+)\]")
LEGACY_PROGRESS = re.compile(r"progress::(\d+)%?", re.IGNORECASE)
LEGACY_PROJECT = re.compile(r"project::([^\s\]]+)", re.IGNORECASE)
HASHTAG = re.compile(r"#[\w\-/]+")
ISO_DATE = re.compile(r"@(\d{4}-\d{2}-\d{2})(?:T(\d{2}:\d{2}))?")
TIME_ONLY = re.compile(r"@@(\d{2}:\d{2})")
RECUR_META = re.compile(r"\[recur::([^\]]+)\]")
REMIND_META = re.compile(r"\[remind::([^\]]+)\]")
ANY_BRACKET = re.compile(r"\[\w+::[^\]]*\]")

# Bracketed keys owned by dedicated extractors rather than the metadata bag
RESERVED_KEYS = frozenset({"recur", "remind"})
NOTE_KEY = "note"
BASE_KEY = "base"


def cut(text: str, start: int, end: int) -> str:
    """Remove text[start:end], joining the two sides with a single space."""
    left = text[:start].rstrip()
    right = text[end:].lstrip()
    if left and right:
        return f"{left} {right}"
    return left or right


def _cut_match(text: str, match: re.Match[str]) -> str:
    return cut(text, match.start(), match.end())


def mask_brackets(text: str) -> str:
    """Blank out [key::value] spans, keeping offsets, so phrases inside them are not matched."""
    return ANY_BRACKET.sub(lambda match: " " * len(match.group(0)), text)


def find_bare_recurrence(text: str) -> tuple[RecurrencePattern, re.Match[str]] | None:
    """Recurrence phrase outside any [key::value] tag."""
    return find_recurrence(mask_brackets(text))


@dataclass(frozen=True)
class IdResult:
    text: str
    id: str | None = None


@dataclass(frozen=True)
class MetadataResult:
    text: str
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    note_path: str | None = None
    base_task_path: str | None = None


@dataclass(frozen=True)
class DateResult:
    text: str
    due_date: date | None = None
    due_time: time | None = None
    matched: tuple[str, ...] = ()  # Phrases cut from the text


@dataclass(frozen=True)
class RecurrenceResult:
    text: str
    recurrence: RecurrencePattern | None = None
    bracketed: bool = False


@dataclass(frozen=True)
class ReminderResult:
    text: str
    reminder: str | None = None


def extract_id(text: str) -> IdResult:
    """Split a trailing ^identifier marker off the text."""
    match = ID_MARKER.search(text)
    if not match:
        return IdResult(text=text)
    return IdResult(text=text[: match.start()], id=match.group(1))


def _progress_value(raw: str) -> int:
    try:
        return int(raw.replace("%", "").strip())
    except ValueError:
        return 0


def extract_metadata(text: str) -> MetadataResult:
    """Pull [key::value] tags (and legacy progress::/project:: forms) out of the text."""
    metadata: dict[str, MetadataValue] = {}
    remaining = text

    for match in INLINE_META.finditer(text):
        key = match.group(1).lower()
        if key in RESERVED_KEYS:
            continue
        value = match.group(2).strip()
        metadata[key] = _progress_value(value) if key == META_PROGRESS else value
        remaining = _remove_first(remaining, match.group(0))

    if META_PROGRESS not in metadata:
        match = LEGACY_PROGRESS.search(remaining)
        if match:
            metadata[META_PROGRESS] = int(match.group(1))
            remaining = _cut_match(remaining, match)

    if not metadata.get(META_PROJECT):
        match = LEGACY_PROJECT.search(remaining)
        if match:
            metadata[META_PROJECT] = match.group(1)
            remaining = _cut_match(remaining, match)

    note_path = metadata.pop(NOTE_KEY, None)
    base_path = metadata.pop(BASE_KEY, None)
    return MetadataResult(
        text=remaining.strip(),
        metadata=metadata,
        note_path=None if note_path is None else str(note_path),
        base_task_path=None if base_path is None else str(base_path),
    )


def _remove_first(text: str, token: str) -> str:
    index = text.find(token)
    if index < 0:
        return text
    return cut(text, index, index + len(token))


def extract_tags(text: str) -> list[str]:
    """Hashtags in first-seen order, without "#". The text itself is left alone."""
    tags: list[str] = []
    for match in HASHTAG.finditer(text):
        tag = match.group(0)[1:]
        if tag not in tags:
            tags.append(tag)
    return tags


def _parse_iso_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_time(value: str | None) -> time | None:
    if not value:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def extract_date(
    text: str,
    parse_natural: bool = True,
    reference: date | None = None,
) -> DateResult:
    """Find the due date/time: @YYYY-MM-DD[THH:mm], then @@HH:mm, then a phrase."""
    remaining = text
    due_date: date | None = None
    due_time: time | None = None
    matched: list[str] = []

    match = ISO_DATE.search(mask_brackets(remaining))
    if match:
        due_date = _parse_iso_date(match.group(1))
        if due_date is not None:
            due_time = _parse_time(match.group(2))
            matched.append(match.group(0))
            remaining = _cut_match(remaining, match)
        else:
            logger.debug("Ignoring invalid date token: %s", match.group(0))

    if due_time is None:
        match = TIME_ONLY.search(mask_brackets(remaining))
        if match:
            due_time = _parse_time(match.group(1))
            if due_time is not None:
                matched.append(match.group(0))
                remaining = _cut_match(remaining, match)

    if due_date is None and parse_natural:
        found = find_natural_date(mask_brackets(remaining), reference)
        if found is not None:
            due_date, phrase = found
            start = phrase.start()
            # "@tomorrow" is the same phrase with the date trigger in front
            if start > 0 and remaining[start - 1] == "@":
                start -= 1
            matched.append(remaining[start : phrase.end()])
            remaining = cut(remaining, start, phrase.end())

    return DateResult(
        text=remaining,
        due_date=due_date,
        due_time=due_time,
        matched=tuple(matched),
    )


def extract_recurrence(text: str, enabled: bool = True) -> RecurrenceResult:
    """Find a bare recurrence phrase, falling back to [recur::phrase]."""
    if enabled:
        found = find_bare_recurrence(text)
        if found is not None:
            rule, match = found
            return RecurrenceResult(text=_cut_match(text, match), recurrence=rule)

    match = RECUR_META.search(text)
    if not match:
        return RecurrenceResult(text=text)

    phrase = match.group(1)
    rule, _ = parse_recurrence(phrase)
    if rule is None:
        # Keep phrases we cannot interpret so they survive serialization
        rule = RecurrencePattern(frequency=Frequency.DAILY)
    rule.raw = phrase
    return RecurrenceResult(text=_cut_match(text, match), recurrence=rule, bracketed=True)


def extract_reminder(text: str) -> ReminderResult:
    """Find a [remind::duration] tag; the duration stays an opaque string."""
    match = REMIND_META.search(text)
    if not match:
        return ReminderResult(text=text)
    return ReminderResult(text=_cut_match(text, match), reminder=match.group(1).strip())
