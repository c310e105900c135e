"""Split a board document into its top-level regions.

Layout, top to bottom:

    ---                      header block (key/value lines)
    kanban-plugin: basic
    ---
    free text                header content
    ## Lane title ^lane-id   lane sections, one of them may be "## Archive"
    - [ ] card ^card-id
    free text                pre-settings content (after the last card)
    %% kanban:settings       configuration block
    ```json
    {"lane-width": "300px"}
    ```
    %%
    free text                post-settings content (only when lanes follow)
    ## Lane title ^lane-id   more lane sections
    free text                footer content

Every region keeps its exact bytes, so joining them restores the input.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from ..models.board import ARCHIVE_TITLE, MARKER_KEY, MARKER_VALUE
from .card import is_card_line, line_text, scan_content_block, split_lines
from .extractors import extract_id

logger = logging.getLogger(__name__)

HEADER_FENCE = "---"
SECTION_HEADER = re.compile(r"^##\s+(.+)$")
SETTINGS_OPEN = "%% kanban:settings"
SETTINGS_CLOSE = "%%"
SETTINGS_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)
MARKER_LINE = re.compile(rf"^{re.escape(MARKER_KEY)}\s*:")

BASIC_HEADER = f"{HEADER_FENCE}\n{MARKER_KEY}: {MARKER_VALUE}\n{HEADER_FENCE}\n"


@dataclass
class Section:
    """One "## title" section and the lines under it."""

    header: str  # Raw header line
    title: str
    lane_id: str | None
    body: list[str] = field(default_factory=list)
    is_archive: bool = False


@dataclass
class Segments:
    """A document cut into regions. All strings are verbatim spans."""

    header_block: str = ""
    header_content: str = ""
    sections: list[Section] = field(default_factory=list)
    pre_settings: str = ""
    settings_block: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    post_settings: str = ""
    settings_index: int | None = None  # Sections before the settings block, if any follow it
    footer: str = ""


def parse_section_header(line: str) -> tuple[str, str | None] | None:
    """(title, lane id) of a "## title ^id" line, or None."""
    match = SECTION_HEADER.match(line_text(line))
    if not match:
        return None
    ident = extract_id(match.group(1).strip())
    return ident.text.strip(), ident.id


def is_archive_title(title: str) -> bool:
    return title.strip().lower() == ARCHIVE_TITLE.lower()


def _find_header_block(lines: list[str]) -> int:
    """Number of lines making up a leading "---" block (0 if none)."""
    if not lines or line_text(lines[0]).rstrip() != HEADER_FENCE:
        return 0
    for i in range(1, len(lines)):
        if line_text(lines[i]).rstrip() == HEADER_FENCE:
            return i + 1
    return 0


def _find_settings_block(lines: list[str]) -> tuple[int, int] | None:
    """(first, last) line index of the configuration block, if any."""
    for start, line in enumerate(lines):
        if line_text(line).strip() != SETTINGS_OPEN:
            continue
        for end in range(start + 1, len(lines)):
            if line_text(lines[end]).strip() == SETTINGS_CLOSE:
                return start, end
        logger.debug("Unterminated settings block at line %d kept as text", start)
        return None
    return None


def parse_settings_block(block: str) -> dict[str, Any]:
    """Decode the JSON payload of a configuration block. Bad JSON yields {}."""
    lines = block.splitlines()
    payload = "\n".join(lines[1:-1])
    fenced = SETTINGS_FENCE.match(payload)
    if fenced:
        payload = fenced.group(1)
    if not payload.strip():
        return {}
    try:
        settings = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse board settings JSON: %s", e)
        return {}
    if not isinstance(settings, dict):
        logger.warning("Board settings JSON is not an object, ignoring it")
        return {}
    return settings


def format_settings_block(settings: dict[str, Any]) -> str:
    """Configuration block for a settings record."""
    body = json.dumps(settings, indent=2, ensure_ascii=False)
    return f"{SETTINGS_OPEN}\n```json\n{body}\n```\n{SETTINGS_CLOSE}\n"


def has_marker_key(text: str) -> bool:
    """Whether the header block at the top of text declares the marker key."""
    lines = split_lines(text)
    size = _find_header_block(lines)
    return any(MARKER_LINE.match(line_text(line)) for line in lines[1 : max(size - 1, 1)])


def ensure_marker_key(header_block: str) -> str:
    """Inject the marker key as the first key of the header block if missing."""
    if not header_block:
        return BASIC_HEADER
    if has_marker_key(header_block):
        return header_block
    lines = split_lines(header_block)
    lines.insert(1, f"{MARKER_KEY}: {MARKER_VALUE}\n")
    return "".join(lines)


def _content_end(body: list[str]) -> int:
    """Index just past the last card block of a section body (0 without cards)."""
    end = 0
    i = 0
    while i < len(body):
        if is_card_line(body[i]):
            indent = len(line_text(body[i])) - len(line_text(body[i]).lstrip())
            last = scan_content_block(body, i, indent)
            end = last + 1
            i = last + 1
            continue
        i += 1
    return end


def _split_sections(lines: list[str]) -> tuple[str, list[Section]]:
    """Text before the first section header, and the sections from there on."""
    starts = [i for i, line in enumerate(lines) if SECTION_HEADER.match(line_text(line))]
    if not starts:
        return "".join(lines), []

    sections: list[Section] = []
    for n, start in enumerate(starts):
        stop = starts[n + 1] if n + 1 < len(starts) else len(lines)
        parsed = parse_section_header(lines[start])
        title, lane_id = parsed if parsed else ("", None)
        sections.append(
            Section(header=lines[start], title=title, lane_id=lane_id, body=lines[start + 1 : stop])
        )
    return "".join(lines[: starts[0]]), sections


def _cut_tail(sections: list[Section]) -> str:
    """Detach the loose text after the last card of the final section."""
    last = sections[-1]
    cut_at = _content_end(last.body)
    tail = "".join(last.body[cut_at:])
    last.body = last.body[:cut_at]
    return tail


def segment(text: str) -> Segments:
    """Cut a document into header block, sections, settings and loose text."""
    lines = split_lines(text)
    segments = Segments()

    header_len = _find_header_block(lines)
    segments.header_block = "".join(lines[:header_len])
    body = lines[header_len:]

    after: list[str] = []
    settings_at = _find_settings_block(body)
    if settings_at is not None:
        start, end = settings_at
        segments.settings_block = "".join(body[start : end + 1])
        segments.settings = parse_settings_block(segments.settings_block)
        after = body[end + 1 :]
        body = body[:start]

    segments.header_content, segments.sections = _split_sections(body)
    if segments.sections:
        tail = _cut_tail(segments.sections)
        if segments.settings_block is not None:
            segments.pre_settings = tail
        else:
            segments.footer = tail

    if after:
        leading, later = _split_sections(after)
        if later:
            segments.settings_index = len(segments.sections)
            segments.post_settings = leading
            segments.sections.extend(later)
            segments.footer = _cut_tail(later)
        else:
            segments.footer = leading

    archive_seen = False
    for section in segments.sections:
        section.is_archive = is_archive_title(section.title) and not archive_seen
        archive_seen = archive_seen or section.is_archive

    logger.debug(
        "Segmented document: %d sections, settings=%s",
        len(segments.sections),
        segments.settings_block is not None,
    )
    return segments
