"""Template service for creating cards from template files."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

import frontmatter

from ..models import META_PROGRESS, Card
from ..parser.card import ParseOptions, parse_card_text
from ..utils import IdFactory, format_date, generate_id

logger = logging.getLogger(__name__)

TEMPLATE_VARIABLE = re.compile(r"\{\{([^}]+)\}\}")
HEADING = re.compile(r"^#\s+(.+)$", re.MULTILINE)

# Front matter keys copied into card metadata
TEMPLATE_METADATA_KEYS = (
    "progress",
    "project",
    "priority",
    "status",
    "assignee",
    "estimate",
    "spent",
)

DEFAULT_CARD_TITLE = "New card"

CONTEXT_OPTIONS = frozenset(
    {"title", "project", "lane", "board", "due_date", "priority", "tags", "custom_vars"}
)


class TemplateService:
    """Service for loading and applying card templates."""

    TEMPLATE_SUFFIX = ".md"

    def __init__(
        self,
        templates_path: Path | None = None,
        id_factory: IdFactory = generate_id,
        clock=datetime.now,
    ) -> None:
        """Initialize the template service.

        Args:
            templates_path: Directory holding template files, if any
            id_factory: Source of card identifiers
            clock: Zero-argument callable returning the current datetime
        """
        self.templates_path = templates_path
        self._id_factory = id_factory
        self._clock = clock

    def get_template(self, name: str) -> str | None:
        """
        Load the raw text of a template file.

        Args:
            name: Template file name, with or without the .md suffix

        Returns:
            Template text or None if not found
        """
        if self.templates_path is None:
            return None

        filename = name if name.endswith(self.TEMPLATE_SUFFIX) else f"{name}{self.TEMPLATE_SUFFIX}"
        template_file = self.templates_path / filename
        if not template_file.exists():
            logger.debug("Template not found: %s", template_file)
            return None

        try:
            return template_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to load template %s: %s", template_file, e)
            return None

    def create_context(
        self,
        title: str = "",
        project: str | None = None,
        lane: str | None = None,
        board: str | None = None,
        due_date: str | None = None,
        priority: str | None = None,
        tags: list[str] | str | None = None,
        custom_vars: dict[str, str] | None = None,
    ) -> dict[str, str | None]:
        """Variables available to a template, stamped with the current time."""
        now = self._clock()
        if isinstance(tags, list):
            tags = ", ".join(tags)

        context: dict[str, str | None] = {
            "title": title,
            "date": now.date().isoformat(),
            "time": now.strftime("%H:%M"),
            "datetime": now.isoformat(),
            "project": project,
            "lane": lane,
            "board": board,
            "due_date": due_date,
            "priority": priority,
            "tags": tags,
            "id": self._id_factory(),
        }
        context.update(custom_vars or {})
        return context

    def substitute(self, content: str, context: dict[str, Any]) -> str:
        """
        Replace {{variable}}, {{variable|default}} and {{date:FORMAT}}.

        Unknown variables without a default are left as written.
        """

        def replace(match: re.Match[str]) -> str:
            expr = match.group(1).strip()

            if expr.startswith("date:"):
                return format_date(self._clock(), expr[len("date:") :])

            if "|" in expr:
                name, default = (part.strip() for part in expr.split("|", 1))
                value = context.get(name)
                return default if value is None or value == "" else str(value)

            value = context.get(expr)
            return match.group(0) if value is None else str(value)

        return TEMPLATE_VARIABLE.sub(replace, content)

    def create_card_from_template(
        self,
        content: str,
        default_metadata: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
    ) -> Card:
        """
        Build a card from template text.

        The title is the first "# heading" of the template body (or its
        first line). Known front matter keys become card metadata on top of
        default_metadata; the template body becomes the card notes.
        """
        default_metadata = dict(default_metadata or {})
        options = dict(context or {})
        custom_vars = {k: options.pop(k) for k in list(options) if k not in CONTEXT_OPTIONS}
        custom_vars.update(options.pop("custom_vars", None) or {})
        options.setdefault("project", default_metadata.get("project"))
        variables = self.create_context(**options, custom_vars=custom_vars)

        processed = self.substitute(content, variables)
        try:
            post = frontmatter.loads(processed)
            template_metadata, body = dict(post.metadata), post.content
        except Exception as e:
            logger.warning("Template front matter is not valid YAML: %s", e)
            template_metadata, body = {}, processed

        heading = HEADING.search(body)
        if heading:
            title = heading.group(1).strip()
        else:
            first_line = body.strip().split("\n", 1)[0].strip()
            title = first_line or DEFAULT_CARD_TITLE

        card_id = variables["id"] or self._id_factory()
        card = parse_card_text(
            title,
            id_factory=lambda: card_id,
            options=ParseOptions(parse_natural_dates=False, parse_recurrence=False),
        )

        metadata = {**default_metadata, **card.metadata}
        for key in TEMPLATE_METADATA_KEYS:
            if key not in template_metadata:
                continue
            value = template_metadata[key]
            if key == META_PROGRESS:
                try:
                    metadata[key] = int(str(value).replace("%", "").strip())
                except ValueError:
                    logger.debug("Ignoring template progress value: %r", value)
            else:
                metadata[key] = str(value)
        card.metadata = metadata
        card.notes = body.strip() or None

        logger.info("Card created from template: %s", card.id)
        return card
