"""Card domain model."""

from datetime import date, time
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from .recurrence import RecurrencePattern

# Metadata keys with first-class meaning
META_PROGRESS = "progress"
META_PROJECT = "project"
META_PRIORITY = "priority"

MetadataValue = str | int


class Subtask(BaseModel):
    """A checklist item inside a card's content block."""

    id: str
    text: str
    completed: bool = False


class Card(BaseModel):
    """Represents one checkbox item in a lane."""

    id: str
    title: str = ""  # Line text minus id marker and [key::value] tags
    completed: bool = False
    tags: list[str] = Field(default_factory=list)  # Without leading "#"
    due_date: date | None = None
    due_time: time | None = None
    recurrence: RecurrencePattern | None = None
    reminder: str | None = None  # e.g. "1h", "30m", "2d"
    notes: str | None = None
    note_path: str | None = None  # Dedicated note file, from [note::path]
    base_task_path: str | None = None  # External task record, from [base::path]
    content: str | None = None  # Verbatim indented block under the card line
    subtasks: list[Subtask] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    # Layout, kept for byte-stable serialization
    raw_line: str | None = Field(default=None, exclude=True, repr=False)
    leading: str = Field(default="", exclude=True, repr=False)

    # model_dump() of the card as it was parsed; None for new cards
    _origin: dict[str, Any] | None = PrivateAttr(default=None)

    @property
    def progress(self) -> int | None:
        value = self.metadata.get(META_PROGRESS)
        return value if isinstance(value, int) else None

    @property
    def project(self) -> str | None:
        value = self.metadata.get(META_PROJECT)
        return None if value is None else str(value)

    @property
    def priority(self) -> str | None:
        value = self.metadata.get(META_PRIORITY)
        return None if value is None else str(value)

    @property
    def due_time_text(self) -> str | None:
        """Due time as HH:mm."""
        return self.due_time.strftime("%H:%M") if self.due_time else None

    def mark_parsed(self) -> None:
        """Remember the current state as the parsed original."""
        self._origin = self.model_dump()

    @property
    def origin(self) -> dict[str, Any] | None:
        """State of the card right after parsing, if it was parsed."""
        return self._origin
