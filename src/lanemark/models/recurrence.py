"""Recurrence rule model."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class Frequency(str, Enum):
    """Base unit of a recurrence rule."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DayOfWeek(str, Enum):
    """Named weekday, indexed Sunday=0 through Saturday=6."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def number(self) -> int:
        """Sunday-based weekday index."""
        return WEEKDAY_ORDER.index(self)

    @classmethod
    def from_index(cls, index: int) -> "DayOfWeek":
        """Get the weekday for a Sunday-based index."""
        return WEEKDAY_ORDER[index % 7]


WEEKDAY_ORDER = list(DayOfWeek)
WORKWEEK = frozenset(
    {
        DayOfWeek.MONDAY,
        DayOfWeek.TUESDAY,
        DayOfWeek.WEDNESDAY,
        DayOfWeek.THURSDAY,
        DayOfWeek.FRIDAY,
    }
)
WEEKEND = frozenset({DayOfWeek.SATURDAY, DayOfWeek.SUNDAY})


class RecurrencePattern(BaseModel):
    """A repeating schedule attached to a card.

    `raw` keeps the phrase the rule was parsed from so serialization can
    re-emit the user's own wording.
    """

    frequency: Frequency
    interval: int | None = None  # every N units, None means 1
    days_of_week: list[DayOfWeek] | None = None
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    end_date: date | None = None
    count: int | None = None
    raw: str | None = None

    @property
    def step(self) -> int:
        """Effective interval."""
        return self.interval or 1
