"""Recurrence phrase parsing, serialization and next-occurrence calculation."""

from __future__ import annotations

import calendar
import re
from collections.abc import Callable
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from ..models.recurrence import (
    WEEKDAY_ORDER,
    WEEKEND,
    WORKWEEK,
    DayOfWeek,
    Frequency,
    RecurrencePattern,
)
from ..utils.datetime import sunday_index

_WEEKDAY = r"(?:sunday|monday|tuesday|wednesday|thursday|friday|saturday)"

DAILY = re.compile(r"\b(?:every\s+day|daily)\b", re.IGNORECASE)
WEEKLY = re.compile(r"\b(?:every\s+week|weekly)\b", re.IGNORECASE)
MONTHLY = re.compile(r"\b(?:every\s+month|monthly)\b", re.IGNORECASE)
YEARLY = re.compile(r"\b(?:every\s+year|yearly|annually)\b", re.IGNORECASE)
EVERY_X_DAYS = re.compile(r"\bevery\s+(\d+)\s+days?\b", re.IGNORECASE)
EVERY_X_WEEKS = re.compile(r"\bevery\s+(\d+)\s+weeks?\b", re.IGNORECASE)
EVERY_X_MONTHS = re.compile(r"\bevery\s+(\d+)\s+months?\b", re.IGNORECASE)
EVERY_DAY_OF_WEEK = re.compile(
    rf"\bevery\s+{_WEEKDAY}(?:\s*,\s*{_WEEKDAY})*\b",
    re.IGNORECASE,
)
WEEKDAYS = re.compile(r"\b(?:every\s+weekday|weekdays)\b", re.IGNORECASE)
WEEKENDS = re.compile(r"\b(?:every\s+weekend|weekends)\b", re.IGNORECASE)

_DAY_NAME = re.compile(_WEEKDAY, re.IGNORECASE)

_Builder = Callable[[re.Match[str]], RecurrencePattern]


def _named_days(match: re.Match[str]) -> RecurrencePattern:
    days = [DayOfWeek(name.lower()) for name in _DAY_NAME.findall(match.group(0))]
    return RecurrencePattern(frequency=Frequency.WEEKLY, days_of_week=days)


# Order matters: the first matching phrase class wins.
_RULES: list[tuple[re.Pattern[str], _Builder]] = [
    (DAILY, lambda m: RecurrencePattern(frequency=Frequency.DAILY)),
    (WEEKLY, lambda m: RecurrencePattern(frequency=Frequency.WEEKLY)),
    (MONTHLY, lambda m: RecurrencePattern(frequency=Frequency.MONTHLY)),
    (YEARLY, lambda m: RecurrencePattern(frequency=Frequency.YEARLY)),
    (
        EVERY_X_DAYS,
        lambda m: RecurrencePattern(frequency=Frequency.DAILY, interval=int(m.group(1))),
    ),
    (
        EVERY_X_WEEKS,
        lambda m: RecurrencePattern(frequency=Frequency.WEEKLY, interval=int(m.group(1))),
    ),
    (
        EVERY_X_MONTHS,
        lambda m: RecurrencePattern(frequency=Frequency.MONTHLY, interval=int(m.group(1))),
    ),
    (EVERY_DAY_OF_WEEK, _named_days),
    (
        WEEKDAYS,
        lambda m: RecurrencePattern(
            frequency=Frequency.WEEKLY,
            days_of_week=[d for d in WEEKDAY_ORDER if d in WORKWEEK],
        ),
    ),
    (
        WEEKENDS,
        lambda m: RecurrencePattern(
            frequency=Frequency.WEEKLY,
            days_of_week=[DayOfWeek.SATURDAY, DayOfWeek.SUNDAY],
        ),
    ),
]


def find_recurrence(text: str) -> tuple[RecurrencePattern, re.Match[str]] | None:
    """Find the first recognized recurrence phrase in text."""
    for pattern, build in _RULES:
        match = pattern.search(text)
        if match:
            rule = build(match)
            rule.raw = match.group(0)
            return rule, match
    return None


def parse_recurrence(text: str) -> tuple[RecurrencePattern | None, str | None]:
    """Parse a recurrence phrase.

    Returns:
        (pattern, matched_phrase), or (None, None) when nothing matched

    Examples:
        >>> rule, phrase = parse_recurrence("every 2 weeks")
        >>> rule.frequency, rule.interval, phrase
        (<Frequency.WEEKLY: 'weekly'>, 2, 'every 2 weeks')
    """
    found = find_recurrence(text)
    if found is None:
        return None, None
    rule, match = found
    return rule, match.group(0)


_UNITS = {
    Frequency.DAILY: "day",
    Frequency.WEEKLY: "week",
    Frequency.MONTHLY: "month",
    Frequency.YEARLY: "year",
}


def serialize_recurrence(pattern: RecurrencePattern) -> str:
    """Text form of a rule, preferring the phrase it was parsed from."""
    if pattern.raw:
        return pattern.raw

    days = pattern.days_of_week or []
    if days:
        if len(days) == len(WORKWEEK) and set(days) == WORKWEEK:
            return "weekdays"
        if len(days) == len(WEEKEND) and set(days) == WEEKEND:
            return "weekends"
        return "every " + ", ".join(day.value for day in days)

    if pattern.step == 1:
        return pattern.frequency.value
    return f"every {pattern.step} {_UNITS[pattern.frequency]}s"


def next_occurrence(pattern: RecurrencePattern, from_date: date) -> date:
    """Next date the rule fires after from_date. Pure and deterministic."""
    step = pattern.step

    if pattern.frequency is Frequency.DAILY:
        return from_date + timedelta(days=step)

    if pattern.frequency is Frequency.WEEKLY:
        if pattern.days_of_week:
            current = sunday_index(from_date)
            targets = sorted({day.number for day in pattern.days_of_week})
            later = [d for d in targets if d > current]
            if later:
                return from_date + timedelta(days=later[0] - current)
            return from_date + timedelta(days=7 - current + targets[0])
        return from_date + timedelta(weeks=step)

    if pattern.frequency is Frequency.MONTHLY:
        result = from_date + relativedelta(months=step)
        if pattern.day_of_month:
            last_day = calendar.monthrange(result.year, result.month)[1]
            result = result.replace(day=min(pattern.day_of_month, last_day))
        return result

    return from_date + relativedelta(years=step)
