"""Natural-language due date resolution.

Recognized phrases, tried in this order (first match wins):

    today, tomorrow, yesterday
    next <weekday>     the weekday in the following Sunday-based week
    this <weekday>     the weekday in the current Sunday-based week
    last <weekday>     most recent occurrence strictly before today
    in N days / in N weeks / in N months
    N days ago
    next week          Monday of the following week
    next month         1st of next month
    end of week        next Sunday (a week out when today is Sunday)
    end of month       last day of the current month
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Callable
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from ..models.recurrence import DayOfWeek
from ..utils.datetime import sunday_index

_WEEKDAY = r"(sunday|monday|tuesday|wednesday|thursday|friday|saturday)"

TODAY = re.compile(r"\btoday\b", re.IGNORECASE)
TOMORROW = re.compile(r"\btomorrow\b", re.IGNORECASE)
YESTERDAY = re.compile(r"\byesterday\b", re.IGNORECASE)
NEXT_DAY = re.compile(rf"\bnext\s+{_WEEKDAY}\b", re.IGNORECASE)
THIS_DAY = re.compile(rf"\bthis\s+{_WEEKDAY}\b", re.IGNORECASE)
LAST_DAY = re.compile(rf"\blast\s+{_WEEKDAY}\b", re.IGNORECASE)
IN_X_DAYS = re.compile(r"\bin\s+(\d+)\s+days?\b", re.IGNORECASE)
IN_X_WEEKS = re.compile(r"\bin\s+(\d+)\s+weeks?\b", re.IGNORECASE)
IN_X_MONTHS = re.compile(r"\bin\s+(\d+)\s+months?\b", re.IGNORECASE)
X_DAYS_AGO = re.compile(r"\b(\d+)\s+days?\s+ago\b", re.IGNORECASE)
NEXT_WEEK = re.compile(r"\bnext\s+week\b", re.IGNORECASE)
NEXT_MONTH = re.compile(r"\bnext\s+month\b", re.IGNORECASE)
END_OF_WEEK = re.compile(r"\bend\s+of\s+week\b", re.IGNORECASE)
END_OF_MONTH = re.compile(r"\bend\s+of\s+month\b", re.IGNORECASE)


def _weekday_number(name: str) -> int:
    return DayOfWeek(name.lower()).number


def next_weekday(today: date, target: int) -> date:
    """Target weekday of the following week (Sunday-based weeks)."""
    return today + timedelta(days=target - sunday_index(today) + 7)


def this_weekday(today: date, target: int) -> date:
    """Target weekday of the current week (Sunday-based weeks)."""
    return today + timedelta(days=target - sunday_index(today))


def last_weekday(today: date, target: int) -> date:
    """Most recent target weekday strictly before today."""
    delta = sunday_index(today) - target
    if delta <= 0:
        delta += 7
    return today - timedelta(days=delta)


def _end_of_week(today: date) -> date:
    delta = (7 - sunday_index(today)) % 7 or 7
    return today + timedelta(days=delta)


def _end_of_month(today: date) -> date:
    return today.replace(day=calendar.monthrange(today.year, today.month)[1])


Resolver = Callable[[re.Match[str], date], date]

# Order matters: the first matching phrase class wins.
_RULES: list[tuple[re.Pattern[str], Resolver]] = [
    (TODAY, lambda m, t: t),
    (TOMORROW, lambda m, t: t + timedelta(days=1)),
    (YESTERDAY, lambda m, t: t - timedelta(days=1)),
    (NEXT_DAY, lambda m, t: next_weekday(t, _weekday_number(m.group(1)))),
    (THIS_DAY, lambda m, t: this_weekday(t, _weekday_number(m.group(1)))),
    (LAST_DAY, lambda m, t: last_weekday(t, _weekday_number(m.group(1)))),
    (IN_X_DAYS, lambda m, t: t + timedelta(days=int(m.group(1)))),
    (IN_X_WEEKS, lambda m, t: t + timedelta(weeks=int(m.group(1)))),
    (IN_X_MONTHS, lambda m, t: t + relativedelta(months=int(m.group(1)))),
    (X_DAYS_AGO, lambda m, t: t - timedelta(days=int(m.group(1)))),
    (NEXT_WEEK, lambda m, t: next_weekday(t, DayOfWeek.MONDAY.number)),
    (NEXT_MONTH, lambda m, t: t.replace(day=1) + relativedelta(months=1)),
    (END_OF_WEEK, lambda m, t: _end_of_week(t)),
    (END_OF_MONTH, lambda m, t: _end_of_month(t)),
]


def find_natural_date(
    text: str, reference: date | None = None
) -> tuple[date, re.Match[str]] | None:
    """Resolve the first recognized phrase in text, returning the date and its match."""
    today = reference or date.today()
    for pattern, resolve in _RULES:
        match = pattern.search(text)
        if match:
            return resolve(match, today), match
    return None


def parse_natural_date(
    text: str, reference: date | None = None
) -> tuple[str | None, str | None]:
    """Resolve a phrase to an ISO date.

    Args:
        text: Free text that may contain a date phrase
        reference: Date treated as "today" (defaults to the current date)

    Returns:
        (iso_date, matched_substring), or (None, None) when nothing matched

    Examples:
        >>> parse_natural_date("call mom next monday", date(2025, 1, 15))
        ('2025-01-20', 'next monday')
    """
    found = find_natural_date(text, reference)
    if found is None:
        return None, None
    resolved, match = found
    return resolved.isoformat(), match.group(0)


def format_relative_date(value: date, reference: date | None = None) -> str:
    """Human-friendly distance from reference to value, for display."""
    today = reference or date.today()
    diff = (value - today).days

    if diff == 0:
        return "Today"
    if diff == 1:
        return "Tomorrow"
    if diff == -1:
        return "Yesterday"
    if 1 < diff < 7:
        return f"In {diff} days"
    if diff == 7:
        return "In 1 week"
    if 7 < diff < 14:
        return f"In {diff} days"
    if 14 <= diff < 30:
        return f"In {diff // 7} weeks"
    if -7 < diff < -1:
        return f"{-diff} days ago"
    if diff == -7:
        return "1 week ago"
    if -30 < diff < -7:
        return f"{-diff // 7} weeks ago"
    return value.isoformat()


__all__ = [
    "find_natural_date",
    "format_relative_date",
    "last_weekday",
    "next_weekday",
    "parse_natural_date",
    "this_weekday",
]
