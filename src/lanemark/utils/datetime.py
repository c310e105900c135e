"""Utilities for date handling."""

import re
from datetime import date, datetime

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

# Longest tokens first so "YYYY" wins over "YY" and "MMMM" over "MM"
_FORMAT_TOKEN = re.compile(r"YYYY|YY|MMMM|MMM|MM|M|DDDD|DDD|DD|D|HH|H|mm|m|ss|s")


def today() -> date:
    """Get the current local calendar date."""
    return date.today()


def sunday_index(value: date) -> int:
    """Day of week with Sunday=0 ... Saturday=6."""
    return (value.weekday() + 1) % 7


def format_date(value: date | datetime, pattern: str) -> str:
    """
    Format a date with a moment.js-style pattern.

    Example: format_date(date(2025, 3, 9), "DDD, MMM D YYYY") -> "Sun, Mar 9 2025"
    """
    dt = value if isinstance(value, datetime) else datetime(value.year, value.month, value.day)
    day_name = DAY_NAMES[sunday_index(dt.date())]
    month_name = MONTH_NAMES[dt.month - 1]

    tokens = {
        "YYYY": f"{dt.year:04d}",
        "YY": f"{dt.year:04d}"[-2:],
        "MMMM": month_name,
        "MMM": month_name[:3],
        "MM": f"{dt.month:02d}",
        "M": str(dt.month),
        "DDDD": day_name,
        "DDD": day_name[:3],
        "DD": f"{dt.day:02d}",
        "D": str(dt.day),
        "HH": f"{dt.hour:02d}",
        "H": str(dt.hour),
        "mm": f"{dt.minute:02d}",
        "m": str(dt.minute),
        "ss": f"{dt.second:02d}",
        "s": str(dt.second),
    }
    return _FORMAT_TOKEN.sub(lambda match: tokens[match.group(0)], pattern)
