"""Tests for natural-language date resolution and date formatting."""

from datetime import date, datetime

import pytest

from lanemark.parser.dates import format_relative_date, parse_natural_date
from lanemark.utils import format_date

WEDNESDAY = date(2025, 1, 15)


class TestParseNaturalDate:
    """Tests for parse_natural_date (reference: Wednesday 2025-01-15)."""

    @pytest.mark.parametrize(
        ("phrase", "expected"),
        [
            ("today", "2025-01-15"),
            ("tomorrow", "2025-01-16"),
            ("yesterday", "2025-01-14"),
            ("next monday", "2025-01-20"),
            ("next friday", "2025-01-24"),
            ("this monday", "2025-01-13"),
            ("this friday", "2025-01-17"),
            ("last monday", "2025-01-13"),
            ("last wednesday", "2025-01-08"),
            ("in 3 days", "2025-01-18"),
            ("in 1 day", "2025-01-16"),
            ("in 2 weeks", "2025-01-29"),
            ("in 1 month", "2025-02-15"),
            ("2 days ago", "2025-01-13"),
            ("next week", "2025-01-20"),
            ("next month", "2025-02-01"),
            ("end of week", "2025-01-19"),
            ("end of month", "2025-01-31"),
        ],
    )
    def test_phrases(self, phrase: str, expected: str):
        """Each phrase class resolves relative to the reference date."""
        resolved, matched = parse_natural_date(f"do it {phrase}", WEDNESDAY)
        assert resolved == expected
        assert matched == phrase

    def test_case_insensitive(self):
        """Phrases match regardless of case; the original casing is reported."""
        assert parse_natural_date("Next Monday", WEDNESDAY) == ("2025-01-20", "Next Monday")

    def test_no_phrase(self):
        """Text without a phrase resolves to nothing."""
        assert parse_natural_date("buy milk", WEDNESDAY) == (None, None)

    def test_earlier_phrase_class_wins(self):
        """When several phrases appear, the first class in precedence order wins."""
        resolved, matched = parse_natural_date("next monday or tomorrow", WEDNESDAY)
        assert (resolved, matched) == ("2025-01-16", "tomorrow")

    def test_end_of_week_on_sunday(self):
        """On a Sunday, end of week is the following Sunday."""
        assert parse_natural_date("end of week", date(2025, 1, 19))[0] == "2025-01-26"

    def test_month_arithmetic_clamps(self):
        """Adding months to the 31st lands on the last day of a shorter month."""
        assert parse_natural_date("in 1 month", date(2025, 1, 31))[0] == "2025-02-28"

    def test_next_month_in_december(self):
        """next month rolls over the year."""
        assert parse_natural_date("next month", date(2025, 12, 10))[0] == "2026-01-01"


class TestFormatRelativeDate:
    """Tests for format_relative_date."""

    @pytest.mark.parametrize(
        ("days", "expected"),
        [
            (0, "Today"),
            (1, "Tomorrow"),
            (-1, "Yesterday"),
            (3, "In 3 days"),
            (7, "In 1 week"),
            (10, "In 10 days"),
            (14, "In 2 weeks"),
            (-3, "3 days ago"),
            (-7, "1 week ago"),
            (-14, "2 weeks ago"),
        ],
    )
    def test_relative(self, days: int, expected: str):
        """Near dates are described relative to the reference."""
        value = date.fromordinal(WEDNESDAY.toordinal() + days)
        assert format_relative_date(value, WEDNESDAY) == expected

    def test_far_dates_fall_back_to_iso(self):
        """Dates a month or more away are shown as ISO dates."""
        assert format_relative_date(date(2025, 3, 1), WEDNESDAY) == "2025-03-01"


class TestFormatDate:
    """Tests for format_date patterns."""

    def test_iso_pattern(self):
        """YYYY-MM-DD gives a zero-padded ISO date."""
        assert format_date(date(2025, 3, 9), "YYYY-MM-DD") == "2025-03-09"

    def test_names(self):
        """Day and month names, long and short."""
        assert format_date(date(2025, 3, 9), "DDDD, MMMM D") == "Sunday, March 9"
        assert format_date(date(2025, 3, 9), "DDD MMM YY") == "Sun Mar 25"

    def test_time_tokens(self):
        """Time tokens use the datetime's clock."""
        assert format_date(datetime(2025, 1, 2, 7, 5, 3), "HH:mm:ss H:m:s") == "07:05:03 7:5:3"

    def test_literal_text_is_kept(self):
        """Characters that are not tokens pass through."""
        assert format_date(date(2025, 1, 2), "[Week of] M/D") == "[Week of] 1/2"
