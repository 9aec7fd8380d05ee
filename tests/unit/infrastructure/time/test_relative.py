"""Unit tests for relative date expression resolution."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from src.domain.exceptions import InvalidCalendarValueException
from src.infrastructure.time.relative import has_relative_keywords, resolve_relative

# Wednesday afternoon
REFERENCE = datetime(2024, 3, 6, 14, 30, 15, 123456, tzinfo=UTC)


class TestHasRelativeKeywords:
    @pytest.mark.parametrize(
        "text",
        [
            "now",
            "Today",
            "tomorrow noon",
            "next friday",
            "last month",
            "previous week",
            "first day of next month",
            "+2 days",
            "- 3 hours",
            "5 minutes ago",
        ],
    )
    def test_relative(self, text):
        assert has_relative_keywords(text)

    @pytest.mark.parametrize(
        "text",
        [
            "2024-03-10",
            "2024-03-10 13:20:33.678901",
            "2024-03-10T13:20:33+02:00",
            "March 10, 2024",
            "13:20",
            "nowhere",
        ],
    )
    def test_absolute(self, text):
        assert not has_relative_keywords(text)


class TestResolveRelative:
    """Test resolution against a fixed reference."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("noon", datetime(2024, 3, 6, 12, 0, tzinfo=UTC)),
            ("midnight", datetime(2024, 3, 6, tzinfo=UTC)),
            ("yesterday noon", datetime(2024, 3, 5, 12, 0, tzinfo=UTC)),
            ("monday", datetime(2024, 3, 11, tzinfo=UTC)),
            ("next wednesday", datetime(2024, 3, 13, tzinfo=UTC)),
            ("last wednesday", datetime(2024, 2, 28, tzinfo=UTC)),
            ("previous fri", datetime(2024, 3, 1, tzinfo=UTC)),
            ("next week", datetime(2024, 3, 13, 14, 30, 15, 123456, tzinfo=UTC)),
            ("last year", datetime(2023, 3, 6, 14, 30, 15, 123456, tzinfo=UTC)),
            ("-3 days", datetime(2024, 3, 3, 14, 30, 15, 123456, tzinfo=UTC)),
            ("2 fortnights ago", datetime(2024, 2, 7, 14, 30, 15, 123456, tzinfo=UTC)),
            ("+1500 milliseconds", datetime(2024, 3, 6, 14, 30, 16, 623456, tzinfo=UTC)),
            ("1 usec ago", datetime(2024, 3, 6, 14, 30, 15, 123455, tzinfo=UTC)),
            ("+1 month, +2 days", datetime(2024, 4, 8, 14, 30, 15, 123456, tzinfo=UTC)),
            ("first day of last month", datetime(2024, 2, 1, 14, 30, 15, 123456, tzinfo=UTC)),
            ("last day of this month", datetime(2024, 3, 31, 14, 30, 15, 123456, tzinfo=UTC)),
        ],
    )
    def test_expressions(self, text, expected):
        """Test supported expressions."""
        assert resolve_relative(text, REFERENCE) == expected

    def test_last_day_of_month_clamps(self):
        """Test "last day of" lands on the final day of shorter months."""
        value = resolve_relative("last day of last month", REFERENCE)
        assert (value.month, value.day) == (2, 29)

    def test_clock_after_keyword(self):
        """Test clock text is applied on top of the resolved date."""
        value = resolve_relative("tomorrow 22:15:30.5", REFERENCE)
        assert value == datetime(2024, 3, 7, 22, 15, 30, 500000, tzinfo=UTC)

    def test_keeps_reference_timezone(self):
        """Test wall-clock arithmetic happens in the reference timezone."""
        zone = ZoneInfo("Europe/Paris")
        value = resolve_relative("tomorrow", REFERENCE.astimezone(zone))

        assert value.tzinfo is zone
        assert (value.day, value.hour) == (7, 0)

    def test_unknown_words_raise(self):
        """Test leftover text that is not a date raises."""
        with pytest.raises(InvalidCalendarValueException, match="Unable to resolve"):
            resolve_relative("next blorp", REFERENCE)

    def test_out_of_range_raises(self):
        """Test arithmetic past year 9999 raises."""
        reference = datetime(9999, 12, 30, tzinfo=UTC)
        with pytest.raises(InvalidCalendarValueException, match="out of range"):
            resolve_relative("+5 days", reference)
