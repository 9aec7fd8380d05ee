"""
Domain time service interface for timezone resolution and calendar parsing.

The domain layer defines what calendar operations MicroDateTime needs and
infrastructure provides the implementation. Field validation and elapsed-time
arithmetic stay on the standard ``datetime`` type; everything that needs a
timezone database or natural-language parsing goes through this contract.
"""

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from typing import Any


class TimeService(ABC):
    """
    Abstract interface for the calendar/timezone engine.

    Implementations resolve timezone identifiers (including DST rules), parse
    free-form and pattern-constrained strings into aware datetimes and
    resolve relative expressions such as "next tuesday" against a reference
    instant.
    """

    @abstractmethod
    def get_timezone(self, timezone: Any) -> tzinfo:
        """
        Resolve a timezone identifier to a tzinfo.

        Args:
            timezone: IANA name, offset string, tzinfo object or None for the
                default timezone

        Returns:
            tzinfo: Resolved timezone

        Raises:
            InvalidTimezoneException: If the identifier is unknown
        """

    @abstractmethod
    def get_default_timezone(self) -> tzinfo:
        """
        Get the timezone used when callers do not supply one.

        Returns:
            tzinfo: Default timezone
        """

    @abstractmethod
    def now(self, timezone: tzinfo) -> datetime:
        """
        Get the current wall-clock time in the given timezone.

        Args:
            timezone: Target timezone

        Returns:
            datetime: Aware datetime for the current instant
        """

    @abstractmethod
    def localize(self, naive_datetime: datetime, timezone: tzinfo) -> datetime:
        """
        Attach a timezone to a naive wall-clock datetime.

        Wall times that do not exist in the timezone (DST gaps) are moved
        forward to the first valid instant.

        Args:
            naive_datetime: Datetime without timezone information
            timezone: Timezone the wall clock belongs to

        Returns:
            datetime: Aware datetime

        Raises:
            ValueError: If the datetime is already timezone-aware
        """

    @abstractmethod
    def parse(self, time_string: str, timezone: tzinfo) -> datetime:
        """
        Parse a free-form or canonical datetime string.

        Args:
            time_string: String to parse
            timezone: Timezone for strings that carry no offset

        Returns:
            datetime: Aware datetime

        Raises:
            InvalidCalendarValueException: If the string is not a real date/time
        """

    @abstractmethod
    def parse_with_format(self, format: str, time_string: str) -> datetime:
        """
        Parse a string strictly against a strptime pattern.

        Args:
            format: strptime pattern (e.g. "%Y-%m-%d")
            time_string: String to parse

        Returns:
            datetime: Parsed datetime, naive unless the pattern carries %z

        Raises:
            InvalidFormatException: If the string does not match the pattern
        """

    @abstractmethod
    def has_relative_keywords(self, time_string: str) -> bool:
        """
        Check whether a string is a relative expression.

        Args:
            time_string: String to inspect

        Returns:
            bool: True for strings such as "tomorrow" or "+2 days"
        """

    @abstractmethod
    def resolve_relative(self, time_string: str, reference: datetime) -> datetime:
        """
        Resolve a relative expression against a reference instant.

        Args:
            time_string: Relative expression (e.g. "next tuesday")
            reference: Aware datetime the expression is relative to

        Returns:
            datetime: Aware datetime in the reference's timezone

        Raises:
            InvalidCalendarValueException: If the expression cannot be resolved
        """
