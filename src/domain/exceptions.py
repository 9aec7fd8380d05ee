"""
Domain-level exceptions for microsecond datetime values.

This module defines exceptions raised while constructing, parsing or mutating
MicroDateTime values. Every failure is raised synchronously to the immediate
caller; nothing in the domain recovers from them.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidCalendarValueException(DomainException):
    """
    Raised when a field combination does not resolve to a real date/time.

    Covers impossible dates (month 13, February 30th), unparseable free-form
    strings and out-of-range setter values.
    """

    def __init__(
        self,
        message: str,
        value: Any = None,
        field: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if value is not None:
            details["value"] = value
        if field:
            details["field"] = field

        super().__init__(message, details)
        self.value = value
        self.field = field


class InvalidSubSecondValueException(DomainException):
    """Raised when a microsecond value falls outside [0, 999999]."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Microseconds must be between 0 and 999999, got {value!r}",
            details={"value": value},
        )
        self.value = value


class InvalidFormatException(DomainException):
    """
    Raised when a string does not conform to an explicitly supplied pattern.

    Shape matches that resolve to impossible values (e.g. month 13 against
    "%Y-%m-%d") are reported here as well.
    """

    def __init__(self, format: str, value: str | None = None) -> None:
        message = f"Invalid date/time format: {format!r}"
        if value is not None:
            message += f" does not match {value!r}"

        super().__init__(message, details={"format": format, "value": value})
        self.format = format
        self.value = value


class InvalidTimezoneException(DomainException):
    """Raised when a timezone identifier cannot be resolved."""

    def __init__(self, timezone: Any) -> None:
        super().__init__(f"Invalid timezone: {timezone!r}", details={"timezone": str(timezone)})
        self.timezone = timezone


class InvalidLocaleException(DomainException):
    """Raised when a locale identifier is unknown to the formatter."""

    def __init__(self, locale: Any) -> None:
        super().__init__(f"Invalid locale: {locale!r}", details={"locale": str(locale)})
        self.locale = locale
