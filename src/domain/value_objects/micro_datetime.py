"""MicroDateTime value object for timestamps with microsecond fidelity."""

from __future__ import annotations

# Standard library imports
import logging
import math
import re
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any, ClassVar, Self

from src.domain.exceptions import (
    InvalidCalendarValueException,
    InvalidFormatException,
    InvalidSubSecondValueException,
)
from src.domain.interfaces.datetime_adapter import DatetimeAdapter, DatetimeLike
from src.domain.interfaces.formatter import LocalizedFormatter
from src.domain.interfaces.time_service import TimeService

from .base import ComparableValueObject

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MICROSECONDS_PER_SECOND = 1_000_000
_MAX_MICROSECOND = 999_999
_FIELDS = ("year", "month", "day", "hour", "minute", "second", "microsecond")

# strptime directives that fix each date field (%j fixes month and day)
_DATE_DIRECTIVES = {"year": set("YyG"), "month": set("mbBj"), "day": set("dj")}
_DIRECTIVE = re.compile(r"%(.)")


def _missing_date_fields(format: str) -> list[str]:
    directives = set(_DIRECTIVE.findall(format.replace("%%", "")))
    return [field for field, codes in _DATE_DIRECTIVES.items() if not directives & codes]


def _canonical(value: datetime) -> str:
    """Render the wall-clock fields of a datetime in the canonical machine format."""
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}.{value.microsecond:06d}"
    )


def _epoch_microseconds(value: datetime) -> int:
    delta = value - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * _MICROSECONDS_PER_SECOND + delta.microseconds


def _epoch_float(value: datetime) -> float:
    delta = value - _EPOCH
    return (delta.days * 86_400 + delta.seconds) + delta.microseconds / _MICROSECONDS_PER_SECOND


def _to_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        if field == "microsecond":
            raise InvalidSubSecondValueException(value) from e
        raise InvalidCalendarValueException(
            f"Invalid {field} value: {value!r}", value=value, field=field
        ) from e


class MicroDateTime(ComparableValueObject):
    """Immutable timezone-aware datetime that never drops microseconds.

    Every operation that looks like a mutation (``set_*``, ``add_*``,
    ``sub_*``) returns a new instance. Equality, ordering and hashing are by
    instant, so the same moment expressed in two timezones compares equal.

    The string form is the canonical machine format (six-digit microseconds,
    never localized) and parses back to an equal value. Human renderings go
    through the localized formatter with three fractional digits.
    """

    # Canonical machine format. Do not change.
    FORMAT_DATETIME: ClassVar[str] = "%Y-%m-%d %H:%M:%S.%f"
    # Localized (LDML) formats. Do not change.
    FORMAT_INTL: ClassVar[str] = "yyyy-MM-dd HH:mm:ss.SSS"
    FORMAT_DATE_INTL: ClassVar[str] = "yyyy-MM-dd"
    FORMAT_TIME_INTL: ClassVar[str] = "HH:mm:ss.SSS"
    FORMAT_MICROSECOND_INTL: ClassVar[str] = "SSSSSS"

    _FIELD_RANGES: ClassVar[dict[str, tuple[int, int]]] = {
        "month": (1, 12),
        "day": (1, 31),
        "hour": (0, 23),
        "minute": (0, 59),
        "second": (0, 59),
    }

    _time_service: ClassVar[TimeService | None] = None
    _formatter: ClassVar[LocalizedFormatter | None] = None
    _test_now: ClassVar[MicroDateTime | None] = None

    __slots__ = ("_datetime", "_locale")

    def __init__(
        self,
        time: str | None = None,
        timezone: Any = None,
        locale: str | None = None,
    ) -> None:
        """Parse a datetime string.

        Args:
            time: Canonical, free-form or relative ("next tuesday") string.
                Empty or None means now (or the frozen test time when one is
                installed).
            timezone: Timezone name, offset or tzinfo; default from configuration
            locale: Locale for localized renderings; default from configuration

        Raises:
            InvalidCalendarValueException: If the string is not a real date/time
            InvalidTimezoneException: If the timezone is unknown
            InvalidLocaleException: If the locale is unknown
        """
        service = self._get_time_service()
        time_string = (time or "").strip()

        test_now = MicroDateTime._test_now
        if time_string == "" and test_now is not None:
            # A frozen test instant replaces "now", keeping its own timezone
            # unless another one is requested.
            zone = service.get_timezone(timezone if timezone is not None else test_now.timezone)
            value = test_now._datetime.astimezone(zone)
        else:
            zone = service.get_timezone(timezone)
            if time_string == "":
                value = service.now(zone)
            elif service.has_relative_keywords(time_string):
                value = service.resolve_relative(time_string, self._reference_now(zone))
            else:
                value = service.parse(time_string, zone)
                if timezone is not None:
                    value = value.astimezone(zone)

        self._datetime = value
        self._locale = self._get_formatter().resolve_locale(locale)

    @classmethod
    def _from_datetime(cls, value: datetime, locale: str) -> Self:
        """Wrap an already validated aware datetime without re-parsing."""
        instance = cls.__new__(cls)
        instance._datetime = value
        instance._locale = locale
        return instance

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @classmethod
    def configure(
        cls,
        time_service: TimeService | None = None,
        formatter: LocalizedFormatter | None = None,
    ) -> None:
        """Install the calendar engine and localized formatter.

        Passing None restores the defaults built from the environment
        configuration on next use.
        """
        MicroDateTime._time_service = time_service
        MicroDateTime._formatter = formatter

    @staticmethod
    def _get_time_service() -> TimeService:
        if MicroDateTime._time_service is None:
            from src.infrastructure.time.timezone_service import PythonTimeService

            MicroDateTime._time_service = PythonTimeService.from_config()
            logger.debug("Using default time service %r", MicroDateTime._time_service)
        return MicroDateTime._time_service

    @staticmethod
    def _get_formatter() -> LocalizedFormatter:
        if MicroDateTime._formatter is None:
            from src.infrastructure.time.formatter import BabelDateTimeFormatter

            MicroDateTime._formatter = BabelDateTimeFormatter.from_config()
            logger.debug("Using default formatter %r", MicroDateTime._formatter)
        return MicroDateTime._formatter

    # ------------------------------------------------------------------
    # Frozen "now" for tests
    # ------------------------------------------------------------------

    @classmethod
    def set_test_now(
        cls,
        value: MicroDateTime | datetime | str | None = None,
        timezone: Any = None,
        locale: str | None = None,
    ) -> None:
        """Freeze "now" for deterministic tests.

        The frozen instant is consulted when a string parse is empty and as
        the reference for relative expressions. Call with no value to clear.
        Not safe for concurrent use.
        """
        if value is None:
            MicroDateTime._test_now = None
            return

        if isinstance(value, str):
            value = MicroDateTime(value, timezone, locale)
        elif not isinstance(value, MicroDateTime):
            value = MicroDateTime.create_from_instance(value, locale)
        elif timezone is not None:
            value = value.set_timezone(timezone)

        MicroDateTime._test_now = value

    @classmethod
    def has_test_now(cls) -> bool:
        return MicroDateTime._test_now is not None

    @staticmethod
    def _reference_now(zone: tzinfo) -> datetime:
        if MicroDateTime._test_now is not None:
            return MicroDateTime._test_now._datetime.astimezone(zone)
        return MicroDateTime._get_time_service().now(zone)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, time: str | None = None, timezone: Any = None, locale: str | None = None) -> Self:
        """Create an instance from a datetime string (see ``__init__``)."""
        return cls(time, timezone, locale)

    @classmethod
    def now(cls, timezone: Any = None, locale: str | None = None) -> Self:
        return cls("", timezone, locale)

    @classmethod
    def today(cls, timezone: Any = None, locale: str | None = None) -> Self:
        return cls("today", timezone, locale)

    @classmethod
    def yesterday(cls, timezone: Any = None, locale: str | None = None) -> Self:
        return cls("yesterday", timezone, locale)

    @classmethod
    def tomorrow(cls, timezone: Any = None, locale: str | None = None) -> Self:
        return cls("tomorrow", timezone, locale)

    @classmethod
    def create(
        cls,
        year: int | None = None,
        month: int | None = None,
        day: int | None = None,
        hour: int | None = None,
        minute: int | None = None,
        second: int | None = None,
        timezone: Any = None,
        locale: str | None = None,
        microsecond: int | None = None,
    ) -> Self:
        """Create an instance with the date/time values individually set.

        Missing date parts default to today in the target timezone and
        missing time parts to zero.

        Args:
            year: Year
            month: Month (1-12)
            day: Day of month
            hour: Hour (0-23)
            minute: Minute (0-59)
            second: Second (0-59)
            timezone: Timezone name, offset or tzinfo
            locale: Locale identifier
            microsecond: Microsecond (0-999999)

        Returns:
            New MicroDateTime

        Raises:
            InvalidCalendarValueException: If the fields are not a real date/time
            InvalidSubSecondValueException: If microsecond is out of range
        """
        zone = cls._get_time_service().get_timezone(timezone)

        if year is None or month is None or day is None:
            today = cls.now(zone)
            year = today.year if year is None else year
            month = today.month if month is None else month
            day = today.day if day is None else day

        microsecond = _to_int(microsecond or 0, "microsecond")
        if not 0 <= microsecond <= _MAX_MICROSECOND:
            raise InvalidSubSecondValueException(microsecond)

        try:
            wall = datetime(
                _to_int(year, "year"),
                _to_int(month, "month"),
                _to_int(day, "day"),
                _to_int(hour or 0, "hour"),
                _to_int(minute or 0, "minute"),
                _to_int(second or 0, "second"),
                microsecond,
            )
        except ValueError as e:
            raise InvalidCalendarValueException(
                f"Invalid calendar value: {e}",
                value=(year, month, day, hour, minute, second, microsecond),
            ) from e

        return cls(_canonical(wall), zone, locale)

    @classmethod
    def create_from_date(
        cls,
        year: int | None = None,
        month: int | None = None,
        day: int | None = None,
        timezone: Any = None,
        locale: str | None = None,
    ) -> Self:
        """Create an instance at midnight on the given date."""
        return cls.create(year, month, day, 0, 0, 0, timezone, locale)

    @classmethod
    def create_from_time(
        cls,
        hour: int | None = None,
        minute: int | None = None,
        second: int | None = None,
        timezone: Any = None,
        locale: str | None = None,
        microsecond: int | None = None,
    ) -> Self:
        """Create an instance today with the time values set."""
        return cls.create(None, None, None, hour, minute, second, timezone, locale, microsecond)

    @classmethod
    def create_from_format(
        cls,
        format: str,
        datetime_string: str,
        timezone: Any = None,
        locale: str | None = None,
    ) -> Self:
        """Create an instance by parsing strictly against a strptime pattern.

        Date fields missing from the pattern come from today in the target
        timezone; time fields missing from it are zero, microseconds included.
        A UTC offset captured with ``%z`` becomes the timezone unless one is
        given, in which case the parsed wall clock is read in that timezone.

        Raises:
            InvalidFormatException: If the string does not match the pattern
        """
        parsed = cls._get_time_service().parse_with_format(format, datetime_string)
        if timezone is None and parsed.tzinfo is not None:
            timezone = parsed.tzinfo

        missing = _missing_date_fields(format)
        if missing:
            today = cls.now(timezone)
            try:
                parsed = parsed.replace(**{field: getattr(today, field) for field in missing})
            except ValueError as e:
                raise InvalidFormatException(format, datetime_string) from e

        return cls(_canonical(parsed), timezone, locale)

    @classmethod
    def create_from_timestamp(
        cls,
        timestamp: int | float,
        timezone: Any = None,
        locale: str | None = None,
    ) -> Self:
        """Create an instance from integer UNIX seconds (fractions are dropped)."""
        try:
            utc = _EPOCH + timedelta(seconds=int(timestamp))
        except (OverflowError, ValueError) as e:
            raise InvalidCalendarValueException(
                f"Timestamp out of range: {timestamp!r}", value=timestamp
            ) from e

        time = cls(_canonical(utc), UTC, locale)
        return time.set_timezone(timezone if timezone is not None else UTC)

    @classmethod
    def create_from_timestamp_float(
        cls,
        timestamp: float,
        timezone: Any = None,
        locale: str | None = None,
    ) -> Self:
        """Create an instance from UNIX seconds with a microsecond fraction.

        Args:
            timestamp: Epoch seconds, e.g. 1700000000.123456
            timezone: Target timezone (default UTC)
            locale: Locale identifier

        Returns:
            New MicroDateTime
        """
        timestamp = float(timestamp)
        seconds = math.floor(timestamp)
        microsecond = round((timestamp - seconds) * _MICROSECONDS_PER_SECOND)
        # Float noise can round a fraction such as .9999996 up to a full second.
        if microsecond >= _MICROSECONDS_PER_SECOND:
            seconds += 1
            microsecond = 0

        time = cls.create_from_timestamp(seconds, UTC, locale).set_microsecond(microsecond)
        return time.set_timezone(timezone if timezone is not None else UTC)

    @classmethod
    def create_from_instance(cls, value: Any, locale: str | None = None) -> Self:
        """Create an instance with the same values as an external datetime.

        Accepts ``datetime`` objects, wrappers exposing ``as_datetime()`` and
        anything else exposing year..microsecond plus tzinfo. Naive values are
        read in the default timezone.

        Raises:
            TypeError: If the value is not datetime-like
        """
        if isinstance(value, DatetimeAdapter) and not isinstance(value, datetime):
            value = value.as_datetime()

        if not isinstance(value, DatetimeLike):
            raise TypeError(f"Cannot create MicroDateTime from {type(value).__name__}")

        wall = datetime(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
        )
        return cls(_canonical(wall), value.tzinfo, locale)

    @staticmethod
    def epoch_string_to_float(time_string: str) -> float:
        """Get UNIX seconds with microsecond fraction for a datetime string.

        Useful for fast comparisons without building an instance. Strings with
        no offset are read in the default timezone. Empty and relative strings
        use the frozen test time when one is installed.
        """
        service = MicroDateTime._get_time_service()
        zone = service.get_default_timezone()
        time_string = time_string.strip()

        if time_string == "":
            value = MicroDateTime._reference_now(zone)
        elif service.has_relative_keywords(time_string):
            value = service.resolve_relative(time_string, MicroDateTime._reference_now(zone))
        else:
            value = service.parse(time_string, zone)

        return _epoch_float(value)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    @property
    def year(self) -> int:
        return self._datetime.year

    @property
    def month(self) -> int:
        return self._datetime.month

    @property
    def day(self) -> int:
        return self._datetime.day

    @property
    def hour(self) -> int:
        return self._datetime.hour

    @property
    def minute(self) -> int:
        return self._datetime.minute

    @property
    def second(self) -> int:
        return self._datetime.second

    @property
    def microsecond(self) -> int:
        return self._datetime.microsecond

    @property
    def timezone(self) -> tzinfo:
        """Get the resolved tzinfo."""
        return self._datetime.tzinfo  # type: ignore[return-value]

    @property
    def timezone_name(self) -> str:
        """Get the IANA key, or the offset name for fixed-offset timezones."""
        key = getattr(self._datetime.tzinfo, "key", None)
        if key:
            return str(key)
        return self._datetime.tzname() or str(self._datetime.tzinfo)

    @property
    def locale(self) -> str:
        return self._locale

    def epoch_seconds(self) -> float:
        """Get UNIX seconds including the microsecond fraction."""
        return _epoch_float(self._datetime)

    def get_timestamp(self) -> int:
        """Get whole UNIX seconds."""
        return _epoch_microseconds(self._datetime) // _MICROSECONDS_PER_SECOND

    def microsecond_string(self) -> str:
        """Get the localized microsecond field."""
        return self.to_localized_string(self.FORMAT_MICROSECOND_INTL)

    # ------------------------------------------------------------------
    # Setters (each returns a new instance)
    # ------------------------------------------------------------------

    def set_value(self, name: str, value: int | str) -> Self:
        """Replace one field, keeping timezone and locale.

        The other wall-clock fields stay as they are, including which side of
        a repeated fall-back hour the value is on. A result inside a DST gap
        is moved forward.

        Args:
            name: One of year, month, day, hour, minute, second, microsecond
            value: New field value

        Returns:
            New MicroDateTime

        Raises:
            ValueError: If the field name is unknown
            InvalidCalendarValueException: If the result is not a real date/time
            InvalidSubSecondValueException: If a microsecond is out of range
        """
        if name not in _FIELDS:
            raise ValueError(f"Unknown datetime field: {name}")

        number = _to_int(value, name)
        if name == "microsecond" and not 0 <= number <= _MAX_MICROSECOND:
            raise InvalidSubSecondValueException(value)

        zone = self._datetime.tzinfo
        try:
            # replace() keeps fold; the UTC round trip normalises gap times
            wall = self._datetime.replace(**{name: number})
            value_datetime = wall.astimezone(UTC).astimezone(zone)
        except (OverflowError, ValueError) as e:
            raise InvalidCalendarValueException(
                f"Invalid calendar value: {e}", value=value, field=name
            ) from e

        return self._from_datetime(value_datetime, self._locale)

    def _set_checked(self, name: str, value: int | str) -> Self:
        number = _to_int(value, name)
        low, high = self._FIELD_RANGES[name]
        if not low <= number <= high:
            raise InvalidCalendarValueException(
                f"{name.capitalize()} must be between {low} and {high}, got {value!r}",
                value=value,
                field=name,
            )
        return self.set_value(name, number)

    def set_year(self, value: int | str) -> Self:
        return self.set_value("year", value)

    def set_month(self, value: int | str) -> Self:
        return self._set_checked("month", value)

    def set_day(self, value: int | str) -> Self:
        return self._set_checked("day", value)

    def set_hour(self, value: int | str) -> Self:
        return self._set_checked("hour", value)

    def set_minute(self, value: int | str) -> Self:
        return self._set_checked("minute", value)

    def set_second(self, value: int | str) -> Self:
        return self._set_checked("second", value)

    def set_microsecond(self, value: int | str) -> Self:
        """Replace the microsecond of the second.

        Raises:
            InvalidSubSecondValueException: If value is outside [0, 999999]
        """
        microsecond = _to_int(value, "microsecond")
        if not 0 <= microsecond <= _MAX_MICROSECOND:
            raise InvalidSubSecondValueException(value)
        return self.set_value("microsecond", microsecond)

    def set_timestamp(self, timestamp: int | float) -> Self:
        """Move to whole UNIX seconds in this instance's timezone and locale."""
        return type(self).create_from_timestamp(timestamp, self.timezone, self._locale)

    def set_timezone(self, timezone: Any) -> Self:
        """Express the same instant in another timezone."""
        zone = self._get_time_service().get_timezone(timezone)
        return self._from_datetime(self._datetime.astimezone(zone), self._locale)

    def set_locale(self, locale: str | None) -> Self:
        return self._from_datetime(self._datetime, self._get_formatter().resolve_locale(locale))

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add_microseconds(self, microseconds: int) -> Self:
        """Add elapsed microseconds.

        The delta is applied to the UTC instant, so crossing a DST transition
        moves the wall clock by the offset change while the elapsed time stays
        exactly as requested.
        """
        try:
            shifted = self._datetime.astimezone(UTC) + timedelta(microseconds=int(microseconds))
        except OverflowError as e:
            raise InvalidCalendarValueException(
                f"Result out of range after adding {microseconds} microseconds",
                value=microseconds,
            ) from e
        return self._from_datetime(shifted.astimezone(self._datetime.tzinfo), self._locale)

    def sub_microseconds(self, microseconds: int) -> Self:
        """Subtract elapsed microseconds."""
        return self.add_microseconds(-int(microseconds))

    def difference_in_microseconds(self, other: MicroDateTime | datetime) -> int:
        """Get the elapsed microseconds from this instant to another."""
        if isinstance(other, MicroDateTime):
            other_datetime = other._datetime
        else:
            other_datetime = type(self).create_from_instance(other)._datetime
        return _epoch_microseconds(other_datetime) - _epoch_microseconds(self._datetime)

    # ------------------------------------------------------------------
    # Conversion & formatting
    # ------------------------------------------------------------------

    def to_datetime(self) -> datetime:
        """Get an aware standard datetime with identical fields."""
        return self._datetime

    def to_localized_string(self, pattern: str | None = None) -> str:
        """Render with an LDML pattern in this instance's locale and timezone."""
        return self._get_formatter().format(
            self._datetime, pattern or self.FORMAT_INTL, self._locale
        )

    def to_datetime_string(self) -> str:
        """Get the localized date and time, e.g. 2024-03-10 13:20:33.678."""
        return self.to_localized_string(self.FORMAT_INTL)

    def to_date_string(self) -> str:
        return self.to_localized_string(self.FORMAT_DATE_INTL)

    def to_time_string(self) -> str:
        """Get the localized time, e.g. 13:20:33.678."""
        return self.to_localized_string(self.FORMAT_TIME_INTL)

    def canonical_string(self) -> str:
        """Get the machine format. Intentionally NOT localized."""
        return _canonical(self._datetime)

    def same_as(self, other: MicroDateTime) -> bool:
        """Check for the same wall clock in the same timezone, not just the same instant."""
        return (
            isinstance(other, MicroDateTime)
            and self.timezone_name == other.timezone_name
            and self.canonical_string() == other.canonical_string()
        )

    def __str__(self) -> str:
        return self.canonical_string()

    def __repr__(self) -> str:
        return (
            f"MicroDateTime('{self.canonical_string()}', "
            f"timezone='{self.timezone_name}', locale='{self._locale}')"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MicroDateTime):
            return NotImplemented
        return _epoch_microseconds(self._datetime) == _epoch_microseconds(other._datetime)

    def __lt__(self, other: MicroDateTime) -> bool:
        if not isinstance(other, MicroDateTime):
            return NotImplemented
        return _epoch_microseconds(self._datetime) < _epoch_microseconds(other._datetime)

    def __hash__(self) -> int:
        return hash(_epoch_microseconds(self._datetime))
