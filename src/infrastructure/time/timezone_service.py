"""
Infrastructure implementation of the domain time service interface.

This implementation uses zoneinfo for the timezone database, pytz only to
recognise zones handed over by libraries that still use it, and
python-dateutil for free-form and relative parsing. It handles the
complexity of timezone resolution and DST gaps so MicroDateTime can treat
the calendar engine as a black box.
"""

import logging
import re
from datetime import UTC, datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as dateutil_parser
from dateutil import tz as dateutil_tz
from pytz.tzinfo import BaseTzInfo

from src.domain.exceptions import (
    InvalidCalendarValueException,
    InvalidFormatException,
    InvalidTimezoneException,
)
from src.domain.interfaces.time_service import TimeService
from src.infrastructure.config import TimeConfig, get_time_config

from . import relative

logger = logging.getLogger(__name__)

CANONICAL_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

_UTC_NAMES = {"UTC", "Z", "GMT", "ETC/UTC", "ETC/GMT"}
_OFFSET = re.compile(r"(?:UTC|GMT)?([+-])(\d{1,2})(?::?(\d{2}))?", re.IGNORECASE)


class PythonTimeService(TimeService):
    """
    Python implementation of the TimeService interface.

    Features:
    - IANA names resolved through zoneinfo, fixed offsets as datetime.timezone
    - pytz and dateutil zone objects normalised to their stdlib equivalents
    - Canonical strings parsed with strptime, everything else with dateutil
    - Nonexistent wall times (DST gaps) moved forward, never rejected
    """

    def __init__(self, default_timezone: str | tzinfo = "UTC"):
        """
        Initialize the time service.

        Args:
            default_timezone: Timezone used when callers pass None
        """
        self._default_timezone = self._resolve(default_timezone)

    @classmethod
    def from_config(cls, config: TimeConfig | None = None) -> "PythonTimeService":
        config = config or get_time_config()
        return cls(default_timezone=config.default_timezone)

    def __repr__(self) -> str:
        return f"PythonTimeService(default_timezone={self._default_timezone!s})"

    def get_timezone(self, timezone: Any) -> tzinfo:
        """Resolve a timezone identifier to a tzinfo."""
        if timezone is None:
            return self._default_timezone
        return self._resolve(timezone)

    def _resolve(self, zone: Any) -> tzinfo:
        if isinstance(zone, str):
            return self._from_name(zone)
        if isinstance(zone, BaseTzInfo):
            # pytz zones misbehave with datetime.replace(); use the same IANA key
            return self._from_name(zone.zone)
        if isinstance(zone, dateutil_tz.tzutc):
            return UTC
        if isinstance(zone, dateutil_tz.tzoffset):
            return self._fixed_offset(zone.utcoffset(None))
        if isinstance(zone, tzinfo):
            return zone
        raise InvalidTimezoneException(zone)

    def _from_name(self, name: str) -> tzinfo:
        name = name.strip()
        if name.upper() in _UTC_NAMES:
            return UTC

        match = _OFFSET.fullmatch(name)
        if match:
            sign, hours, minutes = match.groups()
            offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
            return self._fixed_offset(-offset if sign == "-" else offset)

        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidTimezoneException(name) from e

    @staticmethod
    def _fixed_offset(offset: timedelta | None) -> tzinfo:
        if not offset:
            return UTC
        try:
            return timezone(offset)
        except ValueError as e:
            raise InvalidTimezoneException(str(offset)) from e

    def get_default_timezone(self) -> tzinfo:
        return self._default_timezone

    def now(self, timezone: tzinfo) -> datetime:
        return datetime.now(timezone)

    def localize(self, naive_datetime: datetime, timezone: tzinfo) -> datetime:
        """Convert a naive datetime to timezone-aware datetime."""
        if naive_datetime.tzinfo is not None:
            raise ValueError("Datetime is already timezone-aware")

        localized = naive_datetime.replace(tzinfo=timezone)
        # Round-trip through UTC to move wall times in a DST gap forward
        return localized.astimezone(UTC).astimezone(timezone)

    def parse(self, time_string: str, timezone: tzinfo) -> datetime:
        """Parse a canonical or free-form string into an aware datetime."""
        text = time_string.strip()
        try:
            parsed = datetime.strptime(text, CANONICAL_FORMAT)
        except ValueError:
            parsed = self._parse_free_form(text, timezone)

        if parsed.tzinfo is None:
            return self.localize(parsed, timezone)
        return parsed.astimezone(self._resolve(parsed.tzinfo))

    def _parse_free_form(self, text: str, timezone: tzinfo) -> datetime:
        default = self.now(timezone).replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
        try:
            return dateutil_parser.parse(text, default=default)
        except (dateutil_parser.ParserError, ValueError, OverflowError) as e:
            raise InvalidCalendarValueException(
                f"Unable to parse date/time string: {text!r}", value=text
            ) from e

    def parse_with_format(self, format: str, time_string: str) -> datetime:
        """Parse a string strictly against a strptime pattern."""
        try:
            return datetime.strptime(time_string, format)
        except (TypeError, ValueError) as e:
            raise InvalidFormatException(format, time_string) from e

    def has_relative_keywords(self, time_string: str) -> bool:
        return relative.has_relative_keywords(time_string)

    def resolve_relative(self, time_string: str, reference: datetime) -> datetime:
        """Resolve a relative expression in the reference's timezone."""
        if reference.tzinfo is None:
            raise ValueError("Reference datetime must be timezone-aware")

        resolved = relative.resolve_relative(time_string, reference)
        return resolved.astimezone(UTC).astimezone(reference.tzinfo)
