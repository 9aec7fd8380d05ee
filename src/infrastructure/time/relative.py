"""
Relative date expressions such as "next tuesday", "+2 days" or "3 hours ago".

Expressions are split into words and applied left to right onto a reference
datetime with dateutil's relativedelta. Clock text that is not a keyword
("tomorrow 10:30") is handed to dateutil's parser with the partially resolved
value as its default.
"""

import logging
import re
from datetime import datetime

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta, weekday

from src.domain.exceptions import InvalidCalendarValueException

logger = logging.getLogger(__name__)

# Strings carrying an ISO date are absolute even though they contain "-".
_ISO_DATE = re.compile(r"\d{4}-\d{1,2}-\d{1,2}")
_RELATIVE_KEYWORDS = re.compile(
    r"\b(?:this|next|last|previous|first|tomorrow|yesterday|today|midnight|noon|now|ago)\b"
    r"|[+-]\s*\d+\s*[a-z]",
    re.IGNORECASE,
)
_AMOUNT = re.compile(r"[+-]?\d+")

WEEKDAYS: dict[str, weekday] = {
    "monday": MO,
    "mon": MO,
    "tuesday": TU,
    "tue": TU,
    "tues": TU,
    "wednesday": WE,
    "wed": WE,
    "thursday": TH,
    "thu": TH,
    "thur": TH,
    "thurs": TH,
    "friday": FR,
    "fri": FR,
    "saturday": SA,
    "sat": SA,
    "sunday": SU,
    "sun": SU,
}

# Word -> relativedelta keyword; milliseconds and fortnights are scaled.
UNITS: dict[str, str] = {
    "microsecond": "microseconds",
    "microseconds": "microseconds",
    "usec": "microseconds",
    "usecs": "microseconds",
    "millisecond": "milliseconds",
    "milliseconds": "milliseconds",
    "msec": "milliseconds",
    "msecs": "milliseconds",
    "second": "seconds",
    "seconds": "seconds",
    "sec": "seconds",
    "secs": "seconds",
    "minute": "minutes",
    "minutes": "minutes",
    "min": "minutes",
    "mins": "minutes",
    "hour": "hours",
    "hours": "hours",
    "day": "days",
    "days": "days",
    "week": "weeks",
    "weeks": "weeks",
    "fortnight": "fortnights",
    "fortnights": "fortnights",
    "month": "months",
    "months": "months",
    "year": "years",
    "years": "years",
}

_DIRECTIONS = {"next": 1, "last": -1, "previous": -1, "this": 0}


def has_relative_keywords(time_string: str) -> bool:
    """Check whether a string needs resolving against the current time."""
    if _ISO_DATE.search(time_string):
        return False
    return _RELATIVE_KEYWORDS.search(time_string) is not None


def _delta(unit: str, amount: int) -> relativedelta:
    if unit == "milliseconds":
        return relativedelta(microseconds=amount * 1000)
    if unit == "fortnights":
        return relativedelta(weeks=amount * 2)
    return relativedelta(**{unit: amount})


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _to_weekday(value: datetime, day: weekday, direction: int) -> datetime:
    start = _midnight(value)
    if direction > 0:
        return start + relativedelta(days=1, weekday=day(+1))
    if direction < 0:
        return start + relativedelta(days=-1, weekday=day(-1))
    return start + relativedelta(weekday=day(+1))


def _parse_clock(text: str, value: datetime) -> datetime:
    try:
        parsed = dateutil_parser.parse(text, default=value.replace(tzinfo=None))
    except (dateutil_parser.ParserError, ValueError, OverflowError) as e:
        raise InvalidCalendarValueException(
            f"Unable to resolve relative date/time: {text!r}", value=text
        ) from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=value.tzinfo)
    return parsed.astimezone(value.tzinfo)


def resolve_relative(time_string: str, reference: datetime) -> datetime:
    """
    Resolve a relative expression against an aware reference datetime.

    Supported words: now, today, midnight, noon, tomorrow, yesterday,
    "next|last|this <weekday|unit>", "<weekday>", "+N <unit>",
    "N <unit> ago" and "first|last day of ...".

    Args:
        time_string: Expression to resolve
        reference: Aware datetime the expression is relative to

    Returns:
        Aware datetime in the reference's timezone (wall-clock arithmetic)

    Raises:
        InvalidCalendarValueException: If leftover text cannot be parsed
    """
    tokens = time_string.lower().replace(",", " ").split()
    result = reference
    day_of_month: int | None = None
    leftover: list[str] = []

    try:
        i = 0
        while i < len(tokens):
            token = tokens[i]
            following = tokens[i + 1] if i + 1 < len(tokens) else None

            if token == "now":
                pass
            elif token in ("today", "midnight"):
                result = _midnight(result)
            elif token == "noon":
                result = result.replace(hour=12, minute=0, second=0, microsecond=0)
            elif token == "tomorrow":
                result = _midnight(result) + relativedelta(days=1)
            elif token == "yesterday":
                result = _midnight(result) + relativedelta(days=-1)
            elif token in ("first", "last") and tokens[i + 1 : i + 3] == ["day", "of"]:
                # day=31 clamps to the last day of whatever month results
                day_of_month = 1 if token == "first" else 31
                i += 2
            elif token in _DIRECTIONS and following in WEEKDAYS:
                result = _to_weekday(result, WEEKDAYS[following], _DIRECTIONS[token])
                i += 1
            elif token in _DIRECTIONS and following in UNITS:
                result = result + _delta(UNITS[following], _DIRECTIONS[token])
                i += 1
            elif token in WEEKDAYS:
                result = _to_weekday(result, WEEKDAYS[token], 0)
            elif _AMOUNT.fullmatch(token) and following in UNITS:
                amount = int(token)
                i += 1
                if i + 1 < len(tokens) and tokens[i + 1] == "ago":
                    amount = -amount
                    i += 1
                result = result + _delta(UNITS[following], amount)
            else:
                leftover.append(token)
            i += 1

        if day_of_month is not None:
            result = result + relativedelta(day=day_of_month)
    except (OverflowError, ValueError) as e:
        raise InvalidCalendarValueException(
            f"Relative date/time out of range: {time_string!r}", value=time_string
        ) from e

    if leftover:
        result = _parse_clock(" ".join(leftover), result)

    logger.debug("Resolved relative expression %r to %s", time_string, result.isoformat())
    return result
