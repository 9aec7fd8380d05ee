"""
Babel implementation of the localized formatter.

Fractional seconds ("S" runs) are rendered here by truncating the
microsecond field and handed to Babel as plain digits, which LDML treats
as literal text; Babel itself rounds them through a float, which can carry
.9995 into a fourth digit.
"""

import logging
import re
from datetime import datetime

from babel import Locale, UnknownLocaleError
from babel.dates import format_datetime

from src.domain.exceptions import InvalidLocaleException
from src.domain.interfaces.formatter import LocalizedFormatter
from src.infrastructure.config import FALLBACK_LOCALE, TimeConfig, get_time_config

logger = logging.getLogger(__name__)

# Quoted literals are split out so "S" inside them is left alone
_QUOTED = re.compile(r"('(?:[^']|'')*')")
_FRACTION = re.compile(r"S+")


def _fraction_digits(microsecond: int, length: int) -> str:
    digits = f"{microsecond:06d}"
    return digits[:length] if length <= 6 else digits.ljust(length, "0")


def _render_fractions(pattern: str, microsecond: int) -> str:
    parts = _QUOTED.split(pattern)
    for index in range(0, len(parts), 2):
        parts[index] = _FRACTION.sub(
            lambda match: _fraction_digits(microsecond, len(match.group())),
            parts[index],
        )
    return "".join(parts)


class BabelDateTimeFormatter(LocalizedFormatter):
    """Render datetimes with LDML patterns through Babel."""

    def __init__(self, default_locale: str = FALLBACK_LOCALE):
        self._default_locale = self._parse_locale(default_locale)

    @classmethod
    def from_config(cls, config: TimeConfig | None = None) -> "BabelDateTimeFormatter":
        config = config or get_time_config()
        return cls(default_locale=config.default_locale)

    def __repr__(self) -> str:
        return f"BabelDateTimeFormatter(default_locale={self._default_locale!r})"

    @property
    def default_locale(self) -> str:
        return self._default_locale

    def format(self, value: datetime, pattern: str, locale: str) -> str:
        if value.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware")

        return format_datetime(
            value,
            format=_render_fractions(pattern, value.microsecond),
            tzinfo=value.tzinfo,
            locale=locale,
        )

    def resolve_locale(self, locale: str | None) -> str:
        if not locale:
            return self._default_locale
        return self._parse_locale(locale)

    @staticmethod
    def _parse_locale(locale: str) -> str:
        try:
            return str(Locale.parse(locale.replace("-", "_")))
        except (UnknownLocaleError, ValueError, TypeError, AttributeError) as e:
            raise InvalidLocaleException(locale) from e
