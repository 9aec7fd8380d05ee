"""
Domain interface for locale-aware rendering of datetimes.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class LocalizedFormatter(ABC):
    """
    Abstract interface for the localized formatter.

    Patterns use LDML syntax ("yyyy-MM-dd HH:mm:ss.SSS"), where a run of
    ``S`` letters renders that many fractional-second digits.
    """

    @abstractmethod
    def format(self, value: datetime, pattern: str, locale: str) -> str:
        """
        Render an aware datetime with a pattern in a locale.

        Args:
            value: Aware datetime, rendered in its own timezone
            pattern: LDML pattern
            locale: Locale identifier (e.g. "en_US")

        Returns:
            str: Rendered string
        """

    @abstractmethod
    def resolve_locale(self, locale: str | None) -> str:
        """
        Normalize a locale identifier.

        Args:
            locale: Identifier such as "en_US" or "de-DE", or None for the default

        Returns:
            str: Normalized identifier

        Raises:
            InvalidLocaleException: If the locale is unknown
        """
