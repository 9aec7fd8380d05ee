"""Calendar engine and localized formatter implementations."""

from .formatter import BabelDateTimeFormatter
from .timezone_service import PythonTimeService

__all__ = ["BabelDateTimeFormatter", "PythonTimeService"]
