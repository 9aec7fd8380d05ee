"""
Domain interfaces for dependency inversion.

This module contains abstract interfaces that define contracts for the calendar
engine and the localized formatter that MicroDateTime depends on. Infrastructure
implements the contracts so the domain layer stays free of timezone databases
and I18n libraries.
"""

from .datetime_adapter import DatetimeAdapter, DatetimeLike
from .formatter import LocalizedFormatter
from .time_service import TimeService

__all__ = ["DatetimeAdapter", "DatetimeLike", "LocalizedFormatter", "TimeService"]
