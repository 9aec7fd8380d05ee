"""
Entity cast and SQLAlchemy column type for MicroDateTime.

Raw values coming back from storage (driver datetimes, epoch numbers,
strings) are converted with a fixed dispatch order; values are written as
the canonical machine string so microseconds survive any backend.
"""

import logging
import math
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.types import String as SQLString
from sqlalchemy.types import TypeDecorator

from src.domain.interfaces.datetime_adapter import DatetimeAdapter, DatetimeLike
from src.domain.value_objects.micro_datetime import MicroDateTime
from src.infrastructure.config import get_time_config

logger = logging.getLogger(__name__)

_NUMERIC = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*")


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        return _NUMERIC.fullmatch(value) is not None
    return False


def _to_epoch_seconds(value: Any) -> int:
    if isinstance(value, str):
        try:
            return int(Decimal(value.strip()))
        except InvalidOperation as e:
            raise ValueError(f"Not a numeric timestamp: {value!r}") from e
    return int(value)


class MicroDateTimeCast:
    """
    Casts raw persisted values to MicroDateTime.

    Dispatch order:
    1. MicroDateTime: returned unchanged (same object)
    2. datetime-like objects: MicroDateTime.create_from_instance
    3. numbers and numeric strings: whole epoch seconds, no fraction
    4. other strings: MicroDateTime.parse
    5. anything else: returned unchanged for the caller to handle

    ``params`` may carry a timezone name as its first element; it applies to
    the numeric and string paths.
    """

    @staticmethod
    def get(value: Any, params: list[str] | None = None) -> Any:
        timezone = params[0] if params else None

        if isinstance(value, MicroDateTime):
            return value

        if isinstance(value, (datetime, DatetimeAdapter, DatetimeLike)):
            return MicroDateTime.create_from_instance(value)

        if _is_numeric(value):
            return MicroDateTime.create_from_timestamp(_to_epoch_seconds(value), timezone)

        if isinstance(value, str):
            return MicroDateTime.parse(value, timezone)

        logger.debug(f"Leaving {type(value).__name__} value uncast")
        return value

    @staticmethod
    def set(value: Any, params: list[str] | None = None) -> Any:
        """Render a value for storage as the canonical machine string."""
        if value is None:
            return None

        cast = MicroDateTimeCast.get(value, params)
        if isinstance(cast, MicroDateTime):
            return str(cast)

        logger.warning(f"Cannot store {type(value).__name__} as MicroDateTime, passing through")
        return value


class MicroDateTimeType(TypeDecorator[MicroDateTime]):
    """
    Database-agnostic MicroDateTime column.

    Stored as the canonical string in a fixed storage timezone, which keeps
    all six microsecond digits and sorts chronologically.
    """

    impl = SQLString
    cache_ok = True

    def __init__(self, timezone: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("length", 32)
        super().__init__(**kwargs)
        self.timezone = timezone

    @property
    def python_type(self) -> type[MicroDateTime]:
        return MicroDateTime

    def _storage_timezone(self) -> str:
        return self.timezone or get_time_config().storage_timezone

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        if value is None:
            return None

        cast = MicroDateTimeCast.get(value, [self._storage_timezone()])
        if not isinstance(cast, MicroDateTime):
            raise TypeError(f"Cannot bind {type(value).__name__} to a MicroDateTime column")

        return str(cast.set_timezone(self._storage_timezone()))

    def process_result_value(self, value: Any, dialect: Any) -> MicroDateTime | None:
        if value is None:
            return None
        return MicroDateTimeCast.get(value, [self._storage_timezone()])
