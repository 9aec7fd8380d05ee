"""
Domain protocols for datetime-like values coming from outside the domain.

Database drivers, ORMs and other libraries hand over their own datetime
types. These protocols describe what MicroDateTime needs to read from them
without depending on any particular implementation.
"""

from datetime import datetime, tzinfo
from typing import Protocol, runtime_checkable


@runtime_checkable
class DatetimeAdapter(Protocol):
    """
    Protocol for wrappers that can hand back a standard datetime.
    """

    def as_datetime(self) -> datetime:
        """
        Convert to standard datetime object.

        Returns:
            Standard datetime object, ideally with timezone information
        """
        ...


@runtime_checkable
class DatetimeLike(Protocol):
    """
    Protocol for objects exposing datetime fields directly.

    The microsecond is the sub-second fraction; tzinfo may be None for
    wall-clock values.
    """

    @property
    def year(self) -> int: ...

    @property
    def month(self) -> int: ...

    @property
    def day(self) -> int: ...

    @property
    def hour(self) -> int: ...

    @property
    def minute(self) -> int: ...

    @property
    def second(self) -> int: ...

    @property
    def microsecond(self) -> int: ...

    @property
    def tzinfo(self) -> tzinfo | None: ...
