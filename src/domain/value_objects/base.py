"""Write-once base classes for slotted value objects."""

# Standard library imports
from abc import ABC, abstractmethod
from functools import total_ordering
from typing import Any, Self


class ValueObject(ABC):
    """Abstract base class for slotted, write-once value objects.

    Subclasses declare their state in ``__slots__`` and assign each slot
    exactly once, normally in ``__init__`` or an alternate constructor that
    starts from ``cls.__new__``. Any later assignment or deletion raises
    AttributeError, and names outside ``__slots__`` cannot be set at all.
    Copies made with the ``copy`` module follow the same rule.

    Subclasses must define value equality, a matching hash and a debugging
    representation.
    """

    __slots__ = ()

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        """Check equality by value."""

    @abstractmethod
    def __hash__(self) -> int:
        """Hash consistently with __eq__."""

    @abstractmethod
    def __repr__(self) -> str:
        """Get string representation for debugging."""

    def __setattr__(self, name: str, value: Any) -> None:
        # An unassigned slot reads as missing, so only the first write passes
        if hasattr(self, name):
            raise AttributeError(f"Cannot modify immutable value object attribute '{name}'")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Cannot delete immutable value object attribute '{name}'")


@total_ordering
class ComparableValueObject(ValueObject):
    """Write-once value object with a total order.

    Subclasses implement __eq__ and __lt__; @total_ordering derives the rest.
    Returning NotImplemented for foreign types makes ordering against them
    raise TypeError.
    """

    __slots__ = ()

    @abstractmethod
    def __lt__(self, other: Self) -> bool:
        """Check if strictly less than another value object."""
