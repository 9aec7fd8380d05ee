"""Immutable value objects for type safety."""

from .micro_datetime import MicroDateTime

__all__ = ["MicroDateTime"]
