"""
Persistence adapters for MicroDateTime.

Provides the entity-cast adapter that turns raw persisted values into
MicroDateTime and an SQLAlchemy column type built on it.
"""

from .micro_time_cast import MicroDateTimeCast, MicroDateTimeType

__all__ = ["MicroDateTimeCast", "MicroDateTimeType"]
