"""Infrastructure Layer for microsecond datetimes.

This module provides concrete implementations of the domain interfaces:

Key modules:
- config: Environment-driven defaults (timezone, locale, storage timezone)
- time: Calendar engine (zoneinfo, pytz, dateutil) and localized formatter (Babel)
- database: Entity-cast adapter and SQLAlchemy column type for MicroDateTime

Example usage:
    from src.domain.value_objects import MicroDateTime
    from src.infrastructure.time import BabelDateTimeFormatter, PythonTimeService

    MicroDateTime.configure(
        time_service=PythonTimeService(default_timezone="Europe/Berlin"),
        formatter=BabelDateTimeFormatter(default_locale="de_DE"),
    )
    stamp = MicroDateTime.parse("2024-03-10 13:20:33.678901")
"""
