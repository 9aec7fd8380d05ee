"""
Unit tests for the MicroDateTime entity cast and SQLAlchemy column type.
"""

# Standard library imports
import logging
from datetime import UTC, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

# Third-party imports
import pytest
from sqlalchemy import Column, Integer, create_engine, select, text
from sqlalchemy.orm import Session, declarative_base

# Local imports
from src.domain.value_objects.micro_datetime import MicroDateTime
from src.infrastructure.database import MicroDateTimeCast, MicroDateTimeType

Base = declarative_base()


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    occurred_at = Column(MicroDateTimeType())
    local_at = Column(MicroDateTimeType(timezone="Asia/Tokyo"))


@pytest.fixture
def session():
    """Provides a session bound to an in-memory SQLite database."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


class TestCastGet:
    """Test the raw value dispatch."""

    def test_micro_datetime_returned_unchanged(self):
        """Test identity for values already cast."""
        stamp = MicroDateTime("2024-03-10 13:20:33.678901", "Europe/Paris")
        assert MicroDateTimeCast.get(stamp) is stamp

    def test_datetime(self):
        """Test driver datetimes keep fields and timezone."""
        source = datetime(2024, 3, 10, 13, 20, 33, 678901, tzinfo=ZoneInfo("Europe/Paris"))
        cast = MicroDateTimeCast.get(source)

        assert str(cast) == "2024-03-10 13:20:33.678901"
        assert cast.timezone_name == "Europe/Paris"

    def test_datetime_adapter(self):
        """Test wrappers exposing as_datetime()."""

        class DriverTimestamp:
            def as_datetime(self):
                return datetime(2024, 1, 2, 3, 4, 5, 6, tzinfo=UTC)

        assert str(MicroDateTimeCast.get(DriverTimestamp())) == "2024-01-02 03:04:05.000006"

    @pytest.mark.parametrize(
        "value",
        [1700000000, 1700000000.9, "1700000000", " 1700000000.25 ", Decimal("1700000000.5"), "1.7e9"],
    )
    def test_numeric_values_are_whole_epoch_seconds(self, value):
        """Test numbers and numeric strings drop their fraction."""
        cast = MicroDateTimeCast.get(value)

        assert isinstance(cast, MicroDateTime)
        assert str(cast) == "2023-11-14 22:13:20.000000"
        assert cast.timezone_name == "UTC"

    def test_numeric_with_timezone_param(self):
        """Test the timezone parameter applies to epoch values."""
        cast = MicroDateTimeCast.get(1700000000, ["Asia/Tokyo"])
        assert str(cast) == "2023-11-15 07:13:20.000000"

    def test_string_parsed(self):
        """Test datetime strings are parsed with microseconds."""
        cast = MicroDateTimeCast.get("2024-03-10 13:20:33.678901", ["Europe/Paris"])

        assert str(cast) == "2024-03-10 13:20:33.678901"
        assert cast.timezone_name == "Europe/Paris"

    @pytest.mark.parametrize("value", [None, True, float("nan"), b"2024-03-10", [2024, 3, 10]])
    def test_other_values_pass_through(self, value):
        """Test unsupported values are returned unchanged."""
        assert MicroDateTimeCast.get(value) is value

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), Decimal("-Infinity"), float("inf")])
    def test_non_finite_numbers_pass_through(self, value):
        """Test non-finite numbers are not treated as epoch seconds."""
        assert MicroDateTimeCast.get(value) is value


class TestCastSet:
    """Test rendering for storage."""

    def test_none(self):
        assert MicroDateTimeCast.set(None) is None

    def test_micro_datetime_rendered_canonically(self):
        """Test all six microsecond digits are written."""
        stamp = MicroDateTime("2024-03-10 13:20:33.000042", "UTC", "de_DE")
        assert MicroDateTimeCast.set(stamp) == "2024-03-10 13:20:33.000042"

    def test_datetime_rendered_canonically(self):
        """Test raw datetimes are cast before rendering."""
        value = MicroDateTimeCast.set(datetime(2024, 3, 10, 13, 20, 33, 1, tzinfo=UTC))
        assert value == "2024-03-10 13:20:33.000001"

    def test_unsupported_passes_through_with_warning(self, caplog):
        """Test unsupported values are left alone and logged."""
        marker = object()

        with caplog.at_level(logging.WARNING):
            assert MicroDateTimeCast.set(marker) is marker

        assert "Cannot store object as MicroDateTime" in caplog.text


class TestMicroDateTimeType:
    """Test the SQLAlchemy column type."""

    def test_round_trip_keeps_microseconds(self, session):
        """Test values survive storage with all microsecond digits."""
        stamp = MicroDateTime("2024-03-10 13:20:33.678901", "Europe/Paris")
        session.add(Event(id=1, occurred_at=stamp))
        session.commit()
        session.expire_all()

        loaded = session.get(Event, 1).occurred_at

        assert isinstance(loaded, MicroDateTime)
        assert loaded == stamp
        assert loaded.microsecond == 678901
        assert loaded.timezone_name == "UTC"

    def test_stored_as_canonical_storage_string(self, session):
        """Test the raw column holds the canonical string in storage time."""
        stamp = MicroDateTime("2024-03-10 13:20:33.678901", "Europe/Paris")
        session.add(Event(id=1, occurred_at=stamp, local_at=stamp))
        session.commit()

        row = session.execute(text("SELECT occurred_at, local_at FROM events")).one()

        assert row.occurred_at == "2024-03-10 12:20:33.678901"
        assert row.local_at == "2024-03-10 21:20:33.678901"

    def test_binds_raw_datetimes_and_epochs(self, session):
        """Test anything the cast accepts can be assigned."""
        session.add(Event(id=1, occurred_at=datetime(2024, 1, 1, 0, 0, 0, 5, tzinfo=UTC)))
        session.add(Event(id=2, occurred_at=1700000000))
        session.add(Event(id=3, occurred_at=None))
        session.commit()
        session.expire_all()

        assert str(session.get(Event, 1).occurred_at) == "2024-01-01 00:00:00.000005"
        assert str(session.get(Event, 2).occurred_at) == "2023-11-14 22:13:20.000000"
        assert session.get(Event, 3).occurred_at is None

    def test_ordering_is_chronological(self, session):
        """Test the stored strings sort by instant."""
        later = MicroDateTime("2024-03-10 13:20:33.000002", "UTC")
        earlier = MicroDateTime("2024-03-10 14:20:33.000001", "Europe/Paris")
        session.add_all([Event(id=1, occurred_at=later), Event(id=2, occurred_at=earlier)])
        session.commit()

        ids = session.scalars(select(Event.id).order_by(Event.occurred_at)).all()

        assert ids == [2, 1]

    def test_bind_rejects_unsupported_values(self):
        """Test binding something that is not a datetime raises TypeError."""
        column_type = MicroDateTimeType()

        with pytest.raises(TypeError, match="Cannot bind"):
            column_type.process_bind_param(object(), None)

    def test_null_handling(self):
        column_type = MicroDateTimeType()

        assert column_type.process_bind_param(None, None) is None
        assert column_type.process_result_value(None, None) is None
        assert column_type.python_type is MicroDateTime

    def test_storage_timezone_from_config(self, monkeypatch):
        """Test the configured storage timezone is used by default."""
        from src.infrastructure.config import reset_time_config

        monkeypatch.setenv("STORAGE_TIMEZONE", "America/New_York")
        reset_time_config()

        stored = MicroDateTimeType().process_bind_param(
            MicroDateTime("2024-07-04 16:00:00.5", "UTC"), None
        )

        assert stored == "2024-07-04 12:00:00.500000"
