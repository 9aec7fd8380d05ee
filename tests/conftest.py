"""Global pytest configuration and fixtures."""

# Standard library imports
import sys
from collections.abc import Iterator
from pathlib import Path

# Load test environment variables
from dotenv import load_dotenv

test_env_path = Path(__file__).parent.parent / ".env.test"
if test_env_path.exists():
    load_dotenv(test_env_path, override=True)

# Third-party imports
import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Local imports
from src.domain.value_objects.micro_datetime import MicroDateTime
from src.infrastructure.config import reset_time_config
from src.infrastructure.time import BabelDateTimeFormatter, PythonTimeService

# Wednesday
FROZEN_NOW = "2024-03-06 14:30:15.123456"


@pytest.fixture(autouse=True)
def micro_datetime_defaults() -> Iterator[None]:
    """Pin collaborators to UTC / en_US and make sure no frozen time leaks between tests."""
    MicroDateTime.configure(
        time_service=PythonTimeService(default_timezone="UTC"),
        formatter=BabelDateTimeFormatter(default_locale="en_US"),
    )
    MicroDateTime.set_test_now()
    yield
    MicroDateTime.set_test_now()
    MicroDateTime.configure()
    reset_time_config()


@pytest.fixture
def frozen_now() -> Iterator[MicroDateTime]:
    """Freeze "now" at a known Wednesday afternoon in UTC."""
    now = MicroDateTime.parse(FROZEN_NOW, "UTC")
    MicroDateTime.set_test_now(now)
    yield now
    MicroDateTime.set_test_now()


@pytest.fixture
def time_service() -> PythonTimeService:
    """Provides a calendar engine defaulting to UTC."""
    return PythonTimeService(default_timezone="UTC")


@pytest.fixture
def formatter() -> BabelDateTimeFormatter:
    """Provides a formatter defaulting to en_US."""
    return BabelDateTimeFormatter(default_locale="en_US")
