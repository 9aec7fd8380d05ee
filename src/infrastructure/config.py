"""
Configuration Management - Loads time settings from the environment
"""

import logging
import os
from dataclasses import dataclass

from babel import default_locale
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

FALLBACK_LOCALE = "en_US"


def _system_locale() -> str:
    """Get the locale of the running system, as Babel sees it"""
    return default_locale("LC_TIME") or FALLBACK_LOCALE


@dataclass(frozen=True)
class TimeConfig:
    """Defaults for MicroDateTime collaborators"""

    default_timezone: str
    default_locale: str
    storage_timezone: str
    log_level: str

    @classmethod
    def from_env(cls) -> "TimeConfig":
        """Load time config from environment variables"""
        return cls(
            default_timezone=os.getenv("DEFAULT_TIMEZONE", "UTC"),
            default_locale=os.getenv("DEFAULT_LOCALE") or _system_locale(),
            storage_timezone=os.getenv("STORAGE_TIMEZONE", "UTC"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


# Global configuration instance (lazy-loaded)
_config: TimeConfig | None = None


def get_time_config() -> TimeConfig:
    """Get or create global configuration instance."""
    global _config
    if _config is None:
        _config = TimeConfig.from_env()
        logger.debug(
            "Loaded time config: timezone=%s locale=%s",
            _config.default_timezone,
            _config.default_locale,
        )
    return _config


def reset_time_config() -> None:
    """Drop the cached configuration so the next read reloads the environment"""
    global _config
    _config = None


def configure_logging(config: TimeConfig | None = None) -> None:
    """Apply the configured log level to the package loggers"""
    config = config or get_time_config()
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {config.log_level!r}, using INFO")
        level = logging.INFO
    logging.getLogger("src").setLevel(level)
