# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Any, Callable, Literal, Optional, cast

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import DEFAULT_TIMEZONE, WEEK_START_DAYS


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_SQLITE_URL = f"sqlite:///{_BACKEND_ROOT / 'planner.db'}"

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _BACKEND_ROOT / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path} (exists={env_path.exists()})")
    cast(Callable[..., bool], load_dotenv)(env_path)


class Settings(BaseSettings):
    # Database
    database_url_raw: str = Field(
        default=_DEFAULT_SQLITE_URL,
        alias="database_url",
        description="SQLAlchemy URL of the primary database",
    )
    test_database_url_raw: str = Field(
        default="sqlite+pysqlite:///:memory:",
        alias="test_database_url",
        description="SQLAlchemy URL used by the test suite",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    is_testing: bool = False  # Set to True when running tests

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Root log level")

    # Calendar semantics
    default_timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        alias="DEFAULT_TIMEZONE",
        description="IANA timezone used for calendar boundaries when the user has none",
    )
    week_start: str = Field(
        default="sunday",
        alias="WEEK_START",
        description="First day of the week for week views (sunday|monday)",
    )

    # Calendar view cache
    calendar_cache_max_size: int = Field(default=1000, ge=1)
    calendar_cache_eviction_threshold: float = Field(default=0.8, gt=0, le=1)
    calendar_cache_eviction_ratio: float = Field(default=0.2, gt=0, le=1)
    calendar_cache_ttl_day_seconds: int = Field(default=2 * 60, ge=1)
    calendar_cache_ttl_week_seconds: int = Field(default=5 * 60, ge=1)
    calendar_cache_ttl_month_seconds: int = Field(default=10 * 60, ge=1)

    # Large result sets
    virtual_scrolling_threshold: int = Field(
        default=100, ge=1, description="Block count above which calendar views are paginated"
    )
    virtual_scrolling_page_size: int = Field(default=100, ge=1)
    mobile_week_max_items: int = Field(default=50, ge=1)
    low_memory_max_items: int = Field(default=50, ge=1)

    # Use ConfigDict instead of Config class (Pydantic V2 style)
    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("default_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("week_start")
    @classmethod
    def _validate_week_start(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized not in WEEK_START_DAYS:
            raise ValueError(
                f"week_start must be one of {sorted(WEEK_START_DAYS)}, got {value!r}"
            )
        return normalized

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()

    def get_database_url(self) -> str:
        """Return the database URL for the current mode (tests use the test URL)."""
        if self.is_testing or is_running_tests():
            return self.test_database_url_raw
        return self.database_url_raw

    @property
    def database_url(self) -> str:
        return self.get_database_url()

    @property
    def week_start_day(self) -> int:
        """Week start as a ``datetime.weekday()`` index (Monday=0, Sunday=6)."""
        return WEEK_START_DAYS[self.week_start]

    def calendar_cache_base_ttls(self) -> dict[str, int]:
        """Base TTL in seconds per calendar view type."""
        return {
            "day": self.calendar_cache_ttl_day_seconds,
            "week": self.calendar_cache_ttl_week_seconds,
            "month": self.calendar_cache_ttl_month_seconds,
        }

    def sqlite_connect_args(self, url: Optional[str] = None) -> dict[str, Any]:
        check_url = url or self.get_database_url()
        if check_url.startswith("sqlite"):
            return {"check_same_thread": False}
        return {}


settings = Settings()
